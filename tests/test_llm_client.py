"""Tests for the OpenAI-compatible client, using a stand-in SDK client."""

from __future__ import annotations

from types import SimpleNamespace
from typing import Any

import openai
import pytest

from mdxai.config import Settings
from mdxai.errors import GenerationError, GenerationTimeoutError, ParsingError
from mdxai.llm.client import LLMClient
from mdxai.models.specification import OutputShape
from mdxai.schema.translator import translate_schema


class _Completions:
    def __init__(self, responses: list[Any]) -> None:
        self.responses = responses
        self.calls: list[dict[str, Any]] = []

    def create(self, **kwargs: Any) -> Any:
        self.calls.append(kwargs)
        response = self.responses.pop(0)
        if isinstance(response, BaseException):
            raise response
        return response


def _completion(text: str | None) -> SimpleNamespace:
    return SimpleNamespace(
        choices=[SimpleNamespace(message=SimpleNamespace(content=text), finish_reason="stop")],
        usage=SimpleNamespace(prompt_tokens=3, completion_tokens=5, total_tokens=8),
    )


def _chunk(text: str | None) -> SimpleNamespace:
    return SimpleNamespace(choices=[SimpleNamespace(delta=SimpleNamespace(content=text))])


def _client(settings: Settings, *responses: Any) -> tuple[LLMClient, _Completions]:
    completions = _Completions(list(responses))
    sdk = SimpleNamespace(chat=SimpleNamespace(completions=completions))
    return LLMClient(settings, client=sdk), completions  # type: ignore[arg-type]


@pytest.fixture
def fast_settings(settings: Settings) -> Settings:
    return settings.model_copy(update={"openai_retry_backoff_s": 0.0, "openai_max_retries": 1})


def test_generate_text(fast_settings: Settings) -> None:
    """It should send system and user messages and return text with usage."""

    client, completions = _client(fast_settings, _completion("Hello"))

    result = client.generate_text("Say hi", "Be nice", model="gpt-4o-mini", max_tokens=10)

    assert result.text == "Hello"
    assert result.usage is not None and result.usage.total_tokens == 8
    call = completions.calls[0]
    assert call["model"] == "gpt-4o-mini"
    assert call["max_tokens"] == 10
    assert call["messages"] == [
        {"role": "system", "content": "Be nice"},
        {"role": "user", "content": "Say hi"},
    ]


def test_structured_array_is_unwrapped(fast_settings: Settings) -> None:
    """It should request JSON mode and unwrap the items envelope for arrays."""

    translation = translate_schema(
        {"type": "array", "items": {"type": "object", "properties": {"label": {"type": "string"}}}}
    )
    client, completions = _client(fast_settings, _completion('{"items": [{"label": "spam"}]}'))

    value = client.generate_structured(
        "classify",
        "You classify.",
        model="m",
        output_shape=translation.shape,
        validator=translation.validator,
    )

    assert translation.validator is not None
    assert translation.validator.dump_python(value, mode="json", by_alias=True) == [{"label": "spam"}]
    call = completions.calls[0]
    assert call["response_format"] == {"type": "json_object"}
    assert '{"items": [...]}' in call["messages"][0]["content"]


@pytest.mark.parametrize(
    ("reply", "error"),
    [
        ("not json", ParsingError),
        ('{"other": 1}', ParsingError),
        (None, GenerationError),
    ],
)
def test_structured_failures(fast_settings: Settings, reply: str | None, error: type[Exception]) -> None:
    """It should raise ParsingError for bad JSON or shape and GenerationError for no output."""

    translation = translate_schema({"type": "object", "properties": {"content": {"type": "string"}}})
    client, _ = _client(fast_settings, _completion(reply))

    with pytest.raises(error):
        client.generate_structured(
            "p", "s", model="m", output_shape=translation.shape, validator=translation.validator
        )


def test_structured_freeform_returns_text(fast_settings: Settings) -> None:
    """It should return raw text when there is no validator."""

    client, completions = _client(fast_settings, _completion("free text"))

    assert client.generate_structured("p", "s", model="m", output_shape=OutputShape.FREEFORM, validator=None) == "free text"
    assert "response_format" not in completions.calls[0]


def test_transient_errors_are_retried(fast_settings: Settings) -> None:
    """It should retry connection errors and succeed on a later attempt."""

    client, completions = _client(fast_settings, openai.APIConnectionError(request=None), _completion("ok"))  # type: ignore[arg-type]

    assert client.generate_text("p", "s", model="m").text == "ok"
    assert len(completions.calls) == 2


def test_retries_are_bounded(fast_settings: Settings) -> None:
    """It should give up with GenerationError once retries are exhausted."""

    client, completions = _client(
        fast_settings,
        openai.APIConnectionError(request=None),  # type: ignore[arg-type]
        openai.APIConnectionError(request=None),  # type: ignore[arg-type]
    )

    with pytest.raises(GenerationError):
        client.generate_text("p", "s", model="m")
    assert len(completions.calls) == 2


def test_request_timeout_is_a_generation_timeout(fast_settings: Settings) -> None:
    """It should surface SDK timeouts as GenerationTimeoutError without retrying."""

    client, completions = _client(fast_settings, openai.APITimeoutError(request=None))  # type: ignore[arg-type]

    with pytest.raises(GenerationTimeoutError):
        client.generate_text("p", "s", model="m")
    assert len(completions.calls) == 1


def test_stream_text_yields_deltas(fast_settings: Settings) -> None:
    """It should yield non-empty deltas and skip empty chunks."""

    stream = [_chunk("Hel"), SimpleNamespace(choices=[]), _chunk(None), _chunk("lo")]
    client, completions = _client(fast_settings, stream)

    assert list(client.stream_text("p", "s", model="m")) == ["Hel", "lo"]
    assert completions.calls[0]["stream"] is True
