"""Shared fixtures: a recording fake backend and isolated settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Callable, Iterable, Iterator

import pytest
from pydantic import TypeAdapter, ValidationError

from mdxai.config import Settings
from mdxai.errors import ParsingError
from mdxai.llm.protocol import Backend, TextGeneration
from mdxai.models.specification import OutputShape


class FakeBackend(Backend):
    """Backend returning canned replies and recording every call.

    Text replies come from ``texts`` in order, or from ``responder(prompt)`` when given.
    Structured replies come from ``structured`` in order; an exception instance is raised.
    """

    def __init__(
        self,
        texts: Iterable[str] = (),
        *,
        responder: Callable[[str], str] | None = None,
        structured: Iterable[Any] = (),
        chunks: Iterable[str] | None = None,
    ) -> None:
        self.texts = list(texts)
        self.responder = responder
        self.structured = list(structured)
        self.chunks = chunks
        self.calls: list[dict[str, Any]] = []

    def _record(self, method: str, prompt: str, system_prompt: str, **kwargs: Any) -> None:
        self.calls.append({"method": method, "prompt": prompt, "system_prompt": system_prompt, **kwargs})

    def _next_text(self, prompt: str) -> str:
        if self.responder is not None:
            return self.responder(prompt)
        return self.texts.pop(0) if self.texts else ""

    def generate_text(
        self,
        prompt: str,
        system_prompt: str,
        *,
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> TextGeneration:
        self._record("generate_text", prompt, system_prompt, model=model)
        return TextGeneration(text=self._next_text(prompt), finish_reason="stop")

    def stream_text(
        self,
        prompt: str,
        system_prompt: str,
        *,
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> Iterator[str]:
        self._record("stream_text", prompt, system_prompt, model=model)
        if self.chunks is not None:
            return iter(self.chunks)
        return iter([self._next_text(prompt)])

    def generate_structured(
        self,
        prompt: str,
        system_prompt: str,
        *,
        model: str,
        output_shape: OutputShape,
        validator: TypeAdapter[Any] | None,
        max_tokens: int | None = None,
    ) -> Any:
        self._record("generate_structured", prompt, system_prompt, model=model, output_shape=output_shape)
        reply = self.structured.pop(0) if self.structured else None
        if isinstance(reply, BaseException):
            raise reply
        if output_shape is OutputShape.FREEFORM or validator is None:
            return reply
        try:
            return validator.validate_python(reply)
        except ValidationError as e:
            raise ParsingError(f"Structured output does not match the schema: {e}") from e


@pytest.fixture
def settings(tmp_path: Path) -> Settings:
    return Settings(
        openai_api_key="test-key",
        default_model="gpt-4o-mini",
        functions_dir=tmp_path / "ai",
        generation_timeout_s=None,
    )


@pytest.fixture
def fake_backend() -> FakeBackend:
    return FakeBackend()
