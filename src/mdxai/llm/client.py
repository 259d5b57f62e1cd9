"""OpenAI-compatible LLM client.

This wraps the `openai` Python SDK and implements :class:`~mdxai.llm.protocol.Backend` on top of
chat completions. `openai_base_url` lets the same client talk to OpenAI-compatible gateways.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from typing import Any, Iterator, Literal, Sequence

import openai
from openai import OpenAI
from pydantic import TypeAdapter, ValidationError

from mdxai.config import Settings, validate_backend_settings
from mdxai.errors import GenerationError, GenerationTimeoutError, ParsingError
from mdxai.llm.protocol import Backend, TextGeneration, Usage
from mdxai.logging import get_logger
from mdxai.models.specification import OutputShape
from mdxai.utils.json_text import loads_json

logger = get_logger(__name__)

Role = Literal["system", "user", "assistant"]

_RETRYABLE = (openai.APIConnectionError, openai.RateLimitError, openai.InternalServerError)


@dataclass(frozen=True)
class ChatMessage:
    """A chat message."""

    role: Role
    content: str


def structured_instructions(shape: OutputShape, validator: TypeAdapter[Any]) -> str:
    """System prompt suffix describing the JSON the model must return."""

    schema = json.dumps(validator.json_schema(), ensure_ascii=False)
    if shape is OutputShape.ARRAY:
        return (
            "Respond with ONLY a JSON object of the form {\"items\": [...]} where the array "
            f"matches this JSON schema:\n{schema}"
        )
    return f"Respond with ONLY a JSON object matching this JSON schema:\n{schema}"


class LLMClient(Backend):
    """LLM client using OpenAI-compatible Chat Completions API."""

    def __init__(self, settings: Settings, *, client: OpenAI | None = None) -> None:
        self._settings = settings
        if client is None:
            validate_backend_settings(settings)
            client = OpenAI(
                # Gateways that authenticate elsewhere still need a non-empty key for the SDK.
                api_key=settings.openai_api_key or "unused",
                base_url=settings.openai_base_url,
                max_retries=0,  # We handle retries ourselves
            )
        self._client = client

    def complete(
        self,
        messages: Sequence[ChatMessage],
        *,
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
        json_mode: bool = False,
    ) -> TextGeneration:
        """Generate a completion.

        Args:
            messages: Chat messages.
            model: Model identifier.
            temperature: Sampling temperature.
            max_tokens: Maximum tokens to generate.
            json_mode: Ask the API for a JSON object response.

        Returns:
            The assistant text with finish reason and usage.
        """

        payload: list[dict[str, str]] = [{"role": m.role, "content": m.content} for m in messages]
        kwargs: dict[str, Any] = {}
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        if json_mode:
            kwargs["response_format"] = {"type": "json_object"}

        resp = self._with_retries(
            lambda: self._client.chat.completions.create(
                model=model,
                messages=payload,
                temperature=temperature,
                timeout=self._settings.openai_timeout_s,
                **kwargs,
            ),
            model=model,
        )
        choice = resp.choices[0]
        usage = None
        if resp.usage:
            usage = Usage(
                prompt_tokens=resp.usage.prompt_tokens,
                completion_tokens=resp.usage.completion_tokens,
                total_tokens=resp.usage.total_tokens,
            )
        text = choice.message.content if choice.message and choice.message.content else ""
        return TextGeneration(text=text, finish_reason=choice.finish_reason, usage=usage)

    def _with_retries(self, call: Any, *, model: str) -> Any:
        attempts = self._settings.openai_max_retries + 1
        for attempt in range(attempts):
            start_time = time.monotonic()
            try:
                resp = call()
            except openai.APITimeoutError as e:
                raise GenerationTimeoutError(f"Request to {model} timed out") from e
            except _RETRYABLE as e:
                if attempt + 1 >= attempts:
                    logger.error("LLM request failed after retries", extra={"error": str(e)})
                    raise GenerationError(f"LLM request failed after {attempts} attempts: {e}") from e
                wait_time = self._settings.openai_retry_backoff_s * (2**attempt)
                logger.warning(
                    "LLM request failed, retrying",
                    extra={"attempt": attempt + 1, "wait_time": wait_time, "error": str(e)},
                )
                time.sleep(wait_time)
                continue
            except openai.OpenAIError as e:
                raise GenerationError(f"LLM request failed: {e}") from e
            logger.debug(
                "LLM completion successful",
                extra={"model": model, "latency_ms": (time.monotonic() - start_time) * 1000},
            )
            return resp
        raise GenerationError("LLM request was not attempted")

    def generate_text(
        self,
        prompt: str,
        system_prompt: str,
        *,
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> TextGeneration:
        messages = [
            ChatMessage(role="system", content=system_prompt),
            ChatMessage(role="user", content=prompt),
        ]
        return self.complete(messages, model=model, temperature=temperature, max_tokens=max_tokens)

    def stream_text(
        self,
        prompt: str,
        system_prompt: str,
        *,
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> Iterator[str]:
        payload = [
            {"role": "system", "content": system_prompt},
            {"role": "user", "content": prompt},
        ]
        kwargs: dict[str, Any] = {}
        if max_tokens is not None:
            kwargs["max_tokens"] = max_tokens
        stream = self._with_retries(
            lambda: self._client.chat.completions.create(
                model=model,
                messages=payload,
                temperature=temperature,
                timeout=self._settings.openai_timeout_s,
                stream=True,
                **kwargs,
            ),
            model=model,
        )
        try:
            for chunk in stream:
                if not chunk.choices:
                    continue
                delta = chunk.choices[0].delta
                if delta is not None and delta.content:
                    yield delta.content
        except openai.APITimeoutError as e:
            raise GenerationTimeoutError(f"Stream from {model} timed out") from e
        except openai.OpenAIError as e:
            raise GenerationError(f"Stream from {model} failed: {e}") from e

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
        if output_shape is OutputShape.FREEFORM or validator is None:
            result = self.generate_text(prompt, system_prompt, model=model, max_tokens=max_tokens)
            if not result.text:
                raise GenerationError("Backend returned empty output")
            return result.text

        messages = [
            ChatMessage(
                role="system",
                content=f"{system_prompt}\n\n{structured_instructions(output_shape, validator)}",
            ),
            ChatMessage(role="user", content=prompt),
        ]
        result = self.complete(messages, model=model, max_tokens=max_tokens, json_mode=True)
        if not result.text:
            raise GenerationError("Backend returned empty output")
        data = loads_json(result.text, what="structured output")
        if output_shape is OutputShape.ARRAY and isinstance(data, dict) and "items" in data:
            data = data["items"]
        try:
            return validator.validate_python(data)
        except ValidationError as e:
            raise ParsingError(f"Structured output does not match the schema: {e}") from e
