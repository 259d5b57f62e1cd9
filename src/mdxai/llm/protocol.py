"""Protocol for pluggable text/structured generation backends."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Iterator

from pydantic import TypeAdapter

from mdxai.models.specification import OutputShape


@dataclass(frozen=True)
class Usage:
    """Token accounting reported by the backend."""

    prompt_tokens: int = 0
    completion_tokens: int = 0
    total_tokens: int = 0


@dataclass(frozen=True)
class TextGeneration:
    """Result of one text generation call."""

    text: str
    finish_reason: str | None = None
    usage: Usage | None = None


class Backend(ABC):
    """Text-completion / structured-output capability."""

    @abstractmethod
    def generate_text(
        self,
        prompt: str,
        system_prompt: str,
        *,
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> TextGeneration:
        """Generate unconstrained text."""

    @abstractmethod
    def stream_text(
        self,
        prompt: str,
        system_prompt: str,
        *,
        model: str,
        temperature: float = 0.7,
        max_tokens: int | None = None,
    ) -> Iterator[str]:
        """Generate text as an incremental sequence of chunks."""

    @abstractmethod
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
        """Generate a value already validated by ``validator``.

        For ``OutputShape.FREEFORM`` (no validator) the raw text is returned.
        """
