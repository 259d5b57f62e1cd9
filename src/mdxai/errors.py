"""Error taxonomy shared by every mdxai component."""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pydantic import ValidationError

    from mdxai.models.generation import GenerationResult


class MDXAIError(Exception):
    """Base class for mdxai failures."""


class ConfigurationError(MDXAIError):
    """Missing or invalid setup, e.g. no model or no backend credentials."""


class GenerationError(MDXAIError):
    """The backend call failed or returned empty/unusable output."""


class GenerationTimeoutError(GenerationError, TimeoutError):
    """A network-bound step exceeded its deadline.

    ``partial`` holds the text streamed before the deadline fired. When the
    generator could synthesize that text, ``result`` carries the partial
    document so callers can keep it instead of discarding the work.
    """

    def __init__(
        self,
        message: str,
        *,
        partial: str = "",
        result: GenerationResult | None = None,
    ) -> None:
        super().__init__(message)
        self.partial = partial
        self.result = result


class ParsingError(MDXAIError):
    """Generated or stored text could not be decoded."""


def format_error(error: BaseException) -> str:
    """Render an error as ``Kind: message`` for diagnostics."""

    message = str(error) or "unknown error"
    return f"{type(error).__name__}: {message}"


def describe_validation_error(error: ValidationError) -> str:
    """Summarize a pydantic validation error as ``field: message`` pairs."""

    return "; ".join(
        f"{'.'.join(str(part) for part in item['loc']) or 'value'}: {item['msg']}" for item in error.errors()
    )
