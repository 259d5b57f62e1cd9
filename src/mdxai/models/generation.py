"""Generation request/result models."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field

from mdxai.models.document import Document
from mdxai.models.outline import OutlineItem


class GenerationRequest(BaseModel):
    """Immutable input for one generation call."""

    model_config = ConfigDict(frozen=True)

    prompt: str = Field(min_length=1)
    type: str = "Article"  # noqa: A003
    model: str = "gpt-4o-mini"
    components: tuple[str, ...] = ()
    recursive: bool = False
    depth: int = Field(default=1, ge=0)

    @property
    def wants_outline(self) -> bool:
        return self.recursive and self.depth > 0

    def direct(self, prompt: str) -> "GenerationRequest":
        """Derive the single expansion sub-request; never recursive."""

        return self.model_copy(update={"prompt": prompt, "recursive": False})


class GenerationResult(BaseModel):
    """Serialized content plus its parsed document."""

    content: str
    document: Document
    outline: list[OutlineItem] | None = None
    progress_message: str = "Generated MDX content\n"
