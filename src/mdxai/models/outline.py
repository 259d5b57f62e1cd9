"""Outline models."""

from __future__ import annotations

from pydantic import BaseModel, Field


class OutlineItem(BaseModel):
    """One section of a generated outline.

    Outlines are transient: they drive a single expansion prompt and are returned to the
    caller alongside the document, never persisted.
    """

    title: str = Field(min_length=1)
    description: str | None = None
    children: list["OutlineItem"] = Field(default_factory=list)

    def as_prompt_text(self) -> str:
        return f"{self.title}\n{self.description or ''}"
