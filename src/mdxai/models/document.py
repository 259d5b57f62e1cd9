"""Document models.

A document is the canonical in-memory form of an MDX file: an ordered metadata map (the YAML
frontmatter) plus an ordered sequence of body nodes.
"""

from __future__ import annotations

from typing import Any, Literal

from pydantic import BaseModel, Field, model_validator

# Prefix-A is authoritative; prefix-B is the JSON-LD spelling kept for compatibility.
PRIMARY_PREFIX = "$"
ALT_PREFIX = "@"

SPECIAL_PROPERTIES: tuple[str, ...] = (
    "type",
    "context",
    "id",
    "language",
    "base",
    "vocab",
    "list",
    "set",
    "reverse",
)

NodeKind = Literal[
    "heading",
    "text",
    "code",
    "component",
    "esm",
    "list",
    "blockquote",
    "table",
    "thematicBreak",
]


def strip_quotes(value: Any) -> Any:
    """Remove quotes wrapped around a string value, e.g. ``"'Article'"`` -> ``Article``."""

    if not isinstance(value, str):
        return value
    stripped = value.strip()
    while len(stripped) >= 2 and stripped[0] == stripped[-1] and stripped[0] in "\"'":
        stripped = stripped[1:-1].strip()
    return stripped


def canonicalize_metadata(metadata: dict[str, Any]) -> dict[str, Any]:
    """Rename lone ``@`` special keys to their ``$`` twin, keeping key order.

    When both spellings are present both are kept and the ``$`` key is authoritative.
    """

    out: dict[str, Any] = {}
    for key, value in metadata.items():
        name = key[1:] if key[:1] in (PRIMARY_PREFIX, ALT_PREFIX) else None
        if name in SPECIAL_PROPERTIES:
            if name in ("type", "context"):
                value = strip_quotes(value)
            if key[0] == ALT_PREFIX and PRIMARY_PREFIX + name not in metadata:
                key = PRIMARY_PREFIX + name
        out[key] = value
    return out


class BodyNode(BaseModel):
    """One block of MDX body content."""

    kind: NodeKind
    content: str
    depth: int | None = Field(default=None, ge=1, le=6)
    lang: str | None = None


class Document(BaseModel):
    """Metadata map plus ordered body nodes."""

    metadata: dict[str, Any] = Field(default_factory=dict)
    body: list[BodyNode] = Field(default_factory=list)

    @model_validator(mode="after")
    def _canonical_prefixes(self) -> "Document":
        self.metadata = canonicalize_metadata(self.metadata)
        return self

    def ld(self, name: str) -> Any:
        """Return a linked-data property from whichever prefix holds it."""

        if PRIMARY_PREFIX + name in self.metadata:
            return self.metadata[PRIMARY_PREFIX + name]
        return self.metadata.get(ALT_PREFIX + name)

    @property
    def type(self) -> str | None:  # noqa: A003
        return self.ld("type")

    @property
    def context(self) -> str | None:
        return self.ld("context")

    @property
    def title(self) -> str | None:
        return self.metadata.get("title")

    @property
    def description(self) -> str | None:
        return self.metadata.get("description")

    def headings(self) -> list[BodyNode]:
        return [node for node in self.body if node.kind == "heading"]
