"""Frontmatter/AST synthesizer.

Maps MDX text to a :class:`Document` and back. The YAML frontmatter carries linked-data keys in
two equivalent spellings (``$type`` and ``@type``); documents hold them canonically under the
``$`` prefix and serialization can emit either or both.
"""

from __future__ import annotations

import re
from typing import Any

import frontmatter
import yaml
from frontmatter.default_handlers import YAMLHandler

from mdxai.errors import ParsingError
from mdxai.logging import get_logger
from mdxai.mdx.nodes import render, tokenize
from mdxai.models.document import (
    ALT_PREFIX,
    PRIMARY_PREFIX,
    SPECIAL_PROPERTIES,
    BodyNode,
    Document,
    canonicalize_metadata,
    strip_quotes,
)

logger = get_logger(__name__)

_HANDLER = YAMLHandler()
_LEADING_BLANK_LINES_RE = re.compile(r"\A(?:[ \t]*\r?\n)+")
DESCRIPTION_MAX_CHARS = 160


def split(text: str) -> tuple[dict[str, Any], str]:
    """Split MDX text into a raw metadata mapping and body text.

    Raises:
        ParsingError: If there is no delimited metadata block or it is not a mapping.
    """

    text = text.lstrip("\ufeff \t\r\n")
    if not _HANDLER.detect(text):
        raise ParsingError("No frontmatter block found: text must start with a '---' delimiter line")
    try:
        raw_metadata, body = _HANDLER.split(text)
    except ValueError as exc:
        raise ParsingError("Frontmatter block is not closed by a '---' delimiter line") from exc

    try:
        metadata = yaml.safe_load(raw_metadata)
    except yaml.YAMLError as exc:
        raise ParsingError(f"Frontmatter is not valid YAML: {exc}") from exc
    if metadata is None:
        metadata = {}
    if not isinstance(metadata, dict):
        raise ParsingError(f"Frontmatter must be a mapping, got {type(metadata).__name__}")
    return {str(k): v for k, v in metadata.items()}, body


def body_nodes(body: str) -> list[BodyNode]:
    """Tokenize body text, degrading to a single text node when it cannot be tokenized."""

    # Leading blank lines only; indentation on the first line is content.
    body = _LEADING_BLANK_LINES_RE.sub("", body).rstrip()
    if not body:
        return []
    try:
        return tokenize(body)
    except ParsingError as exc:
        logger.warning("Body could not be tokenized; keeping it as one text node", extra={"error": str(exc)})
        return [BodyNode(kind="text", content=body)]


def parse(text: str, *, allow_alt_prefix: bool = True) -> Document:
    """Parse MDX text into a document.

    Args:
        text: MDX text starting with a ``---`` delimited YAML block.
        allow_alt_prefix: Accept ``@``-prefixed linked-data keys. When false they are rejected.

    Raises:
        ParsingError: If the metadata block is missing or not a mapping, or an ``@`` key is
            present while ``allow_alt_prefix`` is false.
    """

    metadata, body = split(text)
    if not allow_alt_prefix:
        alt_keys = [k for k in metadata if k.startswith(ALT_PREFIX) and k[1:] in SPECIAL_PROPERTIES]
        if alt_keys:
            raise ParsingError(f"'{ALT_PREFIX}' prefixed keys are not allowed here: {', '.join(alt_keys)}")
    return Document(metadata=canonicalize_metadata(metadata), body=body_nodes(body))


def _serializable_metadata(metadata: dict[str, Any], *, use_alt_prefix: bool) -> dict[str, Any]:
    out: dict[str, Any] = {}
    for key, value in metadata.items():
        name = key[1:] if key[:1] in (PRIMARY_PREFIX, ALT_PREFIX) else None
        if name not in SPECIAL_PROPERTIES:
            out[key] = value
            continue
        primary, alt = PRIMARY_PREFIX + name, ALT_PREFIX + name
        if name in ("type", "context"):
            value = strip_quotes(value)
        if key == alt and primary in metadata:
            # Mirror keeps its position but always carries the authoritative value.
            value = strip_quotes(metadata[primary]) if name in ("type", "context") else metadata[primary]
        elif key == primary and alt not in metadata and use_alt_prefix:
            key = alt
        out[key] = value
    return out


def stringify(document: Document, *, use_alt_prefix: bool = False) -> str:
    """Serialize a document back to MDX text.

    Args:
        document: Document to serialize.
        use_alt_prefix: Write lone linked-data keys with the ``@`` prefix instead of ``$``.
    """

    post = frontmatter.Post(render(document.body))
    post.metadata.update(_serializable_metadata(document.metadata, use_alt_prefix=use_alt_prefix))
    text = frontmatter.dumps(post, handler=_HANDLER, sort_keys=False, allow_unicode=True)
    return text.rstrip("\n") + "\n"


def _first(nodes: list[BodyNode], kind: str) -> BodyNode | None:
    return next((node for node in nodes if node.kind == kind), None)


def _summary(text: str) -> str:
    text = " ".join(text.split())
    if len(text) <= DESCRIPTION_MAX_CHARS:
        return text
    return text[: DESCRIPTION_MAX_CHARS - 3].rstrip() + "..."


def synthesize(
    document: Document,
    *,
    type: str,  # noqa: A002
    model: str,
    source_text: str,
    prompt: str | None = None,
    context: str = "https://schema.org",
    schema_url: str | None = "https://mdx.org.ai/schema.json",
    generator: str = "mdxai",
    version: str = "1.0.0",
) -> Document:
    """Enrich a freshly generated document with linked-data frontmatter.

    The document is updated in place and returned. Both prefix spellings of ``type`` and
    ``context`` are written, plus ``title``/``description`` and the ``metadata`` sub-map
    (keywords, category, version, generator). A document without body nodes takes them from
    ``source_text``; text that cannot be tokenized becomes a single text node.
    """

    type_value = strip_quotes(type)
    if not document.body:
        try:
            _, body = split(source_text)
        except ParsingError:
            body = source_text
        document.body = body_nodes(body)

    generated = dict(document.metadata)
    for name in ("type", "context"):
        generated.pop(PRIMARY_PREFIX + name, None)
        generated.pop(ALT_PREFIX + name, None)

    heading = _first(document.body, "heading")
    text = _first(document.body, "text")
    title = generated.pop("title", None) or (heading.content if heading else None) or prompt or type_value
    description = generated.pop("description", None)
    if not description:
        if text is not None:
            description = _summary(text.content)
        else:
            description = f"Generated {type_value} content about {prompt or title}"

    existing_meta = generated.pop("metadata", None)
    extra_meta = existing_meta if isinstance(existing_meta, dict) else {}
    properties = extra_meta.get("properties") if isinstance(extra_meta.get("properties"), dict) else {}

    metadata: dict[str, Any] = {}
    if schema_url:
        metadata["$schema"] = generated.pop("$schema", schema_url)
    metadata["$type"] = type_value
    metadata["$context"] = context
    generated.pop("model", None)
    metadata["model"] = model
    metadata["title"] = title
    metadata["description"] = description
    metadata.update(generated)
    metadata["@type"] = type_value
    metadata["@context"] = context
    metadata["metadata"] = {
        **extra_meta,
        "keywords": [type_value.lower(), "mdx", "content"],
        "category": type_value,
        "properties": {**properties, "version": version, "generator": f"{generator}-{model}"},
    }
    document.metadata = metadata
    return document
