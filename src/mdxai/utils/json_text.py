"""Helpers for pulling payloads out of LLM replies.

Models often wrap JSON or MDX answers in markdown code fences (```json ... ```), so replies are
unwrapped before they are decoded.
"""

from __future__ import annotations

import json
import re
from typing import Any, Collection

from mdxai.errors import ParsingError

_FENCED_RE = re.compile(
    r"^\s*(?P<fence>`{3,}|~{3,})[ \t]*(?P<lang>[\w-]*)[^\n]*\n(?P<body>.*?)\n?(?P=fence)\s*$",
    re.DOTALL,
)

JSON_FENCE_LANGUAGES = ("", "json")
MDX_FENCE_LANGUAGES = ("", "mdx", "md", "markdown")


def strip_code_fence(text: str, *, languages: Collection[str] | None = None) -> str:
    """Return the inside of a reply that is entirely one fenced block, else the stripped text.

    Fenced blocks embedded in surrounding prose are left untouched.

    Args:
        text: Model reply.
        languages: Only unwrap fences tagged with one of these languages (``""`` for untagged).
            ``None`` unwraps any fence.
    """

    if not text:
        return ""
    m = _FENCED_RE.match(text)
    if not m or (languages is not None and m.group("lang").lower() not in languages):
        return text.strip()
    return m.group("body").strip()


def loads_json(text: str, *, what: str = "reply") -> Any:
    """Decode a JSON reply, tolerating a surrounding code fence.

    Raises:
        ParsingError: If the payload is not valid JSON.
    """

    try:
        return json.loads(strip_code_fence(text))
    except json.JSONDecodeError as exc:
        raise ParsingError(f"Failed to parse {what} JSON: {exc}") from exc
