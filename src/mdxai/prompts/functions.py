from __future__ import annotations

from typing import Any

DEFAULT_FUNCTION_SYSTEM_PROMPT = "You are an AI assistant helping with content generation"

FUNCTION_INSTRUCTIONS_PLACEHOLDER = "<!-- Add your custom content or instructions here -->"


def default_function_metadata(model: str, *, version: str = "1.0.0", generator: str = "mdxai") -> dict[str, Any]:
    """Frontmatter written into a newly created function file."""

    return {
        "$type": "AIFunction",
        "$context": "https://schema.org/",
        "model": model,
        "system": DEFAULT_FUNCTION_SYSTEM_PROMPT,
        "metadata": {
            "keywords": [],
            "category": "ai-function",
            "properties": {"version": version, "generator": generator},
        },
        "schema": {
            "type": "object",
            "properties": {"content": {"type": "string"}},
            "required": ["content"],
        },
    }
