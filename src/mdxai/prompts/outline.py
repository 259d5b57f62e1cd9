from __future__ import annotations

from typing import Sequence

from mdxai.models.outline import OutlineItem

OUTLINE_SYSTEM_PROMPT = "You are an expert content outliner. Generate structured outlines in JSON format."


def build_outline_prompt(prompt: str, type: str, depth: int) -> str:  # noqa: A002
    return (
        f"Generate a structured outline for {type} content about: {prompt}\n"
        "Include title and brief description for each section. "
        "Format as a JSON array of objects with 'title' and 'description' fields.\n"
        f"Keep the structure flat for depth {depth}, focusing on main sections only."
    )


def build_expansion_prompt(outline: Sequence[OutlineItem]) -> str:
    """Single composite prompt covering every outline section."""

    sections = "\n\n".join(item.as_prompt_text() for item in outline)
    return f"Generate detailed MDX content following this outline:\n\n{sections}"
