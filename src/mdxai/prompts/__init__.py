from __future__ import annotations

from mdxai.prompts.functions import DEFAULT_FUNCTION_SYSTEM_PROMPT, default_function_metadata
from mdxai.prompts.generator import MDX_SYSTEM_PROMPT, build_generation_prompt
from mdxai.prompts.outline import OUTLINE_SYSTEM_PROMPT, build_expansion_prompt, build_outline_prompt

__all__ = [
    "MDX_SYSTEM_PROMPT",
    "OUTLINE_SYSTEM_PROMPT",
    "DEFAULT_FUNCTION_SYSTEM_PROMPT",
    "build_generation_prompt",
    "build_outline_prompt",
    "build_expansion_prompt",
    "default_function_metadata",
]
