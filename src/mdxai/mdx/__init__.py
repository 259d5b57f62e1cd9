"""MDX frontmatter and body synthesis."""

from __future__ import annotations

from mdxai.mdx.frontmatter import parse, split, stringify, synthesize
from mdxai.mdx.nodes import render, tokenize

__all__ = [
    "parse",
    "render",
    "split",
    "stringify",
    "synthesize",
    "tokenize",
]
