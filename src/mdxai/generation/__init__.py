"""Document generation: direct, outline-driven and batch rewrites."""

from __future__ import annotations

from mdxai.generation.batch import expand_pattern, rewrite_file, rewrite_files
from mdxai.generation.generator import MDXGenerator

__all__ = ["MDXGenerator", "expand_pattern", "rewrite_file", "rewrite_files"]
