"""mdxai: schema-driven MDX generation."""

from __future__ import annotations

from mdxai.config import Settings, load_settings
from mdxai.errors import (
    ConfigurationError,
    GenerationError,
    GenerationTimeoutError,
    MDXAIError,
    ParsingError,
    format_error,
)
from mdxai.functions import FunctionRegistry
from mdxai.generation import MDXGenerator, rewrite_file, rewrite_files
from mdxai.llm import Backend, LLMClient
from mdxai.mdx import parse, stringify, synthesize
from mdxai.models import Document, GenerationRequest, GenerationResult, OutlineItem

__version__ = "1.0.0"

__all__ = [
    "Backend",
    "ConfigurationError",
    "Document",
    "FunctionRegistry",
    "GenerationError",
    "GenerationRequest",
    "GenerationResult",
    "GenerationTimeoutError",
    "LLMClient",
    "MDXAIError",
    "MDXGenerator",
    "OutlineItem",
    "ParsingError",
    "Settings",
    "format_error",
    "load_settings",
    "parse",
    "rewrite_file",
    "rewrite_files",
    "stringify",
    "synthesize",
]
