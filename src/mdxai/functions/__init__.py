"""File-backed AI functions with dynamic dispatch."""

from __future__ import annotations

from mdxai.functions.loader import load_specification, resolve_function_path
from mdxai.functions.registry import AIFunction, FunctionRegistry, shape_result

__all__ = [
    "AIFunction",
    "FunctionRegistry",
    "load_specification",
    "resolve_function_path",
    "shape_result",
]
