"""Pydantic models used across the project."""

from __future__ import annotations

from mdxai.models.document import BodyNode, Document
from mdxai.models.generation import GenerationRequest, GenerationResult
from mdxai.models.outline import OutlineItem
from mdxai.models.specification import OutputShape, Specification

__all__ = [
    "BodyNode",
    "Document",
    "GenerationRequest",
    "GenerationResult",
    "OutlineItem",
    "OutputShape",
    "Specification",
]
