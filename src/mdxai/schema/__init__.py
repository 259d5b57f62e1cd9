"""Schema translation for structured generation."""

from __future__ import annotations

from mdxai.schema.translator import SchemaTranslation, schema_to_annotation, select_output_shape, translate_schema

__all__ = [
    "SchemaTranslation",
    "schema_to_annotation",
    "select_output_shape",
    "translate_schema",
]
