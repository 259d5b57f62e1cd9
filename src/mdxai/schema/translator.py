"""JSON-Schema-like description -> pydantic validator + output shape.

Coverage is intentionally partial: untyped or unrecognised shapes are widened to ``Any``
instead of being rejected, so any specification file can be translated.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Any, Literal, Mapping

from pydantic import ConfigDict, Field, TypeAdapter, create_model

from mdxai.logging import get_logger
from mdxai.models.specification import OutputShape

logger = get_logger(__name__)

_SCALARS: dict[str, Any] = {
    "string": str,
    "number": float,
    "integer": int,
    "boolean": bool,
    "null": type(None),
}


@dataclass(frozen=True)
class SchemaTranslation:
    """Result of translating one schema."""

    shape: OutputShape
    validator: TypeAdapter[Any] | None

    def json_schema(self) -> dict[str, Any] | None:
        if self.validator is None:
            return None
        return self.validator.json_schema()


def select_output_shape(schema: Mapping[str, Any] | None) -> OutputShape:
    """Pick the output shape: no schema -> freeform, top-level array -> array, else object."""

    if schema is None:
        return OutputShape.FREEFORM
    if isinstance(schema, Mapping) and schema.get("type") == "array":
        return OutputShape.ARRAY
    return OutputShape.OBJECT


def _model_name(hint: str) -> str:
    name = "".join(part.capitalize() for part in re.split(r"[^0-9A-Za-z]+", hint) if part)
    if not name or not name[0].isalpha():
        name = f"Schema{name}"
    return name


def schema_to_annotation(schema: Any, *, name: str = "Output") -> Any:
    """Recursively translate a schema node into a type annotation."""

    if not isinstance(schema, Mapping):
        return Any

    enum = schema.get("enum")
    if isinstance(enum, list) and enum and all(isinstance(v, (str, int, bool)) for v in enum):
        return Literal[tuple(enum)]

    kind = schema.get("type")
    if kind == "object":
        properties = schema.get("properties")
        if not isinstance(properties, Mapping) or not properties:
            return dict[str, Any]
        # Property names become aliases so arbitrary keys (`_id`, `json`, ...) stay valid.
        fields: dict[str, Any] = {}
        for index, (prop_name, prop_schema) in enumerate(properties.items()):
            annotation = schema_to_annotation(prop_schema, name=f"{name}_{prop_name}")
            fields[f"field_{index}"] = (annotation, Field(..., alias=str(prop_name)))
        return create_model(  # type: ignore[call-overload]
            _model_name(name),
            __config__=ConfigDict(extra="forbid"),
            **fields,
        )
    if kind == "array":
        items = schema.get("items")
        if items is None:
            return list[Any]
        return list[schema_to_annotation(items, name=f"{name}_item")]  # type: ignore[misc]
    if isinstance(kind, str) and kind in _SCALARS:
        return _SCALARS[kind]

    logger.debug("Widening unrecognised schema node to Any", extra={"schema_type": kind})
    return Any


def translate_schema(schema: Mapping[str, Any] | None, *, name: str = "Output") -> SchemaTranslation:
    """Translate a schema into its output shape and validator.

    Args:
        schema: JSON-Schema-like mapping, or ``None`` for freeform output.
        name: Hint used to name generated models.
    """

    shape = select_output_shape(schema)
    if shape is OutputShape.FREEFORM:
        return SchemaTranslation(shape=shape, validator=None)
    return SchemaTranslation(shape=shape, validator=TypeAdapter(schema_to_annotation(schema, name=name)))
