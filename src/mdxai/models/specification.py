"""Specification model for file-backed AI functions."""

from __future__ import annotations

from enum import Enum
from pathlib import Path
from typing import Any

from pydantic import BaseModel, Field


class OutputShape(str, Enum):
    """How a structured-generation result is interpreted."""

    OBJECT = "object"
    ARRAY = "array"
    FREEFORM = "freeform"


class Specification(BaseModel):
    """Declarative description of one dynamically dispatchable function."""

    name: str
    model: str
    system_prompt: str
    output_schema: dict[str, Any] | None = None
    instructions: str = ""
    static_fields: dict[str, Any] = Field(default_factory=dict)
    path: Path | None = None
