"""Dynamic registry of file-backed AI functions.

Any name is a valid function: ``registry.invoke("summarize", {"text": ...})`` (or the attribute
form ``registry.summarize(text=...)``) resolves ``<functions_dir>/summarize.mdx``, creating it from
a default template on first use, and performs one validated structured-generation round trip.
"""

from __future__ import annotations

import asyncio
import json
from pathlib import Path
from typing import Any, Mapping

from pydantic import TypeAdapter

from mdxai.config import Settings
from mdxai.errors import ConfigurationError, MDXAIError, format_error
from mdxai.functions.loader import (
    default_function_text,
    ensure_function_file,
    load_specification,
    resolve_function_path,
)
from mdxai.llm.protocol import Backend
from mdxai.logging import get_logger, request_context
from mdxai.models.specification import OutputShape, Specification
from mdxai.schema.translator import translate_schema
from mdxai.utils.ids import new_request_id

logger = get_logger(__name__)

FunctionResult = dict[str, Any]


class AIFunction:
    """Callable bound to one function name."""

    def __init__(self, registry: "FunctionRegistry", name: str) -> None:
        self._registry = registry
        self.name = name

    def __call__(self, args: dict[str, Any] | None = None, /, **kwargs: Any) -> FunctionResult:
        return self._registry.invoke(self.name, args, **kwargs)

    async def acall(self, args: dict[str, Any] | None = None, /, **kwargs: Any) -> FunctionResult:
        return await self._registry.ainvoke(self.name, args, **kwargs)

    def __repr__(self) -> str:
        return f"AIFunction({self.name!r})"


class FunctionRegistry:
    """Registry mapping arbitrary names to AI functions."""

    def __init__(self, settings: Settings, backend: Backend) -> None:
        """Initialize the registry.

        Args:
            settings: Application settings; ``functions_dir`` locates spec files.
            backend: Structured-generation backend.
        """
        self._settings = settings
        self._backend = backend
        self._functions: dict[str, AIFunction] = {}

    @property
    def functions_dir(self) -> Path:
        return self._settings.functions_dir

    def get(self, name: str) -> AIFunction:
        """Return the cached callable for ``name``, creating it on first access."""
        fn = self._functions.get(name)
        if fn is None:
            fn = AIFunction(self, name)
            self._functions[name] = fn
        return fn

    def __getattr__(self, name: str) -> AIFunction:
        if name.startswith("_"):
            raise AttributeError(name)
        return self.get(name)

    def __contains__(self, name: str) -> bool:
        return name in self._functions

    def invoke(self, name: str, args: dict[str, Any] | None = None, /, **kwargs: Any) -> FunctionResult:
        """Run one AI function.

        Never raises: any failure is returned as ``{"error": "<Kind>: <message>"}``.

        Args:
            name: Function name.
            args: Caller arguments; they win over static fields of the spec file.
            **kwargs: Extra caller arguments merged over ``args``.

        Returns:
            ``{"items": [...]}`` for array schemas, the object's fields for object schemas and
            ``{"content": text}`` when the spec declares no schema.
        """
        with request_context(request_id=new_request_id("fn_"), stage=f"function:{name}"):
            try:
                return self._invoke(name, _merge_args(args, kwargs))
            except MDXAIError as e:
                logger.warning("AI function failed", extra={"function": name, "error": format_error(e)})
                return {"error": format_error(e)}
            except Exception as e:
                logger.exception("AI function crashed", extra={"function": name})
                return {"error": format_error(e)}

    async def ainvoke(self, name: str, args: dict[str, Any] | None = None, /, **kwargs: Any) -> FunctionResult:
        """Async variant of :meth:`invoke`; the round trip runs in a worker thread."""
        return await asyncio.to_thread(self.invoke, name, args, **kwargs)

    def load(self, name: str) -> Specification:
        """Resolve, lazily create and parse the spec file for ``name``."""
        path = resolve_function_path(self._settings.functions_dir, name)
        if not path.exists():
            ensure_function_file(
                path,
                default_function_text(
                    self._settings.default_model,
                    version=self._settings.generator_version,
                    generator=self._settings.generator_name,
                ),
            )
        return load_specification(name, path)

    def _invoke(self, name: str, args: dict[str, Any]) -> FunctionResult:
        spec = self.load(name)
        translation = translate_schema(spec.output_schema, name=name)

        payload = {**spec.static_fields, **args}
        prompt = json.dumps(payload, ensure_ascii=False, default=str)
        system_prompt = spec.system_prompt
        if spec.instructions:
            system_prompt = f"{system_prompt}\n\n{spec.instructions}"

        logger.info(
            "Invoking AI function",
            extra={"function": name, "model": spec.model, "shape": translation.shape.value},
        )
        value = self._backend.generate_structured(
            prompt,
            system_prompt,
            model=spec.model,
            output_shape=translation.shape,
            validator=translation.validator,
            max_tokens=self._settings.function_max_tokens,
        )
        return shape_result(translation.shape, translation.validator, value)


def _merge_args(args: Any, kwargs: dict[str, Any]) -> dict[str, Any]:
    if args is None:
        return dict(kwargs)
    if not isinstance(args, Mapping):
        raise ConfigurationError(f"Function arguments must be a mapping, got {type(args).__name__}")
    return {**args, **kwargs}


def shape_result(shape: OutputShape, validator: TypeAdapter[Any] | None, value: Any) -> FunctionResult:
    """Convert a validated backend value into the registry's result mapping."""

    if shape is OutputShape.FREEFORM or validator is None:
        return {"content": value if isinstance(value, str) else json.dumps(value, ensure_ascii=False)}

    data = validator.dump_python(value, mode="json", by_alias=True)
    if shape is OutputShape.ARRAY:
        return {"items": list(data)}
    if isinstance(data, dict):
        return dict(data)
    # Object-shaped schemas whose root is a scalar or an untyped value.
    return {"content": data}
