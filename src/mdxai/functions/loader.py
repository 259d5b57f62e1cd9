"""Loader for file-backed AI function specifications.

Each function ``name`` lives in ``<functions_dir>/<name>.mdx``: frontmatter holds ``model``, an
optional ``system`` prompt and output ``schema`` plus any static fields, and the body holds free
form instructions. Missing files are created from a default template on first use.
"""

from __future__ import annotations

import re
from pathlib import Path

from mdxai.errors import ConfigurationError, GenerationError, ParsingError
from mdxai.logging import get_logger
from mdxai.mdx.frontmatter import parse, stringify
from mdxai.models.document import BodyNode, Document
from mdxai.models.specification import Specification
from mdxai.prompts.functions import (
    DEFAULT_FUNCTION_SYSTEM_PROMPT,
    FUNCTION_INSTRUCTIONS_PLACEHOLDER,
    default_function_metadata,
)

logger = get_logger(__name__)

# Maximum size for function spec files (10MB)
MAX_FUNCTION_FILE_SIZE = 10 * 1024 * 1024
FUNCTION_FILE_SUFFIX = ".mdx"

_HTML_COMMENT_RE = re.compile(r"<!--.*?-->", re.DOTALL)
_RESERVED_KEYS = frozenset({"model", "system", "schema"})


def _is_safe_path(path: Path, base_dir: Path) -> bool:
    """Check if a path is safely contained within base_dir."""
    try:
        path.resolve().relative_to(base_dir.resolve())
        return True
    except (ValueError, OSError, RuntimeError):
        return False


def resolve_function_path(functions_dir: Path, name: str) -> Path:
    """Map a function name to its spec file.

    Raises:
        ConfigurationError: If the name is empty or escapes ``functions_dir``.
    """

    if not name or not name.strip():
        raise ConfigurationError("Function name must not be empty")
    path = functions_dir / f"{name}{FUNCTION_FILE_SUFFIX}"
    if not _is_safe_path(path, functions_dir):
        raise ConfigurationError(f"Function name {name!r} resolves outside {functions_dir}")
    return path


def default_function_text(model: str, *, version: str = "1.0.0", generator: str = "mdxai") -> str:
    """Render the template written for a function seen for the first time."""

    document = Document(
        metadata=default_function_metadata(model, version=version, generator=generator),
        body=[BodyNode(kind="text", content=FUNCTION_INSTRUCTIONS_PLACEHOLDER)],
    )
    return stringify(document)


def ensure_function_file(path: Path, template: str) -> bool:
    """Create ``path`` from ``template`` unless it already exists.

    Creation is exclusive, so a file written concurrently by another caller is never
    overwritten.

    Returns:
        True if this call created the file.
    """

    path.parent.mkdir(parents=True, exist_ok=True)
    try:
        with path.open("x", encoding="utf-8") as fh:
            fh.write(template)
    except FileExistsError:
        return False
    logger.info("Created function spec from template", extra={"path": str(path)})
    return True


def strip_html_comments(text: str) -> str:
    return _HTML_COMMENT_RE.sub("", text).strip()


def load_specification(name: str, path: Path) -> Specification:
    """Read and decode a function spec file.

    Raises:
        GenerationError: If the file cannot be read or carries no decodable metadata block.
        ConfigurationError: If the metadata has no ``model``.
    """

    try:
        if path.stat().st_size > MAX_FUNCTION_FILE_SIZE:
            raise GenerationError(f"Function spec {path} exceeds {MAX_FUNCTION_FILE_SIZE} bytes")
        text = path.read_text(encoding="utf-8")
    except (OSError, UnicodeDecodeError) as exc:
        raise GenerationError(f"Failed to read function spec {path}: {exc}") from exc

    try:
        document = parse(text)
    except ParsingError as exc:
        raise GenerationError(f"Failed to parse function spec {path}: {exc}") from exc

    metadata = document.metadata
    model = metadata.get("model")
    if not model or not isinstance(model, str):
        raise ConfigurationError(f"Function spec {path} does not declare a model")

    schema = metadata.get("schema")
    if schema is not None and not isinstance(schema, dict):
        raise GenerationError(f"Function spec {path} has a non-mapping schema")

    body = "\n\n".join(node.content for node in document.body)
    return Specification(
        name=name,
        model=model,
        system_prompt=str(metadata.get("system") or DEFAULT_FUNCTION_SYSTEM_PROMPT),
        output_schema=schema,
        instructions=strip_html_comments(body),
        static_fields={k: v for k, v in metadata.items() if k not in _RESERVED_KEYS},
        path=path,
    )
