"""Rewrite existing MDX files in place, one file or a glob of files at a time."""

from __future__ import annotations

import asyncio
from pathlib import Path

import wcmatch.glob as wcglob

from mdxai.core.concurrency import gather_limited
from mdxai.errors import ConfigurationError, ParsingError
from mdxai.generation.generator import MDXGenerator
from mdxai.logging import get_logger
from mdxai.mdx.frontmatter import parse
from mdxai.models.generation import GenerationResult

logger = get_logger(__name__)

GLOB_FLAGS = wcglob.BRACE | wcglob.GLOBSTAR


def build_rewrite_prompt(existing: str, instructions: str) -> str:
    return (
        f"Rewrite the following MDX document. Apply these instructions: {instructions}\n"
        "Keep the content that the instructions do not ask to change.\n\n"
        f"{existing}"
    )


def rewrite_file(
    generator: MDXGenerator,
    path: Path,
    instructions: str,
    *,
    type: str | None = None,  # noqa: A002
    model: str | None = None,
) -> GenerationResult:
    """Rewrite one MDX file according to ``instructions`` and save it.

    The document type defaults to the file's own ``$type``. A file that does not exist yet is
    generated from the instructions alone.

    Args:
        generator: Generator used for the rewrite.
        path: File to rewrite (created when missing).
        instructions: What to change.
        type: Content type override.
        model: Model override.

    Returns:
        The generation result that was written to ``path``.
    """

    path = Path(path)
    if path.exists():
        existing = path.read_text(encoding="utf-8")
        try:
            current_type = parse(existing).type
        except ParsingError:
            current_type = None
        request = generator.build_request(
            build_rewrite_prompt(existing, instructions),
            type=type or current_type,
            model=model,
        )
    else:
        logger.info("File does not exist; generating it", extra={"path": str(path)})
        request = generator.build_request(instructions, type=type, model=model)

    result = generator.generate(request)
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(result.content, encoding="utf-8")
    logger.info("File rewritten", extra={"path": str(path), "type": request.type})
    return result


def expand_pattern(pattern: str, *, root: Path | None = None) -> list[Path]:
    """Expand a glob pattern (``**`` and ``{a,b}`` supported) into sorted file paths."""

    matches = wcglob.glob(pattern, flags=GLOB_FLAGS, root_dir=str(root) if root else None)
    base = root or Path()
    return sorted({base / m for m in matches if (base / m).is_file()})


async def rewrite_files(
    generator: MDXGenerator,
    pattern: str,
    instructions: str,
    *,
    type: str | None = None,  # noqa: A002
    model: str | None = None,
    concurrency: int = 4,
    root: Path | None = None,
) -> dict[Path, GenerationResult | BaseException]:
    """Rewrite every file matching ``pattern`` concurrently.

    Returns:
        Mapping of path to its result or the exception raised for it. One failing file does not
        stop the others.

    Raises:
        ConfigurationError: If the pattern matches no file.
    """

    paths = expand_pattern(pattern, root=root)
    if not paths:
        raise ConfigurationError(f"No files match pattern {pattern!r}")

    logger.info("Rewriting files", extra={"files": len(paths), "concurrency": concurrency})
    results = await gather_limited(
        [
            lambda p=p: asyncio.to_thread(rewrite_file, generator, p, instructions, type=type, model=model)
            for p in paths
        ],
        max_concurrent=concurrency,
    )
    return dict(zip(paths, results))
