"""CLI entrypoints for mdxai."""

from __future__ import annotations

import asyncio
import json
import sys
from pathlib import Path
from typing import Any

import typer

from mdxai.config import Settings, load_settings
from mdxai.errors import GenerationTimeoutError, MDXAIError, format_error
from mdxai.events import GenerationEvent
from mdxai.functions.registry import FunctionRegistry
from mdxai.generation.batch import rewrite_files
from mdxai.generation.generator import MDXGenerator
from mdxai.llm.client import LLMClient
from mdxai.llm.protocol import Backend
from mdxai.logging import configure_logging, get_logger

app = typer.Typer(add_completion=False, help="Generate MDX documents with linked-data frontmatter")
logger = get_logger(__name__)


def create_backend(settings: Settings) -> Backend:
    """Build the backend used by every command."""

    return LLMClient(settings)


def _setup() -> tuple[Settings, Backend]:
    settings = load_settings()
    configure_logging(settings.log_level)
    return settings, create_backend(settings)


def _fail(error: BaseException) -> typer.Exit:
    typer.echo(format_error(error), err=True)
    return typer.Exit(code=1)


def _print_event(event: GenerationEvent) -> None:
    if event.message:
        typer.echo(f"[{event.stage.value}] {event.message}", err=True)


def _write_output(content: str, output: Path | None) -> None:
    if output is None:
        typer.echo(content, nl=False)
        return
    output.parent.mkdir(parents=True, exist_ok=True)
    output.write_text(content, encoding="utf-8")
    typer.echo(str(output), err=True)


def _parse_arg(raw: str) -> tuple[str, Any]:
    key, sep, value = raw.partition("=")
    if not sep or not key.strip():
        raise typer.BadParameter(f"Expected key=value, got {raw!r}", param_hint="--arg")
    try:
        return key.strip(), json.loads(value)
    except json.JSONDecodeError:
        return key.strip(), value


@app.command()
def generate(
    prompt: str = typer.Argument(..., help="What the document should be about"),
    type: str | None = typer.Option(None, "--type", "-t", help="Content type, e.g. Article or BlogPost"),  # noqa: A002
    model: str | None = typer.Option(None, "--model", "-m", help="Model identifier (overrides AI_MODEL)"),
    recursive: bool = typer.Option(False, "--recursive", help="Generate an outline first, then expand it"),
    depth: int = typer.Option(1, "--depth", min=0, help="Outline depth used with --recursive"),
    component: list[str] | None = typer.Option(None, "--component", "-c", help="UI component to use"),
    output: Path | None = typer.Option(None, "--output", "-o", help="Write the document to this file"),
    stream: bool = typer.Option(False, "--stream", help="Show generated text on stderr as it arrives"),
) -> None:
    """Generate one MDX document and print it (or write it with --output)."""

    try:
        settings, backend = _setup()
        generator = MDXGenerator(settings, backend)
        request = generator.build_request(
            prompt,
            type=type,
            model=model,
            components=component or (),
            recursive=recursive,
            depth=depth,
        )
        on_chunk = (lambda chunk: sys.stderr.write(chunk)) if stream else None
        result = generator.generate(request, on_chunk=on_chunk, on_event=_print_event)
    except GenerationTimeoutError as e:
        if e.result is not None:
            _write_output(e.result.content, output)
        raise _fail(e) from e
    except MDXAIError as e:
        raise _fail(e) from e

    typer.echo(result.progress_message.rstrip("\n"), err=True)
    _write_output(result.content, output)


@app.command()
def rewrite(
    pattern: str = typer.Argument(..., help="Glob of MDX files to rewrite, e.g. 'content/**/*.mdx'"),
    instructions: list[str] = typer.Argument(..., help="What to change"),
    type: str | None = typer.Option(None, "--type", "-t", help="Content type override"),  # noqa: A002
    model: str | None = typer.Option(None, "--model", "-m", help="Model identifier"),
    concurrency: int | None = typer.Option(None, "--concurrency", min=1, help="Files rewritten at once"),
) -> None:
    """Rewrite every file matching PATTERN according to INSTRUCTIONS."""

    try:
        settings, backend = _setup()
        generator = MDXGenerator(settings, backend)
        results = asyncio.run(
            rewrite_files(
                generator,
                pattern,
                " ".join(instructions),
                type=type,
                model=model,
                concurrency=concurrency or settings.concurrency,
            )
        )
    except MDXAIError as e:
        raise _fail(e) from e

    failed = 0
    for path, result in results.items():
        if isinstance(result, BaseException):
            failed += 1
            typer.echo(f"{path}: {format_error(result)}", err=True)
        else:
            typer.echo(str(path))
    if failed:
        raise typer.Exit(code=1)


@app.command()
def call(
    name: str = typer.Argument(..., help="AI function name; ai/<name>.mdx is created if missing"),
    arg: list[str] | None = typer.Option(None, "--arg", "-a", help="Argument as key=value (JSON values allowed)"),
) -> None:
    """Invoke a file-backed AI function and print its JSON result."""

    args = dict(_parse_arg(raw) for raw in arg or [])
    try:
        settings, backend = _setup()
    except MDXAIError as e:
        raise _fail(e) from e

    result = FunctionRegistry(settings, backend).invoke(name, args)
    typer.echo(json.dumps(result, indent=2, ensure_ascii=False))
    if "error" in result:
        typer.echo(result["error"], err=True)
        raise typer.Exit(code=1)


if __name__ == "__main__":
    app()
