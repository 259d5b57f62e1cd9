"""Tests for the typer CLI."""

from __future__ import annotations

import json
from pathlib import Path

import pytest
from conftest import FakeBackend
from typer.testing import CliRunner

from mdxai import cli
from mdxai.mdx.frontmatter import parse

runner = CliRunner()


@pytest.fixture
def backend(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> FakeBackend:
    fake = FakeBackend()
    monkeypatch.chdir(tmp_path)
    monkeypatch.delenv("MDXAI_ENV_FILE", raising=False)
    monkeypatch.setenv("MDXAI_FUNCTIONS_DIR", str(tmp_path / "ai"))
    # Keep log records out of the captured output so stdout stays parseable.
    monkeypatch.setenv("MDXAI_LOG_LEVEL", "WARNING")
    monkeypatch.setattr(cli, "create_backend", lambda settings: fake)
    return fake


def test_generate_prints_document(backend: FakeBackend) -> None:
    """It should print the synthesized document."""

    backend.texts = ["# Testing\n\nBody text"]

    result = runner.invoke(cli.app, ["generate", "testing", "--type", "BlogPost", "-c", "Button"])

    assert result.exit_code == 0, result.output
    assert "$type: BlogPost" in result.output
    assert "# Testing" in result.output
    assert "Button" in backend.calls[0]["prompt"]


def test_generate_recursive_writes_output_file(backend: FakeBackend, tmp_path: Path) -> None:
    """It should run the outline flow and write the document to --output."""

    backend.texts = ['[{"title": "Intro", "description": "Start"}]', "# Guide\n\nText"]
    target = tmp_path / "out" / "guide.mdx"

    result = runner.invoke(cli.app, ["generate", "a guide", "--recursive", "--depth", "2", "-o", str(target)])

    assert result.exit_code == 0, result.output
    assert len(backend.calls) == 2
    assert parse(target.read_text(encoding="utf-8")).title == "Guide"


def test_generate_failure_exits_non_zero(backend: FakeBackend) -> None:
    """It should print the error kind and exit 1."""

    backend.texts = ["not json"]

    result = runner.invoke(cli.app, ["generate", "x", "--recursive"])

    assert result.exit_code == 1
    assert "ParsingError:" in result.output


def test_missing_credentials(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """It should report a ConfigurationError when no provider is configured."""

    monkeypatch.chdir(tmp_path)
    for name in ("OPENAI_API_KEY", "MDXAI_OPENAI_API_KEY", "AI_GATEWAY", "MDXAI_OPENAI_BASE_URL", "MDXAI_ENV_FILE"):
        monkeypatch.delenv(name, raising=False)

    result = runner.invoke(cli.app, ["generate", "x"])

    assert result.exit_code == 1
    assert "ConfigurationError:" in result.output


def test_call_prints_json(backend: FakeBackend, tmp_path: Path) -> None:
    """It should invoke the named function with parsed --arg values."""

    backend.structured = [{"content": "short"}]

    result = runner.invoke(cli.app, ["call", "summarize", "--arg", "text=long text", "--arg", "limit=3"])

    assert result.exit_code == 0, result.output
    assert json.loads(result.output) == {"content": "short"}
    payload = json.loads(backend.calls[0]["prompt"])
    assert payload["text"] == "long text"
    assert payload["limit"] == 3
    assert (tmp_path / "ai" / "summarize.mdx").exists()


def test_call_error_exits_non_zero(backend: FakeBackend, tmp_path: Path) -> None:
    """It should exit 1 when the function result carries an error."""

    (tmp_path / "ai").mkdir()
    (tmp_path / "ai" / "broken.mdx").write_text("no frontmatter", encoding="utf-8")

    result = runner.invoke(cli.app, ["call", "broken"])

    assert result.exit_code == 1
    assert "GenerationError:" in result.output


def test_call_rejects_malformed_arg(backend: FakeBackend) -> None:
    """It should refuse --arg values without '='."""

    result = runner.invoke(cli.app, ["call", "summarize", "--arg", "oops"])

    assert result.exit_code != 0
    assert backend.calls == []


def test_rewrite_updates_matching_files(backend: FakeBackend, tmp_path: Path) -> None:
    """It should rewrite every matching file and keep each file's type."""

    docs = tmp_path / "docs"
    (docs / "nested").mkdir(parents=True)
    (docs / "a.mdx").write_text("---\n$type: BlogPost\n---\n\n# Old A\n", encoding="utf-8")
    (docs / "nested" / "b.mdx").write_text("---\n$type: Recipe\n---\n\n# Old B\n", encoding="utf-8")
    (docs / "skip.md").write_text("# Not matched\n", encoding="utf-8")
    backend.responder = lambda prompt: "# New A" if "Old A" in prompt else "# New B"

    result = runner.invoke(cli.app, ["rewrite", "docs/**/*.mdx", "make", "it", "shorter"])

    assert result.exit_code == 0, result.output
    a = parse((docs / "a.mdx").read_text(encoding="utf-8"))
    b = parse((docs / "nested" / "b.mdx").read_text(encoding="utf-8"))
    assert (a.type, a.title) == ("BlogPost", "New A")
    assert (b.type, b.title) == ("Recipe", "New B")
    assert (docs / "skip.md").read_text(encoding="utf-8") == "# Not matched\n"
    assert all("make it shorter" in call["prompt"] for call in backend.calls)


def test_rewrite_without_matches_fails(backend: FakeBackend) -> None:
    """It should exit 1 when the pattern matches nothing."""

    result = runner.invoke(cli.app, ["rewrite", "nothing/*.mdx", "x"])

    assert result.exit_code == 1
    assert "ConfigurationError:" in result.output


def test_empty_prompt_is_reported_without_traceback(backend: FakeBackend) -> None:
    """It should report an invalid request as a ConfigurationError line."""

    result = runner.invoke(cli.app, ["generate", ""])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "ConfigurationError: Invalid generation request: prompt:" in result.output
    assert backend.calls == []


def test_invalid_log_level_is_reported_without_traceback(
    backend: FakeBackend, monkeypatch: pytest.MonkeyPatch
) -> None:
    """It should report an invalid setting as a ConfigurationError line."""

    monkeypatch.setenv("MDXAI_LOG_LEVEL", "chatty")

    result = runner.invoke(cli.app, ["generate", "x"])

    assert result.exit_code == 1
    assert isinstance(result.exception, SystemExit)
    assert "ConfigurationError: Invalid settings: log_level:" in result.output
