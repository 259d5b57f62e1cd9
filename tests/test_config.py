"""Tests for settings loading."""

from __future__ import annotations

from pathlib import Path

import pytest
from pydantic import ValidationError

from mdxai.config import Settings, load_settings, validate_backend_settings
from mdxai.errors import ConfigurationError

_ENV_VARS = (
    "OPENAI_API_KEY",
    "MDXAI_OPENAI_API_KEY",
    "AI_GATEWAY",
    "MDXAI_OPENAI_BASE_URL",
    "AI_MODEL",
    "MDXAI_DEFAULT_MODEL",
    "MDXAI_ENV_FILE",
    "MDXAI_DEFAULT_TYPE",
)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    for name in _ENV_VARS:
        monkeypatch.delenv(name, raising=False)
    monkeypatch.chdir(tmp_path)


def test_defaults() -> None:
    """It should fall back to documented defaults."""

    settings = Settings()

    assert settings.default_model == "gpt-4o-mini"
    assert settings.default_type == "Article"
    assert settings.functions_dir == Path("ai")
    assert settings.concurrency == 4


def test_original_variable_names_are_aliases(monkeypatch: pytest.MonkeyPatch) -> None:
    """It should accept OPENAI_API_KEY, AI_GATEWAY and AI_MODEL."""

    monkeypatch.setenv("OPENAI_API_KEY", "sk-test")
    monkeypatch.setenv("AI_GATEWAY", "https://gateway.example/v1")
    monkeypatch.setenv("AI_MODEL", "gpt-4o")

    settings = Settings()

    assert settings.openai_api_key == "sk-test"
    assert settings.openai_base_url == "https://gateway.example/v1"
    assert settings.default_model == "gpt-4o"


def test_prefixed_variables(monkeypatch: pytest.MonkeyPatch) -> None:
    """It should read MDXAI_-prefixed variables."""

    monkeypatch.setenv("MDXAI_DEFAULT_TYPE", "BlogPost")
    monkeypatch.setenv("MDXAI_CONCURRENCY", "8")

    settings = Settings()

    assert settings.default_type == "BlogPost"
    assert settings.concurrency == 8


def test_load_settings_reads_env_file(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """It should read the file named by MDXAI_ENV_FILE."""

    env_file = tmp_path / "custom.env"
    env_file.write_text("MDXAI_DEFAULT_TYPE=Recipe\nOPENAI_API_KEY=sk-file\n", encoding="utf-8")
    monkeypatch.setenv("MDXAI_ENV_FILE", str(env_file))

    settings = load_settings()

    assert settings.default_type == "Recipe"
    assert settings.openai_api_key == "sk-file"


def test_load_settings_reads_local_dotenv(tmp_path: Path) -> None:
    """It should pick up ./.env when no file is named."""

    (tmp_path / ".env").write_text("AI_MODEL=local-model\n", encoding="utf-8")

    assert load_settings().default_model == "local-model"


def test_validate_backend_settings() -> None:
    """It should require an API key or a gateway URL."""

    with pytest.raises(ConfigurationError):
        validate_backend_settings(Settings())

    validate_backend_settings(Settings(openai_api_key="sk"))
    validate_backend_settings(Settings(openai_base_url="https://gateway.example/v1"))


def test_log_level_is_normalized() -> None:
    """It should accept level names in any case and reject unknown ones."""

    assert Settings(log_level=" debug ").log_level == "DEBUG"

    with pytest.raises(ValidationError):
        Settings(log_level="chatty")


def test_load_settings_reports_invalid_values(monkeypatch: pytest.MonkeyPatch) -> None:
    """It should raise ConfigurationError naming the invalid field."""

    monkeypatch.setenv("MDXAI_LOG_LEVEL", "chatty")

    with pytest.raises(ConfigurationError, match="log_level"):
        load_settings()
