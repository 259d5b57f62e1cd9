"""Application configuration.

Configuration is loaded from environment variables. For local development, you can provide a
`.env` file and set `MDXAI_ENV_FILE` to point to it. The common variable names
`OPENAI_API_KEY`, `AI_GATEWAY` and `AI_MODEL` are accepted as aliases.
"""

from __future__ import annotations

import os
from pathlib import Path

from pydantic import AliasChoices, Field, ValidationError, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from mdxai.errors import ConfigurationError, describe_validation_error


class Settings(BaseSettings):
    """mdxai settings.

    All fields are environment-configurable. Prefix is `MDXAI_`.
    """

    model_config = SettingsConfigDict(
        env_prefix="MDXAI_",
        env_file=None,
        env_file_encoding="utf-8",
        extra="ignore",
        populate_by_name=True,
    )

    # Core
    log_level: str = Field(default="INFO")

    # LLM
    openai_api_key: str | None = Field(
        default=None,
        validation_alias=AliasChoices("MDXAI_OPENAI_API_KEY", "OPENAI_API_KEY", "openai_api_key"),
    )
    openai_base_url: str | None = Field(
        default=None,
        validation_alias=AliasChoices("MDXAI_OPENAI_BASE_URL", "AI_GATEWAY", "openai_base_url"),
    )
    default_model: str = Field(
        default="gpt-4o-mini",
        validation_alias=AliasChoices("MDXAI_DEFAULT_MODEL", "AI_MODEL", "default_model"),
    )
    openai_timeout_s: float = Field(default=120.0, gt=0.0)
    openai_max_retries: int = Field(default=2, ge=0, le=10)
    openai_retry_backoff_s: float = Field(default=1.0, ge=0.0, le=30.0)

    # Generation
    default_type: str = Field(default="Article")
    temperature: float = Field(default=0.7, ge=0.0, le=2.0)
    document_max_tokens: int = Field(default=2048, ge=1)
    outline_max_tokens: int = Field(default=1000, ge=1)
    function_max_tokens: int = Field(default=1000, ge=1)
    # Deadline for one streamed generation step; None disables it.
    generation_timeout_s: float | None = Field(default=300.0, gt=0.0)
    concurrency: int = Field(default=4, ge=1, le=64)

    # Linked data
    context_url: str = Field(default="https://schema.org")
    schema_url: str = Field(default="https://mdx.org.ai/schema.json")
    generator_name: str = Field(default="mdxai")
    generator_version: str = Field(default="1.0.0")

    # Function registry
    functions_dir: Path = Field(default=Path("ai"))

    @field_validator("log_level")
    @classmethod
    def _normalize_log_level(cls, v: str) -> str:
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"unknown log level: {v!r}")
        return level


def load_settings() -> Settings:
    """Load settings from env.

    Returns:
        Settings: Parsed settings.

    Raises:
        ConfigurationError: If a configured value is invalid.
    """

    env_file_override = os.getenv("MDXAI_ENV_FILE")
    default_env = Path.cwd() / ".env"
    try:
        if env_file_override:
            return Settings(_env_file=Path(env_file_override))
        if default_env.exists():
            return Settings(_env_file=default_env)
        return Settings()
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid settings: {describe_validation_error(exc)}") from exc


def validate_backend_settings(settings: Settings) -> None:
    """Ensure a backend can be reached with these settings.

    Raises:
        ConfigurationError: If neither an API key nor a gateway URL is configured.
    """

    if not settings.openai_api_key and not settings.openai_base_url:
        raise ConfigurationError(
            "No AI provider configuration found. "
            "Set OPENAI_API_KEY (or MDXAI_OPENAI_API_KEY) or AI_GATEWAY."
        )
