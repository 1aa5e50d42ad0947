"""Configuration loading for the result collector.

This module provides centralized configuration management:
- Load settings from environment variables and .env files
- Validate configuration using pydantic
- Provide typed access to all settings
"""

from typing import Any, Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Collector configuration loaded from environment.

    Every option can be set through a ``RESULT_COLLECTOR_``-prefixed
    environment variable, e.g. ``RESULT_COLLECTOR_PATH``.
    """

    model_config = SettingsConfigDict(
        env_prefix="RESULT_COLLECTOR_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    enabled: bool = Field(
        default=False,
        description="Collect results when running under a tool integration",
    )
    path: str = Field(
        default="report.json",
        description="Destination file path for the persisted report",
    )
    browser_id: str = Field(
        default="",
        description="Second identity component for tools that have no browser notion",
    )

    # Logging configuration
    log_level: Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"] = Field(
        default="INFO",
        description="Log level",
    )
    log_format: Literal["json", "text"] = Field(
        default="text",
        description="Log format",
    )

    @field_validator("path")
    @classmethod
    def validate_path(cls, v: str) -> str:
        """Ensure the report path is not blank."""
        if not v.strip():
            raise ValueError("path must be a non-empty string")
        return v


def load_settings(env_file: str | None = None, **overrides: Any) -> Settings:
    """Load collector settings from environment.

    Args:
        env_file: Optional path to .env file. If not provided,
                 uses the default .env in the current directory.
        **overrides: Explicit values that take precedence over the
                 environment (e.g. ``path`` from a command-line flag).

    Returns:
        Validated Settings instance.

    Raises:
        ValidationError: If settings validation fails.
    """
    if env_file:
        return Settings(_env_file=env_file, **overrides)  # type: ignore[call-arg]
    return Settings(**overrides)


__all__ = ["Settings", "load_settings"]
