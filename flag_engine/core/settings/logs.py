"""Logging settings."""

from __future__ import annotations

from pathlib import Path
from typing import Any, Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import customise_sources

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """How and where the service writes logs.

    Environment variables use the LOG_ prefix, e.g. ``LOG_LEVEL=DEBUG``,
    ``LOG_JSON_LOGS=false`` or ``LOG_FILE_PATH=logs/flags.jsonl``.
    """

    service_name: str = Field(
        default="feature-flag-engine", description="Static ``service`` field on JSON records"
    )
    level: LogLevel = Field(default="INFO", description="Root logger level")
    json_logs: bool = Field(default=True, description="JSON Lines instead of plain text")
    console_enabled: bool = Field(default=True, description="Write to stderr")

    file_path: Path | None = Field(default=None, description="Rotating log file; unset disables it")
    file_max_bytes: int = Field(
        default=10 * 1024 * 1024, ge=1024, le=1024**3, description="Rotate after this many bytes"
    )
    file_backup_count: int = Field(default=5, ge=0, le=100, description="Rotated files kept")

    include_context: bool = Field(
        default=True, description="Stamp request_id and other context fields on every record"
    )
    capture_warnings: bool = Field(default=True, description="Log Python warnings")

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @classmethod
    def settings_customise_sources(
        cls, settings_cls, init_settings, env_settings, dotenv_settings, file_secret_settings
    ):
        return customise_sources(
            settings_cls, "logging", init_settings, env_settings, dotenv_settings, file_secret_settings
        )

    def to_logging_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``configure_logging``."""
        return {
            "service_name": self.service_name,
            "log_level": self.level,
            "json_logs": self.json_logs,
            "console_enabled": self.console_enabled,
            "file_path": self.file_path,
            "file_max_bytes": self.file_max_bytes,
            "file_backup_count": self.file_backup_count,
            "include_context": self.include_context,
            "capture_warnings": self.capture_warnings,
        }
