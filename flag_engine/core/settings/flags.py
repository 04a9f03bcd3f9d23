"""Feature flag evaluation settings."""

from __future__ import annotations

from typing import Literal

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict

from .yaml_sources import customise_sources

CacheBackend = Literal["redis", "memory"]


class FeatureFlagSettings(BaseSettings):
    """Evaluation cache behaviour.

    Environment variables use FLAGS_ prefix.
    Example: FLAGS_CACHE_BACKEND=memory, FLAGS_EVALUATION_TTL=300
    """

    cache_backend: CacheBackend = Field(
        default="redis",
        description="Where evaluation decisions are memoized (redis|memory)",
    )
    evaluation_ttl: int = Field(
        default=300,
        ge=1,
        le=86_400,
        description="Lifetime of a cached evaluation decision in seconds (5 minutes)",
    )

    model_config = SettingsConfigDict(
        env_prefix="FLAGS_",
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
        """Customize settings source precedence: init > env > yaml > dotenv > secrets."""
        return customise_sources(
            settings_cls, "flags", init_settings, env_settings, dotenv_settings, file_secret_settings
        )
