"""Modular Pydantic Settings v2 configuration.

One settings class per domain (app, db, redis, logging, flags), each frozen
and loaded through an LRU-cached getter.

Configuration precedence (highest to lowest):
    1. init kwargs (testing/overrides)
    2. Environment variables
    3. YAML/conf.d files (optional)
    4. .env file
    5. secrets_dir
"""

from __future__ import annotations

from .app import AppSettings
from .database import DatabaseSettings
from .flags import FeatureFlagSettings
from .loader import (
    clear_all_caches,
    get_app_settings,
    get_db_settings,
    get_flag_settings,
    get_logging_settings,
    get_redis_settings,
)
from .logs import LoggingSettings
from .redis import RedisSettings

__all__ = [
    "AppSettings",
    "DatabaseSettings",
    "FeatureFlagSettings",
    "LoggingSettings",
    "RedisSettings",
    "clear_all_caches",
    "get_app_settings",
    "get_db_settings",
    "get_flag_settings",
    "get_logging_settings",
    "get_redis_settings",
]
