"""Database engine, sessions and startup helpers."""

from __future__ import annotations

from .session import (
    AsyncSessionLocal,
    close_database,
    create_schema,
    engine,
    get_async_session,
    init_database,
    ping_database,
)

__all__ = [
    "AsyncSessionLocal",
    "close_database",
    "create_schema",
    "engine",
    "get_async_session",
    "init_database",
    "ping_database",
]
