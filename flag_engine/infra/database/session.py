"""Process-wide async engine for the flag store.

The engine is built at import time from ``DatabaseSettings``: PostgreSQL
via psycopg3 when configured, otherwise the local aiosqlite fallback.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine

from flag_engine.core.settings import get_app_settings, get_db_settings
from flag_engine.utils.retry import retry

if TYPE_CHECKING:
    from collections.abc import AsyncGenerator

logger = logging.getLogger(__name__)

db_settings = get_db_settings()

_engine_kwargs = db_settings.sqlalchemy_engine_kwargs()
_engine_kwargs["echo"] = _engine_kwargs["echo"] or get_app_settings().debug
engine = create_async_engine(db_settings.url, **_engine_kwargs)

# Objects stay usable after commit so responses can be built from them
AsyncSessionLocal = async_sessionmaker(engine, class_=AsyncSession, expire_on_commit=False, autoflush=False)


def _display_url() -> str:
    return make_url(db_settings.url).render_as_string(hide_password=True)


@asynccontextmanager
async def get_async_session() -> AsyncGenerator[AsyncSession]:
    """Open a session outside of a request.

    Example:
        ```python
        async with get_async_session() as session:
            flag = await get_feature_flag_repository().get_by_key(session, "new_dashboard")
        ```
    """
    async with AsyncSessionLocal() as session:
        yield session


async def ping_database() -> None:
    """Run ``SELECT 1``; raises if the database cannot be reached."""
    async with engine.connect() as conn:
        await conn.execute(text("SELECT 1"))


async def create_schema() -> None:
    """``metadata.create_all`` for the flag tables (existing tables are left alone)."""
    from flag_engine.core.database import Base
    from flag_engine.features.featureflags import models  # noqa: F401

    async with engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)
    logger.info("Database schema ensured", extra={"tables": sorted(Base.metadata.tables)})


@retry(
    max_attempts=db_settings.startup_retry_attempts,
    initial_delay=db_settings.startup_retry_delay,
    max_delay=30.0,
    stop_after_delay=db_settings.startup_retry_timeout,
)
async def init_database() -> None:
    """Wait for the database to answer, then create the schema if enabled.

    Raises:
        RetryError: If the database stays unreachable for the whole
            ``DB_STARTUP_RETRY_*`` budget.
    """
    logger.info("Connecting to database", extra={"url": _display_url()})
    await ping_database()
    if db_settings.create_schema:
        await create_schema()
    logger.info("Database ready", extra={"url": _display_url(), "driver": engine.dialect.driver})


async def close_database() -> None:
    """Dispose of pooled connections."""
    await engine.dispose()
    logger.info("Database connections closed")


__all__ = [
    "AsyncSessionLocal",
    "close_database",
    "create_schema",
    "engine",
    "get_async_session",
    "init_database",
    "ping_database",
]
