"""Pytest configuration and shared fixtures.

Organization:
    - Environment: settings that keep tests off external infrastructure
    - Database Fixtures: in-memory SQLite engine and session
    - Cache Fixtures: in-memory evaluation cache and a Redis client mock
    - Application Fixtures: FastAPI app with dependency overrides and HTTP client
    - Data Fixtures: helpers for seeding flags
"""

from __future__ import annotations

import os
from collections.abc import AsyncGenerator, Awaitable, Callable
from typing import TYPE_CHECKING
from unittest.mock import AsyncMock

import pytest
from httpx import ASGITransport, AsyncClient
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker, create_async_engine
from sqlalchemy.pool import StaticPool

# Ensure tests run without external infrastructure. Must run before any
# flag_engine import because settings are read at import time.
os.environ.setdefault("DATABASE_URL", "sqlite+aiosqlite:///:memory:")
os.environ.setdefault("FLAGS_CACHE_BACKEND", "memory")
os.environ.setdefault("REDIS_RETRY_DELAY", "0.01")
os.environ.setdefault("REDIS_RETRY_TIMEOUT", "0.5")
os.environ.setdefault("LOG_CONSOLE_ENABLED", "false")

from flag_engine.core.database import Base  # noqa: E402
from flag_engine.features.featureflags.models import FeatureFlag, FeatureOverride  # noqa: E402
from flag_engine.features.featureflags.resolver import OverrideKind  # noqa: E402
from flag_engine.infra.cache import InMemoryCache  # noqa: E402

if TYPE_CHECKING:
    from fastapi import FastAPI
    from sqlalchemy.ext.asyncio import AsyncEngine


# ============================================================================
# Database Fixtures
# ============================================================================


@pytest.fixture
async def db_engine() -> AsyncGenerator[AsyncEngine]:
    """Create async SQLAlchemy engine with in-memory SQLite.

    Yields:
        Async SQLAlchemy engine connected to in-memory SQLite.
    """
    engine = create_async_engine(
        "sqlite+aiosqlite:///:memory:",
        echo=False,
        poolclass=StaticPool,
    )

    try:
        yield engine
    finally:
        await engine.dispose()


@pytest.fixture
def session_factory(db_engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
    """Session factory bound to the test engine, configured like production."""
    return async_sessionmaker(
        db_engine,
        class_=AsyncSession,
        expire_on_commit=False,
        autoflush=False,
    )


@pytest.fixture
async def db_session(
    db_engine: AsyncEngine,
    session_factory: async_sessionmaker[AsyncSession],
) -> AsyncGenerator[AsyncSession]:
    """Create async database session with automatic table creation and cleanup.

    Yields:
        Async database session for testing.
    """
    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.create_all)

    async with session_factory() as session:
        try:
            yield session
        finally:
            await session.rollback()

    async with db_engine.begin() as conn:
        await conn.run_sync(Base.metadata.drop_all)


# ============================================================================
# Cache Fixtures
# ============================================================================


@pytest.fixture
def memory_cache() -> InMemoryCache:
    """Fresh in-memory evaluation cache per test."""
    return InMemoryCache()


@pytest.fixture
def mock_redis_client() -> AsyncMock:
    """AsyncMock Redis client backed by a dict, storing raw strings like Redis.

    Example:
        async def test_cache(mock_redis_client):
            await mock_redis_client.set("key", "true")
            assert await mock_redis_client.get("key") == "true"
    """
    mock_client = AsyncMock()
    storage: dict[str, str] = {}

    async def mock_get(key: str):
        return storage.get(key)

    async def mock_set(key: str, value, ex=None):
        storage[key] = value
        return True

    async def mock_delete(*keys: str):
        return sum(1 for key in keys if storage.pop(key, None) is not None)

    mock_client.get = AsyncMock(side_effect=mock_get)
    mock_client.set = AsyncMock(side_effect=mock_set)
    mock_client.delete = AsyncMock(side_effect=mock_delete)
    mock_client.ping = AsyncMock(return_value=True)
    mock_client.storage = storage
    return mock_client


# ============================================================================
# Application Fixtures
# ============================================================================


@pytest.fixture
async def app(
    db_session: AsyncSession,
    session_factory: async_sessionmaker[AsyncSession],
    memory_cache: InMemoryCache,
) -> FastAPI:
    """FastAPI application wired to the test database and cache.

    Each request gets its own session from the test engine, so commits made
    through the API are visible to ``db_session`` and vice versa.
    """
    from flag_engine.app.main import create_app
    from flag_engine.core.dependencies.cache import get_evaluation_cache
    from flag_engine.core.dependencies.database import get_db_session

    application = create_app()

    async def override_db_session() -> AsyncGenerator[AsyncSession]:
        async with session_factory() as session:
            yield session

    application.dependency_overrides[get_db_session] = override_db_session
    application.dependency_overrides[get_evaluation_cache] = lambda: memory_cache
    return application


@pytest.fixture
async def client(app: FastAPI) -> AsyncGenerator[AsyncClient]:
    """Async HTTP client for the test app.

    Unhandled exceptions are returned as 500 responses instead of being
    re-raised into the test.
    """
    transport = ASGITransport(app=app, raise_app_exceptions=False)
    async with AsyncClient(transport=transport, base_url="http://test") as ac:
        yield ac


# ============================================================================
# Data Fixtures
# ============================================================================


@pytest.fixture
def make_flag(
    db_session: AsyncSession,
) -> Callable[..., Awaitable[FeatureFlag]]:
    """Factory persisting a flag with optional ``(kind, target_id, is_enabled)`` overrides.

    Example:
        flag = await make_flag("new_dashboard", False, [(OverrideKind.REGION, "IN", True)])
    """

    async def _make(
        key: str,
        is_enabled: bool = False,
        overrides: list[tuple[OverrideKind, str, bool]] | None = None,
        description: str | None = None,
    ) -> FeatureFlag:
        flag = FeatureFlag(
            key=key,
            is_enabled=is_enabled,
            description=description,
            overrides=[
                FeatureOverride(override_type=str(kind), target_id=target, is_enabled=value)
                for kind, target, value in overrides or []
            ],
        )
        db_session.add(flag)
        await db_session.commit()
        return flag

    return _make
