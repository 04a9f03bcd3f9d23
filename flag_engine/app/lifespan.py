"""Application lifespan management.

Startup Order:
1. Logging
2. Database (engine probe and optional schema creation)
3. Cache (Redis) - only when the redis evaluation backend is selected

Shutdown Order: reverse of startup.
"""

from __future__ import annotations

import logging
from contextlib import asynccontextmanager
from typing import TYPE_CHECKING

from flag_engine.core.settings import (
    get_app_settings,
    get_db_settings,
    get_flag_settings,
    get_logging_settings,
    get_redis_settings,
)
from flag_engine.infra.cache import start_cache, stop_cache
from flag_engine.infra.database import close_database, init_database
from flag_engine.infra.logging import setup_logging
from flag_engine.infra.logging import shutdown as shutdown_logging

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

logger = logging.getLogger(__name__)


async def _startup_database() -> None:
    db_settings = get_db_settings()
    if not db_settings.enabled:
        logger.warning("Database disabled; flag administration and evaluation will fail")
        return
    try:
        await init_database()
    except Exception as e:
        if db_settings.startup_require_db:
            logger.error(
                "Database unavailable at startup, aborting",
                extra={"error": str(e)},
            )
            raise
        logger.warning(
            "Database unavailable at startup, continuing degraded",
            extra={"error": str(e)},
        )


async def _startup_cache() -> bool:
    if get_flag_settings().cache_backend != "redis":
        logger.info("Using in-process evaluation cache")
        return False

    redis_settings = get_redis_settings()
    try:
        await start_cache()
    except Exception as e:
        if redis_settings.startup_require_cache:
            logger.error(
                "Redis unavailable at startup, aborting",
                extra={"error": str(e)},
            )
            raise
        logger.warning(
            "Redis unavailable at startup, evaluation will answer 503",
            extra={"error": str(e)},
        )
    return True


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Start and stop the service's collaborators.

    Args:
        app: FastAPI application instance.

    Yields:
        None during the application's lifetime.
    """
    setup_logging(get_logging_settings())
    app_settings = get_app_settings()
    logger.info(
        "Starting %s",
        app_settings.title,
        extra={
            "service": app_settings.service_name,
            "version": app_settings.version,
            "environment": app_settings.environment,
        },
    )

    await _startup_database()
    redis_started = await _startup_cache()

    try:
        yield
    finally:
        logger.info("Shutting down %s", app_settings.title)
        if redis_started:
            await stop_cache()
        await close_database()
        shutdown_logging()
