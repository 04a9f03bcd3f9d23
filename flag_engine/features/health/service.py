"""Dependency probes backing the health endpoints."""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING

from flag_engine.core.dependencies.cache import get_evaluation_cache
from flag_engine.core.settings import get_app_settings
from flag_engine.infra.database import ping_database

from .schemas import DependencyCheck, HealthResponse, HealthStatus

if TYPE_CHECKING:
    from collections.abc import Awaitable, Callable

logger = logging.getLogger(__name__)


async def _ping_cache() -> None:
    cache = get_evaluation_cache()
    if not await cache.ping():
        raise ConnectionError("Cache did not answer PING")


class HealthService:
    """Runs dependency probes and aggregates their results."""

    def __init__(
        self,
        database_probe: Callable[[], Awaitable[None]] | None = None,
        cache_probe: Callable[[], Awaitable[None]] | None = None,
    ) -> None:
        self._probes: dict[str, Callable[[], Awaitable[None]]] = {
            "database": database_probe or ping_database,
            "cache": cache_probe or _ping_cache,
        }

    async def check(self, name: str) -> DependencyCheck:
        """Probe one dependency, timing it and capturing any failure."""
        started = time.perf_counter()
        try:
            await self._probes[name]()
        except Exception as e:
            duration_ms = (time.perf_counter() - started) * 1000
            logger.warning(
                "Health check failed for %s",
                name,
                extra={"dependency": name, "error": str(e)},
            )
            return DependencyCheck(
                name=name,
                status=HealthStatus.UNHEALTHY,
                duration_ms=round(duration_ms, 2),
                error=str(e) or type(e).__name__,
            )
        duration_ms = (time.perf_counter() - started) * 1000
        return DependencyCheck(
            name=name, status=HealthStatus.HEALTHY, duration_ms=round(duration_ms, 2)
        )

    async def check_all(self) -> HealthResponse:
        """Probe every dependency in order."""
        checks = [await self.check(name) for name in self._probes]
        overall = (
            HealthStatus.HEALTHY
            if all(c.status is HealthStatus.HEALTHY for c in checks)
            else HealthStatus.UNHEALTHY
        )
        settings = get_app_settings()
        return HealthResponse(
            status=overall,
            service=settings.service_name,
            version=settings.version,
            checks=checks,
        )


def get_health_service() -> HealthService:
    """FastAPI dependency returning a health service with the default probes."""
    return HealthService()
