"""Redis-backed evaluation cache.

Decisions are stored as JSON (``"true"``/``"false"``) with a per-key TTL.
Connection and timeout errors are retried with exponential backoff inside
each call; once the retry budget is spent the ``RetryError`` propagates to
the caller. Every command is timed into the cache Prometheus histogram with
the current trace id as exemplar.
"""

from __future__ import annotations

import json
import logging
import time
from contextlib import contextmanager
from typing import TYPE_CHECKING, Any, cast

from opentelemetry import trace
from redis.asyncio import ConnectionPool, Redis
from redis.exceptions import ConnectionError as RedisConnectionError
from redis.exceptions import TimeoutError as RedisTimeoutError

from flag_engine.core.settings import get_redis_settings
from flag_engine.infra.metrics.prometheus import (
    cache_hits_total,
    cache_misses_total,
    cache_operation_duration_seconds,
)
from flag_engine.utils.retry import retry

if TYPE_CHECKING:
    from collections.abc import Awaitable, Iterator

    from flag_engine.core.settings.redis import RedisSettings

logger = logging.getLogger(__name__)
redis_settings = get_redis_settings()

CACHE_NAME = "redis"

_redis_retry = retry(
    max_attempts=redis_settings.max_retries,
    initial_delay=redis_settings.retry_delay,
    max_delay=5.0,
    exceptions=(RedisConnectionError, RedisTimeoutError),
    stop_after_delay=redis_settings.retry_timeout,
)


def _exemplar() -> dict[str, str] | None:
    ctx = trace.get_current_span().get_span_context()
    return {"trace_id": format(ctx.trace_id, "032x")} if ctx.is_valid else None


@contextmanager
def _timed(operation: str, key: str) -> Iterator[None]:
    started = time.perf_counter()
    try:
        yield
    except Exception as e:
        logger.exception(
            "Redis %s failed",
            operation,
            extra={"key": key, "operation": operation, "error": str(e)},
        )
        raise
    finally:
        cache_operation_duration_seconds.labels(operation=operation, cache_name=CACHE_NAME).observe(
            time.perf_counter() - started, exemplar=_exemplar()
        )


class RedisCache:
    """EvaluationCache over a pooled ``redis.asyncio`` client.

    Example:
        ```python
        cache = RedisCache()
        await cache.connect()
        await cache.set("feature_eval:new_dashboard", True, ttl=300)
        assert await cache.get("feature_eval:new_dashboard") is True
        await cache.disconnect()
        ```
    """

    def __init__(self, settings: RedisSettings | None = None) -> None:
        self._settings = settings or redis_settings
        self._pool: ConnectionPool | None = None
        self._client: Redis | None = None

    async def connect(self) -> None:
        """Open the pool and verify the server answers PING.

        Raises:
            RedisConnectionError: If the server cannot be reached.
        """
        settings = self._settings
        logger.info(
            "Connecting to Redis",
            extra={"host": settings.host, "port": settings.port, "db": settings.db},
        )
        self._pool = ConnectionPool.from_url(settings.url, **settings.connection_pool_kwargs())
        self._client = Redis(connection_pool=self._pool)
        try:
            await cast("Awaitable[bool]", self._client.ping())
        except Exception:
            await self.disconnect()
            raise

    async def disconnect(self) -> None:
        """Close the client and its pool; safe to call twice."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None
        if self._pool is not None:
            await self._pool.aclose()
            self._pool = None

    @property
    def client(self) -> Redis:
        """The live client.

        Raises:
            RuntimeError: If ``connect()`` has not run.
        """
        if self._client is None:
            msg = "Redis client not connected. Call connect() first."
            raise RuntimeError(msg)
        return self._client

    @_redis_retry
    async def get(self, key: str) -> Any | None:
        """Return the decoded value, or None when the key is absent.

        Raises:
            RetryError: If Redis stays unreachable after retries.
        """
        with _timed("get", key):
            raw = await self.client.get(key)

        counter = cache_misses_total if raw is None else cache_hits_total
        counter.labels(cache_name=CACHE_NAME).inc(exemplar=_exemplar())
        if raw is None:
            return None
        try:
            return json.loads(raw)
        except (json.JSONDecodeError, TypeError):
            return raw

    @_redis_retry
    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        """Store ``value`` as JSON, expiring after ``ttl`` seconds when given."""
        with _timed("set", key):
            return bool(await self.client.set(key, json.dumps(value), ex=ttl))

    @_redis_retry
    async def delete(self, key: str) -> bool:
        """Remove ``key``; False when it was not there."""
        with _timed("delete", key):
            return bool(await self.client.delete(key))

    async def ping(self) -> bool:
        return bool(await cast("Awaitable[bool]", self.client.ping()))


_cache: RedisCache | None = None


async def start_cache() -> None:
    """Connect the process-wide cache; it is published only once PING succeeds."""
    global _cache
    cache = RedisCache()
    await cache.connect()
    _cache = cache
    logger.info("Redis cache started")


async def stop_cache() -> None:
    """Disconnect and forget the process-wide cache."""
    global _cache
    if _cache is None:
        return
    cache, _cache = _cache, None
    await cache.disconnect()
    logger.info("Redis cache stopped")


def get_cache_instance() -> RedisCache | None:
    """The started cache, or None when Redis is down or not selected."""
    return _cache
