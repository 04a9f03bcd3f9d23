"""Process-local evaluation cache.

Used when ``FLAGS_CACHE_BACKEND=memory`` (single-instance deployments,
local development) and throughout the test suite.
"""

from __future__ import annotations

import asyncio
import logging
import time
from dataclasses import dataclass
from typing import Any

from flag_engine.infra.metrics.prometheus import (
    cache_hits_total,
    cache_misses_total,
)

logger = logging.getLogger(__name__)

CACHE_NAME = "memory"


@dataclass(slots=True)
class _Entry:
    value: Any
    expires_at: float | None


class InMemoryCache:
    """Dictionary-backed EvaluationCache with per-entry TTL.

    Expiry uses ``time.monotonic`` so wall-clock changes never resurrect or
    drop entries. All access is serialized by an ``asyncio.Lock``.
    """

    def __init__(self) -> None:
        self._entries: dict[str, _Entry] = {}
        self._lock = asyncio.Lock()

    async def get(self, key: str) -> Any | None:
        async with self._lock:
            entry = self._entries.get(key)
            if entry is not None and entry.expires_at is not None and entry.expires_at <= time.monotonic():
                del self._entries[key]
                entry = None

        if entry is None:
            cache_misses_total.labels(cache_name=CACHE_NAME).inc()
            return None
        cache_hits_total.labels(cache_name=CACHE_NAME).inc()
        return entry.value

    async def set(self, key: str, value: Any, ttl: int | None = None) -> bool:
        expires_at = time.monotonic() + ttl if ttl else None
        async with self._lock:
            self._entries[key] = _Entry(value=value, expires_at=expires_at)
        return True

    async def delete(self, key: str) -> bool:
        async with self._lock:
            return self._entries.pop(key, None) is not None

    async def ping(self) -> bool:
        return True

    async def clear(self) -> None:
        """Drop every entry."""
        async with self._lock:
            self._entries.clear()
        logger.debug("In-memory evaluation cache cleared")

    def __len__(self) -> int:
        return len(self._entries)


_memory_cache: InMemoryCache | None = None


def get_memory_cache() -> InMemoryCache:
    """Process-wide InMemoryCache, created on first use."""
    global _memory_cache
    if _memory_cache is None:
        _memory_cache = InMemoryCache()
    return _memory_cache
