"""Evaluation cache backends."""

from __future__ import annotations

from flag_engine.infra.cache.base import EvaluationCache
from flag_engine.infra.cache.memory import InMemoryCache, get_memory_cache
from flag_engine.infra.cache.redis import (
    RedisCache,
    get_cache_instance,
    start_cache,
    stop_cache,
)

__all__ = [
    "EvaluationCache",
    "InMemoryCache",
    "RedisCache",
    "get_cache_instance",
    "get_memory_cache",
    "start_cache",
    "stop_cache",
]
