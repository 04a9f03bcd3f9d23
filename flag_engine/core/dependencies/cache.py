"""Evaluation cache dependency for FastAPI route handlers."""

from __future__ import annotations

import logging

from flag_engine.core.exceptions import ServiceUnavailableException
from flag_engine.core.settings import get_flag_settings
from flag_engine.infra.cache import EvaluationCache, get_cache_instance, get_memory_cache

logger = logging.getLogger(__name__)


def get_evaluation_cache() -> EvaluationCache:
    """Return the configured evaluation cache backend.

    Raises:
        ServiceUnavailableException: If the Redis backend is configured but
            was not started (e.g., Redis was down at startup and the service
            is running degraded). Evaluation never bypasses the cache.
    """
    settings = get_flag_settings()
    if settings.cache_backend == "memory":
        return get_memory_cache()

    cache = get_cache_instance()
    if cache is None:
        logger.warning("Evaluation cache requested but Redis is not connected")
        raise ServiceUnavailableException(
            detail="Evaluation cache is not available",
            extra={"service": "redis"},
        )
    return cache
