"""Unit tests for the evaluation cache dependency."""

from __future__ import annotations

import pytest

from flag_engine.core.dependencies import cache as cache_dependency
from flag_engine.core.exceptions import ServiceUnavailableException
from flag_engine.core.settings import FeatureFlagSettings
from flag_engine.infra.cache import RedisCache, get_memory_cache


def _use_backend(monkeypatch, backend: str) -> None:
    settings = FeatureFlagSettings(_env_file=None, cache_backend=backend)
    monkeypatch.setattr(cache_dependency, "get_flag_settings", lambda: settings)


@pytest.mark.unit
class TestGetEvaluationCache:
    def test_memory_backend(self, monkeypatch) -> None:
        """The memory backend returns the process-wide InMemoryCache."""
        _use_backend(monkeypatch, "memory")

        assert cache_dependency.get_evaluation_cache() is get_memory_cache()

    def test_redis_backend_started(self, monkeypatch) -> None:
        """A started Redis cache is returned as-is."""
        _use_backend(monkeypatch, "redis")
        redis_cache = RedisCache()
        monkeypatch.setattr(cache_dependency, "get_cache_instance", lambda: redis_cache)

        assert cache_dependency.get_evaluation_cache() is redis_cache

    def test_redis_backend_not_started(self, monkeypatch) -> None:
        """A configured but unavailable Redis yields 503 instead of bypassing the cache."""
        _use_backend(monkeypatch, "redis")
        monkeypatch.setattr(cache_dependency, "get_cache_instance", lambda: None)

        with pytest.raises(ServiceUnavailableException) as exc_info:
            cache_dependency.get_evaluation_cache()

        assert exc_info.value.status_code == 503
        assert exc_info.value.extra == {"service": "redis"}
