"""Prometheus metrics registry and collectors."""

from __future__ import annotations

from .prometheus import (
    REGISTRY,
    cache_hits_total,
    cache_misses_total,
    cache_operation_duration_seconds,
    feature_flag_cache_invalidations_total,
    feature_flag_evaluations_total,
)

__all__ = [
    "REGISTRY",
    "cache_hits_total",
    "cache_misses_total",
    "cache_operation_duration_seconds",
    "feature_flag_cache_invalidations_total",
    "feature_flag_evaluations_total",
]
