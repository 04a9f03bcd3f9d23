"""Prometheus metrics with exemplar support."""

from __future__ import annotations

from prometheus_client import CollectorRegistry, Counter, Histogram

# Custom registry so /metrics only exposes what this service defines
REGISTRY = CollectorRegistry()

# Covers operation times from 1ms to 10s
DEFAULT_LATENCY_BUCKETS = (
    0.001,
    0.005,
    0.01,
    0.025,
    0.05,
    0.1,
    0.25,
    0.5,
    1.0,
    2.5,
    5.0,
    10.0,
)

# Cache metrics
cache_hits_total = Counter(
    "cache_hits_total",
    "Total number of cache hits",
    ["cache_name"],
    registry=REGISTRY,
)

cache_misses_total = Counter(
    "cache_misses_total",
    "Total number of cache misses",
    ["cache_name"],
    registry=REGISTRY,
)

cache_operation_duration_seconds = Histogram(
    "cache_operation_duration_seconds",
    "Cache operation duration in seconds",
    ["operation", "cache_name"],
    buckets=DEFAULT_LATENCY_BUCKETS,
    registry=REGISTRY,
)

# Feature flag metrics
feature_flag_evaluations_total = Counter(
    "feature_flag_evaluations_total",
    "Feature flag evaluations by decision and where the decision came from",
    ["result", "source"],
    registry=REGISTRY,
)

feature_flag_cache_invalidations_total = Counter(
    "feature_flag_cache_invalidations_total",
    "Evaluation cache entries deleted after a flag mutation",
    ["scope"],
    registry=REGISTRY,
)
