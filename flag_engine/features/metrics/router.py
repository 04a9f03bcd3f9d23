"""Prometheus metrics endpoint.

Endpoints:
    GET /metrics - Prometheus scrape endpoint

Metrics Exposed:
    Cache Metrics:
        - cache_hits_total / cache_misses_total - Hit ratio per backend
        - cache_operation_duration_seconds - Backend operation latency

    Evaluation Metrics:
        - feature_flag_evaluations_total - Decisions by result and source
        - feature_flag_cache_invalidations_total - Deleted cache keys by scope

Example Prometheus Configuration:
    ```yaml
    scrape_configs:
      - job_name: 'feature-flag-engine'
        static_configs:
          - targets: ['localhost:8000']
        metrics_path: '/metrics'
    ```
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from flag_engine.infra.metrics.prometheus import REGISTRY

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    """Expose the service registry in Prometheus text format."""
    data = generate_latest(REGISTRY)
    return Response(
        content=data,
        media_type=CONTENT_TYPE_LATEST,
        headers={"Cache-Control": "no-cache, no-store, must-revalidate"},
    )
