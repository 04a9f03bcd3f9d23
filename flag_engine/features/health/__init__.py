"""Service liveness and dependency health."""

from .router import router
from .schemas import DependencyCheck, HealthResponse, HealthStatus, StatusResponse
from .service import HealthService, get_health_service

__all__ = [
    "DependencyCheck",
    "HealthResponse",
    "HealthService",
    "HealthStatus",
    "StatusResponse",
    "get_health_service",
    "router",
]
