"""Health check response schemas."""

from __future__ import annotations

from enum import StrEnum

from pydantic import BaseModel, ConfigDict, Field


class HealthStatus(StrEnum):
    """Overall or per-dependency health."""

    HEALTHY = "healthy"
    UNHEALTHY = "unhealthy"


class StatusResponse(BaseModel):
    """Plain liveness message."""

    status: str = Field(description="Human-readable service status")

    model_config = ConfigDict(
        json_schema_extra={"example": {"status": "Feature Flag Engine is running."}}
    )


class DependencyCheck(BaseModel):
    """Result of probing a single dependency."""

    name: str = Field(description="Dependency name (database, cache)")
    status: HealthStatus = Field(description="Dependency health status")
    duration_ms: float = Field(ge=0, description="Probe duration in milliseconds")
    error: str | None = Field(default=None, description="Failure message when unhealthy")


class HealthResponse(BaseModel):
    """Aggregated dependency health.

    Example:
        ```json
        {
            "status": "healthy",
            "service": "feature-flag-engine",
            "version": "0.1.0",
            "checks": [
                {"name": "database", "status": "healthy", "duration_ms": 1.8},
                {"name": "cache", "status": "healthy", "duration_ms": 0.4}
            ]
        }
        ```
    """

    status: HealthStatus = Field(description="healthy only when every check passes")
    service: str = Field(description="Service name")
    version: str = Field(description="Service version")
    checks: list[DependencyCheck] = Field(default_factory=list)
