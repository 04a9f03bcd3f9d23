"""Health check endpoints.

Endpoints:
    GET /health/status - Liveness message, 503 when the database is unreachable
    GET /health        - Per-dependency report for database and cache
"""

from __future__ import annotations

from typing import Annotated

from fastapi import APIRouter, Depends, status
from fastapi.responses import JSONResponse

from flag_engine.core.exceptions import ServiceUnavailableException

from .schemas import HealthResponse, HealthStatus, StatusResponse
from .service import HealthService, get_health_service

router = APIRouter(prefix="/health", tags=["health"])

HealthServiceDep = Annotated[HealthService, Depends(get_health_service)]

RUNNING_MESSAGE = "Feature Flag Engine is running."


@router.get(
    "/status",
    response_model=StatusResponse,
    summary="Service status",
    description="Returns a fixed message when the service and its database are reachable.",
)
async def service_status(service: HealthServiceDep) -> StatusResponse:
    check = await service.check("database")
    if check.status is not HealthStatus.HEALTHY:
        raise ServiceUnavailableException(
            detail="Database is not reachable",
            extra={"service": "database"},
        )
    return StatusResponse(status=RUNNING_MESSAGE)


@router.get(
    "",
    response_model=HealthResponse,
    summary="Dependency health",
    responses={503: {"model": HealthResponse, "description": "A dependency is unhealthy"}},
)
async def health_check(service: HealthServiceDep) -> JSONResponse:
    """Report database and cache health, answering 503 when any check fails."""
    report = await service.check_all()
    code = (
        status.HTTP_200_OK
        if report.status is HealthStatus.HEALTHY
        else status.HTTP_503_SERVICE_UNAVAILABLE
    )
    return JSONResponse(status_code=code, content=report.model_dump(mode="json"))
