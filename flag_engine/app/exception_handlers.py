"""RFC 7807 problem responses for every error the API can raise."""

from __future__ import annotations

import logging
from typing import Any

from fastapi import FastAPI, Request, status
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from flag_engine.core.exceptions import AppException, default_title
from flag_engine.core.schemas import FieldError, ProblemDetails, ValidationProblemDetails

logger = logging.getLogger(__name__)

PROBLEM_MEDIA_TYPE = "application/problem+json"

INTERNAL_ERROR_DETAIL = "An unexpected error occurred while processing your request"


def _request_fields(request: Request) -> dict[str, Any]:
    return {"path": request.url.path, "method": request.method}


def _problem_response(
    request: Request,
    problem: ProblemDetails,
    extra: dict[str, Any] | None = None,
) -> JSONResponse:
    """Serialize ``problem`` plus extension members and the request id.

    ``request_id`` lives in the shared ASGI state, so it is available here
    even for 500s rendered outside the request-id middleware.
    """
    body = problem.model_dump(exclude_none=True)
    body.update(extra or {})
    request_id = getattr(request.state, "request_id", None)
    if request_id:
        body["request_id"] = request_id
    return JSONResponse(status_code=problem.status, content=body, media_type=PROBLEM_MEDIA_TYPE)


async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Render a domain or HTTP-facing ``AppException``."""
    logger.warning(
        "Request failed: %s",
        exc.detail,
        extra={**_request_fields(request), "problem_type": exc.type, "status_code": exc.status_code},
    )
    problem = ProblemDetails(
        type=exc.type,
        title=exc.title,
        status=exc.status_code,
        detail=exc.detail,
        instance=exc.instance or request.url.path,
    )
    return _problem_response(request, problem, exc.extra)


async def validation_exception_handler(
    request: Request, exc: RequestValidationError
) -> JSONResponse:
    """422 listing each rejected field, e.g. ``body.key`` or ``query.is_enabled``."""
    errors = [
        FieldError(
            field=".".join(str(part) for part in error["loc"]),
            message=error["msg"],
            type=error["type"],
        )
        for error in exc.errors()
    ]
    logger.info(
        "Request validation failed",
        extra={**_request_fields(request), "fields": [e.field for e in errors]},
    )
    problem = ValidationProblemDetails(
        type="validation-error",
        title="Validation Error",
        status=status.HTTP_422_UNPROCESSABLE_ENTITY,
        detail=f"Request validation failed for {len(errors)} field(s)",
        instance=request.url.path,
        errors=errors,
    )
    return _problem_response(request, problem)


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Log the traceback and answer a generic 500.

    This is where a cache or database that gave up after its retries ends
    up. Nothing about the failure is echoed to the client.
    """
    logger.error(
        "Unhandled %s",
        type(exc).__name__,
        extra=_request_fields(request),
        exc_info=exc,
    )
    problem = ProblemDetails(
        type="internal-error",
        title=default_title(status.HTTP_500_INTERNAL_SERVER_ERROR),
        status=status.HTTP_500_INTERNAL_SERVER_ERROR,
        detail=INTERNAL_ERROR_DETAIL,
        instance=request.url.path,
    )
    return _problem_response(request, problem)


def configure_exception_handlers(app: FastAPI) -> None:
    """Register the problem handlers on ``app``."""
    app.add_exception_handler(AppException, app_exception_handler)
    app.add_exception_handler(RequestValidationError, validation_exception_handler)
    app.add_exception_handler(Exception, generic_exception_handler)


__all__ = [
    "PROBLEM_MEDIA_TYPE",
    "app_exception_handler",
    "configure_exception_handlers",
    "generic_exception_handler",
    "validation_exception_handler",
]
