"""HTTP-facing exceptions rendered as RFC 7807 problem details."""

from __future__ import annotations

from typing import Any, ClassVar

_TITLES = {
    400: "Bad Request",
    404: "Not Found",
    409: "Conflict",
    422: "Unprocessable Entity",
    500: "Internal Server Error",
    503: "Service Unavailable",
}


def default_title(status_code: int) -> str:
    """Reason phrase used as the problem title, or "Error" for unlisted codes."""
    return _TITLES.get(status_code, "Error")


class AppException(Exception):
    """Base for every error the API turns into a problem response.

    Attributes:
        status_code: HTTP status code.
        detail: Human-readable explanation of this occurrence.
        type: Problem type identifier, e.g. ``feature-flag-not-found``.
        title: Short summary of the problem type.
        instance: Request path the problem occurred on; the handler fills
            it in when left empty.
        extra: Extension members merged into the response body.

    Example:
        raise AppException(
            status_code=404,
            detail="Feature 'new_dashboard' not found",
            type="feature-flag-not-found",
            extra={"key": "new_dashboard"},
        )
    """

    def __init__(
        self,
        status_code: int,
        detail: str,
        type: str = "about:blank",  # noqa: A002
        title: str | None = None,
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        self.status_code = status_code
        self.detail = detail
        self.type = type
        self.title = title or default_title(status_code)
        self.instance = instance
        self.extra = extra or {}
        super().__init__(detail)


class _StatusException(AppException):
    """AppException with the status code and default type fixed per subclass."""

    status: ClassVar[int]
    default_type: ClassVar[str]

    def __init__(
        self,
        detail: str,
        type: str | None = None,  # noqa: A002
        instance: str | None = None,
        extra: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(
            status_code=self.status,
            detail=detail,
            type=type or self.default_type,
            instance=instance,
            extra=extra,
        )


class BadRequestException(_StatusException):
    """400, e.g. a body id that disagrees with the path id."""

    status = 400
    default_type = "bad-request"


class NotFoundException(_StatusException):
    """404 for a missing resource."""

    status = 404
    default_type = "not-found"


class ConflictException(_StatusException):
    """409, typically a duplicate unique key."""

    status = 409
    default_type = "conflict"


class ServiceUnavailableException(_StatusException):
    """503 when a required collaborator (database, Redis) is not available."""

    status = 503
    default_type = "service-unavailable"


__all__ = [
    "AppException",
    "BadRequestException",
    "ConflictException",
    "NotFoundException",
    "ServiceUnavailableException",
    "default_title",
]
