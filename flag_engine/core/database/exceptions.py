"""Storage-level errors, kept apart from the HTTP exceptions.

Services translate these into domain errors (e.g. ``FlagNotFoundError``)
so repositories never decide on status codes.
"""

from __future__ import annotations

from typing import Any


class RepositoryError(Exception):
    """Base class for repository failures."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        self.message = message
        self.details = details or {}
        super().__init__(message)


class NotFoundError(RepositoryError):
    """No row of ``model_name`` matched ``identifier``."""

    def __init__(self, model_name: str, identifier: dict[str, Any]) -> None:
        self.model_name = model_name
        self.identifier = identifier
        lookup = ", ".join(f"{k}={v}" for k, v in identifier.items())
        super().__init__(f"{model_name} not found ({lookup})", {"model": model_name, **identifier})
