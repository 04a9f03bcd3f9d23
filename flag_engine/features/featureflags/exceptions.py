"""Domain errors raised by the feature flag service."""

from __future__ import annotations

from flag_engine.core.exceptions import ConflictException, NotFoundException

from .resolver import OverrideKind


class FlagNotFoundError(NotFoundException):
    """No flag exists with the requested key or id."""

    def __init__(self, key: str | None = None, *, flag_id: object | None = None) -> None:
        if key is not None:
            detail, extra = f"Feature '{key}' not found", {"key": key}
        else:
            detail, extra = f"Feature with id '{flag_id}' not found", {"id": str(flag_id)}
        super().__init__(detail=detail, type="feature-flag-not-found", extra=extra)
        self.key = key
        self.flag_id = flag_id


class OverrideNotFoundError(NotFoundException):
    """The flag has no override for the given kind and target."""

    def __init__(self, key: str, kind: OverrideKind, target_id: str) -> None:
        super().__init__(
            detail="Override not found",
            type="feature-override-not-found",
            extra={"key": key, "override_type": str(kind), "target_id": target_id},
        )
        self.key = key
        self.kind = kind
        self.target_id = target_id


class FlagConflictError(ConflictException):
    """A flag with this key already exists."""

    def __init__(self, key: str) -> None:
        super().__init__(
            detail=f"Feature '{key}' already exists.",
            type="feature-flag-conflict",
            extra={"key": key},
        )
        self.key = key


__all__ = ["FlagConflictError", "FlagNotFoundError", "OverrideNotFoundError"]
