"""Core database package: declarative base, mixins and generic repository."""

from __future__ import annotations

from .base import NAMING_CONVENTION, Base, TimestampMixin, UUIDPKMixin
from .exceptions import NotFoundError, RepositoryError
from .repository import BaseRepository

__all__ = [
    "NAMING_CONVENTION",
    "Base",
    "BaseRepository",
    "NotFoundError",
    "RepositoryError",
    "TimestampMixin",
    "UUIDPKMixin",
]
