"""FastAPI dependencies shared across features."""

from __future__ import annotations

from .cache import get_evaluation_cache
from .database import get_db_session

__all__ = ["get_db_session", "get_evaluation_cache"]
