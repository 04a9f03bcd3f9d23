"""Feature flag dependencies for FastAPI."""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends
from sqlalchemy.ext.asyncio import AsyncSession

from flag_engine.core.dependencies.cache import get_evaluation_cache
from flag_engine.core.dependencies.database import get_db_session
from flag_engine.core.settings import get_flag_settings
from flag_engine.infra.cache.base import EvaluationCache

from .repository import get_feature_flag_repository
from .service import FeatureFlagService


def get_feature_flag_service(
    session: Annotated[AsyncSession, Depends(get_db_session)],
    cache: Annotated[EvaluationCache, Depends(get_evaluation_cache)],
) -> FeatureFlagService:
    """Request-scoped FeatureFlagService wired to the session and cache."""
    return FeatureFlagService(
        session,
        cache,
        repository=get_feature_flag_repository(),
        ttl=get_flag_settings().evaluation_ttl,
    )


FeatureFlagServiceDep = Annotated[FeatureFlagService, Depends(get_feature_flag_service)]

__all__ = ["FeatureFlagServiceDep", "get_feature_flag_service"]
