"""Feature flags: global toggles with user, group and region overrides.

Usage:
    from flag_engine.features.featureflags import FeatureFlagService

    service = FeatureFlagService(session, cache)
    enabled, from_cache = await service.evaluate("new_dashboard", user_id="user123")
"""

from __future__ import annotations

from .exceptions import FlagConflictError, FlagNotFoundError, OverrideNotFoundError
from .models import FeatureFlag, FeatureOverride
from .resolver import EvaluationContext, OverrideKind, resolve
from .router import router
from .service import EvaluationOutcome, FeatureFlagService

__all__ = [
    "EvaluationContext",
    "EvaluationOutcome",
    "FeatureFlag",
    "FeatureFlagService",
    "FeatureOverride",
    "FlagConflictError",
    "FlagNotFoundError",
    "OverrideKind",
    "OverrideNotFoundError",
    "resolve",
    "router",
]
