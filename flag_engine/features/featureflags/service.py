"""Feature flag service: cache-aside evaluation and flag administration.

Evaluation reads the cache first and only touches storage on a miss. Every
mutation commits before it invalidates, so a concurrent miss cannot
repopulate the cache from the old row. Collaborator failures (cache or
database) propagate unchanged; a failed dependency never turns into a
``False`` decision.
"""

from __future__ import annotations

import logging
import uuid
from typing import TYPE_CHECKING, NamedTuple

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import selectinload

from flag_engine.core.database import NotFoundError
from flag_engine.core.exceptions import BadRequestException
from flag_engine.infra.metrics.prometheus import (
    feature_flag_cache_invalidations_total,
    feature_flag_evaluations_total,
)

from .cache_keys import build_cache_key, scope_label, scoped_cache_key
from .exceptions import FlagConflictError, FlagNotFoundError, OverrideNotFoundError
from .models import FeatureFlag, FeatureOverride
from .repository import FeatureFlagRepository, get_feature_flag_repository
from .resolver import EvaluationContext, OverrideKind, resolve

if TYPE_CHECKING:
    from sqlalchemy.ext.asyncio import AsyncSession

    from flag_engine.infra.cache.base import EvaluationCache

    from .schemas import FeatureFlagCreate, FeatureFlagUpdate

logger = logging.getLogger(__name__)

DEFAULT_TTL = 300


class EvaluationOutcome(NamedTuple):
    """Decision plus whether it was served from the cache."""

    enabled: bool
    from_cache: bool


class FeatureFlagService:
    """Service for evaluating and managing feature flags.

    Example:
        service = FeatureFlagService(session, cache)

        enabled, from_cache = await service.evaluate("new_dashboard", region="IN")
        await service.add_or_update_override("new_dashboard", OverrideKind.USER, "user123", True)
    """

    def __init__(
        self,
        session: AsyncSession,
        cache: EvaluationCache,
        repository: FeatureFlagRepository | None = None,
        ttl: int = DEFAULT_TTL,
    ) -> None:
        """Initialize feature flag service.

        Args:
            session: Database session (the service owns commits).
            cache: Evaluation cache backend.
            repository: Flag repository, defaults to the shared instance.
            ttl: Lifetime of cached decisions in seconds.
        """
        self.session = session
        self.cache = cache
        self.repository = repository or get_feature_flag_repository()
        self.ttl = ttl

    # ──────────────────────────────────────────────────────────────
    # Evaluation
    # ──────────────────────────────────────────────────────────────

    async def evaluate(
        self,
        key: str,
        user_id: str | None = None,
        group_id: str | None = None,
        region: str | None = None,
    ) -> EvaluationOutcome:
        """Evaluate ``key`` for the given context using cache-aside.

        A cached ``False`` is a hit like any other value; only an absent
        entry triggers resolution.

        Raises:
            FlagNotFoundError: If no flag has this key.
        """
        cache_key = build_cache_key(key, user_id=user_id, group_id=group_id, region=region)

        cached = await self.cache.get(cache_key)
        if cached is not None:
            enabled = bool(cached)
            feature_flag_evaluations_total.labels(result=str(enabled).lower(), source="cache").inc()
            logger.debug("Evaluation cache hit", extra={"cache_key": cache_key, "enabled": enabled})
            return EvaluationOutcome(enabled, True)

        flag = await self.repository.get_by_key_with_overrides(self.session, key)
        if flag is None:
            raise FlagNotFoundError(key)

        context = EvaluationContext(key=key, user_id=user_id, group_id=group_id, region=region)
        enabled = resolve(flag.is_enabled, flag.override_index(), context)

        await self.cache.set(cache_key, enabled, ttl=self.ttl)
        feature_flag_evaluations_total.labels(result=str(enabled).lower(), source="store").inc()
        logger.debug("Evaluation cache miss", extra={"cache_key": cache_key, "enabled": enabled})
        return EvaluationOutcome(enabled, False)

    # ──────────────────────────────────────────────────────────────
    # Overrides and global state
    # ──────────────────────────────────────────────────────────────

    async def add_or_update_override(
        self,
        key: str,
        kind: OverrideKind | str,
        target_id: str,
        is_enabled: bool,
    ) -> FeatureOverride:
        """Upsert the override for (kind, target_id) and drop its cache entry.

        Raises:
            FlagNotFoundError: If no flag has this key.
        """
        kind = OverrideKind(kind)
        flag = await self._get_with_overrides_or_raise(key)

        override = flag.find_override(kind, target_id)
        if override is not None:
            override.is_enabled = is_enabled
            action = "updated"
        else:
            override = FeatureOverride(
                id=uuid.uuid4(),
                override_type=str(kind),
                target_id=target_id,
                is_enabled=is_enabled,
            )
            flag.overrides.append(override)
            action = "created"

        await self.session.commit()
        await self._invalidate(scoped_cache_key(key, kind, target_id), kind)

        logger.info(
            "Feature override %s",
            action,
            extra={"key": key, "override_type": str(kind), "target_id": target_id, "is_enabled": is_enabled},
        )
        return override

    async def remove_override(self, key: str, kind: OverrideKind | str, target_id: str) -> None:
        """Remove the override for (kind, target_id) and drop its cache entry.

        Raises:
            FlagNotFoundError: If no flag has this key.
            OverrideNotFoundError: If the flag has no such override.
        """
        kind = OverrideKind(kind)
        flag = await self._get_with_overrides_or_raise(key)

        override = flag.find_override(kind, target_id)
        if override is None:
            raise OverrideNotFoundError(key, kind, target_id)

        flag.overrides.remove(override)
        await self.session.commit()
        await self._invalidate(scoped_cache_key(key, kind, target_id), kind)

        logger.info(
            "Feature override removed",
            extra={"key": key, "override_type": str(kind), "target_id": target_id},
        )

    async def update_global_state(self, key: str, is_enabled: bool) -> FeatureFlag:
        """Set the global state and drop the base (no-context) cache entry.

        Entries keyed by a targeting segment are left alone.

        Raises:
            FlagNotFoundError: If no flag has this key.
        """
        flag = await self.repository.get_by_key(self.session, key)
        if flag is None:
            raise FlagNotFoundError(key)

        flag.is_enabled = is_enabled
        await self.session.commit()
        await self._invalidate(build_cache_key(key), None)

        logger.info("Feature global state updated", extra={"key": key, "is_enabled": is_enabled})
        return flag

    # ──────────────────────────────────────────────────────────────
    # Administration
    # ──────────────────────────────────────────────────────────────

    async def create(self, data: FeatureFlagCreate) -> FeatureFlag:
        """Create a flag together with any inline overrides.

        Inline overrides repeating a (type, target_id) pair keep the first
        occurrence.

        Raises:
            FlagConflictError: If a flag with this key already exists.
        """
        if await self.repository.key_exists(self.session, data.key):
            raise FlagConflictError(data.key)

        overrides: dict[tuple[OverrideKind, str], FeatureOverride] = {}
        for item in data.overrides:
            overrides.setdefault(
                (item.override_type, item.target_id),
                FeatureOverride(
                    id=uuid.uuid4(),
                    override_type=str(item.override_type),
                    target_id=item.target_id,
                    is_enabled=item.is_enabled,
                ),
            )

        flag = FeatureFlag(
            id=uuid.uuid4(),
            key=data.key,
            is_enabled=data.is_enabled,
            description=data.description,
            overrides=list(overrides.values()),
        )

        try:
            await self.repository.save(self.session, flag)
            await self.session.commit()
        except IntegrityError as e:
            # Lost a race with a concurrent create of the same key
            await self.session.rollback()
            raise FlagConflictError(data.key) from e

        logger.info(
            "Feature flag created",
            extra={"key": flag.key, "id": str(flag.id), "overrides": len(flag.overrides)},
        )
        return flag

    async def list_flags(self, include_overrides: bool = False) -> list[FeatureFlag]:
        """List all flags ordered by key."""
        if include_overrides:
            flags = await self.repository.list_with_overrides(self.session)
        else:
            flags = await self.repository.list(self.session, order_by=FeatureFlag.key)
        return list(flags)

    async def get_by_id(self, flag_id: uuid.UUID) -> FeatureFlag | None:
        """Get a flag by id with its overrides loaded."""
        return await self.repository.get(
            self.session,
            flag_id,
            options=[selectinload(FeatureFlag.overrides)],
        )

    async def get_by_key(self, key: str) -> FeatureFlag | None:
        """Get a flag by key with its overrides loaded."""
        return await self.repository.get_by_key_with_overrides(self.session, key)

    async def update(self, flag_id: uuid.UUID, data: FeatureFlagUpdate) -> FeatureFlag:
        """Update description and global state of the flag ``flag_id``.

        The key is immutable; a body carrying a different key is rejected.
        The base cache entry is dropped when the global state changed.

        Raises:
            FlagNotFoundError: If no flag has this id.
            BadRequestException: If the body tries to change the key.
        """
        try:
            flag = await self.repository.get_or_raise(self.session, flag_id)
        except NotFoundError as e:
            raise FlagNotFoundError(flag_id=flag_id) from e

        if data.key is not None and data.key != flag.key:
            raise BadRequestException(
                detail="Feature key cannot be changed",
                extra={"key": flag.key, "requested_key": data.key},
            )

        state_changed = flag.is_enabled != data.is_enabled
        flag.is_enabled = data.is_enabled
        flag.description = data.description
        await self.session.commit()

        if state_changed:
            await self._invalidate(build_cache_key(flag.key), None)

        logger.info(
            "Feature flag updated",
            extra={"key": flag.key, "id": str(flag.id), "is_enabled": flag.is_enabled},
        )
        return flag

    async def delete(self, flag_id: uuid.UUID) -> bool:
        """Delete a flag and its overrides.

        Drops the base entry and the single-dimension entry of every
        override. A missing id is a no-op.

        Returns:
            True if a flag was deleted, False if none had this id.
        """
        flag = await self.get_by_id(flag_id)
        if flag is None:
            return False

        key = flag.key
        scopes = [(o.kind, o.target_id) for o in flag.overrides]

        await self.repository.delete(self.session, flag)
        await self.session.commit()

        await self._invalidate(build_cache_key(key), None)
        for kind, target_id in scopes:
            await self._invalidate(scoped_cache_key(key, kind, target_id), kind)

        logger.info("Feature flag deleted", extra={"key": key, "id": str(flag_id)})
        return True

    # ──────────────────────────────────────────────────────────────
    # Internals
    # ──────────────────────────────────────────────────────────────

    async def _get_with_overrides_or_raise(self, key: str) -> FeatureFlag:
        flag = await self.repository.get_by_key_with_overrides(self.session, key)
        if flag is None:
            raise FlagNotFoundError(key)
        return flag

    async def _invalidate(self, cache_key: str, kind: OverrideKind | None) -> None:
        await self.cache.delete(cache_key)
        feature_flag_cache_invalidations_total.labels(scope=scope_label(kind)).inc()
        logger.debug("Evaluation cache entry invalidated", extra={"cache_key": cache_key})


__all__ = ["DEFAULT_TTL", "EvaluationOutcome", "FeatureFlagService"]
