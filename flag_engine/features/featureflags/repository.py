"""Feature flag repository for database operations.

Data access only: no commits and no cache handling. The service owns the
transaction boundary and invalidation.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from sqlalchemy import select
from sqlalchemy.orm import selectinload

from flag_engine.core.database.repository import BaseRepository
from flag_engine.infra.logging import get_lazy_logger

from .models import FeatureFlag, FeatureOverride

if TYPE_CHECKING:
    from collections.abc import Sequence

    from sqlalchemy.ext.asyncio import AsyncSession

    from .resolver import OverrideKind

_lazy = get_lazy_logger(__name__)


class FeatureFlagRepository(BaseRepository[FeatureFlag]):
    """Repository for FeatureFlag aggregates (flag plus its overrides).

    Example:
        repo = get_feature_flag_repository()
        flag = await repo.get_by_key_with_overrides(session, "new_dashboard")
    """

    def __init__(self) -> None:
        super().__init__(FeatureFlag)

    async def get_by_key(self, session: AsyncSession, key: str) -> FeatureFlag | None:
        """Get a feature flag by its unique key, without overrides."""
        return await self.get_by(session, FeatureFlag.key, key)

    async def get_by_key_with_overrides(self, session: AsyncSession, key: str) -> FeatureFlag | None:
        """Get a feature flag by key with its overrides eagerly loaded.

        Args:
            session: Database session.
            key: Flag key.

        Returns:
            Feature flag if found, None otherwise.
        """
        stmt = (
            select(FeatureFlag)
            .where(FeatureFlag.key == key)
            .options(selectinload(FeatureFlag.overrides))
            .execution_options(populate_existing=True)
        )
        result = await session.execute(stmt)
        flag = result.scalar_one_or_none()

        _lazy.debug(
            lambda: f"get_by_key_with_overrides: {key} -> "
            f"{f'{len(flag.overrides)} overrides' if flag else 'not found'}"
        )
        return flag

    async def list_with_overrides(self, session: AsyncSession) -> Sequence[FeatureFlag]:
        """All flags ordered by key, overrides eagerly loaded."""
        return await self.list(
            session,
            order_by=FeatureFlag.key,
            options=[selectinload(FeatureFlag.overrides)],
        )

    async def key_exists(self, session: AsyncSession, key: str) -> bool:
        """Whether a flag with ``key`` exists."""
        return await self.exists(session, FeatureFlag.key, key)

    async def get_override(
        self,
        session: AsyncSession,
        flag: FeatureFlag,
        kind: OverrideKind,
        target_id: str,
    ) -> FeatureOverride | None:
        """Get the override of ``flag`` for one (kind, target_id).

        Args:
            session: Database session.
            flag: Owning flag.
            kind: Targeting dimension.
            target_id: Targeted user, group or region.

        Returns:
            Override if found, None otherwise.
        """
        stmt = select(FeatureOverride).where(
            FeatureOverride.feature_flag_id == flag.id,
            FeatureOverride.override_type == str(kind),
            FeatureOverride.target_id == target_id,
        )
        result = await session.execute(stmt)
        return result.scalars().first()


_repository: FeatureFlagRepository | None = None


def get_feature_flag_repository() -> FeatureFlagRepository:
    """Process-wide FeatureFlagRepository (it holds no session state)."""
    global _repository
    if _repository is None:
        _repository = FeatureFlagRepository()
    return _repository


__all__ = ["FeatureFlagRepository", "get_feature_flag_repository"]
