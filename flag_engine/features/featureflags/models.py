"""Feature flag database models.

A flag owns its overrides: deleting a flag deletes them (ORM cascade plus
``ON DELETE CASCADE`` on the foreign key).
"""

from __future__ import annotations

import uuid

from sqlalchemy import Boolean, ForeignKey, String, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship

from flag_engine.core.database.base import Base, TimestampMixin, UUIDPKMixin

from .resolver import OverrideKind, index_overrides


class FeatureFlag(Base, UUIDPKMixin, TimestampMixin):
    """Named boolean switch with a global state and targeted overrides.

    Attributes:
        key: Unique, immutable lookup key (e.g., "new_dashboard").
        is_enabled: Global state used when no override matches.
        description: Optional free text.
        overrides: Targeting rules owned by this flag.
    """

    __tablename__ = "feature_flags"

    key: Mapped[str] = mapped_column(
        String(100),
        unique=True,
        nullable=False,
        index=True,
        comment="Unique flag key",
    )
    is_enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        default=False,
        comment="Global enabled state",
    )
    description: Mapped[str | None] = mapped_column(
        String(500),
        nullable=True,
        comment="Flag description",
    )

    overrides: Mapped[list[FeatureOverride]] = relationship(
        back_populates="feature_flag",
        cascade="all, delete-orphan",
        order_by="FeatureOverride.created_at",
    )

    def override_index(self) -> dict[tuple[OverrideKind, str], bool]:
        """Overrides keyed by (kind, target_id) for constant-time matching."""
        return index_overrides(self.overrides)

    def find_override(self, kind: OverrideKind, target_id: str) -> FeatureOverride | None:
        """First loaded override matching ``kind`` and ``target_id``."""
        return next(
            (o for o in self.overrides if o.override_type == kind and o.target_id == target_id),
            None,
        )

    def __repr__(self) -> str:
        return f"FeatureFlag(key={self.key!r}, is_enabled={self.is_enabled})"


class FeatureOverride(Base, UUIDPKMixin, TimestampMixin):
    """Targeting rule returning a fixed decision for one user, group or region.

    Attributes:
        feature_flag_id: Owning flag.
        override_type: OverrideKind value ("User", "Group", "Region").
        target_id: The user, group or region this rule matches.
        is_enabled: Decision returned when the rule matches.
    """

    __tablename__ = "feature_overrides"

    feature_flag_id: Mapped[uuid.UUID] = mapped_column(
        ForeignKey("feature_flags.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
        comment="Owning feature flag",
    )
    override_type: Mapped[str] = mapped_column(
        String(20),
        nullable=False,
        comment="Targeting dimension (User, Group, Region)",
    )
    target_id: Mapped[str] = mapped_column(
        String(100),
        nullable=False,
        comment="Targeted user, group or region",
    )
    is_enabled: Mapped[bool] = mapped_column(
        Boolean,
        nullable=False,
        comment="Override value",
    )

    feature_flag: Mapped[FeatureFlag] = relationship(back_populates="overrides")

    __table_args__ = (
        UniqueConstraint(
            "feature_flag_id",
            "override_type",
            "target_id",
            name="uq_feature_overrides_flag_type_target",
        ),
    )

    @property
    def kind(self) -> OverrideKind:
        return OverrideKind(self.override_type)


__all__ = ["FeatureFlag", "FeatureOverride"]
