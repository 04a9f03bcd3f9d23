"""Feature flag schemas for API requests and responses."""

from __future__ import annotations

from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field

from .resolver import OverrideKind


class FeatureOverrideBase(BaseModel):
    """Fields shared by override input and output."""

    override_type: OverrideKind = Field(description="Targeting dimension (User, Group, Region)")
    target_id: str = Field(
        min_length=1,
        max_length=100,
        description="User, group or region this rule matches",
    )
    is_enabled: bool = Field(description="Decision returned when the rule matches")

    model_config = ConfigDict(str_strip_whitespace=True)


class FeatureOverrideCreate(FeatureOverrideBase):
    """Schema for adding or updating an override.

    An existing override with the same type and target is updated in place.
    """

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {"override_type": "Region", "target_id": "IN", "is_enabled": True},
        },
    )


class FeatureOverrideResponse(FeatureOverrideBase):
    """Response schema for an override."""

    id: UUID
    feature_flag_id: UUID

    model_config = ConfigDict(from_attributes=True)


class FeatureFlagCreate(BaseModel):
    """Schema for creating a feature flag, optionally with initial overrides."""

    key: str = Field(min_length=1, max_length=100, description="Unique flag key")
    is_enabled: bool = Field(default=False, description="Global enabled state")
    description: str | None = Field(default=None, max_length=500, description="Flag description")
    overrides: list[FeatureOverrideCreate] = Field(
        default_factory=list,
        description="Overrides created together with the flag",
    )

    model_config = ConfigDict(
        str_strip_whitespace=True,
        json_schema_extra={
            "example": {
                "key": "new_dashboard",
                "is_enabled": False,
                "description": "Enable the redesigned dashboard",
                "overrides": [{"override_type": "Region", "target_id": "IN", "is_enabled": True}],
            },
        },
    )


class FeatureFlagUpdate(BaseModel):
    """Schema for updating a feature flag by id.

    ``id`` must match the path id. The key cannot change; a different key
    is rejected rather than applied.
    """

    id: UUID
    key: str | None = Field(default=None, min_length=1, max_length=100)
    is_enabled: bool
    description: str | None = Field(default=None, max_length=500)

    model_config = ConfigDict(str_strip_whitespace=True)


class FeatureFlagResponse(BaseModel):
    """Response schema for a feature flag."""

    id: UUID
    key: str
    is_enabled: bool
    description: str | None
    overrides: list[FeatureOverrideResponse] = Field(default_factory=list)

    model_config = ConfigDict(from_attributes=True)


class EvaluationResponse(BaseModel):
    """Decision for one flag in one evaluation context."""

    key: str
    enabled: bool


__all__ = [
    "EvaluationResponse",
    "FeatureFlagCreate",
    "FeatureFlagResponse",
    "FeatureFlagUpdate",
    "FeatureOverrideCreate",
    "FeatureOverrideResponse",
]
