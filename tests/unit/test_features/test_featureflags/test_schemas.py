"""Unit tests for feature flag request and response schemas."""

from __future__ import annotations

import uuid

import pytest
from pydantic import ValidationError

from flag_engine.features.featureflags.resolver import OverrideKind
from flag_engine.features.featureflags.schemas import (
    FeatureFlagCreate,
    FeatureFlagUpdate,
    FeatureOverrideCreate,
)


@pytest.mark.unit
class TestFeatureFlagCreate:
    def test_defaults(self) -> None:
        """Flags default to disabled with no overrides."""
        data = FeatureFlagCreate(key="f1")
        assert data.is_enabled is False
        assert data.description is None
        assert data.overrides == []

    @pytest.mark.parametrize("key", ["", "x" * 101])
    def test_key_length_bounds(self, key: str) -> None:
        """Keys are 1 to 100 characters."""
        with pytest.raises(ValidationError):
            FeatureFlagCreate(key=key)

    def test_description_max_length(self) -> None:
        """Descriptions are at most 500 characters."""
        FeatureFlagCreate(key="f1", description="d" * 500)
        with pytest.raises(ValidationError):
            FeatureFlagCreate(key="f1", description="d" * 501)

    def test_key_is_stripped(self) -> None:
        """Surrounding whitespace is stripped."""
        assert FeatureFlagCreate(key="  f1 ").key == "f1"


@pytest.mark.unit
class TestFeatureOverrideCreate:
    def test_accepts_wire_values(self) -> None:
        """Override types parse from their persisted strings."""
        data = FeatureOverrideCreate(override_type="Group", target_id="beta", is_enabled=True)
        assert data.override_type is OverrideKind.GROUP

    def test_rejects_unknown_type(self) -> None:
        """Only User, Group and Region are accepted."""
        with pytest.raises(ValidationError):
            FeatureOverrideCreate(override_type="Tenant", target_id="t1", is_enabled=True)

    @pytest.mark.parametrize("target", ["", "   ", "t" * 101])
    def test_target_length_bounds(self, target: str) -> None:
        """Targets are 1 to 100 characters after stripping."""
        with pytest.raises(ValidationError):
            FeatureOverrideCreate(override_type="User", target_id=target, is_enabled=True)


@pytest.mark.unit
class TestFeatureFlagUpdate:
    def test_is_enabled_required(self) -> None:
        """The global state must be supplied on update."""
        with pytest.raises(ValidationError):
            FeatureFlagUpdate(id=uuid.uuid4())

    def test_key_optional(self) -> None:
        """The key may be omitted."""
        assert FeatureFlagUpdate(id=uuid.uuid4(), is_enabled=True).key is None
