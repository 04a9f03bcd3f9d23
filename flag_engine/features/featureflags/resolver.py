"""Override resolution for a single evaluation.

Pure functions: no I/O, no shared state. The caller is responsible for
loading the flag and handling its absence.

Precedence is fixed and first match wins:

1. User override whose target equals ``context.user_id``
2. Group override whose target equals ``context.group_id``
3. Region override whose target equals ``context.region``
4. the flag's global state
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping
from dataclasses import dataclass
from enum import StrEnum
from typing import Protocol


class OverrideKind(StrEnum):
    """Targeting dimension of an override.

    Values are persisted and exposed on the wire; do not rename them.
    """

    USER = "User"
    GROUP = "Group"
    REGION = "Region"


# Consulted in this order; extending the kinds is a single edit here.
PRECEDENCE: tuple[OverrideKind, ...] = (
    OverrideKind.USER,
    OverrideKind.GROUP,
    OverrideKind.REGION,
)

OverrideIndex = Mapping[tuple[OverrideKind, str], bool]


class OverrideLike(Protocol):
    """Anything shaped like a stored override."""

    override_type: str
    target_id: str
    is_enabled: bool


@dataclass(frozen=True, slots=True)
class EvaluationContext:
    """Request-scoped targeting attributes for one evaluation call."""

    key: str
    user_id: str | None = None
    group_id: str | None = None
    region: str | None = None

    def dimension(self, kind: OverrideKind) -> str | None:
        """Value this context supplies for ``kind``, or None when blank."""
        value = {
            OverrideKind.USER: self.user_id,
            OverrideKind.GROUP: self.group_id,
            OverrideKind.REGION: self.region,
        }[kind]
        return value if has_value(value) else None


def has_value(value: str | None) -> bool:
    """True when ``value`` is present and not only whitespace."""
    return value is not None and value.strip() != ""


def index_overrides(overrides: Iterable[OverrideLike]) -> dict[tuple[OverrideKind, str], bool]:
    """Build an O(1) lookup keyed by (kind, target_id).

    Duplicates should not exist given the storage uniqueness constraint; if
    they do, the first one encountered wins.
    """
    index: dict[tuple[OverrideKind, str], bool] = {}
    for override in overrides:
        index.setdefault((OverrideKind(override.override_type), override.target_id), override.is_enabled)
    return index


def resolve(
    global_enabled: bool,
    overrides: OverrideIndex | Iterable[OverrideLike],
    context: EvaluationContext,
) -> bool:
    """Resolve the decision for ``context``.

    Args:
        global_enabled: The flag's global state.
        overrides: Either a prebuilt index from ``index_overrides`` or the raw
            overrides of the flag.
        context: Targeting attributes of the request.

    Returns:
        The first matching override's ``is_enabled`` in precedence order,
        else ``global_enabled``.
    """
    index = overrides if isinstance(overrides, Mapping) else index_overrides(overrides)

    for kind in PRECEDENCE:
        target = context.dimension(kind)
        if target is None:
            continue
        decision = index.get((kind, target))
        if decision is not None:
            return decision

    return global_enabled


__all__ = [
    "PRECEDENCE",
    "EvaluationContext",
    "OverrideIndex",
    "OverrideKind",
    "has_value",
    "index_overrides",
    "resolve",
]
