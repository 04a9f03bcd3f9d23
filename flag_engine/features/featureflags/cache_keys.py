"""Evaluation cache key derivation.

Layout: ``feature_eval:{key}[:region:{r}][:group:{g}][:user:{u}]``. Segments
appear in that order whenever the value is present and non-blank. Other
components may inspect cache contents, so the layout is stable.
"""

from __future__ import annotations

from .resolver import OverrideKind, has_value

CACHE_PREFIX = "feature_eval:"

_SEGMENTS: dict[OverrideKind, str] = {
    OverrideKind.REGION: "region",
    OverrideKind.GROUP: "group",
    OverrideKind.USER: "user",
}


def build_cache_key(
    key: str,
    user_id: str | None = None,
    group_id: str | None = None,
    region: str | None = None,
) -> str:
    """Cache key for an evaluation context.

    Example:
        >>> build_cache_key("new_dashboard", user_id="u1", region="IN")
        'feature_eval:new_dashboard:region:IN:user:u1'
    """
    parts = [f"{CACHE_PREFIX}{key}"]
    for kind, value in (
        (OverrideKind.REGION, region),
        (OverrideKind.GROUP, group_id),
        (OverrideKind.USER, user_id),
    ):
        if has_value(value):
            parts.append(f"{_SEGMENTS[kind]}:{value}")
    return ":".join(parts)


def scoped_cache_key(key: str, kind: OverrideKind, target_id: str) -> str:
    """Key of the entry an override change on one dimension can affect.

    It is exactly the key an evaluation supplying only that dimension writes.
    """
    return build_cache_key(
        key,
        user_id=target_id if kind is OverrideKind.USER else None,
        group_id=target_id if kind is OverrideKind.GROUP else None,
        region=target_id if kind is OverrideKind.REGION else None,
    )


def scope_label(kind: OverrideKind | None) -> str:
    """Metric label for an invalidation scope (``base`` for the bare key)."""
    return _SEGMENTS[kind] if kind is not None else "base"


__all__ = ["CACHE_PREFIX", "build_cache_key", "scope_label", "scoped_cache_key"]
