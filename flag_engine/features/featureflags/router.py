"""Feature flag REST API endpoints.

Administration (CRUD, global state, overrides) and runtime evaluation.
"""

from __future__ import annotations

import uuid
from typing import Annotated

from fastapi import APIRouter, Query, Request, Response, status
from sqlalchemy import inspect as sa_inspect

from flag_engine.core.exceptions import BadRequestException

from .dependencies import FeatureFlagServiceDep
from .exceptions import FlagNotFoundError
from .models import FeatureFlag
from .resolver import OverrideKind
from .schemas import (
    EvaluationResponse,
    FeatureFlagCreate,
    FeatureFlagResponse,
    FeatureFlagUpdate,
    FeatureOverrideCreate,
    FeatureOverrideResponse,
)

router = APIRouter(prefix="/feature-flags", tags=["feature-flags"])


def _to_response(flag: FeatureFlag) -> FeatureFlagResponse:
    """Serialize a flag, including overrides only when they were loaded."""
    loaded = "overrides" not in sa_inspect(flag).unloaded
    return FeatureFlagResponse(
        id=flag.id,
        key=flag.key,
        is_enabled=flag.is_enabled,
        description=flag.description,
        overrides=[FeatureOverrideResponse.model_validate(o) for o in flag.overrides] if loaded else [],
    )


# Flag management endpoints


@router.get(
    "",
    response_model=list[FeatureFlagResponse],
    summary="List feature flags",
    description="List all feature flags ordered by key.",
)
async def list_flags(
    service: FeatureFlagServiceDep,
    include_overrides: Annotated[bool, Query(description="Embed each flag's overrides")] = False,
) -> list[FeatureFlagResponse]:
    flags = await service.list_flags(include_overrides=include_overrides)
    return [_to_response(flag) for flag in flags]


@router.get(
    "/{flag_id}",
    response_model=FeatureFlagResponse,
    summary="Get feature flag",
    description="Get a feature flag and its overrides by id.",
)
async def get_flag(flag_id: uuid.UUID, service: FeatureFlagServiceDep) -> FeatureFlagResponse:
    flag = await service.get_by_id(flag_id)
    if flag is None:
        raise FlagNotFoundError(flag_id=flag_id)
    return _to_response(flag)


@router.post(
    "",
    response_model=FeatureFlagResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create feature flag",
    description="Create a feature flag, optionally with initial overrides. Fails with 409 if the key exists.",
)
async def create_flag(
    data: FeatureFlagCreate,
    request: Request,
    response: Response,
    service: FeatureFlagServiceDep,
) -> FeatureFlagResponse:
    flag = await service.create(data)
    response.headers["Location"] = str(request.url_for("get_flag", flag_id=str(flag.id)))
    return _to_response(flag)


@router.put(
    "/{flag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Update feature flag",
    description="Update the description and global state of a feature flag.",
)
async def update_flag(
    flag_id: uuid.UUID,
    data: FeatureFlagUpdate,
    service: FeatureFlagServiceDep,
) -> None:
    if data.id != flag_id:
        raise BadRequestException(
            detail="ID mismatch",
            extra={"path_id": str(flag_id), "body_id": str(data.id)},
        )
    await service.update(flag_id, data)


@router.delete(
    "/{flag_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Delete feature flag",
    description="Delete a feature flag and its overrides. Unknown ids are ignored.",
)
async def delete_flag(flag_id: uuid.UUID, service: FeatureFlagServiceDep) -> None:
    await service.delete(flag_id)


@router.patch(
    "/{key}/global",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Set global state",
    description="Enable or disable a flag for every request no override matches.",
)
async def update_global_state(
    key: str,
    is_enabled: Annotated[bool, Query(description="New global state")],
    service: FeatureFlagServiceDep,
) -> None:
    await service.update_global_state(key, is_enabled)


# Override endpoints


@router.post(
    "/{key}/overrides",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Add or update override",
    description="Create an override for a user, group or region, or update the existing one.",
)
async def add_override(
    key: str,
    data: FeatureOverrideCreate,
    service: FeatureFlagServiceDep,
) -> None:
    await service.add_or_update_override(key, data.override_type, data.target_id, data.is_enabled)


@router.delete(
    "/{key}/overrides",
    status_code=status.HTTP_204_NO_CONTENT,
    summary="Remove override",
    description="Remove the override for one type and target.",
)
async def remove_override(
    key: str,
    override_type: Annotated[OverrideKind, Query(alias="type", description="User, Group or Region")],
    target_id: Annotated[str, Query(min_length=1, max_length=100)],
    service: FeatureFlagServiceDep,
) -> None:
    await service.remove_override(key, override_type, target_id)


# Evaluation


@router.get(
    "/{key}/evaluate",
    response_model=EvaluationResponse,
    summary="Evaluate feature flag",
    description=(
        "Evaluate a flag for an optional user, group and region. "
        "The X-Cache header reports HIT when the decision came from the cache."
    ),
)
async def evaluate_flag(
    key: str,
    response: Response,
    service: FeatureFlagServiceDep,
    user_id: Annotated[str | None, Query()] = None,
    group_id: Annotated[str | None, Query()] = None,
    region: Annotated[str | None, Query()] = None,
) -> EvaluationResponse:
    """Evaluate a flag for the given context.

    Precedence is user, then group, then region, then the global state.
    """
    outcome = await service.evaluate(key, user_id=user_id, group_id=group_id, region=region)
    response.headers["X-Cache"] = "HIT" if outcome.from_cache else "MISS"
    return EvaluationResponse(key=key, enabled=outcome.enabled)
