"""HTTP tests for the feature flag endpoints."""

from __future__ import annotations

import uuid
from unittest.mock import AsyncMock

import pytest
from httpx import AsyncClient

from flag_engine.core.dependencies.cache import get_evaluation_cache
from flag_engine.features.featureflags.resolver import OverrideKind
from flag_engine.utils.retry import RetryError

BASE = "/api/v1/feature-flags"


async def _create(client: AsyncClient, key: str = "f1", **body) -> dict:
    response = await client.post(BASE, json={"key": key, **body})
    assert response.status_code == 201, response.text
    return response.json()


@pytest.mark.unit
class TestFlagCrud:
    @pytest.mark.asyncio
    async def test_create_returns_201_with_location(self, client: AsyncClient) -> None:
        """Create answers 201, the new flag and a Location header."""
        response = await client.post(
            BASE,
            json={
                "key": "new_dashboard",
                "description": "Redesign",
                "overrides": [{"override_type": "Region", "target_id": "IN", "is_enabled": True}],
            },
        )

        assert response.status_code == 201
        body = response.json()
        assert body["key"] == "new_dashboard"
        assert body["is_enabled"] is False
        assert body["overrides"][0]["override_type"] == "Region"
        assert body["overrides"][0]["feature_flag_id"] == body["id"]
        assert response.headers["location"].endswith(f"{BASE}/{body['id']}")

    @pytest.mark.asyncio
    async def test_create_duplicate_key_conflict(self, client: AsyncClient) -> None:
        """A second create with the same key is a 409 problem."""
        await _create(client)

        response = await client.post(BASE, json={"key": "f1"})

        assert response.status_code == 409
        assert response.headers["content-type"].startswith("application/problem+json")
        body = response.json()
        assert body["type"] == "feature-flag-conflict"
        assert body["detail"] == "Feature 'f1' already exists."
        assert body["key"] == "f1"

    @pytest.mark.asyncio
    async def test_create_validation_error(self, client: AsyncClient) -> None:
        """Invalid bodies are rejected with field-level errors."""
        response = await client.post(
            BASE,
            json={"key": "", "overrides": [{"override_type": "Tenant", "target_id": "t", "is_enabled": True}]},
        )

        assert response.status_code == 422
        body = response.json()
        assert body["type"] == "validation-error"
        fields = {error["field"] for error in body["errors"]}
        assert "body.key" in fields
        assert any(field.startswith("body.overrides.0.override_type") for field in fields)

    @pytest.mark.asyncio
    async def test_list_flags(self, client: AsyncClient) -> None:
        """List returns every flag by key, overrides only on request."""
        await _create(client, "b", overrides=[{"override_type": "User", "target_id": "u1", "is_enabled": True}])
        await _create(client, "a")

        plain = await client.get(BASE)
        detailed = await client.get(BASE, params={"include_overrides": "true"})

        assert [f["key"] for f in plain.json()] == ["a", "b"]
        assert plain.json()[1]["overrides"] == []
        assert [len(f["overrides"]) for f in detailed.json()] == [0, 1]

    @pytest.mark.asyncio
    async def test_get_flag(self, client: AsyncClient) -> None:
        """A flag is retrievable by id."""
        created = await _create(client)

        response = await client.get(f"{BASE}/{created['id']}")

        assert response.status_code == 200
        assert response.json()["key"] == "f1"

    @pytest.mark.asyncio
    async def test_get_flag_not_found(self, client: AsyncClient) -> None:
        """Unknown ids answer 404."""
        flag_id = uuid.uuid4()
        response = await client.get(f"{BASE}/{flag_id}")

        assert response.status_code == 404
        assert response.json()["type"] == "feature-flag-not-found"
        assert response.json()["detail"] == f"Feature with id '{flag_id}' not found"

    @pytest.mark.asyncio
    async def test_get_flag_invalid_id(self, client: AsyncClient) -> None:
        """Non-UUID ids fail validation."""
        response = await client.get(f"{BASE}/not-a-uuid")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_update_flag(self, client: AsyncClient) -> None:
        """PUT applies description and global state."""
        created = await _create(client)

        response = await client.put(
            f"{BASE}/{created['id']}",
            json={"id": created["id"], "key": "f1", "is_enabled": True, "description": "on"},
        )

        assert response.status_code == 204
        fetched = (await client.get(f"{BASE}/{created['id']}")).json()
        assert fetched["is_enabled"] is True
        assert fetched["description"] == "on"

    @pytest.mark.asyncio
    async def test_update_id_mismatch(self, client: AsyncClient) -> None:
        """A body id different from the path id is a 400."""
        created = await _create(client)
        other = str(uuid.uuid4())

        response = await client.put(
            f"{BASE}/{created['id']}", json={"id": other, "is_enabled": True}
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "ID mismatch"
        assert response.json()["body_id"] == other

    @pytest.mark.asyncio
    async def test_update_key_change_rejected(self, client: AsyncClient) -> None:
        """The key cannot be renamed through PUT."""
        created = await _create(client)

        response = await client.put(
            f"{BASE}/{created['id']}",
            json={"id": created["id"], "key": "renamed", "is_enabled": True},
        )

        assert response.status_code == 400
        assert response.json()["detail"] == "Feature key cannot be changed"

    @pytest.mark.asyncio
    async def test_update_unknown_flag(self, client: AsyncClient) -> None:
        """Updating an unknown id is a 404."""
        flag_id = str(uuid.uuid4())
        response = await client.put(f"{BASE}/{flag_id}", json={"id": flag_id, "is_enabled": True})
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_delete_flag(self, client: AsyncClient) -> None:
        """DELETE answers 204 and the flag is gone."""
        created = await _create(client)

        response = await client.delete(f"{BASE}/{created['id']}")

        assert response.status_code == 204
        assert (await client.get(f"{BASE}/{created['id']}")).status_code == 404

    @pytest.mark.asyncio
    async def test_delete_unknown_flag_is_204(self, client: AsyncClient) -> None:
        """Deleting an unknown id is not an error."""
        response = await client.delete(f"{BASE}/{uuid.uuid4()}")
        assert response.status_code == 204


@pytest.mark.unit
class TestGlobalStateAndOverrides:
    @pytest.mark.asyncio
    async def test_patch_global_state(self, client: AsyncClient) -> None:
        """PATCH flips the global state and the next evaluation sees it."""
        await _create(client)
        assert (await client.get(f"{BASE}/f1/evaluate")).json()["enabled"] is False

        response = await client.patch(f"{BASE}/f1/global", params={"is_enabled": "true"})

        assert response.status_code == 204
        evaluated = await client.get(f"{BASE}/f1/evaluate")
        assert evaluated.json()["enabled"] is True
        assert evaluated.headers["x-cache"] == "MISS"

    @pytest.mark.asyncio
    async def test_patch_global_state_requires_value(self, client: AsyncClient) -> None:
        """is_enabled is a required query parameter."""
        await _create(client)
        response = await client.patch(f"{BASE}/f1/global")
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_patch_global_state_unknown_flag(self, client: AsyncClient) -> None:
        """Unknown keys answer 404."""
        response = await client.patch(f"{BASE}/missing/global", params={"is_enabled": "true"})
        assert response.status_code == 404
        assert response.json()["detail"] == "Feature 'missing' not found"

    @pytest.mark.asyncio
    async def test_add_and_remove_override(self, client: AsyncClient) -> None:
        """Overrides can be added, take effect, and be removed."""
        await _create(client)

        added = await client.post(
            f"{BASE}/f1/overrides",
            json={"override_type": "User", "target_id": "user123", "is_enabled": True},
        )
        assert added.status_code == 204
        assert (await client.get(f"{BASE}/f1/evaluate", params={"user_id": "user123"})).json()[
            "enabled"
        ] is True

        removed = await client.delete(
            f"{BASE}/f1/overrides", params={"type": "User", "target_id": "user123"}
        )
        assert removed.status_code == 204
        evaluated = await client.get(f"{BASE}/f1/evaluate", params={"user_id": "user123"})
        assert evaluated.json()["enabled"] is False
        assert evaluated.headers["x-cache"] == "MISS"

    @pytest.mark.asyncio
    async def test_add_override_unknown_flag(self, client: AsyncClient) -> None:
        """Adding an override to an unknown flag is a 404."""
        response = await client.post(
            f"{BASE}/missing/overrides",
            json={"override_type": "Region", "target_id": "IN", "is_enabled": True},
        )
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_add_override_invalid_type(self, client: AsyncClient) -> None:
        """Unknown override types fail validation."""
        await _create(client)
        response = await client.post(
            f"{BASE}/f1/overrides",
            json={"override_type": "Tenant", "target_id": "t1", "is_enabled": True},
        )
        assert response.status_code == 422

    @pytest.mark.asyncio
    async def test_remove_missing_override(self, client: AsyncClient) -> None:
        """Removing an absent override is a 404 problem."""
        await _create(client)

        response = await client.delete(
            f"{BASE}/f1/overrides", params={"type": "Region", "target_id": "IN"}
        )

        assert response.status_code == 404
        body = response.json()
        assert body["type"] == "feature-override-not-found"
        assert body["detail"] == "Override not found"
        assert body["override_type"] == OverrideKind.REGION.value


@pytest.mark.unit
class TestEvaluateEndpoint:
    @pytest.mark.asyncio
    async def test_miss_then_hit(self, client: AsyncClient) -> None:
        """The first evaluation is a MISS, the repeat a HIT with the same decision."""
        await _create(
            client,
            "NewDashboard",
            overrides=[{"override_type": "Region", "target_id": "IN", "is_enabled": True}],
        )

        first = await client.get(f"{BASE}/NewDashboard/evaluate", params={"region": "IN"})
        second = await client.get(f"{BASE}/NewDashboard/evaluate", params={"region": "IN"})

        assert first.json() == {"key": "NewDashboard", "enabled": True}
        assert first.headers["x-cache"] == "MISS"
        assert second.json() == first.json()
        assert second.headers["x-cache"] == "HIT"

    @pytest.mark.asyncio
    async def test_fallback_to_global(self, client: AsyncClient) -> None:
        """Unmatched regions use the global state."""
        await _create(
            client,
            "NewDashboard",
            overrides=[{"override_type": "Region", "target_id": "IN", "is_enabled": True}],
        )

        response = await client.get(f"{BASE}/NewDashboard/evaluate", params={"region": "US"})

        assert response.json()["enabled"] is False

    @pytest.mark.asyncio
    async def test_unknown_flag(self, client: AsyncClient) -> None:
        """Evaluating an unknown key is a 404, echoing the request id."""
        response = await client.get(
            f"{BASE}/missing/evaluate", headers={"X-Request-ID": "req-404"}
        )

        assert response.status_code == 404
        body = response.json()
        assert body["detail"] == "Feature 'missing' not found"
        assert body["request_id"] == "req-404"
        assert body["instance"] == f"{BASE}/missing/evaluate"
        assert response.headers["x-request-id"] == "req-404"

    @pytest.mark.asyncio
    async def test_cache_failure_is_500_not_false(self, app, client: AsyncClient) -> None:
        """A cache that gives up after retries fails the request."""
        await _create(client)
        failing = AsyncMock()
        failing.get.side_effect = RetryError(ConnectionError("redis down"), 3)
        app.dependency_overrides[get_evaluation_cache] = lambda: failing

        response = await client.get(f"{BASE}/f1/evaluate")

        assert response.status_code == 500
        body = response.json()
        assert body["type"] == "internal-error"
        assert "enabled" not in body
        assert "redis" not in body["detail"]
