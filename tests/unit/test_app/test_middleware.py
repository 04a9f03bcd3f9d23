"""Tests for RequestIDMiddleware."""

from __future__ import annotations

import uuid

import pytest
from fastapi import FastAPI, Request
from httpx import ASGITransport, AsyncClient

from flag_engine.app.middleware import RequestIDMiddleware
from flag_engine.infra.logging.context import get_log_context


@pytest.fixture
def echo_app() -> FastAPI:
    app = FastAPI()
    app.add_middleware(RequestIDMiddleware)

    @app.get("/echo")
    async def echo(request: Request) -> dict:
        return {"state": request.state.request_id, "log_context": get_log_context().get("request_id")}

    return app


@pytest.mark.unit
class TestRequestIDMiddleware:
    @pytest.mark.asyncio
    async def test_uses_incoming_header(self, echo_app: FastAPI) -> None:
        """A supplied X-Request-ID is stored, logged and echoed."""
        async with AsyncClient(transport=ASGITransport(app=echo_app), base_url="http://test") as ac:
            response = await ac.get("/echo", headers={"X-Request-ID": "abc-123"})

        assert response.headers["x-request-id"] == "abc-123"
        assert response.json() == {"state": "abc-123", "log_context": "abc-123"}

    @pytest.mark.asyncio
    async def test_generates_id_when_missing(self, echo_app: FastAPI) -> None:
        """Requests without the header get a UUID."""
        async with AsyncClient(transport=ASGITransport(app=echo_app), base_url="http://test") as ac:
            response = await ac.get("/echo")

        generated = response.headers["x-request-id"]
        assert uuid.UUID(generated)
        assert response.json()["state"] == generated

    @pytest.mark.asyncio
    async def test_context_cleared_after_request(self, echo_app: FastAPI) -> None:
        """The log context does not leak past the request."""
        async with AsyncClient(transport=ASGITransport(app=echo_app), base_url="http://test") as ac:
            await ac.get("/echo", headers={"X-Request-ID": "abc-123"})

        assert "request_id" not in get_log_context()
