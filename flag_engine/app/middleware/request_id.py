"""Request ID middleware for per-request tracking.

This middleware:
1. Extracts the request ID from the X-Request-ID header if present
2. Generates a new UUID if the header is missing
3. Stores the ID in request.state.request_id
4. Adds the ID to the logging context
5. Echoes X-Request-ID on the response
6. Clears the logging context once the request completes
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from starlette.datastructures import MutableHeaders

from flag_engine.infra.logging.context import clear_log_context, set_log_context

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

HEADER_NAME = "x-request-id"


class RequestIDMiddleware:
    """Attach a unique request ID to every HTTP request.

    Pure ASGI implementation, so it also wraps responses produced by
    exception handlers.

    Usage:
        app = FastAPI()
        app.add_middleware(RequestIDMiddleware)
    """

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = self._extract(scope) or str(uuid.uuid4())
        scope.setdefault("state", {})["request_id"] = request_id
        set_log_context(request_id=request_id)

        async def send_with_header(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers.append(HEADER_NAME, request_id)
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
        finally:
            clear_log_context()

    @staticmethod
    def _extract(scope: Scope) -> str | None:
        for name, value in scope.get("headers", []):
            if name == HEADER_NAME.encode("latin-1"):
                return value.decode("latin-1").strip() or None
        return None
