"""Request ID middleware for per-request tracking.

Request IDs are unique per HTTP request within this service and correlate
every log record emitted while the request is handled.

This middleware:
1. Extracts request ID from X-Request-ID header if present
2. Generates a new UUID if header is missing
3. Stores the ID in request.state.request_id
4. Adds the ID to logging context
5. Includes X-Request-ID in response headers
6. Cleans up logging context after request completes
"""

from __future__ import annotations

from typing import TYPE_CHECKING
import uuid

from starlette.datastructures import MutableHeaders

from catalog_service.infra.logging.context import clear_log_context, set_log_context

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send


class RequestIDMiddleware:
    """Add unique request ID to all requests for correlation.

    Pure ASGI middleware so the ID is set before any other middleware logs.

    Usage:
            app = FastAPI()
        app.add_middleware(RequestIDMiddleware)
    """

    header_name = "x-request-id"

    def __init__(self, app: ASGIApp) -> None:
        self.app = app

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        request_id = self._extract(scope) or str(uuid.uuid4())
        scope.setdefault("state", {})["request_id"] = request_id
        set_log_context(
            request_id=request_id,
            method=scope.get("method", ""),
            path=scope.get("path", ""),
        )

        async def send_with_header(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                headers.append(self.header_name, request_id)
            await send(message)

        try:
            await self.app(scope, receive, send_with_header)
        finally:
            clear_log_context()

    def _extract(self, scope: Scope) -> str | None:
        for name, value in scope.get("headers", []):
            if name == self.header_name.encode("latin-1"):
                return value.decode("latin-1") or None
        return None
