"""Rate limiting middleware for FastAPI."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from starlette.datastructures import MutableHeaders
from starlette.responses import JSONResponse

from catalog_service.app.exception_handlers import problem_content
from catalog_service.core.exceptions import RateLimitException
from catalog_service.infra.metrics.tracking import track_rate_limit_rejection

if TYPE_CHECKING:
    from starlette.types import ASGIApp, Message, Receive, Scope, Send

    from catalog_service.infra.ratelimit.limiter import RateLimitDecision, RateLimiter

logger = logging.getLogger(__name__)


class RateLimitMiddleware:
    """Pure ASGI middleware applying the fixed-window limiter per client IP.

    The limiter is looked up on ``app.state.services`` at request time
    because the lifespan builds it after the middleware stack exists.
    Every limited response carries ``x-rate-limit`` headers; rejected
    requests get a 429 problem document with ``retry-after``.

    Example:
            app.add_middleware(RateLimitMiddleware, api_prefix="/api")
    """

    def __init__(self, app: ASGIApp, api_prefix: str = "") -> None:
        self.app = app
        self.api_prefix = api_prefix.rstrip("/")

    @staticmethod
    def _get_limiter(scope: Scope) -> RateLimiter | None:
        app = scope.get("app")
        services = getattr(getattr(app, "state", None), "services", None)
        return getattr(services, "rate_limiter", None)

    @staticmethod
    def _client_key(scope: Scope) -> str:
        client = scope.get("client")
        return client[0] if client else "unknown"

    def _route_path(self, path: str) -> str:
        if self.api_prefix and path.startswith(self.api_prefix):
            return path[len(self.api_prefix) :] or "/"
        return path

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        limiter = self._get_limiter(scope)
        path = scope.get("path", "")
        method = scope.get("method", "")
        if (
            limiter is None
            or not limiter.enabled
            or limiter.is_exempt(method, self._route_path(path))
        ):
            await self.app(scope, receive, send)
            return

        client = self._client_key(scope)
        decision = await limiter.check(client)

        if not decision.allowed:
            logger.warning(
                "Rate limit exceeded",
                extra={
                    "client": client,
                    "path": path,
                    "limit": decision.limit,
                    "retry_after": decision.retry_after,
                },
            )
            track_rate_limit_rejection(path)
            await self._send_rate_limit_response(decision, scope, receive, send)
            return

        async def send_with_headers(message: Message) -> None:
            if message["type"] == "http.response.start":
                headers = MutableHeaders(scope=message)
                for name, value in decision.headers().items():
                    headers[name] = value
            await send(message)

        await self.app(scope, receive, send_with_headers)

    async def _send_rate_limit_response(
        self,
        decision: RateLimitDecision,
        scope: Scope,
        receive: Receive,
        send: Send,
    ) -> None:
        exc = RateLimitException(retry_after=decision.retry_after)
        request_id = scope.get("state", {}).get("request_id")
        response = JSONResponse(
            problem_content(exc, instance=scope.get("path", ""), request_id=request_id),
            status_code=exc.status_code,
            headers=decision.headers(),
        )
        await response(scope, receive, send)
