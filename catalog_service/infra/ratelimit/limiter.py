"""Redis-backed fixed-window rate limiting."""

from __future__ import annotations

from dataclasses import dataclass
import logging
import time
from typing import TYPE_CHECKING

from redis.exceptions import RedisError

from catalog_service.infra.metrics.tracking import (
    track_rate_limit_check,
    track_rate_limiter_redis_error,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from catalog_service.core.settings.ratelimit import RateLimitSettings
    from catalog_service.infra.cache.redis import RedisCache

logger = logging.getLogger(__name__)

# Count the request and start the window TTL on the first hit
RATE_LIMIT_SCRIPT = """
local current = redis.call("INCR", KEYS[1])
if current == 1 then
    redis.call("EXPIRE", KEYS[1], ARGV[1])
end
local ttl = redis.call("TTL", KEYS[1])
return {current, ttl}
"""


@dataclass(frozen=True)
class RateLimitDecision:
    """Outcome of a rate limit check.

    Attributes:
        enforced: False when the limiter was bypassed (Redis unavailable or failing).
        allowed: Whether the request may proceed.
        limit: Requests allowed per window.
        remaining: Requests left in the current window.
        reset_seconds: Seconds until the window resets.
    """

    enforced: bool
    allowed: bool
    limit: int = 0
    remaining: int = 0
    reset_seconds: int = 0

    @property
    def retry_after(self) -> int:
        return max(1, self.reset_seconds)

    def headers(self) -> dict[str, str]:
        if not self.enforced:
            return {"x-rate-limit": "BYPASS"}
        headers = {
            "x-rate-limit": "ON",
            "x-rate-limit-limit": str(self.limit),
            "x-rate-limit-remaining": str(self.remaining),
            "x-rate-limit-reset-seconds": str(self.reset_seconds),
        }
        if not self.allowed:
            headers["retry-after"] = str(self.retry_after)
        return headers


BYPASS = RateLimitDecision(enforced=False, allowed=True)


class RateLimiter:
    """Fixed-window request counter keyed by client and window bucket.

    Keys have the form ``{prefix}:{floor(now / window)}:{client}`` so each
    window starts a fresh counter and old counters expire on their own. The
    limiter fails open: when Redis is unavailable or errors, the request is
    allowed and the decision is marked as not enforced.

    Example:
            limiter = RateLimiter(redis_cache, get_rate_limit_settings())
        decision = await limiter.check("203.0.113.7")
        if not decision.allowed:
            raise RateLimitException(retry_after=decision.retry_after)
    """

    def __init__(
        self,
        redis: RedisCache,
        settings: RateLimitSettings,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.redis = redis
        self.settings = settings
        self._clock = clock

    @property
    def enabled(self) -> bool:
        return self.settings.enabled

    def is_exempt(self, method: str, path: str) -> bool:
        if method == "OPTIONS":
            return True
        return any(
            path == exempt or path.startswith(f"{exempt}/")
            for exempt in self.settings.exempt_paths
        )

    def make_key(self, client: str) -> str:
        bucket = int(self._clock() // self.settings.window_seconds)
        return f"{self.settings.key_prefix}:{bucket}:{client}"

    async def check(self, client: str) -> RateLimitDecision:
        """Count one request for ``client`` in the current window."""
        if not self.redis.is_ready:
            track_rate_limit_check("bypass")
            return BYPASS

        window = self.settings.window_seconds
        limit = self.settings.max_requests
        try:
            count, ttl = await self.redis.eval(RATE_LIMIT_SCRIPT, [self.make_key(client)], [window])
        except RedisError as e:
            track_rate_limiter_redis_error(type(e).__name__)
            track_rate_limit_check("bypass")
            logger.warning(
                "Rate limiter failed; bypassing",
                extra={"client": client, "error": str(e)},
            )
            return BYPASS

        count = int(count)
        ttl = int(ttl) if int(ttl) >= 0 else window
        allowed = count <= limit
        track_rate_limit_check("allowed" if allowed else "rejected")
        return RateLimitDecision(
            enforced=True,
            allowed=allowed,
            limit=limit,
            remaining=max(0, limit - count),
            reset_seconds=max(0, ttl),
        )
