"""Redis fixed-window rate limiting."""

from __future__ import annotations

from catalog_service.infra.ratelimit.limiter import (
    BYPASS,
    RATE_LIMIT_SCRIPT,
    RateLimitDecision,
    RateLimiter,
)

__all__ = ["BYPASS", "RATE_LIMIT_SCRIPT", "RateLimitDecision", "RateLimiter"]
