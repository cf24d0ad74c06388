"""HTTP middleware: request IDs, metrics and rate limiting."""

from __future__ import annotations

from catalog_service.app.middleware.metrics import MetricsMiddleware
from catalog_service.app.middleware.rate_limit import RateLimitMiddleware
from catalog_service.app.middleware.request_id import RequestIDMiddleware

__all__ = ["MetricsMiddleware", "RateLimitMiddleware", "RequestIDMiddleware"]
