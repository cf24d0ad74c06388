"""Metrics middleware for HTTP request instrumentation with trace correlation."""

from __future__ import annotations

import time
from typing import TYPE_CHECKING

from opentelemetry import trace
from starlette.middleware.base import BaseHTTPMiddleware

from catalog_service.infra.metrics.prometheus import (
    http_request_duration_seconds,
    http_requests_in_progress,
    http_requests_total,
)

if TYPE_CHECKING:
    from collections.abc import Callable

    from fastapi import Request, Response


def _current_trace_id() -> str | None:
    span = trace.get_current_span()
    if span and span.get_span_context().is_valid:
        return format(span.get_span_context().trace_id, "032x")
    return None


class MetricsMiddleware(BaseHTTPMiddleware):
    """Collect HTTP request counts, durations and in-progress gauges.

    Labels use the matched route template (``/products/stats``) rather than
    the raw path to keep cardinality low. When a span is active its trace ID
    is attached as an exemplar.
    """

    async def dispatch(self, request: Request, call_next: Callable) -> Response:
        endpoint = request.url.path
        method = request.method

        http_requests_in_progress.labels(method=method, endpoint=endpoint).inc()
        start_time = time.perf_counter()
        status_code = 500  # Default to error in case of exception

        try:
            response = await call_next(request)
            status_code = response.status_code
            response.headers["X-Process-Time"] = f"{time.perf_counter() - start_time:.6f}"
            return response
        finally:
            duration = time.perf_counter() - start_time
            route = request.scope.get("route")
            template = getattr(route, "path", None) or endpoint

            trace_id = _current_trace_id()
            exemplar = {"trace_id": trace_id} if trace_id else None
            http_request_duration_seconds.labels(method=method, endpoint=template).observe(
                duration, exemplar=exemplar
            )
            http_requests_total.labels(
                method=method, endpoint=template, status=status_code
            ).inc(exemplar=exemplar)

            http_requests_in_progress.labels(method=method, endpoint=endpoint).dec()
