"""Prometheus metrics endpoint.

Endpoints:
    GET /metrics - Prometheus scrape endpoint (text exposition format)

Metrics Exposed:
    HTTP: http_requests_total, http_request_duration_seconds, http_requests_in_progress
    Cache: cache_results_total (by namespace and HIT/MISS/WAIT/BYPASS),
        cache_operation_duration_seconds, cache_lock_wait_seconds,
        cache_version_bumps_total, inflight_dedupe_total
    Resilience: circuit_breaker_*, retry_*
    Rate limiting: rate_limit_checks_total, rate_limit_rejections_total
"""

from __future__ import annotations

from fastapi import APIRouter, Response
from prometheus_client import CONTENT_TYPE_LATEST, generate_latest

from catalog_service.infra.metrics.prometheus import REGISTRY

router = APIRouter(tags=["observability"])


@router.get("/metrics", include_in_schema=False)
async def metrics() -> Response:
    return Response(content=generate_latest(REGISTRY), media_type=CONTENT_TYPE_LATEST)
