"""API router for External API A.

Endpoints:
    GET /external-a/sync    - Fetch through the circuit breaker (never fails)
    GET /external-a/health  - Breaker state snapshot

Concurrent sync calls share one upstream request.
"""

from __future__ import annotations

import logging
from typing import Any

from fastapi import APIRouter
from fastapi.responses import JSONResponse

from catalog_service.core.dependencies import DeduplicatorDep, ExternalApiServiceDep

router = APIRouter(prefix="/external-a", tags=["external-a"])
logger = logging.getLogger(__name__)

SYNC_DEDUPE_KEY = "external-a:sync"


@router.get(
    "/sync",
    summary="Sync from External API A",
    description="Live payload, or the last good payload / a placeholder tagged as fallback.",
)
async def sync_external_a(
    service: ExternalApiServiceDep,
    dedupe: DeduplicatorDep,
) -> JSONResponse:
    shared = await dedupe.dedupe(SYNC_DEDUPE_KEY, service.fetch, namespace=SYNC_DEDUPE_KEY)
    sync = shared.value
    return JSONResponse(
        content=sync.to_dict(),
        headers={
            "x-external-a-source": sync.result.source,
            "x-dedupe": "HIT" if shared.was_deduped else "MISS",
        },
    )


@router.get("/health", summary="External API A breaker health")
async def external_a_health(service: ExternalApiServiceDep) -> dict[str, Any]:
    return service.health()
