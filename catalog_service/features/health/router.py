"""Health check endpoints.

Endpoints:
    GET /health       - Dependency status; 503 when an enabled DB or Redis is not up
    GET /health/live  - Liveness probe, no dependency checks
"""

from __future__ import annotations

from datetime import UTC, datetime
import logging
from typing import Any

from fastapi import APIRouter, status
from fastapi.responses import JSONResponse

from catalog_service.core.dependencies import ServicesDep
from catalog_service.infra.metrics.tracking import track_dependency_check, update_dependency_health
from catalog_service.utils.hashing import canonical_datetime

router = APIRouter(prefix="/health", tags=["health"])
logger = logging.getLogger(__name__)


@router.get("", summary="Dependency health")
async def health(services: ServicesDep) -> JSONResponse:
    redis = services.redis
    if redis.enabled:
        async with track_dependency_check("redis"):
            await redis.health_check()

    db_health = services.database.health()
    redis_health = redis.health()
    update_dependency_health("database", "database", db_health.is_healthy)
    update_dependency_health("redis", "cache", redis_health.is_healthy)

    ok = db_health.is_healthy and redis_health.is_healthy
    if not ok:
        logger.warning(
            "Health check degraded",
            extra={"db": db_health.status.value, "redis": redis_health.status.value},
        )

    body: dict[str, Any] = {
        "status": "ok" if ok else "degraded",
        "timestamp": canonical_datetime(datetime.now(UTC)),
        "uptimeSeconds": int(services.uptime_seconds()),
        "services": {
            "db": db_health.to_dict(),
            "redis": redis_health.to_dict(),
            "externalA": services.external_a.health(),
        },
    }
    return JSONResponse(
        content=body,
        status_code=status.HTTP_200_OK if ok else status.HTTP_503_SERVICE_UNAVAILABLE,
    )


@router.get("/live", summary="Liveness probe")
async def liveness() -> dict[str, str]:
    return {"status": "ok"}
