"""Admin endpoint invalidating the products cache.

Endpoints:
    POST /admin/cache/products/invalidate - Bump the products cache version

Invalidation is O(1): the version counter moves forward and every key built
under the old version becomes unreachable, expiring on its own TTL.
"""

from __future__ import annotations

import logging

from fastapi import APIRouter
from pydantic import BaseModel
from redis.exceptions import RedisError

from catalog_service.core.dependencies import CacheVersionerDep, SettingsDep
from catalog_service.core.exceptions import (
    ForbiddenException,
    NotFoundException,
    ServiceUnavailableException,
)
from catalog_service.core.schemas import ProblemDetails

router = APIRouter(prefix="/admin/cache", tags=["cache-admin"])
logger = logging.getLogger(__name__)


class InvalidateResponse(BaseModel):
    ok: bool
    version: int


@router.post(
    "/products/invalidate",
    response_model=InvalidateResponse,
    summary="Invalidate products cache",
    responses={
        403: {"model": ProblemDetails, "description": "Not allowed in production"},
        404: {"model": ProblemDetails, "description": "Cache admin disabled"},
        503: {"model": ProblemDetails, "description": "Cache unavailable"},
    },
)
async def invalidate_products_cache(
    versioner: CacheVersionerDep,
    settings: SettingsDep,
) -> InvalidateResponse:
    if not settings.cache.admin_enabled:
        raise NotFoundException("Cache admin disabled", type="cache-admin-disabled")
    if settings.app.is_production:
        raise ForbiddenException("Not allowed in production")

    try:
        version = await versioner.bump_version()
    except (RuntimeError, RedisError) as e:
        raise ServiceUnavailableException(
            "Cache is unavailable", extra={"error": str(e)},
        ) from e

    logger.info("Products cache invalidated", extra={"version": version})
    return InvalidateResponse(ok=True, version=version)
