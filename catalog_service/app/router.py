"""Router registry and setup."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from catalog_service.features.cache_admin import router as cache_admin_router
from catalog_service.features.external import router as external_router
from catalog_service.features.health import router as health_router
from catalog_service.features.metrics import router as metrics_router
from catalog_service.features.products.router import router as products_router

if TYPE_CHECKING:
    from fastapi import FastAPI

    from catalog_service.core.settings.app import AppSettings

logger = logging.getLogger(__name__)


def setup_routers(app: FastAPI, app_settings: AppSettings) -> None:
    """Register all feature routers with the application.

    Args:
        app: FastAPI application instance.
        app_settings: Application settings providing the API prefix.
    """
    api_prefix = app_settings.api_prefix

    # Metrics endpoint has no prefix - always at /metrics
    app.include_router(metrics_router)

    app.include_router(health_router, prefix=api_prefix)
    app.include_router(products_router, prefix=api_prefix)
    app.include_router(external_router, prefix=api_prefix)
    app.include_router(cache_admin_router, prefix=api_prefix)

    logger.debug("Routers registered", extra={"api_prefix": api_prefix})
