"""FastAPI application factory."""

from __future__ import annotations

from typing import TYPE_CHECKING

from fastapi import FastAPI

from catalog_service.app.exception_handlers import configure_exception_handlers
from catalog_service.app.lifespan import lifespan
from catalog_service.app.middleware import (
    MetricsMiddleware,
    RateLimitMiddleware,
    RequestIDMiddleware,
)
from catalog_service.app.router import setup_routers
from catalog_service.core.settings import get_settings

if TYPE_CHECKING:
    from catalog_service.app.container import ServiceContainer
    from catalog_service.core.settings import Settings


def create_app(
    settings: Settings | None = None,
    services: ServiceContainer | None = None,
) -> FastAPI:
    """Create and configure FastAPI application.

    Args:
        settings: Settings override; defaults to the cached unified settings.
        services: Pre-built service container (tests); the lifespan builds
            one from ``settings`` when omitted.

    Returns:
        Configured FastAPI application instance.
    """
    settings = settings or get_settings()
    app_settings = settings.app

    app = FastAPI(
        title=app_settings.title,
        version=app_settings.version,
        debug=app_settings.debug,
        docs_url=app_settings.docs_url,
        openapi_url=app_settings.openapi_url,
        lifespan=lifespan,
    )
    app.state.settings = settings
    if services is not None:
        app.state.services = services

    # Configure exception handlers (must be before middleware)
    configure_exception_handlers(app)

    # Last added runs first: request ID -> metrics -> rate limit -> routes
    app.add_middleware(RateLimitMiddleware, api_prefix=app_settings.api_prefix)
    app.add_middleware(MetricsMiddleware)
    app.add_middleware(RequestIDMiddleware)

    setup_routers(app, app_settings)

    return app
