"""Application lifespan management.

Startup Order:
1. Core (logging, application info metric)
2. Service container (database, Redis, background tasks)

Shutdown Order: Reverse of startup.
"""

from __future__ import annotations

from contextlib import asynccontextmanager
import logging
from typing import TYPE_CHECKING

from catalog_service.app.container import ServiceContainer
from catalog_service.infra.logging.config import setup_logging
from catalog_service.infra.metrics.prometheus import application_info

if TYPE_CHECKING:
    from collections.abc import AsyncIterator

    from fastapi import FastAPI

    from catalog_service.core.settings import Settings

logger = logging.getLogger(__name__)


def _startup_core(settings: Settings) -> None:
    app = settings.app
    setup_logging(log_settings=settings.logging, service_name=app.service_name)
    logger.info(
        "Application starting",
        extra={"service": app.service_name, "environment": app.environment},
    )
    application_info.labels(
        version=app.version,
        environment=app.environment,
        service_name=app.service_name,
    ).set(1)


@asynccontextmanager
async def lifespan(app: FastAPI) -> AsyncIterator[None]:
    """Build, start and finally stop the application's service container.

    A container already placed on ``app.state.services`` (tests) is started
    and stopped as is; otherwise one is built from ``app.state.settings``.

    Args:
        app: FastAPI application instance.

    Yields:
        None during application runtime.
    """
    settings: Settings = app.state.settings
    _startup_core(settings)

    services: ServiceContainer | None = getattr(app.state, "services", None)
    if services is None:
        services = ServiceContainer.build(settings)
        app.state.services = services

    await services.start()
    logger.info(
        "Application startup complete - listening on %s:%s",
        settings.app.host,
        settings.app.port,
        extra={
            "service": settings.app.service_name,
            "environment": settings.app.environment,
            "api_prefix": settings.app.api_prefix,
        },
    )

    try:
        yield
    finally:
        logger.info("Application shutting down", extra={"service": settings.app.service_name})
        await services.stop()
        logger.info("Application shutdown complete")
