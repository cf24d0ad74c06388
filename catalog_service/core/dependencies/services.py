"""Service dependencies for FastAPI.

Components live on ``app.state.services`` (built by the lifespan); these
dependencies hand them to route handlers.
"""

from __future__ import annotations

from typing import Annotated

from fastapi import Depends, Request

from catalog_service.app.container import ServiceContainer
from catalog_service.core.settings import Settings
from catalog_service.features.products.service import ProductService
from catalog_service.infra.cache import CacheKeyVersioner
from catalog_service.infra.external import ExternalApiService
from catalog_service.infra.resilience import InFlightDeduplicator


def get_services(request: Request) -> ServiceContainer:
    """Get the service container of the running application.

    Raises:
        RuntimeError: If the lifespan has not built the container.
    """
    services = getattr(request.app.state, "services", None)
    if services is None:
        msg = "Service container not initialized; is the lifespan running?"
        raise RuntimeError(msg)
    return services


def get_request_settings(request: Request) -> Settings:
    return request.app.state.settings


def get_product_service(
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> ProductService:
    """Get the cached, deduplicated product service.

    Example:
        ```python
        @router.get("/products")
        async def list_products(service: ProductServiceDep): ...
        ```
    """
    return services.products


def get_cache_versioner(
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> CacheKeyVersioner:
    return services.versioner


def get_external_api_service(
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> ExternalApiService:
    return services.external_a


def get_deduplicator(
    services: Annotated[ServiceContainer, Depends(get_services)],
) -> InFlightDeduplicator:
    return services.dedupe


ServicesDep = Annotated[ServiceContainer, Depends(get_services)]
SettingsDep = Annotated[Settings, Depends(get_request_settings)]
ProductServiceDep = Annotated[ProductService, Depends(get_product_service)]
CacheVersionerDep = Annotated[CacheKeyVersioner, Depends(get_cache_versioner)]
ExternalApiServiceDep = Annotated[ExternalApiService, Depends(get_external_api_service)]
DeduplicatorDep = Annotated[InFlightDeduplicator, Depends(get_deduplicator)]
