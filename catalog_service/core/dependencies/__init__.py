"""FastAPI dependencies resolving components from the service container."""

from __future__ import annotations

from catalog_service.core.dependencies.services import (
    CacheVersionerDep,
    DeduplicatorDep,
    ExternalApiServiceDep,
    ProductServiceDep,
    ServicesDep,
    SettingsDep,
    get_cache_versioner,
    get_deduplicator,
    get_external_api_service,
    get_product_service,
    get_request_settings,
    get_services,
)

__all__ = [
    "CacheVersionerDep",
    "DeduplicatorDep",
    "ExternalApiServiceDep",
    "ProductServiceDep",
    "ServicesDep",
    "SettingsDep",
    "get_cache_versioner",
    "get_deduplicator",
    "get_external_api_service",
    "get_product_service",
    "get_request_settings",
    "get_services",
]
