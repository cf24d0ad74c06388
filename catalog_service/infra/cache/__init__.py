"""Redis cache infrastructure: client, versioned keys and stampede-protected reads."""

from __future__ import annotations

from catalog_service.infra.cache.redis import RELEASE_LOCK_SCRIPT, RedisCache
from catalog_service.infra.cache.stampede import CacheResult, CacheStatus, StampedeProtectedCache
from catalog_service.infra.cache.versioning import PRODUCTS_CACHE_VERSION_KEY, CacheKeyVersioner

__all__ = [
    "PRODUCTS_CACHE_VERSION_KEY",
    "RELEASE_LOCK_SCRIPT",
    "CacheKeyVersioner",
    "CacheResult",
    "CacheStatus",
    "RedisCache",
    "StampedeProtectedCache",
]
