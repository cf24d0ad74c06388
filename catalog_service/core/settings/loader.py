"""LRU-cached settings loaders.

Settings are loaded and validated once, then cached for the lifetime of the
process.

Usage:
    from catalog_service.core.settings.loader import get_cache_settings

    settings = get_cache_settings()  # First call: loads and validates
    settings = get_cache_settings()  # Subsequent calls: cached instance

Testing:
    get_cache_settings.cache_clear()
"""

from __future__ import annotations

from functools import lru_cache

from .app import AppSettings
from .cache import CacheSettings
from .database import DatabaseSettings
from .external import ExternalApiSettings
from .logs import LoggingSettings
from .pagination import PaginationSettings
from .ratelimit import RateLimitSettings
from .redis import RedisSettings
from .unified import get_settings


@lru_cache(maxsize=1)
def get_app_settings() -> AppSettings:
    return AppSettings()


@lru_cache(maxsize=1)
def get_db_settings() -> DatabaseSettings:
    return DatabaseSettings()


@lru_cache(maxsize=1)
def get_redis_settings() -> RedisSettings:
    return RedisSettings()


@lru_cache(maxsize=1)
def get_cache_settings() -> CacheSettings:
    return CacheSettings()


@lru_cache(maxsize=1)
def get_external_api_settings() -> ExternalApiSettings:
    return ExternalApiSettings()


@lru_cache(maxsize=1)
def get_rate_limit_settings() -> RateLimitSettings:
    return RateLimitSettings()


@lru_cache(maxsize=1)
def get_pagination_settings() -> PaginationSettings:
    return PaginationSettings()


@lru_cache(maxsize=1)
def get_logging_settings() -> LoggingSettings:
    return LoggingSettings()


def clear_all_caches() -> None:
    """Drop every cached settings instance (used by tests and the CLI)."""
    for loader in (
        get_app_settings,
        get_db_settings,
        get_redis_settings,
        get_cache_settings,
        get_external_api_settings,
        get_rate_limit_settings,
        get_pagination_settings,
        get_logging_settings,
        get_settings,
    ):
        loader.cache_clear()
