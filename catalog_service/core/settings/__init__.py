"""Modular Pydantic Settings v2 configuration.

One frozen settings class per domain, each with its own environment prefix:
APP_, DB_, REDIS_, CACHE_, EXTERNAL_A_, RATE_LIMIT_, PAGINATION_, LOG_.

Import settings via cached loaders:
    from catalog_service.core.settings import get_cache_settings

Or the unified, cross-validated aggregate:
    from catalog_service.core.settings import get_settings
"""

from __future__ import annotations

from .app import AppSettings
from .cache import CacheSettings
from .database import DatabaseSettings
from .external import ExternalApiSettings
from .loader import (
    clear_all_caches,
    get_app_settings,
    get_cache_settings,
    get_db_settings,
    get_external_api_settings,
    get_logging_settings,
    get_pagination_settings,
    get_rate_limit_settings,
    get_redis_settings,
)
from .logs import LoggingSettings
from .pagination import PaginationSettings
from .ratelimit import RateLimitSettings
from .redis import RedisSettings
from .unified import Settings, get_settings

__all__ = [
    "AppSettings",
    "CacheSettings",
    "DatabaseSettings",
    "ExternalApiSettings",
    "LoggingSettings",
    "PaginationSettings",
    "RateLimitSettings",
    "RedisSettings",
    "Settings",
    "clear_all_caches",
    "get_app_settings",
    "get_cache_settings",
    "get_db_settings",
    "get_external_api_settings",
    "get_logging_settings",
    "get_pagination_settings",
    "get_rate_limit_settings",
    "get_redis_settings",
    "get_settings",
]
