"""Unified settings composition with cross-domain validation.

Usage:
    from catalog_service.core.settings import get_settings

    settings = get_settings()
    print(settings.cache.lock_ttl_ms)
    print(settings.redis.enabled)

Each nested settings class still loads from its own environment prefix
(APP_, DB_, REDIS_, ...). Rules that span domains live here.
"""

from __future__ import annotations

from functools import lru_cache

from pydantic import BaseModel, ConfigDict, Field, model_validator

from .app import AppSettings
from .cache import CacheSettings
from .database import DatabaseSettings
from .external import ExternalApiSettings
from .logs import LoggingSettings
from .pagination import PaginationSettings
from .ratelimit import RateLimitSettings
from .redis import RedisSettings


class Settings(BaseModel):
    """All domain settings for one application instance.

    Example:
        settings = Settings(
            app=AppSettings(environment="test"),
            redis=RedisSettings(enabled=False),
        )
    """

    model_config = ConfigDict(frozen=True)

    app: AppSettings = Field(default_factory=AppSettings)
    db: DatabaseSettings = Field(default_factory=DatabaseSettings)
    redis: RedisSettings = Field(default_factory=RedisSettings)
    cache: CacheSettings = Field(default_factory=CacheSettings)
    external_a: ExternalApiSettings = Field(default_factory=ExternalApiSettings)
    rate_limit: RateLimitSettings = Field(default_factory=RateLimitSettings)
    pagination: PaginationSettings = Field(default_factory=PaginationSettings)
    logging: LoggingSettings = Field(default_factory=LoggingSettings)

    @model_validator(mode="after")
    def validate_cross_domain(self) -> Settings:
        """Reject combinations that cannot work together."""
        if self.rate_limit.enabled and not self.redis.enabled:
            msg = "RATE_LIMIT_ENABLED=true requires REDIS_ENABLED=true (Redis-based limiter)"
            raise ValueError(msg)
        if self.cache.enabled and self.cache.admin_enabled and self.app.is_production:
            msg = "CACHE_ADMIN_ENABLED must not be true in production"
            raise ValueError(msg)
        return self


@lru_cache(maxsize=1)
def get_settings() -> Settings:
    """Get unified settings instance (cached).

    Tests clear the cache with ``get_settings.cache_clear()``.
    """
    return Settings()
