"""Read-through cache settings."""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class CacheSettings(BaseSettings):
    """Products cache, stampede lock and admin invalidation settings.

    Environment variables use CACHE_ prefix.
    Example: CACHE_LOCK_TTL_MS=2000, CACHE_PRODUCTS_LIST_TTL_SECONDS=30
    """

    enabled: bool = Field(default=True, description="Enable the Redis read-through cache")
    lock_ttl_ms: int = Field(
        default=2000,
        ge=1,
        le=60_000,
        description="Rebuild lock TTL in milliseconds (bounds staleness from a crashed holder)",
    )
    products_list_ttl_seconds: int = Field(
        default=30, ge=1, le=86_400, description="TTL of cached product list pages",
    )
    products_stats_ttl_seconds: int = Field(
        default=60, ge=1, le=86_400, description="TTL of cached product stats",
    )
    admin_enabled: bool = Field(
        default=False, description="Expose the cache invalidation admin endpoint",
    )

    # Follower polling while another request holds the rebuild lock
    poll_initial_delay: float = Field(
        default=0.05, gt=0.0, le=5.0, description="First poll delay in seconds",
    )
    poll_max_delay: float = Field(
        default=0.25, gt=0.0, le=5.0, description="Poll delay cap in seconds",
    )
    poll_max_wait: float = Field(
        default=1.0,
        gt=0.0,
        le=30.0,
        description="Total poll budget in seconds (further capped by the lock TTL)",
    )

    stats_interval_seconds: float = Field(
        default=30.0,
        ge=0.0,
        le=3600.0,
        description="Interval of the Redis INFO stats collector (0 disables it)",
    )

    @model_validator(mode="after")
    def validate_poll_delays(self) -> CacheSettings:
        if self.poll_initial_delay > self.poll_max_delay:
            msg = "poll_initial_delay cannot exceed poll_max_delay"
            raise ValueError(msg)
        return self

    model_config = SettingsConfigDict(
        env_prefix="CACHE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @property
    def lock_wait_budget(self) -> float:
        """Follower wait budget in seconds: ``min(poll_max_wait, lock TTL)``."""
        return min(self.poll_max_wait, self.lock_ttl_ms / 1000)
