"""Redis connection settings."""

from __future__ import annotations

from typing import Any

from pydantic import Field, computed_field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RedisSettings(BaseSettings):
    """Redis settings for the cache, locks and the rate limiter.

    Environment variables use REDIS_ prefix; the URL is read from REDIS_URL.
    Example: REDIS_ENABLED=true REDIS_URL="redis://localhost:6379/0"
    """

    enabled: bool = Field(default=False, description="Enable Redis")
    redis_url: str | None = Field(
        default=None,
        alias="REDIS_URL",
        description="Redis connection URL (redis://[username:password@]host:port/db)",
    )

    max_connections: int = Field(
        default=50, ge=1, le=1000, description="Maximum Redis connection pool size",
    )
    socket_timeout: float = Field(
        default=2.0, ge=0.1, le=30.0, description="Redis socket timeout in seconds",
    )
    socket_connect_timeout: float = Field(
        default=5.0, ge=0.1, le=30.0, description="Redis connect timeout in seconds",
    )
    health_check_interval: int = Field(
        default=30,
        ge=0,
        le=300,
        description="Seconds between idle connection health checks (0 disables)",
    )

    model_config = SettingsConfigDict(
        env_prefix="REDIS_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
        populate_by_name=True,
    )

    @computed_field
    @property
    def is_configured(self) -> bool:
        return bool(self.redis_url)

    def connection_pool_kwargs(self) -> dict[str, Any]:
        """Keyword arguments for ``ConnectionPool.from_url``."""
        return {
            "max_connections": self.max_connections,
            "socket_timeout": self.socket_timeout,
            "socket_connect_timeout": self.socket_connect_timeout,
            "health_check_interval": self.health_check_interval,
            "decode_responses": True,
        }
