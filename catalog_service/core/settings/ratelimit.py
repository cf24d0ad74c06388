"""Fixed-window rate limiter settings."""

from __future__ import annotations

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class RateLimitSettings(BaseSettings):
    """Environment variables use RATE_LIMIT_ prefix.

    Example: RATE_LIMIT_ENABLED=true RATE_LIMIT_MAX_REQUESTS=120
    """

    enabled: bool = Field(default=False, description="Enable rate limiting (requires Redis)")
    window_seconds: int = Field(default=60, ge=1, le=86_400, description="Window length")
    max_requests: int = Field(
        default=120, ge=1, le=1_000_000, description="Requests allowed per client per window",
    )
    key_prefix: str = Field(
        default="rl",
        min_length=1,
        max_length=50,
        pattern=r"^[a-zA-Z0-9_:-]+$",
        description="Redis key prefix for window counters",
    )
    exempt_paths: list[str] = Field(
        default_factory=lambda: ["/health", "/metrics"],
        description="Path prefixes that are never rate limited",
    )

    model_config = SettingsConfigDict(
        env_prefix="RATE_LIMIT_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
