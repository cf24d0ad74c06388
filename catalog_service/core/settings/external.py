"""External API A client settings."""

from __future__ import annotations

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


class ExternalApiSettings(BaseSettings):
    """Settings for the circuit-breaker protected external dependency.

    Environment variables use EXTERNAL_A_ prefix.
    Example: EXTERNAL_A_ENABLED=true EXTERNAL_A_URL=https://api.example.com/sync
    """

    enabled: bool = Field(default=False, description="Call the external API")
    url: str | None = Field(default=None, description="GET endpoint returning JSON")
    timeout: float = Field(default=3.0, gt=0.0, le=120.0, description="Request timeout in seconds")

    retries: int = Field(default=2, ge=0, le=10, description="Retries after the first attempt")
    retry_base_delay: float = Field(
        default=0.2, ge=0.0, le=30.0, description="Base backoff delay in seconds",
    )
    retry_max_delay: float = Field(
        default=2.0, ge=0.0, le=60.0, description="Maximum single backoff delay in seconds",
    )

    breaker_failure_threshold: int = Field(
        default=5, ge=1, le=1000, description="Consecutive failures that open the breaker",
    )
    breaker_cooldown: float = Field(
        default=15.0,
        gt=0.0,
        le=3600.0,
        description="Seconds the breaker stays open before allowing a trial call",
    )

    @model_validator(mode="after")
    def validate_url(self) -> ExternalApiSettings:
        if self.enabled and not self.url:
            msg = "EXTERNAL_A_URL is required when EXTERNAL_A_ENABLED=true"
            raise ValueError(msg)
        return self

    model_config = SettingsConfigDict(
        env_prefix="EXTERNAL_A_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )
