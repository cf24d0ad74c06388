"""Application settings for FastAPI configuration."""

from __future__ import annotations

from typing import Literal

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

Environment = Literal["development", "staging", "production", "test"]


class AppSettings(BaseSettings):
    """FastAPI application settings.

    Environment variables use APP_ prefix.
    Example: APP_ENVIRONMENT=production, APP_PORT=8080
    """

    # Service identity
    service_name: str = Field(
        default="catalog-service",
        min_length=1,
        max_length=100,
        pattern=r"^[a-z0-9]+(-[a-z0-9]+)*$",
        description="Service name for logging/metrics (lowercase, hyphens allowed)",
    )
    title: str = Field(
        default="Catalog Service API",
        min_length=1,
        max_length=200,
        description="API title displayed in documentation",
    )
    version: str = Field(
        default="1.0.0",
        pattern=r"^\d+\.\d+\.\d+(-[a-zA-Z0-9]+)?$",
        description="API version (semver format)",
    )
    environment: Environment = Field(
        default="development", description="Environment: development|staging|production|test",
    )
    api_prefix: str = Field(
        default="",
        max_length=255,
        pattern=r"^(/.*)?$",
        description="Base URL prefix for API routes (empty mounts routes at the root)",
    )

    debug: bool = Field(default=False, description="Enable debug mode")
    docs_url: str | None = Field(default="/docs", description="Swagger UI path")
    openapi_url: str | None = Field(default="/openapi.json", description="OpenAPI schema path")

    # Server configuration
    host: str = Field(default="0.0.0.0", min_length=1, description="Server bind host")  # noqa: S104
    port: int = Field(default=3000, ge=1, le=65535, description="Server port")

    bootstrap_strict: bool = Field(
        default=False,
        description="Fail startup when an enabled database or Redis cannot be reached",
    )

    @model_validator(mode="after")
    def validate_production_settings(self) -> AppSettings:
        """Validate settings for production environment."""
        if self.environment == "production" and self.debug:
            msg = "Debug mode cannot be enabled in production environment"
            raise ValueError(msg)
        return self

    model_config = SettingsConfigDict(
        env_prefix="APP_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @property
    def is_production(self) -> bool:
        return self.environment == "production"
