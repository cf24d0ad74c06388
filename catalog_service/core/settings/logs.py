"""Logging settings."""

from __future__ import annotations

import logging
from typing import Literal

from pydantic import Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

LogLevel = Literal["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]


class LoggingSettings(BaseSettings):
    """Environment variables use LOG_ prefix.

    Example: LOG_LEVEL=DEBUG LOG_JSON_LOGS=false
    """

    level: LogLevel = Field(default="INFO", description="Root log level")
    json_logs: bool = Field(default=True, description="Emit one JSON object per line")
    console_enabled: bool = Field(default=True, description="Log to stderr")
    include_context: bool = Field(
        default=True, description="Inject request context (request_id, ...) into records",
    )
    include_uvicorn: bool = Field(
        default=True, description="Route uvicorn loggers through the same handlers",
    )

    @field_validator("level", mode="before")
    @classmethod
    def normalize_level(cls, v: str | None) -> str | None:
        """Accept lowercase names and the ``warn`` alias."""
        if isinstance(v, str):
            v = v.strip().upper()
            if v == "WARN":
                return "WARNING"
        return v

    model_config = SettingsConfigDict(
        env_prefix="LOG_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        frozen=True,
        extra="ignore",
        env_ignore_empty=True,
    )

    @property
    def level_int(self) -> int:
        return logging.getLevelNamesMapping()[self.level]
