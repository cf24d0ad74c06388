"""Structured logging: dictConfig setup, JSON formatter and request context."""

from __future__ import annotations

from catalog_service.infra.logging.config import configure_logging, setup_logging, shutdown
from catalog_service.infra.logging.context import (
    ContextInjectingFilter,
    clear_log_context,
    get_log_context,
    set_log_context,
)
from catalog_service.infra.logging.formatters import JSONFormatter

__all__ = [
    "ContextInjectingFilter",
    "JSONFormatter",
    "clear_log_context",
    "configure_logging",
    "get_log_context",
    "set_log_context",
    "setup_logging",
    "shutdown",
]
