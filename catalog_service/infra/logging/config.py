"""Logging configuration setup.

Uses:
- dictConfig for the root level and the uvicorn loggers
- QueueHandler + QueueListener so handlers never block the event loop
- ContextInjectingFilter for request context propagation
- JSONL output for machine parsing, plain text for local development
"""

from __future__ import annotations

import atexit
import logging
import logging.config
from logging.handlers import QueueHandler, QueueListener
from queue import Queue
from typing import TYPE_CHECKING, Any

from catalog_service.infra.logging.context import ContextInjectingFilter
from catalog_service.infra.logging.formatters import JSONFormatter

if TYPE_CHECKING:
    from catalog_service.core.settings.logs import LoggingSettings

logger = logging.getLogger(__name__)

_log_queue: Queue[logging.LogRecord] | None = None
_listener: QueueListener | None = None
_LOGGING_INITIALIZED = False

TEXT_FORMAT = "%(asctime)s - %(levelname)s - %(name)s - %(message)s"
TEXT_DATEFMT = "%Y-%m-%d %H:%M:%S"


def shutdown() -> None:
    """Stop the QueueListener, flushing pending records."""
    global _log_queue, _listener

    if _listener is not None:
        _listener.stop()
        _listener = None
    _log_queue = None


def setup_logging(
    log_settings: LoggingSettings | None = None,
    *,
    service_name: str = "catalog-service",
    force: bool = False,
) -> None:
    """Configure logging once across entrypoints (app factory, CLI).

    Args:
        log_settings: Logging settings; loaded via get_logging_settings() when omitted.
        service_name: Static ``service`` field added to JSON records.
        force: Reconfigure even if logging was already initialized.
    """
    global _LOGGING_INITIALIZED

    if _LOGGING_INITIALIZED and not force:
        return

    if log_settings is None:
        from catalog_service.core.settings import get_logging_settings

        log_settings = get_logging_settings()

    configure_logging(
        log_level=log_settings.level,
        json_logs=log_settings.json_logs,
        console_enabled=log_settings.console_enabled,
        include_context=log_settings.include_context,
        include_uvicorn=log_settings.include_uvicorn,
        service_name=service_name,
    )
    _LOGGING_INITIALIZED = True


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    console_enabled: bool = True,
    include_context: bool = True,
    include_uvicorn: bool = True,
    service_name: str = "catalog-service",
) -> None:
    """Configure the root logger.

    All handlers hang off a QueueListener; application loggers propagate to
    the root logger which only owns a QueueHandler.

    Example:
            configure_logging(log_level="DEBUG", json_logs=False)
    """
    global _log_queue, _listener

    shutdown()
    logging.captureWarnings(True)

    loggers: dict[str, Any] = {}
    if include_uvicorn:
        # uvicorn records reach the root handlers instead of uvicorn's own
        for name in ("uvicorn", "uvicorn.error", "uvicorn.access"):
            loggers[name] = {"handlers": [], "propagate": True}

    logging.config.dictConfig(
        {
            "version": 1,
            "disable_existing_loggers": False,
            "loggers": loggers,
            "root": {"level": log_level.upper(), "handlers": []},
        },
    )

    handlers: list[logging.Handler] = []
    if console_enabled:
        console_handler = logging.StreamHandler()
        if json_logs:
            console_handler.setFormatter(JSONFormatter(static={"service": service_name}))
        else:
            console_handler.setFormatter(logging.Formatter(fmt=TEXT_FORMAT, datefmt=TEXT_DATEFMT))
        handlers.append(console_handler)

    if handlers:
        _log_queue = Queue()
        queue_handler = QueueHandler(_log_queue)
        if include_context:
            # Context must be captured on the producing task, before the record is queued
            queue_handler.addFilter(ContextInjectingFilter())
        logging.getLogger().addHandler(queue_handler)

        _listener = QueueListener(_log_queue, *handlers, respect_handler_level=True)
        _listener.start()
        atexit.register(shutdown)

    logger.debug(
        "Logging configured",
        extra={"level": log_level, "json_logs": json_logs, "console_enabled": console_enabled},
    )
