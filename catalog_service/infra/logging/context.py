"""Context management for structured logging.

Request-scoped fields (``request_id``, ``method``, ``path``) are stored in a
ContextVar so that every record emitted while handling a request carries them
without explicit passing. Each asyncio task gets its own copy.
"""

from __future__ import annotations

from contextvars import ContextVar
import logging
from typing import Any

_log_context: ContextVar[dict[str, Any]] = ContextVar("log_context", default={})


def set_log_context(**kwargs: Any) -> None:
    """Add fields to the logging context of the current task.

    Example:
        ```python
        set_log_context(request_id="abc-123", path="/products")
        logger.info("Serving page")  # record carries request_id and path
        ```
    """
    current = _log_context.get().copy()
    current.update(kwargs)
    _log_context.set(current)


def get_log_context() -> dict[str, Any]:
    """Return a copy of the current logging context."""
    return _log_context.get().copy()


def clear_log_context() -> None:
    """Clear all logging context for the current task."""
    _log_context.set({})


class ContextInjectingFilter(logging.Filter):
    """Logging filter that copies the ContextVar fields onto each LogRecord.

    Attached to handlers so it also sees records propagated from child
    loggers. Existing record attributes (including ``extra=`` fields) win.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in _log_context.get().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True
