"""Custom logging formatters with trace correlation."""

from __future__ import annotations

from datetime import UTC, datetime
import json
import logging
from typing import Any

from opentelemetry import trace

# Built-in LogRecord attributes that are not copied into the JSON body
_SKIP_KEYS = frozenset(
    {
        "name",
        "msg",
        "args",
        "created",
        "filename",
        "funcName",
        "levelname",
        "levelno",
        "lineno",
        "module",
        "msecs",
        "message",
        "pathname",
        "process",
        "processName",
        "relativeCreated",
        "thread",
        "threadName",
        "exc_info",
        "exc_text",
        "stack_info",
        "taskName",
    },
)


class JSONFormatter(logging.Formatter):
    """Structured JSON Lines formatter with UTC timestamps.

    Features:
    - UTC timestamps in ISO 8601 format with millisecond precision
    - OpenTelemetry trace correlation (trace_id, span_id) when a span is active
    - Every ``extra=`` field and every injected context field
    - Exception text kept on a single line

    Example output:
        ```json
        {"level": "INFO", "logger": "catalog_service.infra.cache.versioning", "message": "Cache version bumped", "timestamp": "2025-01-01T00:00:00.123Z", "version": 7}
        ```
    """

    def __init__(
        self,
        fmt_keys: dict[str, str] | None = None,
        static: dict[str, Any] | None = None,
    ) -> None:
        """Initialize JSON formatter.

        Args:
            fmt_keys: Mapping of output keys to LogRecord attributes.
                Default: {"level": "levelname", "logger": "name", "message": "message"}
            static: Static fields to include in every record (e.g., {"service": "api"}).
        """
        super().__init__()
        self.fmt_keys = fmt_keys or {
            "level": "levelname",
            "logger": "name",
            "message": "message",
        }
        self.static = static or {}

    def format(self, record: logging.LogRecord) -> str:
        record.message = record.getMessage()
        data: dict[str, Any] = {k: getattr(record, v, None) for k, v in self.fmt_keys.items()}

        data["timestamp"] = (
            datetime.fromtimestamp(record.created, tz=UTC)
            .isoformat(timespec="milliseconds")
            .replace("+00:00", "Z")
        )

        span = trace.get_current_span()
        if span and span.get_span_context().is_valid:
            ctx = span.get_span_context()
            data["trace_id"] = format(ctx.trace_id, "032x")
            data["span_id"] = format(ctx.span_id, "016x")

        if record.exc_info:
            data["exception"] = self.formatException(record.exc_info).replace("\n", "\\n")
        if record.stack_info:
            data["stack_trace"] = record.stack_info.replace("\n", "\\n")

        if self.static:
            data.update(self.static)

        for key, value in record.__dict__.items():
            if key not in _SKIP_KEYS and key not in data:
                data[key] = value

        return json.dumps(data, ensure_ascii=False, default=str)
