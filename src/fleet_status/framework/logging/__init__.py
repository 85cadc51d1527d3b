"""
Unified logging for the fleet status tools.

Standard log format or JSON records, each carrying the service name,
OpenTelemetry trace context and a correlation ID.
"""

import json
import logging
import sys
import uuid
from datetime import datetime
from typing import Any

from opentelemetry import trace

PACKAGE_LOGGER = "fleet_status"

TRACE_LOG_FORMAT = (
    "%(asctime)s - %(levelname)s - [%(service_name)s] - [%(trace_id)s:%(span_id)s] - "
    "[%(name)s] - %(message)s"
)

LOG_LEVELS = {
    "CRITICAL": logging.CRITICAL,
    "ERROR": logging.ERROR,
    "WARNING": logging.WARNING,
    "INFO": logging.INFO,
    "DEBUG": logging.DEBUG,
    "NOTSET": logging.NOTSET,
}

DEFAULT_LOG_LEVEL = "INFO"
LOG_OFF_LEVEL = "OFF"

# LogRecord attributes that are not copied into JSON output as extras
_RESERVED_ATTRS = frozenset(
    {
        "name",
        "msg",
        "args",
        "levelname",
        "levelno",
        "pathname",
        "filename",
        "module",
        "lineno",
        "funcName",
        "created",
        "msecs",
        "relativeCreated",
        "thread",
        "threadName",
        "processName",
        "process",
        "taskName",
        "exc_info",
        "exc_text",
        "stack_info",
        "message",
        "service_name",
        "trace_id",
        "span_id",
        "correlation_id",
    }
)


class ServiceNameFilter(logging.Filter):
    """Filter to inject service name into log records."""

    def __init__(self, service_name: str) -> None:
        super().__init__()
        self.service_name = service_name

    def filter(self, record: logging.LogRecord) -> bool:
        record.service_name = self.service_name  # type: ignore[attr-defined]
        return True


class TraceContextFilter(logging.Filter):
    """Filter to inject trace context into log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        current_span = trace.get_current_span()
        span_context = current_span.get_span_context() if current_span else None
        if span_context is not None and span_context.is_valid:
            record.trace_id = format(span_context.trace_id, "032x")  # type: ignore[attr-defined]
            record.span_id = format(span_context.span_id, "016x")  # type: ignore[attr-defined]
        else:
            record.trace_id = "0" * 32  # type: ignore[attr-defined]
            record.span_id = "0" * 16  # type: ignore[attr-defined]
        return True


class CorrelationFilter(logging.Filter):
    """Filter to inject correlation ID into log records."""

    def __init__(self, correlation_id: str | None = None) -> None:
        super().__init__()
        self.correlation_id = correlation_id or str(uuid.uuid4())

    def filter(self, record: logging.LogRecord) -> bool:
        record.correlation_id = self.correlation_id  # type: ignore[attr-defined]
        return True


class UnifiedJSONFormatter(logging.Formatter):
    """JSON formatter for structured logging."""

    def format(self, record: logging.LogRecord) -> str:
        log_entry: dict[str, Any] = {
            "timestamp": datetime.fromtimestamp(record.created).isoformat(),
            "level": record.levelname,
            "service": getattr(record, "service_name", "unknown"),
            "logger": record.name,
            "message": record.getMessage(),
            "module": record.module,
            "function": record.funcName,
            "line": record.lineno,
            "thread": record.threadName,
        }

        for key in ("trace_id", "span_id", "correlation_id"):
            value = getattr(record, key, None)
            if value:
                log_entry[key] = value

        if record.exc_info:
            log_entry["exception"] = {
                "type": record.exc_info[0].__name__ if record.exc_info[0] else None,
                "message": str(record.exc_info[1]) if record.exc_info[1] else None,
                "traceback": self.formatException(record.exc_info),
            }

        for key, value in record.__dict__.items():
            if key not in _RESERVED_ATTRS:
                log_entry[key] = value

        return json.dumps(log_entry, default=str, ensure_ascii=False)


def configure_logging(
    service_name: str = "fleet-status",
    log_level: str = DEFAULT_LOG_LEVEL,
    json_logs: bool = False,
    correlation_id: str | None = None,
    stream: Any = None,
) -> logging.Logger:
    """
    Install the fleet status handler on the package logger.

    Args:
        service_name: Service name added to every record
        log_level: Level name, or ``OFF`` to silence the package
        json_logs: Emit JSON records instead of the text format
        correlation_id: Correlation ID to stamp on records (generated if omitted)
        stream: Output stream (defaults to stderr, keeping stdout for results)

    Returns:
        The configured package logger
    """
    logger = logging.getLogger(PACKAGE_LOGGER)
    logger.handlers.clear()

    level = log_level.upper()
    if level == LOG_OFF_LEVEL:
        logger.setLevel(logging.CRITICAL + 1)
    else:
        logger.setLevel(LOG_LEVELS.get(level, logging.INFO))

    handler = logging.StreamHandler(stream or sys.stderr)
    if json_logs:
        handler.setFormatter(UnifiedJSONFormatter())
    else:
        handler.setFormatter(logging.Formatter(TRACE_LOG_FORMAT))

    handler.addFilter(ServiceNameFilter(service_name))
    handler.addFilter(TraceContextFilter())
    handler.addFilter(CorrelationFilter(correlation_id))
    logger.addHandler(handler)
    return logger


__all__ = [
    "CorrelationFilter",
    "LOG_LEVELS",
    "PACKAGE_LOGGER",
    "ServiceNameFilter",
    "TraceContextFilter",
    "UnifiedJSONFormatter",
    "configure_logging",
]
