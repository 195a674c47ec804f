"""Structured logging setup for the directory services.

Every entry carries the application name, environment, the request's
correlation id (bound per request) and, when a span is active, the
OpenTelemetry trace and span ids.
"""

import logging
import sys
from typing import Optional

import structlog
from opentelemetry import trace
from structlog.types import EventDict, Processor

# Driver and server loggers that are chatty at INFO
NOISY_LOGGERS = ("pymongo", "uvicorn.access")


def make_app_context(app_name: str, environment: str, component: Optional[str] = None) -> Processor:
    """Build a processor that stamps application context on log entries."""

    def add_app_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
        event_dict.setdefault("app", app_name)
        event_dict.setdefault("environment", environment)
        if component:
            event_dict.setdefault("component", component)
        return event_dict

    return add_app_context


def add_trace_context(logger: logging.Logger, method_name: str, event_dict: EventDict) -> EventDict:
    span = trace.get_current_span()
    if span and span.is_recording():
        span_context = span.get_span_context()
        event_dict["trace_id"] = format(span_context.trace_id, "032x")
        event_dict["span_id"] = format(span_context.span_id, "016x")
    return event_dict


def configure_logging(
    log_level: str = "INFO",
    json_logs: bool = True,
    app_name: str = "employee-directory-api",
    environment: str = "development",
    component: Optional[str] = None,
) -> None:
    """Configure structlog on top of the standard library logger.

    Args:
        log_level: DEBUG, INFO, WARNING, ERROR or CRITICAL
        json_logs: Render JSON lines; otherwise the console renderer is used
        app_name: Application name stamped on every entry
        environment: Deployment environment stamped on every entry
        component: Optional sub-component (e.g. ``seed``) stamped on every entry
    """
    processors: list[Processor] = [
        structlog.contextvars.merge_contextvars,
        structlog.stdlib.add_logger_name,
        structlog.stdlib.add_log_level,
        structlog.processors.TimeStamper(fmt="iso", utc=True),
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
        make_app_context(app_name, environment, component),
        add_trace_context,
        structlog.processors.JSONRenderer() if json_logs else structlog.dev.ConsoleRenderer(),
    ]

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )

    level = getattr(logging, log_level.upper())
    logging.basicConfig(format="%(message)s", stream=sys.stdout, level=level)
    for name in NOISY_LOGGERS:
        logging.getLogger(name).setLevel(max(level, logging.WARNING))


def bind_request_context(correlation_id: str) -> None:
    """Start a fresh log context for one request."""
    structlog.contextvars.clear_contextvars()
    structlog.contextvars.bind_contextvars(correlation_id=correlation_id)
