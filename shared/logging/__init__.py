"""Structured logging module using structlog."""

from .structured_logger import bind_request_context, configure_logging, make_app_context

__all__ = ["bind_request_context", "configure_logging", "make_app_context"]
