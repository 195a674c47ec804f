"""Metrics module using Prometheus."""

from .prometheus_metrics import (
    DirectoryMetrics,
    get_metrics,
    get_metrics_handler,
)

__all__ = [
    "DirectoryMetrics",
    "get_metrics",
    "get_metrics_handler",
]
