"""Prometheus metrics definitions and helpers.

Provides the metric definitions for the employee directory API.
"""

from functools import lru_cache
from typing import Callable

from prometheus_client import (
    Counter,
    Gauge,
    Histogram,
    generate_latest,
    REGISTRY,
    CollectorRegistry,
)


class DirectoryMetrics:
    """Employee directory API metrics."""

    def __init__(self, registry: CollectorRegistry = REGISTRY) -> None:
        """Initialize API metrics.

        Args:
            registry: Prometheus registry to use
        """
        self.registry = registry

        # HTTP requests
        self.http_requests = Counter(
            "http_requests_total",
            "Total HTTP requests",
            ["method", "endpoint", "status"],
            registry=registry,
        )

        # Request duration
        self.http_request_duration = Histogram(
            "http_request_duration_seconds",
            "HTTP request duration in seconds",
            ["method", "endpoint"],
            buckets=[0.005, 0.01, 0.025, 0.05, 0.1, 0.25, 0.5, 1.0, 2.5, 5.0],
            registry=registry,
        )

        # Requests in flight
        self.http_requests_in_progress = Gauge(
            "http_requests_in_progress",
            "HTTP requests currently in progress",
            ["method", "endpoint"],
            registry=registry,
        )

        # GraphQL operations
        self.graphql_operations = Counter(
            "graphql_operations_total",
            "Total GraphQL operations executed",
            ["operation_type", "outcome"],
            registry=registry,
        )

        # Cache lookups
        self.cache_lookups = Counter(
            "cache_lookups_total",
            "Cache lookups by cache and result",
            ["cache", "result"],
            registry=registry,
        )

        # Database reachability
        self.database_up = Gauge(
            "database_up",
            "Whether the last MongoDB ping succeeded (1=up, 0=down)",
            registry=registry,
        )

    def record_cache_lookup(self, cache: str, hit: bool) -> None:
        """Count one cache lookup."""
        self.cache_lookups.labels(cache=cache, result="hit" if hit else "miss").inc()

    def record_graphql_operation(self, operation_type: str, success: bool) -> None:
        """Count one executed GraphQL operation."""
        self.graphql_operations.labels(
            operation_type=operation_type,
            outcome="success" if success else "error",
        ).inc()


@lru_cache()
def get_metrics() -> DirectoryMetrics:
    """Process-wide metrics registered on the default registry.

    Returns:
        Shared DirectoryMetrics instance
    """
    return DirectoryMetrics()


def get_metrics_handler(registry: CollectorRegistry = REGISTRY) -> Callable[[], bytes]:
    """Get metrics handler for HTTP endpoint.

    Returns:
        Function that generates Prometheus metrics output
    """

    def metrics_handler() -> bytes:
        return generate_latest(registry)

    return metrics_handler
