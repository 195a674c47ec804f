"""Shared Pydantic models."""

from .common import (
    DatabaseHealth,
    DatabaseStatus,
    HealthResponse,
    HealthStatus,
    MemoryInfo,
)

__all__ = [
    "DatabaseHealth",
    "DatabaseStatus",
    "HealthResponse",
    "HealthStatus",
    "MemoryInfo",
]
