"""Common Pydantic models shared across services."""

from enum import Enum

from pydantic import BaseModel, ConfigDict, Field


class HealthStatus(str, Enum):
    """Health status enum."""

    OK = "ok"
    DEGRADED = "degraded"


class DatabaseStatus(str, Enum):
    """Database reachability as seen by the health check."""

    CONNECTED = "connected"
    DISCONNECTED = "disconnected"


class DatabaseHealth(BaseModel):
    """Database section of the health response."""

    status: DatabaseStatus = Field(..., description="Whether the database answered a ping")
    state: str = Field(..., description="Client connection state")


class MemoryInfo(BaseModel):
    """Process memory usage."""

    max_rss_mb: float = Field(..., description="Peak resident set size in megabytes")


class HealthResponse(BaseModel):
    """Health check response model."""

    status: HealthStatus = Field(..., description="Overall service health")
    service: str = Field(..., description="Service name")
    version: str = Field(..., description="Service version")
    environment: str = Field(..., description="Deployment environment")
    timestamp: str = Field(..., description="ISO-8601 UTC timestamp of the check")
    uptime: float = Field(..., description="Process uptime in seconds")
    database: DatabaseHealth
    memory: MemoryInfo

    model_config = ConfigDict(use_enum_values=True)
