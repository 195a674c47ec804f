"""Container helpers for integration testing."""

from .containers import (
    MongoDBContainer,
    get_mongodb_container,
)

__all__ = [
    "MongoDBContainer",
    "get_mongodb_container",
]
