"""
MongoDB connection management.

One AsyncMongoClient per process, opened during application startup with
connection retries and closed on shutdown.
"""

import asyncio
from typing import Optional

import structlog
from pymongo import AsyncMongoClient
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from employee_api.src.config import Settings

logger = structlog.get_logger(__name__)


class Database:
    """Owns the MongoDB client and the application database handle."""

    def __init__(self, settings: Settings):
        self.settings = settings
        self.client: Optional[AsyncMongoClient] = None
        self._db: Optional[AsyncDatabase] = None

    def _create_client(self) -> AsyncMongoClient:
        return AsyncMongoClient(
            self.settings.mongodb_url,
            maxPoolSize=self.settings.mongodb_max_pool_size,
            serverSelectionTimeoutMS=self.settings.mongodb_server_selection_timeout_ms,
            socketTimeoutMS=self.settings.mongodb_socket_timeout_ms,
            tz_aware=True,
            appname=self.settings.app_name,
        )

    async def connect(self) -> AsyncDatabase:
        """
        Connect to MongoDB, retrying on failure.

        Returns:
            Database handle

        Raises:
            PyMongoError: If every attempt fails
        """
        if self._db is not None:
            return self._db

        attempts = self.settings.mongodb_connect_retries
        delay = self.settings.mongodb_connect_retry_delay

        for attempt in range(1, attempts + 1):
            client = self._create_client()
            try:
                await client.admin.command("ping")
            except PyMongoError as e:
                await client.close()
                logger.warning(
                    "database_connect_failed",
                    attempt=attempt,
                    max_attempts=attempts,
                    url=self.settings.mongodb_url_redacted,
                    error=str(e),
                )
                if attempt == attempts:
                    logger.error("database_connect_gave_up", attempts=attempts)
                    raise
                await asyncio.sleep(delay)
                continue

            self.client = client
            self._db = client[self.settings.mongodb_database]
            logger.info(
                "database_connected",
                url=self.settings.mongodb_url_redacted,
                database=self.settings.mongodb_database,
                attempt=attempt,
            )
            break

        return self._db

    async def close(self):
        """Close the client. Safe to call when never connected."""
        if self.client is not None:
            await self.client.close()
            logger.info("database_closed")
        self.client = None
        self._db = None

    async def ping(self) -> bool:
        """Round-trip to the server; False on any driver error."""
        if self.client is None:
            return False
        try:
            await self.client.admin.command("ping")
            return True
        except PyMongoError as e:
            logger.warning("database_ping_failed", error=str(e))
            return False

    @property
    def state(self) -> str:
        """Connection state label used by the health endpoint."""
        return "connected" if self.client is not None else "disconnected"

    @property
    def db(self) -> AsyncDatabase:
        """
        Database handle.

        Raises:
            RuntimeError: If connect() has not completed
        """
        if self._db is None:
            logger.error("database_not_initialized")
            raise RuntimeError("Database not initialized. Call connect() during startup.")
        return self._db
