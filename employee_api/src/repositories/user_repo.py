"""
User repository for database operations.

Provides async lookups and inserts for the ``users`` collection. Usernames
and emails are stored lowercase and are each backed by a unique index.
"""

from typing import Any, Dict, Optional

import structlog
from pymongo import ASCENDING, IndexModel
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from employee_api.src.models.auth import UserDB
from employee_api.src.repositories.base import BaseRepository, CollectionName

logger = structlog.get_logger(__name__)


class UserRepository(BaseRepository[UserDB]):
    """Repository for user database operations."""

    conflict_message = "User already exists with this email or username"

    def __init__(self, db: AsyncDatabase):
        """
        Initialize user repository.

        Args:
            db: MongoDB database handle
        """
        super().__init__(db, CollectionName.USERS, UserDB)

    async def ensure_indexes(self):
        try:
            await self.collection.create_indexes([
                IndexModel([("username", ASCENDING)], unique=True, name="username_unique"),
                IndexModel([("email", ASCENDING)], unique=True, name="email_unique"),
            ])
        except PyMongoError as e:
            logger.error("user_indexes_failed", error=str(e))
            raise

    async def get_user_by_id(self, user_id: str) -> Optional[UserDB]:
        """
        Get user by ID.

        Args:
            user_id: User ID (ObjectId hex)

        Returns:
            User or None if not found or the id is malformed
        """
        try:
            user = await self.find_by_id(user_id)
        except PyMongoError as e:
            logger.error("user_get_by_id_failed", error=str(e), user_id=user_id)
            raise

        if user is None:
            logger.debug("user_not_found", user_id=user_id)
        return user

    async def get_user_by_login(self, login: str) -> Optional[UserDB]:
        """
        Get user by username or email.

        Args:
            login: Lowercase username or email address

        Returns:
            User or None if not found
        """
        try:
            return await self.find_one({"$or": [{"username": login}, {"email": login}]})
        except PyMongoError as e:
            logger.error("user_get_by_login_failed", error=str(e))
            raise

    async def user_exists(self, username: str, email: str) -> bool:
        """Check whether the username or the email is already taken."""
        try:
            return await self.exists({"$or": [{"username": username}, {"email": email}]})
        except PyMongoError as e:
            logger.error("user_exists_check_failed", error=str(e), username=username)
            raise

    async def create_user(self, document: Dict[str, Any]) -> UserDB:
        """
        Create a new user.

        Args:
            document: User fields including ``password_hash`` and timestamps

        Returns:
            Created user

        Raises:
            ConflictError: If username or email already exists
        """
        try:
            user = await self.insert_one(document)
        except PyMongoError as e:
            logger.error("user_create_failed", error=str(e), username=document.get("username"))
            raise

        logger.info("user_created", user_id=user.id, username=user.username, role=user.role.value)
        return user
