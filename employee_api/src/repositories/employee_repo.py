"""
Employee repository for database operations.

Provides async CRUD, paged listing and batch lookups for the ``employees``
collection.
"""

import asyncio
from typing import Any, Dict, List, Optional, Tuple

import structlog
from bson import ObjectId
from pymongo import ASCENDING, DESCENDING, IndexModel
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import PyMongoError

from employee_api.src.models.employee import EmployeeDB
from employee_api.src.repositories.base import BaseRepository, CollectionName, SortSpec, to_object_id

logger = structlog.get_logger(__name__)


class EmployeeRepository(BaseRepository[EmployeeDB]):
    """Repository for employee database operations."""

    conflict_message = "Employee with this email already exists"

    def __init__(self, db: AsyncDatabase):
        """
        Initialize employee repository.

        Args:
            db: MongoDB database handle
        """
        super().__init__(db, CollectionName.EMPLOYEES, EmployeeDB)

    async def ensure_indexes(self):
        try:
            await self.collection.create_indexes([
                IndexModel([("name", ASCENDING)]),
                IndexModel([("class", ASCENDING)]),
                IndexModel([("email", ASCENDING)], unique=True, name="email_unique"),
                IndexModel([("name", ASCENDING), ("class", ASCENDING)]),
                IndexModel([("created_at", DESCENDING)]),
                IndexModel([("department", ASCENDING)]),
                IndexModel([("position", ASCENDING)]),
                IndexModel([("salary", ASCENDING)]),
                IndexModel([("department", ASCENDING), ("class", ASCENDING)]),
            ])
        except PyMongoError as e:
            logger.error("employee_indexes_failed", error=str(e))
            raise

    async def list_page(
        self,
        query: Dict[str, Any],
        sort: SortSpec,
        skip: int,
        limit: int,
    ) -> Tuple[List[EmployeeDB], int]:
        """
        Fetch one page of employees and the total match count concurrently.

        Returns:
            (employees, total)
        """
        try:
            employees, total = await asyncio.gather(
                self.find_many(query, sort=sort, skip=skip, limit=limit),
                self.count(query),
            )
        except PyMongoError as e:
            logger.error("employee_list_failed", error=str(e), skip=skip, limit=limit)
            raise
        return employees, total

    async def email_taken(self, email: str, exclude_id: Optional[str] = None) -> bool:
        """Check whether another employee already uses ``email``."""
        query: Dict[str, Any] = {"email": email}
        if exclude_id is not None:
            oid = to_object_id(exclude_id)
            if oid is not None:
                query["_id"] = {"$ne": oid}
        try:
            return await self.exists(query)
        except PyMongoError as e:
            logger.error("employee_email_check_failed", error=str(e))
            raise

    async def get_by_ids(self, employee_ids: List[str]) -> List[EmployeeDB]:
        """Fetch every employee whose id is in ``employee_ids`` with one query."""
        try:
            return await self.find_by_ids(employee_ids)
        except PyMongoError as e:
            logger.error("employee_batch_get_failed", error=str(e), count=len(employee_ids))
            raise

    async def create(self, document: Dict[str, Any]) -> EmployeeDB:
        """
        Insert an employee.

        Raises:
            ConflictError: If the email is already taken
        """
        document = {"_id": ObjectId(), **document}
        try:
            return await self.insert_one(document)
        except PyMongoError as e:
            logger.error("employee_create_failed", error=str(e))
            raise
