"""Base repository providing common async MongoDB CRUD helpers."""

from abc import ABC
from enum import Enum
from typing import Any, Dict, Generic, List, Optional, Sequence, Tuple, Type, TypeVar, Union

import structlog
from bson import ObjectId
from bson.errors import InvalidId
from pymongo import ReturnDocument
from pymongo.asynchronous.collection import AsyncCollection
from pymongo.asynchronous.database import AsyncDatabase
from pymongo.errors import DuplicateKeyError

from employee_api.src.errors import ConflictError

logger = structlog.get_logger(__name__)


class CollectionName(str, Enum):
    USERS = "users"
    EMPLOYEES = "employees"


T = TypeVar("T")

SortSpec = Sequence[Tuple[str, int]]


def to_object_id(entity_id: Union[str, ObjectId, None]) -> Optional[ObjectId]:
    """Parse an id, returning None when it is not a valid ObjectId."""
    if entity_id is None:
        return None
    if isinstance(entity_id, ObjectId):
        return entity_id
    try:
        return ObjectId(entity_id)
    except (InvalidId, TypeError):
        return None


class BaseRepository(ABC, Generic[T]):
    """Common CRUD operations over one MongoDB collection."""

    conflict_message = "Duplicate record"

    def __init__(
        self,
        db: AsyncDatabase,
        collection_name: Union[CollectionName, str],
        model_class: Type[T],
    ):
        self.db = db
        self.collection_name: str = (
            collection_name.value
            if isinstance(collection_name, CollectionName)
            else collection_name
        )
        self.collection: AsyncCollection = db[self.collection_name]
        self.model_class = model_class

    async def ensure_indexes(self):
        """Create the collection's indexes. Subclasses override."""

    async def find_by_id(self, entity_id: Union[str, ObjectId]) -> Optional[T]:
        identifier = to_object_id(entity_id)
        if identifier is None:
            return None
        doc = await self.collection.find_one({"_id": identifier})
        return self._to_model(doc)

    async def find_one(self, query: Dict[str, Any]) -> Optional[T]:
        doc = await self.collection.find_one(query)
        return self._to_model(doc)

    async def find_many(
        self,
        query: Dict[str, Any],
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: Optional[int] = None,
    ) -> List[T]:
        cursor = self.collection.find(query)
        if sort:
            cursor = cursor.sort(list(sort))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        docs = await cursor.to_list(length=None)
        return [self._to_model(doc) for doc in docs]

    async def find_by_ids(self, entity_ids: Sequence[str]) -> List[T]:
        identifiers = [oid for oid in (to_object_id(i) for i in entity_ids) if oid is not None]
        if not identifiers:
            return []
        return await self.find_many({"_id": {"$in": identifiers}})

    async def count(self, query: Dict[str, Any]) -> int:
        return await self.collection.count_documents(query)

    async def exists(self, query: Dict[str, Any]) -> bool:
        return await self.collection.find_one(query, projection={"_id": 1}) is not None

    async def insert_one(self, document: Dict[str, Any]) -> T:
        """
        Insert a document.

        Raises:
            ConflictError: If a unique index rejects the document
        """
        try:
            result = await self.collection.insert_one(dict(document))
        except DuplicateKeyError as e:
            logger.warning(
                "duplicate_key_on_insert",
                collection=self.collection_name,
                key=(e.details or {}).get("keyValue"),
            )
            raise ConflictError(self.conflict_message) from e
        logger.debug("document_inserted", collection=self.collection_name, id=str(result.inserted_id))
        return self._to_model({**document, "_id": result.inserted_id})

    async def update_by_id(
        self, entity_id: Union[str, ObjectId], changes: Dict[str, Any]
    ) -> Optional[T]:
        """
        Apply a ``$set`` and return the updated model, or None if absent.

        Raises:
            ConflictError: If a unique index rejects the change
        """
        identifier = to_object_id(entity_id)
        if identifier is None:
            return None
        try:
            doc = await self.collection.find_one_and_update(
                {"_id": identifier},
                {"$set": changes},
                return_document=ReturnDocument.AFTER,
            )
        except DuplicateKeyError as e:
            logger.warning(
                "duplicate_key_on_update",
                collection=self.collection_name,
                id=str(identifier),
                key=(e.details or {}).get("keyValue"),
            )
            raise ConflictError(self.conflict_message) from e
        return self._to_model(doc)

    async def delete_by_id(self, entity_id: Union[str, ObjectId]) -> bool:
        identifier = to_object_id(entity_id)
        if identifier is None:
            return False
        result = await self.collection.delete_one({"_id": identifier})
        return result.deleted_count > 0

    async def delete_all(self) -> int:
        result = await self.collection.delete_many({})
        return result.deleted_count

    def _to_model(self, doc: Optional[Dict[str, Any]]) -> Optional[T]:
        if not doc:
            return None
        return self.model_class.from_document(doc)
