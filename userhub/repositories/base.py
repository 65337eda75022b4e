import inspect
from datetime import UTC, datetime
from typing import Any, Dict, List, Optional, Sequence, Tuple

from bson import ObjectId

from userhub.core import ValidationFailed
from userhub.db import get_database

SortSpec = Sequence[Tuple[str, int]]


def to_object_id(value: Any, *, field: str, message: Optional[str] = None) -> ObjectId:
    """Convert ``value`` to an ObjectId or raise ``ValidationFailed`` naming ``field``."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    raise ValidationFailed(message or f"Invalid {field} supplied", field=field)


def maybe_object_id(value: Any) -> Optional[ObjectId]:
    """Return ``value`` as an ObjectId, or None when it is not a valid id."""
    if isinstance(value, ObjectId):
        return value
    if isinstance(value, str) and ObjectId.is_valid(value):
        return ObjectId(value)
    return None


class MongoRepository:
    """Lean-document access to one collection.

    The collection is resolved on every call, so a repository may be built before the database
    client exists.
    """

    collection_name: str = ""

    def _collection(self):
        return get_database()[self.collection_name]

    @staticmethod
    def _now() -> datetime:
        return datetime.now(UTC)

    async def _maybe_await(self, value: Any) -> Any:
        return await value if inspect.isawaitable(value) else value

    async def _to_list(self, cursor) -> List[Dict[str, Any]]:
        items: List[Dict[str, Any]] = []
        if hasattr(cursor, "__aiter__"):
            async for doc in cursor:
                items.append(doc)
        else:
            for doc in cursor:
                items.append(doc)
        return items

    async def get_by_id(self, doc_id: Any) -> Optional[Dict[str, Any]]:
        oid = maybe_object_id(doc_id)
        if oid is None:
            return None
        return await self._maybe_await(self._collection().find_one({"_id": oid}))

    async def find(
        self,
        filter: Dict[str, Any],
        *,
        projection: Optional[Dict[str, int]] = None,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        cursor = self._collection().find(filter, projection or None)
        if sort:
            cursor = cursor.sort(list(sort))
        if skip:
            cursor = cursor.skip(skip)
        if limit:
            cursor = cursor.limit(limit)
        return await self._to_list(cursor)

    async def find_by_ids(self, ids: Sequence[ObjectId], match: Optional[Dict[str, Any]] = None) -> List[Dict[str, Any]]:
        if not ids:
            return []
        query: Dict[str, Any] = {"_id": {"$in": list(ids)}}
        if match:
            query = {"$and": [query, match]}
        return await self.find(query)

    async def count(self, filter: Dict[str, Any]) -> int:
        return await self._maybe_await(self._collection().count_documents(filter))

    async def update_fields(self, doc_id: ObjectId, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        """``$set`` the given fields plus ``updated_at`` and return the updated document."""
        update = dict(fields)
        update["updated_at"] = self._now()
        result = await self._maybe_await(self._collection().update_one({"_id": doc_id}, {"$set": update}))
        if result.matched_count == 0:
            return None
        return await self.get_by_id(doc_id)

    async def delete(self, doc_id: ObjectId) -> bool:
        result = await self._maybe_await(self._collection().delete_one({"_id": doc_id}))
        return result.deleted_count > 0
