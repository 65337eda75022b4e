from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from userhub.core import ValidationFailed
from userhub.models.documents import ProfileDocument, UserDocument

from .base import MongoRepository, SortSpec


class UserRepository(MongoRepository):
    """Identity records in the ``users`` collection."""

    collection_name = "users"

    async def get_by_username(self, username: str, *, include_deleted: bool = False) -> Optional[Dict[str, Any]]:
        query: Dict[str, Any] = {"username": username}
        if not include_deleted:
            query["deleted"] = False
        return await self._maybe_await(self._collection().find_one(query))

    async def get_by_profile_id(self, profile_id: ObjectId) -> Optional[Dict[str, Any]]:
        return await self._maybe_await(self._collection().find_one({"user_info_id": profile_id}))

    async def create(self, data: Dict[str, Any]) -> Dict[str, Any]:
        """Insert an identity record.

        Raises:
            ValidationFailed: When a non-deleted user already holds the username.
        """
        document = UserDocument(**data)
        try:
            await document.insert()
        except DuplicateKeyError as e:
            raise ValidationFailed("User already exists", field="username", detail=str(e)) from e
        return await self.get_by_id(document.id)

    async def update(self, user_id: ObjectId, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            return await self.update_fields(user_id, fields)
        except DuplicateKeyError as e:
            raise ValidationFailed("Username already exists", field="username", detail=str(e)) from e

    async def soft_delete(self, user_id: ObjectId) -> bool:
        return await self.update_fields(user_id, {"deleted": True, "is_active": False}) is not None

    def _profile_match_pipeline(self, filter: Dict[str, Any], profile_match: Dict[str, Any]) -> List[Dict[str, Any]]:
        """Stages keeping identity records whose linked profile matches ``profile_match``.

        The join runs in the store, one profile lookup per identity record.
        """
        return [
            {"$match": filter},
            {
                "$lookup": {
                    "from": ProfileDocument.Settings.name,
                    "let": {"profile_id": "$user_info_id"},
                    "pipeline": [
                        {"$match": {"$expr": {"$eq": ["$_id", "$$profile_id"]}}},
                        {"$match": profile_match},
                        {"$project": {"_id": 1}},
                    ],
                    "as": "_matched_profile",
                }
            },
            {"$match": {"_matched_profile": {"$ne": []}}},
            {"$unset": "_matched_profile"},
        ]

    async def find_with_profile(
        self,
        filter: Dict[str, Any],
        profile_match: Dict[str, Any],
        *,
        projection: Optional[Dict[str, int]] = None,
        sort: Optional[SortSpec] = None,
        skip: int = 0,
        limit: int = 0,
    ) -> List[Dict[str, Any]]:
        pipeline = self._profile_match_pipeline(filter, profile_match)
        if sort:
            pipeline.append({"$sort": dict(sort)})
        if skip:
            pipeline.append({"$skip": skip})
        if limit:
            pipeline.append({"$limit": limit})
        if projection:
            pipeline.append({"$project": projection})
        return await self._to_list(self._collection().aggregate(pipeline))

    async def count_with_profile(self, filter: Dict[str, Any], profile_match: Dict[str, Any]) -> int:
        pipeline = self._profile_match_pipeline(filter, profile_match)
        pipeline.append({"$count": "total"})
        result = await self._to_list(self._collection().aggregate(pipeline))
        return result[0]["total"] if result else 0
