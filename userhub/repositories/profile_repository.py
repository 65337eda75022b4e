from typing import Any, Dict, Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from userhub.core import ValidationFailed
from userhub.models.documents import ProfileDocument

from .base import MongoRepository


class ProfileRepository(MongoRepository):
    """Profile records in the ``profiles`` collection."""

    collection_name = "profiles"

    async def get_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        return await self._maybe_await(self._collection().find_one({"email": email}))

    async def email_taken(self, email: Optional[str], *, exclude_id: Optional[ObjectId] = None) -> bool:
        if not email:
            return False
        existing = await self.get_by_email(email)
        return existing is not None and existing["_id"] != exclude_id

    async def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        document = ProfileDocument(**fields)
        try:
            await document.insert()
        except DuplicateKeyError as e:
            raise ValidationFailed("Email already exists", field="email", detail=str(e)) from e
        return await self.get_by_id(document.id)

    async def update(self, profile_id: ObjectId, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            return await self.update_fields(profile_id, fields)
        except DuplicateKeyError as e:
            raise ValidationFailed("Email already exists", field="email", detail=str(e)) from e

    async def set_photo(self, profile_id: ObjectId, photo: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        return await self.update_fields(profile_id, {"profile_photo": photo})
