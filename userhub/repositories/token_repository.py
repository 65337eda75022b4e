from typing import Any, Dict, Optional

from bson import ObjectId

from userhub.models.documents import AccessTokenDocument, RefreshTokenDocument

from .base import MongoRepository


class TokenRepository(MongoRepository):
    """Issued access and refresh tokens."""

    collection_name = "refresh_tokens"

    async def save_access_token(self, user_id: ObjectId, token: str) -> None:
        await AccessTokenDocument(user_id=user_id, token=token).insert()

    async def save_refresh_token(self, user_id: ObjectId, token: str) -> None:
        await RefreshTokenDocument(user_id=user_id, token=token).insert()

    async def get_refresh_token(self, token: str) -> Optional[Dict[str, Any]]:
        return await self._maybe_await(self._collection().find_one({"token": token}))
