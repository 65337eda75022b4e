import re
from typing import Any, Dict, List, Optional, Sequence

from bson import ObjectId

from .base import MongoRepository


class RoleRepository(MongoRepository):
    collection_name = "roles"

    async def get_by_name(self, name: str) -> Optional[Dict[str, Any]]:
        """Case-insensitive exact lookup by role name."""
        pattern = f"^{re.escape(name)}$"
        return await self._maybe_await(
            self._collection().find_one({"name": {"$regex": pattern, "$options": "i"}})
        )

    async def list(self) -> List[Dict[str, Any]]:
        return await self.find({}, sort=[("name", 1)])

    async def count_existing(self, ids: Sequence[ObjectId]) -> int:
        if not ids:
            return 0
        return await self.count({"_id": {"$in": list(ids)}})
