from typing import Any, Dict, List, Optional

from bson import ObjectId
from pymongo.errors import DuplicateKeyError

from userhub.core import ValidationFailed
from userhub.models.documents import BranchDocument

from .base import MongoRepository


class BranchRepository(MongoRepository):
    collection_name = "branches"

    async def list(self) -> List[Dict[str, Any]]:
        return await self.find({}, sort=[("created_at", -1)])

    async def create(self, fields: Dict[str, Any]) -> Dict[str, Any]:
        document = BranchDocument(**fields)
        try:
            await document.insert()
        except DuplicateKeyError as e:
            raise ValidationFailed("Branch code already exists", field="code", detail=str(e)) from e
        return await self.get_by_id(document.id)

    async def update(self, branch_id: ObjectId, fields: Dict[str, Any]) -> Optional[Dict[str, Any]]:
        try:
            return await self.update_fields(branch_id, fields)
        except DuplicateKeyError as e:
            raise ValidationFailed("Branch code already exists", field="code", detail=str(e)) from e
