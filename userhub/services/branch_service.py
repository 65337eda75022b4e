from typing import Any, Dict, List

from userhub.core import NotFound, ValidationFailed, get_logger, operation
from userhub.models import BranchCreateRequest, BranchUpdateRequest
from userhub.query import sanitize_record
from userhub.repositories import to_object_id


class BranchService:
    def __init__(self, branch_repo):
        self.branch_repo = branch_repo
        self.logger = get_logger("branches.service")

    @operation("Failed to get branches")
    async def list_branches(self) -> List[Dict[str, Any]]:
        return [sanitize_record(doc) for doc in await self.branch_repo.list()]

    @operation("Failed to create branch")
    async def create_branch(self, payload: BranchCreateRequest) -> Dict[str, Any]:
        branch = await self.branch_repo.create(payload.model_dump(by_alias=False))
        self.logger.info("branch created", branch_id=str(branch["_id"]), code=payload.code)
        return sanitize_record(branch)

    @operation("Failed to get branch")
    async def get_branch(self, branch_id: str) -> Dict[str, Any]:
        oid = to_object_id(branch_id, field="id", message="Invalid branch id supplied")
        branch = await self.branch_repo.get_by_id(oid)
        if branch is None:
            raise NotFound("Branch not found")
        return sanitize_record(branch)

    @operation("Failed to update branch")
    async def update_branch(self, branch_id: str, payload: BranchUpdateRequest) -> Dict[str, Any]:
        oid = to_object_id(branch_id, field="id", message="Invalid branch id supplied")
        fields = payload.model_dump(exclude_unset=True, by_alias=False)
        if not fields:
            raise ValidationFailed("No fields to update")
        branch = await self.branch_repo.update(oid, fields)
        if branch is None:
            raise NotFound("Branch not found")
        return sanitize_record(branch)

    @operation("Failed to delete branch")
    async def delete_branch(self, branch_id: str) -> Dict[str, Any]:
        oid = to_object_id(branch_id, field="id", message="Invalid branch id supplied")
        if not await self.branch_repo.delete(oid):
            raise NotFound("Branch not found")
        self.logger.info("branch deleted", branch_id=branch_id)
        return {"id": branch_id}
