from typing import Any, Dict, Iterable, List

from userhub.core import Forbidden, get_logger, operation
from userhub.query import sanitize_record


class RoleService:
    def __init__(self, role_repo):
        self.role_repo = role_repo
        self.logger = get_logger("roles.service")

    @operation("Failed to get roles info")
    async def list_roles(self) -> List[Dict[str, Any]]:
        return [sanitize_record(doc) for doc in await self.role_repo.list()]

    @operation("Failed to check permissions")
    async def ensure_any_role(self, user: Dict[str, Any], role_names: Iterable[str]) -> None:
        """Raise ``Forbidden`` unless ``user`` holds one of ``role_names`` (case-insensitive)."""
        wanted = {name.lower() for name in role_names}
        roles = await self.role_repo.find_by_ids(user.get("role_ids") or [])
        if not wanted & {str(role.get("name", "")).lower() for role in roles}:
            raise Forbidden("Insufficient permissions")
