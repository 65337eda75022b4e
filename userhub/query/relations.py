"""Expansion of identity-record references (roles, branch, profile)."""

from typing import Any, Dict, Iterable, List, Optional

from bson import ObjectId

from userhub.core import ValidationFailed, get_logger
from userhub.models.enums import Relation

# Storage field holding each relation's reference(s).
RELATION_FIELDS: Dict[Relation, str] = {
    Relation.ROLE: "role_ids",
    Relation.BRANCH: "branch_id",
    Relation.PROFILE: "user_info_id",
}

ALL_RELATIONS: List[Relation] = [Relation.ROLE, Relation.BRANCH, Relation.PROFILE]


def parse_relations(populate: Optional[str]) -> List[Relation]:
    """Parse a comma-separated ``populate`` value; absent or blank means every relation.

    Raises:
        ValidationFailed: When a name is not a known relation.
    """
    if populate is None or not populate.strip():
        return list(ALL_RELATIONS)
    relations: List[Relation] = []
    for raw in populate.split(","):
        name = raw.strip()
        if not name:
            continue
        try:
            relation = Relation(name)
        except ValueError:
            allowed = ", ".join(r.value for r in ALL_RELATIONS)
            raise ValidationFailed(f"Unknown populate field '{name}'. Allowed: {allowed}", field="populate") from None
        if relation not in relations:
            relations.append(relation)
    return relations or list(ALL_RELATIONS)


def _unique_ids(values: Iterable[Any]) -> List[ObjectId]:
    seen: Dict[ObjectId, None] = {}
    for value in values:
        if isinstance(value, ObjectId):
            seen.setdefault(value, None)
    return list(seen)


class RelationResolver:
    """Replaces references on lean identity records with the referenced records.

    Roles resolve to a list, the branch and the profile to an object or ``None``. One ``$in`` query
    is issued per requested relation, whatever the number of records.
    """

    def __init__(self, role_repo, branch_repo, profile_repo):
        self.role_repo = role_repo
        self.branch_repo = branch_repo
        self.profile_repo = profile_repo
        self.logger = get_logger("query.relations")

    async def expand(
        self,
        users: List[Dict[str, Any]],
        relations: Iterable[Relation],
        profile_match: Optional[Dict[str, Any]] = None,
    ) -> List[Dict[str, Any]]:
        """Return copies of ``users`` with the requested relations expanded.

        Args:
            users: Lean identity records as read from the store.
            relations: Relations to expand.
            profile_match: Extra condition on the expanded profile; profiles that do not satisfy it
                resolve to ``None``.
        """
        relations = list(relations)
        expanded = [dict(user) for user in users]
        if not expanded:
            return expanded

        if Relation.ROLE in relations:
            ids = _unique_ids(rid for user in expanded for rid in (user.get("role_ids") or []))
            roles = {doc["_id"]: doc for doc in await self.role_repo.find_by_ids(ids)}
            for user in expanded:
                user["role_ids"] = [roles[rid] for rid in (user.get("role_ids") or []) if rid in roles]

        if Relation.BRANCH in relations:
            ids = _unique_ids(user.get("branch_id") for user in expanded)
            branches = {doc["_id"]: doc for doc in await self.branch_repo.find_by_ids(ids)}
            for user in expanded:
                user["branch_id"] = branches.get(user.get("branch_id"))

        if Relation.PROFILE in relations:
            ids = _unique_ids(user.get("user_info_id") for user in expanded)
            profiles = {doc["_id"]: doc for doc in await self.profile_repo.find_by_ids(ids, match=profile_match)}
            for user in expanded:
                user["user_info_id"] = profiles.get(user.get("user_info_id"))

        self.logger.debug(
            "relations expanded",
            relations=[r.value for r in relations],
            records=len(expanded),
            profile_match=bool(profile_match),
        )
        return expanded
