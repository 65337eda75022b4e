"""Translate listing parameters into store queries.

``build_user_query`` keeps identity predicates (``filter``) apart from profile predicates
(``profile_filter``); how the latter are applied is decided by ``expansion_gated``:

* gated (default): the profile predicates only match the expanded profile, so they have no effect
  when the caller's ``populate`` leaves out ``userInfoId``;
* not gated: the profile predicates restrict the identity records themselves.

Sort and projection fields are resolved through explicit allow-lists mapping wire names to
storage fields. Unknown fields are rejected; the credential hash is never projectable.
"""

import re
from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Dict, List, Mapping, Optional, Tuple

from bson import ObjectId

from userhub.core import ValidationFailed
from userhub.models.enums import Relation
from userhub.models.listing import UserListParams

from .relations import RELATION_FIELDS, parse_relations

ASCENDING = 1
DESCENDING = -1

SORTABLE_USER_FIELDS: Dict[str, str] = {
    "id": "_id",
    "username": "username",
    "fullName": "full_name",
    "isActive": "is_active",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

PROJECTABLE_USER_FIELDS: Dict[str, str] = {
    "id": "_id",
    "username": "username",
    "fullName": "full_name",
    "roleId": "role_ids",
    "branchId": "branch_id",
    "userInfoId": "user_info_id",
    "isActive": "is_active",
    "deleted": "deleted",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

SORTABLE_PROFILE_FIELDS: Dict[str, str] = {
    "id": "_id",
    "firstName": "first_name",
    "lastName": "last_name",
    "dateOfBirth": "date_of_birth",
    "email": "email",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

PROJECTABLE_PROFILE_FIELDS: Dict[str, str] = {
    "id": "_id",
    "firstName": "first_name",
    "lastName": "last_name",
    "gender": "gender",
    "dateOfBirth": "date_of_birth",
    "maritalStatus": "marital_status",
    "occupation": "occupation",
    "address": "address",
    "phoneNumber": "phone_number",
    "email": "email",
    "identifications": "identifications",
    "profilePhoto": "profile_photo",
    "createdAt": "created_at",
    "updatedAt": "updated_at",
}

DEFAULT_SORT: List[Tuple[str, int]] = [("created_at", DESCENDING)]

# Profile fields matched by ``search`` and ``idSearch``.
SEARCH_FIELDS = ("first_name", "last_name", "phone_number", "email")
ID_SEARCH_FIELDS = ("identifications.card_type", "identifications.card_code")


@dataclass
class UserQuery:
    """Store query for the identity-record listing."""

    filter: Dict[str, Any]
    profile_filter: Dict[str, Any] = field(default_factory=dict)
    sort: List[Tuple[str, int]] = field(default_factory=lambda: list(DEFAULT_SORT))
    projection: Optional[Dict[str, int]] = None
    relations: List[Relation] = field(default_factory=list)
    expansion_gated: bool = True

    @property
    def profile_match(self) -> Optional[Dict[str, Any]]:
        """Match condition for the profile expansion, or None when the expansion is unfiltered."""
        if self.expansion_gated and self.profile_filter and Relation.PROFILE in self.relations:
            return self.profile_filter
        return None


def _contains(value: str) -> Dict[str, str]:
    return {"$regex": re.escape(value), "$options": "i"}


def parse_date(value: str, field_name: str) -> datetime:
    """Parse an ISO 8601 date or datetime; naive values are taken as UTC."""
    try:
        parsed = datetime.fromisoformat(value.strip())
    except (TypeError, ValueError):
        raise ValidationFailed(f"Invalid {field_name}: expected an ISO 8601 date", field=field_name) from None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=UTC)
    return parsed


def parse_sort(
    sort: Optional[str],
    allowed: Mapping[str, str],
    default: Optional[List[Tuple[str, int]]] = None,
) -> List[Tuple[str, int]]:
    """Parse ``field:direction,...``. ``asc`` sorts ascending, anything else descending."""
    if not sort or not sort.strip():
        return list(default if default is not None else DEFAULT_SORT)

    result: List[Tuple[str, int]] = []
    for param in sort.split(","):
        name, _, direction = param.partition(":")
        name = name.strip()
        if not name:
            continue
        if name not in allowed:
            raise ValidationFailed(
                f"Unknown sort field '{name}'. Allowed: {', '.join(sorted(allowed))}",
                field="sort",
            )
        result.append((allowed[name], ASCENDING if direction.strip() == "asc" else DESCENDING))
    return result or list(default if default is not None else DEFAULT_SORT)


def parse_select(select: Optional[str], allowed: Mapping[str, str]) -> Optional[Dict[str, int]]:
    """Parse a comma-separated inclusion projection; None when no fields are selected."""
    if not select or not select.strip():
        return None

    projection: Dict[str, int] = {}
    for raw in select.split(","):
        name = raw.strip()
        if not name:
            continue
        if name not in allowed:
            raise ValidationFailed(
                f"Unknown select field '{name}'. Allowed: {', '.join(sorted(allowed))}",
                field="select",
            )
        projection[allowed[name]] = 1
    return projection or None


def resolve_pagination(limit: Optional[int], page: Optional[int], *, default_limit: int, max_limit: int):
    """Return ``(limit, page, skip)`` with the limit clamped to ``max_limit``."""
    limit = default_limit if not limit or limit < 1 else min(limit, max_limit)
    page = page if page and page > 0 else 1
    return limit, page, (page - 1) * limit


def build_user_query(params: UserListParams) -> UserQuery:
    """Build the store query for an identity-record listing.

    Raises:
        ValidationFailed: For a malformed ``branchId``, an unparsable date, or an unknown sort,
            select or populate field.
    """
    query_filter: Dict[str, Any] = {}
    if not params.include_deleted:
        query_filter["deleted"] = False

    if params.branch_id:
        if not ObjectId.is_valid(params.branch_id):
            raise ValidationFailed("Invalid branch id supplied", field="branchId")
        query_filter["branch_id"] = ObjectId(params.branch_id)

    if params.start_date or params.end_date:
        created: Dict[str, datetime] = {}
        if params.start_date:
            created["$gte"] = parse_date(params.start_date, "startDate")
        if params.end_date:
            created["$lte"] = parse_date(params.end_date, "endDate")
        query_filter["created_at"] = created

    profile_filter: Dict[str, Any] = {}
    or_clauses: List[Dict[str, Any]] = []
    if params.search:
        or_clauses.extend({name: _contains(params.search)} for name in SEARCH_FIELDS)
    if params.id_search:
        or_clauses.extend({name: _contains(params.id_search)} for name in ID_SEARCH_FIELDS)
    if or_clauses:
        profile_filter["$or"] = or_clauses

    if params.card_type:
        profile_filter["identifications.card_type"] = params.card_type
    if params.card_code:
        profile_filter["identifications.card_code"] = params.card_code
    if params.gender:
        profile_filter["gender"] = params.gender.value
    if params.marital_status:
        profile_filter["marital_status"] = params.marital_status.value

    relations = parse_relations(params.populate)
    projection = parse_select(params.select, PROJECTABLE_USER_FIELDS)
    if projection is not None:
        for relation in relations:
            projection[RELATION_FIELDS[relation]] = 1

    return UserQuery(
        filter=query_filter,
        profile_filter=profile_filter,
        sort=parse_sort(params.sort, SORTABLE_USER_FIELDS),
        projection=projection,
        relations=relations,
        expansion_gated=params.expansion_gated,
    )
