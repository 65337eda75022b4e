"""Shape lean store records into API payloads.

Sanitising removes the credential hash and internal markers, turns ``_id`` into ``id``, ObjectIds
into strings and snake_case keys into camelCase.
"""

from typing import Any, Dict, List, Optional

from bson import ObjectId
from pydantic.alias_generators import to_camel

USER_HIDDEN_FIELDS = frozenset({"password_hash", "revision_id"})
PROFILE_HIDDEN_FIELDS = frozenset({"revision_id", "deleted"})
RECORD_HIDDEN_FIELDS = frozenset({"revision_id"})

# Keys whose wire name is not the camelCase of the storage name.
_WIRE_NAMES = {"_id": "id", "role_ids": "roleId"}


def wire_key(key: str) -> str:
    return _WIRE_NAMES.get(key) or to_camel(key)


def to_wire(value: Any) -> Any:
    """Recursively convert a stored value to its wire form."""
    if isinstance(value, ObjectId):
        return str(value)
    if isinstance(value, dict):
        return {wire_key(k): to_wire(v) for k, v in value.items()}
    if isinstance(value, (list, tuple)):
        return [to_wire(v) for v in value]
    return value


def _strip(doc: Dict[str, Any], hidden: frozenset) -> Dict[str, Any]:
    return {k: v for k, v in doc.items() if k not in hidden}


def sanitize_profile(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    if doc is None:
        return None
    return to_wire(_strip(doc, PROFILE_HIDDEN_FIELDS))


def sanitize_record(doc: Optional[Dict[str, Any]]) -> Optional[Dict[str, Any]]:
    """Sanitise a role or branch record."""
    if doc is None:
        return None
    return to_wire(_strip(doc, RECORD_HIDDEN_FIELDS))


def sanitize_user(doc: Dict[str, Any]) -> Dict[str, Any]:
    """Sanitise an identity record, including any expanded relations.

    The credential hash never appears in the result, whichever fields were selected.
    """
    clean = _strip(doc, USER_HIDDEN_FIELDS)
    profile = clean.get("user_info_id")
    if isinstance(profile, dict):
        clean["user_info_id"] = sanitize_profile(profile)
    branch = clean.get("branch_id")
    if isinstance(branch, dict):
        clean["branch_id"] = sanitize_record(branch)
    roles = clean.get("role_ids")
    if isinstance(roles, list):
        clean["role_ids"] = [sanitize_record(r) if isinstance(r, dict) else r for r in roles]
    return to_wire(clean)


def build_user_page(
    users: List[Dict[str, Any]],
    *,
    total: int,
    page: int,
    drop_unmatched: bool = False,
) -> Dict[str, Any]:
    """Assemble the listing payload.

    Args:
        users: Identity records with relations already expanded.
        total: Count of records matching the top-level filter.
        page: 1-based page number.
        drop_unmatched: Drop records whose expanded profile resolved to ``None``. Used when the
            profile expansion carried a match condition.
    """
    if drop_unmatched:
        users = [u for u in users if u.get("user_info_id") is not None]
    items = [sanitize_user(u) for u in users]
    return {
        "total": total,
        "page": page,
        "pageSize": len(items),
        "users": items,
    }
