from .filters import (
    PROJECTABLE_PROFILE_FIELDS,
    PROJECTABLE_USER_FIELDS,
    SORTABLE_PROFILE_FIELDS,
    SORTABLE_USER_FIELDS,
    UserQuery,
    build_user_query,
    parse_date,
    parse_select,
    parse_sort,
    resolve_pagination,
)
from .projection import build_user_page, sanitize_profile, sanitize_record, sanitize_user, to_wire
from .relations import ALL_RELATIONS, RELATION_FIELDS, RelationResolver, parse_relations

__all__ = [
    "ALL_RELATIONS",
    "PROJECTABLE_PROFILE_FIELDS",
    "PROJECTABLE_USER_FIELDS",
    "RELATION_FIELDS",
    "RelationResolver",
    "SORTABLE_PROFILE_FIELDS",
    "SORTABLE_USER_FIELDS",
    "UserQuery",
    "build_user_page",
    "build_user_query",
    "parse_date",
    "parse_relations",
    "parse_select",
    "parse_sort",
    "resolve_pagination",
    "sanitize_profile",
    "sanitize_record",
    "sanitize_user",
    "to_wire",
]
