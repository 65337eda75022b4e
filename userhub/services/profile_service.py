"""Standalone profile-record operations."""

import math
from typing import Any, Dict

from userhub.core import NotFound, ValidationFailed, get_logger, get_userhub_config, operation
from userhub.models import ProfileCreateRequest, ProfileListParams, ProfileUpdateRequest, Relation
from userhub.query import (
    PROJECTABLE_PROFILE_FIELDS,
    SORTABLE_PROFILE_FIELDS,
    RelationResolver,
    parse_select,
    parse_sort,
    resolve_pagination,
    sanitize_profile,
    sanitize_record,
)
from userhub.repositories import to_object_id


class ProfileService:
    def __init__(self, profile_repo, user_repo, role_repo, branch_repo, resolver=None):
        self.profile_repo = profile_repo
        self.user_repo = user_repo
        self.resolver = resolver or RelationResolver(role_repo, branch_repo, profile_repo)
        self.logger = get_logger("profiles.service")

    @operation("Failed to create user info")
    async def create_profile(self, payload: ProfileCreateRequest) -> Dict[str, Any]:
        fields = payload.to_document_fields()
        if await self.profile_repo.email_taken(fields.get("email")):
            raise ValidationFailed("Email already exists", field="email")
        profile = await self.profile_repo.create(fields)
        self.logger.info("profile created", profile_id=str(profile["_id"]))
        return sanitize_profile(profile)

    @operation("Failed to get profiles")
    async def list_profiles(self, params: ProfileListParams) -> Dict[str, Any]:
        """Paginated profile listing.

        Returns:
            ``docs`` with ``totalDocs``, ``limit``, ``page``, ``totalPages``, ``hasPrevPage`` and
            ``hasNextPage``.
        """
        cfg = get_userhub_config().USERHUB
        limit, page, skip = resolve_pagination(
            params.limit, params.page, default_limit=cfg.DEFAULT_PAGE_SIZE, max_limit=cfg.MAX_PAGE_SIZE
        )
        sort = parse_sort(params.sort, SORTABLE_PROFILE_FIELDS)
        projection = parse_select(params.select, PROJECTABLE_PROFILE_FIELDS)

        docs = await self.profile_repo.find({}, projection=projection, sort=sort, skip=skip, limit=limit)
        total = await self.profile_repo.count({})
        total_pages = math.ceil(total / limit) if total else 0
        return {
            "docs": [sanitize_profile(doc) for doc in docs],
            "totalDocs": total,
            "limit": limit,
            "page": page,
            "totalPages": total_pages,
            "hasPrevPage": page > 1,
            "hasNextPage": page < total_pages,
        }

    @operation("Internal server error")
    async def get_profile(self, profile_id: str) -> Dict[str, Any]:
        """Fetch one profile with the username, full name, branch and roles of the linked user.

        Raises:
            ValidationFailed: When ``profile_id`` is not a valid ObjectId.
            NotFound: When no profile has that id.
        """
        oid = to_object_id(profile_id, field="id", message="Invalid user info ID")
        profile = await self.profile_repo.get_by_id(oid)
        if profile is None:
            raise NotFound(f"UserInfo not found with id: {profile_id}")

        result: Dict[str, Any] = {"userInfoId": sanitize_profile(profile)}
        user = await self.user_repo.get_by_profile_id(oid)
        if user is not None:
            (expanded,) = await self.resolver.expand([user], [Relation.BRANCH, Relation.ROLE])
            result["branchId"] = sanitize_record(expanded.get("branch_id"))
            result["roleId"] = [sanitize_record(role) for role in expanded.get("role_ids", [])]
            result["username"] = user.get("username")
            result["fullName"] = user.get("full_name")
        return result

    @operation("Failed to update user profile by Id")
    async def update_profile(self, profile_id: str, payload: ProfileUpdateRequest) -> Dict[str, Any]:
        oid = to_object_id(profile_id, field="id", message="Invalid ID format")
        fields = payload.to_document_fields(only_set=True)
        if not fields:
            raise ValidationFailed("No fields to update")
        if await self.profile_repo.email_taken(fields.get("email"), exclude_id=oid):
            raise ValidationFailed("Email already exists", field="email")

        profile = await self.profile_repo.update(oid, fields)
        if profile is None:
            raise NotFound("User profile not found")
        self.logger.info("profile updated", profile_id=profile_id, fields=sorted(fields))
        return sanitize_profile(profile)
