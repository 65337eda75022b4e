"""Identity-record operations: listing, creation, update, deletion and self-service."""

from typing import Any, Dict, List, Optional

from bson import ObjectId

from userhub.core import (
    NotFound,
    ServerFailure,
    ValidationFailed,
    get_logger,
    get_userhub_config,
    hash_password,
    operation,
)
from userhub.models import (
    DeleteMode,
    ProfileUpdateRequest,
    Relation,
    SelfProfileUpdateRequest,
    UserCreateRequest,
    UserListParams,
    UserUpdateRequest,
)
from userhub.query import (
    ALL_RELATIONS,
    RelationResolver,
    build_user_page,
    build_user_query,
    resolve_pagination,
    sanitize_user,
)
from userhub.repositories import to_object_id


class UserService:
    def __init__(self, user_repo, profile_repo, role_repo, branch_repo, auth_service, resolver=None):
        self.user_repo = user_repo
        self.profile_repo = profile_repo
        self.role_repo = role_repo
        self.branch_repo = branch_repo
        self.auth_service = auth_service
        self.resolver = resolver or RelationResolver(role_repo, branch_repo, profile_repo)
        self.logger = get_logger("users.service")

    # ------------------------------------------------------------------
    # Listing
    # ------------------------------------------------------------------

    @operation("Failed to get user info")
    async def list_users(self, params: UserListParams) -> Dict[str, Any]:
        """List identity records with filtering, sorting, projection and relation expansion.

        Returns:
            ``{"total", "page", "pageSize", "users"}``. ``total`` counts the records matching the
            top-level filter; ``pageSize`` is the number of records actually returned.
        """
        cfg = get_userhub_config().USERHUB
        query = build_user_query(params)
        limit, page, skip = resolve_pagination(
            params.limit, params.page, default_limit=cfg.DEFAULT_PAGE_SIZE, max_limit=cfg.MAX_PAGE_SIZE
        )

        page_args = dict(projection=query.projection, sort=query.sort, skip=skip, limit=limit)
        if not query.expansion_gated and query.profile_filter:
            # Profile predicates restrict the identity records themselves.
            users = await self.user_repo.find_with_profile(query.filter, query.profile_filter, **page_args)
            total = await self.user_repo.count_with_profile(query.filter, query.profile_filter)
        else:
            users = await self.user_repo.find(query.filter, **page_args)
            total = await self.user_repo.count(query.filter)

        profile_match = query.profile_match
        expanded = await self.resolver.expand(users, query.relations, profile_match=profile_match)

        self.logger.info(
            "users listed",
            total=total,
            page=page,
            returned=len(users),
            gated=query.expansion_gated,
            profile_filtered=bool(query.profile_filter),
        )
        return build_user_page(expanded, total=total, page=page, drop_unmatched=profile_match is not None)

    # ------------------------------------------------------------------
    # Create
    # ------------------------------------------------------------------

    @operation("Failed to create user and user info")
    async def create_user(self, payload: UserCreateRequest, *, allow_roles: bool = False) -> Dict[str, Any]:
        """Create a profile and the identity record referencing it, then issue tokens.

        Every check runs before the first write. If the identity insert still hits the username
        index (a concurrent create), the profile just inserted is removed again.
        """
        if await self.user_repo.get_by_username(payload.username) is not None:
            raise ValidationFailed("User already exists", field="username")
        if payload.user_info is None:
            raise ValidationFailed("User info is required", field="userInfo")

        branch_id = None
        if payload.branch_id:
            branch_id = to_object_id(payload.branch_id, field="branchId", message="Invalid branch id supplied")

        if allow_roles and payload.role_id:
            role_ids = await self._validated_role_ids(payload.role_id)
        else:
            role_ids = [await self._default_role_id()]

        profile_fields = payload.user_info.to_document_fields()
        if await self.profile_repo.email_taken(profile_fields.get("email")):
            raise ValidationFailed("Email already exists", field="email")

        profile = await self.profile_repo.create(profile_fields)
        try:
            user = await self.user_repo.create(
                {
                    "username": payload.username,
                    "password_hash": hash_password(payload.password),
                    "full_name": payload.full_name,
                    "role_ids": role_ids,
                    "branch_id": branch_id,
                    "user_info_id": profile["_id"],
                }
            )
        except ValidationFailed:
            await self.profile_repo.delete(profile["_id"])
            self.logger.warning("orphan profile removed", profile_id=str(profile["_id"]))
            raise

        tokens = await self.auth_service.issue_tokens(user["_id"])
        (expanded,) = await self.resolver.expand([user], [Relation.ROLE, Relation.PROFILE])
        self.logger.info("user created", user_id=str(user["_id"]), username=payload.username)
        return {
            "user": sanitize_user(expanded),
            "token": tokens.access_token,
            "refreshToken": tokens.refresh_token,
        }

    async def _validated_role_ids(self, raw_ids: List[str]) -> List[ObjectId]:
        role_ids = [to_object_id(r, field="roleId", message="Invalid role id supplied") for r in raw_ids]
        if await self.role_repo.count_existing(role_ids) != len(set(role_ids)):
            raise ValidationFailed("Invalid role id supplied", field="roleId")
        return role_ids

    async def _default_role_id(self) -> ObjectId:
        role = await self.role_repo.get_by_name(get_userhub_config().USERHUB.DEFAULT_ROLE)
        if role is None:
            raise ServerFailure("Default user role not configured")
        return role["_id"]

    # ------------------------------------------------------------------
    # Update / delete
    # ------------------------------------------------------------------

    @operation("Failed to update user profile")
    async def update_user(self, user_id: str, payload: UserUpdateRequest) -> Dict[str, Any]:
        oid = to_object_id(user_id, field="id", message="Invalid user id supplied")
        user = await self.user_repo.get_by_id(oid)
        if user is None:
            raise NotFound("User not found")

        updates: Dict[str, Any] = {}
        if payload.username and payload.username != user["username"]:
            if await self.user_repo.get_by_username(payload.username) is not None:
                raise ValidationFailed("Username already exists", field="username")
            updates["username"] = payload.username

        if payload.full_name:
            updates["full_name"] = payload.full_name

        if payload.role_id:
            updates["role_ids"] = await self._validated_role_ids(payload.role_id)

        if payload.is_active is not None:
            updates["is_active"] = payload.is_active

        if "branch_id" in payload.model_fields_set:
            updates["branch_id"] = (
                to_object_id(payload.branch_id, field="branchId", message="Invalid branch id supplied")
                if payload.branch_id
                else None
            )

        if payload.password and payload.password.strip():
            updates["password_hash"] = hash_password(payload.password)

        if payload.user_info is not None:
            profile_id = await self._apply_profile_update(user, payload.user_info)
            if profile_id is not None:
                updates["user_info_id"] = profile_id

        if updates:
            await self.user_repo.update(oid, updates)
        self.logger.info("user updated", user_id=user_id, fields=sorted(updates))
        return await self._expanded_user(oid)

    async def _apply_profile_update(self, user: Dict[str, Any], info: ProfileUpdateRequest) -> Optional[ObjectId]:
        """Update the linked profile, or create one when none is linked.

        Returns the id of a newly created profile, otherwise None.
        """
        fields = info.to_document_fields(only_set=True)
        if not fields:
            return None

        existing = await self.profile_repo.get_by_id(user.get("user_info_id")) if user.get("user_info_id") else None
        exclude_id = existing["_id"] if existing else None
        if await self.profile_repo.email_taken(fields.get("email"), exclude_id=exclude_id):
            raise ValidationFailed("Email already exists", field="email")

        if existing is not None:
            await self.profile_repo.update(existing["_id"], fields)
            return None
        created = await self.profile_repo.create(fields)
        return created["_id"]

    @operation("Failed to delete user")
    async def delete_user(self, user_id: str, mode: DeleteMode = DeleteMode.SOFT) -> Dict[str, Any]:
        """Delete an identity record.

        ``soft`` marks the record deleted and inactive; ``hard`` removes it. The linked profile is
        never removed.
        """
        oid = to_object_id(user_id, field="id", message="Invalid user id supplied")
        user = await self.user_repo.get_by_id(oid)
        if user is None or (mode is DeleteMode.SOFT and user.get("deleted")):
            raise NotFound("User not found")

        if mode is DeleteMode.HARD:
            await self.user_repo.delete(oid)
        else:
            await self.user_repo.soft_delete(oid)
        self.logger.info("user deleted", user_id=user_id, mode=mode.value)
        return {"id": user_id, "mode": mode.value}

    # ------------------------------------------------------------------
    # Self-service
    # ------------------------------------------------------------------

    @operation("Failed to get user info")
    async def get_me(self, user: Dict[str, Any]) -> Dict[str, Any]:
        return await self._expanded_user(user["_id"])

    @operation("Failed to update profile")
    async def update_self_profile(self, user: Dict[str, Any], payload: SelfProfileUpdateRequest) -> Dict[str, Any]:
        current = await self.user_repo.get_by_id(user["_id"])
        if current is None:
            raise NotFound("User not found")

        updates: Dict[str, Any] = {}
        if payload.full_name:
            updates["full_name"] = payload.full_name

        if payload.user_info is not None:
            if current.get("user_info_id") and await self.profile_repo.get_by_id(current["user_info_id"]) is None:
                raise NotFound("User profile not found")
            profile_id = await self._apply_profile_update(current, payload.user_info)
            if profile_id is not None:
                updates["user_info_id"] = profile_id

        if updates:
            await self.user_repo.update(current["_id"], updates)
        return await self._expanded_user(current["_id"])

    async def _expanded_user(self, oid: ObjectId) -> Dict[str, Any]:
        user = await self.user_repo.get_by_id(oid)
        if user is None:
            raise NotFound("User not found")
        (expanded,) = await self.resolver.expand([user], ALL_RELATIONS)
        return sanitize_user(expanded)
