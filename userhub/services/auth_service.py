from typing import Any, Dict

from bson import ObjectId

from userhub.core import (
    NotAuthenticated,
    TokenData,
    create_access_token,
    create_refresh_token,
    decode_token,
    get_logger,
    operation,
    verify_password,
)
from userhub.core.security import REFRESH_TOKEN
from userhub.models import LoginPayload, RefreshPayload, TokenResponse
from userhub.repositories import maybe_object_id


class AuthService:
    """Credential checks and token issuance."""

    def __init__(self, user_repo, token_repo):
        self.user_repo = user_repo
        self.token_repo = token_repo
        self.logger = get_logger("auth.service")

    async def issue_tokens(self, user_id: ObjectId) -> TokenResponse:
        """Create an access and a refresh token for ``user_id`` and persist both."""
        access_token = create_access_token(str(user_id))
        refresh_token = create_refresh_token(str(user_id))
        await self.token_repo.save_refresh_token(user_id, refresh_token)
        await self.token_repo.save_access_token(user_id, access_token)
        return TokenResponse(access_token=access_token, refresh_token=refresh_token)

    @operation("Failed to log in")
    async def login(self, payload: LoginPayload) -> TokenResponse:
        user = await self.user_repo.get_by_username(payload.username)
        if user is None or not verify_password(payload.password, user.get("password_hash", "")):
            raise NotAuthenticated("Invalid username or password")
        if not user.get("is_active", True):
            raise NotAuthenticated("User account is inactive")
        self.logger.info("user logged in", user_id=str(user["_id"]))
        return await self.issue_tokens(user["_id"])

    @operation("Failed to refresh token")
    async def refresh(self, payload: RefreshPayload) -> TokenResponse:
        data = decode_token(payload.refresh_token, expected_type=REFRESH_TOKEN)
        stored = await self.token_repo.get_refresh_token(payload.refresh_token)
        if stored is None:
            raise NotAuthenticated("Refresh token not recognised")
        user = await self.current_user(data)

        access_token = create_access_token(str(user["_id"]))
        await self.token_repo.save_access_token(user["_id"], access_token)
        return TokenResponse(access_token=access_token, refresh_token=payload.refresh_token)

    @operation("Failed to authenticate user")
    async def current_user(self, token: TokenData) -> Dict[str, Any]:
        """Resolve the identity record behind a decoded token.

        Raises:
            NotAuthenticated: When the user no longer exists, is deleted or is inactive.
        """
        oid = maybe_object_id(token.sub)
        user = await self.user_repo.get_by_id(oid) if oid is not None else None
        if user is None or user.get("deleted"):
            raise NotAuthenticated("User not found")
        if not user.get("is_active", True):
            raise NotAuthenticated("User account is inactive")
        return user
