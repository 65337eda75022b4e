from .auth import LoginPayload, RefreshPayload, TokenResponse
from .base import CamelModel
from .branch import BranchCreateRequest, BranchUpdateRequest
from .documents import (
    DOCUMENT_MODELS,
    AccessTokenDocument,
    BranchDocument,
    Identification,
    ProfileDocument,
    ProfilePhoto,
    RefreshTokenDocument,
    RoleDocument,
    UserDocument,
)
from .enums import DeleteMode, Gender, MaritalStatus, Relation
from .listing import ProfileListParams, UserListParams
from .profile import PROFILE_UPDATE_FIELDS, IdentificationIn, ProfileCreateRequest, ProfileUpdateRequest
from .user import SelfProfileUpdateRequest, UserCreateRequest, UserUpdateRequest

__all__ = [
    "AccessTokenDocument",
    "BranchCreateRequest",
    "BranchDocument",
    "BranchUpdateRequest",
    "CamelModel",
    "DOCUMENT_MODELS",
    "DeleteMode",
    "Gender",
    "Identification",
    "IdentificationIn",
    "LoginPayload",
    "MaritalStatus",
    "PROFILE_UPDATE_FIELDS",
    "ProfileCreateRequest",
    "ProfileDocument",
    "ProfileListParams",
    "ProfilePhoto",
    "ProfileUpdateRequest",
    "RefreshPayload",
    "RefreshTokenDocument",
    "Relation",
    "RoleDocument",
    "SelfProfileUpdateRequest",
    "TokenResponse",
    "UserCreateRequest",
    "UserDocument",
    "UserListParams",
    "UserUpdateRequest",
]
