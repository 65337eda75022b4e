"""Identity-record request models."""

from typing import List, Optional

from pydantic import Field, StrictBool

from .base import CamelModel
from .profile import ProfileCreateRequest, ProfileUpdateRequest


class UserCreateRequest(CamelModel):
    """Request model for creating an identity record together with its profile."""

    username: str = Field(..., min_length=1, description="Unique among non-deleted users")
    password: str = Field(..., min_length=1)
    full_name: Optional[str] = None
    role_id: Optional[List[str]] = Field(None, description="Honoured only with ?allowRoles=true")
    branch_id: Optional[str] = None
    user_info: Optional[ProfileCreateRequest] = None


class UserUpdateRequest(CamelModel):
    """Request model for updating an identity record.

    ``branchId: null`` clears the branch; an omitted ``branchId`` leaves it untouched.
    """

    username: Optional[str] = None
    password: Optional[str] = None
    full_name: Optional[str] = None
    role_id: Optional[List[str]] = None
    branch_id: Optional[str] = None
    is_active: Optional[StrictBool] = None
    user_info: Optional[ProfileUpdateRequest] = None


class SelfProfileUpdateRequest(CamelModel):
    """Request model for the caller updating their own name and profile."""

    full_name: Optional[str] = None
    user_info: Optional[ProfileUpdateRequest] = None
