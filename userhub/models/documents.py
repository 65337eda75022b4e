"""Beanie Document models for UserHub MongoDB collections.

Stored field names are snake_case. Uniqueness of usernames (among non-deleted users), profile emails,
role names and branch codes is enforced by the indexes declared here, which ``init_beanie`` creates
at startup.
"""

from datetime import UTC, datetime
from typing import List, Optional

from beanie import Document, Indexed, Insert, PydanticObjectId, Replace, SaveChanges, before_event
from pydantic import BaseModel, Field
from pymongo import ASCENDING, DESCENDING, IndexModel

from .enums import Gender, MaritalStatus


def utcnow() -> datetime:
    return datetime.now(UTC)


class UserHubDocument(Document):
    """Base document with creation/update timestamps."""

    created_at: datetime = Field(default_factory=utcnow)
    updated_at: datetime = Field(default_factory=utcnow)

    class Settings:
        use_cache = False

    @before_event(Insert)
    async def stamp_insert(self):
        now = utcnow()
        self.created_at = now
        self.updated_at = now

    @before_event(Replace, SaveChanges)
    async def stamp_update(self):
        self.updated_at = utcnow()


class Identification(BaseModel):
    """One identification document held by a person."""

    card_type: Optional[str] = None
    card_code: Optional[str] = None


class ProfilePhoto(BaseModel):
    """Location of a profile photo in object storage."""

    bucket: str
    filename: str
    original_name: Optional[str] = None
    mimetype: Optional[str] = None


class UserDocument(UserHubDocument):
    """Identity record: credentials, role and branch references, profile reference."""

    username: str
    password_hash: str
    full_name: Optional[str] = None
    role_ids: List[PydanticObjectId] = Field(default_factory=list)
    branch_id: Optional[PydanticObjectId] = None
    user_info_id: Optional[PydanticObjectId] = None
    is_active: bool = True
    deleted: bool = False

    class Settings:
        name = "users"
        use_cache = False
        indexes = [
            IndexModel(
                [("username", ASCENDING)],
                name="users_username_active_uq",
                unique=True,
                partialFilterExpression={"deleted": False},
            ),
            "branch_id",
            "user_info_id",
            IndexModel([("created_at", DESCENDING)], name="users_created_at"),
        ]


class ProfileDocument(UserHubDocument):
    """Profile record: personal details linked from an identity record."""

    first_name: Optional[str] = None
    last_name: Optional[str] = None
    gender: Optional[Gender] = None
    date_of_birth: Optional[datetime] = None
    marital_status: Optional[MaritalStatus] = None
    occupation: Optional[str] = None
    address: str = ""
    phone_number: str = ""
    email: Optional[str] = None
    identifications: List[Identification] = Field(default_factory=list)
    profile_photo: Optional[ProfilePhoto] = None
    deleted: bool = False

    class Settings:
        name = "profiles"
        use_cache = False
        indexes = [
            IndexModel(
                [("email", ASCENDING)],
                name="profiles_email_uq",
                unique=True,
                partialFilterExpression={"email": {"$type": "string"}},
            ),
            "gender",
            "marital_status",
            IndexModel([("created_at", DESCENDING)], name="profiles_created_at"),
        ]


class RoleDocument(UserHubDocument):
    """Role document for RBAC."""

    name: Indexed(str, unique=True)
    description: Optional[str] = None
    permissions: Optional[List[str]] = None

    class Settings:
        name = "roles"
        use_cache = False


class BranchDocument(UserHubDocument):
    """Organisation branch."""

    name: str
    code: Indexed(str, unique=True)
    address: Optional[str] = None
    phone_number: Optional[str] = None
    is_active: bool = True

    class Settings:
        name = "branches"
        use_cache = False
        indexes = [
            "is_active",
        ]


class AccessTokenDocument(UserHubDocument):
    """Issued access token."""

    user_id: Indexed(PydanticObjectId)
    token: Indexed(str)

    class Settings:
        name = "access_tokens"
        use_cache = False


class RefreshTokenDocument(UserHubDocument):
    """Issued refresh token."""

    user_id: Indexed(PydanticObjectId)
    token: Indexed(str, unique=True)

    class Settings:
        name = "refresh_tokens"
        use_cache = False


DOCUMENT_MODELS = [
    UserDocument,
    ProfileDocument,
    RoleDocument,
    BranchDocument,
    AccessTokenDocument,
    RefreshTokenDocument,
]

__all__ = [
    "AccessTokenDocument",
    "BranchDocument",
    "DOCUMENT_MODELS",
    "Identification",
    "ProfileDocument",
    "ProfilePhoto",
    "RefreshTokenDocument",
    "RoleDocument",
    "UserDocument",
    "UserHubDocument",
    "utcnow",
]
