from .base import MongoRepository, maybe_object_id, to_object_id
from .branch_repository import BranchRepository
from .profile_repository import ProfileRepository
from .role_repository import RoleRepository
from .token_repository import TokenRepository
from .user_repository import UserRepository

__all__ = [
    "BranchRepository",
    "MongoRepository",
    "ProfileRepository",
    "RoleRepository",
    "TokenRepository",
    "UserRepository",
    "maybe_object_id",
    "to_object_id",
]
