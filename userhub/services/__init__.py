from .auth_service import AuthService
from .branch_service import BranchService
from .photo_service import PHOTO_URL, PhotoService
from .profile_service import ProfileService
from .role_service import RoleService
from .user_service import UserService

__all__ = [
    "AuthService",
    "BranchService",
    "PHOTO_URL",
    "PhotoService",
    "ProfileService",
    "RoleService",
    "UserService",
]
