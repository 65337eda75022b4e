from .exceptions import (
    Forbidden,
    NotAuthenticated,
    NotFound,
    ServerFailure,
    StorageFailure,
    UserHubError,
    ValidationFailed,
)
from .logging import get_logger, setup_logger
from .operation import operation
from .responses import ApiResponse, error_response, register_exception_handlers, respond
from .security import (
    TokenData,
    create_access_token,
    create_refresh_token,
    decode_token,
    hash_password,
    require_token,
    verify_password,
)
from .settings import UserHubConfig, UserHubSettings, get_userhub_config, reset_userhub_config

__all__ = [
    "ApiResponse",
    "Forbidden",
    "NotAuthenticated",
    "NotFound",
    "ServerFailure",
    "StorageFailure",
    "TokenData",
    "UserHubConfig",
    "UserHubError",
    "UserHubSettings",
    "ValidationFailed",
    "create_access_token",
    "create_refresh_token",
    "decode_token",
    "error_response",
    "get_logger",
    "get_userhub_config",
    "hash_password",
    "operation",
    "register_exception_handlers",
    "require_token",
    "reset_userhub_config",
    "respond",
    "setup_logger",
    "verify_password",
]
