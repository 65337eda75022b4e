"""UserHub - Backend service for user accounts, profiles and branches.

This package exposes UserHubService and configuration helpers.
"""

from .core.settings import UserHubConfig, get_userhub_config
from .service import UserHubService, create_app

__all__ = [
    "UserHubConfig",
    "UserHubService",
    "create_app",
    "get_userhub_config",
]
