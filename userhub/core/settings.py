"""Configuration for the UserHub service.

Environment variables use the USERHUB__ prefix (e.g., USERHUB__MONGO_URI=mongodb://mongo:27017).
"""

from typing import Optional

from pydantic import BaseModel, SecretStr
from pydantic_settings import BaseSettings, SettingsConfigDict


class UserHubSettings(BaseModel):
    """UserHub service configuration settings."""

    # Service URL
    URL: str = "http://localhost:8080"

    # Database
    MONGO_URI: str = "mongodb://localhost:27017"
    MONGO_DB: str = "userhub"

    # Auth / JWT
    JWT_SECRET: SecretStr = SecretStr("dev-secret-key")
    JWT_ALGORITHM: str = "HS256"
    JWT_EXPIRES_IN: int = 60 * 60  # seconds
    JWT_REFRESH_EXPIRES_IN: int = 7 * 24 * 60 * 60  # seconds
    AUTH_ENABLED: bool = False
    DEFAULT_ROLE: str = "user"
    ADMIN_ROLE: str = "Admin"

    # Listing
    DEFAULT_PAGE_SIZE: int = 10
    MAX_PAGE_SIZE: int = 100

    # Object storage
    MINIO_ENDPOINT: str = "localhost:9000"
    MINIO_ACCESS_KEY: str = "minioadmin"
    MINIO_SECRET_KEY: SecretStr = SecretStr("minioadmin")
    MINIO_SECURE: bool = False
    MINIO_BUCKET: str = "userhub-files"
    MAX_UPLOAD_BYTES: int = 5 * 1024 * 1024

    # Logging
    LOG_LEVEL: str = "INFO"
    LOG_JSON: bool = True


class UserHubConfig(BaseSettings):
    """Top-level settings; the USERHUB section is overridable through USERHUB__* env vars."""

    USERHUB: UserHubSettings = UserHubSettings()

    model_config = SettingsConfigDict(env_nested_delimiter="__", extra="ignore")


_config: Optional[UserHubConfig] = None


def get_userhub_config() -> UserHubConfig:
    """Get the UserHub configuration singleton.

    Configuration is loaded once and cached.

    Examples:
        ```bash
        export USERHUB__URL=http://0.0.0.0:8081
        export USERHUB__MONGO_URI=mongodb://mongo:27017
        ```

        ```python
        config = get_userhub_config()
        print(config.USERHUB.MONGO_DB)  # userhub
        ```
    """
    global _config
    if _config is None:
        _config = UserHubConfig()
    return _config


def reset_userhub_config() -> None:
    """Reset the config cache. Useful for testing."""
    global _config
    _config = None
