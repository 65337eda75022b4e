"""Database module for UserHub.

One Motor client per process. ``initialize_db()`` binds the Beanie document models to the database,
which creates the indexes declared in each document's ``Settings`` (including the partial unique
indexes that guard usernames and profile emails). Repositories read and update through the raw
Motor collections returned by ``get_database()``.
"""

from typing import Optional

from beanie import init_beanie
from motor.motor_asyncio import AsyncIOMotorClient, AsyncIOMotorDatabase

from userhub.core import get_logger, get_userhub_config
from userhub.models.documents import DOCUMENT_MODELS

_client: Optional[AsyncIOMotorClient] = None

logger = get_logger("db")


def get_client() -> AsyncIOMotorClient:
    """Get the global Motor client, creating it on first call.

    No connection is made until the first operation.
    """
    global _client
    if _client is None:
        cfg = get_userhub_config().USERHUB
        _client = AsyncIOMotorClient(cfg.MONGO_URI, tz_aware=True)
    return _client


def get_database() -> AsyncIOMotorDatabase:
    """Get the UserHub database handle. Access collections via ``get_database()["users"]``."""
    return get_client()[get_userhub_config().USERHUB.MONGO_DB]


async def initialize_db() -> None:
    """Initialize Beanie and create indexes.

    Should be called during application startup for predictable initialization.
    """
    database = get_database()
    await init_beanie(database=database, document_models=DOCUMENT_MODELS)
    logger.info("database initialized", database=database.name)


async def close_db() -> None:
    """Close the database connection.

    Should be called during application shutdown for clean resource cleanup.
    """
    global _client
    if _client is not None:
        _client.close()
        _client = None
        logger.info("database connection closed")


def reset_db() -> None:
    """Reset the global client.

    Useful in tests to ensure a fresh client bound to the running event loop.
    Does NOT close the connection - use close_db() first if needed.
    """
    global _client
    _client = None
