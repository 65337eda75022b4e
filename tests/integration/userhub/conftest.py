import os
import uuid
from datetime import UTC, datetime
from typing import Dict, Generator, List, Optional

import pytest
from fastapi.testclient import TestClient
from pymongo import MongoClient
from pymongo.errors import ServerSelectionTimeoutError

from userhub import UserHubService
from userhub.core import reset_userhub_config
from userhub.db import reset_db

TEST_MONGO_URI = "mongodb://localhost:27018"
TEST_DB_NAME = "userhub_test"
TEST_COLLECTIONS: List[str] = ["users", "profiles", "roles", "branches", "access_tokens", "refresh_tokens"]
SEEDED_ROLES = ("user", "Admin")


@pytest.fixture(scope="session", autouse=True)
def _set_userhub_test_env() -> Generator[None, None, None]:
    """Point UserHub at the test MongoDB instance before its config is loaded."""
    os.environ["USERHUB__MONGO_URI"] = TEST_MONGO_URI
    os.environ["USERHUB__MONGO_DB"] = TEST_DB_NAME
    reset_userhub_config()
    reset_db()
    yield
    reset_userhub_config()


def _get_test_client() -> Optional[MongoClient]:
    """Return a pymongo client for the test database, or None if Mongo is not reachable."""
    client = MongoClient(TEST_MONGO_URI, serverSelectionTimeoutMS=5000)
    try:
        client[TEST_DB_NAME].list_collection_names()
    except ServerSelectionTimeoutError:
        client.close()
        return None
    return client


@pytest.fixture(scope="session")
def mongo(_set_userhub_test_env):
    """Synchronous handle on the test database for seeding and direct assertions."""
    client = _get_test_client()
    if client is None:
        pytest.skip(f"MongoDB not reachable on {TEST_MONGO_URI}")
    yield client[TEST_DB_NAME]
    client.close()


@pytest.fixture(scope="session")
def client(mongo) -> Generator[TestClient, None, None]:
    """In-process TestClient; entering it runs startup, which creates the indexes."""
    service = UserHubService()
    with TestClient(service.app) as test_client:
        yield test_client


@pytest.fixture(autouse=True)
def roles(mongo) -> Generator[Dict[str, str], None, None]:
    """Wipe the collections around each test and seed the default and admin roles.

    Yields role ids keyed by role name.
    """
    for name in TEST_COLLECTIONS:
        mongo[name].delete_many({})
    now = datetime.now(UTC)
    ids = {}
    for name in SEEDED_ROLES:
        result = mongo["roles"].insert_one({"name": name, "description": None, "created_at": now, "updated_at": now})
        ids[name] = str(result.inserted_id)
    yield ids
    for name in TEST_COLLECTIONS:
        mongo[name].delete_many({})


def _unique(prefix: str = "user") -> str:
    return f"{prefix}{uuid.uuid4().hex[:8]}"


def _profile_payload(**overrides) -> dict:
    payload = {
        "firstName": "Jane",
        "lastName": "Doe",
        "gender": "F",
        "dateOfBirth": "1990-05-17",
        "maritalStatus": "Single",
        "phoneNumber": "+1 555 0100",
        "identifications": [{"cardType": "Visa", "cardCode": "V-123"}],
    }
    payload.update(overrides)
    return payload


@pytest.fixture
def profile_payload():
    """Factory for a valid camelCase profile body."""
    return _profile_payload


@pytest.fixture
def create_user(client):
    """Factory creating a user through the API; returns the response ``data``."""

    def _create(username: Optional[str] = None, password: str = "secret123", query: str = "", **fields) -> dict:
        body = {"username": username or _unique(), "password": password, "userInfo": _profile_payload()}
        body.update(fields)
        response = client.post(f"/users{query}", json=body)
        assert response.status_code == 201, response.text
        return response.json()["data"]

    return _create


@pytest.fixture
def auth_headers():
    def _headers(token: str) -> dict:
        return {"Authorization": f"Bearer {token}"}

    return _headers


@pytest.fixture
def admin_headers(create_user, auth_headers, roles) -> dict:
    data = create_user(query="?allowRoles=true", roleId=[roles["Admin"]], userInfo=_profile_payload(firstName="Ada"))
    return auth_headers(data["token"])
