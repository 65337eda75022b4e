import os
from datetime import UTC, datetime, timedelta
from unittest.mock import AsyncMock

import pytest
from bson import ObjectId

from userhub.core import reset_userhub_config


@pytest.fixture(autouse=True)
def _fresh_config(monkeypatch):
    """Start every test from default settings; monkeypatched env vars take effect on next read."""
    for name in list(os.environ):
        if name.startswith("USERHUB__"):
            monkeypatch.delenv(name)
    reset_userhub_config()
    yield
    reset_userhub_config()


@pytest.fixture
def repos():
    """AsyncMock stand-ins for every repository, with empty defaults."""
    user_repo = AsyncMock()
    profile_repo = AsyncMock()
    role_repo = AsyncMock()
    branch_repo = AsyncMock()
    token_repo = AsyncMock()

    for repo in (profile_repo, role_repo, branch_repo):
        repo.find_by_ids.return_value = []
    user_repo.get_by_username.return_value = None
    user_repo.find.return_value = []
    user_repo.count.return_value = 0
    profile_repo.email_taken.return_value = False
    user_repo.find_with_profile.return_value = []
    user_repo.count_with_profile.return_value = 0

    return {
        "user": user_repo,
        "profile": profile_repo,
        "role": role_repo,
        "branch": branch_repo,
        "token": token_repo,
    }


def _make_profile(**overrides):
    doc = {
        "_id": ObjectId(),
        "first_name": "Jane",
        "last_name": "Doe",
        "gender": "F",
        "date_of_birth": datetime(1990, 5, 17, tzinfo=UTC),
        "marital_status": "Single",
        "occupation": None,
        "address": "",
        "phone_number": "+1 555 0100",
        "email": "jane@example.com",
        "identifications": [{"card_type": "Visa", "card_code": "V-123"}],
        "profile_photo": None,
        "deleted": False,
        "revision_id": None,
        "created_at": datetime.now(UTC) - timedelta(days=1),
        "updated_at": datetime.now(UTC),
    }
    doc.update(overrides)
    return doc


def _make_user(**overrides):
    doc = {
        "_id": ObjectId(),
        "username": "jane",
        "password_hash": "c2FsdHNhbHQ=",
        "full_name": "Jane Doe",
        "role_ids": [ObjectId()],
        "branch_id": None,
        "user_info_id": ObjectId(),
        "is_active": True,
        "deleted": False,
        "revision_id": None,
        "created_at": datetime.now(UTC),
        "updated_at": datetime.now(UTC),
    }
    doc.update(overrides)
    return doc


@pytest.fixture
def make_profile():
    """Factory for lean profile records as read from the store."""
    return _make_profile


@pytest.fixture
def make_user():
    """Factory for lean identity records as read from the store."""
    return _make_user
