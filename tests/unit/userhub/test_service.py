"""Route-level tests for UserHubService with the service layer mocked out."""

from unittest.mock import AsyncMock, MagicMock

import pytest
from bson import ObjectId
from fastapi.testclient import TestClient

from userhub import UserHubService
from userhub.core import NotFound, create_access_token
from userhub.models import DeleteMode, Gender
from userhub.storage import StoredObject


@pytest.fixture
def caller(make_user):
    return make_user()


@pytest.fixture
def service(caller):
    service = UserHubService(enable_db=False, storage=MagicMock())
    service._auth_service = AsyncMock()
    service._auth_service.current_user.return_value = caller
    service._user_service = AsyncMock()
    service._profile_service = AsyncMock()
    service._photo_service = AsyncMock()
    service._branch_service = AsyncMock()
    service._role_repo = AsyncMock()
    return service


@pytest.fixture
def client(service):
    return TestClient(service.app)


@pytest.fixture
def auth_headers(caller):
    return {"Authorization": f"Bearer {create_access_token(str(caller['_id']))}"}


class TestStatus:
    def test_status(self, client):
        response = client.get("/status")

        assert response.status_code == 200
        assert response.json() == {"status": 200, "message": "Service is running", "data": {"status": "ok"}}
        assert response.headers["X-Request-ID"]


class TestUserRoutes:
    def test_list_forwards_query_parameters(self, client, service):
        service.user_service.list_users.return_value = {"docs": []}

        response = client.get(
            "/users",
            params={"limit": 5, "page": 2, "populate": "roleId", "gender": "F", "expansionGated": "false"},
        )

        assert response.status_code == 200
        assert response.json()["message"] == "data get successfully"
        params = service.user_service.list_users.await_args.args[0]
        assert params.limit == 5
        assert params.page == 2
        assert params.populate == "roleId"
        assert params.gender is Gender.FEMALE
        assert params.expansion_gated is False
        assert params.include_deleted is False

    def test_invalid_query_value_is_400(self, client, service):
        response = client.get("/users", params={"gender": "X"})

        assert response.status_code == 400
        body = response.json()
        assert body["status"] == 400
        assert body["data"] == []
        service.user_service.list_users.assert_not_awaited()

    def test_create_returns_201(self, client, service):
        service.user_service.create_user.return_value = {"user": {"id": "1"}, "token": "t", "refreshToken": "r"}

        response = client.post("/users", json={"username": "jane", "password": "secret123"})

        assert response.status_code == 201
        assert response.json()["data"]["refreshToken"] == "r"
        assert service.user_service.create_user.await_args.kwargs == {"allow_roles": False}

    def test_service_errors_use_envelope(self, client, service):
        service.user_service.delete_user.side_effect = NotFound("User not found")

        response = client.delete(f"/users/{ObjectId()}", params={"mode": "hard"})

        assert response.status_code == 404
        assert response.json() == {"status": 404, "message": "User not found", "data": []}
        assert service.user_service.delete_user.await_args.args[1] is DeleteMode.HARD

    def test_me_requires_token(self, client, service):
        response = client.get("/users/me")

        assert response.status_code == 401
        service.user_service.get_me.assert_not_awaited()

    def test_me_is_not_routed_as_an_id(self, client, service, caller, auth_headers):
        service.user_service.get_me.return_value = {"id": str(caller["_id"])}

        response = client.get("/users/me", headers=auth_headers)

        assert response.status_code == 200
        service.user_service.get_me.assert_awaited_once_with(caller)

    def test_photo_download_streams(self, client, service, auth_headers):
        service.photo_service.get_self_photo.return_value = StoredObject(
            bucket="userhub-files", name="me.png", content_type="image/png", chunks=iter([b"ab", b"cd"])
        )

        response = client.get("/users/me/profile/photo", headers=auth_headers)

        assert response.status_code == 200
        assert response.content == b"abcd"
        assert response.headers["content-type"] == "image/png"
        assert response.headers["cache-control"] == "no-store"
        assert 'filename="me.png"' in response.headers["content-disposition"]

    def test_photo_upload(self, client, service, caller, auth_headers):
        service.photo_service.update_self_photo.return_value = {"photoUrl": "/users/me/profile/photo"}

        response = client.put(
            "/users/me/profile/photo",
            headers=auth_headers,
            files={"file": ("me.png", b"\x89PNG", "image/png")},
        )

        assert response.status_code == 200
        call = service.photo_service.update_self_photo.await_args
        assert call.args[0] == caller
        assert call.kwargs == {"filename": "me.png", "content_type": "image/png", "data": b"\x89PNG"}

    def test_user_lookup_failure_uses_envelope(self, service, auth_headers):
        service._auth_service = None
        service._user_repo = AsyncMock()
        service._user_repo.get_by_id.side_effect = RuntimeError("connection reset")
        service._token_repo = AsyncMock()
        client = TestClient(service.app, raise_server_exceptions=False)

        response = client.get("/users/me", headers=auth_headers)

        assert response.status_code == 500
        assert response.json() == {
            "status": 500,
            "message": "Failed to authenticate user",
            "data": [],
            "error": "connection reset",
        }
        service.user_service.get_me.assert_not_awaited()


class TestBranchRoutes:
    def test_non_admin_is_forbidden(self, client, service, auth_headers):
        service.role_repo.find_by_ids.return_value = [{"name": "user"}]

        response = client.post("/branches", headers=auth_headers, json={"name": "North", "code": "N"})

        assert response.status_code == 403
        service.branch_service.create_branch.assert_not_awaited()

    def test_admin_role_is_case_insensitive(self, client, service, auth_headers):
        service.role_repo.find_by_ids.return_value = [{"name": "ADMIN"}]
        service.branch_service.create_branch.return_value = {"id": "1", "code": "N"}

        response = client.post("/branches", headers=auth_headers, json={"name": "North", "code": "N"})

        assert response.status_code == 201

    def test_role_lookup_failure_uses_envelope(self, client, service, auth_headers):
        service.role_repo.find_by_ids.side_effect = RuntimeError("connection reset")

        response = client.post("/branches", headers=auth_headers, json={"name": "North", "code": "N"})

        assert response.status_code == 500
        body = response.json()
        assert body["message"] == "Failed to check permissions"
        assert body["error"] == "connection reset"
        service.branch_service.create_branch.assert_not_awaited()

    def test_listing_needs_only_a_user(self, client, service, auth_headers):
        service.branch_service.list_branches.return_value = []

        assert client.get("/branches", headers=auth_headers).status_code == 200
        assert client.get("/branches").status_code == 401


class TestAuthMiddleware:
    @pytest.fixture
    def guarded(self, service):
        guarded = UserHubService(enable_db=False, enable_auth=True)
        guarded._user_service = service._user_service
        return TestClient(guarded.app)

    def test_public_paths_pass(self, guarded):
        assert guarded.get("/status").status_code == 200

    def test_missing_header(self, guarded):
        response = guarded.get("/users")

        assert response.status_code == 401
        assert response.json()["message"] == "Missing Authorization header"

    def test_valid_token_passes(self, guarded, service, auth_headers):
        service.user_service.list_users.return_value = {"docs": []}

        assert guarded.get("/users", headers=auth_headers).status_code == 200
