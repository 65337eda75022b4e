from fastapi import FastAPI
from fastapi.testclient import TestClient
from pydantic import BaseModel
from starlette.exceptions import HTTPException

from userhub.core import NotFound, ServerFailure, ValidationFailed, register_exception_handlers, respond


class _Body(BaseModel):
    name: str


def _client(**kwargs) -> TestClient:
    app = FastAPI()
    register_exception_handlers(app)

    @app.get("/ok")
    async def ok():
        return respond(200, "data get successfully", {"x": 1})

    @app.get("/nulls")
    async def nulls():
        return respond(200, "data get successfully", {"branchId": None, "roleId": []})

    @app.get("/empty")
    async def empty():
        return respond(200, "nothing")

    @app.get("/missing")
    async def missing():
        raise NotFound("User not found")

    @app.get("/invalid")
    async def invalid():
        raise ValidationFailed("Invalid branch id supplied", field="branchId")

    @app.get("/broken")
    async def broken():
        raise ServerFailure("Failed to get user info", detail="socket closed")

    @app.get("/http")
    async def http():
        raise HTTPException(status_code=418, detail="teapot")

    @app.get("/crash")
    async def crash():
        raise RuntimeError("connection reset")

    @app.post("/body")
    async def body(payload: _Body):
        return respond(200, "ok", payload.model_dump())

    return TestClient(app, **kwargs)


class TestEnvelope:
    def test_success(self):
        resp = _client().get("/ok")

        assert resp.status_code == 200
        assert resp.json() == {"status": 200, "message": "data get successfully", "data": {"x": 1}}

    def test_no_data_is_an_empty_list(self):
        assert _client().get("/empty").json()["data"] == []

    def test_not_found(self):
        resp = _client().get("/missing")

        assert resp.status_code == 404
        assert resp.json() == {"status": 404, "message": "User not found", "data": []}

    def test_validation_failure_names_the_field(self):
        resp = _client().get("/invalid")

        assert resp.status_code == 400
        assert resp.json()["error"] == {"field": "branchId"}

    def test_server_failure_carries_detail(self):
        body = _client().get("/broken").json()

        assert body["status"] == 500
        assert body["message"] == "Failed to get user info"
        assert body["error"] == "socket closed"

    def test_http_exceptions_use_the_envelope(self):
        resp = _client().get("/http")

        assert resp.status_code == 418
        assert resp.json()["message"] == "teapot"

    def test_request_validation_is_a_400(self):
        resp = _client().post("/body", json={})

        assert resp.status_code == 400
        assert resp.json()["message"].startswith("name:")

    def test_unknown_route_is_a_404_envelope(self):
        resp = _client().get("/nowhere")

        assert resp.status_code == 404
        assert resp.json()["status"] == 404

    def test_nulls_inside_data_are_kept(self):
        resp = _client().get("/nulls")

        assert resp.json() == {
            "status": 200,
            "message": "data get successfully",
            "data": {"branchId": None, "roleId": []},
        }

    def test_unexpected_errors_use_the_envelope(self):
        resp = _client(raise_server_exceptions=False).get("/crash")

        assert resp.status_code == 500
        assert resp.json() == {
            "status": 500,
            "message": "Internal server error",
            "data": [],
            "error": "connection reset",
        }
