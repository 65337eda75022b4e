"""Unit tests for UserHub middleware."""

import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from userhub.core import create_access_token, create_refresh_token
from userhub.core.middleware import AuthMiddleware, RequestLoggingMiddleware


def _request(path="/users", headers=None, method="GET"):
    request = MagicMock()
    request.url.path = path
    request.method = method
    request.headers = headers or {}
    return request


@pytest.fixture
def call_next():
    response = MagicMock()
    response.status_code = 200
    response.headers = {}
    return AsyncMock(return_value=response)


class TestAuthMiddlewareInit:
    def test_init_default_values(self):
        middleware = AuthMiddleware(MagicMock())

        assert middleware.enabled is False
        assert "/status" in middleware.bypass_paths
        assert "/auth/login" in middleware.bypass_paths
        assert "/auth/refresh" in middleware.bypass_paths

    def test_init_custom_values(self):
        middleware = AuthMiddleware(MagicMock(), enabled=True, bypass_paths={"/health"})

        assert middleware.enabled is True
        assert middleware.bypass_paths == {"/health"}


class TestAuthMiddlewareDispatch:
    @pytest.fixture
    def middleware(self):
        return AuthMiddleware(MagicMock(), enabled=True)

    @pytest.mark.asyncio
    async def test_disabled_passes_through(self, call_next):
        middleware = AuthMiddleware(MagicMock(), enabled=False)
        request = _request()

        response = await middleware.dispatch(request, call_next)

        call_next.assert_awaited_once_with(request)
        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_bypass_path_passes_through(self, middleware, call_next):
        response = await middleware.dispatch(_request("/status/"), call_next)

        assert response.status_code == 200

    @pytest.mark.asyncio
    async def test_missing_header_is_rejected(self, middleware, call_next):
        response = await middleware.dispatch(_request(), call_next)

        assert response.status_code == 401
        assert json.loads(response.body)["message"] == "Missing Authorization header"
        call_next.assert_not_awaited()

    @pytest.mark.asyncio
    async def test_wrong_scheme_is_rejected(self, middleware, call_next):
        response = await middleware.dispatch(_request(headers={"Authorization": "Basic abc"}), call_next)

        assert response.status_code == 401

    @pytest.mark.asyncio
    async def test_refresh_token_is_not_an_access_token(self, middleware, call_next):
        headers = {"Authorization": f"Bearer {create_refresh_token('u1')}"}

        response = await middleware.dispatch(_request(headers=headers), call_next)

        assert response.status_code == 401
        assert json.loads(response.body)["message"] == "Invalid token type"

    @pytest.mark.asyncio
    async def test_valid_token_passes(self, middleware, call_next):
        headers = {"Authorization": f"Bearer {create_access_token('u1')}"}

        response = await middleware.dispatch(_request(headers=headers), call_next)

        assert response.status_code == 200
        call_next.assert_awaited_once()


class TestRequestLoggingMiddleware:
    @pytest.mark.asyncio
    async def test_logs_request_and_sets_request_id(self, call_next):
        logger = MagicMock()
        middleware = RequestLoggingMiddleware(MagicMock(), logger=logger)

        response = await middleware.dispatch(_request(headers={"X-Request-ID": "req-1"}), call_next)

        assert response.headers["X-Request-ID"] == "req-1"
        kwargs = logger.info.call_args.kwargs
        assert kwargs["path"] == "/users"
        assert kwargs["status_code"] == 200
        assert "duration_ms" in kwargs

    @pytest.mark.asyncio
    async def test_ignored_paths_are_not_logged(self, call_next):
        logger = MagicMock()
        middleware = RequestLoggingMiddleware(MagicMock(), logger=logger)

        await middleware.dispatch(_request("/docs"), call_next)

        logger.info.assert_not_called()

    @pytest.mark.asyncio
    async def test_failures_are_logged_and_reraised(self):
        logger = MagicMock()
        middleware = RequestLoggingMiddleware(MagicMock(), logger=logger)

        with pytest.raises(RuntimeError):
            await middleware.dispatch(_request(), AsyncMock(side_effect=RuntimeError("boom")))

        logger.exception.assert_called_once()
