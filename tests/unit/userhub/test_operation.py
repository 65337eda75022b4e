"""Unit tests for the operation decorator."""

from unittest.mock import MagicMock

import pytest

from userhub.core import NotFound, ServerFailure, operation


class _Service:
    def __init__(self):
        self.logger = MagicMock()

    @operation("Failed to get user info")
    async def succeed(self, value):
        return value * 2

    @operation("Failed to get user info")
    async def not_found(self):
        raise NotFound("User not found")

    @operation("Failed to get user info")
    async def crash(self):
        raise RuntimeError("connection reset")


class TestOperation:
    @pytest.mark.asyncio
    async def test_result_is_returned_and_logged(self):
        service = _Service()

        assert await service.succeed(21) == 42

        statuses = [call.kwargs["status"] for call in service.logger.debug.call_args_list]
        assert statuses == ["started", "completed"]
        assert "duration_ms" in service.logger.debug.call_args_list[-1].kwargs

    @pytest.mark.asyncio
    async def test_expected_errors_pass_through(self):
        service = _Service()

        with pytest.raises(NotFound):
            await service.not_found()

        service.logger.info.assert_called_once()
        assert service.logger.info.call_args.kwargs["status_code"] == 404

    @pytest.mark.asyncio
    async def test_unexpected_errors_become_server_failures(self):
        service = _Service()

        with pytest.raises(ServerFailure) as exc:
            await service.crash()

        assert exc.value.status_code == 500
        assert exc.value.message == "Failed to get user info"
        assert exc.value.detail == "connection reset"
        assert isinstance(exc.value.__cause__, RuntimeError)
        assert service.logger.error.call_args.kwargs["exc_info"] is True

    def test_sync_functions_are_refused(self):
        with pytest.raises(TypeError):

            @operation("nope")
            def sync(self):
                return None

    @pytest.mark.asyncio
    async def test_missing_logger_is_tolerated(self):
        service = _Service()
        service.logger = None

        assert await service.succeed(1) == 2
