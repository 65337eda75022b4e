import functools
import inspect
import time
from typing import Callable, Optional

from .exceptions import ServerFailure, UserHubError


def operation(failure_message: str, *, logger_attr: str = "logger"):
    """Wrap an async method so that unexpected failures become a ``ServerFailure``.

    The wrapped method's instance must expose a structlog logger at ``self.<logger_attr>``. Each call logs
    ``started`` / ``completed`` / ``failed`` with ``duration_ms``. ``UserHubError`` subclasses pass through
    unchanged; any other exception is logged with its stack and re-raised as a ``ServerFailure`` carrying
    ``failure_message`` and the original error text.

    Example:
        .. code-block:: python

            class UserService:
                def __init__(self):
                    self.logger = get_logger("users.service")

                @operation("Failed to get user info")
                async def list_users(self, params):
                    ...
    """

    def decorator(function: Callable):
        if not inspect.iscoroutinefunction(function):
            raise TypeError(f"@operation requires an async function, got {function.__name__}")

        @functools.wraps(function)
        async def wrapper(self, *args, **kwargs):
            logger = getattr(self, logger_attr, None)
            started_at = time.perf_counter()
            _log(logger, "debug", function.__name__, "started")
            try:
                result = await function(self, *args, **kwargs)
            except UserHubError as e:
                _log(
                    logger,
                    "info",
                    function.__name__,
                    "rejected",
                    started_at=started_at,
                    reason=e.message,
                    status_code=e.status_code,
                )
                raise
            except Exception as e:
                _log(
                    logger,
                    "error",
                    function.__name__,
                    "failed",
                    started_at=started_at,
                    error=str(e),
                    exc_info=True,
                )
                raise ServerFailure(failure_message, detail=str(e)) from e
            _log(logger, "debug", function.__name__, "completed", started_at=started_at)
            return result

        return wrapper

    return decorator


def _log(logger, level: str, name: str, status: str, *, started_at: Optional[float] = None, **fields) -> None:
    if logger is None:
        return
    if started_at is not None:
        fields["duration_ms"] = round((time.perf_counter() - started_at) * 1000, 3)
    getattr(logger, level)(f"{name} {status}", operation=name, status=status, **fields)
