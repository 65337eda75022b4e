"""Error taxonomy for UserHub.

Every error carries the HTTP status it maps to, a human-readable message and an optional
diagnostic ``detail`` that is reported under ``error`` but is not part of the contract.
"""

from typing import Any, Optional


class UserHubError(Exception):
    """Base class for errors rendered as an API response."""

    status_code: int = 500

    def __init__(self, message: str, *, detail: Any = None, status_code: Optional[int] = None):
        super().__init__(message)
        self.message = message
        self.detail = detail
        if status_code is not None:
            self.status_code = status_code


class ValidationFailed(UserHubError):
    """Client error: malformed identifier, missing field or duplicate unique key."""

    status_code = 400

    def __init__(self, message: str, *, field: Optional[str] = None, detail: Any = None):
        super().__init__(message, detail=detail)
        self.field = field


class NotAuthenticated(UserHubError):
    status_code = 401


class Forbidden(UserHubError):
    status_code = 403


class NotFound(UserHubError):
    status_code = 404


class ServerFailure(UserHubError):
    """Unexpected backend failure; the original error text goes into ``detail``."""

    status_code = 500


class StorageFailure(ServerFailure):
    """Object storage failure."""


__all__ = [
    "Forbidden",
    "NotAuthenticated",
    "NotFound",
    "ServerFailure",
    "StorageFailure",
    "UserHubError",
    "ValidationFailed",
]
