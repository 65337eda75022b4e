"""Response envelope and exception handlers.

Every response body has the shape ``{"status": int, "message": str, "data": Any}``; failures
additionally carry ``error`` with diagnostic detail.
"""

from typing import Any, Optional

from fastapi import FastAPI, Request
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse
from pydantic import BaseModel, Field
from starlette.exceptions import HTTPException

from .exceptions import UserHubError, ValidationFailed


class ApiResponse(BaseModel):
    """Envelope shared by all endpoints."""

    status: int = Field(..., description="HTTP status code")
    message: str = Field(..., description="Human-readable message")
    data: Any = Field(default_factory=list, description="Payload, possibly empty")
    error: Optional[Any] = Field(default=None, description="Diagnostic detail on failures")


def _render(body: ApiResponse) -> JSONResponse:
    # Only a missing top-level error is dropped; nulls inside data are part of the payload.
    content = body.model_dump(exclude={"error"} if body.error is None else None)
    return JSONResponse(status_code=body.status, content=jsonable_encoder(content))


def respond(status_code: int, message: str, data: Any = None) -> JSONResponse:
    """Build a success response in the envelope."""
    return _render(ApiResponse(status=status_code, message=message, data=[] if data is None else data))


def error_response(status_code: int, message: str, error: Any = None) -> JSONResponse:
    """Build a failure response in the envelope."""
    return _render(ApiResponse(status=status_code, message=message, data=[], error=error))


async def _handle_userhub_error(request: Request, exc: UserHubError) -> JSONResponse:
    error = exc.detail
    if isinstance(exc, ValidationFailed) and exc.field and error is None:
        error = {"field": exc.field}
    return error_response(exc.status_code, exc.message, error)


async def _handle_http_exception(request: Request, exc: HTTPException) -> JSONResponse:
    response = error_response(exc.status_code, str(exc.detail))
    if exc.headers:
        response.headers.update(exc.headers)
    return response


async def _handle_request_validation(request: Request, exc: RequestValidationError) -> JSONResponse:
    errors = exc.errors()
    fields = [".".join(str(p) for p in err.get("loc", ())[1:]) for err in errors]
    message = "Invalid request"
    if errors:
        first = errors[0]
        message = f"{fields[0] or 'request'}: {first.get('msg', 'invalid value')}"
    return error_response(400, message, jsonable_encoder(errors, custom_encoder={Exception: str}))


async def _handle_unexpected(request: Request, exc: Exception) -> JSONResponse:
    # Starlette still re-raises after rendering, so the server logs the traceback.
    return error_response(500, "Internal server error", str(exc))


def register_exception_handlers(app: FastAPI) -> None:
    """Render all errors through the envelope."""
    app.add_exception_handler(UserHubError, _handle_userhub_error)
    app.add_exception_handler(HTTPException, _handle_http_exception)
    app.add_exception_handler(RequestValidationError, _handle_request_validation)
    app.add_exception_handler(Exception, _handle_unexpected)
