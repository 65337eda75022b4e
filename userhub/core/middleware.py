"""HTTP middleware for UserHub: request logging and Bearer token enforcement."""

import time
import uuid
from typing import Optional, Set

from starlette.middleware.base import BaseHTTPMiddleware, RequestResponseEndpoint
from starlette.requests import Request
from starlette.responses import Response

from .exceptions import NotAuthenticated
from .responses import error_response
from .security import decode_token


class RequestLoggingMiddleware(BaseHTTPMiddleware):
    """Logs one structured line per request and tags the response with a request id."""

    def __init__(
        self,
        app,
        logger,
        service_name: str = "userhub",
        add_request_id_header: bool = True,
        ignored_paths: Optional[Set[str]] = None,
    ):
        super().__init__(app)
        self.logger = logger
        self.service_name = service_name
        self.add_request_id_header = add_request_id_header
        self.ignored_paths = ignored_paths or {"/favicon.ico", "/docs", "/openapi.json"}

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        request_id = request.headers.get("X-Request-ID") or uuid.uuid4().hex
        start = time.perf_counter()
        try:
            response = await call_next(request)
        except Exception:
            self.logger.exception(
                "request failed",
                service=self.service_name,
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                duration_ms=round((time.perf_counter() - start) * 1000, 3),
            )
            raise

        if request.url.path not in self.ignored_paths:
            self.logger.info(
                "request completed",
                service=self.service_name,
                request_id=request_id,
                method=request.method,
                path=request.url.path,
                status_code=response.status_code,
                duration_ms=round((time.perf_counter() - start) * 1000, 3),
            )
        if self.add_request_id_header:
            response.headers["X-Request-ID"] = request_id
        return response


class AuthMiddleware(BaseHTTPMiddleware):
    """Rejects requests without a valid Bearer access token, except on public paths.

    Example:
        service.app.add_middleware(AuthMiddleware, enabled=True)
    """

    def __init__(
        self,
        app,
        enabled: bool = False,
        bypass_paths: Optional[Set[str]] = None,
    ):
        super().__init__(app)
        self.enabled = enabled
        self.bypass_paths = bypass_paths or {
            "/status",
            "/docs",
            "/openapi.json",
            "/redoc",
            "/auth/login",
            "/auth/refresh",
            "/",
        }

    async def dispatch(self, request: Request, call_next: RequestResponseEndpoint) -> Response:
        if not self.enabled:
            return await call_next(request)

        path = request.url.path.rstrip("/") or "/"
        if path in self.bypass_paths or path.startswith("/docs"):
            return await call_next(request)

        auth_header = request.headers.get("Authorization")
        if not auth_header:
            return error_response(401, "Missing Authorization header")

        # Expect "Bearer <token>" format
        parts = auth_header.split()
        if len(parts) != 2 or parts[0].lower() != "bearer":
            return error_response(401, "Invalid Authorization header format. Expected: Bearer <token>")

        try:
            decode_token(parts[1])
        except NotAuthenticated as e:
            return error_response(401, e.message)

        return await call_next(request)
