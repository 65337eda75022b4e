"""UserHub Service - user accounts, profiles and branches over MongoDB."""

from contextlib import asynccontextmanager
from typing import Any, Callable, List, Optional

import uvicorn
from fastapi import Depends, FastAPI, File, Query, UploadFile
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import StreamingResponse
from urllib3.util.url import parse_url

from userhub.core import (
    TokenData,
    get_userhub_config,
    register_exception_handlers,
    require_token,
    respond,
    setup_logger,
)
from userhub.core.middleware import AuthMiddleware, RequestLoggingMiddleware
from userhub.db import close_db, initialize_db
from userhub.models import (
    BranchCreateRequest,
    BranchUpdateRequest,
    DeleteMode,
    Gender,
    LoginPayload,
    MaritalStatus,
    ProfileCreateRequest,
    ProfileListParams,
    ProfileUpdateRequest,
    RefreshPayload,
    SelfProfileUpdateRequest,
    UserCreateRequest,
    UserListParams,
    UserUpdateRequest,
)
from userhub.repositories import (
    BranchRepository,
    ProfileRepository,
    RoleRepository,
    TokenRepository,
    UserRepository,
)
from userhub.services import (
    AuthService,
    BranchService,
    PhotoService,
    ProfileService,
    RoleService,
    UserService,
)
from userhub.storage import MinioStorageHandler


class UserHubService:
    """UserHub service for managing users, profiles, photos, branches, roles and auth.

    Example:
        ```python
        # Default settings (reads USERHUB__* env vars)
        UserHubService().launch()

        # Without MongoDB, e.g. for route-level tests with patched repositories
        service = UserHubService(enable_db=False)
        ```
    """

    name = "userhub"

    def __init__(
        self,
        *,
        url: str | None = None,
        enable_db: bool = True,
        enable_auth: bool | None = None,
        storage: Optional[MinioStorageHandler] = None,
    ):
        """Initialize UserHubService.

        Args:
            url: Service URL override. Defaults to config.USERHUB.URL.
            enable_db: Connect MongoDB and create indexes on startup.
            enable_auth: Enforce Bearer tokens on non-public paths. Defaults to config.USERHUB.AUTH_ENABLED.
            storage: Object storage handler override. Built from config on first use otherwise.
        """
        self._config = get_userhub_config()
        cfg = self._config.USERHUB

        self.url = parse_url(url or cfg.URL)
        self.db_enabled = enable_db
        self.logger = setup_logger(self.name, structlog_bind={"service": self.name})

        self.app = FastAPI(
            title="UserHub",
            summary="UserHub Backend Service",
            description="User accounts, profile records, profile photos and branches",
            lifespan=self._lifespan,
        )
        register_exception_handlers(self.app)

        # Repositories, services and storage (built lazily, inside the live loop)
        self._user_repo: Optional[UserRepository] = None
        self._profile_repo: Optional[ProfileRepository] = None
        self._role_repo: Optional[RoleRepository] = None
        self._branch_repo: Optional[BranchRepository] = None
        self._token_repo: Optional[TokenRepository] = None
        self._storage: Optional[MinioStorageHandler] = storage
        self._auth_service: Optional[AuthService] = None
        self._user_service: Optional[UserService] = None
        self._profile_service: Optional[ProfileService] = None
        self._photo_service: Optional[PhotoService] = None
        self._branch_service: Optional[BranchService] = None
        self._role_service: Optional[RoleService] = None

        # Middleware (last added runs first)
        self.app.add_middleware(
            CORSMiddleware,
            allow_origins=["*"],
            allow_credentials=True,
            allow_methods=["*"],
            allow_headers=["*"],
        )
        if enable_auth is None:
            enable_auth = cfg.AUTH_ENABLED
        self.app.add_middleware(AuthMiddleware, enabled=enable_auth)
        self.app.add_middleware(
            RequestLoggingMiddleware,
            logger=self.logger,
            service_name=self.name,
            add_request_id_header=True,
        )

        # Register endpoints
        self._register_status_endpoints()
        self._register_auth_endpoints()
        self._register_user_endpoints()
        self._register_profile_endpoints()
        self._register_branch_endpoints()
        self._register_role_endpoints()

    @asynccontextmanager
    async def _lifespan(self, app: FastAPI):
        if self.db_enabled:
            await initialize_db()
        self.logger.info("service started", url=str(self.url), db_enabled=self.db_enabled)
        try:
            yield
        finally:
            if self.db_enabled:
                await close_db()
            self.logger.info("service stopped")

    def add_endpoint(self, path: str, func: Callable, *, methods: Optional[List[str]] = None, **route_kwargs) -> None:
        """Register a route on the FastAPI app."""
        self.app.add_api_route(path, endpoint=func, methods=methods or ["POST"], **route_kwargs)

    def launch(self, **uvicorn_kwargs) -> None:
        """Serve the app with uvicorn on the configured host and port."""
        uvicorn.run(
            self.app,
            host=self.url.host or "0.0.0.0",
            port=self.url.port or 8080,
            log_config=None,
            **uvicorn_kwargs,
        )

    # -------------------------------------------------------------------------
    # Lazy accessors
    # -------------------------------------------------------------------------

    @property
    def user_repo(self) -> UserRepository:
        if self._user_repo is None:
            self._user_repo = UserRepository()
        return self._user_repo

    @property
    def profile_repo(self) -> ProfileRepository:
        if self._profile_repo is None:
            self._profile_repo = ProfileRepository()
        return self._profile_repo

    @property
    def role_repo(self) -> RoleRepository:
        if self._role_repo is None:
            self._role_repo = RoleRepository()
        return self._role_repo

    @property
    def branch_repo(self) -> BranchRepository:
        if self._branch_repo is None:
            self._branch_repo = BranchRepository()
        return self._branch_repo

    @property
    def token_repo(self) -> TokenRepository:
        if self._token_repo is None:
            self._token_repo = TokenRepository()
        return self._token_repo

    @property
    def storage(self) -> MinioStorageHandler:
        if self._storage is None:
            cfg = self._config.USERHUB
            self._storage = MinioStorageHandler(
                cfg.MINIO_BUCKET,
                endpoint=cfg.MINIO_ENDPOINT,
                access_key=cfg.MINIO_ACCESS_KEY,
                secret_key=cfg.MINIO_SECRET_KEY.get_secret_value(),
                secure=cfg.MINIO_SECURE,
            )
        return self._storage

    @property
    def auth_service(self) -> AuthService:
        if self._auth_service is None:
            self._auth_service = AuthService(self.user_repo, self.token_repo)
        return self._auth_service

    @property
    def user_service(self) -> UserService:
        if self._user_service is None:
            self._user_service = UserService(
                self.user_repo, self.profile_repo, self.role_repo, self.branch_repo, self.auth_service
            )
        return self._user_service

    @property
    def profile_service(self) -> ProfileService:
        if self._profile_service is None:
            self._profile_service = ProfileService(
                self.profile_repo, self.user_repo, self.role_repo, self.branch_repo
            )
        return self._profile_service

    @property
    def photo_service(self) -> PhotoService:
        if self._photo_service is None:
            self._photo_service = PhotoService(self.user_repo, self.profile_repo, self.storage)
        return self._photo_service

    @property
    def branch_service(self) -> BranchService:
        if self._branch_service is None:
            self._branch_service = BranchService(self.branch_repo)
        return self._branch_service

    @property
    def role_service(self) -> RoleService:
        if self._role_service is None:
            self._role_service = RoleService(self.role_repo)
        return self._role_service

    # -------------------------------------------------------------------------
    # Dependencies
    # -------------------------------------------------------------------------

    async def current_user(self, token: TokenData = Depends(require_token)) -> dict:
        """Identity record of the caller (401 when the token or the user is not valid)."""
        return await self.auth_service.current_user(token)

    def require_roles(self, *role_names: str) -> Callable:
        """Dependency factory admitting callers holding at least one of ``role_names`` (case-insensitive)."""

        async def dependency(user: dict = Depends(self.current_user)) -> dict:
            await self.role_service.ensure_any_role(user, role_names)
            return user

        return dependency

    # -------------------------------------------------------------------------
    # Endpoint registration
    # -------------------------------------------------------------------------

    def _register_status_endpoints(self) -> None:
        self.add_endpoint("/status", self.status, methods=["GET"])

    def _register_auth_endpoints(self) -> None:
        """Register auth-related endpoints."""
        self.add_endpoint("/auth/login", self.login, methods=["POST"])
        self.add_endpoint("/auth/refresh", self.refresh, methods=["POST"])

    def _register_user_endpoints(self) -> None:
        """Register identity-record endpoints. ``/users/me`` routes go before ``/users/{id}``."""
        self.add_endpoint("/users", self.create_user, methods=["POST"])
        self.add_endpoint("/users", self.list_users, methods=["GET"])
        self.add_endpoint("/users/me", self.get_me, methods=["GET"])
        self.add_endpoint("/users/me/profile", self.update_self_profile, methods=["PATCH"])
        self.add_endpoint("/users/me/profile/photo", self.update_self_photo, methods=["PUT"])
        self.add_endpoint("/users/me/profile/photo", self.get_self_photo, methods=["GET"])
        self.add_endpoint("/users/{id}", self.update_user, methods=["PATCH"])
        self.add_endpoint("/users/{id}", self.delete_user, methods=["DELETE"])

    def _register_profile_endpoints(self) -> None:
        """Register profile-record endpoints."""
        self.add_endpoint("/profiles", self.create_profile, methods=["POST"])
        self.add_endpoint("/profiles", self.list_profiles, methods=["GET"])
        self.add_endpoint("/profiles/{id}", self.get_profile, methods=["GET"])
        self.add_endpoint("/profiles/{id}", self.update_profile, methods=["PATCH"])

    def _register_branch_endpoints(self) -> None:
        """Register branch endpoints; everything but the listing needs the admin role."""
        admin = [Depends(self.require_roles(self._config.USERHUB.ADMIN_ROLE))]
        self.add_endpoint("/branches", self.list_branches, methods=["GET"], dependencies=[Depends(self.current_user)])
        self.add_endpoint("/branches", self.create_branch, methods=["POST"], dependencies=admin)
        self.add_endpoint("/branches/{id}", self.get_branch, methods=["GET"], dependencies=admin)
        self.add_endpoint("/branches/{id}", self.update_branch, methods=["PATCH"], dependencies=admin)
        self.add_endpoint("/branches/{id}", self.delete_branch, methods=["DELETE"], dependencies=admin)

    def _register_role_endpoints(self) -> None:
        self.add_endpoint("/roles", self.list_roles, methods=["GET"])

    # -------------------------------------------------------------------------
    # Status / auth handlers
    # -------------------------------------------------------------------------

    async def status(self):
        return respond(200, "Service is running", {"status": "ok"})

    async def login(self, payload: LoginPayload):
        """Login an existing user and return an access and a refresh token."""
        tokens = await self.auth_service.login(payload)
        return respond(200, "Login successful", tokens.model_dump(by_alias=True))

    async def refresh(self, payload: RefreshPayload):
        """Exchange a stored refresh token for a new access token."""
        tokens = await self.auth_service.refresh(payload)
        return respond(200, "Token refreshed", tokens.model_dump(by_alias=True))

    # -------------------------------------------------------------------------
    # User handlers
    # -------------------------------------------------------------------------

    async def create_user(
        self,
        payload: UserCreateRequest,
        allow_roles: bool = Query(False, alias="allowRoles"),
    ):
        data = await self.user_service.create_user(payload, allow_roles=allow_roles)
        return respond(201, "User created successfully", data)

    async def list_users(
        self,
        limit: Optional[int] = Query(None, ge=1),
        page: int = Query(1, ge=1),
        populate: Optional[str] = Query(None),
        search: Optional[str] = Query(None),
        gender: Optional[Gender] = Query(None),
        marital_status: Optional[MaritalStatus] = Query(None, alias="maritalStatus"),
        card_type: Optional[str] = Query(None, alias="cardType"),
        card_code: Optional[str] = Query(None, alias="cardCode"),
        id_search: Optional[str] = Query(None, alias="idSearch"),
        start_date: Optional[str] = Query(None, alias="startDate"),
        end_date: Optional[str] = Query(None, alias="endDate"),
        branch_id: Optional[str] = Query(None, alias="branchId"),
        select: Optional[str] = Query(None),
        sort: Optional[str] = Query(None),
        include_deleted: bool = Query(False, alias="includeDeleted"),
        expansion_gated: bool = Query(True, alias="expansionGated"),
    ):
        """List identity records. Profile predicates gate the ``userInfoId`` expansion unless
        ``expansionGated=false``."""
        params = UserListParams(
            limit=limit,
            page=page,
            populate=populate,
            search=search,
            gender=gender,
            marital_status=marital_status,
            card_type=card_type,
            card_code=card_code,
            id_search=id_search,
            start_date=start_date,
            end_date=end_date,
            branch_id=branch_id,
            select=select,
            sort=sort,
            include_deleted=include_deleted,
            expansion_gated=expansion_gated,
        )
        data = await self.user_service.list_users(params)
        return respond(200, "data get successfully", data)

    async def update_user(self, id: str, payload: UserUpdateRequest):
        data = await self.user_service.update_user(id, payload)
        return respond(200, "User updated successfully", data)

    async def delete_user(self, id: str, mode: DeleteMode = Query(DeleteMode.SOFT)):
        data = await self.user_service.delete_user(id, mode)
        return respond(200, "User deleted", data)

    async def get_me(self, token: TokenData = Depends(require_token)):
        user = await self.current_user(token)
        data = await self.user_service.get_me(user)
        return respond(200, "User fetched successfully", data)

    async def update_self_profile(self, payload: SelfProfileUpdateRequest, token: TokenData = Depends(require_token)):
        user = await self.current_user(token)
        data = await self.user_service.update_self_profile(user, payload)
        return respond(200, "Profile updated successfully", data)

    async def update_self_photo(
        self,
        file: Optional[UploadFile] = File(None),
        token: TokenData = Depends(require_token),
    ):
        user = await self.current_user(token)
        data: Optional[bytes] = None
        filename = content_type = None
        if file is not None:
            # One byte over the limit is enough to reject the upload.
            data = await file.read(self._config.USERHUB.MAX_UPLOAD_BYTES + 1)
            filename, content_type = file.filename, file.content_type
        result = await self.photo_service.update_self_photo(
            user, filename=filename, content_type=content_type, data=data
        )
        return respond(200, "Profile photo updated", result)

    async def get_self_photo(self, token: TokenData = Depends(require_token)):
        user = await self.current_user(token)
        stored = await self.photo_service.get_self_photo(user)
        return StreamingResponse(
            stored.chunks,
            media_type=stored.content_type,
            headers={
                "Cache-Control": "no-store",
                "Content-Disposition": f'inline; filename="{stored.name}"',
            },
        )

    # -------------------------------------------------------------------------
    # Profile handlers
    # -------------------------------------------------------------------------

    async def create_profile(self, payload: ProfileCreateRequest):
        data = await self.profile_service.create_profile(payload)
        return respond(201, "User profile created successfully", data)

    async def list_profiles(
        self,
        limit: Optional[int] = Query(None, ge=1),
        page: int = Query(1, ge=1),
        select: Optional[str] = Query(None),
        sort: Optional[str] = Query(None),
    ):
        params = ProfileListParams(limit=limit, page=page, select=select, sort=sort)
        data = await self.profile_service.list_profiles(params)
        return respond(200, "data get successfully", data)

    async def get_profile(self, id: str):
        data = await self.profile_service.get_profile(id)
        return respond(200, "User profile get successfully.", data)

    async def update_profile(self, id: str, payload: ProfileUpdateRequest):
        data = await self.profile_service.update_profile(id, payload)
        return respond(200, "data update successfully", data)

    # -------------------------------------------------------------------------
    # Branch / role handlers
    # -------------------------------------------------------------------------

    async def list_branches(self):
        return respond(200, "Branches fetched successfully", await self.branch_service.list_branches())

    async def create_branch(self, payload: BranchCreateRequest):
        return respond(201, "Branch created successfully", await self.branch_service.create_branch(payload))

    async def get_branch(self, id: str):
        return respond(200, "Branch fetched successfully", await self.branch_service.get_branch(id))

    async def update_branch(self, id: str, payload: BranchUpdateRequest):
        return respond(200, "Branch updated successfully", await self.branch_service.update_branch(id, payload))

    async def delete_branch(self, id: str):
        return respond(200, "Branch deleted successfully", await self.branch_service.delete_branch(id))

    async def list_roles(self):
        return respond(200, "Roles fetched successfully", await self.role_service.list_roles())


def create_app(**kwargs: Any) -> FastAPI:
    """Build a service and return its FastAPI app (``uvicorn userhub.service:create_app --factory``)."""
    return UserHubService(**kwargs).app
