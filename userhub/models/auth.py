from typing import Optional

from pydantic import Field

from .base import CamelModel


class LoginPayload(CamelModel):
    username: str = Field(..., min_length=1)
    password: str = Field(..., min_length=1)


class RefreshPayload(CamelModel):
    refresh_token: str = Field(..., min_length=1)


class TokenResponse(CamelModel):
    access_token: str
    refresh_token: Optional[str] = None
    token_type: str = "bearer"
