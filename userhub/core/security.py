import base64
import hashlib
import hmac
import os
import uuid
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, Optional

import jwt
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from pydantic import BaseModel

from .exceptions import NotAuthenticated
from .settings import get_userhub_config

_PBKDF2_ALGO = "sha256"
_PBKDF2_ITERATIONS = 100_000
_SALT_BYTES = 16

ACCESS_TOKEN = "access"
REFRESH_TOKEN = "refresh"

bearer_scheme = HTTPBearer(auto_error=False)


class TokenData(BaseModel):
    """Decoded JWT payload."""

    sub: str
    type: str
    iat: int
    exp: int
    jti: Optional[str] = None


def _pbkdf2_hash(password: str, salt: bytes) -> bytes:
    """Derive a key using PBKDF2-SHA256."""
    return hashlib.pbkdf2_hmac(
        _PBKDF2_ALGO,
        password.encode("utf-8"),
        salt,
        _PBKDF2_ITERATIONS,
    )


def hash_password(password: str) -> str:
    """Hash a plain-text password using PBKDF2-SHA256.

    Stored format: base64( salt || derived_key )
    """
    salt = os.urandom(_SALT_BYTES)
    dk = _pbkdf2_hash(password, salt)
    return base64.b64encode(salt + dk).decode("ascii")


def verify_password(plain_password: str, stored_hash: str) -> bool:
    """Verify a plain password against the stored PBKDF2 hash."""
    try:
        raw = base64.b64decode(stored_hash.encode("ascii"))
    except (ValueError, TypeError):
        return False

    if len(raw) <= _SALT_BYTES:
        return False

    salt = raw[:_SALT_BYTES]
    stored_dk = raw[_SALT_BYTES:]
    new_dk = _pbkdf2_hash(plain_password, salt)

    return hmac.compare_digest(stored_dk, new_dk)


def _create_token(subject: str, token_type: str, expires_in: int) -> str:
    cfg = get_userhub_config().USERHUB
    now = datetime.now(timezone.utc)
    payload: Dict[str, Any] = {
        "sub": subject,
        "type": token_type,
        "iat": int(now.timestamp()),
        "exp": int((now + timedelta(seconds=expires_in)).timestamp()),
        "jti": uuid.uuid4().hex,
    }
    return jwt.encode(payload, cfg.JWT_SECRET.get_secret_value(), algorithm=cfg.JWT_ALGORITHM)


def create_access_token(subject: str) -> str:
    """Create a signed access JWT for the given subject (user id)."""
    return _create_token(subject, ACCESS_TOKEN, get_userhub_config().USERHUB.JWT_EXPIRES_IN)


def create_refresh_token(subject: str) -> str:
    """Create a signed refresh JWT for the given subject (user id)."""
    return _create_token(subject, REFRESH_TOKEN, get_userhub_config().USERHUB.JWT_REFRESH_EXPIRES_IN)


def decode_token(token: str, expected_type: str = ACCESS_TOKEN) -> TokenData:
    """Decode and validate a JWT, returning a typed payload."""
    cfg = get_userhub_config().USERHUB
    try:
        payload = jwt.decode(
            token,
            cfg.JWT_SECRET.get_secret_value(),
            algorithms=[cfg.JWT_ALGORITHM],
        )
    except jwt.ExpiredSignatureError:
        raise NotAuthenticated("Token has expired")
    except jwt.InvalidTokenError:
        raise NotAuthenticated("Invalid token")

    data = TokenData(**payload)
    if data.type != expected_type:
        raise NotAuthenticated("Invalid token type")
    return data


async def require_token(
    credentials: HTTPAuthorizationCredentials = Depends(bearer_scheme),
) -> TokenData:
    """FastAPI dependency ensuring the request has a valid access token."""
    if credentials is None:
        raise NotAuthenticated("Not authenticated")
    return decode_token(credentials.credentials)
