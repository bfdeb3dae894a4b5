"""
Password hashing and bearer-token helpers.

Passwords go through a bcrypt ``CryptContext``; access tokens are HS256 JWTs
carrying the user id (``sub``) and role.
"""

from __future__ import annotations

import secrets
from datetime import timedelta
from typing import Any

import structlog
from jose import JWTError, jwt
from passlib.context import CryptContext

from app.config import get_settings
from app.database import utcnow

logger = structlog.get_logger("marketplace.security")

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto")


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(password: str, password_hash: str) -> bool:
    return pwd_context.verify(password, password_hash)


def create_access_token(user_id: str, role: str, expires_delta: timedelta | None = None) -> str:
    """Issue a signed access token for ``user_id``."""
    settings = get_settings()
    now = utcnow()
    expire = now + (expires_delta or timedelta(minutes=settings.JWT_ACCESS_TOKEN_EXPIRE_MINUTES))
    payload = {
        "sub": user_id,
        "role": role,
        "iat": now,
        "exp": expire,
        "type": "access",
    }
    return jwt.encode(payload, settings.JWT_SECRET_KEY, algorithm=settings.JWT_ALGORITHM)


def decode_access_token(token: str) -> dict[str, Any] | None:
    """Return the token claims, or ``None`` when the token is invalid or expired."""
    settings = get_settings()
    try:
        payload = jwt.decode(token, settings.JWT_SECRET_KEY, algorithms=[settings.JWT_ALGORITHM])
    except JWTError as exc:
        logger.info("token_rejected", error=str(exc))
        return None

    if payload.get("type") != "access" or not payload.get("sub"):
        return None
    return payload


def generate_reset_token() -> str:
    return secrets.token_urlsafe(32)
