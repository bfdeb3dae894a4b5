"""
Shared route dependencies: bearer authentication and role policies.
"""

from __future__ import annotations

import uuid
from typing import Callable

import structlog
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.exceptions import Forbidden, Unauthorized
from app.models.user import User
from app.utils.security import decode_access_token

logger = structlog.get_logger("marketplace.api.deps")

_bearer = HTTPBearer(auto_error=False)


async def get_current_user(
    credentials: HTTPAuthorizationCredentials | None = Depends(_bearer),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Resolve the authenticated principal from the ``Authorization`` header."""
    if credentials is None or not credentials.credentials:
        raise Unauthorized("No token, authorization denied")

    payload = decode_access_token(credentials.credentials)
    if payload is None:
        raise Unauthorized("Token is not valid")

    try:
        user_id = uuid.UUID(payload["sub"])
    except ValueError:
        raise Unauthorized("Token is not valid")

    result = await db.execute(select(User).where(User.id == user_id))
    user = result.scalar_one_or_none()
    if user is None or not user.is_active:
        logger.warning("auth_user_unavailable", user_id=str(user_id))
        raise Unauthorized("Token is not valid")

    structlog.contextvars.bind_contextvars(user_id=str(user.id))
    return user


def require_roles(*roles: str) -> Callable:
    """Build a dependency that admits only principals holding one of ``roles``."""

    async def _checker(user: User = Depends(get_current_user)) -> User:
        if user.role not in roles:
            logger.warning("role_denied", user_id=str(user.id), role=user.role, allowed=list(roles))
            raise Forbidden(f"Access denied. Required role: {' or '.join(roles)}")
        return user

    return _checker
