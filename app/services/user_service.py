"""
Companion Marketplace — Account lifecycle.

Registration, credential checks, self-service account updates and the
one-time-token password reset flow.
"""

from __future__ import annotations

from datetime import timedelta

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import utcnow
from app.exceptions import Conflict, Unauthorized, ValidationFailed
from app.models.user import User
from app.utils.security import (
    create_access_token,
    generate_reset_token,
    hash_password,
    verify_password,
)

logger = structlog.get_logger("marketplace.user_service")


class UserService:
    """Identity operations over the ``users`` table."""

    async def get_by_email(self, db: AsyncSession, email: str) -> User | None:
        result = await db.execute(select(User).where(User.email == email.lower()))
        return result.scalar_one_or_none()

    async def register(
        self,
        db: AsyncSession,
        *,
        email: str,
        password: str,
        first_name: str,
        last_name: str,
        role: str = "client",
        phone: str | None = None,
    ) -> tuple[User, str]:
        """Create an account and return it with a fresh access token."""
        log = logger.bind(email=email, role=role)
        log.info("register_start")

        if await self.get_by_email(db, email) is not None:
            log.warning("register_duplicate_email")
            raise Conflict("User already exists")

        user = User(
            email=email.lower(),
            password_hash=hash_password(password),
            first_name=first_name,
            last_name=last_name,
            role=role,
            phone=phone,
        )
        db.add(user)
        await db.flush()

        log.info("register_complete", user_id=str(user.id))
        return user, create_access_token(str(user.id), user.role)

    async def login(self, db: AsyncSession, *, email: str, password: str) -> tuple[User, str]:
        log = logger.bind(email=email)
        user = await self.get_by_email(db, email)

        if user is None or not verify_password(password, user.password_hash):
            log.warning("login_invalid_credentials")
            raise Unauthorized("Invalid credentials")
        if not user.is_active:
            log.warning("login_inactive_account", user_id=str(user.id))
            raise Unauthorized("Account is deactivated")

        user.last_login = utcnow()
        await db.flush()

        log.info("login_complete", user_id=str(user.id))
        return user, create_access_token(str(user.id), user.role)

    async def update_account(self, db: AsyncSession, user: User, fields: dict) -> User:
        """Apply the provided (non-None) fields to the account."""
        for field, value in fields.items():
            if value is not None:
                setattr(user, field, value)
        await db.flush()
        logger.info("update_account_complete", user_id=str(user.id), updated_fields=list(fields))
        return user

    async def request_password_reset(self, db: AsyncSession, email: str) -> str | None:
        """Store a one-time reset token when the account exists.

        Returns the token so a delivery channel can hand it to the user; the
        HTTP layer never echoes it.
        """
        user = await self.get_by_email(db, email)
        if user is None:
            logger.info("password_reset_unknown_email")
            return None

        token = generate_reset_token()
        user.reset_password_token = token
        user.reset_password_expires = utcnow() + timedelta(
            minutes=get_settings().PASSWORD_RESET_EXPIRE_MINUTES
        )
        await db.flush()

        logger.info("password_reset_requested", user_id=str(user.id))
        return token

    async def reset_password(self, db: AsyncSession, token: str, new_password: str) -> User:
        result = await db.execute(select(User).where(User.reset_password_token == token))
        user = result.scalar_one_or_none()

        expires = user.reset_password_expires if user is not None else None
        if expires is not None and expires.tzinfo is None:
            # SQLite hands back naive datetimes
            expires = expires.replace(tzinfo=utcnow().tzinfo)
        if user is None or expires is None or expires <= utcnow():
            logger.warning("password_reset_invalid_token")
            raise ValidationFailed("Password reset token is invalid or has expired")

        user.password_hash = hash_password(new_password)
        user.reset_password_token = None
        user.reset_password_expires = None
        await db.flush()

        logger.info("password_reset_complete", user_id=str(user.id))
        return user
