"""
Companion Marketplace — Users API

Endpoints for registration, login, the current account and password reset.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.user import (
    AuthResponse,
    PasswordReset,
    PasswordResetRequest,
    UserLogin,
    UserRegister,
    UserResponse,
    UserUpdate,
)
from app.services.user_service import UserService

logger = structlog.get_logger("marketplace.api.users")

router = APIRouter()

# ── Service singletons ────────────────────────────────────────────────────────

_user_service: UserService | None = None


def _get_user_service() -> UserService:
    global _user_service
    if _user_service is None:
        _user_service = UserService()
    return _user_service


# ──────────────────────────────────────────────────────────────────────────────
# POST /register — Create an account
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/register",
    response_model=AuthResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Register a new account",
)
async def register(
    payload: UserRegister,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Create a client or companion account and return a bearer token."""
    user, token = await _get_user_service().register(
        db,
        email=payload.email,
        password=payload.password,
        first_name=payload.first_name,
        last_name=payload.last_name,
        role=payload.role,
        phone=payload.phone,
    )
    return {"token": token, "user": user}


# ──────────────────────────────────────────────────────────────────────────────
# POST /login — Exchange credentials for a token
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/login", response_model=AuthResponse, summary="Log in")
async def login(
    payload: UserLogin,
    db: AsyncSession = Depends(get_db),
) -> dict:
    user, token = await _get_user_service().login(db, email=payload.email, password=payload.password)
    return {"token": token, "user": user}


# ──────────────────────────────────────────────────────────────────────────────
# GET /me — Current account
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/me", response_model=UserResponse, summary="Get the current account")
async def get_me(current_user: User = Depends(get_current_user)) -> User:
    return current_user


# ──────────────────────────────────────────────────────────────────────────────
# PUT /profile — Update account details
# ──────────────────────────────────────────────────────────────────────────────

@router.put("/profile", response_model=UserResponse, summary="Update account details")
async def update_account(
    payload: UserUpdate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> User:
    """Apply only the fields present in the request body."""
    fields = {
        name: value
        for name, value in payload.model_dump(exclude_none=True).items()
        if name in payload.model_fields_set
    }
    return await _get_user_service().update_account(db, current_user, fields)


# ──────────────────────────────────────────────────────────────────────────────
# POST /password-reset-request — Issue a reset token
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/password-reset-request",
    response_model=MessageResponse,
    summary="Request a password reset",
)
async def request_password_reset(
    payload: PasswordResetRequest,
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Always answers the same way so account existence is not disclosed."""
    await _get_user_service().request_password_reset(db, payload.email)
    return {"message": "If an account exists for this email, a reset link has been sent"}


# ──────────────────────────────────────────────────────────────────────────────
# POST /password-reset — Set a new password with a reset token
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/password-reset", response_model=MessageResponse, summary="Reset password")
async def reset_password(
    payload: PasswordReset,
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _get_user_service().reset_password(db, payload.token, payload.new_password)
    return {"message": "Password has been reset successfully"}
