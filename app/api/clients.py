"""
Companion Marketplace — Client Profiles API

Client profile upsert and retrieval, favorites and the recently-viewed list.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_roles
from app.database import get_db
from app.models.profile import ClientProfile
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.profile import (
    ClientProfileResponse,
    ClientProfileUpsert,
    ClientProfileUpsertResponse,
    FavoriteAddedResponse,
    FavoriteEntry,
    RecentlyViewedEntry,
)
from app.services.profile_service import ProfileService

logger = structlog.get_logger("marketplace.api.clients")

router = APIRouter()

require_client = require_roles("client")

# ── Service singletons ────────────────────────────────────────────────────────

_profile_service: ProfileService | None = None


def _get_profile_service() -> ProfileService:
    global _profile_service
    if _profile_service is None:
        _profile_service = ProfileService()
    return _profile_service


# ──────────────────────────────────────────────────────────────────────────────
# POST /profile — Create or update the caller's client profile
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/profile",
    response_model=ClientProfileUpsertResponse,
    summary="Create or update client profile",
)
async def upsert_profile(
    payload: ClientProfileUpsert,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    profile, created = await _get_profile_service().upsert_client_profile(
        db, current_user.id, payload.model_dump()
    )
    message = "Profile created successfully" if created else "Profile updated successfully"
    return {"message": message, "created": created, "profile": profile}


# ──────────────────────────────────────────────────────────────────────────────
# GET /profile — The caller's own client profile
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/profile", response_model=ClientProfileResponse, summary="Get own client profile")
async def get_own_profile(
    current_user: User = Depends(require_client),
    db: AsyncSession = Depends(get_db),
) -> ClientProfile:
    return await _get_profile_service().get_client_profile(db, current_user.id)


# ──────────────────────────────────────────────────────────────────────────────
# Favorites
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/favorites/{companion_id}",
    response_model=FavoriteAddedResponse,
    summary="Add a companion to favorites",
)
async def add_favorite(
    companion_id: uuid.UUID,
    current_user: User = Depends(require_client),
    db: AsyncSession = Depends(get_db),
) -> dict:
    favorite = await _get_profile_service().add_favorite(db, current_user.id, companion_id)
    return {"message": "Added to favorites successfully", "favorite": favorite}


@router.delete(
    "/favorites/{companion_id}",
    response_model=MessageResponse,
    summary="Remove a companion from favorites",
)
async def remove_favorite(
    companion_id: uuid.UUID,
    current_user: User = Depends(require_client),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _get_profile_service().remove_favorite(db, current_user.id, companion_id)
    return {"message": "Removed from favorites successfully"}


@router.get("/favorites", response_model=list[FavoriteEntry], summary="List favorites")
async def get_favorites(
    current_user: User = Depends(require_client),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    return await _get_profile_service().get_favorites(db, current_user.id)


# ──────────────────────────────────────────────────────────────────────────────
# Recently viewed
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/recently-viewed/{companion_id}",
    response_model=MessageResponse,
    summary="Record a companion view",
)
async def touch_recently_viewed(
    companion_id: uuid.UUID,
    current_user: User = Depends(require_client),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _get_profile_service().touch_recently_viewed(db, current_user.id, companion_id)
    return {"message": "Added to recently viewed successfully"}


@router.get(
    "/recently-viewed",
    response_model=list[RecentlyViewedEntry],
    summary="List recently viewed companions",
)
async def get_recently_viewed(
    current_user: User = Depends(require_client),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    return await _get_profile_service().get_recently_viewed(db, current_user.id)
