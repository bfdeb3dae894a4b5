"""
Companion Marketplace — Verification API

Users submit identity evidence per channel and read their status; admins
list pending records and approve or reject individual channels.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_roles
from app.database import get_db
from app.models.user import User
from app.models.verification import Verification
from app.schemas.verification import (
    ChannelResponse,
    ComparisonMediaSubmit,
    IdVerificationSubmit,
    PendingVerificationResponse,
    RejectionRequest,
    SelfieVerificationSubmit,
    VerificationStatusResponse,
)
from app.services.verification_service import CHANNEL_LABELS, VerificationService

logger = structlog.get_logger("marketplace.api.verification")

router = APIRouter()

require_admin = require_roles("admin")

# URL segment -> verification channel
_CHANNEL_PATHS = {
    "id": "id_verification",
    "selfie": "selfie_verification",
    "comparison-media": "comparison_media",
}

# ── Service singletons ────────────────────────────────────────────────────────

_verification_service: VerificationService | None = None


def _get_verification_service() -> VerificationService:
    global _verification_service
    if _verification_service is None:
        _verification_service = VerificationService()
    return _verification_service


# ──────────────────────────────────────────────────────────────────────────────
# Submissions
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/id", response_model=ChannelResponse, summary="Submit ID document")
async def submit_id(
    payload: IdVerificationSubmit,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    entry = await _get_verification_service().submit_id(db, current_user.id, **payload.model_dump())
    return {"message": "ID verification submitted successfully", "verification": entry}


@router.post("/selfie", response_model=ChannelResponse, summary="Submit selfie")
async def submit_selfie(
    payload: SelfieVerificationSubmit,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    entry = await _get_verification_service().submit_selfie(db, current_user.id, image=payload.image)
    return {"message": "Selfie verification submitted successfully", "verification": entry}


@router.post("/comparison-media", response_model=ChannelResponse, summary="Submit comparison media")
async def submit_comparison_media(
    payload: ComparisonMediaSubmit,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    entry = await _get_verification_service().submit_comparison_media(
        db, current_user.id, images=payload.images, videos=payload.videos
    )
    return {"message": "Comparison media submitted successfully", "verification": entry}


# ──────────────────────────────────────────────────────────────────────────────
# GET /status — Caller's verification status
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/status", response_model=VerificationStatusResponse, summary="Get verification status")
async def get_status(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await _get_verification_service().get_status(db, current_user.id)


# ──────────────────────────────────────────────────────────────────────────────
# Admin review
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/pending",
    response_model=list[PendingVerificationResponse],
    summary="List verifications awaiting review",
)
async def list_pending(
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[Verification]:
    return await _get_verification_service().list_pending(db)


def _register_review_routes(path: str, channel: str) -> None:
    label = CHANNEL_LABELS[channel]

    @router.put(
        f"/{path}/{{user_id}}/approve",
        response_model=ChannelResponse,
        summary=f"Approve {label.lower()}",
        name=f"approve_{channel}",
    )
    async def approve(
        user_id: uuid.UUID,
        current_user: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db),
    ) -> dict:
        entry = await _get_verification_service().approve(db, channel, user_id, current_user.id)
        return {"message": f"{label} approved successfully", "verification": entry}

    @router.put(
        f"/{path}/{{user_id}}/reject",
        response_model=ChannelResponse,
        summary=f"Reject {label.lower()}",
        name=f"reject_{channel}",
    )
    async def reject(
        user_id: uuid.UUID,
        payload: RejectionRequest,
        current_user: User = Depends(require_admin),
        db: AsyncSession = Depends(get_db),
    ) -> dict:
        entry = await _get_verification_service().reject(db, channel, user_id, payload.rejection_reason)
        return {"message": f"{label} rejected successfully", "verification": entry}


for _path, _channel in _CHANNEL_PATHS.items():
    _register_review_routes(_path, _channel)
