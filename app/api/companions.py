"""
Companion Marketplace — Companion Profiles API

Profile upsert and retrieval plus management of the companion's photo,
video and audio-introduction galleries.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, File, Form, UploadFile, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_roles
from app.database import get_db
from app.models.profile import CompanionProfile
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.profile import (
    AudioCreate,
    AudioResponse,
    CompanionProfileResponse,
    CompanionProfileUpsert,
    CompanionProfileUpsertResponse,
    PhotoCreate,
    PhotoResponse,
    VideoCreate,
    VideoResponse,
)
from app.services.profile_service import ProfileService
from app.utils.storage import media_path, upload_file

logger = structlog.get_logger("marketplace.api.companions")

router = APIRouter()

require_companion = require_roles("companion")

# ── Service singletons ────────────────────────────────────────────────────────

_profile_service: ProfileService | None = None


def _get_profile_service() -> ProfileService:
    global _profile_service
    if _profile_service is None:
        _profile_service = ProfileService()
    return _profile_service


# ──────────────────────────────────────────────────────────────────────────────
# POST /profile — Create or update the caller's companion profile
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/profile",
    response_model=CompanionProfileUpsertResponse,
    summary="Create or update companion profile",
)
async def upsert_profile(
    payload: CompanionProfileUpsert,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Only fields that are present and non-empty overwrite stored values."""
    profile, created = await _get_profile_service().upsert_companion_profile(
        db, current_user.id, payload.model_dump()
    )
    message = "Profile created successfully" if created else "Profile updated successfully"
    return {"message": message, "created": created, "profile": profile}


# ──────────────────────────────────────────────────────────────────────────────
# GET /profile — The caller's own companion profile
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/profile", response_model=CompanionProfileResponse, summary="Get own companion profile")
async def get_own_profile(
    current_user: User = Depends(require_companion),
    db: AsyncSession = Depends(get_db),
) -> CompanionProfile:
    return await _get_profile_service().get_companion_profile(db, current_user.id)


# ──────────────────────────────────────────────────────────────────────────────
# GET /profile/{profile_id} — View a companion profile
# ──────────────────────────────────────────────────────────────────────────────

@router.get(
    "/profile/{profile_id}",
    response_model=CompanionProfileResponse,
    summary="View a companion profile",
)
async def view_profile(
    profile_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> CompanionProfile:
    """Any signed-in user may view; each view is counted."""
    return await _get_profile_service().view_companion_profile(db, profile_id)


# ──────────────────────────────────────────────────────────────────────────────
# Photos
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/photos", response_model=PhotoResponse, summary="Add a photo by URL")
async def add_photo(
    payload: PhotoCreate,
    current_user: User = Depends(require_companion),
    db: AsyncSession = Depends(get_db),
) -> dict:
    photo = await _get_profile_service().add_photo(db, current_user.id, payload.url, payload.is_main)
    return {"message": "Photo added successfully", "photo": photo}


@router.post(
    "/photos/upload",
    response_model=PhotoResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Upload a photo file",
)
async def upload_photo(
    file: UploadFile = File(..., description="Image file"),
    is_main: bool = Form(False),
    current_user: User = Depends(require_companion),
    db: AsyncSession = Depends(get_db),
) -> dict:
    """Store the image in GCS under ``companions/{user_id}/photos/`` and add it."""
    service = _get_profile_service()
    # Fail before uploading when there is no profile to attach the photo to.
    await service.get_companion_profile(db, current_user.id)

    file_bytes = await file.read()
    gcs_path = media_path(current_user.id, "photos", file.filename)
    gcs_uri = upload_file(gcs_path, file_bytes, content_type=file.content_type or "image/jpeg")
    logger.info("photo_uploaded", user_id=str(current_user.id), gcs_path=gcs_path)

    photo = await service.add_photo(db, current_user.id, gcs_uri, is_main)
    return {"message": "Photo added successfully", "photo": photo}


@router.put("/photos/{photo_id}/main", response_model=PhotoResponse, summary="Set the main photo")
async def set_main_photo(
    photo_id: str,
    current_user: User = Depends(require_companion),
    db: AsyncSession = Depends(get_db),
) -> dict:
    photo = await _get_profile_service().set_main_photo(db, current_user.id, photo_id)
    return {"message": "Main photo updated successfully", "photo": photo}


@router.delete("/photos/{photo_id}", response_model=MessageResponse, summary="Delete a photo")
async def delete_photo(
    photo_id: str,
    current_user: User = Depends(require_companion),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _get_profile_service().delete_photo(db, current_user.id, photo_id)
    return {"message": "Photo deleted successfully"}


# ──────────────────────────────────────────────────────────────────────────────
# Videos
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/videos", response_model=VideoResponse, summary="Add a video")
async def add_video(
    payload: VideoCreate,
    current_user: User = Depends(require_companion),
    db: AsyncSession = Depends(get_db),
) -> dict:
    video = await _get_profile_service().add_video(db, current_user.id, payload.url, payload.thumbnail)
    return {"message": "Video added successfully", "video": video}


@router.delete("/videos/{video_id}", response_model=MessageResponse, summary="Delete a video")
async def delete_video(
    video_id: str,
    current_user: User = Depends(require_companion),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _get_profile_service().delete_video(db, current_user.id, video_id)
    return {"message": "Video deleted successfully"}


# ──────────────────────────────────────────────────────────────────────────────
# Audio introduction
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/audio", response_model=AudioResponse, summary="Set the audio introduction")
async def set_audio(
    payload: AudioCreate,
    current_user: User = Depends(require_companion),
    db: AsyncSession = Depends(get_db),
) -> dict:
    audio = await _get_profile_service().set_audio_introduction(
        db, current_user.id, payload.url, payload.duration
    )
    return {"message": "Audio introduction added successfully", "audio": audio}


@router.delete("/audio", response_model=MessageResponse, summary="Delete the audio introduction")
async def delete_audio(
    current_user: User = Depends(require_companion),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _get_profile_service().delete_audio_introduction(db, current_user.id)
    return {"message": "Audio introduction deleted successfully"}
