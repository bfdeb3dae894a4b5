"""
Companion Marketplace — Identity verification workflow.

Users submit evidence on three independent channels (ID document, selfie,
comparison media).  Admins approve or reject each channel; the record's
``overall_status`` is re-derived on every persist and each channel's state
is mirrored onto ``User.verification_status``.
"""

from __future__ import annotations

import uuid
from datetime import date
from typing import Any

import structlog
from sqlalchemy import or_, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.exceptions import NotFound, ValidationFailed
from app.models.profile import CompanionProfile
from app.models.user import User
from app.models.verification import Verification

logger = structlog.get_logger("marketplace.verification_service")

CHANNEL_LABELS: dict[str, str] = {
    "id_verification": "ID verification",
    "selfie_verification": "Selfie verification",
    "comparison_media": "Comparison media",
}

# Channel status on the verification record -> status mirrored onto the user.
_USER_STATUS = {"pending": "pending", "approved": "verified", "rejected": "rejected"}


class VerificationService:
    """Submission, review and status reporting for identity verification."""

    async def _find(self, db: AsyncSession, user_id: uuid.UUID) -> Verification | None:
        stmt = select(Verification).where(Verification.user_id == user_id)
        return (await db.execute(stmt)).scalar_one_or_none()

    async def _mirror_to_user(
        self, db: AsyncSession, user_id: uuid.UUID, channel: str, entry: dict[str, Any]
    ) -> User | None:
        user = await db.get(User, user_id)
        if user is None:
            return None
        statuses = dict(user.verification_status or {})
        statuses[channel] = entry
        user.verification_status = statuses
        return user

    # ══════════════════════════════════════════════════════════════════════
    # Submissions
    # ══════════════════════════════════════════════════════════════════════

    async def _submit(
        self, db: AsyncSession, user_id: uuid.UUID, channel: str, evidence: dict[str, Any]
    ) -> dict:
        log = logger.bind(user_id=str(user_id), channel=channel)
        log.info("verification_submit_start")

        verification = await self._find(db, user_id)
        if verification is None:
            verification = Verification(user_id=user_id)
            db.add(verification)

        submitted_at = utcnow().isoformat()
        setattr(
            verification,
            channel,
            {
                **evidence,
                "status": "pending",
                "rejection_reason": None,
                "submitted_at": submitted_at,
                "verified_at": None,
                "verified_by": None,
            },
        )
        verification.refresh_overall_status()

        await self._mirror_to_user(
            db, user_id, channel, {"status": "pending", "submitted_at": submitted_at}
        )
        await db.flush()

        log.info("verification_submit_complete", overall_status=verification.overall_status)
        return getattr(verification, channel)

    async def submit_id(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        front_image: str,
        document_type: str,
        document_number: str,
        back_image: str | None = None,
        expiry_date: date | None = None,
    ) -> dict:
        return await self._submit(
            db,
            user_id,
            "id_verification",
            {
                "front_image": front_image,
                "back_image": back_image,
                "document_type": document_type,
                "document_number": document_number,
                "expiry_date": expiry_date.isoformat() if expiry_date else None,
            },
        )

    async def submit_selfie(self, db: AsyncSession, user_id: uuid.UUID, *, image: str) -> dict:
        return await self._submit(db, user_id, "selfie_verification", {"image": image})

    async def submit_comparison_media(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        images: list[str],
        videos: list[str] | None = None,
    ) -> dict:
        return await self._submit(
            db,
            user_id,
            "comparison_media",
            {"images": list(images), "videos": list(videos or [])},
        )

    # ══════════════════════════════════════════════════════════════════════
    # Review
    # ══════════════════════════════════════════════════════════════════════

    async def _channel_or_404(
        self, db: AsyncSession, user_id: uuid.UUID, channel: str
    ) -> tuple[Verification, dict]:
        verification = await self._find(db, user_id)
        entry = getattr(verification, channel) if verification is not None else None
        if not entry:
            raise NotFound(f"{CHANNEL_LABELS[channel]} not found")
        return verification, dict(entry)

    async def approve(
        self, db: AsyncSession, channel: str, user_id: uuid.UUID, admin_id: uuid.UUID
    ) -> dict:
        log = logger.bind(user_id=str(user_id), channel=channel, admin_id=str(admin_id))
        log.info("verification_approve_start")

        verification, entry = await self._channel_or_404(db, user_id, channel)
        verified_at = utcnow().isoformat()
        entry.update(status="approved", verified_at=verified_at, verified_by=str(admin_id))
        setattr(verification, channel, entry)
        overall = verification.refresh_overall_status()

        user = await self._mirror_to_user(
            db, user_id, channel, {"status": _USER_STATUS["approved"], "verified_at": verified_at}
        )

        if channel == "comparison_media" and overall == "fully_verified":
            if user is not None:
                user.is_verified = True
            await self._verify_companion_media(db, user_id, entry)

        await db.flush()
        log.info("verification_approve_complete", overall_status=overall)
        return entry

    async def reject(
        self,
        db: AsyncSession,
        channel: str,
        user_id: uuid.UUID,
        rejection_reason: str | None,
    ) -> dict:
        log = logger.bind(user_id=str(user_id), channel=channel)
        log.info("verification_reject_start")

        if not rejection_reason or not rejection_reason.strip():
            raise ValidationFailed("Rejection reason is required")

        verification, entry = await self._channel_or_404(db, user_id, channel)
        entry.update(status="rejected", rejection_reason=rejection_reason)
        setattr(verification, channel, entry)
        overall = verification.refresh_overall_status()

        await self._mirror_to_user(
            db,
            user_id,
            channel,
            {"status": _USER_STATUS["rejected"], "submitted_at": entry.get("submitted_at")},
        )
        await db.flush()

        log.info("verification_reject_complete", overall_status=overall)
        return entry

    async def _verify_companion_media(
        self, db: AsyncSession, user_id: uuid.UUID, comparison: dict
    ) -> None:
        """Flag the companion's photos and videos whose URLs were reviewed."""
        stmt = select(CompanionProfile).where(CompanionProfile.user_id == user_id)
        profile = (await db.execute(stmt)).scalar_one_or_none()
        if profile is None:
            return

        images = set(comparison.get("images") or [])
        videos = set(comparison.get("videos") or [])
        profile.photos = [
            {**p, "is_verified": True} if p.get("url") in images else dict(p)
            for p in profile.photos or []
        ]
        profile.videos = [
            {**v, "is_verified": True} if v.get("url") in videos else dict(v)
            for v in profile.videos or []
        ]
        logger.info("companion_media_verified", user_id=str(user_id))

    # ══════════════════════════════════════════════════════════════════════
    # Reporting
    # ══════════════════════════════════════════════════════════════════════

    async def get_status(self, db: AsyncSession, user_id: uuid.UUID) -> dict:
        verification = await self._find(db, user_id)
        if verification is None:
            return {
                "overall_status": "unverified",
                "id_verification": None,
                "selfie_verification": None,
                "comparison_media": None,
            }

        def _summary(entry: dict | None) -> dict | None:
            if not entry:
                return None
            return {
                "status": entry.get("status"),
                "submitted_at": entry.get("submitted_at"),
                "verified_at": entry.get("verified_at"),
                "rejection_reason": entry.get("rejection_reason"),
            }

        return {
            "overall_status": verification.overall_status,
            "id_verification": _summary(verification.id_verification),
            "selfie_verification": _summary(verification.selfie_verification),
            "comparison_media": _summary(verification.comparison_media),
        }

    async def list_pending(self, db: AsyncSession) -> list[Verification]:
        """Records with at least one channel awaiting review."""
        stmt = (
            select(Verification)
            .where(
                or_(
                    Verification.id_verification["status"].as_string() == "pending",
                    Verification.selfie_verification["status"].as_string() == "pending",
                    Verification.comparison_media["status"].as_string() == "pending",
                )
            )
            .order_by(Verification.created_at)
        )
        return list((await db.execute(stmt)).scalars().all())
