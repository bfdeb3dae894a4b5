"""
Companion Marketplace — Client and companion profile management.

Covers the find-or-create profile upsert, companion media galleries
(photos, videos, audio introduction), client favorites and the
recently-viewed list.

Nested collections are stored as JSON columns.  Every mutation builds a new
list/dict and assigns it back so the ORM records the change.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.exceptions import Conflict, Forbidden, NotFound
from app.models.profile import ClientProfile, CompanionProfile
from app.models.user import User

logger = structlog.get_logger("marketplace.profile_service")


def _merge_truthy(target: Any, fields: dict[str, Any]) -> list[str]:
    """Copy each truthy value in ``fields`` onto ``target``.

    Empty strings, zero, ``False`` and empty collections count as absent, so
    they never overwrite a stored value.
    """
    applied = []
    for name, value in fields.items():
        if value:
            setattr(target, name, value)
            applied.append(name)
    return applied


class ProfileService:
    """Profile reads and writes for both marketplace roles."""

    # ══════════════════════════════════════════════════════════════════════
    # Lookups
    # ══════════════════════════════════════════════════════════════════════

    async def _load_user_with_role(self, db: AsyncSession, user_id: uuid.UUID, role: str) -> User:
        user = (await db.execute(select(User).where(User.id == user_id))).scalar_one_or_none()
        if user is None:
            raise NotFound("User not found")
        if user.role != role:
            raise Forbidden(f"Only {role}s can create this type of profile")
        return user

    async def find_client_profile(self, db: AsyncSession, user_id: uuid.UUID) -> ClientProfile | None:
        stmt = select(ClientProfile).where(ClientProfile.user_id == user_id)
        return (await db.execute(stmt)).scalar_one_or_none()

    async def find_companion_profile(
        self, db: AsyncSession, user_id: uuid.UUID
    ) -> CompanionProfile | None:
        stmt = select(CompanionProfile).where(CompanionProfile.user_id == user_id)
        return (await db.execute(stmt)).scalar_one_or_none()

    async def get_client_profile(self, db: AsyncSession, user_id: uuid.UUID) -> ClientProfile:
        profile = await self.find_client_profile(db, user_id)
        if profile is None:
            raise NotFound("Profile not found")
        return profile

    async def get_companion_profile(self, db: AsyncSession, user_id: uuid.UUID) -> CompanionProfile:
        profile = await self.find_companion_profile(db, user_id)
        if profile is None:
            raise NotFound("Profile not found")
        return profile

    # ══════════════════════════════════════════════════════════════════════
    # Upserts
    # ══════════════════════════════════════════════════════════════════════

    async def upsert_client_profile(
        self, db: AsyncSession, user_id: uuid.UUID, fields: dict[str, Any]
    ) -> tuple[ClientProfile, bool]:
        """Create the caller's client profile or merge ``fields`` into it.

        Returns the profile and whether it was newly created.
        """
        log = logger.bind(user_id=str(user_id))
        log.info("upsert_client_profile_start")

        user = await self._load_user_with_role(db, user_id, "client")
        profile = await self.find_client_profile(db, user_id)
        created = profile is None

        if created:
            profile = ClientProfile(
                user_id=user.id,
                display_name=fields.get("display_name") or user.first_name,
                favorites=[],
                recently_viewed=[],
            )
            db.add(profile)

        applied = _merge_truthy(profile, fields)
        await db.flush()

        log.info("upsert_client_profile_complete", created=created, applied=applied)
        return profile, created

    async def upsert_companion_profile(
        self, db: AsyncSession, user_id: uuid.UUID, fields: dict[str, Any]
    ) -> tuple[CompanionProfile, bool]:
        """Create the caller's companion profile or merge ``fields`` into it."""
        log = logger.bind(user_id=str(user_id))
        log.info("upsert_companion_profile_start")

        user = await self._load_user_with_role(db, user_id, "companion")
        profile = await self.find_companion_profile(db, user_id)
        created = profile is None

        if created:
            profile = CompanionProfile(
                user_id=user.id,
                display_name=fields.get("display_name") or user.first_name or "",
                languages=[],
                services=[],
                photos=[],
                videos=[],
            )
            profile.user = user
            db.add(profile)

        applied = _merge_truthy(profile, fields)
        await db.flush()

        log.info("upsert_companion_profile_complete", created=created, applied=applied)
        return profile, created

    async def view_companion_profile(
        self, db: AsyncSession, profile_id: uuid.UUID
    ) -> CompanionProfile:
        """Fetch a companion profile by id, counting the view."""
        profile = await db.get(CompanionProfile, profile_id)
        if profile is None:
            raise NotFound("Profile not found")

        profile.profile_views = (profile.profile_views or 0) + 1
        profile.last_active = utcnow()
        await db.flush()

        logger.info("companion_profile_viewed", profile_id=str(profile_id), views=profile.profile_views)
        return profile

    # ══════════════════════════════════════════════════════════════════════
    # Companion media
    # ══════════════════════════════════════════════════════════════════════

    async def add_photo(
        self, db: AsyncSession, user_id: uuid.UUID, url: str, is_main: bool = False
    ) -> dict:
        profile = await self.get_companion_profile(db, user_id)

        photos = [dict(p) for p in profile.photos or []]
        if is_main:
            for photo in photos:
                photo["is_main"] = False

        photo = {
            "id": str(uuid.uuid4()),
            "url": url,
            "is_main": bool(is_main),
            "is_verified": False,
            "upload_date": utcnow().isoformat(),
        }
        photos.append(photo)
        profile.photos = photos
        await db.flush()

        logger.info("photo_added", user_id=str(user_id), photo_id=photo["id"], is_main=photo["is_main"])
        return photo

    async def set_main_photo(self, db: AsyncSession, user_id: uuid.UUID, photo_id: str) -> dict:
        profile = await self.get_companion_profile(db, user_id)

        photos = [dict(p) for p in profile.photos or []]
        if not any(p.get("id") == photo_id for p in photos):
            raise NotFound("Photo not found")

        for photo in photos:
            photo["is_main"] = photo.get("id") == photo_id
        profile.photos = photos
        await db.flush()

        logger.info("main_photo_set", user_id=str(user_id), photo_id=photo_id)
        return next(p for p in photos if p["id"] == photo_id)

    async def delete_photo(self, db: AsyncSession, user_id: uuid.UUID, photo_id: str) -> None:
        profile = await self.get_companion_profile(db, user_id)

        photos = [dict(p) for p in profile.photos or []]
        remaining = [p for p in photos if p.get("id") != photo_id]
        if len(remaining) == len(photos):
            raise NotFound("Photo not found")

        profile.photos = remaining
        await db.flush()
        logger.info("photo_deleted", user_id=str(user_id), photo_id=photo_id)

    async def add_video(
        self, db: AsyncSession, user_id: uuid.UUID, url: str, thumbnail: str = ""
    ) -> dict:
        profile = await self.get_companion_profile(db, user_id)

        video = {
            "id": str(uuid.uuid4()),
            "url": url,
            "thumbnail": thumbnail or "",
            "is_verified": False,
            "upload_date": utcnow().isoformat(),
        }
        profile.videos = [dict(v) for v in profile.videos or []] + [video]
        await db.flush()

        logger.info("video_added", user_id=str(user_id), video_id=video["id"])
        return video

    async def delete_video(self, db: AsyncSession, user_id: uuid.UUID, video_id: str) -> None:
        profile = await self.get_companion_profile(db, user_id)

        videos = [dict(v) for v in profile.videos or []]
        remaining = [v for v in videos if v.get("id") != video_id]
        if len(remaining) == len(videos):
            raise NotFound("Video not found")

        profile.videos = remaining
        await db.flush()
        logger.info("video_deleted", user_id=str(user_id), video_id=video_id)

    async def set_audio_introduction(
        self, db: AsyncSession, user_id: uuid.UUID, url: str, duration: float = 0
    ) -> dict:
        profile = await self.get_companion_profile(db, user_id)

        profile.audio_introduction = {
            "url": url,
            "duration": duration or 0,
            "upload_date": utcnow().isoformat(),
        }
        await db.flush()

        logger.info("audio_introduction_set", user_id=str(user_id))
        return profile.audio_introduction

    async def delete_audio_introduction(self, db: AsyncSession, user_id: uuid.UUID) -> None:
        profile = await self.get_companion_profile(db, user_id)
        profile.audio_introduction = None
        await db.flush()
        logger.info("audio_introduction_deleted", user_id=str(user_id))

    # ══════════════════════════════════════════════════════════════════════
    # Favorites
    # ══════════════════════════════════════════════════════════════════════

    async def add_favorite(
        self, db: AsyncSession, user_id: uuid.UUID, companion_profile_id: uuid.UUID
    ) -> dict:
        """Add a companion to the client's favorites and bump its counter.

        Both rows are written in the caller's session and commit together.
        """
        log = logger.bind(user_id=str(user_id), companion_id=str(companion_profile_id))
        log.info("add_favorite_start")

        client = await self.find_client_profile(db, user_id)
        if client is None:
            raise NotFound("Client profile not found")

        companion = await db.get(CompanionProfile, companion_profile_id)
        if companion is None:
            raise NotFound("Companion profile not found")

        favorites = [dict(f) for f in client.favorites or []]
        if any(f.get("companion_id") == str(companion_profile_id) for f in favorites):
            log.warning("add_favorite_duplicate")
            raise Conflict("Companion already in favorites")

        entry = {"companion_id": str(companion_profile_id), "added_at": utcnow().isoformat()}
        client.favorites = favorites + [entry]
        companion.favorite_count = (companion.favorite_count or 0) + 1
        await db.flush()

        log.info("add_favorite_complete", favorite_count=companion.favorite_count)
        return entry

    async def remove_favorite(
        self, db: AsyncSession, user_id: uuid.UUID, companion_profile_id: uuid.UUID
    ) -> None:
        log = logger.bind(user_id=str(user_id), companion_id=str(companion_profile_id))
        log.info("remove_favorite_start")

        client = await self.find_client_profile(db, user_id)
        if client is None:
            raise NotFound("Client profile not found")

        favorites = [dict(f) for f in client.favorites or []]
        remaining = [f for f in favorites if f.get("companion_id") != str(companion_profile_id)]
        if len(remaining) == len(favorites):
            raise NotFound("Companion not found in favorites")

        client.favorites = remaining

        # The companion may have been removed since it was favorited.
        companion = await db.get(CompanionProfile, companion_profile_id)
        if companion is not None:
            companion.favorite_count = max(0, (companion.favorite_count or 0) - 1)
        await db.flush()

        log.info("remove_favorite_complete")

    async def get_favorites(self, db: AsyncSession, user_id: uuid.UUID) -> list[dict]:
        profile = await self.get_client_profile(db, user_id)
        return await self._with_companions(db, profile.favorites or [])

    # ══════════════════════════════════════════════════════════════════════
    # Recently viewed
    # ══════════════════════════════════════════════════════════════════════

    async def touch_recently_viewed(
        self, db: AsyncSession, user_id: uuid.UUID, companion_profile_id: uuid.UUID
    ) -> list[dict]:
        """Move the companion to the front of the client's recently-viewed list."""
        client = await self.find_client_profile(db, user_id)
        if client is None:
            raise NotFound("Client profile not found")

        if await db.get(CompanionProfile, companion_profile_id) is None:
            raise NotFound("Companion profile not found")

        key = str(companion_profile_id)
        viewed = [dict(v) for v in client.recently_viewed or [] if v.get("companion_id") != key]
        viewed.insert(0, {"companion_id": key, "viewed_at": utcnow().isoformat()})
        client.recently_viewed = viewed
        await db.flush()

        logger.info("recently_viewed_updated", user_id=str(user_id), size=len(client.recently_viewed))
        return client.recently_viewed

    async def get_recently_viewed(self, db: AsyncSession, user_id: uuid.UUID) -> list[dict]:
        profile = await self.get_client_profile(db, user_id)
        return await self._with_companions(db, profile.recently_viewed or [])

    async def _with_companions(self, db: AsyncSession, entries: list[dict]) -> list[dict]:
        """Attach the referenced companion profile to each entry (``None`` if gone)."""
        ids = []
        for entry in entries:
            try:
                ids.append(uuid.UUID(entry["companion_id"]))
            except (KeyError, ValueError):
                continue

        companions: dict[str, CompanionProfile] = {}
        if ids:
            result = await db.execute(select(CompanionProfile).where(CompanionProfile.id.in_(ids)))
            companions = {str(c.id): c for c in result.scalars().all()}

        return [{**entry, "companion": companions.get(entry.get("companion_id"))} for entry in entries]
