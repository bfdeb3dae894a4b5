"""
Companion Marketplace — ClientProfile and CompanionProfile models.
"""

import uuid
from datetime import datetime

from sqlalchemy import (
    Boolean,
    DateTime,
    Float,
    ForeignKey,
    Integer,
    String,
    Text,
    Uuid,
    func,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship, validates

from app.database import Base, JSONType, utcnow

RECENTLY_VIEWED_LIMIT = 20

BODY_TYPES = ("slim", "athletic", "average", "curvy", "plus-size")
SUBSCRIPTION_LEVELS = ("free", "basic", "premium", "vip")


class ClientProfile(Base):
    __tablename__ = "client_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    display_name: Mapped[str | None] = mapped_column(String, nullable=True)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True)
    gender: Mapped[str | None] = mapped_column(String, nullable=True)
    preferences: Mapped[dict | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="{companion_gender, age_range{min,max}, services, locations}",
    )
    favorites: Mapped[list] = mapped_column(
        JSONType, nullable=False, default=list, comment="[{companion_id, added_at}]"
    )
    recently_viewed: Mapped[list] = mapped_column(
        JSONType, nullable=False, default=list, comment="[{companion_id, viewed_at}], newest first"
    )
    verification_level: Mapped[str] = mapped_column(
        String, nullable=False, default="none", comment="none / basic / verified"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true", nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow, nullable=True
    )

    # ── Relationships ──────────────────────────────────────────────
    user: Mapped["User"] = relationship("User", back_populates="client_profile")

    @validates("recently_viewed")
    def _truncate_recently_viewed(self, key: str, value: list | None) -> list:
        return list(value or [])[:RECENTLY_VIEWED_LIMIT]

    def __repr__(self) -> str:
        return f"<ClientProfile user={self.user_id} name={self.display_name!r}>"


class CompanionProfile(Base):
    __tablename__ = "companion_profiles"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    display_name: Mapped[str] = mapped_column(String, nullable=False)
    age: Mapped[int | None] = mapped_column(Integer, nullable=True, comment="18-99")
    height: Mapped[int | None] = mapped_column(Integer, nullable=True, comment="cm, 140-220")
    body_type: Mapped[str | None] = mapped_column(String, nullable=True)
    ethnicity: Mapped[str | None] = mapped_column(String, nullable=True)
    languages: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    about_me: Mapped[str | None] = mapped_column(Text, nullable=True)
    services: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    rates: Mapped[dict | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="{hourly, two_hours, three_hours, dinner, overnight, additional_info}",
    )
    availability: Mapped[dict | None] = mapped_column(
        JSONType, nullable=True, comment="monday..sunday -> {available, start_time, end_time}"
    )
    location: Mapped[dict | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="{city, state, country, travel_availability, travel_locations}",
    )
    social_media: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    preferences: Mapped[dict | None] = mapped_column(JSONType, nullable=True)
    photos: Mapped[list] = mapped_column(
        JSONType, nullable=False, default=list, comment="[{id, url, is_main, is_verified, upload_date}]"
    )
    videos: Mapped[list] = mapped_column(
        JSONType, nullable=False, default=list, comment="[{id, url, thumbnail, is_verified, upload_date}]"
    )
    audio_introduction: Mapped[dict | None] = mapped_column(
        JSONType, nullable=True, comment="{url, duration, upload_date}"
    )

    # ── Stats ──────────────────────────────────────────────────────
    profile_views: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    favorite_count: Mapped[int] = mapped_column(
        Integer, default=0, server_default="0", nullable=False
    )
    rating: Mapped[float | None] = mapped_column(Float, nullable=True)
    last_active: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=True
    )

    # ── Featured window & subscription tier ────────────────────────
    is_featured: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    featured_until: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    subscription_level: Mapped[str] = mapped_column(
        String, nullable=False, default="free", server_default="free"
    )
    subscription_expires_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )

    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true", nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow, nullable=True
    )

    # ── Relationships ──────────────────────────────────────────────
    user: Mapped["User"] = relationship(
        "User", back_populates="companion_profile", lazy="selectin"
    )

    @property
    def is_verified(self) -> bool:
        """Owner's account-level verification badge."""
        return bool(self.user is not None and self.user.is_verified)

    def __repr__(self) -> str:
        return f"<CompanionProfile user={self.user_id} name={self.display_name!r}>"
