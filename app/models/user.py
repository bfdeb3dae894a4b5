"""
Companion Marketplace — User model (identity store).
"""

import uuid
from datetime import date, datetime

from sqlalchemy import Boolean, Date, DateTime, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, JSONType, utcnow

ROLES = ("client", "companion", "admin")
VERIFICATION_CHANNELS = ("id_verification", "selfie_verification", "comparison_media")


def default_verification_status() -> dict:
    return {channel: {"status": "pending"} for channel in VERIFICATION_CHANNELS}


class User(Base):
    __tablename__ = "users"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    email: Mapped[str] = mapped_column(
        String, unique=True, index=True, nullable=False
    )
    password_hash: Mapped[str] = mapped_column(String, nullable=False)
    role: Mapped[str] = mapped_column(
        String, nullable=False, default="client", comment="client / companion / admin"
    )
    first_name: Mapped[str | None] = mapped_column(String, nullable=True)
    last_name: Mapped[str | None] = mapped_column(String, nullable=True)
    phone: Mapped[str | None] = mapped_column(String, nullable=True)
    date_of_birth: Mapped[date | None] = mapped_column(Date, nullable=True)
    gender: Mapped[str | None] = mapped_column(
        String, nullable=True, comment="male / female / other"
    )
    location: Mapped[dict | None] = mapped_column(
        JSONType, nullable=True, comment="{city, state, country}"
    )
    profile_picture: Mapped[str | None] = mapped_column(String, nullable=True)
    is_verified: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    verification_status: Mapped[dict] = mapped_column(
        JSONType,
        nullable=False,
        default=default_verification_status,
        comment="Per-channel {status, submitted_at, verified_at}",
    )
    subscription_status: Mapped[dict | None] = mapped_column(
        JSONType, nullable=True, comment="{plan, is_active, expires_at}"
    )
    agreement_status: Mapped[dict | None] = mapped_column(
        JSONType, nullable=True, comment="{terms_accepted, privacy_accepted, last_accepted_at}"
    )
    age_verification: Mapped[dict | None] = mapped_column(
        JSONType, nullable=True, comment="{is_verified, verified_at, method}"
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=True, server_default="true", nullable=False
    )
    last_login: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    reset_password_token: Mapped[str | None] = mapped_column(
        String, nullable=True, index=True
    )
    reset_password_expires: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow, nullable=True
    )

    # ── Relationships ──────────────────────────────────────────────
    client_profile: Mapped["ClientProfile"] = relationship(
        "ClientProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    companion_profile: Mapped["CompanionProfile"] = relationship(
        "CompanionProfile", back_populates="user", uselist=False, cascade="all, delete-orphan"
    )
    verification: Mapped["Verification"] = relationship(
        "Verification",
        back_populates="user",
        uselist=False,
        cascade="all, delete-orphan",
        foreign_keys="Verification.user_id",
    )

    def __repr__(self) -> str:
        return f"<User {self.email!r} id={self.id} role={self.role!r}>"
