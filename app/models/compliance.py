"""
Companion Marketplace — Legal documents and per-user agreement ledger.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, String, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, JSONType, utcnow

AGE_VERIFICATION_METHODS = ("self_declaration", "id_verification", "other")


class TermsOfService(Base):
    __tablename__ = "terms_of_service"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    version: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    published_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )

    def __repr__(self) -> str:
        return f"<TermsOfService v={self.version!r} active={self.is_active}>"


class PrivacyPolicy(Base):
    __tablename__ = "privacy_policies"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    version: Mapped[str] = mapped_column(String, unique=True, nullable=False)
    content: Mapped[str] = mapped_column(Text, nullable=False)
    published_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    is_active: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )

    def __repr__(self) -> str:
        return f"<PrivacyPolicy v={self.version!r} active={self.is_active}>"


class UserAgreement(Base):
    __tablename__ = "user_agreements"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    terms_of_service: Mapped[dict] = mapped_column(
        JSONType, nullable=False, comment="{version, agreed_at, ip_address}"
    )
    privacy_policy: Mapped[dict] = mapped_column(
        JSONType, nullable=False, comment="{version, agreed_at, ip_address}"
    )
    age_verification: Mapped[dict] = mapped_column(
        JSONType,
        nullable=False,
        default=lambda: {"is_verified": False, "verified_at": None, "method": None},
        comment="{is_verified, verified_at, method}",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    # ── Relationships ──────────────────────────────────────────────
    user: Mapped["User"] = relationship("User", lazy="selectin")

    def __repr__(self) -> str:
        return f"<UserAgreement user={self.user_id}>"
