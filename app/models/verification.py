"""
Companion Marketplace — Verification model (ID, selfie, comparison media).
"""

import uuid
from datetime import datetime

from sqlalchemy import DateTime, ForeignKey, String, Uuid, event, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, JSONType, utcnow

CHANNEL_STATUSES = ("pending", "approved", "rejected")
OVERALL_STATUSES = ("unverified", "partially_verified", "fully_verified", "rejected")
DOCUMENT_TYPES = ("passport", "driverLicense", "nationalId", "other")


class Verification(Base):
    __tablename__ = "verifications"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid,
        ForeignKey("users.id", ondelete="CASCADE"),
        unique=True,
        nullable=False,
    )
    id_verification: Mapped[dict | None] = mapped_column(
        JSONType,
        nullable=True,
        comment="{front_image, back_image, document_type, document_number, expiry_date, status, ...}",
    )
    selfie_verification: Mapped[dict | None] = mapped_column(
        JSONType, nullable=True, comment="{image, status, ...}"
    )
    comparison_media: Mapped[dict | None] = mapped_column(
        JSONType, nullable=True, comment="{images, videos, status, ...}"
    )
    overall_status: Mapped[str] = mapped_column(
        String,
        nullable=False,
        default="unverified",
        server_default="unverified",
        comment="unverified / partially_verified / fully_verified / rejected",
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow, nullable=True
    )

    # ── Relationships ──────────────────────────────────────────────
    user: Mapped["User"] = relationship(
        "User", back_populates="verification", foreign_keys=[user_id], lazy="selectin"
    )

    def channel_statuses(self) -> list[str]:
        """Status of every channel; one never submitted counts as pending."""
        return [
            (channel or {}).get("status") or "pending"
            for channel in (self.id_verification, self.selfie_verification, self.comparison_media)
        ]

    def refresh_overall_status(self) -> str:
        self.overall_status = compute_overall_status(self.channel_statuses())
        return self.overall_status

    def __repr__(self) -> str:
        return f"<Verification user={self.user_id} overall={self.overall_status!r}>"


def compute_overall_status(statuses: list[str]) -> str:
    """Fold the channel statuses into the record's overall status."""
    if any(s == "rejected" for s in statuses):
        return "rejected"
    if statuses and all(s == "approved" for s in statuses):
        return "fully_verified"
    if any(s == "approved" for s in statuses):
        return "partially_verified"
    return "unverified"


@event.listens_for(Verification, "before_insert")
@event.listens_for(Verification, "before_update")
def _derive_overall_status(mapper, connection, target: Verification) -> None:
    target.refresh_overall_status()
