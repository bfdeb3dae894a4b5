"""
Companion Marketplace — Payment and Subscription models.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, Float, ForeignKey, String, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, JSONType, utcnow

PAYMENT_METHODS = ("credit_card", "debit_card", "paypal", "bank_transfer")
PAYMENT_TYPES = ("subscription", "featured_listing", "verification", "other")
PLANS = ("free", "basic", "premium", "vip")


class Payment(Base):
    __tablename__ = "payments"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    amount: Mapped[float] = mapped_column(Float, nullable=False)
    currency: Mapped[str] = mapped_column(
        String, nullable=False, default="AUD", server_default="AUD"
    )
    payment_method: Mapped[str] = mapped_column(String, nullable=False)
    payment_type: Mapped[str] = mapped_column(
        String, nullable=False, comment="subscription / featured_listing / verification / other"
    )
    status: Mapped[str] = mapped_column(
        String,
        nullable=False,
        default="pending",
        server_default="pending",
        comment="pending / completed / failed / refunded",
    )
    transaction_id: Mapped[str | None] = mapped_column(String, nullable=True)
    receipt_url: Mapped[str | None] = mapped_column(String, nullable=True)
    metadata_: Mapped[dict | None] = mapped_column(
        "metadata", JSONType, nullable=True, comment="String -> string map (column name: metadata)"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow, nullable=True
    )

    def __repr__(self) -> str:
        return (
            f"<Payment user={self.user_id} {self.amount} {self.currency} "
            f"type={self.payment_type!r} status={self.status!r}>"
        )


class Subscription(Base):
    __tablename__ = "subscriptions"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    user_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    plan: Mapped[str] = mapped_column(
        String, nullable=False, default="free", comment="free / basic / premium / vip"
    )
    status: Mapped[str] = mapped_column(
        String,
        nullable=False,
        default="active",
        server_default="active",
        comment="active / canceled / expired",
    )
    features: Mapped[dict] = mapped_column(JSONType, nullable=False, default=dict)
    start_date: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, nullable=False
    )
    end_date: Mapped[datetime] = mapped_column(DateTime(timezone=True), nullable=False)
    auto_renew: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    payment_method: Mapped[str | None] = mapped_column(String, nullable=True)
    last_payment_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("payments.id", ondelete="SET NULL"), nullable=True
    )
    next_billing_date: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    canceled_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), onupdate=utcnow, nullable=True
    )

    # ── Relationships ──────────────────────────────────────────────
    last_payment: Mapped["Payment"] = relationship(
        "Payment", foreign_keys=[last_payment_id], lazy="selectin"
    )

    def __repr__(self) -> str:
        return f"<Subscription user={self.user_id} plan={self.plan!r} status={self.status!r}>"
