"""
Companion Marketplace — Conversation and Message models.

``unread_count`` and ``is_deleted`` are JSON maps keyed by the participant's
user id (as a string).  A missing key means ``0`` / ``False``; use the
accessor methods rather than indexing the maps directly.  Setters always
assign a fresh dict so the ORM records the change.
"""

import uuid
from datetime import datetime

from sqlalchemy import Boolean, DateTime, ForeignKey, Text, Uuid, func
from sqlalchemy.orm import Mapped, mapped_column, relationship

from app.database import Base, JSONType, utcnow


class Conversation(Base):
    __tablename__ = "conversations"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    participant_a_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    participant_b_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False
    )
    last_message: Mapped[dict | None] = mapped_column(
        JSONType, nullable=True, comment="{content, sender_id, created_at}"
    )
    unread_count: Mapped[dict] = mapped_column(
        JSONType, nullable=False, default=dict, comment="user_id -> int"
    )
    is_blocked: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    blocked_by: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="SET NULL"), nullable=True
    )
    is_deleted: Mapped[dict] = mapped_column(
        JSONType, nullable=False, default=dict, comment="user_id -> bool"
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, onupdate=utcnow, nullable=False
    )

    # ── Relationships ──────────────────────────────────────────────
    participant_a: Mapped["User"] = relationship(
        "User", foreign_keys=[participant_a_id], lazy="selectin"
    )
    participant_b: Mapped["User"] = relationship(
        "User", foreign_keys=[participant_b_id], lazy="selectin"
    )

    # ── Per-participant maps ───────────────────────────────────────

    @property
    def participant_ids(self) -> list[uuid.UUID]:
        return [self.participant_a_id, self.participant_b_id]

    @property
    def participants(self) -> list["User"]:
        return [self.participant_a, self.participant_b]

    def other_participant(self, user_id: uuid.UUID) -> uuid.UUID:
        return self.participant_b_id if self.participant_a_id == user_id else self.participant_a_id

    def unread_for(self, user_id: uuid.UUID) -> int:
        return int((self.unread_count or {}).get(str(user_id), 0))

    def set_unread(self, user_id: uuid.UUID, value: int) -> None:
        counts = dict(self.unread_count or {})
        counts[str(user_id)] = value
        self.unread_count = counts

    def is_deleted_for(self, user_id: uuid.UUID) -> bool:
        return bool((self.is_deleted or {}).get(str(user_id), False))

    def set_deleted(self, user_id: uuid.UUID, value: bool) -> None:
        flags = dict(self.is_deleted or {})
        flags[str(user_id)] = value
        self.is_deleted = flags

    def deleted_by_all(self) -> bool:
        return all(self.is_deleted_for(pid) for pid in self.participant_ids)

    def __repr__(self) -> str:
        return (
            f"<Conversation {self.participant_a_id} <-> {self.participant_b_id} "
            f"blocked={self.is_blocked}>"
        )


class Message(Base):
    __tablename__ = "messages"

    id: Mapped[uuid.UUID] = mapped_column(
        Uuid, primary_key=True, default=uuid.uuid4
    )
    conversation_id: Mapped[uuid.UUID | None] = mapped_column(
        Uuid, ForeignKey("conversations.id", ondelete="SET NULL"), index=True, nullable=True
    )
    sender_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    recipient_id: Mapped[uuid.UUID] = mapped_column(
        Uuid, ForeignKey("users.id", ondelete="CASCADE"), nullable=False
    )
    content: Mapped[str] = mapped_column(Text, nullable=False)
    attachments: Mapped[list] = mapped_column(JSONType, nullable=False, default=list)
    read_at: Mapped[datetime | None] = mapped_column(
        DateTime(timezone=True), nullable=True
    )
    is_deleted: Mapped[bool] = mapped_column(
        Boolean, default=False, server_default="false", nullable=False
    )
    created_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utcnow, server_default=func.now(), nullable=False
    )

    def __repr__(self) -> str:
        return f"<Message {self.sender_id} -> {self.recipient_id} conv={self.conversation_id}>"
