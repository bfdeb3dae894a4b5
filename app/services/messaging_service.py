"""
Companion Marketplace — Two-party conversations.

Each conversation joins exactly two users.  Unread counters and soft-delete
flags are tracked per participant; a conversation is removed only once both
participants have deleted it.  A blocked conversation accepts no messages
from either side until the blocker unblocks it.
"""

from __future__ import annotations

import uuid
from typing import Any

import structlog
from sqlalchemy import and_, func, or_, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.exceptions import Conflict, NotFound
from app.models.messaging import Conversation, Message
from app.models.user import User
from app.utils.pagination import build_pagination, offset_for

logger = structlog.get_logger("marketplace.messaging_service")


def _involves(user_id: uuid.UUID):
    return or_(
        Conversation.participant_a_id == user_id,
        Conversation.participant_b_id == user_id,
    )


def _between(a: uuid.UUID, b: uuid.UUID):
    return or_(
        and_(Conversation.participant_a_id == a, Conversation.participant_b_id == b),
        and_(Conversation.participant_a_id == b, Conversation.participant_b_id == a),
    )


class MessagingService:
    """Conversation lifecycle and message exchange."""

    async def _participant_conversation(
        self, db: AsyncSession, conversation_id: uuid.UUID, user_id: uuid.UUID
    ) -> Conversation | None:
        stmt = select(Conversation).where(Conversation.id == conversation_id, _involves(user_id))
        return (await db.execute(stmt)).scalar_one_or_none()

    async def list_conversations(self, db: AsyncSession, user_id: uuid.UUID) -> list[Conversation]:
        """Conversations the user takes part in and has not deleted, latest activity first."""
        stmt = (
            select(Conversation)
            .where(_involves(user_id))
            .order_by(Conversation.updated_at.desc())
        )
        conversations = (await db.execute(stmt)).scalars().all()
        return [c for c in conversations if not c.is_deleted_for(user_id)]

    async def get_conversation(
        self, db: AsyncSession, conversation_id: uuid.UUID, user_id: uuid.UUID
    ) -> Conversation:
        conversation = await self._participant_conversation(db, conversation_id, user_id)
        if conversation is None or conversation.is_deleted_for(user_id):
            raise NotFound("Conversation not found")
        return conversation

    async def create_conversation(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        recipient_id: uuid.UUID,
        initial_message: str,
    ) -> Conversation:
        log = logger.bind(user_id=str(user_id), recipient_id=str(recipient_id))
        log.info("create_conversation_start")

        if await db.get(User, recipient_id) is None:
            raise NotFound("Recipient not found")

        stmt = select(Conversation).where(_between(user_id, recipient_id))
        for existing in (await db.execute(stmt)).scalars().all():
            if not existing.is_deleted_for(user_id):
                log.warning("create_conversation_exists", conversation_id=str(existing.id))
                raise Conflict("Conversation already exists", conversation_id=str(existing.id))

        now = utcnow()
        conversation = Conversation(
            participant_a_id=user_id,
            participant_b_id=recipient_id,
            unread_count={str(recipient_id): 1},
            is_deleted={},
            last_message={
                "content": initial_message,
                "sender_id": str(user_id),
                "created_at": now.isoformat(),
            },
        )
        db.add(conversation)
        await db.flush()

        db.add(
            Message(
                conversation_id=conversation.id,
                sender_id=user_id,
                recipient_id=recipient_id,
                content=initial_message,
                attachments=[],
            )
        )
        await db.flush()
        # Load both participants for the response projection.
        await db.refresh(conversation, attribute_names=["participant_a", "participant_b"])

        log.info("create_conversation_complete", conversation_id=str(conversation.id))
        return conversation

    async def send_message(
        self,
        db: AsyncSession,
        conversation_id: uuid.UUID,
        sender_id: uuid.UUID,
        content: str,
        attachments: list[str] | None = None,
    ) -> Message:
        log = logger.bind(conversation_id=str(conversation_id), user_id=str(sender_id))
        log.info("send_message_start")

        conversation = await self._participant_conversation(db, conversation_id, sender_id)
        if conversation is None or conversation.is_blocked:
            raise NotFound("Conversation not found or blocked")

        recipient_id = conversation.other_participant(sender_id)
        message = Message(
            conversation_id=conversation.id,
            sender_id=sender_id,
            recipient_id=recipient_id,
            content=content,
            attachments=list(attachments or []),
        )
        db.add(message)

        conversation.last_message = {
            "content": content,
            "sender_id": str(sender_id),
            "created_at": utcnow().isoformat(),
        }
        conversation.set_unread(recipient_id, conversation.unread_for(recipient_id) + 1)
        if conversation.is_deleted_for(recipient_id):
            conversation.set_deleted(recipient_id, False)
        await db.flush()

        log.info("send_message_complete", message_id=str(message.id))
        return message

    async def _mark_read(
        self, db: AsyncSession, conversation: Conversation, user_id: uuid.UUID
    ) -> None:
        """Stamp unread messages addressed to ``user_id`` and zero only their counter."""
        await db.execute(
            update(Message)
            .where(
                Message.conversation_id == conversation.id,
                Message.recipient_id == user_id,
                Message.read_at.is_(None),
            )
            .values(read_at=utcnow())
        )
        conversation.set_unread(user_id, 0)
        await db.flush()

    async def get_messages(
        self,
        db: AsyncSession,
        conversation_id: uuid.UUID,
        user_id: uuid.UUID,
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        conversation = await self._participant_conversation(db, conversation_id, user_id)
        if conversation is None:
            raise NotFound("Conversation not found")

        visible = and_(Message.conversation_id == conversation_id, Message.is_deleted.is_(False))
        stmt = (
            select(Message)
            .where(visible)
            .order_by(Message.created_at.desc())
            .offset(offset_for(page, limit))
            .limit(limit)
        )
        messages = list((await db.execute(stmt)).scalars().all())
        total_count = (
            await db.execute(select(func.count()).select_from(Message).where(visible))
        ).scalar_one()

        await self._mark_read(db, conversation, user_id)

        logger.info(
            "get_messages_complete",
            conversation_id=str(conversation_id),
            user_id=str(user_id),
            returned=len(messages),
        )
        return {"messages": messages, "pagination": build_pagination(page, limit, total_count)}

    async def mark_as_read(
        self, db: AsyncSession, conversation_id: uuid.UUID, user_id: uuid.UUID
    ) -> None:
        conversation = await self._participant_conversation(db, conversation_id, user_id)
        if conversation is None:
            raise NotFound("Conversation not found")
        await self._mark_read(db, conversation, user_id)

    async def delete_conversation(
        self, db: AsyncSession, conversation_id: uuid.UUID, user_id: uuid.UUID
    ) -> bool:
        """Soft-delete for the caller.  Returns ``True`` when the row was removed."""
        log = logger.bind(conversation_id=str(conversation_id), user_id=str(user_id))

        conversation = await self._participant_conversation(db, conversation_id, user_id)
        if conversation is None:
            raise NotFound("Conversation not found")

        conversation.set_deleted(user_id, True)
        if not conversation.deleted_by_all():
            await db.flush()
            log.info("conversation_deleted_for_user")
            return False

        await db.execute(
            update(Message)
            .where(Message.conversation_id == conversation.id)
            .values(is_deleted=True, conversation_id=None)
        )
        await db.delete(conversation)
        await db.flush()

        log.info("conversation_permanently_deleted")
        return True

    async def block(self, db: AsyncSession, conversation_id: uuid.UUID, user_id: uuid.UUID) -> None:
        conversation = await self._participant_conversation(db, conversation_id, user_id)
        if conversation is None:
            raise NotFound("Conversation not found")

        conversation.is_blocked = True
        conversation.blocked_by = user_id
        await db.flush()
        logger.info("conversation_blocked", conversation_id=str(conversation_id), user_id=str(user_id))

    async def unblock(self, db: AsyncSession, conversation_id: uuid.UUID, user_id: uuid.UUID) -> None:
        conversation = await self._participant_conversation(db, conversation_id, user_id)
        if conversation is None or not conversation.is_blocked or conversation.blocked_by != user_id:
            raise NotFound("Conversation not found or not blocked by you")

        conversation.is_blocked = False
        conversation.blocked_by = None
        await db.flush()
        logger.info("conversation_unblocked", conversation_id=str(conversation_id), user_id=str(user_id))

    async def unread_count(self, db: AsyncSession, user_id: uuid.UUID) -> int:
        conversations = await self.list_conversations(db, user_id)
        return sum(c.unread_for(user_id) for c in conversations)
