"""
Companion Marketplace — Messaging API

Two-party conversations: listing, creation, message exchange, read receipts,
per-user deletion and blocking.
"""

from __future__ import annotations

import uuid

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.messaging import Conversation
from app.models.user import User
from app.schemas.common import MessageResponse
from app.schemas.messaging import (
    ConversationCreate,
    ConversationCreatedResponse,
    ConversationOut,
    MessageCreate,
    MessagePage,
    MessageSentResponse,
    UnreadCountResponse,
)
from app.services.messaging_service import MessagingService

logger = structlog.get_logger("marketplace.api.messaging")

router = APIRouter()

# ── Service singletons ────────────────────────────────────────────────────────

_messaging_service: MessagingService | None = None


def _get_messaging_service() -> MessagingService:
    global _messaging_service
    if _messaging_service is None:
        _messaging_service = MessagingService()
    return _messaging_service


def _conversation_out(conversation: Conversation, user_id: uuid.UUID) -> dict:
    """Project a conversation from the caller's point of view."""
    return {
        "id": conversation.id,
        "participants": conversation.participants,
        "last_message": conversation.last_message,
        "unread_count": conversation.unread_for(user_id),
        "is_blocked": conversation.is_blocked,
        "blocked_by": conversation.blocked_by,
        "created_at": conversation.created_at,
        "updated_at": conversation.updated_at,
    }


# ──────────────────────────────────────────────────────────────────────────────
# Conversations
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/conversations", response_model=list[ConversationOut], summary="List conversations")
async def list_conversations(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> list[dict]:
    conversations = await _get_messaging_service().list_conversations(db, current_user.id)
    return [_conversation_out(c, current_user.id) for c in conversations]


@router.get("/conversations/{conversation_id}", response_model=ConversationOut, summary="Get a conversation")
async def get_conversation(
    conversation_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    conversation = await _get_messaging_service().get_conversation(db, conversation_id, current_user.id)
    return _conversation_out(conversation, current_user.id)


@router.post(
    "/conversations",
    response_model=ConversationCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Start a conversation",
)
async def create_conversation(
    payload: ConversationCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    conversation = await _get_messaging_service().create_conversation(
        db, current_user.id, payload.recipient_id, payload.initial_message
    )
    return {
        "message": "Conversation created successfully",
        "conversation": _conversation_out(conversation, current_user.id),
    }


@router.delete(
    "/conversations/{conversation_id}",
    response_model=MessageResponse,
    summary="Delete a conversation for the caller",
)
async def delete_conversation(
    conversation_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    removed = await _get_messaging_service().delete_conversation(db, conversation_id, current_user.id)
    if removed:
        return {"message": "Conversation permanently deleted"}
    return {"message": "Conversation deleted for you"}


# ──────────────────────────────────────────────────────────────────────────────
# Messages
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/conversations/{conversation_id}/messages",
    response_model=MessageSentResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Send a message",
)
async def send_message(
    conversation_id: uuid.UUID,
    payload: MessageCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    message = await _get_messaging_service().send_message(
        db, conversation_id, current_user.id, payload.content, payload.attachments
    )
    return {"message": "Message sent successfully", "message_data": message}


@router.get(
    "/conversations/{conversation_id}/messages",
    response_model=MessagePage,
    summary="List messages and mark them read",
)
async def get_messages(
    conversation_id: uuid.UUID,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await _get_messaging_service().get_messages(
        db, conversation_id, current_user.id, page=page, limit=limit
    )


@router.put(
    "/conversations/{conversation_id}/read",
    response_model=MessageResponse,
    summary="Mark a conversation as read",
)
async def mark_as_read(
    conversation_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _get_messaging_service().mark_as_read(db, conversation_id, current_user.id)
    return {"message": "Conversation marked as read"}


# ──────────────────────────────────────────────────────────────────────────────
# Blocking
# ──────────────────────────────────────────────────────────────────────────────

@router.put(
    "/conversations/{conversation_id}/block",
    response_model=MessageResponse,
    summary="Block a conversation",
)
async def block(
    conversation_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _get_messaging_service().block(db, conversation_id, current_user.id)
    return {"message": "Conversation blocked successfully"}


@router.put(
    "/conversations/{conversation_id}/unblock",
    response_model=MessageResponse,
    summary="Unblock a conversation",
)
async def unblock(
    conversation_id: uuid.UUID,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    await _get_messaging_service().unblock(db, conversation_id, current_user.id)
    return {"message": "Conversation unblocked successfully"}


@router.get("/unread-count", response_model=UnreadCountResponse, summary="Total unread messages")
async def unread_count(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return {"unread_count": await _get_messaging_service().unread_count(db, current_user.id)}
