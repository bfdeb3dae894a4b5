from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Optional

from app.schemas.common import Pagination


class Participant(BaseModel):
    id: UUID
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    role: str
    profile_picture: Optional[str] = None

    model_config = {"from_attributes": True}


class ConversationCreate(BaseModel):
    recipient_id: UUID
    initial_message: str = Field(min_length=1)


class MessageCreate(BaseModel):
    content: str = Field(min_length=1)
    attachments: list[str] = []


class MessageOut(BaseModel):
    id: UUID
    conversation_id: Optional[UUID] = None
    sender_id: UUID
    recipient_id: UUID
    content: str
    attachments: list = []
    read_at: Optional[datetime] = None
    is_deleted: bool
    created_at: datetime

    model_config = {"from_attributes": True}


class ConversationOut(BaseModel):
    id: UUID
    participants: list[Participant]
    last_message: Optional[dict] = None
    unread_count: int = 0
    is_blocked: bool
    blocked_by: Optional[UUID] = None
    created_at: datetime
    updated_at: datetime


class ConversationCreatedResponse(BaseModel):
    message: str
    conversation: ConversationOut


class MessageSentResponse(BaseModel):
    message: str
    message_data: MessageOut


class MessagePage(BaseModel):
    messages: list[MessageOut]
    pagination: Pagination


class UnreadCountResponse(BaseModel):
    unread_count: int
