from pydantic import BaseModel, Field
from uuid import UUID
from datetime import date, datetime
from typing import Literal, Optional

from app.schemas.user import UserSummary


class IdVerificationSubmit(BaseModel):
    front_image: str = Field(min_length=1)
    back_image: Optional[str] = None
    document_type: Literal["passport", "driverLicense", "nationalId", "other"]
    document_number: str = Field(min_length=1)
    expiry_date: Optional[date] = None


class SelfieVerificationSubmit(BaseModel):
    image: str = Field(min_length=1)


class ComparisonMediaSubmit(BaseModel):
    images: list[str]
    videos: list[str] = []


class RejectionRequest(BaseModel):
    rejection_reason: str = Field(min_length=1)


class ChannelResponse(BaseModel):
    message: str
    verification: dict


class ChannelStatus(BaseModel):
    status: str
    submitted_at: Optional[datetime] = None
    verified_at: Optional[datetime] = None
    rejection_reason: Optional[str] = None


class VerificationStatusResponse(BaseModel):
    overall_status: str
    id_verification: Optional[ChannelStatus] = None
    selfie_verification: Optional[ChannelStatus] = None
    comparison_media: Optional[ChannelStatus] = None


class PendingVerificationResponse(BaseModel):
    id: UUID
    user_id: UUID
    user: Optional[UserSummary] = None
    id_verification: Optional[dict] = None
    selfie_verification: Optional[dict] = None
    comparison_media: Optional[dict] = None
    overall_status: str
    created_at: datetime

    model_config = {"from_attributes": True}
