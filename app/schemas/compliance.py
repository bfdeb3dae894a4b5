from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Literal, Optional

from app.schemas.common import Pagination
from app.schemas.user import UserSummary


class LegalDocumentCreate(BaseModel):
    version: str = Field(min_length=1)
    content: str = Field(min_length=1)
    is_active: bool = False


class LegalDocumentOut(BaseModel):
    id: UUID
    version: str
    content: str
    published_at: datetime
    is_active: bool

    model_config = {"from_attributes": True}


class TermsCreatedResponse(BaseModel):
    message: str
    terms: LegalDocumentOut


class PolicyCreatedResponse(BaseModel):
    message: str
    policy: LegalDocumentOut


class AgreementAccept(BaseModel):
    terms_version: str = Field(min_length=1)
    policy_version: str = Field(min_length=1)
    ip_address: Optional[str] = None


class AgeVerificationRequest(BaseModel):
    method: Literal["self_declaration", "id_verification", "other"]
    ip_address: Optional[str] = None


class AgreementOut(BaseModel):
    id: UUID
    user_id: UUID
    terms_of_service: dict
    privacy_policy: dict
    age_verification: dict
    created_at: datetime
    updated_at: datetime

    model_config = {"from_attributes": True}


class AgreementWithUser(AgreementOut):
    user: Optional[UserSummary] = None


class AgreementResponse(BaseModel):
    message: str
    agreement: AgreementOut


class AgeVerificationResponse(BaseModel):
    message: str
    age_verification: dict


class AgreementStatusResponse(BaseModel):
    terms_accepted: bool
    privacy_accepted: bool
    age_verified: bool
    terms_version: Optional[str] = None
    terms_agreed_at: Optional[datetime] = None
    privacy_version: Optional[str] = None
    privacy_agreed_at: Optional[datetime] = None
    age_verification_method: Optional[str] = None
    age_verified_at: Optional[datetime] = None


class AgreementPage(BaseModel):
    agreements: list[AgreementWithUser]
    pagination: Pagination
