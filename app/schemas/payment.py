from pydantic import BaseModel
from uuid import UUID
from datetime import datetime
from typing import Literal, Optional

from app.schemas.common import Pagination

PaymentMethod = Literal["credit_card", "debit_card", "paypal", "bank_transfer"]


class SubscriptionCreate(BaseModel):
    plan: Literal["free", "basic", "premium", "vip"]
    payment_method: Optional[PaymentMethod] = None
    auto_renew: bool = False


class FeaturedListingCreate(BaseModel):
    duration: Literal["7days", "14days", "30days"]
    payment_method: PaymentMethod


class PaymentOut(BaseModel):
    id: UUID
    amount: float
    currency: str
    payment_method: str
    payment_type: str
    status: str
    transaction_id: Optional[str] = None
    receipt_url: Optional[str] = None
    metadata: Optional[dict] = None
    created_at: datetime

    @classmethod
    def from_payment(cls, payment) -> "PaymentOut":
        return cls(
            id=payment.id,
            amount=payment.amount,
            currency=payment.currency,
            payment_method=payment.payment_method,
            payment_type=payment.payment_type,
            status=payment.status,
            transaction_id=payment.transaction_id,
            receipt_url=payment.receipt_url,
            metadata=payment.metadata_,
            created_at=payment.created_at,
        )


class PaymentSummary(BaseModel):
    amount: float
    currency: str
    status: str
    created_at: datetime

    model_config = {"from_attributes": True}


class PaymentReceipt(BaseModel):
    amount: float
    currency: str
    status: str
    transaction_id: Optional[str] = None
    receipt_url: Optional[str] = None

    model_config = {"from_attributes": True}


class SubscriptionOut(BaseModel):
    id: UUID
    plan: str
    status: str
    features: dict
    start_date: datetime
    end_date: datetime
    auto_renew: bool
    payment_method: Optional[str] = None
    next_billing_date: Optional[datetime] = None
    canceled_at: Optional[datetime] = None
    last_payment: Optional[PaymentSummary] = None

    model_config = {"from_attributes": True}


class SubscriptionCreatedResponse(BaseModel):
    message: str
    subscription: SubscriptionOut
    payment: Optional[PaymentReceipt] = None


class CurrentSubscriptionResponse(BaseModel):
    message: Optional[str] = None
    subscription: Optional[SubscriptionOut] = None


class SubscriptionCanceledResponse(BaseModel):
    message: str
    subscription: SubscriptionOut


class FeaturedListingResponse(BaseModel):
    message: str
    featured: dict
    payment: PaymentReceipt


class PaymentHistoryResponse(BaseModel):
    payments: list[PaymentOut]
    pagination: Pagination


class PlanOut(BaseModel):
    id: str
    name: str
    price: float
    currency: str
    interval: str
    features: list[str]
