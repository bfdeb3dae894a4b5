"""
Companion Marketplace — Payments API

Subscriptions, featured listings, payment history and the public plan
catalogue.  Charges go through the configured payment gateway.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user
from app.database import get_db
from app.models.user import User
from app.schemas.payment import (
    CurrentSubscriptionResponse,
    FeaturedListingCreate,
    FeaturedListingResponse,
    PaymentHistoryResponse,
    PaymentOut,
    PlanOut,
    SubscriptionCanceledResponse,
    SubscriptionCreate,
    SubscriptionCreatedResponse,
)
from app.services.payment_service import PaymentService

logger = structlog.get_logger("marketplace.api.payments")

router = APIRouter()

# ── Service singletons ────────────────────────────────────────────────────────

_payment_service: PaymentService | None = None


def _get_payment_service() -> PaymentService:
    global _payment_service
    if _payment_service is None:
        _payment_service = PaymentService()
    return _payment_service


# ──────────────────────────────────────────────────────────────────────────────
# Subscriptions
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/subscriptions",
    response_model=SubscriptionCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Subscribe to a plan",
)
async def create_subscription(
    payload: SubscriptionCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    subscription, payment = await _get_payment_service().create_subscription(
        db,
        current_user.id,
        payload.plan,
        payment_method=payload.payment_method,
        auto_renew=payload.auto_renew,
    )
    return {
        "message": "Subscription created successfully",
        "subscription": subscription,
        "payment": payment,
    }


@router.get(
    "/subscriptions/current",
    response_model=CurrentSubscriptionResponse,
    summary="Get the active subscription",
)
async def current_subscription(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    subscription = await _get_payment_service().current_subscription(db, current_user.id)
    if subscription is None:
        return {"message": "No active subscription found", "subscription": None}
    return {"subscription": subscription}


@router.put(
    "/subscriptions/cancel",
    response_model=SubscriptionCanceledResponse,
    summary="Cancel the active subscription",
)
async def cancel_subscription(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    subscription = await _get_payment_service().cancel_subscription(db, current_user.id)
    return {"message": "Subscription canceled successfully", "subscription": subscription}


# ──────────────────────────────────────────────────────────────────────────────
# POST /featured-listings — Buy a featured window
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/featured-listings",
    response_model=FeaturedListingResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Purchase a featured listing",
)
async def create_featured_listing(
    payload: FeaturedListingCreate,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    profile, payment = await _get_payment_service().create_featured_listing(
        db, current_user.id, payload.duration, payload.payment_method
    )
    return {
        "message": "Featured listing created successfully",
        "featured": {"is_featured": profile.is_featured, "featured_until": profile.featured_until},
        "payment": payment,
    }


# ──────────────────────────────────────────────────────────────────────────────
# GET /history — Caller's payments, newest first
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/history", response_model=PaymentHistoryResponse, summary="Payment history")
async def payment_history(
    page: int = Query(1, ge=1),
    limit: int = Query(10, ge=1, le=100),
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    result = await _get_payment_service().payment_history(db, current_user.id, page=page, limit=limit)
    return {
        "payments": [PaymentOut.from_payment(p) for p in result["payments"]],
        "pagination": result["pagination"],
    }


# ──────────────────────────────────────────────────────────────────────────────
# GET /subscription-plans — Public plan catalogue
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/subscription-plans", response_model=list[PlanOut], summary="Subscription plans")
async def subscription_plans() -> list[dict]:
    return PaymentService.subscription_plans()
