"""
Companion Marketplace — Subscriptions, featured listings and payment history.

Paid operations charge through a ``PaymentGateway`` first and persist
nothing when the charge is declined.  A completed ``Payment`` row is written
before the subscription or featured window it pays for.
"""

from __future__ import annotations

import uuid
from datetime import timedelta
from typing import Any

import structlog
from sqlalchemy import func, select
from sqlalchemy.ext.asyncio import AsyncSession

from app.config import get_settings
from app.database import utcnow
from app.exceptions import Conflict, NotFound, ValidationFailed
from app.models.payment import Payment, Subscription
from app.models.profile import CompanionProfile
from app.models.user import User
from app.services.payment_gateway import MockPaymentGateway, PaymentGateway
from app.utils.pagination import build_pagination, offset_for

logger = structlog.get_logger("marketplace.payment_service")


# ── Plan & pricing tables ───────────────────────────────────────────────

UNLIMITED = -1

PLAN_DETAILS: dict[str, dict[str, Any]] = {
    "free": {
        "price": 0.0,
        "features": {
            "featured_profile": False,
            "priority_listing": False,
            "enhanced_visibility": False,
            "message_limit": 20,
            "media_limit": 5,
            "verification_included": False,
            "custom_badge": False,
        },
    },
    "basic": {
        "price": 29.99,
        "features": {
            "featured_profile": False,
            "priority_listing": False,
            "enhanced_visibility": True,
            "message_limit": 100,
            "media_limit": 20,
            "verification_included": False,
            "custom_badge": False,
        },
    },
    "premium": {
        "price": 59.99,
        "features": {
            "featured_profile": True,
            "priority_listing": True,
            "enhanced_visibility": True,
            "message_limit": 500,
            "media_limit": 50,
            "verification_included": True,
            "custom_badge": False,
        },
    },
    "vip": {
        "price": 99.99,
        "features": {
            "featured_profile": True,
            "priority_listing": True,
            "enhanced_visibility": True,
            "message_limit": UNLIMITED,
            "media_limit": UNLIMITED,
            "verification_included": True,
            "custom_badge": True,
        },
    },
}

# Plans whose companion profile is featured for the whole subscription term.
FEATURING_PLANS = ("premium", "vip")

FEATURED_DURATIONS: dict[str, dict[str, Any]] = {
    "7days": {"days": 7, "price": 19.99},
    "14days": {"days": 14, "price": 34.99},
    "30days": {"days": 30, "price": 59.99},
}

PLAN_CATALOGUE: list[dict[str, Any]] = [
    {
        "id": "free",
        "name": "Free",
        "interval": "month",
        "features": ["Basic profile", "Limited messages", "Standard search visibility"],
    },
    {
        "id": "basic",
        "name": "Basic",
        "interval": "month",
        "features": [
            "Enhanced profile",
            "Unlimited messages",
            "Improved search visibility",
            "Basic analytics",
        ],
    },
    {
        "id": "premium",
        "name": "Premium",
        "interval": "month",
        "features": [
            "Premium profile",
            "Unlimited messages",
            "Priority search placement",
            "Featured in rotation",
            "Advanced analytics",
            "Verification badge",
        ],
    },
    {
        "id": "vip",
        "name": "VIP",
        "interval": "month",
        "features": [
            "VIP profile",
            "Unlimited messages",
            "Top search placement",
            "Permanent featured status",
            "Premium verification badge",
            "Comprehensive analytics",
            "Priority support",
        ],
    },
]


class PaymentService:
    """Billing operations.  The gateway is injectable for tests."""

    def __init__(self, gateway: PaymentGateway | None = None) -> None:
        self.gateway = gateway or MockPaymentGateway()

    async def _active_subscription(self, db: AsyncSession, user_id: uuid.UUID) -> Subscription | None:
        stmt = (
            select(Subscription)
            .where(Subscription.user_id == user_id, Subscription.status == "active")
            .order_by(Subscription.created_at.desc())
            .limit(1)
        )
        return (await db.execute(stmt)).scalar_one_or_none()

    async def _companion_profile(self, db: AsyncSession, user_id: uuid.UUID) -> CompanionProfile | None:
        stmt = select(CompanionProfile).where(CompanionProfile.user_id == user_id)
        return (await db.execute(stmt)).scalar_one_or_none()

    async def _charge_and_record(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        *,
        amount: float,
        method: str,
        payment_type: str,
        description: str,
        metadata: dict[str, str],
    ) -> Payment:
        currency = get_settings().PAYMENT_CURRENCY
        receipt = await self.gateway.charge(amount, currency, method, description)

        payment = Payment(
            user_id=user_id,
            amount=amount,
            currency=currency,
            payment_method=method,
            payment_type=payment_type,
            status="completed",
            transaction_id=receipt.transaction_id,
            receipt_url=receipt.receipt_url,
            metadata_=metadata,
        )
        db.add(payment)
        await db.flush()
        return payment

    # ══════════════════════════════════════════════════════════════════════
    # Subscriptions
    # ══════════════════════════════════════════════════════════════════════

    async def create_subscription(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        plan: str,
        payment_method: str | None = None,
        auto_renew: bool = False,
    ) -> tuple[Subscription, Payment | None]:
        log = logger.bind(user_id=str(user_id), plan=plan)
        log.info("create_subscription_start")

        if await self._active_subscription(db, user_id) is not None:
            log.warning("create_subscription_already_active")
            raise Conflict("User already has an active subscription")

        details = PLAN_DETAILS.get(plan)
        if details is None:
            raise ValidationFailed("Invalid subscription plan")

        term_days = get_settings().SUBSCRIPTION_TERM_DAYS
        now = utcnow()
        end_date = now + timedelta(days=term_days)

        payment = None
        if plan != "free":
            if not payment_method:
                raise ValidationFailed("Payment method is required for paid plans")
            payment = await self._charge_and_record(
                db,
                user_id,
                amount=details["price"],
                method=payment_method,
                payment_type="subscription",
                description=f"Subscription to {plan} plan",
                metadata={"plan": plan, "duration": f"{term_days} days"},
            )

        subscription = Subscription(
            user_id=user_id,
            plan=plan,
            status="active",
            features=dict(details["features"]),
            start_date=now,
            end_date=end_date,
            auto_renew=auto_renew,
            payment_method=payment_method if plan != "free" else None,
            last_payment_id=payment.id if payment else None,
            next_billing_date=end_date if auto_renew else None,
        )
        subscription.last_payment = payment
        db.add(subscription)

        user = await db.get(User, user_id)
        if user is not None:
            user.subscription_status = {
                "plan": plan,
                "is_active": True,
                "expires_at": end_date.isoformat(),
            }

        profile = await self._companion_profile(db, user_id)
        if profile is not None:
            profile.subscription_level = plan
            profile.subscription_expires_at = end_date
            if plan in FEATURING_PLANS:
                profile.is_featured = True
                profile.featured_until = end_date

        await db.flush()
        log.info(
            "create_subscription_complete",
            subscription_id=str(subscription.id),
            payment_id=str(payment.id) if payment else None,
        )
        return subscription, payment

    async def current_subscription(self, db: AsyncSession, user_id: uuid.UUID) -> Subscription | None:
        return await self._active_subscription(db, user_id)

    async def cancel_subscription(self, db: AsyncSession, user_id: uuid.UUID) -> Subscription:
        subscription = await self._active_subscription(db, user_id)
        if subscription is None:
            raise NotFound("No active subscription found")

        subscription.status = "canceled"
        subscription.auto_renew = False
        subscription.canceled_at = utcnow()
        await db.flush()

        logger.info("cancel_subscription_complete", user_id=str(user_id), subscription_id=str(subscription.id))
        return subscription

    # ══════════════════════════════════════════════════════════════════════
    # Featured listings
    # ══════════════════════════════════════════════════════════════════════

    async def create_featured_listing(
        self, db: AsyncSession, user_id: uuid.UUID, duration: str, payment_method: str
    ) -> tuple[CompanionProfile, Payment]:
        log = logger.bind(user_id=str(user_id), duration=duration)
        log.info("create_featured_listing_start")

        profile = await self._companion_profile(db, user_id)
        if profile is None:
            raise ValidationFailed("Only companions can purchase featured listings")

        details = FEATURED_DURATIONS.get(duration)
        if details is None:
            raise ValidationFailed("Invalid duration")

        payment = await self._charge_and_record(
            db,
            user_id,
            amount=details["price"],
            method=payment_method,
            payment_type="featured_listing",
            description=f"Featured listing for {details['days']} days",
            metadata={"duration": duration, "days": str(details["days"])},
        )

        profile.is_featured = True
        profile.featured_until = utcnow() + timedelta(days=details["days"])
        await db.flush()

        log.info("create_featured_listing_complete", featured_until=profile.featured_until.isoformat())
        return profile, payment

    # ══════════════════════════════════════════════════════════════════════
    # Reporting
    # ══════════════════════════════════════════════════════════════════════

    async def payment_history(
        self, db: AsyncSession, user_id: uuid.UUID, page: int = 1, limit: int = 10
    ) -> dict[str, Any]:
        stmt = (
            select(Payment)
            .where(Payment.user_id == user_id)
            .order_by(Payment.created_at.desc())
            .offset(offset_for(page, limit))
            .limit(limit)
        )
        payments = list((await db.execute(stmt)).scalars().all())
        total_count = (
            await db.execute(
                select(func.count()).select_from(Payment).where(Payment.user_id == user_id)
            )
        ).scalar_one()
        return {"payments": payments, "pagination": build_pagination(page, limit, total_count)}

    @staticmethod
    def subscription_plans() -> list[dict[str, Any]]:
        currency = get_settings().PAYMENT_CURRENCY
        return [
            {**plan, "price": PLAN_DETAILS[plan["id"]]["price"], "currency": currency}
            for plan in PLAN_CATALOGUE
        ]
