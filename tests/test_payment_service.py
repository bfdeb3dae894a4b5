"""Unit tests for PaymentService and the mock payment gateway."""
import random

import pytest
from sqlalchemy import func, select

from app.exceptions import Conflict, NotFound, PaymentFailed, ValidationFailed
from app.models.payment import Payment, Subscription
from app.services.payment_gateway import MockPaymentGateway
from app.services.payment_service import PLAN_DETAILS, PaymentService


@pytest.fixture
def service():
    return PaymentService(gateway=MockPaymentGateway(success_rate=1.0))


@pytest.fixture
def declining_service():
    return PaymentService(gateway=MockPaymentGateway(success_rate=0.0))


async def _count(db, model):
    return (await db.execute(select(func.count()).select_from(model))).scalar_one()


class TestMockGateway:

    @pytest.mark.asyncio
    async def test_approved_charge_has_receipt(self):
        gateway = MockPaymentGateway(success_rate=1.0, receipt_base_url="https://receipts.test/")
        receipt = await gateway.charge(29.99, "AUD", "credit_card", "Subscription to basic plan")

        assert receipt.transaction_id.startswith("txn_")
        assert receipt.receipt_url.startswith("https://receipts.test/receipt-")
        assert receipt.receipt_url.endswith(".pdf")

    @pytest.mark.asyncio
    async def test_declined_charge(self):
        gateway = MockPaymentGateway(success_rate=0.0)
        with pytest.raises(PaymentFailed) as exc:
            await gateway.charge(29.99, "AUD", "credit_card", "Subscription to basic plan")
        assert exc.value.to_dict()["message"] == "Payment processing failed"
        assert "error" in exc.value.to_dict()

    @pytest.mark.asyncio
    async def test_seeded_rng_is_deterministic(self):
        roll = random.Random(7).random()

        approving = MockPaymentGateway(success_rate=roll + 0.001, rng=random.Random(7))
        declining = MockPaymentGateway(success_rate=roll, rng=random.Random(7))

        assert (await approving.charge(10.0, "AUD", "paypal", "Test")).transaction_id
        with pytest.raises(PaymentFailed):
            await declining.charge(10.0, "AUD", "paypal", "Test")


class TestSubscriptions:

    @pytest.mark.asyncio
    async def test_paid_plan_records_payment_first(self, service, db, make_user):
        user = await make_user()

        subscription, payment = await service.create_subscription(
            db, user.id, "basic", payment_method="credit_card"
        )

        assert payment.status == "completed"
        assert payment.amount == PLAN_DETAILS["basic"]["price"]
        assert payment.payment_type == "subscription"
        assert payment.metadata_["plan"] == "basic"
        assert subscription.last_payment_id == payment.id
        assert subscription.last_payment is payment
        assert subscription.features == PLAN_DETAILS["basic"]["features"]
        assert subscription.next_billing_date is None
        assert user.subscription_status["plan"] == "basic"
        assert user.subscription_status["is_active"] is True

    @pytest.mark.asyncio
    async def test_free_plan_needs_no_payment(self, service, db, make_user):
        user = await make_user()

        subscription, payment = await service.create_subscription(db, user.id, "free")

        assert payment is None
        assert subscription.payment_method is None
        assert await _count(db, Payment) == 0

    @pytest.mark.asyncio
    async def test_auto_renew_sets_next_billing(self, service, db, make_user):
        user = await make_user()
        subscription, _ = await service.create_subscription(
            db, user.id, "basic", payment_method="paypal", auto_renew=True
        )
        assert subscription.next_billing_date == subscription.end_date

    @pytest.mark.asyncio
    async def test_one_active_subscription(self, service, db, make_user):
        user = await make_user()
        await service.create_subscription(db, user.id, "basic", payment_method="credit_card")

        with pytest.raises(Conflict) as exc:
            await service.create_subscription(db, user.id, "vip", payment_method="credit_card")

        assert exc.value.message == "User already has an active subscription"
        assert await _count(db, Payment) == 1

    @pytest.mark.asyncio
    async def test_paid_plan_requires_method(self, service, db, make_user):
        user = await make_user()
        with pytest.raises(ValidationFailed):
            await service.create_subscription(db, user.id, "premium")

    @pytest.mark.asyncio
    async def test_declined_charge_persists_nothing(self, declining_service, db, make_user):
        user = await make_user()

        with pytest.raises(PaymentFailed):
            await declining_service.create_subscription(db, user.id, "basic", payment_method="credit_card")

        assert await _count(db, Payment) == 0
        assert await _count(db, Subscription) == 0
        assert user.subscription_status is None

    @pytest.mark.asyncio
    async def test_premium_features_companion(self, service, db, make_companion):
        companion = await make_companion()

        subscription, _ = await service.create_subscription(
            db, companion.user_id, "premium", payment_method="debit_card"
        )

        assert companion.subscription_level == "premium"
        assert companion.is_featured is True
        assert companion.featured_until == subscription.end_date

    @pytest.mark.asyncio
    async def test_cancel(self, service, db, make_user):
        user = await make_user()
        await service.create_subscription(db, user.id, "basic", payment_method="credit_card")

        canceled = await service.cancel_subscription(db, user.id)

        assert canceled.status == "canceled"
        assert canceled.auto_renew is False
        assert canceled.canceled_at is not None
        assert await service.current_subscription(db, user.id) is None
        with pytest.raises(NotFound) as exc:
            await service.cancel_subscription(db, user.id)
        assert exc.value.message == "No active subscription found"


class TestFeaturedListings:

    @pytest.mark.asyncio
    async def test_companion_purchase(self, service, db, make_companion):
        companion = await make_companion()

        profile, payment = await service.create_featured_listing(
            db, companion.user_id, "7days", "credit_card"
        )

        assert profile.is_featured is True
        assert profile.featured_until is not None
        assert payment.amount == 19.99
        assert payment.payment_type == "featured_listing"

    @pytest.mark.asyncio
    async def test_clients_cannot_purchase(self, service, db, make_user):
        user = await make_user(role="client")
        with pytest.raises(ValidationFailed) as exc:
            await service.create_featured_listing(db, user.id, "7days", "credit_card")
        assert exc.value.message == "Only companions can purchase featured listings"


class TestReporting:

    @pytest.mark.asyncio
    async def test_history_is_paginated(self, service, db, make_companion):
        companion = await make_companion()
        await service.create_subscription(db, companion.user_id, "basic", payment_method="credit_card")
        await service.create_featured_listing(db, companion.user_id, "14days", "paypal")
        await service.create_featured_listing(db, companion.user_id, "30days", "paypal")

        first = await service.payment_history(db, companion.user_id, page=1, limit=2)

        assert [p.amount for p in first["payments"]] == [59.99, 34.99]
        assert first["pagination"]["total_count"] == 3
        assert first["pagination"]["total_pages"] == 2

    def test_plan_catalogue(self):
        plans = PaymentService.subscription_plans()

        assert [p["id"] for p in plans] == ["free", "basic", "premium", "vip"]
        assert all(p["currency"] == "AUD" for p in plans)
        assert {p["id"]: p["price"] for p in plans} == {
            "free": 0.0,
            "basic": 29.99,
            "premium": 59.99,
            "vip": 99.99,
        }
