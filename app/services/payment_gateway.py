"""
Companion Marketplace — Payment gateway seam.

``PaymentGateway`` is the interface the payment service charges through.  The
default ``MockPaymentGateway`` approves a configurable fraction of charges and
fabricates a transaction id and receipt URL; no money moves.
"""

from __future__ import annotations

import abc
import random
import secrets
import time
from dataclasses import dataclass

import structlog

from app.config import get_settings
from app.exceptions import PaymentFailed

logger = structlog.get_logger("marketplace.payment_gateway")


@dataclass(frozen=True)
class GatewayReceipt:
    transaction_id: str
    receipt_url: str


class PaymentGateway(abc.ABC):
    """Charges a payment method; raises ``PaymentFailed`` on decline."""

    @abc.abstractmethod
    async def charge(
        self, amount: float, currency: str, method: str, description: str
    ) -> GatewayReceipt:
        ...


class MockPaymentGateway(PaymentGateway):
    """Approves each charge with probability ``success_rate``."""

    def __init__(
        self,
        success_rate: float | None = None,
        receipt_base_url: str | None = None,
        rng: random.Random | None = None,
    ) -> None:
        settings = get_settings()
        self.success_rate = (
            settings.PAYMENT_MOCK_SUCCESS_RATE if success_rate is None else success_rate
        )
        self.receipt_base_url = (receipt_base_url or settings.PAYMENT_RECEIPT_BASE_URL).rstrip("/")
        self._rng = rng or random.Random()

    async def charge(
        self, amount: float, currency: str, method: str, description: str
    ) -> GatewayReceipt:
        log = logger.bind(amount=amount, currency=currency, method=method)

        if self._rng.random() >= self.success_rate:
            log.warning("gateway_charge_declined", description=description)
            raise PaymentFailed("Payment processing failed")

        receipt = GatewayReceipt(
            transaction_id=f"txn_{secrets.token_hex(6)}",
            receipt_url=f"{self.receipt_base_url}/receipt-{int(time.time() * 1000)}.pdf",
        )
        log.info("gateway_charge_approved", transaction_id=receipt.transaction_id)
        return receipt
