"""
Companion Marketplace — Domain exceptions.

Services raise these; ``app.main`` maps every ``MarketplaceError`` onto a
JSON response carrying ``message`` (plus any ``extra`` payload) and the
exception's HTTP status code.
"""

from __future__ import annotations

from typing import Any

from fastapi import status


class MarketplaceError(Exception):
    """Base class for every error a handler reports to the caller."""

    status_code: int = status.HTTP_500_INTERNAL_SERVER_ERROR

    def __init__(self, message: str, **extra: Any) -> None:
        super().__init__(message)
        self.message = message
        self.extra = extra

    def to_dict(self) -> dict[str, Any]:
        return {"message": self.message, **self.extra}


class ValidationFailed(MarketplaceError):
    """Malformed or missing input that passed schema validation."""

    status_code = status.HTTP_400_BAD_REQUEST


class Unauthorized(MarketplaceError):
    status_code = status.HTTP_401_UNAUTHORIZED


class Forbidden(MarketplaceError):
    """Role mismatch for the requested operation."""

    status_code = status.HTTP_403_FORBIDDEN


class NotFound(MarketplaceError):
    """Referenced entity is absent or not owned by the caller."""

    status_code = status.HTTP_404_NOT_FOUND


class Conflict(MarketplaceError):
    """Duplicate resource (favorite, conversation, subscription, version)."""

    status_code = status.HTTP_400_BAD_REQUEST


class PaymentFailed(MarketplaceError):
    """The payment gateway declined the charge."""

    status_code = status.HTTP_400_BAD_REQUEST

    def __init__(self, gateway_message: str) -> None:
        super().__init__("Payment processing failed", error=gateway_message)
        self.gateway_message = gateway_message
