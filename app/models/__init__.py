"""
Companion Marketplace — ORM model registry.

Importing every model here ensures that Alembic (and any other tool that
inspects ``Base.metadata``) discovers all tables automatically.
"""

from app.models.user import User
from app.models.profile import ClientProfile, CompanionProfile
from app.models.verification import Verification
from app.models.messaging import Conversation, Message
from app.models.payment import Payment, Subscription
from app.models.compliance import PrivacyPolicy, TermsOfService, UserAgreement

__all__ = [
    "User",
    "ClientProfile",
    "CompanionProfile",
    "Verification",
    "Conversation",
    "Message",
    "Payment",
    "Subscription",
    "TermsOfService",
    "PrivacyPolicy",
    "UserAgreement",
]
