"""
Companion Marketplace — Main API Router

Aggregates all sub-routers under a single prefix so that ``app.main``
can mount the entire API surface with one ``include_router`` call.
"""

from fastapi import APIRouter

from app.api import clients, companions, compliance, messaging, payments, search, users, verification

router = APIRouter()

router.include_router(users.router, prefix="/users", tags=["Users"])
router.include_router(companions.router, prefix="/companions", tags=["Companion Profiles"])
router.include_router(clients.router, prefix="/clients", tags=["Client Profiles"])
router.include_router(verification.router, prefix="/verification", tags=["Verification"])
router.include_router(search.router, prefix="/search", tags=["Search"])
router.include_router(messaging.router, prefix="/messaging", tags=["Messaging"])
router.include_router(payments.router, prefix="/payments", tags=["Payments"])
router.include_router(compliance.router, prefix="/compliance", tags=["Compliance"])
