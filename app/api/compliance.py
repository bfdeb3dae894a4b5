"""
Companion Marketplace — Compliance API

Public legal documents, user acceptance and age verification, and the
admin endpoints for publishing documents and auditing agreements.
"""

from __future__ import annotations

import structlog
from fastapi import APIRouter, Depends, Query, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from app.api.deps import get_current_user, require_roles
from app.database import get_db
from app.models.compliance import PrivacyPolicy, TermsOfService
from app.models.user import User
from app.schemas.compliance import (
    AgeVerificationRequest,
    AgeVerificationResponse,
    AgreementAccept,
    AgreementPage,
    AgreementResponse,
    AgreementStatusResponse,
    LegalDocumentCreate,
    LegalDocumentOut,
    PolicyCreatedResponse,
    TermsCreatedResponse,
)
from app.services.compliance_service import ComplianceService

logger = structlog.get_logger("marketplace.api.compliance")

router = APIRouter()

require_admin = require_roles("admin")

# ── Service singletons ────────────────────────────────────────────────────────

_compliance_service: ComplianceService | None = None


def _get_compliance_service() -> ComplianceService:
    global _compliance_service
    if _compliance_service is None:
        _compliance_service = ComplianceService()
    return _compliance_service


def _client_ip(request: Request, supplied: str | None) -> str | None:
    if supplied:
        return supplied
    return request.client.host if request.client else None


# ──────────────────────────────────────────────────────────────────────────────
# Public documents
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/terms", response_model=LegalDocumentOut, summary="Current terms of service")
async def current_terms(db: AsyncSession = Depends(get_db)) -> TermsOfService:
    return await _get_compliance_service().current_terms(db)


@router.get("/privacy", response_model=LegalDocumentOut, summary="Current privacy policy")
async def current_privacy_policy(db: AsyncSession = Depends(get_db)) -> PrivacyPolicy:
    return await _get_compliance_service().current_privacy_policy(db)


# ──────────────────────────────────────────────────────────────────────────────
# Caller's agreement
# ──────────────────────────────────────────────────────────────────────────────

@router.post("/accept", response_model=AgreementResponse, summary="Accept terms and privacy policy")
async def accept(
    payload: AgreementAccept,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    agreement = await _get_compliance_service().accept(
        db,
        current_user.id,
        payload.terms_version,
        payload.policy_version,
        ip_address=_client_ip(request, payload.ip_address),
    )
    return {
        "message": "Terms of service and privacy policy accepted successfully",
        "agreement": agreement,
    }


@router.post("/verify-age", response_model=AgeVerificationResponse, summary="Verify age")
async def verify_age(
    payload: AgeVerificationRequest,
    request: Request,
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    verification = await _get_compliance_service().verify_age(
        db, current_user.id, payload.method, ip_address=_client_ip(request, payload.ip_address)
    )
    return {"message": "Age verification completed successfully", "age_verification": verification}


@router.get("/status", response_model=AgreementStatusResponse, summary="Agreement status")
async def agreement_status(
    current_user: User = Depends(get_current_user),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await _get_compliance_service().agreement_status(db, current_user.id)


# ──────────────────────────────────────────────────────────────────────────────
# Admin: publishing
# ──────────────────────────────────────────────────────────────────────────────

@router.post(
    "/terms",
    response_model=TermsCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Publish a terms of service version",
)
async def create_terms(
    payload: LegalDocumentCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    terms = await _get_compliance_service().create_terms(
        db, payload.version, payload.content, payload.is_active
    )
    return {"message": "Terms of service created successfully", "terms": terms}


@router.post(
    "/privacy",
    response_model=PolicyCreatedResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Publish a privacy policy version",
)
async def create_privacy_policy(
    payload: LegalDocumentCreate,
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    policy = await _get_compliance_service().create_privacy_policy(
        db, payload.version, payload.content, payload.is_active
    )
    return {"message": "Privacy policy created successfully", "policy": policy}


# ──────────────────────────────────────────────────────────────────────────────
# Admin: auditing
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/terms/all", response_model=list[LegalDocumentOut], summary="All terms versions")
async def list_terms(
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[TermsOfService]:
    return await _get_compliance_service().list_terms(db)


@router.get("/privacy/all", response_model=list[LegalDocumentOut], summary="All privacy policy versions")
async def list_privacy_policies(
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> list[PrivacyPolicy]:
    return await _get_compliance_service().list_privacy_policies(db)


@router.get("/agreements", response_model=AgreementPage, summary="User agreements")
async def list_agreements(
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    current_user: User = Depends(require_admin),
    db: AsyncSession = Depends(get_db),
) -> dict:
    return await _get_compliance_service().list_agreements(db, page=page, limit=limit)
