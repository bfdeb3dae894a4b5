"""
Companion Marketplace — Legal documents and the user agreement ledger.

Terms of Service and Privacy Policy are versioned documents with at most one
active version per kind.  Each user has at most one ``UserAgreement`` row that
records the versions they accepted and their age verification.
"""

from __future__ import annotations

import uuid
from typing import Any, Type

import structlog
from sqlalchemy import func, select, update
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import utcnow
from app.exceptions import Conflict, NotFound, ValidationFailed
from app.models.compliance import PrivacyPolicy, TermsOfService, UserAgreement
from app.models.user import User
from app.utils.pagination import build_pagination, offset_for

logger = structlog.get_logger("marketplace.compliance_service")

LegalDocument = TermsOfService | PrivacyPolicy

_DOCUMENT_LABELS = {
    TermsOfService: "Terms of service",
    PrivacyPolicy: "Privacy policy",
}


class ComplianceService:
    """Legal document publishing and per-user acceptance tracking."""

    # ══════════════════════════════════════════════════════════════════════
    # Documents
    # ══════════════════════════════════════════════════════════════════════

    async def _current(self, db: AsyncSession, model: Type[LegalDocument]) -> LegalDocument:
        stmt = (
            select(model)
            .where(model.is_active.is_(True))
            .order_by(model.published_at.desc())
            .limit(1)
        )
        document = (await db.execute(stmt)).scalar_one_or_none()
        if document is None:
            raise NotFound(f"{_DOCUMENT_LABELS[model]} not found")
        return document

    async def current_terms(self, db: AsyncSession) -> TermsOfService:
        return await self._current(db, TermsOfService)

    async def current_privacy_policy(self, db: AsyncSession) -> PrivacyPolicy:
        return await self._current(db, PrivacyPolicy)

    async def _create(
        self,
        db: AsyncSession,
        model: Type[LegalDocument],
        version: str,
        content: str,
        is_active: bool,
    ) -> LegalDocument:
        label = _DOCUMENT_LABELS[model]
        log = logger.bind(document=model.__tablename__, version=version, is_active=is_active)
        log.info("create_legal_document_start")

        existing = (await db.execute(select(model).where(model.version == version))).scalar_one_or_none()
        if existing is not None:
            raise Conflict(f"{label} version already exists")

        if is_active:
            await db.execute(update(model).values(is_active=False))

        document = model(version=version, content=content, published_at=utcnow(), is_active=is_active)
        db.add(document)
        await db.flush()

        log.info("create_legal_document_complete", document_id=str(document.id))
        return document

    async def create_terms(
        self, db: AsyncSession, version: str, content: str, is_active: bool = False
    ) -> TermsOfService:
        return await self._create(db, TermsOfService, version, content, is_active)

    async def create_privacy_policy(
        self, db: AsyncSession, version: str, content: str, is_active: bool = False
    ) -> PrivacyPolicy:
        return await self._create(db, PrivacyPolicy, version, content, is_active)

    async def _list(self, db: AsyncSession, model: Type[LegalDocument]) -> list[LegalDocument]:
        stmt = select(model).order_by(model.published_at.desc())
        return list((await db.execute(stmt)).scalars().all())

    async def list_terms(self, db: AsyncSession) -> list[TermsOfService]:
        return await self._list(db, TermsOfService)

    async def list_privacy_policies(self, db: AsyncSession) -> list[PrivacyPolicy]:
        return await self._list(db, PrivacyPolicy)

    # ══════════════════════════════════════════════════════════════════════
    # Agreements
    # ══════════════════════════════════════════════════════════════════════

    async def _agreement(self, db: AsyncSession, user_id: uuid.UUID) -> UserAgreement | None:
        stmt = select(UserAgreement).where(UserAgreement.user_id == user_id)
        return (await db.execute(stmt)).scalar_one_or_none()

    async def _active_version_exists(
        self, db: AsyncSession, model: Type[LegalDocument], version: str
    ) -> bool:
        stmt = select(model.id).where(model.version == version, model.is_active.is_(True))
        return (await db.execute(stmt)).first() is not None

    async def accept(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        terms_version: str,
        policy_version: str,
        ip_address: str | None = None,
    ) -> UserAgreement:
        """Record acceptance of the given (active) document versions."""
        log = logger.bind(user_id=str(user_id), terms_version=terms_version, policy_version=policy_version)
        log.info("accept_agreement_start")

        if not await self._active_version_exists(db, TermsOfService, terms_version):
            raise ValidationFailed("Invalid terms of service version")
        if not await self._active_version_exists(db, PrivacyPolicy, policy_version):
            raise ValidationFailed("Invalid privacy policy version")

        agreed_at = utcnow().isoformat()
        terms_entry = {"version": terms_version, "agreed_at": agreed_at, "ip_address": ip_address}
        policy_entry = {"version": policy_version, "agreed_at": agreed_at, "ip_address": ip_address}

        agreement = await self._agreement(db, user_id)
        if agreement is None:
            agreement = UserAgreement(
                user_id=user_id,
                terms_of_service=terms_entry,
                privacy_policy=policy_entry,
            )
            db.add(agreement)
        else:
            agreement.terms_of_service = terms_entry
            agreement.privacy_policy = policy_entry

        user = await db.get(User, user_id)
        if user is not None:
            user.agreement_status = {
                "terms_accepted": True,
                "privacy_accepted": True,
                "last_accepted_at": agreed_at,
            }
        await db.flush()

        log.info("accept_agreement_complete", agreement_id=str(agreement.id))
        return agreement

    async def verify_age(
        self,
        db: AsyncSession,
        user_id: uuid.UUID,
        method: str,
        ip_address: str | None = None,
    ) -> dict[str, Any]:
        agreement = await self._agreement(db, user_id)
        if agreement is None:
            raise ValidationFailed("User must accept terms of service and privacy policy first")

        verification = {
            "is_verified": True,
            "verified_at": utcnow().isoformat(),
            "method": method,
        }
        agreement.age_verification = verification

        user = await db.get(User, user_id)
        if user is not None:
            user.age_verification = dict(verification)
        await db.flush()

        logger.info("verify_age_complete", user_id=str(user_id), method=method, ip_address=ip_address)
        return verification

    async def agreement_status(self, db: AsyncSession, user_id: uuid.UUID) -> dict[str, Any]:
        agreement = await self._agreement(db, user_id)
        if agreement is None:
            return {"terms_accepted": False, "privacy_accepted": False, "age_verified": False}

        terms = agreement.terms_of_service or {}
        policy = agreement.privacy_policy or {}
        age = agreement.age_verification or {}
        return {
            "terms_accepted": True,
            "terms_version": terms.get("version"),
            "terms_agreed_at": terms.get("agreed_at"),
            "privacy_accepted": True,
            "privacy_version": policy.get("version"),
            "privacy_agreed_at": policy.get("agreed_at"),
            "age_verified": bool(age.get("is_verified")),
            "age_verification_method": age.get("method"),
            "age_verified_at": age.get("verified_at"),
        }

    async def list_agreements(
        self, db: AsyncSession, page: int = 1, limit: int = 20
    ) -> dict[str, Any]:
        stmt = (
            select(UserAgreement)
            .order_by(UserAgreement.updated_at.desc())
            .offset(offset_for(page, limit))
            .limit(limit)
        )
        agreements = list((await db.execute(stmt)).scalars().all())
        total_count = (await db.execute(select(func.count()).select_from(UserAgreement))).scalar_one()
        return {"agreements": agreements, "pagination": build_pagination(page, limit, total_count)}
