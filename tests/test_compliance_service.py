"""Unit tests for ComplianceService — legal documents, acceptance and age verification."""
import pytest
import pytest_asyncio
from sqlalchemy import func, select

from app.exceptions import Conflict, NotFound, ValidationFailed
from app.models.compliance import TermsOfService, UserAgreement
from app.services.compliance_service import ComplianceService


@pytest.fixture
def service():
    return ComplianceService()


@pytest_asyncio.fixture
async def published(service, db):
    terms = await service.create_terms(db, "1.0", "Terms v1", is_active=True)
    policy = await service.create_privacy_policy(db, "1.0", "Policy v1", is_active=True)
    return terms, policy


class TestDocuments:

    @pytest.mark.asyncio
    async def test_no_active_document(self, service, db):
        with pytest.raises(NotFound) as exc:
            await service.current_terms(db)
        assert exc.value.message == "Terms of service not found"
        with pytest.raises(NotFound) as exc:
            await service.current_privacy_policy(db)
        assert exc.value.message == "Privacy policy not found"

    @pytest.mark.asyncio
    async def test_activating_new_version_deactivates_others(self, service, db, published):
        old_terms, _ = published

        new_terms = await service.create_terms(db, "2.0", "Terms v2", is_active=True)

        assert old_terms.is_active is False
        assert (await service.current_terms(db)).id == new_terms.id
        active = (
            await db.execute(
                select(func.count()).select_from(TermsOfService).where(TermsOfService.is_active.is_(True))
            )
        ).scalar_one()
        assert active == 1

    @pytest.mark.asyncio
    async def test_inactive_draft_leaves_current(self, service, db, published):
        old_terms, _ = published

        await service.create_terms(db, "2.0-draft", "Draft", is_active=False)

        assert (await service.current_terms(db)).id == old_terms.id
        assert [t.version for t in await service.list_terms(db)] == ["2.0-draft", "1.0"]

    @pytest.mark.asyncio
    async def test_duplicate_version(self, service, db, published):
        with pytest.raises(Conflict) as exc:
            await service.create_privacy_policy(db, "1.0", "Again")
        assert exc.value.message == "Privacy policy version already exists"


class TestAgreements:

    @pytest.mark.asyncio
    async def test_accept_records_versions(self, service, db, make_user, published):
        user = await make_user()

        agreement = await service.accept(db, user.id, "1.0", "1.0", ip_address="10.0.0.1")

        assert agreement.terms_of_service["version"] == "1.0"
        assert agreement.privacy_policy["ip_address"] == "10.0.0.1"
        assert agreement.age_verification["is_verified"] is False
        assert user.agreement_status["terms_accepted"] is True
        assert user.agreement_status["privacy_accepted"] is True

    @pytest.mark.asyncio
    async def test_accept_requires_active_versions(self, service, db, make_user, published):
        user = await make_user()
        await service.create_terms(db, "2.0", "Terms v2", is_active=True)

        with pytest.raises(ValidationFailed) as exc:
            await service.accept(db, user.id, "1.0", "1.0")
        assert exc.value.message == "Invalid terms of service version"

        with pytest.raises(ValidationFailed) as exc:
            await service.accept(db, user.id, "2.0", "9.9")
        assert exc.value.message == "Invalid privacy policy version"

    @pytest.mark.asyncio
    async def test_reaccept_updates_single_row(self, service, db, make_user, published):
        user = await make_user()
        await service.accept(db, user.id, "1.0", "1.0")
        await service.create_terms(db, "1.1", "Terms v1.1", is_active=True)

        agreement = await service.accept(db, user.id, "1.1", "1.0")

        assert agreement.terms_of_service["version"] == "1.1"
        count = (await db.execute(select(func.count()).select_from(UserAgreement))).scalar_one()
        assert count == 1

    @pytest.mark.asyncio
    async def test_age_verification_requires_agreement(self, service, db, make_user, published):
        user = await make_user()
        with pytest.raises(ValidationFailed) as exc:
            await service.verify_age(db, user.id, "self_declaration")
        assert exc.value.message == "User must accept terms of service and privacy policy first"

    @pytest.mark.asyncio
    async def test_age_verification(self, service, db, make_user, published):
        user = await make_user()
        await service.accept(db, user.id, "1.0", "1.0")

        verification = await service.verify_age(db, user.id, "id_verification")

        assert verification["is_verified"] is True
        assert verification["method"] == "id_verification"
        assert user.age_verification["is_verified"] is True

    @pytest.mark.asyncio
    async def test_status_shapes(self, service, db, make_user, published):
        user = await make_user()
        assert await service.agreement_status(db, user.id) == {
            "terms_accepted": False,
            "privacy_accepted": False,
            "age_verified": False,
        }

        await service.accept(db, user.id, "1.0", "1.0")
        await service.verify_age(db, user.id, "self_declaration")
        status = await service.agreement_status(db, user.id)

        assert status["terms_accepted"] is True
        assert status["terms_version"] == "1.0"
        assert status["privacy_version"] == "1.0"
        assert status["age_verified"] is True
        assert status["age_verification_method"] == "self_declaration"

    @pytest.mark.asyncio
    async def test_list_agreements(self, service, db, make_user, published):
        for _ in range(3):
            user = await make_user()
            await service.accept(db, user.id, "1.0", "1.0")

        page = await service.list_agreements(db, page=2, limit=2)

        assert len(page["agreements"]) == 1
        assert page["pagination"]["total_count"] == 3
        assert page["pagination"]["has_prev_page"] is True
        assert page["agreements"][0].user.email
