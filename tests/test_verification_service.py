"""Unit tests for VerificationService and the overall-status fold."""
import pytest
from sqlalchemy import select

from app.exceptions import NotFound, ValidationFailed
from app.models.verification import Verification, compute_overall_status
from app.services.verification_service import VerificationService


@pytest.fixture
def service():
    return VerificationService()


async def _record(db, user_id):
    stmt = select(Verification).where(Verification.user_id == user_id)
    return (await db.execute(stmt)).scalar_one()


async def _submit_all(service, db, user_id, images=("https://cdn/a.jpg",)):
    await service.submit_id(
        db, user_id, front_image="front.jpg", document_type="passport", document_number="N123"
    )
    await service.submit_selfie(db, user_id, image="selfie.jpg")
    await service.submit_comparison_media(db, user_id, images=list(images))


class TestComputeOverallStatus:

    @pytest.mark.parametrize(
        "statuses,expected",
        [
            ([], "unverified"),
            (["pending"], "unverified"),
            (["pending", "pending", "pending"], "unverified"),
            (["approved", "pending", "pending"], "partially_verified"),
            (["pending", "pending", "approved"], "partially_verified"),
            (["approved", "pending"], "partially_verified"),
            (["approved", "approved", "approved"], "fully_verified"),
            (["approved", "approved", "rejected"], "rejected"),
            (["rejected", "pending"], "rejected"),
        ],
    )
    def test_fold(self, statuses, expected):
        assert compute_overall_status(statuses) == expected

    def test_unsubmitted_channels_count_as_pending(self):
        record = Verification(comparison_media={"status": "approved"})
        assert record.channel_statuses() == ["pending", "pending", "approved"]
        assert record.refresh_overall_status() == "partially_verified"


class TestSubmission:

    @pytest.mark.asyncio
    async def test_submit_id_is_pending_and_mirrored(self, service, db, make_user):
        user = await make_user(role="companion")

        entry = await service.submit_id(
            db, user.id, front_image="front.jpg", document_type="passport", document_number="N123"
        )

        assert entry["status"] == "pending"
        assert entry["submitted_at"] is not None
        assert user.verification_status["id_verification"]["status"] == "pending"
        record = await _record(db, user.id)
        assert record.overall_status == "unverified"

    @pytest.mark.asyncio
    async def test_resubmission_resets_rejected_channel(self, service, db, make_user):
        user = await make_user(role="companion")
        await service.submit_selfie(db, user.id, image="one.jpg")
        await service.reject(db, "selfie_verification", user.id, "Blurry")

        entry = await service.submit_selfie(db, user.id, image="two.jpg")

        assert entry["status"] == "pending"
        assert entry["rejection_reason"] is None
        assert (await _record(db, user.id)).overall_status == "unverified"


class TestReview:

    @pytest.mark.asyncio
    async def test_partial_approval(self, service, db, make_user):
        admin = await make_user(role="admin")
        user = await make_user(role="companion")
        await service.submit_id(
            db, user.id, front_image="front.jpg", document_type="passport", document_number="N123"
        )
        await service.submit_selfie(db, user.id, image="selfie.jpg")

        entry = await service.approve(db, "id_verification", user.id, admin.id)

        assert entry["status"] == "approved"
        assert entry["verified_by"] == str(admin.id)
        assert user.verification_status["id_verification"]["status"] == "verified"
        assert (await _record(db, user.id)).overall_status == "partially_verified"
        assert user.is_verified is False

    @pytest.mark.asyncio
    async def test_reject_requires_reason(self, service, db, make_user):
        user = await make_user(role="companion")
        await service.submit_selfie(db, user.id, image="selfie.jpg")

        with pytest.raises(ValidationFailed) as exc:
            await service.reject(db, "selfie_verification", user.id, "   ")
        assert exc.value.message == "Rejection reason is required"

    @pytest.mark.asyncio
    async def test_reject_marks_record_rejected(self, service, db, make_user):
        admin = await make_user(role="admin")
        user = await make_user(role="companion")
        await _submit_all(service, db, user.id)
        await service.approve(db, "id_verification", user.id, admin.id)

        entry = await service.reject(db, "selfie_verification", user.id, "Face not visible")

        assert entry["rejection_reason"] == "Face not visible"
        assert user.verification_status["selfie_verification"]["status"] == "rejected"
        assert (await _record(db, user.id)).overall_status == "rejected"

    @pytest.mark.asyncio
    async def test_review_of_unsubmitted_channel(self, service, db, make_user):
        admin = await make_user(role="admin")
        user = await make_user(role="companion")
        await service.submit_id(
            db, user.id, front_image="front.jpg", document_type="passport", document_number="N123"
        )

        with pytest.raises(NotFound) as exc:
            await service.approve(db, "selfie_verification", user.id, admin.id)
        assert exc.value.message == "Selfie verification not found"

    @pytest.mark.asyncio
    async def test_full_approval_verifies_account_and_media(self, service, db, make_user, make_companion):
        admin = await make_user(role="admin")
        companion = await make_companion(
            photos=[
                {"id": "p1", "url": "https://cdn/a.jpg", "is_main": True, "is_verified": False},
                {"id": "p2", "url": "https://cdn/b.jpg", "is_main": False, "is_verified": False},
            ],
            videos=[{"id": "v1", "url": "https://cdn/v.mp4", "thumbnail": "", "is_verified": False}],
        )
        user_id = companion.user_id
        await service.submit_id(
            db, user_id, front_image="front.jpg", document_type="passport", document_number="N123"
        )
        await service.submit_selfie(db, user_id, image="selfie.jpg")
        await service.submit_comparison_media(
            db, user_id, images=["https://cdn/a.jpg"], videos=["https://cdn/v.mp4"]
        )

        await service.approve(db, "id_verification", user_id, admin.id)
        await service.approve(db, "selfie_verification", user_id, admin.id)
        await service.approve(db, "comparison_media", user_id, admin.id)

        assert (await _record(db, user_id)).overall_status == "fully_verified"
        assert companion.user.is_verified is True
        assert companion.is_verified is True
        verified = {p["id"]: p["is_verified"] for p in companion.photos}
        assert verified == {"p1": True, "p2": False}
        assert companion.videos[0]["is_verified"] is True

    @pytest.mark.asyncio
    async def test_comparison_media_alone_does_not_verify_account(
        self, service, db, make_user, make_companion
    ):
        admin = await make_user(role="admin")
        companion = await make_companion(
            photos=[{"id": "p1", "url": "https://cdn/a.jpg", "is_main": True, "is_verified": False}],
        )
        user_id = companion.user_id
        await service.submit_comparison_media(db, user_id, images=["https://cdn/a.jpg"])

        await service.approve(db, "comparison_media", user_id, admin.id)

        assert (await _record(db, user_id)).overall_status == "partially_verified"
        assert companion.user.is_verified is False
        assert companion.photos[0]["is_verified"] is False


class TestReporting:

    @pytest.mark.asyncio
    async def test_status_without_record(self, service, db, make_user):
        user = await make_user()
        status = await service.get_status(db, user.id)
        assert status == {
            "overall_status": "unverified",
            "id_verification": None,
            "selfie_verification": None,
            "comparison_media": None,
        }

    @pytest.mark.asyncio
    async def test_status_summaries(self, service, db, make_user):
        user = await make_user(role="companion")
        await service.submit_selfie(db, user.id, image="selfie.jpg")

        status = await service.get_status(db, user.id)

        assert status["selfie_verification"]["status"] == "pending"
        assert "image" not in status["selfie_verification"]
        assert status["id_verification"] is None

    @pytest.mark.asyncio
    async def test_pending_queue(self, service, db, make_user):
        admin = await make_user(role="admin")
        waiting = await make_user(role="companion")
        reviewed = await make_user(role="companion")
        await service.submit_selfie(db, waiting.id, image="selfie.jpg")
        await service.submit_selfie(db, reviewed.id, image="selfie.jpg")
        await service.approve(db, "selfie_verification", reviewed.id, admin.id)

        pending = await service.list_pending(db)

        assert [v.user_id for v in pending] == [waiting.id]
        assert pending[0].user.email == waiting.email
