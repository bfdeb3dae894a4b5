"""Unit tests for ProfileService — upserts, media galleries, favorites and recently viewed."""
import uuid

import pytest

from app.exceptions import Conflict, Forbidden, NotFound
from app.models.profile import RECENTLY_VIEWED_LIMIT
from app.services.profile_service import ProfileService


@pytest.fixture
def service():
    return ProfileService()


class TestClientProfileUpsert:

    @pytest.mark.asyncio
    async def test_create_defaults_display_name_to_first_name(self, service, db, make_user):
        user = await make_user(role="client", first_name="Alex")

        profile, created = await service.upsert_client_profile(db, user.id, {"age": 30})

        assert created is True
        assert profile.display_name == "Alex"
        assert profile.age == 30
        assert profile.favorites == []
        assert profile.recently_viewed == []

    @pytest.mark.asyncio
    async def test_second_call_updates_same_profile(self, service, db, make_user):
        user = await make_user(role="client")
        first, _ = await service.upsert_client_profile(db, user.id, {"display_name": "Al"})

        second, created = await service.upsert_client_profile(db, user.id, {"gender": "male"})

        assert created is False
        assert second.id == first.id
        assert second.display_name == "Al"
        assert second.gender == "male"

    @pytest.mark.asyncio
    async def test_empty_values_do_not_overwrite(self, service, db, make_user):
        user = await make_user(role="client")
        await service.upsert_client_profile(db, user.id, {"display_name": "Keep", "age": 41})

        profile, _ = await service.upsert_client_profile(db, user.id, {"display_name": "", "age": 0})

        assert profile.display_name == "Keep"
        assert profile.age == 41

    @pytest.mark.asyncio
    async def test_companion_cannot_create_client_profile(self, service, db, make_user):
        user = await make_user(role="companion")
        with pytest.raises(Forbidden) as exc:
            await service.upsert_client_profile(db, user.id, {})
        assert exc.value.message == "Only clients can create this type of profile"

    @pytest.mark.asyncio
    async def test_unknown_user(self, service, db):
        with pytest.raises(NotFound):
            await service.upsert_client_profile(db, uuid.uuid4(), {})


class TestCompanionProfile:

    @pytest.mark.asyncio
    async def test_create_and_merge(self, service, db, make_user):
        user = await make_user(role="companion", first_name="Mia")

        profile, created = await service.upsert_companion_profile(
            db, user.id, {"age": 25, "services": ["dinner"], "location": {"city": "Sydney", "state": "NSW"}}
        )
        assert created is True
        assert profile.display_name == "Mia"
        assert profile.services == ["dinner"]

        profile, created = await service.upsert_companion_profile(db, user.id, {"services": []})
        assert created is False
        assert profile.services == ["dinner"]

    @pytest.mark.asyncio
    async def test_client_cannot_create_companion_profile(self, service, db, make_user):
        user = await make_user(role="client")
        with pytest.raises(Forbidden):
            await service.upsert_companion_profile(db, user.id, {"age": 25})

    @pytest.mark.asyncio
    async def test_get_missing_profile(self, service, db, make_user):
        user = await make_user(role="companion")
        with pytest.raises(NotFound) as exc:
            await service.get_companion_profile(db, user.id)
        assert exc.value.message == "Profile not found"

    @pytest.mark.asyncio
    async def test_view_counts(self, service, db, make_companion):
        companion = await make_companion()

        await service.view_companion_profile(db, companion.id)
        viewed = await service.view_companion_profile(db, companion.id)

        assert viewed.profile_views == 2
        assert viewed.last_active is not None

    @pytest.mark.asyncio
    async def test_is_verified_reflects_account(self, service, db, make_companion):
        companion = await make_companion()
        assert companion.is_verified is False

        companion.user.is_verified = True
        assert companion.is_verified is True


class TestCompanionMedia:

    @pytest.mark.asyncio
    async def test_new_main_photo_clears_previous(self, service, db, make_companion):
        companion = await make_companion()
        first = await service.add_photo(db, companion.user_id, "https://cdn/a.jpg", is_main=True)
        second = await service.add_photo(db, companion.user_id, "https://cdn/b.jpg", is_main=True)

        mains = [p["id"] for p in companion.photos if p["is_main"]]
        assert mains == [second["id"]]
        assert first["id"] != second["id"]
        assert second["is_verified"] is False

    @pytest.mark.asyncio
    async def test_set_main_photo(self, service, db, make_companion):
        companion = await make_companion()
        first = await service.add_photo(db, companion.user_id, "https://cdn/a.jpg", is_main=True)
        second = await service.add_photo(db, companion.user_id, "https://cdn/b.jpg")

        await service.set_main_photo(db, companion.user_id, second["id"])

        by_id = {p["id"]: p["is_main"] for p in companion.photos}
        assert by_id == {first["id"]: False, second["id"]: True}

    @pytest.mark.asyncio
    async def test_unknown_photo(self, service, db, make_companion):
        companion = await make_companion()
        with pytest.raises(NotFound):
            await service.set_main_photo(db, companion.user_id, "missing")
        with pytest.raises(NotFound):
            await service.delete_photo(db, companion.user_id, "missing")

    @pytest.mark.asyncio
    async def test_delete_photo(self, service, db, make_companion):
        companion = await make_companion()
        photo = await service.add_photo(db, companion.user_id, "https://cdn/a.jpg")

        await service.delete_photo(db, companion.user_id, photo["id"])

        assert companion.photos == []

    @pytest.mark.asyncio
    async def test_videos_and_audio(self, service, db, make_companion):
        companion = await make_companion()
        video = await service.add_video(db, companion.user_id, "https://cdn/v.mp4")
        audio = await service.set_audio_introduction(db, companion.user_id, "https://cdn/a.mp3", 12.5)

        assert video["thumbnail"] == ""
        assert audio["duration"] == 12.5

        await service.delete_video(db, companion.user_id, video["id"])
        await service.delete_audio_introduction(db, companion.user_id)

        assert companion.videos == []
        assert companion.audio_introduction is None
        with pytest.raises(NotFound):
            await service.delete_video(db, companion.user_id, video["id"])

    @pytest.mark.asyncio
    async def test_media_requires_profile(self, service, db, make_user):
        user = await make_user(role="companion")
        with pytest.raises(NotFound):
            await service.add_photo(db, user.id, "https://cdn/a.jpg")


class TestFavorites:

    @pytest.mark.asyncio
    async def test_add_increments_counter(self, service, db, make_client_profile, make_companion):
        user, _ = await make_client_profile()
        companion = await make_companion()

        entry = await service.add_favorite(db, user.id, companion.id)

        assert entry["companion_id"] == str(companion.id)
        assert companion.favorite_count == 1

    @pytest.mark.asyncio
    async def test_duplicate_rejected(self, service, db, make_client_profile, make_companion):
        user, _ = await make_client_profile()
        companion = await make_companion()
        await service.add_favorite(db, user.id, companion.id)

        with pytest.raises(Conflict) as exc:
            await service.add_favorite(db, user.id, companion.id)

        assert exc.value.message == "Companion already in favorites"
        assert exc.value.status_code == 400
        assert companion.favorite_count == 1

    @pytest.mark.asyncio
    async def test_missing_profiles(self, service, db, make_user, make_client_profile, make_companion):
        lonely = await make_user(role="client")
        companion = await make_companion()
        with pytest.raises(NotFound) as exc:
            await service.add_favorite(db, lonely.id, companion.id)
        assert exc.value.message == "Client profile not found"

        user, _ = await make_client_profile()
        with pytest.raises(NotFound) as exc:
            await service.add_favorite(db, user.id, uuid.uuid4())
        assert exc.value.message == "Companion profile not found"

    @pytest.mark.asyncio
    async def test_remove_decrements_counter(self, service, db, make_client_profile, make_companion):
        user, client = await make_client_profile()
        companion = await make_companion()
        await service.add_favorite(db, user.id, companion.id)

        await service.remove_favorite(db, user.id, companion.id)

        assert client.favorites == []
        assert companion.favorite_count == 0

    @pytest.mark.asyncio
    async def test_remove_never_goes_negative(self, service, db, make_client_profile, make_companion):
        user, client = await make_client_profile()
        companion = await make_companion()
        client.favorites = [{"companion_id": str(companion.id), "added_at": "2025-01-01T00:00:00"}]
        await db.flush()

        await service.remove_favorite(db, user.id, companion.id)

        assert companion.favorite_count == 0

    @pytest.mark.asyncio
    async def test_remove_unknown(self, service, db, make_client_profile):
        user, _ = await make_client_profile()
        with pytest.raises(NotFound) as exc:
            await service.remove_favorite(db, user.id, uuid.uuid4())
        assert exc.value.message == "Companion not found in favorites"

    @pytest.mark.asyncio
    async def test_get_favorites_attaches_companions(self, service, db, make_client_profile, make_companion):
        user, client = await make_client_profile()
        companion = await make_companion(display_name="Ruby")
        await service.add_favorite(db, user.id, companion.id)
        gone = str(uuid.uuid4())
        client.favorites = client.favorites + [{"companion_id": gone, "added_at": "2025-01-01T00:00:00"}]
        await db.flush()

        favorites = await service.get_favorites(db, user.id)

        assert favorites[0]["companion"].display_name == "Ruby"
        assert favorites[1]["companion_id"] == gone
        assert favorites[1]["companion"] is None


class TestRecentlyViewed:

    @pytest.mark.asyncio
    async def test_revisit_moves_to_front(self, service, db, make_client_profile, make_companion):
        user, _ = await make_client_profile()
        a = await make_companion(display_name="A")
        b = await make_companion(display_name="B")

        await service.touch_recently_viewed(db, user.id, a.id)
        await service.touch_recently_viewed(db, user.id, b.id)
        viewed = await service.touch_recently_viewed(db, user.id, a.id)

        assert [v["companion_id"] for v in viewed] == [str(a.id), str(b.id)]

    @pytest.mark.asyncio
    async def test_list_is_capped(self, service, db, make_client_profile, make_companion):
        user, _ = await make_client_profile()
        companions = [await make_companion() for _ in range(RECENTLY_VIEWED_LIMIT + 1)]

        for companion in companions:
            viewed = await service.touch_recently_viewed(db, user.id, companion.id)

        assert len(viewed) == RECENTLY_VIEWED_LIMIT
        assert viewed[0]["companion_id"] == str(companions[-1].id)
        assert str(companions[0].id) not in {v["companion_id"] for v in viewed}

    @pytest.mark.asyncio
    async def test_unknown_companion(self, service, db, make_client_profile):
        user, _ = await make_client_profile()
        with pytest.raises(NotFound):
            await service.touch_recently_viewed(db, user.id, uuid.uuid4())
