"""Unit tests for SearchService — filters, sorting, pagination and discovery lists."""
from datetime import timedelta

import pytest
import pytest_asyncio

from app.database import utcnow
from app.services.search_service import SearchFilters, SearchService


@pytest.fixture
def service():
    return SearchService()


@pytest_asyncio.fixture
async def catalogue(make_companion):
    """Three active companions and one inactive one."""
    ava = await make_companion(
        display_name="Ava",
        age=24,
        body_type="slim",
        ethnicity="Caucasian",
        languages=["English", "French"],
        services=["Dinner Date", "Travel"],
        rates={"hourly": 300},
        location={"city": "Sydney", "state": "NSW", "country": "Australia"},
        profile_views=50,
        rating=4.5,
    )
    bea = await make_companion(
        display_name="Bea",
        age=31,
        body_type="curvy",
        ethnicity="Asian",
        languages=["English", "Mandarin"],
        services=["Dinner Date"],
        rates={"hourly": 450},
        location={"city": "Melbourne", "state": "VIC", "country": "Australia"},
        profile_views=120,
        rating=4.9,
    )
    cleo = await make_companion(
        display_name="Cleo",
        age=38,
        body_type="athletic",
        ethnicity="Latina",
        languages=["Spanish"],
        services=["Overnight"],
        rates={"hourly": 200},
        location={"city": "Newcastle", "state": "NSW", "country": "Australia"},
        profile_views=10,
        rating=4.1,
    )
    await make_companion(
        display_name="Hidden",
        age=29,
        services=["Dinner Date"],
        rates={"hourly": 100},
        location={"city": "Sydney", "state": "NSW"},
        profile_views=999,
        is_active=False,
    )
    return {"ava": ava, "bea": bea, "cleo": cleo}


def _names(result):
    return [c.display_name for c in result["companions"]]


class TestSearchFilters:

    @pytest.mark.asyncio
    async def test_no_filters_returns_active_by_popularity(self, service, db, catalogue):
        result = await service.search(db, SearchFilters())
        assert _names(result) == ["Bea", "Ava", "Cleo"]
        assert result["pagination"]["total_count"] == 3

    @pytest.mark.asyncio
    async def test_location_matches_city_or_state(self, service, db, catalogue):
        by_city = await service.search(db, SearchFilters(location=["sydney"]))
        by_state = await service.search(db, SearchFilters(location=["nsw"]))
        any_of = await service.search(db, SearchFilters(location=["Melb", "Newcastle"]))

        assert _names(by_city) == ["Ava"]
        assert sorted(_names(by_state)) == ["Ava", "Cleo"]
        assert sorted(_names(any_of)) == ["Bea", "Cleo"]

    @pytest.mark.asyncio
    async def test_services_and_languages_substring(self, service, db, catalogue):
        dinner = await service.search(db, SearchFilters(services=["dinner"]))
        mandarin = await service.search(db, SearchFilters(languages=["mandarin"]))

        assert sorted(_names(dinner)) == ["Ava", "Bea"]
        assert _names(mandarin) == ["Bea"]

    @pytest.mark.asyncio
    async def test_body_type_and_ethnicity(self, service, db, catalogue):
        result = await service.search(db, SearchFilters(body_type=["slim", "athletic"]))
        assert sorted(_names(result)) == ["Ava", "Cleo"]

        result = await service.search(db, SearchFilters(ethnicity=["latina"]))
        assert _names(result) == ["Cleo"]

    @pytest.mark.asyncio
    async def test_age_and_rate_bounds(self, service, db, catalogue):
        ages = await service.search(db, SearchFilters(min_age=25, max_age=35))
        rates = await service.search(db, SearchFilters(min_rate=250, max_rate=400))

        assert _names(ages) == ["Bea"]
        assert _names(rates) == ["Ava"]


class TestSearchSorting:

    @pytest.mark.asyncio
    async def test_price_low_and_high(self, service, db, catalogue):
        low = await service.search(db, SearchFilters(), sort_by="price_low")
        high = await service.search(db, SearchFilters(), sort_by="price_high")

        assert _names(low) == ["Cleo", "Ava", "Bea"]
        assert _names(high) == ["Bea", "Ava", "Cleo"]

    @pytest.mark.asyncio
    async def test_rating(self, service, db, catalogue):
        result = await service.search(db, SearchFilters(), sort_by="rating")
        assert _names(result) == ["Bea", "Ava", "Cleo"]

    @pytest.mark.asyncio
    async def test_unrated_companions_sort_last(self, service, db, catalogue, make_companion):
        await make_companion(
            display_name="Dana",
            rates={"additional_info": "Rates on request"},
            profile_views=5,
        )

        low = await service.search(db, SearchFilters(), sort_by="price_low")
        high = await service.search(db, SearchFilters(), sort_by="price_high")

        assert _names(low) == ["Cleo", "Ava", "Bea", "Dana"]
        assert _names(high) == ["Bea", "Ava", "Cleo", "Dana"]

    @pytest.mark.asyncio
    @pytest.mark.parametrize("sort_by", ["bogus", None, "popularity"])
    async def test_unknown_sort_falls_back_to_popularity(self, service, db, catalogue, sort_by):
        result = await service.search(db, SearchFilters(), sort_by=sort_by)
        assert _names(result) == ["Bea", "Ava", "Cleo"]


class TestSearchPagination:

    @pytest.mark.asyncio
    async def test_pages(self, service, db, catalogue):
        first = await service.search(db, SearchFilters(), page=1, limit=2)
        second = await service.search(db, SearchFilters(), page=2, limit=2)

        assert _names(first) == ["Bea", "Ava"]
        assert _names(second) == ["Cleo"]
        assert first["pagination"] == {
            "current_page": 1,
            "total_pages": 2,
            "total_count": 3,
            "has_next_page": True,
            "has_prev_page": False,
        }
        assert second["pagination"]["has_next_page"] is False
        assert second["pagination"]["has_prev_page"] is True


class TestDiscovery:

    @pytest.mark.asyncio
    async def test_featured_requires_future_window(self, service, db, catalogue):
        catalogue["ava"].is_featured = True
        catalogue["ava"].featured_until = utcnow() + timedelta(days=3)
        catalogue["bea"].is_featured = True
        catalogue["bea"].featured_until = utcnow() - timedelta(days=1)
        await db.flush()

        featured = await service.featured(db)

        assert [c.display_name for c in featured] == ["Ava"]

    @pytest.mark.asyncio
    async def test_popular_and_by_location(self, service, db, catalogue):
        popular = await service.popular(db)
        nsw = await service.by_location(db, "NSW")

        assert [c.display_name for c in popular] == ["Bea", "Ava", "Cleo"]
        assert [c.display_name for c in nsw] == ["Ava", "Cleo"]

    @pytest.mark.asyncio
    async def test_newest(self, service, db, catalogue):
        newest = await service.newest(db)
        assert len(newest) == 3
        assert "Hidden" not in {c.display_name for c in newest}

    @pytest.mark.asyncio
    async def test_vocabularies_are_deduplicated(self, service, db, catalogue):
        locations = await service.available_locations(db)
        services = await service.available_services(db)

        assert sorted(locations) == ["Melbourne", "NSW", "Newcastle", "Sydney", "VIC"]
        assert sorted(services) == ["Dinner Date", "Overnight", "Travel"]
