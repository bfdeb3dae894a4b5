"""
Companion Marketplace — Companion discovery.

Filtered, sorted and paginated search over active companion profiles, plus
the fixed discovery lists (featured, popular, newest, by location) and the
distinct location / service vocabularies used to populate search forms.

Multi-valued filters accept a single string or a list; a list matches when
any of its values matches.  Text matching is case-insensitive substring.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any

import structlog
from sqlalchemy import String, and_, cast, func, or_, select
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy.sql.elements import ColumnElement

from app.database import utcnow
from app.models.profile import CompanionProfile
from app.utils.pagination import build_pagination, offset_for

logger = structlog.get_logger("marketplace.search_service")

FEATURED_LIMIT = 10
DISCOVERY_LIMIT = 20


@dataclass
class SearchFilters:
    location: list[str] = field(default_factory=list)
    services: list[str] = field(default_factory=list)
    ethnicity: list[str] = field(default_factory=list)
    languages: list[str] = field(default_factory=list)
    body_type: list[str] = field(default_factory=list)
    min_age: int | None = None
    max_age: int | None = None
    min_rate: float | None = None
    max_rate: float | None = None


def _hourly_rate():
    return CompanionProfile.rates["hourly"].as_float()


def _location_matches(term: str) -> ColumnElement:
    pattern = f"%{term}%"
    return or_(
        CompanionProfile.location["city"].as_string().ilike(pattern),
        CompanionProfile.location["state"].as_string().ilike(pattern),
    )


def _any_substring(column, terms: list[str]) -> ColumnElement:
    """Case-insensitive substring match of any term against a text or JSON-array column."""
    target = column if isinstance(column.type, String) else cast(column, String)
    return or_(*(target.ilike(f"%{term}%") for term in terms))


def build_conditions(filters: SearchFilters) -> list[ColumnElement]:
    conditions: list[ColumnElement] = [CompanionProfile.is_active.is_(True)]

    if filters.location:
        conditions.append(or_(*(_location_matches(loc) for loc in filters.location)))
    if filters.services:
        conditions.append(_any_substring(CompanionProfile.services, filters.services))
    if filters.ethnicity:
        conditions.append(_any_substring(CompanionProfile.ethnicity, filters.ethnicity))
    if filters.languages:
        conditions.append(_any_substring(CompanionProfile.languages, filters.languages))
    if filters.body_type:
        conditions.append(CompanionProfile.body_type.in_(filters.body_type))

    if filters.min_age is not None:
        conditions.append(CompanionProfile.age >= filters.min_age)
    if filters.max_age is not None:
        conditions.append(CompanionProfile.age <= filters.max_age)
    if filters.min_rate is not None:
        conditions.append(_hourly_rate() >= filters.min_rate)
    if filters.max_rate is not None:
        conditions.append(_hourly_rate() <= filters.max_rate)

    return conditions


def sort_clause(sort_by: str | None) -> list:
    """ORDER BY for a sort key; unknown keys fall back to popularity."""
    if sort_by == "newest":
        return [CompanionProfile.created_at.desc()]
    if sort_by == "oldest":
        return [CompanionProfile.created_at.asc()]
    if sort_by == "price_low":
        return [_hourly_rate().asc().nulls_last()]
    if sort_by == "price_high":
        return [_hourly_rate().desc().nulls_last()]
    if sort_by == "rating":
        return [CompanionProfile.rating.desc()]
    return [CompanionProfile.profile_views.desc()]


class SearchService:
    """Read-only discovery queries over ``companion_profiles``."""

    async def search(
        self,
        db: AsyncSession,
        filters: SearchFilters,
        sort_by: str | None = None,
        page: int = 1,
        limit: int = 20,
    ) -> dict[str, Any]:
        log = logger.bind(sort_by=sort_by, page=page, limit=limit)
        log.info("search_companions_start")

        conditions = build_conditions(filters)

        stmt = (
            select(CompanionProfile)
            .where(and_(*conditions))
            .order_by(*sort_clause(sort_by), CompanionProfile.id)
            .offset(offset_for(page, limit))
            .limit(limit)
        )
        companions = list((await db.execute(stmt)).scalars().all())

        count_stmt = select(func.count()).select_from(CompanionProfile).where(and_(*conditions))
        total_count = (await db.execute(count_stmt)).scalar_one()

        log.info("search_companions_complete", returned=len(companions), total=total_count)
        return {
            "companions": companions,
            "pagination": build_pagination(page, limit, total_count),
        }

    async def _list(self, db: AsyncSession, *conditions, order_by, limit: int) -> list[CompanionProfile]:
        stmt = (
            select(CompanionProfile)
            .where(CompanionProfile.is_active.is_(True), *conditions)
            .order_by(order_by)
            .limit(limit)
        )
        return list((await db.execute(stmt)).scalars().all())

    async def featured(self, db: AsyncSession) -> list[CompanionProfile]:
        return await self._list(
            db,
            CompanionProfile.is_featured.is_(True),
            CompanionProfile.featured_until > utcnow(),
            order_by=CompanionProfile.profile_views.desc(),
            limit=FEATURED_LIMIT,
        )

    async def popular(self, db: AsyncSession) -> list[CompanionProfile]:
        return await self._list(
            db, order_by=CompanionProfile.profile_views.desc(), limit=DISCOVERY_LIMIT
        )

    async def newest(self, db: AsyncSession) -> list[CompanionProfile]:
        return await self._list(
            db, order_by=CompanionProfile.created_at.desc(), limit=DISCOVERY_LIMIT
        )

    async def by_location(self, db: AsyncSession, location: str) -> list[CompanionProfile]:
        return await self._list(
            db,
            _location_matches(location),
            order_by=CompanionProfile.profile_views.desc(),
            limit=DISCOVERY_LIMIT,
        )

    async def available_locations(self, db: AsyncSession) -> list[str]:
        """Distinct non-blank cities and states over active profiles."""
        stmt = select(CompanionProfile.location).where(CompanionProfile.is_active.is_(True))
        cities: list[str] = []
        states: list[str] = []
        for location in (await db.execute(stmt)).scalars().all():
            if not location:
                continue
            cities.append(location.get("city") or "")
            states.append(location.get("state") or "")
        return _dedupe(cities + states)

    async def available_services(self, db: AsyncSession) -> list[str]:
        stmt = select(CompanionProfile.services).where(CompanionProfile.is_active.is_(True))
        services: list[str] = []
        for entry in (await db.execute(stmt)).scalars().all():
            services.extend(entry or [])
        return _dedupe(services)


def _dedupe(values: list[str]) -> list[str]:
    """Drop blanks and duplicates, keeping first-seen order."""
    seen: dict[str, None] = {}
    for value in values:
        if isinstance(value, str) and value.strip():
            seen.setdefault(value, None)
    return list(seen)
