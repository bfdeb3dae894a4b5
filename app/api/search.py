"""
Companion Marketplace — Search API

Public discovery endpoints: filtered search, featured / popular / new lists,
location lookups and the location and service vocabularies.
"""

from __future__ import annotations

from typing import Optional

import structlog
from fastapi import APIRouter, Depends, Query
from sqlalchemy.ext.asyncio import AsyncSession

from app.database import get_db
from app.models.profile import CompanionProfile
from app.schemas.search import CompanionSearchResult, SearchResponse
from app.services.search_service import SearchFilters, SearchService

logger = structlog.get_logger("marketplace.api.search")

router = APIRouter()

# ── Service singletons ────────────────────────────────────────────────────────

_search_service: SearchService | None = None


def _get_search_service() -> SearchService:
    global _search_service
    if _search_service is None:
        _search_service = SearchService()
    return _search_service


# ──────────────────────────────────────────────────────────────────────────────
# GET /companions — Filtered, sorted, paginated search
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/companions", response_model=SearchResponse, summary="Search companions")
async def search_companions(
    location: Optional[list[str]] = Query(None, description="City or state; repeat for any-of"),
    services: Optional[list[str]] = Query(None),
    ethnicity: Optional[list[str]] = Query(None),
    languages: Optional[list[str]] = Query(None),
    body_type: Optional[list[str]] = Query(None, alias="bodyType"),
    min_age: Optional[int] = Query(None, ge=18, alias="minAge"),
    max_age: Optional[int] = Query(None, ge=18, alias="maxAge"),
    min_rate: Optional[float] = Query(None, ge=0, alias="minRate"),
    max_rate: Optional[float] = Query(None, ge=0, alias="maxRate"),
    sort_by: Optional[str] = Query(None, alias="sortBy", description="Unknown values sort by popularity"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    db: AsyncSession = Depends(get_db),
) -> dict:
    filters = SearchFilters(
        location=location or [],
        services=services or [],
        ethnicity=ethnicity or [],
        languages=languages or [],
        body_type=body_type or [],
        min_age=min_age,
        max_age=max_age,
        min_rate=min_rate,
        max_rate=max_rate,
    )
    return await _get_search_service().search(db, filters, sort_by=sort_by, page=page, limit=limit)


# ──────────────────────────────────────────────────────────────────────────────
# Discovery lists
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/featured", response_model=list[CompanionSearchResult], summary="Featured companions")
async def featured(db: AsyncSession = Depends(get_db)) -> list[CompanionProfile]:
    return await _get_search_service().featured(db)


@router.get("/popular", response_model=list[CompanionSearchResult], summary="Most viewed companions")
async def popular(db: AsyncSession = Depends(get_db)) -> list[CompanionProfile]:
    return await _get_search_service().popular(db)


@router.get("/new", response_model=list[CompanionSearchResult], summary="Newest companions")
async def newest(db: AsyncSession = Depends(get_db)) -> list[CompanionProfile]:
    return await _get_search_service().newest(db)


@router.get(
    "/location/{location}",
    response_model=list[CompanionSearchResult],
    summary="Companions in a city or state",
)
async def by_location(location: str, db: AsyncSession = Depends(get_db)) -> list[CompanionProfile]:
    return await _get_search_service().by_location(db, location)


# ──────────────────────────────────────────────────────────────────────────────
# Vocabularies
# ──────────────────────────────────────────────────────────────────────────────

@router.get("/locations", response_model=list[str], summary="Cities and states with companions")
async def available_locations(db: AsyncSession = Depends(get_db)) -> list[str]:
    return await _get_search_service().available_locations(db)


@router.get("/services", response_model=list[str], summary="Services offered by companions")
async def available_services(db: AsyncSession = Depends(get_db)) -> list[str]:
    return await _get_search_service().available_services(db)
