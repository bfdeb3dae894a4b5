from pydantic import BaseModel
from uuid import UUID
from datetime import datetime
from typing import Optional

from app.schemas.common import Pagination

class CompanionSearchResult(BaseModel):
    id: UUID
    user_id: UUID
    display_name: str
    age: Optional[int] = None
    height: Optional[int] = None
    body_type: Optional[str] = None
    ethnicity: Optional[str] = None
    languages: list[str] = []
    about_me: Optional[str] = None
    services: list[str] = []
    rates: Optional[dict] = None
    location: Optional[dict] = None
    photos: list[dict] = []
    profile_views: int
    favorite_count: int
    rating: Optional[float] = None
    last_active: Optional[datetime] = None
    is_featured: bool
    featured_until: Optional[datetime] = None
    subscription_level: str
    is_verified: bool = False
    created_at: datetime

    model_config = {"from_attributes": True}


class SearchResponse(BaseModel):
    companions: list[CompanionSearchResult]
    pagination: Pagination

