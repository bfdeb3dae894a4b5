from pydantic import BaseModel, Field
from uuid import UUID
from datetime import datetime
from typing import Literal, Optional

BodyType = Literal["slim", "athletic", "average", "curvy", "plus-size"]
Gender = Literal["male", "female", "other"]
GenderPreference = Literal["male", "female", "all"]


# ── Client profile ──────────────────────────────────────────────────────

class AgeRange(BaseModel):
    min: int = Field(18, ge=18)
    max: Optional[int] = Field(None, ge=18)


class ClientPreferences(BaseModel):
    companion_gender: GenderPreference = "all"
    age_range: AgeRange = Field(default_factory=AgeRange)
    services: list[str] = []
    locations: list[str] = []


class ClientProfileUpsert(BaseModel):
    """Patch body: only present, truthy fields overwrite stored values."""
    display_name: Optional[str] = Field(None, min_length=1)
    age: Optional[int] = Field(None, ge=18)
    gender: Optional[Gender] = None
    preferences: Optional[ClientPreferences] = None


class ClientProfileResponse(BaseModel):
    id: UUID
    user_id: UUID
    display_name: Optional[str] = None
    age: Optional[int] = None
    gender: Optional[str] = None
    preferences: Optional[dict] = None
    favorites: list[dict] = []
    recently_viewed: list[dict] = []
    verification_level: str
    is_active: bool
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ClientProfileUpsertResponse(BaseModel):
    message: str
    created: bool
    profile: ClientProfileResponse


# ── Companion profile ───────────────────────────────────────────────────

class Rates(BaseModel):
    hourly: Optional[float] = Field(None, ge=0)
    two_hours: Optional[float] = Field(None, ge=0)
    three_hours: Optional[float] = Field(None, ge=0)
    dinner: Optional[float] = Field(None, ge=0)
    overnight: Optional[float] = Field(None, ge=0)
    additional_info: Optional[str] = None


class DayAvailability(BaseModel):
    available: bool = False
    start_time: Optional[str] = None
    end_time: Optional[str] = None


class WeeklyAvailability(BaseModel):
    monday: Optional[DayAvailability] = None
    tuesday: Optional[DayAvailability] = None
    wednesday: Optional[DayAvailability] = None
    thursday: Optional[DayAvailability] = None
    friday: Optional[DayAvailability] = None
    saturday: Optional[DayAvailability] = None
    sunday: Optional[DayAvailability] = None


class CompanionLocation(BaseModel):
    city: str = Field(min_length=1)
    state: str = Field(min_length=1)
    country: str = "Australia"
    travel_availability: bool = False
    travel_locations: list[str] = []


class SocialMedia(BaseModel):
    instagram: Optional[str] = None
    twitter: Optional[str] = None
    website: Optional[str] = None


class CompanionPreferences(BaseModel):
    min_client_age: int = Field(18, ge=18)
    max_client_age: Optional[int] = None
    gender_preference: Optional[GenderPreference] = None
    other_preferences: list[str] = []


class CompanionProfileUpsert(BaseModel):
    """Patch body: only present, truthy fields overwrite stored values."""
    display_name: Optional[str] = Field(None, min_length=1)
    age: Optional[int] = Field(None, ge=18, le=99)
    height: Optional[int] = Field(None, ge=140, le=220)
    body_type: Optional[BodyType] = None
    ethnicity: Optional[str] = None
    languages: Optional[list[str]] = None
    about_me: Optional[str] = Field(None, max_length=2000)
    services: Optional[list[str]] = None
    rates: Optional[Rates] = None
    availability: Optional[WeeklyAvailability] = None
    location: Optional[CompanionLocation] = None
    social_media: Optional[SocialMedia] = None
    preferences: Optional[CompanionPreferences] = None


class CompanionProfileResponse(BaseModel):
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
    availability: Optional[dict] = None
    location: Optional[dict] = None
    social_media: Optional[dict] = None
    preferences: Optional[dict] = None
    photos: list[dict] = []
    videos: list[dict] = []
    audio_introduction: Optional[dict] = None
    profile_views: int
    favorite_count: int
    rating: Optional[float] = None
    last_active: Optional[datetime] = None
    is_featured: bool
    featured_until: Optional[datetime] = None
    subscription_level: str
    subscription_expires_at: Optional[datetime] = None
    is_active: bool
    is_verified: bool = False
    created_at: datetime
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class CompanionProfileUpsertResponse(BaseModel):
    message: str
    created: bool
    profile: CompanionProfileResponse


class CompanionSummary(BaseModel):
    """Projection embedded in favorites / recently-viewed listings."""
    id: UUID
    display_name: str
    photos: list[dict] = []
    location: Optional[dict] = None
    rates: Optional[dict] = None
    profile_views: int
    favorite_count: int

    model_config = {"from_attributes": True}


# ── Companion media ─────────────────────────────────────────────────────

class PhotoCreate(BaseModel):
    url: str = Field(min_length=1)
    is_main: bool = False


class VideoCreate(BaseModel):
    url: str = Field(min_length=1)
    thumbnail: str = ""


class AudioCreate(BaseModel):
    url: str = Field(min_length=1)
    duration: float = 0


class PhotoResponse(BaseModel):
    message: str
    photo: dict


class VideoResponse(BaseModel):
    message: str
    video: dict


class AudioResponse(BaseModel):
    message: str
    audio: dict


# ── Favorites / recently viewed ─────────────────────────────────────────

class FavoriteEntry(BaseModel):
    companion_id: UUID
    added_at: datetime
    companion: Optional[CompanionSummary] = None


class FavoriteAddedResponse(BaseModel):
    message: str
    favorite: dict


class RecentlyViewedEntry(BaseModel):
    companion_id: UUID
    viewed_at: datetime
    companion: Optional[CompanionSummary] = None
