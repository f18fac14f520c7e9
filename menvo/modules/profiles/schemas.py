from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Any, Dict
from datetime import datetime

from menvo.config.permissions_config import UserRole
from menvo.modules.auth.guard import GateView
from menvo.modules.auth.lifecycle import LifecycleStage

PROFILE_STATUSES = ("active", "suspended", "deactivated")

URL_FIELDS = ("linkedin_url", "github_url", "website_url", "avatar_url", "presentation_video_url")


def _clean_url(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    value = value.strip()
    if not value:
        return None
    if not value.startswith(("http://", "https://")):
        raise ValueError("Must be an http(s) URL")
    return value


def _clean_tags(value: Optional[List[str]]) -> Optional[List[str]]:
    if value is None:
        return None
    seen = []
    for item in value:
        item = item.strip()
        if item and item not in seen:
            seen.append(item)
    return seen


class ProfileFields(BaseModel):
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    website_url: Optional[str] = None
    avatar_url: Optional[str] = None
    presentation_video_url: Optional[str] = None
    expertise_areas: Optional[List[str]] = None
    languages: Optional[List[str]] = None
    current_position: Optional[str] = None
    current_company: Optional[str] = None
    session_price: Optional[float] = Field(default=None, ge=0)
    years_experience: Optional[int] = Field(default=None, ge=0, le=80)

    @field_validator(*URL_FIELDS)
    @classmethod
    def validate_url(cls, v):
        return _clean_url(v)

    @field_validator("expertise_areas", "languages")
    @classmethod
    def validate_tags(cls, v):
        return _clean_tags(v)


class ProfileCompletionRequest(ProfileFields):
    full_name: str
    bio: str


class ProfileUpdate(ProfileFields):
    full_name: Optional[str] = None


class ProfileStatusUpdate(BaseModel):
    status: str

    @field_validator("status")
    @classmethod
    def validate_status(cls, v):
        if v not in PROFILE_STATUSES:
            raise ValueError(f"Status must be one of: {', '.join(PROFILE_STATUSES)}")
        return v


class ProfileResponse(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    linkedin_url: Optional[str] = None
    github_url: Optional[str] = None
    website_url: Optional[str] = None
    avatar_url: Optional[str] = None
    presentation_video_url: Optional[str] = None
    expertise_areas: List[str] = []
    languages: List[str] = []
    current_position: Optional[str] = None
    current_company: Optional[str] = None
    session_price: Optional[float] = None
    years_experience: Optional[int] = None
    cv_url: Optional[str] = None
    role: Optional[UserRole] = None
    is_profile_complete: bool = False
    verified_at: Optional[datetime] = None
    status: str = "active"
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @field_validator("expertise_areas", "languages", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return v or []

    class Config:
        from_attributes = True


class PublicProfileResponse(BaseModel):
    id: str
    full_name: Optional[str] = None
    first_name: Optional[str] = None
    last_name: Optional[str] = None
    bio: Optional[str] = None
    city: Optional[str] = None
    state: Optional[str] = None
    country: Optional[str] = None
    linkedin_url: Optional[str] = None
    avatar_url: Optional[str] = None
    presentation_video_url: Optional[str] = None
    expertise_areas: List[str] = []
    languages: List[str] = []
    current_position: Optional[str] = None
    current_company: Optional[str] = None
    session_price: Optional[float] = None
    years_experience: Optional[int] = None
    role: Optional[UserRole] = None
    verified: bool = False

    @field_validator("expertise_areas", "languages", mode="before")
    @classmethod
    def none_as_empty(cls, v):
        return v or []

    @classmethod
    def from_row(cls, row: Dict[str, Any]) -> "PublicProfileResponse":
        return cls(**{**row, "verified": bool(row.get("verified_at"))})


class ProfileCompletionResponse(BaseModel):
    profile: ProfileResponse
    stage: LifecycleStage
    gate: GateView
    refresh_required: bool = True
