from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime

from menvo.core.pagination import PageMeta
from menvo.modules.profiles.schemas import PublicProfileResponse


class MentorSearchResponse(PageMeta):
    mentors: List[PublicProfileResponse]


class MentorVerificationRequest(BaseModel):
    verified: bool
    notes: Optional[str] = Field(default=None, max_length=1000)


class MentorVerificationResponse(BaseModel):
    mentor_id: str
    verified: bool
    verified_at: Optional[datetime] = None
    message: str
