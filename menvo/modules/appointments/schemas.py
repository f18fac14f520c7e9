from pydantic import BaseModel, Field
from typing import Optional, List, Literal
from datetime import datetime
from enum import Enum

from menvo.config import settings


class AppointmentStatus(str, Enum):
    SCHEDULED = "scheduled"
    COMPLETED = "completed"
    CANCELLED = "cancelled"
    NO_SHOW = "no_show"


TERMINAL_STATUSES = (AppointmentStatus.COMPLETED, AppointmentStatus.CANCELLED, AppointmentStatus.NO_SHOW)


class AppointmentCreate(BaseModel):
    mentor_id: str
    # Optional so a missing value surfaces as a field-level validation error
    scheduled_at: Optional[datetime] = None
    duration_minutes: int = Field(default_factory=lambda: settings.session_duration_minutes)
    message: Optional[str] = None


class AppointmentStatusUpdate(BaseModel):
    status: Literal["completed", "cancelled", "no_show"]
    reason: Optional[str] = Field(default=None, max_length=500)


class AppointmentResponse(BaseModel):
    id: str
    mentor_id: str
    mentee_id: str
    scheduled_at: datetime
    duration_minutes: int
    status: AppointmentStatus
    message: Optional[str] = None
    cancellation_reason: Optional[str] = None
    cancelled_by: Optional[str] = None
    organization_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class AppointmentListResponse(BaseModel):
    appointments: List[AppointmentResponse]
    total: int
