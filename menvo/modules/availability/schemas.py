from pydantic import BaseModel, Field, field_validator, model_validator
from typing import Optional, List
from datetime import date, datetime, time
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from menvo.config import settings
from menvo.modules.availability.slots import WeeklyWindow


def _validate_timezone(value: str) -> str:
    try:
        ZoneInfo(value)
    except (ZoneInfoNotFoundError, ValueError):
        raise ValueError(f"Unknown timezone: {value}")
    return value


class AvailabilitySlotBase(BaseModel):
    day_of_week: int = Field(..., ge=0, le=6, description="0 = Sunday .. 6 = Saturday")
    start_time: time
    end_time: time
    timezone: str = Field(default_factory=lambda: settings.default_timezone)
    is_active: bool = True

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        return _validate_timezone(v)

    @model_validator(mode="after")
    def validate_time_order(self):
        if self.start_time >= self.end_time:
            raise ValueError("End time must be after start time")
        return self

    def to_window(self) -> WeeklyWindow:
        return WeeklyWindow(
            day_of_week=self.day_of_week,
            start_time=self.start_time,
            end_time=self.end_time,
            timezone=self.timezone,
            is_active=self.is_active,
        )


class AvailabilitySlotCreate(AvailabilitySlotBase):
    pass


class AvailabilitySlotUpdate(BaseModel):
    day_of_week: Optional[int] = Field(default=None, ge=0, le=6)
    start_time: Optional[time] = None
    end_time: Optional[time] = None
    timezone: Optional[str] = None
    is_active: Optional[bool] = None

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, v):
        return _validate_timezone(v) if v is not None else v


class WeekReplaceRequest(BaseModel):
    slots: List[AvailabilitySlotCreate]


class AvailabilitySlotResponse(AvailabilitySlotBase):
    id: str
    mentor_id: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class BookableSlotResponse(BaseModel):
    date: date
    start_time: str
    end_time: str
    full_datetime: datetime


class DaySlotsResponse(BaseModel):
    date: date
    day_of_week: int
    slots: List[BookableSlotResponse]


class BookableSlotsResponse(BaseModel):
    mentor_id: str
    start_date: date
    end_date: date
    duration_minutes: int
    total_slots: int
    days: List[DaySlotsResponse]
