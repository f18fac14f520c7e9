from pydantic import BaseModel, Field, field_validator
from typing import Optional, List, Literal
from datetime import datetime

from menvo.core.pagination import PageMeta

WaitingListStatus = Literal["pending", "approved", "rejected"]


class WaitingListJoin(BaseModel):
    name: str = Field(..., max_length=200)
    email: str = Field(..., max_length=320)
    whatsapp: Optional[str] = Field(default=None, max_length=40)
    reason: Optional[str] = Field(default=None, max_length=2000)

    @field_validator("name")
    @classmethod
    def validate_name(cls, v):
        v = v.strip()
        if not v:
            raise ValueError("Name is required")
        return v


class WaitingListStatusUpdate(BaseModel):
    status: WaitingListStatus
    notes: Optional[str] = Field(default=None, max_length=1000)


class WaitingListEntryResponse(BaseModel):
    id: str
    name: str
    email: str
    whatsapp: Optional[str] = None
    reason: Optional[str] = None
    status: WaitingListStatus
    notes: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class WaitingListPageResponse(PageMeta):
    entries: List[WaitingListEntryResponse]
