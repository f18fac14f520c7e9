from pydantic import BaseModel, EmailStr, Field, field_validator
from typing import Optional, List, Literal
from datetime import datetime

from menvo.core.pagination import PageMeta

OrganizationType = Literal["company", "ngo", "hackathon", "sebrae", "community", "other"]
OrganizationStatus = Literal["pending_approval", "active", "suspended", "inactive"]
MemberRole = Literal["admin", "mentor", "mentee"]
MemberStatus = Literal["invited", "active", "declined", "left", "expired", "cancelled"]


class OrganizationCreate(BaseModel):
    name: str = Field(..., min_length=2, max_length=120)
    type: OrganizationType
    contact_email: EmailStr
    description: Optional[str] = Field(default=None, max_length=2000)
    logo_url: Optional[str] = None
    website: Optional[str] = None
    contact_phone: Optional[str] = None

    @field_validator("name")
    @classmethod
    def strip_name(cls, v):
        v = v.strip()
        if len(v) < 2:
            raise ValueError("Name must have at least 2 characters")
        return v


class OrganizationResponse(BaseModel):
    id: str
    name: str
    slug: str
    type: str
    status: str
    contact_email: Optional[str] = None
    description: Optional[str] = None
    logo_url: Optional[str] = None
    website: Optional[str] = None
    contact_phone: Optional[str] = None
    approved_at: Optional[datetime] = None
    approved_by: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class OrganizationListResponse(PageMeta):
    organizations: List[OrganizationResponse]


class MemberInvite(BaseModel):
    email: EmailStr
    role: MemberRole = "mentee"
    expires_at: Optional[datetime] = None


class InvitationAccept(BaseModel):
    token: str


class MemberResponse(BaseModel):
    id: str
    organization_id: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    role: str
    status: str
    invited_by: Optional[str] = None
    invited_at: Optional[datetime] = None
    activated_at: Optional[datetime] = None
    expires_at: Optional[datetime] = None

    class Config:
        from_attributes = True
