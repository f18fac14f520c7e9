from pydantic import BaseModel, Field
from typing import Optional, List
from datetime import datetime


class NewsletterSubscribe(BaseModel):
    email: str = Field(..., max_length=320)
    name: Optional[str] = Field(default=None, max_length=200)
    whatsapp: Optional[str] = Field(default=None, max_length=40)
    consent_given: bool = False
    marketing_consent: bool = False


class NewsletterUnsubscribe(BaseModel):
    email: str = Field(..., max_length=320)


class NewsletterSubscriptionResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    whatsapp: Optional[str] = None
    status: str
    consent_given: bool
    consent_date: Optional[datetime] = None
    marketing_consent: Optional[bool] = None
    ip_address: Optional[str] = None
    user_agent: Optional[str] = None
    subscribed_at: Optional[datetime] = None
    unsubscribed_at: Optional[datetime] = None

    class Config:
        from_attributes = True


class NewsletterListResponse(BaseModel):
    subscriptions: List[NewsletterSubscriptionResponse]
    total: int
