from fastapi import APIRouter, Depends, Query, Request
from slowapi.util import get_remote_address
from supabase import Client
from typing import Optional

from menvo.config import settings
from menvo.config.permissions_config import Permission
from menvo.core.dependencies import require_permission
from menvo.core.identity import IdentitySnapshot
from menvo.core.rate_limit import limiter
from menvo.database.supabase_client import get_supabase
from menvo.modules.newsletter.schemas import (
    NewsletterListResponse, NewsletterSubscribe, NewsletterSubscriptionResponse, NewsletterUnsubscribe
)
from menvo.modules.newsletter.service import NewsletterService

router = APIRouter(prefix="/newsletter", tags=["newsletter"])


def get_newsletter_service(supabase: Client = Depends(get_supabase)) -> NewsletterService:
    return NewsletterService(supabase)


@router.post("/subscribe", response_model=NewsletterSubscriptionResponse, status_code=201)
@limiter.limit(settings.public_form_rate_limit)
async def subscribe(
    request: Request,
    body: NewsletterSubscribe,
    service: NewsletterService = Depends(get_newsletter_service)
):
    return service.subscribe(
        body,
        ip_address=get_remote_address(request),
        user_agent=request.headers.get("user-agent"),
    )


@router.post("/unsubscribe", response_model=NewsletterSubscriptionResponse)
@limiter.limit(settings.public_form_rate_limit)
async def unsubscribe(
    request: Request,
    body: NewsletterUnsubscribe,
    service: NewsletterService = Depends(get_newsletter_service)
):
    return service.unsubscribe(body.email)


@router.get("/subscriptions", response_model=NewsletterListResponse)
async def list_subscriptions(
    status: Optional[str] = Query(None, pattern="^(active|unsubscribed)$"),
    admin: IdentitySnapshot = Depends(require_permission(Permission.NEWSLETTER_MANAGE)),
    service: NewsletterService = Depends(get_newsletter_service)
):
    return service.list_subscriptions(status)
