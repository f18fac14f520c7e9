from supabase import Client
from fastapi import HTTPException
from typing import Optional
from datetime import datetime, timezone
import logging

from menvo.core.errors import ConflictError, NotFoundError, UpstreamError, ValidationError
from menvo.database.supabase_client import first_row
from menvo.modules.newsletter.schemas import (
    NewsletterListResponse, NewsletterSubscribe, NewsletterSubscriptionResponse
)
from menvo.modules.waiting_list.service import normalize_email

logger = logging.getLogger(__name__)


class NewsletterService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def subscribe(
        self,
        data: NewsletterSubscribe,
        ip_address: Optional[str] = None,
        user_agent: Optional[str] = None,
    ) -> NewsletterSubscriptionResponse:
        """Consent is mandatory and recorded with the request origin"""
        if not data.consent_given:
            raise ValidationError("Consent is required to subscribe", field="consent_given")
        email = normalize_email(data.email)
        if self._find_active(email):
            raise ConflictError("This email is already subscribed", field="email")

        now = datetime.now(timezone.utc).isoformat()
        try:
            result = self.supabase.table("newsletter_subscriptions").insert({
                "email": email,
                "name": (data.name or "").strip() or None,
                "whatsapp": (data.whatsapp or "").strip() or None,
                "consent_given": True,
                "consent_date": now,
                "marketing_consent": data.marketing_consent,
                "ip_address": ip_address,
                "user_agent": user_agent,
                "status": "active",
                "subscribed_at": now,
            }).execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating newsletter subscription: {e}")
            raise UpstreamError()
        if not result.data:
            raise UpstreamError()
        logger.info(f"Newsletter subscription created for {email}")
        return NewsletterSubscriptionResponse(**result.data[0])

    def unsubscribe(self, email: str) -> NewsletterSubscriptionResponse:
        email = normalize_email(email)
        if not self._find_active(email):
            raise NotFoundError("No active subscription for this email")
        try:
            result = self.supabase.table("newsletter_subscriptions")\
                .update({"status": "unsubscribed", "unsubscribed_at": datetime.now(timezone.utc).isoformat()})\
                .eq("email", email)\
                .eq("status", "active")\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error unsubscribing {email}: {e}")
            raise UpstreamError()
        if not result.data:
            raise NotFoundError("No active subscription for this email")
        logger.info(f"Newsletter subscription cancelled for {email}")
        return NewsletterSubscriptionResponse(**result.data[0])

    def list_subscriptions(self, status: Optional[str] = None) -> NewsletterListResponse:
        try:
            query = self.supabase.table("newsletter_subscriptions").select("*")
            if status:
                query = query.eq("status", status)
            result = query.order("subscribed_at", desc=True).execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing newsletter subscriptions: {e}")
            raise UpstreamError()
        subscriptions = [NewsletterSubscriptionResponse(**row) for row in (result.data or [])]
        return NewsletterListResponse(subscriptions=subscriptions, total=len(subscriptions))

    def _find_active(self, email: str):
        try:
            result = self.supabase.table("newsletter_subscriptions")\
                .select("*")\
                .eq("email", email)\
                .eq("status", "active")\
                .maybe_single()\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error checking newsletter subscription for {email}: {e}")
            raise UpstreamError()
        return first_row(result)
