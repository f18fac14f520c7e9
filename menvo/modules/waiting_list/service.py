from supabase import Client
from fastapi import HTTPException
from typing import Optional
from datetime import datetime, timezone
import re
import logging

from menvo.core.errors import ConflictError, NotFoundError, UpstreamError, ValidationError
from menvo.core.identity import IdentitySnapshot
from menvo.core.pagination import PageMeta, page_bounds
from menvo.database.supabase_client import first_row
from menvo.modules.waiting_list.schemas import (
    WaitingListEntryResponse, WaitingListJoin, WaitingListPageResponse, WaitingListStatusUpdate
)

logger = logging.getLogger(__name__)

EMAIL_PATTERN = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")


def normalize_email(email: str) -> str:
    email = (email or "").strip().lower()
    if not EMAIL_PATTERN.match(email):
        raise ValidationError("Invalid email format", field="email")
    return email


def _blank_to_none(value: Optional[str]) -> Optional[str]:
    if value is None:
        return None
    return value.strip() or None


class WaitingListService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def join(self, data: WaitingListJoin) -> WaitingListEntryResponse:
        email = normalize_email(data.email)
        existing = self._find_by_email(email)
        if existing:
            raise ConflictError(
                "Email already registered in waiting list",
                field="email",
                extra={"status": existing["status"]},
            )
        try:
            result = self.supabase.table("waiting_list").insert({
                "name": data.name,
                "email": email,
                "whatsapp": _blank_to_none(data.whatsapp),
                "reason": _blank_to_none(data.reason),
                "status": "pending",
                "created_at": datetime.now(timezone.utc).isoformat(),
            }).execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating waiting list entry: {e}")
            raise UpstreamError()
        if not result.data:
            raise UpstreamError()
        logger.info(f"Waiting list entry created for {email}")
        return WaitingListEntryResponse(**result.data[0])

    def get_my_entry(self, identity: IdentitySnapshot) -> Optional[WaitingListEntryResponse]:
        if not identity.email:
            return None
        row = self._find_by_email(identity.email.strip().lower())
        return WaitingListEntryResponse(**row) if row else None

    def list_entries(self, status: Optional[str] = None, page: int = 1, limit: int = 20) -> WaitingListPageResponse:
        start, end = page_bounds(page, limit)
        try:
            query = self.supabase.table("waiting_list").select("*", count="exact")
            if status and status != "all":
                query = query.eq("status", status)
            result = query.order("created_at", desc=True).range(start, end).execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching waiting list: {e}")
            raise UpstreamError()
        total = result.count if result.count is not None else len(result.data or [])
        return WaitingListPageResponse(
            entries=[WaitingListEntryResponse(**row) for row in (result.data or [])],
            **PageMeta.build(total, page, limit).model_dump(),
        )

    def update_status(self, entry_id: str, data: WaitingListStatusUpdate) -> WaitingListEntryResponse:
        update_data = {"status": data.status, "updated_at": datetime.now(timezone.utc).isoformat()}
        if data.notes is not None:
            update_data["notes"] = data.notes
        try:
            result = self.supabase.table("waiting_list")\
                .update(update_data)\
                .eq("id", entry_id)\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating waiting list entry {entry_id}: {e}")
            raise UpstreamError()
        if not result.data:
            raise NotFoundError("Waiting list entry not found")
        logger.info(f"Waiting list entry {entry_id} set to {data.status}")
        return WaitingListEntryResponse(**result.data[0])

    def _find_by_email(self, email: str):
        try:
            result = self.supabase.table("waiting_list")\
                .select("*")\
                .eq("email", email)\
                .maybe_single()\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error checking waiting list for {email}: {e}")
            raise UpstreamError()
        return first_row(result)
