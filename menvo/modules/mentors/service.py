from supabase import Client
from fastapi import HTTPException
from typing import List, Optional
from datetime import datetime, timezone
import re
import logging

from menvo.config.permissions_config import UserRole
from menvo.core.errors import NotFoundError, UpstreamError, ValidationError
from menvo.core.identity import IdentitySnapshot
from menvo.core.pagination import PageMeta, page_bounds
from menvo.modules.mentors.schemas import MentorSearchResponse, MentorVerificationResponse
from menvo.modules.profiles.schemas import PublicProfileResponse
from menvo.modules.profiles.service import ProfileService

logger = logging.getLogger(__name__)

SEARCH_COLUMNS = ("full_name", "first_name", "last_name", "bio", "current_position", "current_company")

# Characters with meaning inside a PostgREST or=() expression
_FILTER_RESERVED = re.compile(r"[,()%*\\]")


def _search_filter(term: str) -> Optional[str]:
    term = _FILTER_RESERVED.sub(" ", term).strip()
    if not term:
        return None
    return ",".join(f"{column}.ilike.%{term}%" for column in SEARCH_COLUMNS)


class MentorService:
    def __init__(self, supabase: Client):
        self.supabase = supabase
        self.profiles = ProfileService(supabase)

    def search_mentors(
        self,
        search: Optional[str] = None,
        skills: Optional[List[str]] = None,
        languages: Optional[List[str]] = None,
        city: Optional[str] = None,
        country: Optional[str] = None,
        page: int = 1,
        limit: int = 12,
    ) -> MentorSearchResponse:
        """Verified mentors with complete profiles, filtered and paginated"""
        start, end = page_bounds(page, limit)
        try:
            query = self.supabase.table("profiles")\
                .select("*", count="exact")\
                .eq("role", UserRole.MENTOR.value)\
                .eq("is_profile_complete", True)\
                .eq("status", "active")\
                .not_.is_("verified_at", "null")
            or_filter = _search_filter(search or "")
            if or_filter:
                query = query.or_(or_filter)
            if skills:
                query = query.overlaps("expertise_areas", skills)
            if languages:
                query = query.overlaps("languages", languages)
            if city:
                query = query.ilike("city", f"%{city.strip()}%")
            if country:
                query = query.ilike("country", f"%{country.strip()}%")
            result = query.order("first_name").order("full_name").range(start, end).execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error searching mentors: {e}")
            raise UpstreamError()

        total = result.count if result.count is not None else len(result.data or [])
        meta = PageMeta.build(total, page, limit)
        return MentorSearchResponse(
            mentors=[PublicProfileResponse.from_row(row) for row in (result.data or [])],
            **meta.model_dump(),
        )

    def get_mentor(self, mentor_id: str) -> PublicProfileResponse:
        row = self.profiles.get_profile_row(mentor_id)
        if not row or row.get("role") != UserRole.MENTOR.value or row.get("status", "active") != "active":
            raise NotFoundError("Mentor not found")
        return PublicProfileResponse.from_row(row)

    def list_pending_verification(self) -> List[PublicProfileResponse]:
        """Complete mentor profiles still waiting for an admin to verify them"""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("role", UserRole.MENTOR.value)\
                .eq("is_profile_complete", True)\
                .is_("verified_at", "null")\
                .order("created_at")\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching mentors pending verification: {e}")
            raise UpstreamError()
        return [PublicProfileResponse.from_row(row) for row in (result.data or [])]

    def verify_mentor(
        self,
        admin: IdentitySnapshot,
        mentor_id: str,
        verified: bool,
        notes: Optional[str] = None,
    ) -> MentorVerificationResponse:
        row = self.profiles.get_profile_row(mentor_id)
        if not row:
            raise NotFoundError("Mentor not found")
        if row.get("role") != UserRole.MENTOR.value:
            raise ValidationError("User is not a mentor", field="mentor_id")

        updated = self.profiles.set_verified(mentor_id, verified)
        action = "verified" if verified else "unverified"
        logger.info(f"Mentor {mentor_id} {action} by admin {admin.id}")

        try:
            self.supabase.table("verification_logs").insert({
                "mentor_id": mentor_id,
                "admin_id": admin.id,
                "action": action,
                "notes": notes,
                "created_at": datetime.now(timezone.utc).isoformat(),
            }).execute()
        except Exception as e:
            # Audit trail only; the verification itself already succeeded
            logger.error(f"Error logging verification action for mentor {mentor_id}: {e}")

        return MentorVerificationResponse(
            mentor_id=mentor_id,
            verified=verified,
            verified_at=updated.get("verified_at"),
            message=f"Mentor {action} successfully",
        )
