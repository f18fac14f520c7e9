from supabase import Client
from fastapi import HTTPException
from typing import Any, Dict, Optional
from datetime import datetime, timezone
import logging

from menvo.config.permissions_config import UserRole
from menvo.core.errors import NotFoundError, UpstreamError, ValidationError
from menvo.core.identity import IdentitySnapshot
from menvo.database.supabase_client import first_row
from menvo.modules.profiles.requirements import missing_required_fields, is_profile_complete
from menvo.modules.profiles.schemas import (
    ProfileCompletionRequest, ProfileUpdate, ProfileResponse, PublicProfileResponse
)

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


class ProfileService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def get_profile_row(self, user_id: str) -> Optional[Dict[str, Any]]:
        """Raw profile row or None when the user has not completed onboarding yet."""
        try:
            result = self.supabase.table("profiles")\
                .select("*")\
                .eq("id", user_id)\
                .maybe_single()\
                .execute()
            return first_row(result)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching profile {user_id}: {e}")
            raise UpstreamError()

    def get_profile(self, user_id: str) -> ProfileResponse:
        row = self.get_profile_row(user_id)
        if not row:
            raise NotFoundError("Profile not found")
        return ProfileResponse(**row)

    def get_public_profile(self, user_id: str) -> PublicProfileResponse:
        row = self.get_profile_row(user_id)
        if not row or row.get("status", "active") != "active":
            raise NotFoundError("Profile not found")
        return PublicProfileResponse.from_row(row)

    def complete_profile(self, identity: IdentitySnapshot, data: ProfileCompletionRequest) -> Dict[str, Any]:
        """Create the profile row on first submission, or fill in an existing one."""
        if identity.role is None:
            raise ValidationError("Select a role before completing your profile", field="role")
        existing = self.get_profile_row(identity.id) or {}
        fields = data.model_dump(exclude_none=True)
        merged = {**existing, **fields}
        missing = missing_required_fields(identity.role, merged)
        if missing:
            raise ValidationError(
                f"Missing required fields: {', '.join(missing)}",
                field=missing[0],
                extra={"missing_fields": missing},
            )
        row = {
            **fields,
            "id": identity.id,
            "email": identity.email,
            "role": identity.role.value,
            "is_profile_complete": True,
            "status": existing.get("status", "active"),
            "updated_at": _now(),
        }
        if not existing:
            row["created_at"] = row["updated_at"]
        try:
            result = self.supabase.table("profiles").upsert(row).execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error completing profile {identity.id}: {e}")
            raise UpstreamError()
        if not result.data:
            raise UpstreamError()
        logger.info(f"Profile completed for user {identity.id} as {identity.role.value}")
        return result.data[0]

    def update_profile(self, identity: IdentitySnapshot, data: ProfileUpdate) -> Dict[str, Any]:
        """Partial update; completeness is recomputed, verification and role are never user-writable."""
        existing = self.get_profile_row(identity.id)
        if not existing:
            raise NotFoundError("Profile not found, complete your profile first")
        fields = data.model_dump(exclude_unset=True)
        merged = {**existing, **fields}
        update_data = {
            **fields,
            "is_profile_complete": is_profile_complete(identity.role, merged),
            "updated_at": _now(),
        }
        return self._update(identity.id, update_data)

    def sync_role(self, user_id: str, role: UserRole) -> Optional[Dict[str, Any]]:
        """Mirror a role change onto an existing profile row; no row is created here."""
        existing = self.get_profile_row(user_id)
        if not existing:
            return None
        merged = {**existing, "role": role.value}
        return self._update(user_id, {
            "role": role.value,
            "is_profile_complete": is_profile_complete(role, merged),
            "updated_at": _now(),
        })

    def set_status(self, user_id: str, status: str) -> Dict[str, Any]:
        if not self.get_profile_row(user_id):
            raise NotFoundError("Profile not found")
        logger.info(f"Profile {user_id} status set to {status}")
        return self._update(user_id, {"status": status, "updated_at": _now()})

    def set_verified(self, user_id: str, verified: bool) -> Dict[str, Any]:
        return self._update(user_id, {
            "verified_at": _now() if verified else None,
            "updated_at": _now(),
        })

    def set_cv_url(self, user_id: str, cv_url: Optional[str]) -> None:
        if self.get_profile_row(user_id):
            self._update(user_id, {"cv_url": cv_url, "updated_at": _now()})

    def _update(self, user_id: str, update_data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            result = self.supabase.table("profiles")\
                .update(update_data)\
                .eq("id", user_id)\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating profile {user_id}: {e}")
            raise UpstreamError()
        if not result.data:
            raise NotFoundError("Profile not found")
        return result.data[0]
