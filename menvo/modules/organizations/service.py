from supabase import Client
from fastapi import HTTPException
from postgrest.exceptions import APIError
from typing import Any, Dict, List, Optional
from datetime import datetime, timezone
import re
import uuid
import logging

from menvo.config.permissions_config import Permission, has_permission
from menvo.core.errors import (
    ConflictError, ForbiddenError, NotFoundError, UpstreamError, ValidationError
)
from menvo.core.identity import IdentitySnapshot
from menvo.core.pagination import PageMeta, page_bounds
from menvo.database.supabase_client import UNIQUE_VIOLATION, first_row
from menvo.modules.availability.slots import parse_datetime
from menvo.modules.organizations.schemas import (
    InvitationAccept, MemberInvite, MemberResponse, OrganizationCreate,
    OrganizationListResponse, OrganizationResponse
)

logger = logging.getLogger(__name__)


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def slugify(name: str) -> str:
    return re.sub(r"[^a-z0-9]+", "-", name.lower()).strip("-")


def _is_uuid(value: str) -> bool:
    try:
        uuid.UUID(value)
        return True
    except ValueError:
        return False


class OrganizationService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def create_organization(self, identity: IdentitySnapshot, data: OrganizationCreate) -> OrganizationResponse:
        """New organizations wait for platform approval; the creator becomes their admin."""
        slug = slugify(data.name)
        if not slug:
            raise ValidationError("Name must contain letters or digits", field="name")
        if self._find_by("slug", slug):
            raise ConflictError("An organization with this name already exists", field="name")

        try:
            result = self.supabase.table("organizations").insert({
                **data.model_dump(),
                "slug": slug,
                "status": "pending_approval",
                "created_by": identity.id,
                "created_at": _now(),
            }).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                raise ConflictError("An organization with this name already exists", field="name")
            logger.error(f"Error creating organization {slug}: {e}")
            raise UpstreamError()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating organization {slug}: {e}")
            raise UpstreamError()
        if not result.data:
            raise UpstreamError()
        organization = result.data[0]

        now = _now()
        try:
            self.supabase.table("organization_members").insert({
                "organization_id": organization["id"],
                "user_id": identity.id,
                "email": identity.email,
                "role": "admin",
                "status": "active",
                "invited_at": now,
                "activated_at": now,
            }).execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error adding creator to organization {organization['id']}: {e}")
            self._discard_organization(organization["id"])
            raise UpstreamError()

        self._log_activity(organization["id"], "organization_created", identity.id)
        logger.info(f"Organization {slug} created by {identity.id}, pending approval")
        return OrganizationResponse(**organization)

    def list_organizations(
        self,
        org_type: Optional[str] = None,
        search: Optional[str] = None,
        page: int = 1,
        limit: int = 20,
    ) -> OrganizationListResponse:
        start, end = page_bounds(page, limit)
        try:
            query = self.supabase.table("organizations")\
                .select("*", count="exact")\
                .eq("status", "active")
            if org_type:
                query = query.eq("type", org_type)
            if search and search.strip():
                query = query.ilike("name", f"%{search.strip()}%")
            result = query.order("created_at", desc=True).range(start, end).execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing organizations: {e}")
            raise UpstreamError()
        total = result.count if result.count is not None else len(result.data or [])
        return OrganizationListResponse(
            organizations=[OrganizationResponse(**row) for row in (result.data or [])],
            **PageMeta.build(total, page, limit).model_dump(),
        )

    def get_organization(self, id_or_slug: str, identity: Optional[IdentitySnapshot] = None) -> OrganizationResponse:
        """Active organizations are public; others only to their members and platform admins."""
        column = "id" if _is_uuid(id_or_slug) else "slug"
        row = self._find_by(column, id_or_slug)
        if not row:
            raise NotFoundError("Organization not found")
        if row["status"] != "active":
            allowed = identity is not None and (
                identity.is_admin or self._membership(row["id"], identity.id) is not None
            )
            if not allowed:
                raise NotFoundError("Organization not found")
        return OrganizationResponse(**row)

    def approve_organization(self, admin: IdentitySnapshot, org_id: str) -> OrganizationResponse:
        row = self._find_by("id", org_id)
        if not row:
            raise NotFoundError("Organization not found")
        if row["status"] != "pending_approval":
            raise ConflictError(
                f"Organization is {row['status']}, only pending organizations can be approved",
                extra={"status": row["status"]},
            )
        now = _now()
        try:
            result = self.supabase.table("organizations")\
                .update({"status": "active", "approved_at": now, "approved_by": admin.id, "updated_at": now})\
                .eq("id", org_id)\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error approving organization {org_id}: {e}")
            raise UpstreamError()
        if not result.data:
            raise NotFoundError("Organization not found")
        self._log_activity(org_id, "organization_approved", admin.id)
        logger.info(f"Organization {org_id} approved by {admin.id}")
        return OrganizationResponse(**result.data[0])

    def list_members(self, identity: IdentitySnapshot, org_id: str) -> List[MemberResponse]:
        self._require_org_admin(identity, org_id)
        try:
            result = self.supabase.table("organization_members")\
                .select("*")\
                .eq("organization_id", org_id)\
                .order("invited_at", desc=True)\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing members of organization {org_id}: {e}")
            raise UpstreamError()
        return [MemberResponse(**row) for row in (result.data or [])]

    def invite_member(self, identity: IdentitySnapshot, org_id: str, data: MemberInvite) -> MemberResponse:
        self._require_org_admin(identity, org_id)
        org = self._find_by("id", org_id)
        if not org or org["status"] != "active":
            raise ValidationError("Organization is not active", field="organization_id")

        email = data.email.strip().lower()
        try:
            existing = self.supabase.table("organization_members")\
                .select("id, status")\
                .eq("organization_id", org_id)\
                .eq("email", email)\
                .in_("status", ["invited", "active"])\
                .execute()
            profile = self.supabase.table("profiles")\
                .select("id")\
                .eq("email", email)\
                .maybe_single()\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error checking membership for organization {org_id}: {e}")
            raise UpstreamError()
        if existing.data:
            current = existing.data[0]["status"]
            raise ConflictError(
                "User is already a member" if current == "active" else "User already has a pending invitation",
                field="email",
                extra={"status": current},
            )

        target = first_row(profile)
        row = {
            "organization_id": org_id,
            "user_id": target["id"] if target else None,
            "email": email,
            "role": data.role,
            "status": "invited",
            "invitation_token": uuid.uuid4().hex,
            "invited_by": identity.id,
            "invited_at": _now(),
            "expires_at": parse_datetime(data.expires_at).astimezone(timezone.utc).isoformat() if data.expires_at else None,
        }
        try:
            result = self.supabase.table("organization_members").insert(row).execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error inviting {email} to organization {org_id}: {e}")
            raise UpstreamError()
        if not result.data:
            raise UpstreamError()
        self._log_activity(org_id, "member_invited", identity.id, target_id=row["user_id"], metadata={"role": data.role})
        logger.info(f"{email} invited to organization {org_id} as {data.role}")
        return MemberResponse(**result.data[0])

    def accept_invitation(self, identity: IdentitySnapshot, data: InvitationAccept) -> MemberResponse:
        try:
            result = self.supabase.table("organization_members")\
                .select("*")\
                .eq("invitation_token", data.token)\
                .maybe_single()\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching invitation: {e}")
            raise UpstreamError()
        invitation = first_row(result)
        if not invitation:
            raise NotFoundError("Invitation not found")
        if (invitation.get("email") or "").lower() != (identity.email or "").lower():
            raise ForbiddenError("This invitation was sent to a different email")
        if invitation["status"] != "invited":
            raise ConflictError(f"Invitation is {invitation['status']}", extra={"status": invitation["status"]})
        expires_at = invitation.get("expires_at")
        if expires_at and parse_datetime(expires_at) <= datetime.now(timezone.utc):
            raise ConflictError("Invitation has expired", extra={"status": "expired"})

        updated = self._update_member(invitation["id"], {
            "user_id": identity.id,
            "status": "active",
            "activated_at": _now(),
        })
        self._log_activity(invitation["organization_id"], "member_joined", identity.id)
        return MemberResponse(**updated)

    def remove_member(self, identity: IdentitySnapshot, org_id: str, member_id: str) -> MemberResponse:
        """Soft removal; an organization must keep at least one active admin."""
        self._require_org_admin(identity, org_id)
        try:
            result = self.supabase.table("organization_members")\
                .select("*")\
                .eq("id", member_id)\
                .eq("organization_id", org_id)\
                .maybe_single()\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching member {member_id}: {e}")
            raise UpstreamError()
        member = first_row(result)
        if not member:
            raise NotFoundError("Member not found")
        if member["status"] not in ("invited", "active"):
            raise ConflictError(f"Member is already {member['status']}", extra={"status": member["status"]})
        if member["role"] == "admin" and member["status"] == "active" and self._active_admin_count(org_id) <= 1:
            raise ConflictError("An organization needs at least one active admin")

        new_status = "cancelled" if member["status"] == "invited" else "left"
        updated = self._update_member(member_id, {"status": new_status})
        self._log_activity(org_id, "member_left", identity.id, target_id=member.get("user_id"))
        logger.info(f"Member {member_id} of organization {org_id} set to {new_status} by {identity.id}")
        return MemberResponse(**updated)

    def _find_by(self, column: str, value: str) -> Optional[Dict[str, Any]]:
        try:
            result = self.supabase.table("organizations")\
                .select("*")\
                .eq(column, value)\
                .maybe_single()\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching organization by {column}={value}: {e}")
            raise UpstreamError()
        return first_row(result)

    def _discard_organization(self, org_id: str) -> None:
        """Drop an organization row that never got its admin, freeing the slug."""
        try:
            self.supabase.table("organizations").delete().eq("id", org_id).execute()
        except Exception as e:
            logger.error(f"Error discarding organization {org_id}: {e}")

    def _membership(self, org_id: str, user_id: str) -> Optional[Dict[str, Any]]:
        try:
            result = self.supabase.table("organization_members")\
                .select("*")\
                .eq("organization_id", org_id)\
                .eq("user_id", user_id)\
                .eq("status", "active")\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching membership of {user_id} in {org_id}: {e}")
            raise UpstreamError()
        return result.data[0] if result.data else None

    def _require_org_admin(self, identity: IdentitySnapshot, org_id: str) -> None:
        if has_permission(identity.role, Permission.ORGANIZATIONS_MANAGE_MEMBERS):
            return
        membership = self._membership(org_id, identity.id)
        if not membership or membership["role"] != "admin":
            raise ForbiddenError("Organization admin access required")

    def _active_admin_count(self, org_id: str) -> int:
        try:
            result = self.supabase.table("organization_members")\
                .select("id")\
                .eq("organization_id", org_id)\
                .eq("role", "admin")\
                .eq("status", "active")\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error counting admins of organization {org_id}: {e}")
            raise UpstreamError()
        return len(result.data or [])

    def _update_member(self, member_id: str, update_data: Dict[str, Any]) -> Dict[str, Any]:
        try:
            result = self.supabase.table("organization_members")\
                .update({**update_data, "updated_at": _now()})\
                .eq("id", member_id)\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating member {member_id}: {e}")
            raise UpstreamError()
        if not result.data:
            raise NotFoundError("Member not found")
        return result.data[0]

    def _log_activity(self, org_id: str, activity_type: str, actor_id: str,
                      target_id: Optional[str] = None, metadata: Optional[Dict[str, Any]] = None) -> None:
        try:
            self.supabase.table("organization_activity_log").insert({
                "organization_id": org_id,
                "activity_type": activity_type,
                "actor_id": actor_id,
                "target_id": target_id,
                "metadata": metadata or {},
                "created_at": _now(),
            }).execute()
        except Exception as e:
            logger.error(f"Error logging {activity_type} for organization {org_id}: {e}")
