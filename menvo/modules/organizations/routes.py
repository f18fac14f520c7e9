from fastapi import APIRouter, Depends, Query
from supabase import Client
from typing import List, Optional

from menvo.config.permissions_config import Permission
from menvo.core.dependencies import (
    get_current_identity, get_optional_identity, require_permission, require_onboarded_permission
)
from menvo.core.identity import IdentitySnapshot
from menvo.database.supabase_client import get_supabase
from menvo.modules.auth.lifecycle import LifecycleState
from menvo.modules.organizations.schemas import (
    InvitationAccept, MemberInvite, MemberResponse, OrganizationCreate,
    OrganizationListResponse, OrganizationResponse
)
from menvo.modules.organizations.service import OrganizationService

router = APIRouter(prefix="/organizations", tags=["organizations"])


def get_organization_service(supabase: Client = Depends(get_supabase)) -> OrganizationService:
    return OrganizationService(supabase)


@router.post("", response_model=OrganizationResponse, status_code=201)
async def create_organization(
    body: OrganizationCreate,
    state: LifecycleState = Depends(require_onboarded_permission(Permission.ORGANIZATIONS_CREATE)),
    service: OrganizationService = Depends(get_organization_service)
):
    """Register an organization; it stays pending until a platform admin approves it"""
    return service.create_organization(state.identity, body)


@router.get("", response_model=OrganizationListResponse)
async def list_organizations(
    type: Optional[str] = None,
    search: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    service: OrganizationService = Depends(get_organization_service)
):
    return service.list_organizations(type, search, page, limit)


@router.post("/invitations/accept", response_model=MemberResponse)
async def accept_invitation(
    body: InvitationAccept,
    identity: IdentitySnapshot = Depends(get_current_identity),
    service: OrganizationService = Depends(get_organization_service)
):
    return service.accept_invitation(identity, body)


@router.get("/{id_or_slug}", response_model=OrganizationResponse)
async def get_organization(
    id_or_slug: str,
    identity: Optional[IdentitySnapshot] = Depends(get_optional_identity),
    service: OrganizationService = Depends(get_organization_service)
):
    return service.get_organization(id_or_slug, identity)


@router.post("/{org_id}/approve", response_model=OrganizationResponse)
async def approve_organization(
    org_id: str,
    admin: IdentitySnapshot = Depends(require_permission(Permission.ORGANIZATIONS_APPROVE)),
    service: OrganizationService = Depends(get_organization_service)
):
    return service.approve_organization(admin, org_id)


@router.get("/{org_id}/members", response_model=List[MemberResponse])
async def list_members(
    org_id: str,
    identity: IdentitySnapshot = Depends(require_permission(Permission.ORGANIZATIONS_READ)),
    service: OrganizationService = Depends(get_organization_service)
):
    return service.list_members(identity, org_id)


@router.post("/{org_id}/members", response_model=MemberResponse, status_code=201)
async def invite_member(
    org_id: str,
    body: MemberInvite,
    identity: IdentitySnapshot = Depends(require_permission(Permission.ORGANIZATIONS_READ)),
    service: OrganizationService = Depends(get_organization_service)
):
    """Invite by email (organization admins only)"""
    return service.invite_member(identity, org_id, body)


@router.delete("/{org_id}/members/{member_id}", response_model=MemberResponse)
async def remove_member(
    org_id: str,
    member_id: str,
    identity: IdentitySnapshot = Depends(require_permission(Permission.ORGANIZATIONS_READ)),
    service: OrganizationService = Depends(get_organization_service)
):
    return service.remove_member(identity, org_id, member_id)
