from fastapi import APIRouter, Depends
from supabase import Client

from menvo.config.permissions_config import Permission
from menvo.core.dependencies import get_current_identity, require_permission
from menvo.core.identity import IdentitySnapshot
from menvo.database.supabase_client import get_supabase
from menvo.modules.auth.guard import build_gate_view
from menvo.modules.auth.lifecycle import LifecycleState
from menvo.modules.profiles.schemas import (
    ProfileCompletionRequest, ProfileCompletionResponse, ProfileUpdate, ProfileResponse,
    PublicProfileResponse, ProfileStatusUpdate
)
from menvo.modules.profiles.service import ProfileService

router = APIRouter(prefix="/profiles", tags=["profiles"])


def get_profile_service(supabase: Client = Depends(get_supabase)) -> ProfileService:
    return ProfileService(supabase)


@router.get("/me", response_model=ProfileResponse)
async def get_my_profile(
    identity: IdentitySnapshot = Depends(get_current_identity),
    service: ProfileService = Depends(get_profile_service)
):
    return service.get_profile(identity.id)


@router.post("/me/complete", response_model=ProfileCompletionResponse)
async def complete_profile(
    body: ProfileCompletionRequest,
    identity: IdentitySnapshot = Depends(get_current_identity),
    service: ProfileService = Depends(get_profile_service)
):
    """Submit the profile-completion modal. Mentors then wait for verification."""
    row = service.complete_profile(identity, body)
    state = LifecycleState.resolve(identity, row)
    return ProfileCompletionResponse(
        profile=ProfileResponse(**row),
        stage=state.stage,
        gate=build_gate_view(state, refresh_required=True),
    )


@router.patch("/me", response_model=ProfileResponse)
async def update_my_profile(
    body: ProfileUpdate,
    identity: IdentitySnapshot = Depends(require_permission(Permission.PROFILES_UPDATE)),
    service: ProfileService = Depends(get_profile_service)
):
    return ProfileResponse(**service.update_profile(identity, body))


@router.get("/{user_id}", response_model=PublicProfileResponse)
async def get_public_profile(
    user_id: str,
    service: ProfileService = Depends(get_profile_service)
):
    """Public profile card"""
    return service.get_public_profile(user_id)


@router.put("/{user_id}/status", response_model=ProfileResponse)
async def set_profile_status(
    user_id: str,
    body: ProfileStatusUpdate,
    admin: IdentitySnapshot = Depends(require_permission(Permission.PROFILES_MANAGE)),
    service: ProfileService = Depends(get_profile_service)
):
    """Suspend, deactivate or reactivate a profile (admin). Profiles are never hard-deleted."""
    return ProfileResponse(**service.set_status(user_id, body.status))
