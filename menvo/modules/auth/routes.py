from fastapi import APIRouter, Depends
from supabase import Client

from menvo.config.permissions_config import Permission, get_permission_matrix, permissions_for
from menvo.core.dependencies import (
    get_auth_service, get_current_identity, get_current_token, get_lifecycle_state, require_permission
)
from menvo.core.identity import IdentitySnapshot
from menvo.database.supabase_client import get_supabase
from menvo.modules.auth.guard import GateView, build_gate_view
from menvo.modules.auth.lifecycle import LifecycleState
from menvo.modules.auth.schemas import (
    LoginRequest, RegisterRequest, TokenResponse, RegisterResponse, RefreshRequest,
    SelectRoleRequest, RoleUpdateResponse, MeResponse
)
from menvo.modules.auth.service import AuthService
from menvo.modules.profiles.service import ProfileService

router = APIRouter(prefix="/auth", tags=["auth"])


def _role_update_response(snapshot: IdentitySnapshot, supabase: Client) -> RoleUpdateResponse:
    profile = ProfileService(supabase).get_profile_row(snapshot.id)
    state = LifecycleState.resolve(snapshot, profile)
    return RoleUpdateResponse(
        user_id=snapshot.id,
        role=snapshot.role,
        stage=state.stage,
        gate=build_gate_view(state, refresh_required=True),
    )


@router.post("/register", response_model=RegisterResponse, status_code=201)
async def register(
    register_data: RegisterRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Register a new user"""
    return service.register(register_data)


@router.post("/login", response_model=TokenResponse)
async def login(
    login_data: LoginRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Login and get access + refresh tokens"""
    return service.login(login_data)


@router.post("/refresh", response_model=TokenResponse)
async def refresh(
    body: RefreshRequest,
    service: AuthService = Depends(get_auth_service)
):
    """Refresh the token pair; required after a role change so the new claim reaches the token"""
    return service.refresh(body.refresh_token)


@router.post("/logout", status_code=200)
async def logout(
    token: str = Depends(get_current_token),
    service: AuthService = Depends(get_auth_service)
):
    """Logout and invalidate token"""
    service.logout(token)
    return {"message": "Logged out successfully"}


@router.get("/me", response_model=MeResponse)
async def get_me(
    state: LifecycleState = Depends(get_lifecycle_state),
):
    """Current identity, its permissions and onboarding stage"""
    identity = state.identity
    permissions = sorted(p.value for p in permissions_for(identity.role)) if identity.role else []
    return MeResponse(
        id=identity.id,
        email=identity.email,
        role=identity.role,
        user_metadata=identity.user_metadata,
        permissions=permissions,
        stage=state.stage,
    )


@router.get("/gate", response_model=GateView)
async def get_gate(
    banner_dismissed: bool = False,
    state: LifecycleState = Depends(get_lifecycle_state),
):
    """Overlay the client must render on top of the page for the current user"""
    return build_gate_view(state, banner_dismissed=banner_dismissed)


@router.post("/select-role", response_model=RoleUpdateResponse)
async def select_role(
    body: SelectRoleRequest,
    identity: IdentitySnapshot = Depends(get_current_identity),
    service: AuthService = Depends(get_auth_service),
    supabase: Client = Depends(get_supabase),
):
    """Pick mentor or mentee. The client must refresh its token afterwards."""
    snapshot = service.select_role(identity, body.role)
    return _role_update_response(snapshot, supabase)


@router.put("/users/{user_id}/role", response_model=RoleUpdateResponse)
async def assign_role(
    user_id: str,
    body: SelectRoleRequest,
    admin: IdentitySnapshot = Depends(require_permission(Permission.USERS_ASSIGN_ROLE)),
    service: AuthService = Depends(get_auth_service),
    supabase: Client = Depends(get_supabase),
):
    """Set any role for a user (admin)"""
    snapshot = service.set_role(user_id, body.role)
    return _role_update_response(snapshot, supabase)


@router.get("/permissions")
async def get_permissions(
    identity: IdentitySnapshot = Depends(get_current_identity),
):
    """Role -> permission table, for rendering what each role can do"""
    return get_permission_matrix()
