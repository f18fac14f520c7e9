"""
Core dependencies for route protection, permission checking and onboarding gates
"""

from fastapi import Depends, Security
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from supabase import Client
from typing import Optional
import logging

from menvo.config.permissions_config import Permission, UserRole, has_permission
from menvo.core.errors import AuthError, ForbiddenError, UpstreamError
from menvo.core.identity import IdentitySnapshot
from menvo.database.supabase_client import get_supabase, get_service_supabase
from menvo.modules.auth.lifecycle import LifecycleStage, LifecycleState
from menvo.modules.auth.service import AuthService
from menvo.modules.profiles.service import ProfileService

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


def get_auth_service(
    supabase: Client = Depends(get_supabase),
    admin_client: Client = Depends(get_service_supabase),
) -> AuthService:
    return AuthService(supabase, admin_client)


def get_current_token(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security)
) -> str:
    """Extract JWT token from Authorization header"""
    if credentials is None or not credentials.credentials:
        raise AuthError("Not authenticated")
    return credentials.credentials


def get_current_identity(
    token: str = Depends(get_current_token),
    auth_service: AuthService = Depends(get_auth_service)
) -> IdentitySnapshot:
    """Identity snapshot for the bearer token"""
    return auth_service.get_current_identity(token)


def get_optional_identity(
    credentials: Optional[HTTPAuthorizationCredentials] = Security(security),
    auth_service: AuthService = Depends(get_auth_service)
) -> Optional[IdentitySnapshot]:
    """Identity for public endpoints that behave differently when signed in"""
    if credentials is None or not credentials.credentials:
        return None
    return auth_service.get_current_identity(credentials.credentials)


def require_permission(required_permission: Permission):
    """Factory function to create permission check dependency"""
    def check_permission(
        identity: IdentitySnapshot = Depends(get_current_identity),
    ) -> IdentitySnapshot:
        if not has_permission(identity.role, required_permission):
            raise ForbiddenError(
                f"Insufficient permissions. Required: {required_permission.value}"
            )
        return identity
    return check_permission


def require_admin(identity: IdentitySnapshot = Depends(get_current_identity)) -> IdentitySnapshot:
    if identity.role != UserRole.ADMIN:
        raise ForbiddenError("Admin access required")
    return identity


def get_lifecycle_state(
    identity: IdentitySnapshot = Depends(get_current_identity),
    supabase: Client = Depends(get_supabase),
) -> LifecycleState:
    """Resolve the onboarding stage; a failed profile fetch leaves the user at LOADING."""
    if identity.role is None:
        return LifecycleState.resolve(identity, None)
    try:
        profile = ProfileService(supabase).get_profile_row(identity.id)
    except UpstreamError:
        logger.warning(f"Profile fetch failed for {identity.id}; lifecycle held at loading")
        return LifecycleState.resolve(identity, None, profile_loaded=False)
    return LifecycleState.resolve(identity, profile)


def require_stage(*allowed: LifecycleStage):
    """Factory for routes that need the caller past specific onboarding gates"""
    def check_stage(state: LifecycleState = Depends(get_lifecycle_state)) -> LifecycleState:
        if state.stage == LifecycleStage.LOADING:
            raise UpstreamError()
        if state.stage not in allowed:
            raise ForbiddenError(
                "Finish onboarding before using this feature",
                extra={"stage": state.stage.value},
            )
        return state
    return check_stage


def require_onboarded_permission(required_permission: Permission):
    """Permission check plus onboarding gate (role picked and profile complete)"""
    check_onboarded = require_stage(LifecycleStage.NEEDS_VERIFICATION, LifecycleStage.READY)

    def check(
        identity: IdentitySnapshot = Depends(require_permission(required_permission)),
        supabase: Client = Depends(get_supabase),
    ) -> LifecycleState:
        return check_onboarded(get_lifecycle_state(identity, supabase))
    return check
