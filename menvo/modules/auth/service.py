import hashlib
import logging
import threading
import time
from supabase import Client
from fastapi import HTTPException
from typing import Dict, Optional

from menvo.config.permissions_config import SELF_SELECTABLE_ROLES, UserRole
from menvo.core.errors import (
    AuthError, ConflictError, NotFoundError, UpstreamError, ValidationError
)
from menvo.core.identity import IdentitySnapshot
from menvo.modules.auth.schemas import LoginRequest, RegisterRequest, TokenResponse, RegisterResponse
from menvo.modules.profiles.service import ProfileService

logger = logging.getLogger(__name__)

# In-memory cache for token lookups to reduce Supabase auth calls (e.g. many parallel requests with same token)
_AUTH_USER_CACHE: Dict[str, tuple] = {}
_AUTH_CACHE_TTL_SEC = 60
_AUTH_CACHE_MAX_SIZE = 500
# Request handlers run in a threadpool; every cache access goes through this lock
_AUTH_CACHE_LOCK = threading.Lock()


def invalidate_cached_identity(user_id: str) -> None:
    """Drop every cached snapshot of this user so the next request sees fresh claims."""
    with _AUTH_CACHE_LOCK:
        stale = [key for key, (snapshot, _) in _AUTH_USER_CACHE.items() if snapshot.id == user_id]
        for key in stale:
            _AUTH_USER_CACHE.pop(key, None)


def clear_identity_cache() -> None:
    with _AUTH_CACHE_LOCK:
        _AUTH_USER_CACHE.clear()


class AuthService:
    def __init__(self, supabase: Client, admin_client: Optional[Client] = None):
        self.supabase = supabase
        self.admin_client = admin_client or supabase

    def register(self, register_data: RegisterRequest) -> RegisterResponse:
        """Register a new user using Supabase Auth. The role is picked later, after first login."""
        try:
            user_metadata = {}
            if register_data.full_name:
                user_metadata["full_name"] = register_data.full_name

            auth_response = self.supabase.auth.sign_up({
                "email": register_data.email,
                "password": register_data.password,
                "options": {
                    "data": user_metadata
                }
            })

            if not auth_response.user:
                raise UpstreamError("Failed to register user")

            return RegisterResponse(
                user_id=auth_response.user.id,
                email=auth_response.user.email or register_data.email,
                message="User registered successfully"
            )
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "already registered" in error_message.lower() or "already exists" in error_message.lower():
                raise ConflictError("User already exists", field="email")
            logger.error(f"Registration failed: {error_message}")
            raise UpstreamError()

    def login(self, login_data: LoginRequest) -> TokenResponse:
        """Authenticate user using Supabase Auth"""
        try:
            auth_response = self.supabase.auth.sign_in_with_password({
                "email": login_data.email,
                "password": login_data.password
            })
            if not auth_response.user or not auth_response.session:
                raise AuthError("Invalid credentials")
            return self._token_response(auth_response, login_data.email)
        except HTTPException:
            raise
        except Exception as e:
            error_message = str(e)
            if "invalid" in error_message.lower() or "credentials" in error_message.lower():
                raise AuthError("Invalid email or password")
            logger.error(f"Login failed: {error_message}")
            raise UpstreamError()

    def refresh(self, refresh_token: str) -> TokenResponse:
        """Exchange a refresh token for a new pair; the new access token carries the current claims."""
        try:
            auth_response = self.supabase.auth.refresh_session(refresh_token)
            if not auth_response.user or not auth_response.session:
                raise AuthError("Invalid or expired refresh token")
            invalidate_cached_identity(auth_response.user.id)
            return self._token_response(auth_response, auth_response.user.email or "")
        except HTTPException:
            raise
        except Exception as e:
            logger.warning(f"Token refresh failed: {e}")
            raise AuthError("Invalid or expired refresh token")

    def get_current_identity(self, token: str) -> IdentitySnapshot:
        """Resolve a bearer token to an identity snapshot. Uses short TTL cache to reduce auth API calls."""
        try:
            cache_key = hashlib.sha256(token.encode()).hexdigest()
            now = time.monotonic()
            with _AUTH_CACHE_LOCK:
                cached = _AUTH_USER_CACHE.get(cache_key)
                if cached is not None:
                    snapshot, expiry = cached
                    if now < expiry:
                        return snapshot
                    del _AUTH_USER_CACHE[cache_key]
            user_response = self.supabase.auth.get_user(jwt=token)
            if not user_response or not user_response.user:
                raise AuthError("Invalid or expired token")
            snapshot = IdentitySnapshot.from_user(user_response.user)
            with _AUTH_CACHE_LOCK:
                if len(_AUTH_USER_CACHE) < _AUTH_CACHE_MAX_SIZE:
                    _AUTH_USER_CACHE[cache_key] = (snapshot, now + _AUTH_CACHE_TTL_SEC)
            return snapshot
        except HTTPException:
            raise
        except Exception as e:
            error_msg = str(e)
            if "JWT" in error_msg or "expired" in error_msg.lower() or "invalid" in error_msg.lower():
                raise AuthError("Invalid or expired token")
            raise AuthError("Authentication failed")

    def fetch_identity(self, user_id: str) -> IdentitySnapshot:
        """Fresh snapshot straight from the admin API, bypassing the token cache."""
        try:
            response = self.admin_client.auth.admin.get_user_by_id(user_id)
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to fetch identity {user_id}: {e}")
            raise UpstreamError()
        if not response or not response.user:
            raise NotFoundError("User not found")
        return IdentitySnapshot.from_user(response.user)

    def logout(self, token: str) -> bool:
        """Logout user using Supabase Auth"""
        try:
            # Supabase Auth tokens are stateless JWTs, so logout is mainly client-side
            self.supabase.auth.sign_out()
            return True
        except Exception as e:
            logger.warning(f"Sign out failed: {e}")
            return False
        finally:
            with _AUTH_CACHE_LOCK:
                _AUTH_USER_CACHE.pop(hashlib.sha256(token.encode()).hexdigest(), None)

    def select_role(self, identity: IdentitySnapshot, role: UserRole) -> IdentitySnapshot:
        """Self-service role pick from the role-selection modal; only while no role is set."""
        if role not in SELF_SELECTABLE_ROLES:
            allowed = ", ".join(r.value for r in SELF_SELECTABLE_ROLES)
            raise ValidationError(f"Invalid role. Must be one of: {allowed}", field="role")
        if identity.role is not None:
            raise ConflictError("Role already selected", extra={"role": identity.role.value})
        return self.set_role(identity.id, role)

    def set_role(self, user_id: str, role: UserRole) -> IdentitySnapshot:
        """Write the role claim (service role key) and return the replacement snapshot."""
        current = self.fetch_identity(user_id)
        app_metadata = {**current.app_metadata, "role": role.value}
        try:
            response = self.admin_client.auth.admin.update_user_by_id(
                user_id,
                {"app_metadata": app_metadata}
            )
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Failed to update role claim for {user_id}: {e}")
            raise UpstreamError()
        if not response or not response.user:
            raise NotFoundError("User not found")

        invalidate_cached_identity(user_id)
        ProfileService(self.supabase).sync_role(user_id, role)
        logger.info(f"Role for user {user_id} set to {role.value}")
        return self.fetch_identity(user_id)

    @staticmethod
    def _token_response(auth_response, email: str) -> TokenResponse:
        return TokenResponse(
            access_token=auth_response.session.access_token,
            refresh_token=auth_response.session.refresh_token,
            token_type="bearer",
            user_id=auth_response.user.id,
            email=auth_response.user.email or email
        )
