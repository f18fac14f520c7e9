"""
Immutable view of the signed-in user as the identity provider reports it.

The role claim lives in app_metadata (server-controlled, users cannot edit it).
A snapshot is never patched: after any call that mutates the identity, a new
snapshot is fetched and replaces the old one.
"""

from datetime import datetime
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field

from menvo.config.permissions_config import UserRole, parse_role
from menvo.core.errors import AuthError


class IdentitySnapshot(BaseModel):
    model_config = ConfigDict(frozen=True)

    id: str
    email: Optional[str] = None
    role: Optional[UserRole] = None
    app_metadata: Dict[str, Any] = Field(default_factory=dict)
    user_metadata: Dict[str, Any] = Field(default_factory=dict)
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_admin(self) -> bool:
        return self.role == UserRole.ADMIN

    @classmethod
    def from_user(cls, user) -> "IdentitySnapshot":
        """Build from a supabase auth User object."""
        app_metadata = dict(user.app_metadata or {})
        return cls(
            id=user.id,
            email=user.email,
            role=role_from_claims(app_metadata),
            app_metadata=app_metadata,
            user_metadata=dict(user.user_metadata or {}),
            created_at=user.created_at,
            updated_at=getattr(user, "updated_at", None),
        )


def role_from_claims(app_metadata: Dict[str, Any]) -> Optional[UserRole]:
    raw = app_metadata.get("role")
    if raw in (None, ""):
        return None
    try:
        return parse_role(raw)
    except ValueError:
        raise AuthError(f"Unrecognized role claim: {raw}")
