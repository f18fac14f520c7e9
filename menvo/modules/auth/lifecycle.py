"""
Onboarding lifecycle of a user: which gate (if any) stands between them and the app.

Stages are checked in a fixed priority order and exactly one is returned:
LOADING > NEEDS_ROLE_SELECTION > NEEDS_PROFILE_COMPLETION > NEEDS_VERIFICATION > READY.
A profile that could not be fetched keeps the user at LOADING (fail closed).
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Dict, Optional

from menvo.config.permissions_config import UserRole
from menvo.core.identity import IdentitySnapshot


class LifecycleStage(str, Enum):
    LOADING = "loading"
    NEEDS_ROLE_SELECTION = "needs_role_selection"
    NEEDS_PROFILE_COMPLETION = "needs_profile_completion"
    NEEDS_VERIFICATION = "needs_verification"
    READY = "ready"


# Stages at which the user may use the app (verification is a banner, not a block)
ONBOARDED_STAGES = (LifecycleStage.NEEDS_VERIFICATION, LifecycleStage.READY)


def resolve_stage(
    identity: Optional[IdentitySnapshot],
    profile: Optional[Dict[str, Any]],
    profile_loaded: bool = True,
) -> LifecycleStage:
    if identity is None or not profile_loaded:
        return LifecycleStage.LOADING
    if identity.role is None:
        return LifecycleStage.NEEDS_ROLE_SELECTION
    if not profile or not profile.get("is_profile_complete"):
        return LifecycleStage.NEEDS_PROFILE_COMPLETION
    if identity.role == UserRole.MENTOR and not profile.get("verified_at"):
        return LifecycleStage.NEEDS_VERIFICATION
    return LifecycleStage.READY


@dataclass(frozen=True)
class LifecycleState:
    stage: LifecycleStage
    identity: Optional[IdentitySnapshot]
    profile: Optional[Dict[str, Any]] = None

    @classmethod
    def resolve(cls, identity, profile, profile_loaded: bool = True) -> "LifecycleState":
        return cls(
            stage=resolve_stage(identity, profile, profile_loaded),
            identity=identity,
            profile=profile if profile_loaded else None,
        )

    @property
    def is_onboarded(self) -> bool:
        return self.stage in ONBOARDED_STAGES
