"""
Auth guard: maps a lifecycle stage to the single overlay the client must show.

Content stays mounted under every overlay except the loading spinner, so a
blocking modal cannot be escaped by navigating around it.
"""

from enum import Enum
from typing import Any, Dict, List

from pydantic import BaseModel, Field

from menvo.config.permissions_config import SELF_SELECTABLE_ROLES
from menvo.modules.auth.lifecycle import LifecycleStage, LifecycleState
from menvo.modules.profiles.requirements import required_fields

# Profile fields echoed back to pre-populate the completion modal
PREFILL_FIELDS = (
    "full_name", "first_name", "last_name", "bio", "city", "state", "country",
    "linkedin_url", "avatar_url", "expertise_areas", "presentation_video_url",
)


class Overlay(str, Enum):
    SPINNER = "spinner"
    ROLE_SELECTION = "role_selection"
    PROFILE_COMPLETION = "profile_completion"
    VERIFICATION_BANNER = "verification_banner"
    NONE = "none"


class GateView(BaseModel):
    stage: LifecycleStage
    overlay: Overlay
    content_mounted: bool
    content_interactive: bool
    blocking: bool
    dismissible: bool
    allowed_roles: List[str] = Field(default_factory=list)
    required_fields: List[str] = Field(default_factory=list)
    prefill: Dict[str, Any] = Field(default_factory=dict)
    refresh_required: bool = False


def build_gate_view(state: LifecycleState, banner_dismissed: bool = False, refresh_required: bool = False) -> GateView:
    stage = state.stage
    if stage == LifecycleStage.LOADING:
        return GateView(
            stage=stage, overlay=Overlay.SPINNER, content_mounted=False,
            content_interactive=False, blocking=True, dismissible=False,
            refresh_required=refresh_required,
        )
    if stage == LifecycleStage.NEEDS_ROLE_SELECTION:
        return GateView(
            stage=stage, overlay=Overlay.ROLE_SELECTION, content_mounted=True,
            content_interactive=False, blocking=True, dismissible=False,
            allowed_roles=[r.value for r in SELF_SELECTABLE_ROLES],
            refresh_required=refresh_required,
        )
    if stage == LifecycleStage.NEEDS_PROFILE_COMPLETION:
        profile = state.profile or {}
        return GateView(
            stage=stage, overlay=Overlay.PROFILE_COMPLETION, content_mounted=True,
            content_interactive=False, blocking=True, dismissible=False,
            required_fields=list(required_fields(state.identity.role)),
            prefill={f: profile.get(f) for f in PREFILL_FIELDS if profile.get(f) is not None},
            refresh_required=refresh_required,
        )
    if stage == LifecycleStage.NEEDS_VERIFICATION and not banner_dismissed:
        return GateView(
            stage=stage, overlay=Overlay.VERIFICATION_BANNER, content_mounted=True,
            content_interactive=True, blocking=False, dismissible=True,
            refresh_required=refresh_required,
        )
    return GateView(
        stage=stage, overlay=Overlay.NONE, content_mounted=True,
        content_interactive=True, blocking=False, dismissible=False,
        refresh_required=refresh_required,
    )
