"""Which profile fields each role must fill before onboarding is complete."""

from typing import Any, Dict, List, Mapping, Optional, Tuple, Union

from menvo.config.permissions_config import UserRole, parse_role

COMMON_REQUIRED_FIELDS: Tuple[str, ...] = ("full_name", "bio")

ROLE_REQUIRED_FIELDS: Dict[UserRole, Tuple[str, ...]] = {
    UserRole.MENTEE: COMMON_REQUIRED_FIELDS,
    UserRole.MENTOR: COMMON_REQUIRED_FIELDS + ("expertise_areas", "presentation_video_url"),
    UserRole.ADMIN: COMMON_REQUIRED_FIELDS,
    UserRole.COMPANY: COMMON_REQUIRED_FIELDS,
    UserRole.RECRUITER: COMMON_REQUIRED_FIELDS,
}


def required_fields(role: Union[UserRole, str]) -> Tuple[str, ...]:
    return ROLE_REQUIRED_FIELDS[parse_role(role)]


def _is_filled(value: Any) -> bool:
    if value is None:
        return False
    if isinstance(value, str):
        return bool(value.strip())
    if isinstance(value, (list, tuple, set)):
        return any(_is_filled(v) for v in value)
    return True


def missing_required_fields(role: Optional[Union[UserRole, str]], data: Optional[Mapping[str, Any]]) -> List[str]:
    """Required fields that are absent or blank. Without a role nothing can be complete."""
    if role is None:
        return list(COMMON_REQUIRED_FIELDS)
    data = data or {}
    return [f for f in required_fields(role) if not _is_filled(data.get(f))]


def is_profile_complete(role, data) -> bool:
    return role is not None and not missing_required_fields(role, data)
