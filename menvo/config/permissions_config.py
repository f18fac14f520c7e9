"""
Roles and Permissions Configuration
Roles live in the identity token (app_metadata.role); each role maps to a fixed
permission set. The table is checked at import so a role without an entry, or
an entry naming an unknown permission, stops the application from starting.
"""

from enum import Enum
from typing import Dict, FrozenSet, List, Union


class UserRole(str, Enum):
    MENTEE = "mentee"
    MENTOR = "mentor"
    ADMIN = "admin"
    COMPANY = "company"
    RECRUITER = "recruiter"


# Roles a user may pick for themselves in the role-selection modal
SELF_SELECTABLE_ROLES = (UserRole.MENTEE, UserRole.MENTOR)


class Permission(str, Enum):
    PROFILES_READ = "profiles:read"
    PROFILES_UPDATE = "profiles:update"
    PROFILES_MANAGE = "profiles:manage"
    MENTORS_READ = "mentors:read"
    MENTORS_VERIFY = "mentors:verify"
    AVAILABILITY_READ = "availability:read"
    AVAILABILITY_MANAGE = "availability:manage"
    APPOINTMENTS_CREATE = "appointments:create"
    APPOINTMENTS_READ = "appointments:read"
    APPOINTMENTS_UPDATE = "appointments:update"
    APPOINTMENTS_MANAGE = "appointments:manage"
    FILES_UPLOAD = "files:upload"
    FILES_READ = "files:read"
    FILES_DELETE = "files:delete"
    ORGANIZATIONS_CREATE = "organizations:create"
    ORGANIZATIONS_READ = "organizations:read"
    ORGANIZATIONS_APPROVE = "organizations:approve"
    ORGANIZATIONS_MANAGE_MEMBERS = "organizations:manage_members"
    WAITING_LIST_MANAGE = "waiting_list:manage"
    NEWSLETTER_MANAGE = "newsletter:manage"
    QUIZ_MANAGE = "quiz:manage"
    USERS_ASSIGN_ROLE = "users:assign_role"

    @property
    def resource(self) -> str:
        return self.value.split(":", 1)[0]

    @property
    def action(self) -> str:
        return self.value.split(":", 1)[1]


# Module descriptions, used when rendering the permission matrix
MODULES = {
    "profiles": "User profiles and onboarding",
    "mentors": "Mentor discovery and verification",
    "availability": "Recurring mentor availability",
    "appointments": "Mentorship session booking",
    "files": "CV and document uploads",
    "organizations": "Organizations and memberships",
    "waiting_list": "Waiting list capture",
    "newsletter": "Newsletter subscriptions",
    "quiz": "Onboarding quiz and analysis",
    "users": "Identity and role administration",
}

_MEMBER_BASE = [
    Permission.PROFILES_READ,
    Permission.PROFILES_UPDATE,
    Permission.MENTORS_READ,
    Permission.AVAILABILITY_READ,
    Permission.APPOINTMENTS_READ,
    Permission.APPOINTMENTS_UPDATE,
    Permission.FILES_UPLOAD,
    Permission.FILES_READ,
    Permission.FILES_DELETE,
    Permission.ORGANIZATIONS_READ,
]

ROLE_GRANTS: Dict[UserRole, List[Permission]] = {
    UserRole.MENTEE: _MEMBER_BASE + [
        Permission.APPOINTMENTS_CREATE,
        Permission.ORGANIZATIONS_CREATE,
    ],
    UserRole.MENTOR: _MEMBER_BASE + [
        Permission.AVAILABILITY_MANAGE,
        Permission.ORGANIZATIONS_CREATE,
    ],
    UserRole.COMPANY: _MEMBER_BASE + [
        Permission.APPOINTMENTS_CREATE,
        Permission.ORGANIZATIONS_CREATE,
    ],
    UserRole.RECRUITER: _MEMBER_BASE + [
        Permission.APPOINTMENTS_CREATE,
    ],
    UserRole.ADMIN: list(Permission),
}


def _build_role_permissions() -> Dict[UserRole, FrozenSet[Permission]]:
    missing = [role.value for role in UserRole if role not in ROLE_GRANTS]
    if missing:
        raise RuntimeError(f"Roles without a permission set: {', '.join(missing)}")
    table = {}
    for role, grants in ROLE_GRANTS.items():
        unknown = [g for g in grants if not isinstance(g, Permission)]
        if unknown:
            raise RuntimeError(f"Unknown permissions for role {role.value}: {unknown}")
        table[role] = frozenset(grants)
    return table


ROLE_PERMISSIONS: Dict[UserRole, FrozenSet[Permission]] = _build_role_permissions()


def parse_role(role: Union[UserRole, str]) -> UserRole:
    """Raises ValueError for anything that is not a known role."""
    if isinstance(role, UserRole):
        return role
    return UserRole(role)


def permissions_for(role: Union[UserRole, str]) -> FrozenSet[Permission]:
    return ROLE_PERMISSIONS[parse_role(role)]


def has_permission(role: Union[UserRole, str, None], permission: Permission) -> bool:
    if role is None:
        return False
    return permission in permissions_for(role)


def get_permission_matrix():
    """
    Returns every permission and the roles holding it
    Format: {
        "permissions": [{"name": "appointments:create", "resource": "appointments", "action": "create", "description": "..."}],
        "roles": [{"name": "mentee", "permissions": ["appointments:create", ...]}]
    }
    """
    permissions = [
        {
            "name": p.value,
            "resource": p.resource,
            "action": p.action,
            "description": f"{p.action.replace('_', ' ').capitalize()} - {MODULES[p.resource]}",
        }
        for p in Permission
    ]
    roles = [
        {"name": role.value, "permissions": sorted(p.value for p in perms)}
        for role, perms in ROLE_PERMISSIONS.items()
    ]
    return {"permissions": permissions, "roles": roles}
