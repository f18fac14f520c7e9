from datetime import datetime, timezone

from menvo.config.permissions_config import UserRole
from menvo.core.identity import IdentitySnapshot

# Tuesday; the Monday after it is 2030-01-07
NOW = datetime(2030, 1, 1, 12, 0, tzinfo=timezone.utc)


def auth_header(token):
    return {"Authorization": f"Bearer {token}"}


def make_identity(user_id="user-1", role=None, email="user@example.com"):
    app_metadata = {"role": role.value} if role else {}
    return IdentitySnapshot(id=user_id, email=email, role=role, app_metadata=app_metadata)


def seed_profile(db, user_id, role, verified=False, complete=True, **fields):
    row = {
        "id": user_id,
        "email": fields.pop("email", f"{user_id}@example.com"),
        "role": role.value if isinstance(role, UserRole) else role,
        "full_name": "Ana Souza",
        "first_name": "Ana",
        "bio": "Product designer helping people move into tech",
        "is_profile_complete": complete,
        "verified_at": NOW.isoformat() if verified else None,
        "status": "active",
        "expertise_areas": ["design"] if role == UserRole.MENTOR else [],
        "languages": ["pt"],
        "presentation_video_url": "https://videos.example.com/ana" if role == UserRole.MENTOR else None,
    }
    row.update(fields)
    db.rows("profiles").append(row)
    return row


def signed_in(db, role, email=None, verified=False, complete=True, **fields):
    """Auth user with a matching profile row; returns (user_id, token)."""
    email = email or f"{role.value}-{len(db.auth.users)}@example.com"
    user_id, token = db.auth.create_user(email, role=role)
    if complete is not None:
        seed_profile(db, user_id, role, verified=verified, complete=complete, email=email, **fields)
    return user_id, token


def seed_window(db, mentor_id, day_of_week=1, start="09:00:00", end="12:00:00", tz="UTC", active=True):
    return db.seed(
        "mentor_availability",
        mentor_id=mentor_id,
        day_of_week=day_of_week,
        start_time=start,
        end_time=end,
        timezone=tz,
        is_active=active,
    )
