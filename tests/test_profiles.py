import pytest

from menvo.config.permissions_config import UserRole
from menvo.core.errors import NotFoundError, UpstreamError, ValidationError
from menvo.modules.profiles.requirements import is_profile_complete, missing_required_fields
from menvo.modules.profiles.schemas import ProfileCompletionRequest, ProfileUpdate
from menvo.modules.profiles.service import ProfileService
from tests.helpers import auth_header, make_identity, seed_profile, signed_in

MENTOR_FIELDS = {
    "full_name": "Bruno Lima",
    "bio": "Backend engineer",
    "expertise_areas": ["python", " python ", "apis"],
    "presentation_video_url": "https://videos.example.com/bruno",
}


@pytest.fixture
def service(db):
    return ProfileService(db)


def test_missing_fields_per_role():
    assert missing_required_fields(UserRole.MENTEE, {"full_name": "A", "bio": " "}) == ["bio"]
    assert missing_required_fields(UserRole.MENTOR, {"full_name": "A", "bio": "B", "expertise_areas": []}) == [
        "expertise_areas", "presentation_video_url"
    ]
    assert missing_required_fields(None, {"full_name": "A", "bio": "B"}) == ["full_name", "bio"]
    assert not is_profile_complete(None, {"full_name": "A", "bio": "B"})


def test_complete_profile_creates_row(service, db):
    identity = make_identity("mentor-1", UserRole.MENTOR, "bruno@example.com")
    row = service.complete_profile(identity, ProfileCompletionRequest(**MENTOR_FIELDS))
    assert row["is_profile_complete"] is True
    assert row["role"] == "mentor"
    assert row["email"] == "bruno@example.com"
    assert row["expertise_areas"] == ["python", "apis"]
    assert len(db.rows("profiles")) == 1


def test_complete_profile_reports_missing_mentor_fields(service, db):
    identity = make_identity("mentor-1", UserRole.MENTOR)
    with pytest.raises(ValidationError) as exc:
        service.complete_profile(identity, ProfileCompletionRequest(full_name="Bruno", bio="Backend"))
    assert exc.value.detail["missing_fields"] == ["expertise_areas", "presentation_video_url"]
    assert db.rows("profiles") == []


def test_complete_profile_requires_role(service):
    with pytest.raises(ValidationError) as exc:
        service.complete_profile(make_identity("u-1", None), ProfileCompletionRequest(full_name="A", bio="B"))
    assert exc.value.field == "role"


def test_complete_profile_fills_existing_row(service, db):
    seed_profile(db, "mentee-1", UserRole.MENTEE, complete=False, bio=None, status="suspended")
    row = service.complete_profile(
        make_identity("mentee-1", UserRole.MENTEE), ProfileCompletionRequest(full_name="Ana", bio="Learning Go")
    )
    assert row["is_profile_complete"] is True
    assert row["status"] == "suspended"
    assert len(db.rows("profiles")) == 1


def test_update_recomputes_completeness(service, db):
    seed_profile(db, "mentor-1", UserRole.MENTOR)
    identity = make_identity("mentor-1", UserRole.MENTOR)
    row = service.update_profile(identity, ProfileUpdate(presentation_video_url=""))
    assert row["presentation_video_url"] is None
    assert row["is_profile_complete"] is False


def test_update_without_profile_is_not_found(service):
    with pytest.raises(NotFoundError):
        service.update_profile(make_identity("nobody", UserRole.MENTEE), ProfileUpdate(city="Recife"))


def test_invalid_url_is_rejected_by_schema():
    with pytest.raises(ValueError):
        ProfileUpdate(linkedin_url="linkedin.com/in/ana")


def test_sync_role_only_touches_existing_rows(service, db):
    assert service.sync_role("ghost", UserRole.MENTOR) is None
    seed_profile(db, "user-1", UserRole.MENTEE)
    row = service.sync_role("user-1", UserRole.MENTOR)
    assert row["role"] == "mentor"
    assert row["is_profile_complete"] is False


def test_set_verified_toggles_timestamp(service, db):
    seed_profile(db, "mentor-1", UserRole.MENTOR)
    assert service.set_verified("mentor-1", True)["verified_at"]
    assert service.set_verified("mentor-1", False)["verified_at"] is None


def test_profile_read_failure_is_upstream(service, db):
    db.failing_tables.add("profiles")
    with pytest.raises(UpstreamError):
        service.get_profile_row("user-1")


def test_public_profile_hides_inactive(service, db):
    seed_profile(db, "mentor-1", UserRole.MENTOR, verified=True)
    seed_profile(db, "mentor-2", UserRole.MENTOR, status="suspended")
    assert service.get_public_profile("mentor-1").verified is True
    with pytest.raises(NotFoundError):
        service.get_public_profile("mentor-2")


def test_completion_endpoint_returns_next_stage(client, db):
    _, token = signed_in(db, UserRole.MENTOR, complete=None)
    response = client.post("/api/v1/profiles/me/complete", json=MENTOR_FIELDS, headers=auth_header(token))
    assert response.status_code == 200
    body = response.json()
    assert body["stage"] == "needs_verification"
    assert body["gate"]["overlay"] == "verification_banner"
    assert body["refresh_required"] is True


def test_completion_endpoint_returns_field_error(client, db):
    _, token = signed_in(db, UserRole.MENTOR, complete=None)
    response = client.post(
        "/api/v1/profiles/me/complete",
        json={"full_name": "Bruno", "bio": "Backend"},
        headers=auth_header(token),
    )
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["code"] == "validation_error"
    assert detail["field"] == "expertise_areas"


def test_admin_sets_profile_status(client, db):
    _, admin_token = signed_in(db, UserRole.ADMIN)
    seed_profile(db, "mentee-1", UserRole.MENTEE)
    response = client.put(
        "/api/v1/profiles/mentee-1/status", json={"status": "suspended"}, headers=auth_header(admin_token)
    )
    assert response.status_code == 200
    assert response.json()["status"] == "suspended"


def test_non_admin_cannot_set_profile_status(client, db):
    _, token = signed_in(db, UserRole.MENTEE)
    response = client.put("/api/v1/profiles/x/status", json={"status": "suspended"}, headers=auth_header(token))
    assert response.status_code == 403
