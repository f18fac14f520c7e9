import pytest

from menvo.config.permissions_config import UserRole
from menvo.core.errors import NotFoundError, ValidationError
from menvo.modules.mentors.service import MentorService, _search_filter
from tests.helpers import auth_header, make_identity, seed_profile, signed_in


@pytest.fixture
def directory(db):
    seed_profile(db, "m-ana", UserRole.MENTOR, verified=True, first_name="Ana", full_name="Ana Souza",
                 expertise_areas=["design", "ux"], languages=["pt", "en"], city="Recife", country="Brasil")
    seed_profile(db, "m-bia", UserRole.MENTOR, verified=True, first_name="Bia", full_name="Bia Rocha",
                 bio="Data engineer", expertise_areas=["data"], languages=["pt"], city="Sao Paulo", country="Brasil")
    seed_profile(db, "m-caio", UserRole.MENTOR, verified=True, first_name="Caio", full_name="Caio Reis",
                 current_company="Acme", expertise_areas=["python"], languages=["en"], city="Lisboa", country="Portugal")
    seed_profile(db, "m-unverified", UserRole.MENTOR, first_name="Dani")
    seed_profile(db, "m-incomplete", UserRole.MENTOR, verified=True, complete=False, first_name="Edu")
    seed_profile(db, "m-suspended", UserRole.MENTOR, verified=True, status="suspended", first_name="Fabi")
    seed_profile(db, "mentee-1", UserRole.MENTEE, first_name="Gabi")
    return MentorService(db)


def _ids(result):
    return [m.id for m in result.mentors]


def test_directory_lists_only_verified_complete_active_mentors(directory):
    result = directory.search_mentors()
    assert _ids(result) == ["m-ana", "m-bia", "m-caio"]
    assert result.total_count == 3
    assert all(m.verified for m in result.mentors)


def test_free_text_search_matches_name_bio_and_company(directory):
    assert _ids(directory.search_mentors(search="rocha")) == ["m-bia"]
    assert _ids(directory.search_mentors(search="data eng")) == ["m-bia"]
    assert _ids(directory.search_mentors(search="acme")) == ["m-caio"]


def test_reserved_characters_are_neutralized():
    assert _search_filter(" ,()% ") is None
    assert "full_name.ilike.%ana%" in _search_filter("ana,")


def test_skill_language_and_location_filters(directory):
    assert _ids(directory.search_mentors(skills=["ux", "python"])) == ["m-ana", "m-caio"]
    assert _ids(directory.search_mentors(languages=["en"])) == ["m-ana", "m-caio"]
    assert _ids(directory.search_mentors(city="paulo")) == ["m-bia"]
    assert _ids(directory.search_mentors(country="portugal")) == ["m-caio"]


def test_pagination_metadata(directory):
    page = directory.search_mentors(page=2, limit=2)
    assert _ids(page) == ["m-caio"]
    assert page.total_count == 3
    assert page.total_pages == 2
    assert not page.has_next_page
    assert page.has_previous_page


def test_get_mentor_hides_non_mentors(directory):
    assert directory.get_mentor("m-ana").full_name == "Ana Souza"
    for user_id in ("mentee-1", "m-suspended", "ghost"):
        with pytest.raises(NotFoundError):
            directory.get_mentor(user_id)


def test_pending_verification_queue(directory):
    assert [m.id for m in directory.list_pending_verification()] == ["m-unverified"]


def test_verify_mentor_writes_audit_log(directory, db):
    admin = make_identity("admin-1", UserRole.ADMIN)
    response = directory.verify_mentor(admin, "m-unverified", True, notes="Checked LinkedIn")
    assert response.verified
    assert response.verified_at is not None
    assert response.message == "Mentor verified successfully"
    log = db.rows("verification_logs")[0]
    assert (log["mentor_id"], log["admin_id"], log["action"]) == ("m-unverified", "admin-1", "verified")
    assert "m-unverified" in _ids(directory.search_mentors())


def test_audit_log_failure_does_not_undo_verification(directory, db):
    db.failing_tables.add("verification_logs")
    response = directory.verify_mentor(make_identity("admin-1", UserRole.ADMIN), "m-ana", False)
    assert response.message == "Mentor unverified successfully"
    assert "m-ana" not in _ids(directory.search_mentors())


def test_verify_rejects_non_mentor(directory):
    with pytest.raises(ValidationError):
        directory.verify_mentor(make_identity("admin-1", UserRole.ADMIN), "mentee-1", True)
    with pytest.raises(NotFoundError):
        directory.verify_mentor(make_identity("admin-1", UserRole.ADMIN), "ghost", True)


def test_directory_endpoint_accepts_repeated_skills(client, db, directory):
    response = client.get("/api/v1/mentors", params=[("skills", "design"), ("skills", "data"), ("limit", "1")])
    assert response.status_code == 200
    body = response.json()
    assert body["total_count"] == 2
    assert body["has_next_page"] is True
    assert [m["id"] for m in body["mentors"]] == ["m-ana"]


def test_verification_endpoint_requires_admin(client, db, directory):
    _, mentee_token = signed_in(db, UserRole.MENTEE)
    denied = client.post(
        "/api/v1/mentors/m-unverified/verification", json={"verified": True}, headers=auth_header(mentee_token)
    )
    assert denied.status_code == 403

    _, admin_token = signed_in(db, UserRole.ADMIN)
    allowed = client.post(
        "/api/v1/mentors/m-unverified/verification", json={"verified": True}, headers=auth_header(admin_token)
    )
    assert allowed.status_code == 200
    assert allowed.json()["verified"] is True
