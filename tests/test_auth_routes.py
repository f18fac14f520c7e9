import threading

from menvo.config.permissions_config import UserRole
from menvo.modules.auth import service as auth_service
from menvo.modules.auth.service import AuthService, invalidate_cached_identity
from tests.helpers import auth_header, seed_profile, signed_in


def test_register_then_login(client, db):
    response = client.post(
        "/api/v1/auth/register",
        json={"email": "new@example.com", "password": "long-password", "full_name": "New User"},
    )
    assert response.status_code == 201
    user_id = response.json()["user_id"]
    assert db.auth.users[user_id].user_metadata == {"full_name": "New User"}

    login = client.post("/api/v1/auth/login", json={"email": "new@example.com", "password": "long-password"})
    assert login.status_code == 200
    assert login.json()["access_token"] == f"token-{user_id}"


def test_duplicate_registration_is_conflict(client, db):
    db.auth.create_user("taken@example.com")
    response = client.post("/api/v1/auth/register", json={"email": "taken@example.com", "password": "x" * 10})
    assert response.status_code == 409
    assert response.json()["detail"]["field"] == "email"


def test_bad_credentials_are_unauthorized(client, db):
    db.auth.create_user("user@example.com")
    response = client.post("/api/v1/auth/login", json={"email": "user@example.com", "password": "wrong"})
    assert response.status_code == 401
    assert response.json()["detail"]["code"] == "auth_error"


def test_missing_or_bad_token_is_unauthorized(client):
    assert client.get("/api/v1/auth/me").status_code == 401
    assert client.get("/api/v1/auth/me", headers=auth_header("forged")).status_code == 401


def test_me_lists_role_permissions_and_stage(client, db):
    _, token = signed_in(db, UserRole.MENTEE)
    body = client.get("/api/v1/auth/me", headers=auth_header(token)).json()
    assert body["role"] == "mentee"
    assert body["stage"] == "ready"
    assert "appointments:create" in body["permissions"]


def test_new_user_walks_through_onboarding(client, db):
    user_id, token = db.auth.create_user("fresh@example.com")
    headers = auth_header(token)

    gate = client.get("/api/v1/auth/gate", headers=headers).json()
    assert gate["overlay"] == "role_selection"
    assert gate["allowed_roles"] == ["mentee", "mentor"]

    selected = client.post("/api/v1/auth/select-role", json={"role": "mentor"}, headers=headers)
    assert selected.status_code == 200
    body = selected.json()
    assert body["role"] == "mentor"
    assert body["stage"] == "needs_profile_completion"
    assert body["gate"]["overlay"] == "profile_completion"
    assert body["refresh_required"] is True
    assert db.auth.users[user_id].app_metadata["role"] == "mentor"

    # cached snapshot was dropped, so the same token now sees the new claim
    me = client.get("/api/v1/auth/me", headers=headers).json()
    assert me["role"] == "mentor"
    assert me["stage"] == "needs_profile_completion"

    again = client.post("/api/v1/auth/select-role", json={"role": "mentee"}, headers=headers)
    assert again.status_code == 409


def test_select_role_rejects_privileged_roles(client, db):
    _, token = db.auth.create_user("fresh@example.com")
    response = client.post("/api/v1/auth/select-role", json={"role": "admin"}, headers=auth_header(token))
    assert response.status_code == 400
    assert response.json()["detail"]["field"] == "role"


def test_identity_lookups_are_cached(client, db):
    _, token = signed_in(db, UserRole.MENTEE)
    client.get("/api/v1/auth/me", headers=auth_header(token))
    client.get("/api/v1/auth/me", headers=auth_header(token))
    assert db.auth.get_user_calls == 1


def test_admin_assigns_role_and_profile_follows(client, db):
    _, admin_token = signed_in(db, UserRole.ADMIN)
    user_id, _ = db.auth.create_user("someone@example.com", role=UserRole.MENTEE)
    seed_profile(db, user_id, UserRole.MENTEE)

    response = client.put(
        f"/api/v1/auth/users/{user_id}/role", json={"role": "mentor"}, headers=auth_header(admin_token)
    )
    assert response.status_code == 200
    assert response.json()["stage"] == "needs_profile_completion"
    profile = next(p for p in db.rows("profiles") if p["id"] == user_id)
    assert profile["role"] == "mentor"
    assert profile["is_profile_complete"] is False


def test_non_admin_cannot_assign_roles(client, db):
    _, token = signed_in(db, UserRole.MENTOR)
    response = client.put("/api/v1/auth/users/x/role", json={"role": "admin"}, headers=auth_header(token))
    assert response.status_code == 403


def test_refresh_returns_new_pair(client, db):
    user_id, _ = db.auth.create_user("user@example.com")
    response = client.post("/api/v1/auth/refresh", json={"refresh_token": f"refresh-{user_id}"})
    assert response.status_code == 200
    assert client.post("/api/v1/auth/refresh", json={"refresh_token": "nope"}).status_code == 401


def test_profile_fetch_failure_holds_gate_at_loading(client, db):
    _, token = signed_in(db, UserRole.MENTEE)
    db.failing_tables.add("profiles")
    gate = client.get("/api/v1/auth/gate", headers=auth_header(token)).json()
    assert gate["overlay"] == "spinner"
    assert gate["content_mounted"] is False


def test_permission_matrix_endpoint(client, db):
    _, token = signed_in(db, UserRole.MENTOR)
    body = client.get("/api/v1/auth/permissions", headers=auth_header(token)).json()
    mentor = next(r for r in body["roles"] if r["name"] == "mentor")
    assert "availability:manage" in mentor["permissions"]


def test_identity_cache_invalidation_waits_for_the_lock(db):
    user_id, token = db.auth.create_user("cached@example.com")
    AuthService(db).get_current_identity(token)

    with auth_service._AUTH_CACHE_LOCK:
        worker = threading.Thread(target=invalidate_cached_identity, args=(user_id,))
        worker.start()
        worker.join(timeout=0.2)
        assert worker.is_alive()
    worker.join(timeout=5)
    assert not worker.is_alive()
    assert auth_service._AUTH_USER_CACHE == {}


def test_identity_cache_survives_concurrent_writes_and_invalidation(db):
    users = [db.auth.create_user(f"user{i}@example.com") for i in range(40)]
    service = AuthService(db)
    errors = []

    def look_up(token):
        try:
            service.get_current_identity(token)
        except Exception as e:
            errors.append(e)

    def invalidate(user_id):
        try:
            for _ in range(50):
                invalidate_cached_identity(user_id)
        except Exception as e:
            errors.append(e)

    threads = [threading.Thread(target=look_up, args=(token,)) for _, token in users]
    threads += [threading.Thread(target=invalidate, args=(user_id,)) for user_id, _ in users[:5]]
    for thread in threads:
        thread.start()
    for thread in threads:
        thread.join()
    assert errors == []
