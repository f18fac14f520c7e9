from datetime import datetime, time, timedelta, timezone

from menvo.config.permissions_config import UserRole
from tests.helpers import auth_header, seed_window, signed_in


def _next_monday_at(hour):
    today = datetime.now(timezone.utc).date()
    monday = today + timedelta(days=(7 - today.weekday()) % 7 + 7)
    return datetime.combine(monday, time(hour), tzinfo=timezone.utc)


def _setup(db):
    mentor_id, mentor_token = signed_in(db, UserRole.MENTOR, verified=True)
    seed_window(db, mentor_id)
    mentee_id, mentee_token = signed_in(db, UserRole.MENTEE)
    return mentor_id, mentor_token, mentee_id, mentee_token


def _book(client, token, mentor_id, when, message="Preciso de ajuda com entrevistas tecnicas"):
    return client.post(
        "/api/v1/appointments",
        json={"mentor_id": mentor_id, "scheduled_at": when.isoformat(), "message": message},
        headers=auth_header(token),
    )


def test_booking_flow_over_http(client, db):
    mentor_id, mentor_token, mentee_id, mentee_token = _setup(db)
    slot = _next_monday_at(10)

    slots = client.get(f"/api/v1/mentors/{mentor_id}/slots", params={
        "start_date": slot.date().isoformat(), "end_date": slot.date().isoformat(),
    }).json()
    assert [s["start_time"] for s in slots["days"][0]["slots"]] == ["09:00", "10:00", "11:00"]

    created = _book(client, mentee_token, mentor_id, slot)
    assert created.status_code == 201
    appointment = created.json()
    assert appointment["status"] == "scheduled"

    again = _book(client, mentee_token, mentor_id, slot)
    assert again.status_code == 409
    assert again.json()["detail"]["code"] == "conflict"

    slots = client.get(f"/api/v1/mentors/{mentor_id}/slots", params={
        "start_date": slot.date().isoformat(), "end_date": slot.date().isoformat(),
    }).json()
    assert [s["start_time"] for s in slots["days"][0]["slots"]] == ["09:00", "11:00"]

    mine = client.get("/api/v1/appointments", params={"role": "mentor"}, headers=auth_header(mentor_token)).json()
    assert mine["total"] == 1

    cancelled = client.post(
        f"/api/v1/appointments/{appointment['id']}/status",
        json={"status": "cancelled", "reason": "Travel"},
        headers=auth_header(mentor_token),
    )
    assert cancelled.status_code == 200
    assert cancelled.json()["cancelled_by"] == mentor_id


def test_short_message_returns_field_error(client, db):
    mentor_id, _, _, mentee_token = _setup(db)
    response = _book(client, mentee_token, mentor_id, _next_monday_at(9), message="a" * 19)
    assert response.status_code == 400
    detail = response.json()["detail"]
    assert detail["field"] == "message"
    assert detail["min_length"] == 20


def test_mentor_role_cannot_book(client, db):
    mentor_id, _, _, _ = _setup(db)
    _, other_mentor_token = signed_in(db, UserRole.MENTOR, verified=True)
    response = _book(client, other_mentor_token, mentor_id, _next_monday_at(9))
    assert response.status_code == 403


def test_mentee_without_profile_is_gated(client, db):
    mentor_id, _, _, _ = _setup(db)
    _, token = signed_in(db, UserRole.MENTEE, complete=None)
    response = _book(client, token, mentor_id, _next_monday_at(9))
    assert response.status_code == 403
    assert response.json()["detail"]["stage"] == "needs_profile_completion"


def test_health_and_security_headers(client):
    response = client.get("/health")
    assert response.json() == {"status": "healthy"}
    assert response.headers["X-Frame-Options"] == "DENY"
    assert response.headers["X-Content-Type-Options"] == "nosniff"
    assert client.get("/ready").json() == {"status": "ready"}
