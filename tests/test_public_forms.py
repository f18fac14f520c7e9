import pytest

from menvo.config.permissions_config import UserRole
from menvo.core.errors import ConflictError, NotFoundError, ValidationError
from menvo.core.rate_limit import limiter
from menvo.modules.newsletter.schemas import NewsletterSubscribe
from menvo.modules.newsletter.service import NewsletterService
from menvo.modules.waiting_list.schemas import WaitingListJoin, WaitingListStatusUpdate
from menvo.modules.waiting_list.service import WaitingListService, normalize_email
from tests.helpers import auth_header, make_identity, signed_in


@pytest.mark.parametrize("raw,expected", [
    ("  Ana@Example.COM ", "ana@example.com"),
    ("a.b+c@sub.example.org", "a.b+c@sub.example.org"),
])
def test_normalize_email(raw, expected):
    assert normalize_email(raw) == expected


@pytest.mark.parametrize("raw", ["", "ana", "ana@example", "ana @example.com", "@example.com"])
def test_normalize_email_rejects_malformed(raw):
    with pytest.raises(ValidationError) as exc:
        normalize_email(raw)
    assert exc.value.field == "email"


class TestWaitingList:
    @pytest.fixture
    def service(self, db):
        return WaitingListService(db)

    def test_join_normalizes_and_blanks(self, service):
        entry = service.join(WaitingListJoin(name=" Ana ", email="ANA@example.com", whatsapp="  ", reason="Career change"))
        assert entry.name == "Ana"
        assert entry.email == "ana@example.com"
        assert entry.whatsapp is None
        assert entry.status == "pending"

    def test_duplicate_email_reports_current_status(self, service):
        entry = service.join(WaitingListJoin(name="Ana", email="ana@example.com"))
        service.update_status(entry.id, WaitingListStatusUpdate(status="approved", notes="Welcome"))
        with pytest.raises(ConflictError) as exc:
            service.join(WaitingListJoin(name="Ana", email=" Ana@Example.com"))
        assert exc.value.detail["status"] == "approved"

    def test_blank_name_is_rejected_by_schema(self):
        with pytest.raises(ValueError):
            WaitingListJoin(name="   ", email="ana@example.com")

    def test_my_entry_matches_identity_email(self, service):
        service.join(WaitingListJoin(name="Ana", email="ana@example.com"))
        assert service.get_my_entry(make_identity("u1", email="ANA@example.com")).name == "Ana"
        assert service.get_my_entry(make_identity("u2", email="bia@example.com")) is None

    def test_list_filters_and_paginates(self, service):
        for i in range(3):
            service.join(WaitingListJoin(name=f"User {i}", email=f"user{i}@example.com"))
        first = service.list_entries("all", page=1, limit=2)
        assert first.total_count == 3
        assert len(first.entries) == 2
        assert first.has_next_page
        assert service.list_entries("approved").total_count == 0

    def test_update_unknown_entry(self, service):
        with pytest.raises(NotFoundError):
            service.update_status("missing", WaitingListStatusUpdate(status="rejected"))


def test_waiting_list_over_http(client, db):
    created = client.post("/api/v1/waiting-list", json={"name": "Ana", "email": "ana@example.com"})
    assert created.status_code == 201
    duplicate = client.post("/api/v1/waiting-list", json={"name": "Ana", "email": "ana@example.com"})
    assert duplicate.status_code == 409
    assert duplicate.json()["detail"]["field"] == "email"

    _, mentee_token = signed_in(db, UserRole.MENTEE)
    assert client.get("/api/v1/waiting-list", headers=auth_header(mentee_token)).status_code == 403
    _, admin_token = signed_in(db, UserRole.ADMIN)
    listing = client.get("/api/v1/waiting-list", params={"status": "pending"}, headers=auth_header(admin_token))
    assert listing.json()["total_count"] == 1


class TestNewsletter:
    @pytest.fixture
    def service(self, db):
        return NewsletterService(db)

    def test_consent_is_required(self, service, db):
        with pytest.raises(ValidationError) as exc:
            service.subscribe(NewsletterSubscribe(email="ana@example.com"))
        assert exc.value.field == "consent_given"
        assert db.rows("newsletter_subscriptions") == []

    def test_subscribe_records_consent_origin(self, service):
        sub = service.subscribe(
            NewsletterSubscribe(email="Ana@Example.com", consent_given=True),
            ip_address="10.0.0.1",
            user_agent="pytest",
        )
        assert sub.email == "ana@example.com"
        assert sub.status == "active"
        assert sub.consent_date is not None

    def test_resubscribe_after_unsubscribe(self, service):
        data = NewsletterSubscribe(email="ana@example.com", consent_given=True)
        service.subscribe(data)
        with pytest.raises(ConflictError):
            service.subscribe(data)
        assert service.unsubscribe("ana@example.com").status == "unsubscribed"
        with pytest.raises(NotFoundError):
            service.unsubscribe("ana@example.com")
        assert service.subscribe(data).status == "active"
        assert service.list_subscriptions("unsubscribed").total == 1


def test_newsletter_over_http_records_user_agent(client, db):
    response = client.post(
        "/api/v1/newsletter/subscribe",
        json={"email": "ana@example.com", "consent_given": True},
        headers={"User-Agent": "landing-page"},
    )
    assert response.status_code == 201
    assert db.rows("newsletter_subscriptions")[0]["user_agent"] == "landing-page"
    assert client.post("/api/v1/newsletter/unsubscribe", json={"email": "ana@example.com"}).status_code == 200


def test_public_forms_are_rate_limited(client):
    limiter.enabled = True
    limiter.reset()
    try:
        statuses = [
            client.post("/api/v1/waiting-list", json={"name": "Ana", "email": f"ana{i}@example.com"}).status_code
            for i in range(11)
        ]
    finally:
        limiter.reset()
    assert statuses[:10] == [201] * 10
    assert statuses[10] == 429
