import pytest

from menvo.config.permissions_config import UserRole
from menvo.core.errors import NotFoundError, ValidationError
from menvo.modules.quiz.schemas import QuizSubmission
from menvo.modules.quiz.service import QuizService
from tests.helpers import auth_header, signed_in

ANSWERS = {
    "name": "Ana Souza",
    "email": "Ana@Example.com",
    "career_moment": "transition",
    "mentorship_experience": "never",
    "development_areas": ["leadership", "  ", "communication"],
    "current_challenge": "Moving from support into product",
    "future_vision": "Product manager in two years",
    "share_knowledge": "yes",
    "personal_life_help": "no",
}


@pytest.fixture
def service(db):
    return QuizService(db)


def test_submission_is_stored_and_analyzed(service, db):
    result = service.submit(QuizSubmission(**ANSWERS))
    assert result.email == "ana@example.com"
    assert result.development_areas == ["leadership", "communication"]
    assert result.analysis_status == "completed"
    name, options = db.functions.calls[-1]
    assert name == "analyze-quiz"
    assert options["body"] == {"responseId": result.id}


def test_analysis_failure_keeps_the_response(service, db):
    db.functions.failing.add("analyze-quiz")
    result = service.submit(QuizSubmission(**ANSWERS))
    assert result.analysis_status == "failed"
    assert service.get_result(result.id).analysis_status == "failed"

    db.functions.failing.clear()
    assert service.reanalyze(result.id).analysis_status == "completed"


def test_invalid_email_is_rejected(service, db):
    with pytest.raises(ValidationError):
        service.submit(QuizSubmission(**{**ANSWERS, "email": "not-an-email"}))
    assert db.rows("quiz_responses") == []


def test_development_areas_cannot_be_blank():
    with pytest.raises(ValueError):
        QuizSubmission(**{**ANSWERS, "development_areas": [" "]})


def test_unknown_result(service):
    with pytest.raises(NotFoundError):
        service.get_result("missing")


def test_quiz_over_http(client, db):
    created = client.post("/api/v1/quiz/responses", json=ANSWERS)
    assert created.status_code == 201
    response_id = created.json()["id"]
    result = client.get(f"/api/v1/quiz/responses/{response_id}").json()
    assert result["analysis_status"] == "completed"
    assert not {"email", "name", "current_challenge"} & set(result)

    _, mentee_token = signed_in(db, UserRole.MENTEE)
    denied = client.post(f"/api/v1/quiz/responses/{response_id}/analyze", headers=auth_header(mentee_token))
    assert denied.status_code == 403
    _, admin_token = signed_in(db, UserRole.ADMIN)
    allowed = client.post(f"/api/v1/quiz/responses/{response_id}/analyze", headers=auth_header(admin_token))
    assert allowed.status_code == 200
