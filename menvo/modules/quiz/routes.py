from fastapi import APIRouter, Depends, Request
from supabase import Client

from menvo.config import settings
from menvo.config.permissions_config import Permission
from menvo.core.dependencies import require_permission
from menvo.core.identity import IdentitySnapshot
from menvo.core.rate_limit import limiter
from menvo.database.supabase_client import get_supabase
from menvo.modules.quiz.schemas import QuizAnalysisResponse, QuizResultResponse, QuizSubmission
from menvo.modules.quiz.service import QuizService

router = APIRouter(prefix="/quiz", tags=["quiz"])


def get_quiz_service(supabase: Client = Depends(get_supabase)) -> QuizService:
    return QuizService(supabase)


@router.post("/responses", response_model=QuizResultResponse, status_code=201)
@limiter.limit(settings.public_form_rate_limit)
async def submit_quiz(
    request: Request,
    body: QuizSubmission,
    service: QuizService = Depends(get_quiz_service)
):
    """Submit the onboarding quiz; analysis runs in the quiz Edge Function"""
    return service.submit(body)


@router.get("/responses/{response_id}", response_model=QuizAnalysisResponse)
async def get_quiz_result(
    response_id: str,
    service: QuizService = Depends(get_quiz_service)
):
    return QuizAnalysisResponse(**service.get_result(response_id).model_dump())


@router.post("/responses/{response_id}/analyze", response_model=QuizResultResponse)
async def reanalyze_quiz(
    response_id: str,
    admin: IdentitySnapshot = Depends(require_permission(Permission.QUIZ_MANAGE)),
    service: QuizService = Depends(get_quiz_service)
):
    return service.reanalyze(response_id)
