from supabase import Client
from fastapi import HTTPException
from typing import Any, Dict
from datetime import datetime, timezone
import logging

from menvo.config import settings
from menvo.core.errors import NotFoundError, UpstreamError
from menvo.database.supabase_client import first_row
from menvo.modules.quiz.schemas import QuizResultResponse, QuizSubmission
from menvo.modules.waiting_list.service import normalize_email

logger = logging.getLogger(__name__)


class QuizService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def submit(self, data: QuizSubmission) -> QuizResultResponse:
        """Store the answers, then ask the analysis function to process them."""
        row = {
            **data.model_dump(),
            "email": normalize_email(data.email),
            "analysis_status": "pending",
            "created_at": datetime.now(timezone.utc).isoformat(),
        }
        try:
            result = self.supabase.table("quiz_responses").insert(row).execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error saving quiz response: {e}")
            raise UpstreamError()
        if not result.data:
            raise UpstreamError()
        response = result.data[0]
        logger.info(f"Quiz response {response['id']} stored")
        return QuizResultResponse(**self._analyze(response))

    def get_result(self, response_id: str) -> QuizResultResponse:
        return QuizResultResponse(**self._get_row(response_id))

    def reanalyze(self, response_id: str) -> QuizResultResponse:
        row = self._get_row(response_id)
        logger.info(f"Re-running analysis for quiz response {response_id}")
        return QuizResultResponse(**self._analyze(row))

    def _analyze(self, response: Dict[str, Any]) -> Dict[str, Any]:
        """The analysis function writes ai_analysis itself; a failure only marks the row."""
        try:
            self.supabase.functions.invoke(
                settings.quiz_analysis_function,
                invoke_options={"body": {"responseId": response["id"]}},
            )
            status = "completed"
        except Exception as e:
            logger.error(f"Quiz analysis failed for response {response['id']}: {e}")
            status = "failed"

        try:
            result = self.supabase.table("quiz_responses")\
                .update({"analysis_status": status})\
                .eq("id", response["id"])\
                .execute()
        except Exception as e:
            logger.error(f"Error recording analysis status for quiz response {response['id']}: {e}")
            return {**response, "analysis_status": status}
        return result.data[0] if result.data else {**response, "analysis_status": status}

    def _get_row(self, response_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("quiz_responses")\
                .select("*")\
                .eq("id", response_id)\
                .maybe_single()\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching quiz response {response_id}: {e}")
            raise UpstreamError()
        row = first_row(result)
        if not row:
            raise NotFoundError("Quiz response not found")
        return row
