from fastapi import APIRouter, Depends, Query
from supabase import Client
from typing import List, Optional

from menvo.config.permissions_config import Permission
from menvo.core.dependencies import require_permission
from menvo.core.identity import IdentitySnapshot
from menvo.database.supabase_client import get_supabase
from menvo.modules.mentors.schemas import (
    MentorSearchResponse, MentorVerificationRequest, MentorVerificationResponse
)
from menvo.modules.mentors.service import MentorService
from menvo.modules.profiles.schemas import PublicProfileResponse

router = APIRouter(prefix="/mentors", tags=["mentors"])


def get_mentor_service(supabase: Client = Depends(get_supabase)) -> MentorService:
    return MentorService(supabase)


@router.get("", response_model=MentorSearchResponse)
async def search_mentors(
    search: Optional[str] = None,
    skills: List[str] = Query(default=[]),
    languages: List[str] = Query(default=[]),
    city: Optional[str] = None,
    country: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(12, ge=1, le=50),
    service: MentorService = Depends(get_mentor_service)
):
    """Public mentor directory"""
    return service.search_mentors(search, skills, languages, city, country, page, limit)


@router.get("/pending-verification", response_model=List[PublicProfileResponse])
async def list_pending_verification(
    admin: IdentitySnapshot = Depends(require_permission(Permission.MENTORS_VERIFY)),
    service: MentorService = Depends(get_mentor_service)
):
    return service.list_pending_verification()


@router.get("/{mentor_id}", response_model=PublicProfileResponse)
async def get_mentor(
    mentor_id: str,
    service: MentorService = Depends(get_mentor_service)
):
    return service.get_mentor(mentor_id)


@router.post("/{mentor_id}/verification", response_model=MentorVerificationResponse)
async def verify_mentor(
    mentor_id: str,
    body: MentorVerificationRequest,
    admin: IdentitySnapshot = Depends(require_permission(Permission.MENTORS_VERIFY)),
    service: MentorService = Depends(get_mentor_service)
):
    """Grant or revoke the verified badge (admin)"""
    return service.verify_mentor(admin, mentor_id, body.verified, body.notes)
