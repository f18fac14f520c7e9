from fastapi import APIRouter, Depends, Query, Request
from supabase import Client
from typing import Optional

from menvo.config import settings
from menvo.config.permissions_config import Permission
from menvo.core.dependencies import get_current_identity, require_permission
from menvo.core.identity import IdentitySnapshot
from menvo.core.rate_limit import limiter
from menvo.database.supabase_client import get_supabase
from menvo.modules.waiting_list.schemas import (
    WaitingListEntryResponse, WaitingListJoin, WaitingListPageResponse, WaitingListStatusUpdate
)
from menvo.modules.waiting_list.service import WaitingListService

router = APIRouter(prefix="/waiting-list", tags=["waiting-list"])


def get_waiting_list_service(supabase: Client = Depends(get_supabase)) -> WaitingListService:
    return WaitingListService(supabase)


@router.post("", response_model=WaitingListEntryResponse, status_code=201)
@limiter.limit(settings.public_form_rate_limit)
async def join_waiting_list(
    request: Request,
    body: WaitingListJoin,
    service: WaitingListService = Depends(get_waiting_list_service)
):
    return service.join(body)


@router.get("/me", response_model=Optional[WaitingListEntryResponse])
async def get_my_entry(
    identity: IdentitySnapshot = Depends(get_current_identity),
    service: WaitingListService = Depends(get_waiting_list_service)
):
    return service.get_my_entry(identity)


@router.get("", response_model=WaitingListPageResponse)
async def list_waiting_list(
    status: Optional[str] = Query(None, pattern="^(all|pending|approved|rejected)$"),
    page: int = Query(1, ge=1),
    limit: int = Query(20, ge=1, le=100),
    admin: IdentitySnapshot = Depends(require_permission(Permission.WAITING_LIST_MANAGE)),
    service: WaitingListService = Depends(get_waiting_list_service)
):
    return service.list_entries(status, page, limit)


@router.put("/{entry_id}/status", response_model=WaitingListEntryResponse)
async def update_waiting_list_status(
    entry_id: str,
    body: WaitingListStatusUpdate,
    admin: IdentitySnapshot = Depends(require_permission(Permission.WAITING_LIST_MANAGE)),
    service: WaitingListService = Depends(get_waiting_list_service)
):
    return service.update_status(entry_id, body)
