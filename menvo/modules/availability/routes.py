from fastapi import APIRouter, Depends
from supabase import Client
from typing import List, Optional
from datetime import date

from menvo.config.permissions_config import Permission
from menvo.core.dependencies import require_onboarded_permission
from menvo.database.supabase_client import get_supabase
from menvo.modules.auth.lifecycle import LifecycleState
from menvo.modules.availability.schemas import (
    AvailabilitySlotCreate, AvailabilitySlotUpdate, AvailabilitySlotResponse,
    WeekReplaceRequest, BookableSlotsResponse
)
from menvo.modules.availability.service import AvailabilityService

router = APIRouter(tags=["availability"])


def get_availability_service(supabase: Client = Depends(get_supabase)) -> AvailabilityService:
    return AvailabilityService(supabase)


@router.get("/mentors/{mentor_id}/availability", response_model=List[AvailabilitySlotResponse])
async def get_mentor_weekly_availability(
    mentor_id: str,
    service: AvailabilityService = Depends(get_availability_service)
):
    """Weekly recurring windows of a mentor (public)"""
    return service.list_mentor_slots(mentor_id, active_only=True)


@router.get("/mentors/{mentor_id}/slots", response_model=BookableSlotsResponse)
async def get_mentor_bookable_slots(
    mentor_id: str,
    start_date: Optional[date] = None,
    end_date: Optional[date] = None,
    service: AvailabilityService = Depends(get_availability_service)
):
    """Concrete bookable slots grouped by date; defaults to the next two weeks"""
    return service.get_bookable_slots(mentor_id, start_date, end_date)


@router.get("/availability/me", response_model=List[AvailabilitySlotResponse])
async def list_my_availability(
    state: LifecycleState = Depends(require_onboarded_permission(Permission.AVAILABILITY_MANAGE)),
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.list_mentor_slots(state.identity.id)


@router.post("/availability/me", response_model=AvailabilitySlotResponse, status_code=201)
async def create_availability_slot(
    body: AvailabilitySlotCreate,
    state: LifecycleState = Depends(require_onboarded_permission(Permission.AVAILABILITY_MANAGE)),
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.create_slot(state.identity.id, body)


@router.put("/availability/me", response_model=List[AvailabilitySlotResponse])
async def replace_my_availability(
    body: WeekReplaceRequest,
    state: LifecycleState = Depends(require_onboarded_permission(Permission.AVAILABILITY_MANAGE)),
    service: AvailabilityService = Depends(get_availability_service)
):
    """Replace the full weekly configuration"""
    return service.replace_week(state.identity.id, body.slots)


@router.patch("/availability/me/{slot_id}", response_model=AvailabilitySlotResponse)
async def update_availability_slot(
    slot_id: str,
    body: AvailabilitySlotUpdate,
    state: LifecycleState = Depends(require_onboarded_permission(Permission.AVAILABILITY_MANAGE)),
    service: AvailabilityService = Depends(get_availability_service)
):
    return service.update_slot(state.identity.id, slot_id, body)


@router.delete("/availability/me/{slot_id}", status_code=204)
async def delete_availability_slot(
    slot_id: str,
    state: LifecycleState = Depends(require_onboarded_permission(Permission.AVAILABILITY_MANAGE)),
    service: AvailabilityService = Depends(get_availability_service)
):
    service.delete_slot(state.identity.id, slot_id)
    return None
