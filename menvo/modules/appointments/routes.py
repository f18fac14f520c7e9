from fastapi import APIRouter, Depends, Query
from supabase import Client
from typing import Optional

from menvo.config.permissions_config import Permission
from menvo.core.dependencies import require_permission, require_onboarded_permission
from menvo.core.identity import IdentitySnapshot
from menvo.database.supabase_client import get_supabase
from menvo.modules.auth.lifecycle import LifecycleState
from menvo.modules.appointments.schemas import (
    AppointmentCreate, AppointmentListResponse, AppointmentResponse,
    AppointmentStatus, AppointmentStatusUpdate
)
from menvo.modules.appointments.service import AppointmentService

router = APIRouter(prefix="/appointments", tags=["appointments"])


def get_appointment_service(supabase: Client = Depends(get_supabase)) -> AppointmentService:
    return AppointmentService(supabase)


@router.post("", response_model=AppointmentResponse, status_code=201)
async def create_appointment(
    body: AppointmentCreate,
    state: LifecycleState = Depends(require_onboarded_permission(Permission.APPOINTMENTS_CREATE)),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Book a session in one of the mentor's open slots"""
    return service.create_appointment(state.identity, body)


@router.get("", response_model=AppointmentListResponse)
async def list_my_appointments(
    role: Optional[str] = Query(None, pattern="^(mentor|mentee)$"),
    status: Optional[AppointmentStatus] = None,
    identity: IdentitySnapshot = Depends(require_permission(Permission.APPOINTMENTS_READ)),
    service: AppointmentService = Depends(get_appointment_service)
):
    return service.list_my_appointments(identity, role, status)


@router.get("/{appointment_id}", response_model=AppointmentResponse)
async def get_appointment(
    appointment_id: str,
    identity: IdentitySnapshot = Depends(require_permission(Permission.APPOINTMENTS_READ)),
    service: AppointmentService = Depends(get_appointment_service)
):
    return service.get_appointment(identity, appointment_id)


@router.post("/{appointment_id}/status", response_model=AppointmentResponse)
async def update_appointment_status(
    appointment_id: str,
    body: AppointmentStatusUpdate,
    identity: IdentitySnapshot = Depends(require_permission(Permission.APPOINTMENTS_UPDATE)),
    service: AppointmentService = Depends(get_appointment_service)
):
    """Complete, cancel or mark a no-show; only scheduled appointments can move"""
    return service.transition(identity, appointment_id, body)
