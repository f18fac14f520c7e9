from supabase import Client
from fastapi import HTTPException
from postgrest.exceptions import APIError
from typing import Any, Dict, List, Optional
from datetime import datetime, timedelta, timezone
import logging

from menvo.config import settings
from menvo.config.permissions_config import Permission, UserRole, has_permission
from menvo.core.errors import (
    ConflictError, ForbiddenError, NotFoundError, UpstreamError, ValidationError
)
from menvo.core.identity import IdentitySnapshot
from menvo.database.supabase_client import UNIQUE_VIOLATION, first_row
from menvo.modules.appointments.notifications import AppointmentNotifier
from menvo.modules.appointments.schemas import (
    AppointmentCreate, AppointmentListResponse, AppointmentResponse,
    AppointmentStatus, AppointmentStatusUpdate
)
from menvo.modules.appointments.validation import validate_booking_request
from menvo.modules.availability.service import AvailabilityService
from menvo.modules.availability.slots import parse_datetime
from menvo.modules.profiles.service import ProfileService

logger = logging.getLogger(__name__)

SLOT_TAKEN_MESSAGE = "This time slot was just booked, pick another one"


def _now() -> datetime:
    return datetime.now(timezone.utc)


class AppointmentService:
    def __init__(
        self,
        supabase: Client,
        notifier: Optional[AppointmentNotifier] = None,
        availability: Optional[AvailabilityService] = None,
    ):
        self.supabase = supabase
        self.notifier = notifier or AppointmentNotifier(supabase)
        self.availability = availability or AvailabilityService(supabase)

    def create_appointment(
        self,
        requester: IdentitySnapshot,
        payload: AppointmentCreate,
        now: Optional[datetime] = None,
    ) -> AppointmentResponse:
        """
        Book a session with a mentor.

        The collision check and slot re-validation below are a read-then-write;
        the partial unique index on (mentor_id, scheduled_at) is what actually
        rejects a concurrent duplicate, surfacing as ConflictError.
        """
        now = now or _now()
        scheduled_at = validate_booking_request(
            payload,
            now,
            settings.booking_message_min_length,
            settings.booking_message_required,
        )
        duration = payload.duration_minutes

        if requester.id == payload.mentor_id:
            raise ValidationError("You cannot book a session with yourself", field="mentor_id")
        self._get_bookable_mentor(payload.mentor_id)

        end = scheduled_at + timedelta(minutes=duration)
        busy = self.availability.fetch_booked_intervals(
            payload.mentor_id, scheduled_at - timedelta(days=1), end
        )
        if any(interval.overlaps(scheduled_at, end) for interval in busy):
            raise ConflictError(SLOT_TAKEN_MESSAGE, extra={"scheduled_at": scheduled_at.isoformat()})

        day = scheduled_at.date()
        offered = self.availability.compute_slots(
            payload.mentor_id, day - timedelta(days=1), day + timedelta(days=1), duration, now
        )
        if not any(slot.full_datetime == scheduled_at for slot in offered):
            raise ValidationError(
                "The selected time is not one of the mentor's available slots",
                field="scheduled_at",
            )

        message = (payload.message or "").strip() or None
        row = {
            "mentor_id": payload.mentor_id,
            "mentee_id": requester.id,
            "scheduled_at": scheduled_at.isoformat(),
            "duration_minutes": duration,
            "status": AppointmentStatus.SCHEDULED.value,
            "message": message,
            "organization_id": self._shared_organization(payload.mentor_id, requester.id),
            "created_at": now.isoformat(),
        }
        try:
            result = self.supabase.table("appointments").insert(row).execute()
        except APIError as e:
            if e.code == UNIQUE_VIOLATION:
                logger.info(f"Booking race lost for mentor {payload.mentor_id} at {row['scheduled_at']}")
                raise ConflictError(SLOT_TAKEN_MESSAGE, extra={"scheduled_at": row["scheduled_at"]})
            logger.error(f"Error creating appointment: {e}")
            raise UpstreamError()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating appointment: {e}")
            raise UpstreamError()
        if not result.data:
            raise UpstreamError()

        appointment = result.data[0]
        logger.info(
            f"Appointment {appointment.get('id')} booked: mentee {requester.id} "
            f"with mentor {payload.mentor_id} at {row['scheduled_at']}"
        )
        self.notifier.notify("appointment_created", appointment)
        return AppointmentResponse(**appointment)

    def list_my_appointments(
        self,
        identity: IdentitySnapshot,
        role_view: Optional[str] = None,
        status: Optional[AppointmentStatus] = None,
    ) -> AppointmentListResponse:
        try:
            query = self.supabase.table("appointments").select("*")
            if role_view == "mentor":
                query = query.eq("mentor_id", identity.id)
            elif role_view == "mentee":
                query = query.eq("mentee_id", identity.id)
            else:
                query = query.or_(f"mentor_id.eq.{identity.id},mentee_id.eq.{identity.id}")
            if status:
                query = query.eq("status", status.value)
            result = query.order("scheduled_at").execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error listing appointments for {identity.id}: {e}")
            raise UpstreamError()
        appointments = [AppointmentResponse(**row) for row in (result.data or [])]
        return AppointmentListResponse(appointments=appointments, total=len(appointments))

    def get_appointment(self, identity: IdentitySnapshot, appointment_id: str) -> AppointmentResponse:
        return AppointmentResponse(**self._get_visible_row(identity, appointment_id))

    def transition(
        self,
        identity: IdentitySnapshot,
        appointment_id: str,
        update: AppointmentStatusUpdate,
        now: Optional[datetime] = None,
    ) -> AppointmentResponse:
        """Move a scheduled appointment to completed, cancelled or no_show."""
        now = now or _now()
        row = self._get_visible_row(identity, appointment_id)
        current = AppointmentStatus(row["status"])
        target = AppointmentStatus(update.status)
        if current != AppointmentStatus.SCHEDULED:
            raise ConflictError(
                f"Appointment is already {current.value}",
                extra={"status": current.value},
            )
        if target in (AppointmentStatus.COMPLETED, AppointmentStatus.NO_SHOW):
            if parse_datetime(row["scheduled_at"]) > now:
                raise ValidationError(
                    f"An appointment cannot be marked {target.value} before it starts",
                    field="status",
                )

        update_data: Dict[str, Any] = {"status": target.value, "updated_at": now.isoformat()}
        if target == AppointmentStatus.CANCELLED:
            update_data["cancellation_reason"] = update.reason
            update_data["cancelled_by"] = identity.id
        try:
            result = self.supabase.table("appointments")\
                .update(update_data)\
                .eq("id", appointment_id)\
                .eq("status", AppointmentStatus.SCHEDULED.value)\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating appointment {appointment_id}: {e}")
            raise UpstreamError()
        if not result.data:
            # Someone else moved it out of scheduled in the meantime
            raise ConflictError("Appointment status changed, reload and try again")

        appointment = result.data[0]
        logger.info(f"Appointment {appointment_id} {current.value} -> {target.value} by {identity.id}")
        if target == AppointmentStatus.CANCELLED:
            self.notifier.notify("appointment_cancelled", appointment)
        return AppointmentResponse(**appointment)

    def _get_bookable_mentor(self, mentor_id: str) -> Dict[str, Any]:
        mentor = ProfileService(self.supabase).get_profile_row(mentor_id)
        if not mentor:
            raise NotFoundError("Mentor not found")
        if mentor.get("role") != UserRole.MENTOR.value:
            raise ValidationError("Selected user is not a mentor", field="mentor_id")
        if not mentor.get("verified_at"):
            raise ValidationError("Mentor is not verified yet", field="mentor_id")
        return mentor

    def _get_visible_row(self, identity: IdentitySnapshot, appointment_id: str) -> Dict[str, Any]:
        try:
            result = self.supabase.table("appointments")\
                .select("*")\
                .eq("id", appointment_id)\
                .maybe_single()\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching appointment {appointment_id}: {e}")
            raise UpstreamError()
        row = first_row(result)
        if not row:
            raise NotFoundError("Appointment not found")
        is_party = identity.id in (row.get("mentor_id"), row.get("mentee_id"))
        if not is_party and not has_permission(identity.role, Permission.APPOINTMENTS_MANAGE):
            raise ForbiddenError("You are not part of this appointment")
        return row

    def _shared_organization(self, mentor_id: str, mentee_id: str) -> Optional[str]:
        """Organization both users actively belong to; the mentee's latest invitation wins."""
        try:
            result = self.supabase.table("organization_members")\
                .select("organization_id, user_id, invited_at")\
                .eq("status", "active")\
                .in_("user_id", [mentor_id, mentee_id])\
                .execute()
        except Exception as e:
            logger.warning(f"Could not resolve organization context for booking: {e}")
            return None

        members: Dict[str, set] = {}
        invited: Dict[str, str] = {}
        for member in result.data or []:
            org_id = member["organization_id"]
            members.setdefault(org_id, set()).add(member["user_id"])
            if member["user_id"] == mentee_id:
                invited[org_id] = member.get("invited_at") or ""
        shared: List[str] = [org for org, users in members.items() if {mentor_id, mentee_id} <= users]
        if not shared:
            return None
        return max(shared, key=lambda org: invited.get(org, ""))
