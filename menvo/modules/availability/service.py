from supabase import Client
from fastapi import HTTPException
from pydantic import ValidationError as PydanticValidationError
from typing import List, Optional, Sequence
from datetime import date, datetime, time, timedelta, timezone
import logging

from menvo.config import settings
from menvo.core.errors import ConflictError, NotFoundError, UpstreamError, ValidationError
from menvo.database.supabase_client import first_row
from menvo.modules.availability.schemas import (
    AvailabilitySlotCreate, AvailabilitySlotUpdate, AvailabilitySlotResponse,
    BookableSlotsResponse, DaySlotsResponse, BookableSlotResponse
)
from menvo.modules.availability.slots import (
    BookableSlot, BusyInterval, WeeklyWindow, busy_from_appointments,
    find_overlaps, generate_slots, group_by_date, windows_overlap
)

logger = logging.getLogger(__name__)

MAX_QUERY_DAYS = 90


def _now() -> str:
    return datetime.now(timezone.utc).isoformat()


def _row_payload(data: AvailabilitySlotCreate) -> dict:
    payload = data.model_dump()
    payload["start_time"] = data.start_time.strftime("%H:%M:%S")
    payload["end_time"] = data.end_time.strftime("%H:%M:%S")
    return payload


class AvailabilityService:
    def __init__(self, supabase: Client):
        self.supabase = supabase

    def list_mentor_slots(self, mentor_id: str, active_only: bool = False) -> List[AvailabilitySlotResponse]:
        """Weekly configuration of a mentor, ordered by weekday then start time"""
        try:
            query = self.supabase.table("mentor_availability")\
                .select("*")\
                .eq("mentor_id", mentor_id)
            if active_only:
                query = query.eq("is_active", True)
            result = query.order("day_of_week").order("start_time").execute()
            return [AvailabilitySlotResponse(**row) for row in (result.data or [])]
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching availability for mentor {mentor_id}: {e}")
            raise UpstreamError()

    def create_slot(self, mentor_id: str, data: AvailabilitySlotCreate) -> AvailabilitySlotResponse:
        self._ensure_no_overlap(mentor_id, data.to_window())
        try:
            result = self.supabase.table("mentor_availability").insert({
                **_row_payload(data),
                "mentor_id": mentor_id,
            }).execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error creating availability for mentor {mentor_id}: {e}")
            raise UpstreamError()
        if not result.data:
            raise UpstreamError()
        return AvailabilitySlotResponse(**result.data[0])

    def update_slot(self, mentor_id: str, slot_id: str, data: AvailabilitySlotUpdate) -> AvailabilitySlotResponse:
        existing = self._get_owned_slot(mentor_id, slot_id)
        merged = {**existing.model_dump(), **data.model_dump(exclude_unset=True, exclude_none=True)}
        try:
            candidate = AvailabilitySlotCreate(**{
                k: merged[k] for k in ("day_of_week", "start_time", "end_time", "timezone", "is_active")
            })
        except PydanticValidationError as e:
            error = e.errors()[0]
            loc = error.get("loc") or ("end_time",)
            raise ValidationError(error["msg"], field=str(loc[-1]))
        self._ensure_no_overlap(mentor_id, candidate.to_window(), ignore_id=slot_id)
        try:
            result = self.supabase.table("mentor_availability")\
                .update({**_row_payload(candidate), "updated_at": _now()})\
                .eq("id", slot_id)\
                .eq("mentor_id", mentor_id)\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error updating availability slot {slot_id}: {e}")
            raise UpstreamError()
        if not result.data:
            raise NotFoundError("Availability slot not found")
        return AvailabilitySlotResponse(**result.data[0])

    def delete_slot(self, mentor_id: str, slot_id: str) -> None:
        self._get_owned_slot(mentor_id, slot_id)
        try:
            self.supabase.table("mentor_availability")\
                .delete()\
                .eq("id", slot_id)\
                .eq("mentor_id", mentor_id)\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error deleting availability slot {slot_id}: {e}")
            raise UpstreamError()

    def replace_week(self, mentor_id: str, slots: Sequence[AvailabilitySlotCreate]) -> List[AvailabilitySlotResponse]:
        """
        Replace the whole weekly configuration in one call (availability settings page).
        New rows are written before the previous ones are removed, so a failed write
        leaves the old week in place.
        """
        overlaps = find_overlaps([s.to_window() for s in slots])
        if overlaps:
            first, second = overlaps[0]
            raise ConflictError(
                "Availability windows overlap on the same day",
                extra={"overlapping": [first, second]},
            )
        previous_ids = [slot.id for slot in self.list_mentor_slots(mentor_id)]
        created = []
        try:
            if slots:
                result = self.supabase.table("mentor_availability").insert([
                    {**_row_payload(s), "mentor_id": mentor_id} for s in slots
                ]).execute()
                created = result.data or []
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error replacing availability for mentor {mentor_id}: {e}")
            raise UpstreamError()

        if previous_ids:
            try:
                self.supabase.table("mentor_availability")\
                    .delete()\
                    .eq("mentor_id", mentor_id)\
                    .in_("id", previous_ids)\
                    .execute()
            except HTTPException:
                raise
            except Exception as e:
                logger.error(f"Error removing previous availability for mentor {mentor_id}: {e}")
                self._discard_rows(mentor_id, [row["id"] for row in created])
                raise UpstreamError()
        logger.info(f"Mentor {mentor_id} availability replaced with {len(slots)} window(s)")
        return [AvailabilitySlotResponse(**row) for row in created]

    def _discard_rows(self, mentor_id: str, slot_ids: List[str]) -> None:
        if not slot_ids:
            return
        try:
            self.supabase.table("mentor_availability")\
                .delete()\
                .eq("mentor_id", mentor_id)\
                .in_("id", slot_ids)\
                .execute()
        except Exception as e:
            logger.error(f"Error rolling back availability for mentor {mentor_id}: {e}")

    def fetch_booked_intervals(self, mentor_id: str, start: datetime, end: datetime) -> List[BusyInterval]:
        """Non-cancelled appointments of the mentor starting in [start, end)"""
        try:
            result = self.supabase.table("appointments")\
                .select("scheduled_at, duration_minutes")\
                .eq("mentor_id", mentor_id)\
                .neq("status", "cancelled")\
                .gte("scheduled_at", start.isoformat())\
                .lt("scheduled_at", end.isoformat())\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching appointments for mentor {mentor_id}: {e}")
            raise UpstreamError()
        return busy_from_appointments(result.data or [], settings.session_duration_minutes)

    def compute_slots(
        self,
        mentor_id: str,
        start_date: date,
        end_date: date,
        duration_minutes: Optional[int] = None,
        now: Optional[datetime] = None,
    ) -> List[BookableSlot]:
        duration = duration_minutes or settings.session_duration_minutes
        windows = [s.to_window() for s in self.list_mentor_slots(mentor_id, active_only=True)]
        if not windows:
            return []
        # A day of slack each side covers windows whose local date differs from UTC
        range_start = datetime.combine(start_date - timedelta(days=1), time.min, tzinfo=timezone.utc)
        range_end = datetime.combine(end_date + timedelta(days=2), time.min, tzinfo=timezone.utc)
        booked = self.fetch_booked_intervals(mentor_id, range_start, range_end)
        return generate_slots(windows, start_date, end_date, booked, duration, now)

    def get_bookable_slots(
        self,
        mentor_id: str,
        start_date: Optional[date] = None,
        end_date: Optional[date] = None,
        now: Optional[datetime] = None,
    ) -> BookableSlotsResponse:
        now = now or datetime.now(timezone.utc)
        start_date = start_date or now.date()
        end_date = end_date or start_date + timedelta(days=settings.availability_window_days)
        if end_date < start_date:
            raise ValidationError("end_date must not be before start_date", field="end_date")
        if (end_date - start_date).days > MAX_QUERY_DAYS:
            raise ValidationError(f"Date range cannot exceed {MAX_QUERY_DAYS} days", field="end_date")

        slots = self.compute_slots(mentor_id, start_date, end_date, now=now)
        days = [
            DaySlotsResponse(
                date=day.date,
                day_of_week=day.day_of_week,
                slots=[BookableSlotResponse(**s.to_dict()) for s in day.slots],
            )
            for day in group_by_date(slots)
        ]
        return BookableSlotsResponse(
            mentor_id=mentor_id,
            start_date=start_date,
            end_date=end_date,
            duration_minutes=settings.session_duration_minutes,
            total_slots=len(slots),
            days=days,
        )

    def _get_owned_slot(self, mentor_id: str, slot_id: str) -> AvailabilitySlotResponse:
        try:
            result = self.supabase.table("mentor_availability")\
                .select("*")\
                .eq("id", slot_id)\
                .eq("mentor_id", mentor_id)\
                .maybe_single()\
                .execute()
        except HTTPException:
            raise
        except Exception as e:
            logger.error(f"Error fetching availability slot {slot_id}: {e}")
            raise UpstreamError()
        row = first_row(result)
        if not row:
            raise NotFoundError("Availability slot not found")
        return AvailabilitySlotResponse(**row)

    def _ensure_no_overlap(self, mentor_id: str, window: WeeklyWindow, ignore_id: Optional[str] = None) -> None:
        if not window.is_active:
            return
        for existing in self.list_mentor_slots(mentor_id, active_only=True):
            if existing.id == ignore_id:
                continue
            if windows_overlap(window, existing.to_window()):
                raise ConflictError(
                    "Availability window overlaps an existing window on the same day",
                    extra={"conflicting_slot_id": existing.id},
                )
