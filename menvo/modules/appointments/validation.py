"""
Field-level checks for a booking request, run before anything touches the store.
"""

from datetime import datetime, timezone

from menvo.core.errors import ValidationError
from menvo.modules.appointments.schemas import AppointmentCreate


def validate_booking_request(
    payload: AppointmentCreate,
    now: datetime,
    min_length: int,
    message_required: bool = True,
) -> datetime:
    """Return the requested start as an aware UTC datetime, or raise ValidationError."""
    if payload.scheduled_at is None:
        raise ValidationError("Select a date and time", field="scheduled_at")

    message = (payload.message or "").strip()
    if message_required and not message:
        raise ValidationError("A message for the mentor is required", field="message")
    if message and len(message) < min_length:
        raise ValidationError(
            f"Message must be at least {min_length} characters",
            field="message",
            extra={"min_length": min_length},
        )

    if payload.duration_minutes <= 0:
        raise ValidationError("Duration must be positive", field="duration_minutes")

    scheduled_at = payload.scheduled_at
    if scheduled_at.tzinfo is None:
        scheduled_at = scheduled_at.replace(tzinfo=timezone.utc)
    scheduled_at = scheduled_at.astimezone(timezone.utc)
    if scheduled_at <= now:
        raise ValidationError("Scheduled time must be in the future", field="scheduled_at")
    return scheduled_at
