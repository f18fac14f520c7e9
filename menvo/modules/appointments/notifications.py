from supabase import Client
from typing import Any, Dict
import logging

from menvo.config import settings

logger = logging.getLogger(__name__)


class AppointmentNotifier:
    """Delegates e-mail delivery to the notification Edge Function."""

    def __init__(self, supabase: Client):
        self.supabase = supabase

    def notify(self, event: str, appointment: Dict[str, Any]) -> bool:
        """Fire-and-forget; a failed notification never fails the caller."""
        body = {
            "event": event,
            "appointmentId": appointment.get("id"),
            "mentorId": appointment.get("mentor_id"),
            "menteeId": appointment.get("mentee_id"),
            "scheduledAt": appointment.get("scheduled_at"),
        }
        try:
            self.supabase.functions.invoke(
                settings.appointment_notification_function,
                invoke_options={"body": body},
            )
            return True
        except Exception as e:
            logger.error(f"Failed to send {event} notification for appointment {appointment.get('id')}: {e}")
            return False
