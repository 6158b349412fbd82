"""No-op platform adapters for environments without calendar or notifications."""

from typing import Optional
from uuid import UUID

from app.application.ports.calendar_service import CalendarService
from app.application.ports.notification_service import NotificationService
from app.domain.entities.appointment import Appointment
from app.domain.entities.lead import Lead


class NoOpCalendarService(CalendarService):
    """Calendar integration that is always disabled."""

    @property
    def is_enabled(self) -> bool:
        return False

    async def create_or_update_event(self, appointment: Appointment) -> Optional[str]:
        """
        Never creates an event.

        Args:
            appointment: Appointment (ignored)

        Returns:
            Always None
        """
        return None

    async def delete_event(self, event_id: str) -> bool:
        return False


class NoOpNotificationService(NotificationService):
    """Notification integration that schedules nothing."""

    async def schedule_appointment_notifications(self, appointment: Appointment) -> bool:
        return False

    async def cancel_appointment_notifications(self, appointment_id: UUID) -> bool:
        return False

    async def schedule_follow_up_notification(self, lead: Lead) -> bool:
        return False

    async def cancel_follow_up_notification(self, lead_id: UUID) -> bool:
        return False
