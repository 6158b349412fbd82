"""Local notification port."""

from abc import ABC, abstractmethod
from uuid import UUID

from app.domain.entities.appointment import Appointment
from app.domain.entities.lead import Lead


class NotificationService(ABC):
    """Port interface for local reminders (fire-and-forget)."""

    @abstractmethod
    async def schedule_appointment_notifications(self, appointment: Appointment) -> bool:
        """Schedule (or reschedule) reminders for an appointment."""
        pass

    @abstractmethod
    async def cancel_appointment_notifications(self, appointment_id: UUID) -> bool:
        """Cancel every reminder of an appointment."""
        pass

    @abstractmethod
    async def schedule_follow_up_notification(self, lead: Lead) -> bool:
        """Schedule the follow-up reminder of a lead at its follow-up date."""
        pass

    @abstractmethod
    async def cancel_follow_up_notification(self, lead_id: UUID) -> bool:
        """Cancel the follow-up reminder of a lead."""
        pass
