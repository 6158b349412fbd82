"""Calendar integration port."""

from abc import ABC, abstractmethod
from typing import Optional

from app.domain.entities.appointment import Appointment


class CalendarService(ABC):
    """Port interface for the device calendar (fire-and-forget)."""

    @property
    @abstractmethod
    def is_enabled(self) -> bool:
        """Whether the rep turned calendar integration on."""
        pass

    @abstractmethod
    async def create_or_update_event(self, appointment: Appointment) -> Optional[str]:
        """
        Create or update the calendar event mirroring an appointment.

        Args:
            appointment: Appointment to mirror

        Returns:
            Calendar event identifier, or None when access was not granted
        """
        pass

    @abstractmethod
    async def delete_event(self, event_id: str) -> bool:
        """
        Delete a calendar event.

        Args:
            event_id: Calendar event identifier

        Returns:
            True on success
        """
        pass
