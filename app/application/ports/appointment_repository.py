"""Appointment repository port."""

from abc import ABC, abstractmethod

from app.domain.entities.appointment import Appointment


class AppointmentRepository(ABC):
    """Port interface for the local appointment cache.

    Appointments are held in memory by the appointment manager and the whole
    collection is persisted at once, so the port deals in full collections.
    """

    @abstractmethod
    async def load(self) -> list[Appointment]:
        """
        Load the persisted appointment collection.

        Returns:
            Persisted appointments in stored order (empty if none)
        """
        pass

    @abstractmethod
    async def replace_all(self, appointments: list[Appointment]) -> None:
        """
        Persist the full appointment collection.

        Args:
            appointments: Collection to store, replacing what was there
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove the persisted appointment collection."""
        pass
