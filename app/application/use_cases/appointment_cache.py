"""In-memory appointment collection backed by the local store."""

from typing import Optional
from uuid import UUID

from app.application.events import APPOINTMENTS_CHANGED, EventChannel
from app.application.ports.appointment_repository import AppointmentRepository
from app.application.ports.preferences_store import APPOINTMENTS_CLEARED_KEY, PreferencesStore
from app.domain.entities.appointment import Appointment
from app.infrastructure.logging.logger import logger


class AppointmentCache:
    """The appointment collection shared by the push path and the listener.

    Every mutation persists the full collection and publishes
    APPOINTMENTS_CHANGED.
    """

    def __init__(
        self,
        repository: AppointmentRepository,
        preferences: PreferencesStore,
        event_channel: EventChannel,
    ) -> None:
        self._repository = repository
        self._preferences = preferences
        self._events = event_channel
        self._appointments: list[Appointment] = []

    @property
    def appointments(self) -> list[Appointment]:
        """Copy of the current collection."""
        return list(self._appointments)

    @property
    def is_cleared(self) -> bool:
        """Whether a local-only clear suppresses reloading from the store."""
        return self._preferences.get_bool(APPOINTMENTS_CLEARED_KEY)

    def find(self, appointment_id: UUID) -> Optional[Appointment]:
        for appointment in self._appointments:
            if appointment.id == appointment_id:
                return appointment
        return None

    async def load(self) -> int:
        """
        Load the persisted collection unless a local clear is pending.

        Returns:
            Number of loaded appointments
        """
        if self.is_cleared:
            logger.info("Skipping appointment loading - appointments were cleared")
            return 0
        self._appointments = await self._repository.load()
        logger.info(f"Loaded {len(self._appointments)} appointments from local store")
        return len(self._appointments)

    async def replace(self, appointments: list[Appointment], reason: str) -> None:
        """
        Replace the whole collection and persist it.

        Args:
            appointments: New collection
            reason: Short label included in the change event
        """
        self._appointments = list(appointments)
        await self._persist(reason)

    async def upsert(self, appointment: Appointment, reason: str) -> bool:
        """
        Insert or replace one appointment by id.

        Returns:
            True if an existing appointment was replaced
        """
        for position, existing in enumerate(self._appointments):
            if existing.id == appointment.id:
                self._appointments[position] = appointment
                await self._persist(reason)
                return True
        self._appointments.append(appointment)
        await self._persist(reason)
        return False

    async def update_existing(self, appointment: Appointment, reason: str) -> bool:
        """Replace an appointment only if it is already present."""
        if self.find(appointment.id) is None:
            return False
        await self.upsert(appointment, reason)
        return True

    async def remove(self, appointment_id: UUID, reason: str) -> int:
        """Remove every copy of an appointment id; returns removed count."""
        before = len(self._appointments)
        self._appointments = [a for a in self._appointments if a.id != appointment_id]
        removed = before - len(self._appointments)
        await self._persist(reason)
        return removed

    async def clear_local(self) -> None:
        """Drop local appointments and suppress reloading until the next restart."""
        self._preferences.set(APPOINTMENTS_CLEARED_KEY, True)
        self._appointments = []
        await self._repository.clear()
        self._events.publish(APPOINTMENTS_CHANGED, {"reason": "cleared_local", "count": 0})

    def reset_cleared_flag(self) -> None:
        self._preferences.remove(APPOINTMENTS_CLEARED_KEY)

    async def _persist(self, reason: str) -> None:
        await self._repository.replace_all(self._appointments)
        self._events.publish(
            APPOINTMENTS_CHANGED,
            {"reason": reason, "count": len(self._appointments)},
        )
