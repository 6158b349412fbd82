"""In-memory local store adapters."""

from typing import Callable, Optional
from uuid import UUID

from app.application.ports.appointment_repository import AppointmentRepository
from app.application.ports.follow_up_check_in_repository import FollowUpCheckInRepository
from app.application.ports.lead_repository import LeadRepository
from app.domain.entities.appointment import Appointment
from app.domain.entities.follow_up_check_in import FollowUpCheckIn
from app.domain.entities.lead import Lead


class InMemoryLeadRepository(LeadRepository):
    """In-memory implementation of lead repository."""

    def __init__(self) -> None:
        """Initialize in-memory repository."""
        self._storage: dict[UUID, Lead] = {}

    async def get(self, lead_id: UUID) -> Optional[Lead]:
        return self._storage.get(lead_id)

    async def save(self, lead: Lead) -> None:
        self._storage[lead.id] = lead

    async def delete(self, lead_id: UUID) -> bool:
        return self._storage.pop(lead_id, None) is not None

    async def list_all(self) -> list[Lead]:
        """
        List all leads.

        Returns:
            Leads in insertion order
        """
        return list(self._storage.values())

    async def query(self, predicate: Callable[[Lead], bool]) -> list[Lead]:
        return [lead for lead in self._storage.values() if predicate(lead)]

    async def clear(self) -> None:
        self._storage.clear()


class InMemoryFollowUpCheckInRepository(FollowUpCheckInRepository):
    """In-memory implementation of check-in repository."""

    def __init__(self) -> None:
        """Initialize in-memory repository."""
        self._storage: dict[UUID, FollowUpCheckIn] = {}

    async def save(self, check_in: FollowUpCheckIn) -> None:
        self._storage[check_in.id] = check_in

    async def list_for_lead(self, lead_id: UUID) -> list[FollowUpCheckIn]:
        check_ins = [c for c in self._storage.values() if c.lead_id == lead_id]
        return sorted(check_ins, key=lambda c: c.check_in_date, reverse=True)

    async def list_all(self) -> list[FollowUpCheckIn]:
        return list(self._storage.values())

    async def delete_for_lead(self, lead_id: UUID) -> int:
        owned = [c.id for c in self._storage.values() if c.lead_id == lead_id]
        for check_in_id in owned:
            del self._storage[check_in_id]
        return len(owned)

    async def clear(self) -> None:
        self._storage.clear()


class InMemoryAppointmentRepository(AppointmentRepository):
    """In-memory implementation of appointment repository."""

    def __init__(self) -> None:
        """Initialize with an empty collection."""
        self._storage: list[Appointment] = []

    async def load(self) -> list[Appointment]:
        return list(self._storage)

    async def replace_all(self, appointments: list[Appointment]) -> None:
        self._storage = list(appointments)

    async def clear(self) -> None:
        self._storage = []
