"""Local store adapters."""

from app.adapters.outbound.local_store.in_memory_repositories import (
    InMemoryAppointmentRepository,
    InMemoryFollowUpCheckInRepository,
    InMemoryLeadRepository,
)
from app.adapters.outbound.local_store.sql_appointment_repository import SqlAppointmentRepository
from app.adapters.outbound.local_store.sql_check_in_repository import SqlFollowUpCheckInRepository
from app.adapters.outbound.local_store.sql_lead_repository import SqlLeadRepository

__all__ = [
    "InMemoryAppointmentRepository",
    "InMemoryFollowUpCheckInRepository",
    "InMemoryLeadRepository",
    "SqlAppointmentRepository",
    "SqlFollowUpCheckInRepository",
    "SqlLeadRepository",
]
