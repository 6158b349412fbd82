"""Appointment entity."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Iterable, Optional
from uuid import UUID, uuid4


class AppointmentType(str, Enum):
    """Fixed appointment categories."""

    CONSULTATION = "Consultation"
    INSTALLATION = "Installation"
    INSPECTION = "Inspection"
    MAINTENANCE = "Maintenance"
    REPAIR = "Repair"
    FOLLOW_UP = "Follow-up"


class AppointmentStatus(str, Enum):
    """Appointment lifecycle status."""

    SCHEDULED = "Scheduled"
    CONFIRMED = "Confirmed"
    COMPLETED = "Completed"
    CANCELLED = "Cancelled"
    RESCHEDULED = "Rescheduled"


@dataclass(frozen=True)
class CustomAppointmentType:
    """User-defined appointment category."""

    id: str
    name: str
    icon: str = "calendar"


@dataclass
class Appointment:
    """Appointment entity (a scheduled visit, optionally tied to a lead)."""

    title: str
    start_date: datetime
    end_date: datetime
    notes: str = ""
    location: str = ""
    lead_id: Optional[UUID] = None
    calendar_event_id: Optional[str] = None
    appointment_type: AppointmentType = AppointmentType.CONSULTATION
    custom_appointment_type_id: Optional[str] = None
    status: AppointmentStatus = AppointmentStatus.SCHEDULED
    id: UUID = field(default_factory=uuid4)

    def __post_init__(self) -> None:
        """Validate appointment time range."""
        if self.start_date > self.end_date:
            raise ValueError("Appointment start date must not be after its end date")

    @property
    def is_active(self) -> bool:
        """Whether the appointment still counts as upcoming work."""
        return self.status not in (AppointmentStatus.CANCELLED, AppointmentStatus.COMPLETED)

    def display_name(self, custom_types: Iterable[CustomAppointmentType] = ()) -> str:
        """
        Resolve the category name shown to the rep.

        The custom type wins when its reference still resolves; otherwise the
        fixed type is shown.

        Args:
            custom_types: Known user-defined categories

        Returns:
            Display name of the appointment category
        """
        if self.custom_appointment_type_id:
            for custom_type in custom_types:
                if custom_type.id == self.custom_appointment_type_id:
                    return custom_type.name
        return self.appointment_type.value
