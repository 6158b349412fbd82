"""Appointment remote document DTO."""

from datetime import datetime
from typing import Any, Optional
from uuid import UUID

from pydantic import Field, field_validator

from app.application.dtos.base import WireDocument
from app.application.dtos.documents import decode_document_id, decode_uuid, ensure_aware
from app.domain.entities.appointment import Appointment, AppointmentStatus, AppointmentType

APPOINTMENTS_COLLECTION = "appointments"


class AppointmentDocument(WireDocument):
    """Wire form of an appointment in users/{uid}/appointments/{id}."""

    id: str
    title: str
    notes: str
    start_date: datetime = Field(alias="startDate")
    end_date: datetime = Field(alias="endDate")
    location: str
    lead_id: Optional[str] = Field(default=None, alias="leadId")
    calendar_event_id: Optional[str] = Field(default=None, alias="calendarEventId")
    appointment_type: str = Field(alias="appointmentType")
    custom_appointment_type_id: Optional[str] = Field(
        default=None, alias="customAppointmentTypeId"
    )
    status: str

    @field_validator("id", mode="before")
    @classmethod
    def _decode_id(cls, value: Any) -> str:
        return decode_document_id(value)

    @field_validator("lead_id", mode="before")
    @classmethod
    def _decode_lead_id(cls, value: Any) -> Optional[str]:
        parsed = decode_uuid(value)
        return str(parsed) if parsed else None

    @field_validator("start_date", "end_date")
    @classmethod
    def _aware_dates(cls, value: datetime) -> datetime:
        return ensure_aware(value)

    @classmethod
    def from_entity(cls, appointment: Appointment) -> "AppointmentDocument":
        """
        Build a document from an appointment.

        Args:
            appointment: Appointment entity

        Returns:
            Appointment document
        """
        return cls(
            id=str(appointment.id),
            title=appointment.title,
            notes=appointment.notes,
            start_date=appointment.start_date,
            end_date=appointment.end_date,
            location=appointment.location,
            lead_id=str(appointment.lead_id) if appointment.lead_id else None,
            calendar_event_id=appointment.calendar_event_id,
            appointment_type=appointment.appointment_type.value,
            custom_appointment_type_id=appointment.custom_appointment_type_id,
            status=appointment.status.value,
        )

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "AppointmentDocument":
        """Validate a raw remote document."""
        return cls.model_validate(data)

    def to_entity(self) -> Appointment:
        """
        Convert to an appointment entity.

        Unknown type or status strings fall back to Consultation / Scheduled.

        Returns:
            Appointment entity
        """
        try:
            appointment_type = AppointmentType(self.appointment_type)
        except ValueError:
            appointment_type = AppointmentType.CONSULTATION
        try:
            status = AppointmentStatus(self.status)
        except ValueError:
            status = AppointmentStatus.SCHEDULED

        return Appointment(
            id=UUID(self.id),
            title=self.title,
            notes=self.notes,
            start_date=self.start_date,
            end_date=self.end_date,
            location=self.location,
            lead_id=UUID(self.lead_id) if self.lead_id else None,
            calendar_event_id=self.calendar_event_id,
            appointment_type=appointment_type,
            custom_appointment_type_id=self.custom_appointment_type_id,
            status=status,
        )
