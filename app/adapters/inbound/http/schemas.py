"""HTTP adapter schemas for the control surface."""

from datetime import datetime
from typing import Optional
from uuid import UUID

from pydantic import BaseModel, ConfigDict, Field, model_validator

from app.domain.entities.appointment import Appointment, AppointmentType
from app.domain.entities.lead import Lead, LeadStatus


class CredentialsRequest(BaseModel):
    """Email/password payload for sign-in."""

    email: str
    password: str

    model_config = ConfigDict(
        json_schema_extra={"example": {"email": "rep@example.com", "password": "secret123"}}
    )


class SignUpRequest(CredentialsRequest):
    """Sign-up and guest conversion payload."""

    display_name: Optional[str] = None


class AuthResponse(BaseModel):
    """Authentication outcome."""

    status: str
    user_id: Optional[str] = None
    email: Optional[str] = None
    is_guest_mode: bool = False


class SyncStartedResponse(BaseModel):
    """Result of a manual sync request."""

    started: bool
    status: str


class AppointmentCreateRequest(BaseModel):
    """Payload for scheduling an appointment."""

    lead_id: UUID
    title: str = Field(min_length=1)
    start_date: datetime
    end_date: datetime
    notes: str = ""
    location: str = ""
    appointment_type: AppointmentType = AppointmentType.CONSULTATION
    custom_appointment_type_id: Optional[str] = None

    @model_validator(mode="after")
    def _check_dates(self) -> "AppointmentCreateRequest":
        if self.start_date > self.end_date:
            raise ValueError("start_date must not be after end_date")
        return self

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "lead_id": "6f1c8a2e-3f55-4f0e-9d51-2b8f7e1c9a10",
                "title": "Roof consultation",
                "start_date": "2025-08-21T15:00:00Z",
                "end_date": "2025-08-21T16:00:00Z",
                "location": "12 Elm St",
            }
        }
    )


class AppointmentResponse(BaseModel):
    """Appointment as returned by the API."""

    id: UUID
    title: str
    notes: str
    start_date: datetime
    end_date: datetime
    location: str
    lead_id: Optional[UUID] = None
    calendar_event_id: Optional[str] = None
    appointment_type: str
    custom_appointment_type_id: Optional[str] = None
    status: str

    @classmethod
    def from_entity(cls, appointment: Appointment) -> "AppointmentResponse":
        return cls(
            id=appointment.id,
            title=appointment.title,
            notes=appointment.notes,
            start_date=appointment.start_date,
            end_date=appointment.end_date,
            location=appointment.location,
            lead_id=appointment.lead_id,
            calendar_event_id=appointment.calendar_event_id,
            appointment_type=appointment.appointment_type.value,
            custom_appointment_type_id=appointment.custom_appointment_type_id,
            status=appointment.status.value,
        )


class LeadCreateRequest(BaseModel):
    """Payload for adding a lead (name or address is required)."""

    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    latitude: float = Field(default=0.0, ge=-90, le=90)
    longitude: float = Field(default=0.0, ge=-180, le=180)
    notes: Optional[str] = None
    price: float = 0.0
    status: LeadStatus = LeadStatus.NOT_CONTACTED
    follow_up_date: Optional[datetime] = None


class LeadResponse(BaseModel):
    """Lead as returned by the API."""

    id: UUID
    display_name: str
    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    status: str
    follow_up_date: Optional[datetime] = None
    updated_at: datetime

    @classmethod
    def from_entity(cls, lead: Lead) -> "LeadResponse":
        return cls(
            id=lead.id,
            display_name=lead.display_name,
            name=lead.name,
            address=lead.address,
            phone=lead.phone,
            email=lead.email,
            status=lead.status.value,
            follow_up_date=lead.follow_up_date,
            updated_at=lead.updated_at,
        )


class ErrorResponse(BaseModel):
    """Error body returned for categorized failures."""

    detail: str
    category: str
    retryable: bool
