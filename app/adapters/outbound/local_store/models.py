"""SQLAlchemy ORM models for the local store."""

from datetime import datetime, timezone

from sqlalchemy import Column, DateTime, Float, ForeignKey, Integer, String, Text
from sqlalchemy.orm import declarative_base

Base = declarative_base()


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeadModel(Base):
    """SQLAlchemy model for leads table."""

    __tablename__ = "leads"

    id = Column(String(36), primary_key=True, index=True)
    name = Column(String, nullable=True)
    address = Column(String, nullable=True)
    phone = Column(String, nullable=True)
    email = Column(String, nullable=True)
    latitude = Column(Float, nullable=False, default=0.0)
    longitude = Column(Float, nullable=False, default=0.0)
    notes = Column(Text, nullable=True)
    price = Column(Float, nullable=False, default=0.0)
    status = Column(String, nullable=False, default="not_contacted")
    follow_up_date = Column(DateTime(timezone=True), nullable=True)
    service_category_id = Column(String, nullable=True)
    area_id = Column(String, nullable=True)
    last_contact_date = Column(DateTime(timezone=True), nullable=True)
    priority = Column(Integer, nullable=False, default=0)
    source = Column(String, nullable=True)
    estimated_value = Column(Float, nullable=False, default=0.0)
    tags = Column(String, nullable=True)
    visit_count = Column(Integer, nullable=False, default=0)
    created_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    updated_at = Column(DateTime(timezone=True), nullable=False, default=_utcnow)


class FollowUpCheckInModel(Base):
    """SQLAlchemy model for follow_up_check_ins table."""

    __tablename__ = "follow_up_check_ins"

    id = Column(String(36), primary_key=True, index=True)
    lead_id = Column(
        String(36), ForeignKey("leads.id", ondelete="CASCADE"), nullable=False, index=True
    )
    check_in_date = Column(DateTime(timezone=True), nullable=False, default=_utcnow)
    check_in_type = Column(String, nullable=False, default="door_knock")
    outcome = Column(String, nullable=True)  # legacy rows have no outcome
    notes = Column(Text, nullable=True)


class AppointmentModel(Base):
    """SQLAlchemy model for appointments table."""

    __tablename__ = "appointments"

    id = Column(String(36), primary_key=True, index=True)
    position = Column(Integer, nullable=False, default=0)
    title = Column(String, nullable=False)
    notes = Column(Text, nullable=False, default="")
    start_date = Column(DateTime(timezone=True), nullable=False)
    end_date = Column(DateTime(timezone=True), nullable=False)
    location = Column(String, nullable=False, default="")
    lead_id = Column(String(36), nullable=True, index=True)
    calendar_event_id = Column(String, nullable=True)
    appointment_type = Column(String, nullable=False, default="Consultation")
    custom_appointment_type_id = Column(String, nullable=True)
    status = Column(String, nullable=False, default="Scheduled")
