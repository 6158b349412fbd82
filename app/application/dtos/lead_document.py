"""Lead and check-in remote document DTOs."""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID

from pydantic import Field, field_validator

from app.application.dtos.base import WireDocument
from app.application.dtos.documents import DISTANT_PAST, decode_uuid, ensure_aware
from app.domain.entities.follow_up_check_in import CheckInOutcome, CheckInType, FollowUpCheckIn
from app.domain.entities.lead import Lead, LeadStatus
from app.domain.value_objects.geo_coordinate import GeoCoordinate

LEADS_COLLECTION = "leads"
CHECK_INS_COLLECTION = "check_ins"


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class LeadDocument(WireDocument):
    """Wire form of a lead in users/{uid}/leads/{id}.

    The document id carries the lead id; the body does not repeat it.
    """

    name: str = ""
    address: str = ""
    phone: str = ""
    email: str = ""
    latitude: float = Field(default=0.0, ge=-90, le=90)
    longitude: float = Field(default=0.0, ge=-180, le=180)
    status: str = LeadStatus.NOT_CONTACTED.value
    notes: str = ""
    price: float = 0.0
    date_created: datetime = Field(default_factory=_utcnow, alias="dateCreated")
    date_modified: Optional[datetime] = Field(default=None, alias="dateModified")
    last_contact_date: Optional[datetime] = Field(default=None, alias="lastContactDate")
    follow_up_date: Optional[datetime] = Field(default=None, alias="followUpDate")
    priority: int = 0
    source: str = ""
    estimated_value: float = Field(default=0.0, alias="estimatedValue")
    tags: str = ""
    visit_count: int = Field(default=0, alias="visitCount")
    service_category: Optional[str] = Field(default=None, alias="serviceCategory")
    area_id: Optional[str] = Field(default=None, alias="areaId")

    @field_validator("name", "address", "phone", "email", "notes", "source", "tags", mode="before")
    @classmethod
    def _none_to_empty(cls, value: Any) -> Any:
        return "" if value is None else value

    @field_validator("date_created", "date_modified", "last_contact_date", "follow_up_date")
    @classmethod
    def _aware_dates(cls, value: Optional[datetime]) -> Optional[datetime]:
        return ensure_aware(value)

    @classmethod
    def from_entity(cls, lead: Lead) -> "LeadDocument":
        """
        Build a document from a lead.

        Args:
            lead: Lead entity

        Returns:
            Lead document
        """
        return cls(
            name=lead.name or "",
            address=lead.address or "",
            phone=lead.phone or "",
            email=lead.email or "",
            latitude=lead.coordinate.latitude,
            longitude=lead.coordinate.longitude,
            status=lead.status.value,
            notes=lead.notes or "",
            price=lead.price,
            date_created=lead.created_at,
            date_modified=lead.updated_at,
            last_contact_date=lead.last_contact_date,
            follow_up_date=lead.follow_up_date,
            priority=lead.priority,
            source=lead.source or "",
            estimated_value=lead.estimated_value,
            tags=lead.tags or "",
            visit_count=lead.visit_count,
            service_category=lead.service_category_id,
            area_id=lead.area_id,
        )

    @classmethod
    def from_document(cls, data: dict[str, Any]) -> "LeadDocument":
        """Validate a raw remote document."""
        return cls.model_validate(data)

    @property
    def modified_at(self) -> datetime:
        """Modification time for conflict checks; far past when the body has none."""
        return self.date_modified or DISTANT_PAST

    def apply_to(self, lead: Lead) -> Lead:
        """
        Copy remote fields onto a local lead.

        A missing remote follow-up date keeps the local one.

        Args:
            lead: Local lead to update in place

        Returns:
            The updated lead
        """
        lead.name = self.name or None
        lead.address = self.address or None
        lead.phone = self.phone or None
        lead.email = self.email or None
        lead.coordinate = GeoCoordinate(self.latitude, self.longitude)
        lead.status = LeadStatus.normalize(self.status)
        lead.notes = self.notes or None
        lead.price = self.price
        lead.created_at = self.date_created
        lead.updated_at = self.date_modified or _utcnow()
        lead.last_contact_date = self.last_contact_date
        if self.follow_up_date is not None:
            lead.follow_up_date = self.follow_up_date
        lead.priority = self.priority
        lead.source = self.source or None
        lead.estimated_value = self.estimated_value
        lead.tags = self.tags or None
        lead.visit_count = self.visit_count
        lead.service_category_id = self.service_category
        lead.area_id = self.area_id
        return lead

    def to_entity(self, document_id: str) -> Optional[Lead]:
        """
        Convert to a new lead entity.

        Args:
            document_id: Remote document id (the lead id)

        Returns:
            Lead entity, or None when the document id is not a valid UUID
        """
        lead_id = decode_uuid(document_id)
        if lead_id is None:
            return None
        return self.apply_to(Lead(id=lead_id))


class FollowUpCheckInDocument(WireDocument):
    """Wire form of a check-in in users/{uid}/check_ins/{id}."""

    lead_id: str = Field(alias="leadId")
    check_in_date: datetime = Field(alias="checkInDate")
    check_in_type: str = Field(default=CheckInType.DOOR_KNOCK.value, alias="checkInType")
    outcome: Optional[str] = None
    notes: str = ""

    @field_validator("lead_id", mode="before")
    @classmethod
    def _decode_lead_id(cls, value: Any) -> str:
        parsed = decode_uuid(value)
        if parsed is None:
            raise ValueError("leadId must be a UUID")
        return str(parsed)

    @classmethod
    def from_entity(cls, check_in: FollowUpCheckIn) -> "FollowUpCheckInDocument":
        return cls(
            lead_id=str(check_in.lead_id),
            check_in_date=ensure_aware(check_in.check_in_date),
            check_in_type=check_in.check_in_type.value,
            outcome=check_in.outcome.value if check_in.outcome else None,
            notes=check_in.notes or "",
        )

    def to_entity(self, document_id: str) -> Optional[FollowUpCheckIn]:
        """Convert to a check-in, or None when the document id is malformed."""
        check_in_id = decode_uuid(document_id)
        if check_in_id is None:
            return None
        try:
            check_in_type = CheckInType(self.check_in_type)
        except ValueError:
            check_in_type = CheckInType.DOOR_KNOCK
        try:
            outcome = CheckInOutcome(self.outcome) if self.outcome else None
        except ValueError:
            outcome = None
        return FollowUpCheckIn(
            id=check_in_id,
            lead_id=UUID(self.lead_id),
            check_in_date=ensure_aware(self.check_in_date),
            check_in_type=check_in_type,
            outcome=outcome,
            notes=self.notes or None,
        )
