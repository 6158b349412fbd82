"""Lead entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4

from app.domain.value_objects.geo_coordinate import GeoCoordinate


class LeadStatus(str, Enum):
    """Canonical lead status values."""

    NOT_CONTACTED = "not_contacted"
    NOT_HOME = "not_home"
    INTERESTED = "interested"
    CONVERTED = "converted"
    NOT_INTERESTED = "not_interested"

    @property
    def is_terminal(self) -> bool:
        """Terminal statuses are never downgraded by scheduling."""
        return self in (LeadStatus.CONVERTED, LeadStatus.NOT_INTERESTED)

    @classmethod
    def normalize(cls, raw: Optional[str]) -> "LeadStatus":
        """
        Map a stored status string (including legacy synonyms) to a status.

        Args:
            raw: Status string as stored locally or remotely

        Returns:
            Canonical lead status, NOT_CONTACTED when unknown or empty
        """
        if not raw:
            return cls.NOT_CONTACTED
        value = raw.strip().lower().replace("-", "_").replace(" ", "_")
        return _LEGACY_STATUS_MAP.get(value, cls.NOT_CONTACTED)


_LEGACY_STATUS_MAP = {
    "not_contacted": LeadStatus.NOT_CONTACTED,
    "new": LeadStatus.NOT_CONTACTED,
    "cold": LeadStatus.NOT_CONTACTED,
    "not_home": LeadStatus.NOT_HOME,
    "no_answer": LeadStatus.NOT_HOME,
    "interested": LeadStatus.INTERESTED,
    "prospect": LeadStatus.INTERESTED,
    "converted": LeadStatus.CONVERTED,
    "sold": LeadStatus.CONVERTED,
    "closed": LeadStatus.CONVERTED,
    "close": LeadStatus.CONVERTED,
    "won": LeadStatus.CONVERTED,
    "not_interested": LeadStatus.NOT_INTERESTED,
    "no_interest": LeadStatus.NOT_INTERESTED,
    "lost": LeadStatus.NOT_INTERESTED,
}


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


@dataclass
class Lead:
    """Lead entity (a household or contact a rep is working)."""

    name: Optional[str] = None
    address: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[str] = None
    coordinate: GeoCoordinate = field(default_factory=GeoCoordinate)
    notes: Optional[str] = None
    price: float = 0.0
    status: LeadStatus = LeadStatus.NOT_CONTACTED
    follow_up_date: Optional[datetime] = None
    service_category_id: Optional[str] = None
    area_id: Optional[str] = None
    last_contact_date: Optional[datetime] = None
    priority: int = 0
    source: Optional[str] = None
    estimated_value: float = 0.0
    tags: Optional[str] = None
    visit_count: int = 0
    id: UUID = field(default_factory=uuid4)
    created_at: datetime = field(default_factory=_utcnow)
    updated_at: datetime = field(default_factory=_utcnow)

    def touch(self) -> None:
        """Update the updated_at timestamp."""
        self.updated_at = _utcnow()

    def has_name(self) -> bool:
        return bool(self.name and self.name.strip())

    def has_address(self) -> bool:
        return bool(self.address and self.address.strip())

    def is_valid(self) -> bool:
        """
        Check the persistence invariant.

        Returns:
            True if the lead has a non-blank name or a non-blank address
        """
        return self.has_name() or self.has_address()

    @property
    def display_name(self) -> str:
        """Name, else address, else a short id label."""
        if self.has_name():
            return self.name.strip()
        if self.has_address():
            return self.address.strip()
        return f"Lead {str(self.id)[:8]}"

    def validate(self) -> None:
        """Raise ValueError when the lead has neither a name nor an address."""
        if not self.is_valid():
            raise ValueError("Lead must have a name or an address")

    def set_status(self, status: LeadStatus) -> None:
        """Change status and bump the modification time."""
        self.status = status
        self.touch()
