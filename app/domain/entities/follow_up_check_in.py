"""Follow-up check-in entity."""

from dataclasses import dataclass, field
from datetime import datetime, timezone
from enum import Enum
from typing import Optional
from uuid import UUID, uuid4


class CheckInType(str, Enum):
    """Channel used to contact the lead."""

    DOOR_KNOCK = "door_knock"
    PHONE_CALL = "phone_call"
    SMS_MESSAGE = "sms_message"
    EMAIL = "email"
    VIRTUAL_MEETING = "virtual_meeting"
    IN_PERSON_MEETING = "in_person_meeting"


class CheckInOutcome(str, Enum):
    """Result of a check-in."""

    SUCCESSFUL = "successful"
    NO_ANSWER = "no_answer"
    NOT_INTERESTED = "not_interested"
    INTERESTED = "interested"
    CONVERTED = "converted"
    RESCHEDULE = "reschedule"
    CALLBACK = "callback"


DEFAULT_OUTCOME = CheckInOutcome.SUCCESSFUL


@dataclass
class FollowUpCheckIn:
    """Check-in entity, owned by exactly one lead."""

    lead_id: UUID
    check_in_type: CheckInType = CheckInType.DOOR_KNOCK
    outcome: Optional[CheckInOutcome] = None
    notes: Optional[str] = None
    check_in_date: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    id: UUID = field(default_factory=uuid4)

    def backfill_outcome(self) -> bool:
        """
        Give legacy check-ins without an outcome the default outcome.

        Returns:
            True if the outcome was filled in
        """
        if self.outcome is not None:
            return False
        self.outcome = DEFAULT_OUTCOME
        return True
