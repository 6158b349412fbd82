"""Follow-up check-in repository port."""

from abc import ABC, abstractmethod
from uuid import UUID

from app.domain.entities.follow_up_check_in import FollowUpCheckIn


class FollowUpCheckInRepository(ABC):
    """Port interface for the local check-in store."""

    @abstractmethod
    async def save(self, check_in: FollowUpCheckIn) -> None:
        """
        Save a check-in (upsert by id).

        Args:
            check_in: Check-in entity to save
        """
        pass

    @abstractmethod
    async def list_for_lead(self, lead_id: UUID) -> list[FollowUpCheckIn]:
        """
        List check-ins of one lead, newest first.

        Args:
            lead_id: Owning lead identifier

        Returns:
            Check-ins sorted by check-in date descending
        """
        pass

    @abstractmethod
    async def list_all(self) -> list[FollowUpCheckIn]:
        """List all check-ins."""
        pass

    @abstractmethod
    async def delete_for_lead(self, lead_id: UUID) -> int:
        """
        Delete every check-in owned by a lead.

        Args:
            lead_id: Owning lead identifier

        Returns:
            Number of deleted check-ins
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every check-in from the local store."""
        pass
