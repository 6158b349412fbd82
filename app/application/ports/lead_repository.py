"""Lead repository port."""

from abc import ABC, abstractmethod
from typing import Callable, Optional
from uuid import UUID

from app.domain.entities.lead import Lead


class LeadRepository(ABC):
    """Port interface for the local lead store."""

    @abstractmethod
    async def get(self, lead_id: UUID) -> Optional[Lead]:
        """
        Get a lead by id.

        Args:
            lead_id: Lead identifier

        Returns:
            Lead entity, or None if not found
        """
        pass

    @abstractmethod
    async def save(self, lead: Lead) -> None:
        """
        Save a lead (upsert by id).

        Args:
            lead: Lead entity to save
        """
        pass

    @abstractmethod
    async def delete(self, lead_id: UUID) -> bool:
        """
        Delete a lead.

        Args:
            lead_id: Lead identifier

        Returns:
            True if a lead was removed
        """
        pass

    @abstractmethod
    async def list_all(self) -> list[Lead]:
        """
        List all leads.

        Returns:
            List of all leads
        """
        pass

    @abstractmethod
    async def query(self, predicate: Callable[[Lead], bool]) -> list[Lead]:
        """
        List leads matching a predicate.

        Args:
            predicate: Filter applied to each lead

        Returns:
            Matching leads
        """
        pass

    @abstractmethod
    async def clear(self) -> None:
        """Remove every lead from the local store."""
        pass
