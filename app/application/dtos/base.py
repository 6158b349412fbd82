"""Base DTO classes."""

from typing import Any

from pydantic import BaseModel, ConfigDict


class DTO(BaseModel):
    """Base class for application DTOs."""

    model_config = ConfigDict(frozen=True)


class WireDocument(DTO):
    """Base class for documents stored in the remote store.

    Fields carry snake_case names and camelCase aliases; either form is
    accepted on input, the alias form is written.
    """

    model_config = ConfigDict(frozen=True, populate_by_name=True)

    def to_document(self) -> dict[str, Any]:
        """
        Serialize for the remote store.

        Returns:
            Flat dict with camelCase keys, ISO dates and string ids
        """
        return self.model_dump(by_alias=True, mode="json", exclude_none=True)
