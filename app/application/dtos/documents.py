"""Shared decoding helpers for remote documents."""

from datetime import datetime, timezone
from typing import Any, Optional
from uuid import UUID, uuid4


def decode_uuid(value: Any) -> Optional[UUID]:
    """
    Decode an identifier that may arrive as a UUID or its string form.

    Args:
        value: Raw identifier from a document

    Returns:
        Parsed UUID, or None if absent or malformed
    """
    if value is None:
        return None
    if isinstance(value, UUID):
        return value
    if isinstance(value, str):
        try:
            return UUID(value.strip())
        except ValueError:
            return None
    return None


def decode_document_id(value: Any) -> str:
    """Decode a required identifier, generating a fresh one when malformed."""
    parsed = decode_uuid(value)
    return str(parsed or uuid4())


# Modification time assumed for documents that carry none
DISTANT_PAST = datetime.min.replace(tzinfo=timezone.utc)


def ensure_aware(value: Optional[datetime]) -> Optional[datetime]:
    """Treat naive datetimes as UTC."""
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value
