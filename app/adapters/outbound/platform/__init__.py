"""Platform integration adapters."""

from app.adapters.outbound.platform.noop_services import (
    NoOpCalendarService,
    NoOpNotificationService,
)

__all__ = [
    "NoOpCalendarService",
    "NoOpNotificationService",
]
