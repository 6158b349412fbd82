"""Sync DTOs."""

from datetime import datetime
from typing import Optional

from pydantic import ConfigDict

from app.application.dtos.base import DTO


class PushReport(DTO):
    """Outcome of a bulk push."""

    attempted: int = 0
    pushed: int = 0
    failed_ids: list[str] = []
    skipped_no_session: bool = False

    @property
    def failed(self) -> int:
        return len(self.failed_ids)

    @property
    def is_complete(self) -> bool:
        """Every attempted document reached the remote store."""
        return not self.skipped_no_session and self.pushed == self.attempted


class SyncStatusView(DTO):
    """Snapshot of the batched sync state exposed to the UI."""

    status: str
    failure_message: Optional[str] = None
    last_sync_date: Optional[datetime] = None
    auto_sync_enabled: bool = False
    sync_interval: str
    listener_state: str

    model_config = ConfigDict(
        frozen=True,
        json_schema_extra={
            "example": {
                "status": "completed",
                "failure_message": None,
                "last_sync_date": "2025-08-20T14:05:00Z",
                "auto_sync_enabled": True,
                "sync_interval": "1hour",
                "listener_state": "listening",
            }
        },
    )
