"""Batched synchronization of user data with the remote store."""

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from enum import Enum
from typing import Optional
from uuid import UUID

from pydantic import ValidationError as PydanticValidationError

from app.application.dtos.documents import decode_uuid
from app.application.dtos.lead_document import (
    CHECK_INS_COLLECTION,
    LEADS_COLLECTION,
    FollowUpCheckInDocument,
    LeadDocument,
)
from app.application.dtos.sync import PushReport, SyncStatusView
from app.application.error_handler import ErrorHandler, RetryableOperation
from app.application.errors import NetworkError, SyncNotAuthenticated
from app.application.events import SYNC_STATUS_CHANGED, EventChannel
from app.application.ports.follow_up_check_in_repository import FollowUpCheckInRepository
from app.application.ports.identity_provider import IdentityProvider
from app.application.ports.lead_repository import LeadRepository
from app.application.ports.preferences_store import (
    AUTO_SYNC_ENABLED_KEY,
    SYNC_INTERVAL_KEY,
    PreferencesStore,
)
from app.application.ports.remote_store import RemoteStore, collection_path
from app.application.use_cases.appointment_manager import AppointmentManager
from app.application.use_cases.push_entities import EntityPusher
from app.domain.entities.lead import Lead
from app.infrastructure.logging.logger import log_sync, log_sync_status, logger


class SyncStatus(str, Enum):
    """Batched sync status."""

    IDLE = "idle"
    SYNCING = "syncing"
    COMPLETED = "completed"
    FAILED = "failed"

    @property
    def is_terminal(self) -> bool:
        return self in (SyncStatus.COMPLETED, SyncStatus.FAILED)


class SyncInterval(str, Enum):
    """Auto-sync timer periods."""

    THIRTY_MINUTES = "30min"
    ONE_HOUR = "1hour"
    THREE_HOURS = "3hours"
    SIX_HOURS = "6hours"
    ONE_DAY = "1day"

    @property
    def seconds(self) -> int:
        return _INTERVAL_SECONDS[self]


_INTERVAL_SECONDS = {
    SyncInterval.THIRTY_MINUTES: 30 * 60,
    SyncInterval.ONE_HOUR: 60 * 60,
    SyncInterval.THREE_HOURS: 3 * 60 * 60,
    SyncInterval.SIX_HOURS: 6 * 60 * 60,
    SyncInterval.ONE_DAY: 24 * 60 * 60,
}


class UserDataSync:
    """Runs the sync windows: manual, timer driven and pre-sign-out.

    One sync runs at a time. Each phase re-checks the session, and a
    session that ends mid-sync returns the status to idle instead of
    failed.
    """

    def __init__(
        self,
        lead_repository: LeadRepository,
        check_in_repository: FollowUpCheckInRepository,
        remote_store: RemoteStore,
        identity_provider: IdentityProvider,
        pusher: EntityPusher,
        appointment_manager: AppointmentManager,
        preferences: PreferencesStore,
        event_channel: EventChannel,
        error_handler: Optional[ErrorHandler] = None,
        retry: Optional[RetryableOperation] = None,
        recent_edit_window_seconds: float = 300,
        default_auto_sync: bool = False,
        default_interval: SyncInterval = SyncInterval.ONE_HOUR,
    ) -> None:
        """
        Initialize batched sync.

        Args:
            lead_repository: Local lead store
            check_in_repository: Local check-in store
            remote_store: Remote document store
            identity_provider: Session source
            pusher: Push primitive
            appointment_manager: Performs the appointment bulk push
            preferences: Persists auto-sync settings
            event_channel: Receives SYNC_STATUS_CHANGED events
            error_handler: Records the failure shown to the rep
            retry: Retry policy around a whole sync run
            recent_edit_window_seconds: Local edits younger than this win over older remote copies
            default_auto_sync: Auto-sync setting when none is persisted
            default_interval: Timer period when none is persisted
        """
        self._leads = lead_repository
        self._check_ins = check_in_repository
        self._remote_store = remote_store
        self._identity_provider = identity_provider
        self._pusher = pusher
        self._appointments = appointment_manager
        self._preferences = preferences
        self._events = event_channel
        self._error_handler = error_handler or ErrorHandler()
        self._retry = retry or RetryableOperation(max_retries=3, retry_delay=2.0)
        self._recent_edit_window = timedelta(seconds=recent_edit_window_seconds)
        self._default_auto_sync = default_auto_sync
        self._default_interval = default_interval

        self.status = SyncStatus.IDLE
        self.failure_message: Optional[str] = None
        self.last_sync_date: Optional[datetime] = None
        self.is_paused = False
        self._sync_task: Optional[asyncio.Task] = None
        self._timer_task: Optional[asyncio.Task] = None

    # Settings

    @property
    def auto_sync_enabled(self) -> bool:
        return bool(self._preferences.get(AUTO_SYNC_ENABLED_KEY, self._default_auto_sync))

    @property
    def sync_interval(self) -> SyncInterval:
        raw = self._preferences.get(SYNC_INTERVAL_KEY, self._default_interval.value)
        try:
            return SyncInterval(raw)
        except ValueError:
            return self._default_interval

    def toggle_auto_sync(self, enabled: bool) -> None:
        """Persist the auto-sync switch and start or stop the timer."""
        self._preferences.set(AUTO_SYNC_ENABLED_KEY, enabled)
        if enabled:
            self.start_auto_sync_timer()
        else:
            self.stop_auto_sync_timer()

    def update_sync_interval(self, interval: SyncInterval) -> None:
        """Persist a new timer period, restarting the timer if it runs."""
        self._preferences.set(SYNC_INTERVAL_KEY, interval.value)
        if self.auto_sync_enabled:
            self.start_auto_sync_timer()

    def view(self, listener_state: str) -> SyncStatusView:
        return SyncStatusView(
            status=self.status.value,
            failure_message=self.failure_message,
            last_sync_date=self.last_sync_date,
            auto_sync_enabled=self.auto_sync_enabled,
            sync_interval=self.sync_interval.value,
            listener_state=listener_state,
        )

    # Status

    def _set_status(self, status: SyncStatus, failure_message: Optional[str] = None) -> None:
        self.status = status
        self.failure_message = failure_message
        log_sync_status(self._pusher.current_user_id(), status.value, failure=failure_message)
        self._events.publish(
            SYNC_STATUS_CHANGED,
            {"status": status.value, "failure_message": failure_message},
        )

    def _require_user(self) -> str:
        user_id = self._pusher.current_user_id()
        if user_id is None:
            raise SyncNotAuthenticated()
        return user_id

    # Sync windows

    def start_sync(self, include_appointments: bool = True) -> Optional[asyncio.Task]:
        """
        Start a sync in the background.

        A sync already running is reused.

        Args:
            include_appointments: Also bulk push appointments

        Returns:
            The running task, or None without a session
        """
        if self._sync_task is not None and not self._sync_task.done():
            return self._sync_task
        if not self._identity_provider.is_authenticated:
            log_sync(None, "batched_sync", skipped="no_session")
            return None

        self.is_paused = False
        self._set_status(SyncStatus.SYNCING)
        self._sync_task = asyncio.create_task(
            self.perform_sync(include_appointments, status_already_set=True)
        )
        return self._sync_task

    async def perform_sync(
        self,
        include_appointments: bool = True,
        status_already_set: bool = False,
    ) -> SyncStatus:
        """
        Run one sync under the retry policy.

        Args:
            include_appointments: Also bulk push appointments
            status_already_set: Skip the transition to SYNCING

        Returns:
            Final status (IDLE when the session ended mid-sync)
        """
        if not status_already_set:
            self._set_status(SyncStatus.SYNCING)

        def _on_attempt_error(error: BaseException, attempt: int) -> None:
            log_sync(
                self._pusher.current_user_id(),
                "batched_sync",
                level=logging.WARNING,
                attempt=attempt,
                error=str(error),
            )

        try:
            await self._retry.execute(
                lambda: self._run_phases(include_appointments),
                on_error=_on_attempt_error,
            )
        except SyncNotAuthenticated:
            logger.info("Sync stopped: user not authenticated")
            self._set_status(SyncStatus.IDLE)
        except asyncio.CancelledError:
            self._set_status(SyncStatus.IDLE)
            raise
        except Exception as e:
            app_error = self._error_handler.handle(e, context="Data Sync")
            self._set_status(SyncStatus.FAILED, app_error.user_friendly_message)
        else:
            self.last_sync_date = datetime.now(timezone.utc)
            self._set_status(SyncStatus.COMPLETED)
        return self.status

    async def _run_phases(self, include_appointments: bool) -> None:
        self._require_user()
        await self.cleanup_corrupted_leads()

        self._require_user()
        await self.upload_local_data()

        user_id = self._require_user()
        await self.download_remote_data(user_id)

        if include_appointments:
            self._require_user()
            self._check_report("appointments", await self._appointments.sync_all())

    def _check_report(self, collection: str, report: PushReport) -> None:
        if report.skipped_no_session:
            raise SyncNotAuthenticated()
        if report.failed:
            raise NetworkError(
                f"Failed to upload {report.failed} of {report.attempted} {collection}"
            )

    async def cleanup_corrupted_leads(self) -> int:
        """
        Delete local leads that have neither a name nor an address.

        Returns:
            Number of deleted leads
        """
        corrupted = await self._leads.query(lambda lead: not lead.is_valid())
        for lead in corrupted:
            await self._check_ins.delete_for_lead(lead.id)
            await self._leads.delete(lead.id)
        if corrupted:
            logger.info(f"Cleaned up {len(corrupted)} corrupted leads")
        return len(corrupted)

    async def upload_local_data(self) -> None:
        """Merge-upsert every local lead and check-in."""
        leads = await self._leads.list_all()
        report = await self._pusher.push_all(
            LEADS_COLLECTION,
            ((str(lead.id), LeadDocument.from_entity(lead).to_document()) for lead in leads),
            merge=True,
        )
        self._check_report("leads", report)

        check_ins = await self._check_ins.list_all()
        report = await self._pusher.push_all(
            CHECK_INS_COLLECTION,
            (
                (str(check_in.id), FollowUpCheckInDocument.from_entity(check_in).to_document())
                for check_in in check_ins
            ),
            merge=True,
        )
        self._check_report("check-ins", report)

    def _local_edit_wins(self, local: Lead, remote: LeadDocument) -> bool:
        now = datetime.now(timezone.utc)
        recently_modified = now - local.updated_at < self._recent_edit_window
        return recently_modified and local.updated_at >= remote.modified_at

    async def download_remote_data(self, user_id: str) -> int:
        """
        Pull remote leads and check-ins into the local store.

        Remote copies overwrite local ones unless the local lead was edited
        within the recent-edit window and is newer. Check-ins are only added,
        and only for leads that exist locally.

        Args:
            user_id: Current user

        Returns:
            Number of created or updated leads
        """
        changed = 0
        documents = await self._remote_store.get_documents(
            collection_path(user_id, LEADS_COLLECTION)
        )
        for document in documents:
            try:
                remote = LeadDocument.from_document(document.data)
            except PydanticValidationError as e:
                log_sync(user_id, "download", level=logging.WARNING, lead_id=document.id, error=str(e))
                continue

            lead_id = decode_uuid(document.id)
            existing = await self._leads.get(lead_id) if lead_id else None
            if existing is not None:
                if self._local_edit_wins(existing, remote):
                    log_sync(user_id, "download", lead_id=document.id, skipped="recent_local_edit")
                    continue
                remote.apply_to(existing)
                await self._leads.save(existing)
                changed += 1
                continue

            lead = remote.to_entity(document.id)
            if lead is None or not lead.is_valid():
                continue
            await self._leads.save(lead)
            changed += 1

        known_check_ins = {check_in.id for check_in in await self._check_ins.list_all()}
        for document in await self._remote_store.get_documents(
            collection_path(user_id, CHECK_INS_COLLECTION)
        ):
            try:
                check_in = FollowUpCheckInDocument.model_validate(document.data).to_entity(document.id)
            except PydanticValidationError:
                continue
            if check_in is None or check_in.id in known_check_ins:
                continue
            if await self._leads.get(check_in.lead_id) is None:
                continue
            await self._check_ins.save(check_in)

        log_sync(user_id, "download", leads_changed=changed, remote_leads=len(documents))
        return changed

    def pause_sync(self) -> None:
        """Stop the running sync and keep future windows from racing a sign-out."""
        self.is_paused = True
        if self._sync_task is not None and not self._sync_task.done():
            self._sync_task.cancel()
        if self.status is SyncStatus.SYNCING:
            self._set_status(SyncStatus.IDLE)

    def sync_before_sign_out(self) -> Optional[asyncio.Task]:
        """Sync everything except appointments, which sign-out clears locally."""
        return self.start_sync(include_appointments=False)

    async def sync_with_server(self) -> Optional[asyncio.Task]:
        """Restart the appointment listener, then start a full sync."""
        await self._appointments.restart_sync()
        return self.start_sync()

    async def delete_lead_remote(self, lead_id: UUID) -> bool:
        return await self._pusher.delete_entity(LEADS_COLLECTION, str(lead_id))

    def clear_state(self) -> None:
        """Forget sync progress (used when local data is wiped)."""
        self.pause_sync()
        self.stop_auto_sync_timer()
        self.last_sync_date = None
        self.failure_message = None
        self.status = SyncStatus.IDLE

    # Timer

    def start_auto_sync_timer(self) -> None:
        """(Re)start the auto-sync timer with the persisted interval."""
        self.stop_auto_sync_timer()
        self._timer_task = asyncio.create_task(self._auto_sync_loop(self.sync_interval.seconds))

    def stop_auto_sync_timer(self) -> None:
        if self._timer_task is not None and not self._timer_task.done():
            self._timer_task.cancel()
        self._timer_task = None

    async def _auto_sync_loop(self, interval_seconds: float) -> None:
        while True:
            await asyncio.sleep(interval_seconds)
            if self.is_paused or self.status is SyncStatus.SYNCING:
                continue
            self.start_sync()

    async def close(self) -> None:
        """Cancel background work."""
        self.stop_auto_sync_timer()
        task = self._sync_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
