"""Appointment domain manager."""

import asyncio
from datetime import datetime, timedelta, timezone
from typing import Optional
from uuid import UUID

from app.application.dtos.appointment_document import (
    APPOINTMENTS_COLLECTION,
    AppointmentDocument,
)
from app.application.dtos.sync import PushReport
from app.application.ports.calendar_service import CalendarService
from app.application.ports.lead_repository import LeadRepository
from app.application.ports.notification_service import NotificationService
from app.application.ports.remote_store import RemoteStore, collection_path
from app.application.use_cases.appointment_cache import AppointmentCache
from app.application.use_cases.appointment_listener import AppointmentListener
from app.application.use_cases.push_entities import EntityPusher
from app.domain.entities.appointment import Appointment, AppointmentStatus, AppointmentType
from app.domain.entities.lead import Lead, LeadStatus
from app.infrastructure.logging.logger import log_sync, logger


class AppointmentManager:
    """Façade for appointment actions taken by the rep.

    Local writes always succeed first; remote propagation, calendar and
    notification calls are best effort.
    """

    def __init__(
        self,
        cache: AppointmentCache,
        listener: AppointmentListener,
        pusher: EntityPusher,
        remote_store: RemoteStore,
        lead_repository: LeadRepository,
        calendar_service: CalendarService,
        notification_service: NotificationService,
        settle_seconds: float = 2.0,
    ) -> None:
        """
        Initialize appointment manager.

        Args:
            cache: Shared appointment collection
            listener: Appointment listener (suspended around bulk pushes)
            pusher: Push primitive
            remote_store: Remote store (used for full remote wipes)
            lead_repository: Local lead store (consultations update the lead)
            calendar_service: Device calendar collaborator
            notification_service: Local reminder collaborator
            settle_seconds: Wait after a bulk push before re-attaching the listener
        """
        self._cache = cache
        self._listener = listener
        self._pusher = pusher
        self._remote_store = remote_store
        self._lead_repository = lead_repository
        self._calendar = calendar_service
        self._notifications = notification_service
        self._settle_seconds = settle_seconds
        self.is_loading = False
        self.error_message: Optional[str] = None

    @property
    def appointments(self) -> list[Appointment]:
        return self._cache.appointments

    def _begin(self) -> None:
        self.is_loading = True
        self.error_message = None
        self._pusher.error_message = None

    def _finish(self) -> None:
        self.is_loading = False
        if self._pusher.error_message:
            self.error_message = self._pusher.error_message

    async def _push(self, appointment: Appointment) -> bool:
        document = AppointmentDocument.from_entity(appointment)
        return await self._pusher.push_entity(
            APPOINTMENTS_COLLECTION, str(appointment.id), document.to_document()
        )

    async def _mirror_to_calendar(self, appointment: Appointment) -> None:
        if not self._calendar.is_enabled:
            return
        event_id = await self._calendar.create_or_update_event(appointment)
        if event_id and event_id != appointment.calendar_event_id:
            appointment.calendar_event_id = event_id
            if await self._cache.update_existing(appointment, reason="calendar_linked"):
                await self._push(appointment)

    async def schedule(self, lead: Lead, appointment: Appointment) -> Appointment:
        """
        Schedule a visit for a lead.

        Consultations move the lead to interested (terminal statuses are never
        downgraded) and set its follow-up date to the visit start.

        Args:
            lead: Lead being visited
            appointment: Appointment to create

        Returns:
            The stored appointment
        """
        self._begin()
        appointment.lead_id = lead.id
        await self._cache.upsert(appointment, reason="scheduled")
        log_sync(None, "appointments", action="schedule", appointment_id=str(appointment.id))

        if appointment.appointment_type is AppointmentType.CONSULTATION:
            if not lead.status.is_terminal:
                lead.status = LeadStatus.INTERESTED
            lead.follow_up_date = appointment.start_date
            lead.touch()
            try:
                await self._lead_repository.save(lead)
            except Exception as e:
                logger.error(f"Failed to update lead from appointment: {e}")

        await self._push(appointment)
        await self._mirror_to_calendar(appointment)
        await self._notifications.schedule_appointment_notifications(appointment)
        self._finish()
        return appointment

    async def update(self, appointment: Appointment) -> bool:
        """
        Replace an existing appointment.

        Returns:
            True if the appointment existed locally
        """
        self._begin()
        updated = await self._cache.update_existing(appointment, reason="updated")
        await self._push(appointment)
        await self._mirror_to_calendar(appointment)
        await self._notifications.schedule_appointment_notifications(appointment)
        self._finish()
        return updated

    async def cancel(self, appointment: Appointment) -> Appointment:
        """
        Soft-cancel an appointment.

        Returns:
            The cancelled appointment
        """
        self._begin()
        appointment.status = AppointmentStatus.CANCELLED
        await self._cache.update_existing(appointment, reason="cancelled")
        await self._push(appointment)

        if appointment.calendar_event_id:
            await self._calendar.delete_event(appointment.calendar_event_id)
        await self._notifications.cancel_appointment_notifications(appointment.id)
        self._finish()
        return appointment

    async def delete(self, appointment: Appointment) -> bool:
        """
        Delete an appointment locally and remotely.

        This is the only path that removes a remote appointment document.

        Returns:
            True if the remote delete succeeded (False when offline/guest)
        """
        self._begin()
        await self._cache.remove(appointment.id, reason="deleted")
        deleted_remotely = await self._pusher.delete_entity(
            APPOINTMENTS_COLLECTION, str(appointment.id)
        )
        if appointment.calendar_event_id:
            await self._calendar.delete_event(appointment.calendar_event_id)
        await self._notifications.cancel_appointment_notifications(appointment.id)
        self._finish()
        return deleted_remotely

    def get(self, appointment_id: UUID) -> Optional[Appointment]:
        return self._cache.find(appointment_id)

    def for_lead(self, lead_id: UUID) -> list[Appointment]:
        return [a for a in self._cache.appointments if a.lead_id == lead_id]

    def upcoming(self, now: Optional[datetime] = None) -> list[Appointment]:
        """Active appointments starting after now, soonest first."""
        now = now or datetime.now(timezone.utc)
        return sorted(
            (a for a in self._cache.appointments if a.start_date > now and a.is_active),
            key=lambda a: a.start_date,
        )

    def todays(self, now: Optional[datetime] = None) -> list[Appointment]:
        """Appointments starting on the current (UTC) day, earliest first."""
        now = now or datetime.now(timezone.utc)
        day_start = now.replace(hour=0, minute=0, second=0, microsecond=0)
        day_end = day_start + timedelta(days=1)
        return sorted(
            (a for a in self._cache.appointments if day_start <= a.start_date < day_end),
            key=lambda a: a.start_date,
        )

    async def remove_duplicates(self) -> int:
        """
        Keep the first appointment of every id.

        Returns:
            Number of removed duplicates
        """
        seen: set[UUID] = set()
        unique: list[Appointment] = []
        for appointment in self._cache.appointments:
            if appointment.id in seen:
                logger.info(f"Removing duplicate appointment: {appointment.title} ({appointment.id})")
                continue
            seen.add(appointment.id)
            unique.append(appointment)

        removed = len(self._cache.appointments) - len(unique)
        await self._cache.replace(unique, reason="deduplicated")
        return removed

    async def reload(self) -> int:
        """Reload from the local store unless a local-only clear is pending."""
        return await self._cache.load()

    async def restart_sync(self) -> bool:
        """Start the listener unless it is already active."""
        return await self._listener.start()

    def stop_listener(self) -> None:
        self._listener.stop()

    async def clear_local_only(self) -> None:
        """
        Forget local appointments while keeping the remote copies.

        The listener is detached first so it cannot re-download what is
        being cleared.
        """
        self._listener.stop()
        await self._cache.clear_local()
        logger.info("Appointments cleared locally (remote data preserved)")

    async def clear_including_remote(self) -> int:
        """
        Delete every appointment locally and in the remote store.

        Returns:
            Number of deleted remote documents
        """
        self._listener.stop()
        await self._cache.replace([], reason="cleared_all")

        user_id = self._pusher.current_user_id()
        if user_id is None:
            return 0

        deleted = 0
        try:
            documents = await self._remote_store.get_documents(
                collection_path(user_id, APPOINTMENTS_COLLECTION)
            )
            for document in documents:
                if await self._pusher.delete_entity(APPOINTMENTS_COLLECTION, document.id):
                    deleted += 1
        except Exception as e:
            logger.error(f"Failed to delete all appointments remotely: {e}")
        return deleted

    async def sync_all(self) -> PushReport:
        """
        Push the whole collection with the listener suspended.

        The listener is re-attached afterwards only if it was active before.

        Returns:
            Push report
        """
        was_listening = await self._listener.suspend()
        try:
            report = await self._pusher.push_all(
                APPOINTMENTS_COLLECTION,
                (
                    (str(a.id), AppointmentDocument.from_entity(a).to_document())
                    for a in self._cache.appointments
                ),
            )
            if was_listening and self._settle_seconds > 0:
                await asyncio.sleep(self._settle_seconds)
        finally:
            if was_listening:
                await self._listener.resume()
        return report
