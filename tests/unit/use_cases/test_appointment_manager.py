"""Unit tests for the appointment manager."""

from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock

import pytest

from app.adapters.outbound.identity import InMemoryIdentityProvider
from app.adapters.outbound.local_store import InMemoryAppointmentRepository, InMemoryLeadRepository
from app.adapters.outbound.platform import NoOpCalendarService
from app.adapters.outbound.preferences import InMemoryPreferencesStore
from app.adapters.outbound.remote_store import InMemoryRemoteStore
from app.application.dtos.appointment_document import APPOINTMENTS_COLLECTION
from app.application.events import APPOINTMENTS_CHANGED, EventChannel
from app.application.ports.remote_store import collection_path, document_path
from app.application.use_cases.appointment_cache import AppointmentCache
from app.application.use_cases.appointment_listener import AppointmentListener, ListenerState
from app.application.use_cases.appointment_manager import AppointmentManager
from app.application.use_cases.push_entities import EntityPusher
from app.domain.entities.appointment import Appointment, AppointmentStatus, AppointmentType
from app.domain.entities.lead import Lead, LeadStatus


def _appointment(title: str = "Visit", start: datetime = None, **kwargs) -> Appointment:
    start = start or datetime.now(timezone.utc) + timedelta(days=1)
    return Appointment(title=title, start_date=start, end_date=start + timedelta(hours=1), **kwargs)


@pytest.fixture
def remote_store():
    return InMemoryRemoteStore()


@pytest.fixture
def identity_provider():
    return InMemoryIdentityProvider()


@pytest.fixture
def lead_repository():
    return InMemoryLeadRepository()


@pytest.fixture
def notification_service():
    service = MagicMock()
    service.schedule_appointment_notifications = AsyncMock(return_value=True)
    service.cancel_appointment_notifications = AsyncMock(return_value=True)
    return service


@pytest.fixture
def events():
    return EventChannel()


@pytest.fixture
def cache(events):
    return AppointmentCache(InMemoryAppointmentRepository(), InMemoryPreferencesStore(), events)


@pytest.fixture
def listener(remote_store, identity_provider, cache, events):
    return AppointmentListener(remote_store, identity_provider, cache, events)


@pytest.fixture
def manager(remote_store, identity_provider, lead_repository, notification_service, cache, listener):
    pusher = EntityPusher(remote_store, identity_provider)
    return AppointmentManager(
        cache,
        listener,
        pusher,
        remote_store,
        lead_repository,
        NoOpCalendarService(),
        notification_service,
        settle_seconds=0,
    )


@pytest.mark.asyncio
async def test_schedule_consultation_marks_lead_interested(manager, lead_repository):
    """A consultation upgrades the lead and sets its follow-up date."""
    lead = Lead(name="Ana")
    await lead_repository.save(lead)
    appointment = _appointment(appointment_type=AppointmentType.CONSULTATION)

    await manager.schedule(lead, appointment)

    stored = await lead_repository.get(lead.id)
    assert stored.status == LeadStatus.INTERESTED
    assert stored.follow_up_date == appointment.start_date
    assert appointment.lead_id == lead.id
    assert manager.appointments == [appointment]


@pytest.mark.asyncio
async def test_schedule_never_downgrades_converted_lead(manager):
    lead = Lead(name="Ana", status=LeadStatus.CONVERTED)

    await manager.schedule(lead, _appointment(appointment_type=AppointmentType.CONSULTATION))

    assert lead.status == LeadStatus.CONVERTED


@pytest.mark.asyncio
async def test_schedule_other_types_leave_lead_alone(manager):
    lead = Lead(name="Ana")

    await manager.schedule(lead, _appointment(appointment_type=AppointmentType.REPAIR))

    assert lead.status == LeadStatus.NOT_CONTACTED
    assert lead.follow_up_date is None


@pytest.mark.asyncio
async def test_schedule_pushes_when_signed_in(manager, remote_store, identity_provider, notification_service):
    """Scheduling mirrors the appointment remotely and schedules reminders."""
    user = await identity_provider.sign_up("rep@example.com", "secret123")
    appointment = _appointment()

    await manager.schedule(Lead(name="Ana"), appointment)

    path = document_path(user.uid, APPOINTMENTS_COLLECTION, str(appointment.id))
    assert remote_store.document(path)["title"] == "Visit"
    notification_service.schedule_appointment_notifications.assert_awaited_once_with(appointment)


@pytest.mark.asyncio
async def test_offline_cancel_reaches_remote_after_reconnect(manager, remote_store, identity_provider):
    """A cancellation made offline is pushed by the next bulk sync."""
    user = await identity_provider.sign_up("rep@example.com", "secret123")
    appointment = _appointment()
    await manager.schedule(Lead(name="Ana"), appointment)
    path = document_path(user.uid, APPOINTMENTS_COLLECTION, str(appointment.id))

    remote_store.offline = True
    await manager.cancel(appointment)

    assert manager.get(appointment.id).status == AppointmentStatus.CANCELLED
    assert manager.error_message is not None
    remote_store.offline = False
    assert remote_store.document(path)["status"] == "Scheduled"

    report = await manager.sync_all()

    assert report.is_complete
    assert remote_store.document(path)["status"] == "Cancelled"


@pytest.mark.asyncio
async def test_cancel_cancels_notifications(manager, notification_service):
    appointment = _appointment()
    await manager.schedule(Lead(name="Ana"), appointment)

    await manager.cancel(appointment)

    notification_service.cancel_appointment_notifications.assert_awaited_once_with(appointment.id)


@pytest.mark.asyncio
async def test_delete_removes_local_and_remote(manager, remote_store, identity_provider):
    """Explicit delete is the path that removes remote documents."""
    user = await identity_provider.sign_up("rep@example.com", "secret123")
    appointment = _appointment()
    await manager.schedule(Lead(name="Ana"), appointment)

    assert await manager.delete(appointment) is True

    assert manager.appointments == []
    path = document_path(user.uid, APPOINTMENTS_COLLECTION, str(appointment.id))
    assert remote_store.document(path) is None


@pytest.mark.asyncio
async def test_sync_all_suspends_and_resumes_listener(manager, listener, remote_store, identity_provider):
    """The listener is back to listening after a bulk push."""
    user = await identity_provider.sign_up("rep@example.com", "secret123")
    await listener.start()
    appointments = [_appointment("A"), _appointment("B")]
    for appointment in appointments:
        await manager.schedule(Lead(name="Ana"), appointment)

    report = await manager.sync_all()

    assert report.pushed == 2
    assert listener.state == ListenerState.LISTENING
    assert remote_store.subscriber_count(collection_path(user.uid, APPOINTMENTS_COLLECTION)) == 1


@pytest.mark.asyncio
async def test_sync_all_leaves_detached_listener_detached(manager, listener, identity_provider):
    await identity_provider.sign_up("rep@example.com", "secret123")

    await manager.sync_all()

    assert listener.state == ListenerState.DETACHED


@pytest.mark.asyncio
async def test_clear_local_only_keeps_remote(manager, listener, remote_store, identity_provider, cache):
    """Local clear empties the cache, sets the cleared flag and detaches the listener."""
    user = await identity_provider.sign_up("rep@example.com", "secret123")
    await listener.start()
    await manager.schedule(Lead(name="Ana"), _appointment())

    await manager.clear_local_only()

    assert manager.appointments == []
    assert cache.is_cleared
    assert listener.state == ListenerState.DETACHED
    assert len(await remote_store.get_documents(collection_path(user.uid, APPOINTMENTS_COLLECTION))) == 1
    assert await manager.reload() == 0


@pytest.mark.asyncio
async def test_clear_including_remote_deletes_everything(manager, remote_store, identity_provider):
    user = await identity_provider.sign_up("rep@example.com", "secret123")
    for title in ("A", "B"):
        await manager.schedule(Lead(name="Ana"), _appointment(title))

    assert await manager.clear_including_remote() == 2

    assert manager.appointments == []
    assert await remote_store.get_documents(collection_path(user.uid, APPOINTMENTS_COLLECTION)) == []


@pytest.mark.asyncio
async def test_remove_duplicates_keeps_first_copy(manager, cache):
    appointment = _appointment()
    await cache.replace([appointment, appointment, _appointment("Other")], reason="test")

    assert await manager.remove_duplicates() == 1
    assert len(manager.appointments) == 2


@pytest.mark.asyncio
async def test_upcoming_and_todays(manager, cache):
    now = datetime(2025, 8, 20, 9, 0, tzinfo=timezone.utc)
    later_today = _appointment("Later today", start=now + timedelta(hours=3))
    tomorrow = _appointment("Tomorrow", start=now + timedelta(days=1))
    cancelled = _appointment("Cancelled", start=now + timedelta(hours=5), status=AppointmentStatus.CANCELLED)
    earlier = _appointment("Earlier today", start=now - timedelta(hours=2))
    await cache.replace([tomorrow, cancelled, later_today, earlier], reason="test")

    assert [a.title for a in manager.upcoming(now)] == ["Later today", "Tomorrow"]
    assert [a.title for a in manager.todays(now)] == ["Earlier today", "Later today", "Cancelled"]


@pytest.mark.asyncio
async def test_mutations_publish_appointments_changed(manager, events):
    await manager.schedule(Lead(name="Ana"), _appointment())

    assert events.recent(APPOINTMENTS_CHANGED)[-1].payload["reason"] == "scheduled"


@pytest.mark.asyncio
async def test_calendar_event_id_is_stored_and_pushed(
    remote_store, identity_provider, lead_repository, notification_service, cache, listener
):
    """An enabled calendar links its event id to the appointment."""
    calendar = MagicMock()
    calendar.is_enabled = True
    calendar.create_or_update_event = AsyncMock(return_value="evt-42")
    calendar.delete_event = AsyncMock(return_value=True)
    manager = AppointmentManager(
        cache,
        listener,
        EntityPusher(remote_store, identity_provider),
        remote_store,
        lead_repository,
        calendar,
        notification_service,
        settle_seconds=0,
    )
    user = await identity_provider.sign_up("rep@example.com", "secret123")
    appointment = _appointment()

    await manager.schedule(Lead(name="Ana"), appointment)
    await manager.cancel(appointment)

    assert manager.get(appointment.id).calendar_event_id == "evt-42"
    path = document_path(user.uid, APPOINTMENTS_COLLECTION, str(appointment.id))
    assert remote_store.document(path)["calendarEventId"] == "evt-42"
    calendar.delete_event.assert_awaited_once_with("evt-42")
