"""Unit tests for the account manager (sign-out, guest conversion, wipes)."""

import asyncio
from datetime import datetime, timedelta, timezone
from types import SimpleNamespace

import pytest

from app.adapters.outbound.identity import InMemoryIdentityProvider
from app.adapters.outbound.local_store import (
    InMemoryAppointmentRepository,
    InMemoryFollowUpCheckInRepository,
    InMemoryLeadRepository,
)
from app.adapters.outbound.platform import NoOpCalendarService, NoOpNotificationService
from app.adapters.outbound.preferences import InMemoryPreferencesStore
from app.adapters.outbound.remote_store import InMemoryRemoteStore
from app.application.dtos.appointment_document import APPOINTMENTS_COLLECTION
from app.application.dtos.lead_document import LEADS_COLLECTION
from app.application.error_handler import ErrorHandler, RetryableOperation
from app.application.errors import AuthenticationError, NetworkError, ValidationError
from app.application.events import AUTH_STATE_CHANGED, EventChannel
from app.application.ports.preferences_store import GUEST_MODE_KEY
from app.application.ports.remote_store import collection_path
from app.application.use_cases.account_manager import AccountManager, AuthStatus, is_valid_email
from app.application.use_cases.appointment_cache import AppointmentCache
from app.application.use_cases.appointment_listener import AppointmentListener
from app.application.use_cases.appointment_manager import AppointmentManager
from app.application.use_cases.push_entities import EntityPusher
from app.application.use_cases.user_data_sync import SyncStatus, UserDataSync
from app.domain.entities.appointment import Appointment
from app.domain.entities.lead import Lead

EMAIL = "rep@example.com"
PASSWORD = "secret123"


def _build(retry_delay: float = 0, sign_out_timeout: float = 1.0, cache_directories=()):
    remote_store = InMemoryRemoteStore()
    identity_provider = InMemoryIdentityProvider()
    leads = InMemoryLeadRepository()
    check_ins = InMemoryFollowUpCheckInRepository()
    preferences = InMemoryPreferencesStore()
    events = EventChannel()
    error_handler = ErrorHandler()
    pusher = EntityPusher(remote_store, identity_provider, error_handler)
    cache = AppointmentCache(InMemoryAppointmentRepository(), preferences, events)
    listener = AppointmentListener(remote_store, identity_provider, cache, events)
    appointments = AppointmentManager(
        cache,
        listener,
        pusher,
        remote_store,
        leads,
        NoOpCalendarService(),
        NoOpNotificationService(),
        settle_seconds=0,
    )
    sync = UserDataSync(
        leads,
        check_ins,
        remote_store,
        identity_provider,
        pusher,
        appointments,
        preferences,
        events,
        error_handler=error_handler,
        retry=RetryableOperation(max_retries=2, retry_delay=retry_delay),
    )
    account = AccountManager(
        identity_provider,
        remote_store,
        sync,
        appointments,
        leads,
        check_ins,
        preferences,
        events,
        error_handler=error_handler,
        poll_interval_seconds=0.01,
        sign_out_sync_timeout_seconds=sign_out_timeout,
        guest_migration_timeout_seconds=2.0,
        cache_directories=cache_directories,
    )
    return SimpleNamespace(
        remote_store=remote_store,
        identity_provider=identity_provider,
        leads=leads,
        preferences=preferences,
        events=events,
        listener=listener,
        appointments=appointments,
        sync=sync,
        account=account,
    )


@pytest.fixture
def env():
    return _build()


def _appointment(title: str = "Visit") -> Appointment:
    start = datetime.now(timezone.utc) + timedelta(days=1)
    return Appointment(title=title, start_date=start, end_date=start + timedelta(hours=1))


async def _remote_count(env, user_id: str, collection: str) -> int:
    return len(await env.remote_store.get_documents(collection_path(user_id, collection)))


@pytest.mark.parametrize(
    "email,expected",
    [
        ("rep@example.com", True),
        ("  first.last+tag@sub.example.io ", True),
        ("rep@example", False),
        ("not an email", False),
    ],
)
def test_is_valid_email(email, expected):
    assert is_valid_email(email) is expected


@pytest.mark.asyncio
async def test_sign_in_rejects_malformed_email_before_network(env):
    env.identity_provider.offline = True

    with pytest.raises(ValidationError):
        await env.account.sign_in("rep@", PASSWORD)

    assert env.account.auth_status == AuthStatus.FAILED
    assert env.account.auth_message == "Please enter a valid email address"


@pytest.mark.asyncio
async def test_sign_up_rejects_short_password(env):
    with pytest.raises(ValidationError) as exc_info:
        await env.account.sign_up(EMAIL, "123")

    assert "at least 6 characters" in str(exc_info.value)
    assert env.identity_provider.current_user is None


@pytest.mark.asyncio
async def test_sign_in_with_wrong_password_fails(env):
    await env.identity_provider.sign_up(EMAIL, PASSWORD)
    await env.identity_provider.sign_out()

    with pytest.raises(AuthenticationError):
        await env.account.sign_in(EMAIL, "wrong-password")

    assert env.account.auth_status == AuthStatus.FAILED


@pytest.mark.asyncio
async def test_sign_up_starts_post_sign_in_sync(env):
    """Sign-in returns first; the full sync runs in the background."""
    user = await env.account.sign_up(EMAIL, PASSWORD)

    assert env.account.auth_status == AuthStatus.SUCCESS
    await env.account._post_sign_in_task
    assert await env.account.wait_for_sync(1.0) == SyncStatus.COMPLETED
    assert env.listener.is_listening
    assert env.events.recent(AUTH_STATE_CHANGED)[-1].payload == {"user_id": user.uid}
    await env.account.close()
    await env.sync.close()


@pytest.mark.asyncio
async def test_sign_out_preserves_remote_data(env):
    """Signing out wipes the device but never the account's remote data."""
    user = await env.identity_provider.sign_up(EMAIL, PASSWORD)
    lead = Lead(name="Ana")
    await env.leads.save(lead)
    await env.appointments.schedule(lead, _appointment())

    await env.account.sign_out()

    assert env.identity_provider.current_user is None
    assert env.account.auth_status == AuthStatus.IDLE
    assert await env.leads.list_all() == []
    assert env.appointments.appointments == []
    assert await _remote_count(env, user.uid, LEADS_COLLECTION) == 1
    assert await _remote_count(env, user.uid, APPOINTMENTS_COLLECTION) == 1


@pytest.mark.asyncio
async def test_sign_out_while_offline_is_bounded():
    """An unreachable remote store delays sign-out by at most the timeout."""
    env = _build(retry_delay=5, sign_out_timeout=0.05)
    await env.identity_provider.sign_up(EMAIL, PASSWORD)
    await env.leads.save(Lead(name="Ana"))
    env.remote_store.offline = True

    await asyncio.wait_for(env.account.sign_out(), timeout=2)

    assert env.identity_provider.current_user is None
    assert env.sync.status == SyncStatus.IDLE
    assert await env.leads.list_all() == []


@pytest.mark.asyncio
async def test_wait_for_sync_times_out(env):
    await env.identity_provider.sign_up(EMAIL, PASSWORD)
    env.sync.status = SyncStatus.SYNCING

    assert await env.account.wait_for_sync(0.05) is None


@pytest.mark.asyncio
async def test_wait_for_sync_aborts_on_session_loss(env):
    await env.identity_provider.sign_up(EMAIL, PASSWORD)
    env.sync.status = SyncStatus.SYNCING
    env.identity_provider.expire_session()

    assert await env.account.wait_for_sync(10) is None


@pytest.mark.asyncio
async def test_guest_conversion_uploads_guest_data(env):
    """Three guest leads and one appointment land under the new account."""
    env.account.start_guest_mode()
    leads = [Lead(name=name) for name in ("Ana", "Ben", "Cleo")]
    for lead in leads:
        await env.leads.save(lead)
    await env.appointments.schedule(leads[0], _appointment())
    assert env.remote_store.write_count == 0

    user = await env.account.convert_guest_to_account(EMAIL, PASSWORD)

    assert env.account.is_guest_mode is False
    assert env.account.auth_status == AuthStatus.SUCCESS
    assert await _remote_count(env, user.uid, LEADS_COLLECTION) == 3
    assert await _remote_count(env, user.uid, APPOINTMENTS_COLLECTION) == 1
    await env.sync.close()


@pytest.mark.asyncio
async def test_guest_conversion_retry_skips_sign_up(env):
    """A failed upload keeps guest mode; the retry reuses the new session."""
    env.account.start_guest_mode()
    await env.leads.save(Lead(name="Ana"))
    env.remote_store.offline = True

    with pytest.raises(NetworkError):
        await env.account.convert_guest_to_account(EMAIL, PASSWORD)
    assert env.account.is_guest_mode is True
    assert env.identity_provider.current_user is not None

    env.remote_store.offline = False
    user = await env.account.convert_guest_to_account(EMAIL, PASSWORD)

    assert env.account.is_guest_mode is False
    assert await _remote_count(env, user.uid, LEADS_COLLECTION) == 1
    await env.sync.close()


@pytest.mark.asyncio
async def test_guest_conversion_requires_guest_mode(env):
    with pytest.raises(ValidationError):
        await env.account.convert_guest_to_account(EMAIL, PASSWORD)


@pytest.mark.asyncio
async def test_cancel_guest_mode(env):
    env.account.start_guest_mode()

    env.account.cancel_guest_mode()

    assert env.preferences.get(GUEST_MODE_KEY) is False


@pytest.mark.asyncio
async def test_clear_all_local_data_keeps_protected_preferences(tmp_path):
    cache_dir = tmp_path / "cache"
    (cache_dir / "images").mkdir(parents=True)
    (cache_dir / "images" / "a.png").write_bytes(b"png")
    (cache_dir / "response.json").write_text("{}")
    env = _build(cache_directories=[str(cache_dir)])
    for key in ("AppleLanguages", "keychain_saved_rep", "user_declined_save_rep", "sync_interval", GUEST_MODE_KEY):
        env.preferences.set(key, True)
    await env.leads.save(Lead(name="Ana"))

    await env.account.clear_all_local_data()

    assert sorted(env.preferences.keys()) == ["AppleLanguages", "keychain_saved_rep", "user_declined_save_rep"]
    assert list(cache_dir.iterdir()) == []
    assert await env.leads.list_all() == []


@pytest.mark.asyncio
async def test_delete_account_wipes_local_data(env):
    await env.identity_provider.sign_up(EMAIL, PASSWORD)
    await env.leads.save(Lead(name="Ana"))

    await env.account.delete_account(PASSWORD)

    assert env.identity_provider.current_user is None
    assert await env.leads.list_all() == []
    assert env.account.auth_status == AuthStatus.SUCCESS


@pytest.mark.asyncio
async def test_delete_account_requires_password(env):
    with pytest.raises(ValidationError):
        await env.account.delete_account("")


@pytest.mark.asyncio
async def test_reset_password(env):
    await env.account.reset_password(" Rep@Example.com ")

    assert env.identity_provider.password_resets == ["rep@example.com"]
    assert env.account.auth_status == AuthStatus.SUCCESS
