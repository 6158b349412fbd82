"""Dependency injection factory functions."""

from app.adapters.outbound.identity import InMemoryIdentityProvider
from app.adapters.outbound.local_store import (
    InMemoryAppointmentRepository,
    InMemoryFollowUpCheckInRepository,
    InMemoryLeadRepository,
    SqlAppointmentRepository,
    SqlFollowUpCheckInRepository,
    SqlLeadRepository,
)
from app.adapters.outbound.platform import NoOpCalendarService, NoOpNotificationService
from app.adapters.outbound.preferences import InMemoryPreferencesStore, JsonFilePreferencesStore
from app.adapters.outbound.remote_store import InMemoryRemoteStore, RedisRemoteStore
from app.application.error_handler import RetryableOperation
from app.application.ports.appointment_repository import AppointmentRepository
from app.application.ports.calendar_service import CalendarService
from app.application.ports.follow_up_check_in_repository import FollowUpCheckInRepository
from app.application.ports.identity_provider import IdentityProvider
from app.application.ports.lead_repository import LeadRepository
from app.application.ports.notification_service import NotificationService
from app.application.ports.preferences_store import PreferencesStore
from app.application.ports.remote_store import RemoteStore
from app.application.use_cases.user_data_sync import SyncInterval
from app.infrastructure.config.settings import Settings, settings as default_settings


def _require_database_url(config: Settings) -> None:
    if not config.database_url:
        raise ValueError("DATABASE_URL is required when LOCAL_STORE=sql")


def create_lead_repository(config: Settings = default_settings) -> LeadRepository:
    """
    Factory function to create lead repository.

    Returns:
        LeadRepository instance
    """
    if config.local_store == "sql":
        _require_database_url(config)
        return SqlLeadRepository()
    return InMemoryLeadRepository()


def create_check_in_repository(config: Settings = default_settings) -> FollowUpCheckInRepository:
    """
    Factory function to create follow-up check-in repository.

    Returns:
        FollowUpCheckInRepository instance
    """
    if config.local_store == "sql":
        _require_database_url(config)
        return SqlFollowUpCheckInRepository()
    return InMemoryFollowUpCheckInRepository()


def create_appointment_repository(config: Settings = default_settings) -> AppointmentRepository:
    """
    Factory function to create appointment repository.

    Returns:
        AppointmentRepository instance
    """
    if config.local_store == "sql":
        _require_database_url(config)
        return SqlAppointmentRepository()
    return InMemoryAppointmentRepository()


def create_remote_store(config: Settings = default_settings) -> RemoteStore:
    """
    Factory function to create remote store.

    Returns:
        RemoteStore instance (Redis or in-memory)
    """
    if config.remote_store == "redis":
        if not config.redis_url:
            raise ValueError("REDIS_URL is required when REMOTE_STORE=redis")
        return RedisRemoteStore(config.redis_url)
    return InMemoryRemoteStore()


def create_identity_provider(config: Settings = default_settings) -> IdentityProvider:
    return InMemoryIdentityProvider()


def create_preferences_store(config: Settings = default_settings) -> PreferencesStore:
    """
    Factory function to create preferences store.

    Returns:
        JSON file store when PREFERENCES_PATH is set, in-memory otherwise
    """
    if config.preferences_path:
        return JsonFilePreferencesStore(config.preferences_path)
    return InMemoryPreferencesStore()


def create_calendar_service(config: Settings = default_settings) -> CalendarService:
    return NoOpCalendarService()


def create_notification_service(config: Settings = default_settings) -> NotificationService:
    return NoOpNotificationService()


def create_sync_retry(config: Settings = default_settings) -> RetryableOperation:
    return RetryableOperation(
        max_retries=config.sync_max_retries,
        retry_delay=config.sync_retry_delay_seconds,
    )


def default_sync_interval(config: Settings = default_settings) -> SyncInterval:
    """
    Parse the configured auto-sync interval.

    Raises:
        ValueError: If SYNC_INTERVAL is not one of the supported values
    """
    try:
        return SyncInterval(config.sync_interval)
    except ValueError as e:
        allowed = ", ".join(interval.value for interval in SyncInterval)
        raise ValueError(f"SYNC_INTERVAL must be one of: {allowed}") from e
