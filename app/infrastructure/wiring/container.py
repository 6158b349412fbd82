"""Dependency injection container."""

from typing import Optional

from app.application.error_handler import ErrorHandler
from app.application.events import EventChannel
from app.application.ports.appointment_repository import AppointmentRepository
from app.application.ports.calendar_service import CalendarService
from app.application.ports.follow_up_check_in_repository import FollowUpCheckInRepository
from app.application.ports.identity_provider import IdentityProvider
from app.application.ports.lead_repository import LeadRepository
from app.application.ports.notification_service import NotificationService
from app.application.ports.preferences_store import PreferencesStore
from app.application.ports.remote_store import RemoteStore
from app.application.use_cases.account_manager import AccountManager
from app.application.use_cases.appointment_cache import AppointmentCache
from app.application.use_cases.appointment_listener import AppointmentListener
from app.application.use_cases.appointment_manager import AppointmentManager
from app.application.use_cases.lead_manager import LeadManager
from app.application.use_cases.push_entities import EntityPusher
from app.application.use_cases.user_data_sync import UserDataSync
from app.infrastructure.config.settings import Settings, settings as default_settings
from app.infrastructure.logging.logger import logger
from app.infrastructure.wiring import dependencies


class Container:
    """Dependency injection container.

    Adapters come from the factory functions unless passed in explicitly
    (tests pass their own).
    """

    def __init__(
        self,
        config: Settings = default_settings,
        lead_repository: Optional[LeadRepository] = None,
        check_in_repository: Optional[FollowUpCheckInRepository] = None,
        appointment_repository: Optional[AppointmentRepository] = None,
        remote_store: Optional[RemoteStore] = None,
        identity_provider: Optional[IdentityProvider] = None,
        preferences: Optional[PreferencesStore] = None,
        calendar_service: Optional[CalendarService] = None,
        notification_service: Optional[NotificationService] = None,
    ) -> None:
        """Initialize container with dependencies."""
        self.config = config

        # Adapters
        self.lead_repository = lead_repository or dependencies.create_lead_repository(config)
        self.check_in_repository = check_in_repository or dependencies.create_check_in_repository(
            config
        )
        self.appointment_repository = (
            appointment_repository or dependencies.create_appointment_repository(config)
        )
        self.remote_store = remote_store or dependencies.create_remote_store(config)
        self.identity_provider = identity_provider or dependencies.create_identity_provider(config)
        self.preferences = preferences or dependencies.create_preferences_store(config)
        self.calendar_service = calendar_service or dependencies.create_calendar_service(config)
        self.notification_service = (
            notification_service or dependencies.create_notification_service(config)
        )

        # Sync engine
        self.events = EventChannel()
        self.error_handler = ErrorHandler()
        self.pusher = EntityPusher(self.remote_store, self.identity_provider, self.error_handler)
        self.appointment_cache = AppointmentCache(
            self.appointment_repository, self.preferences, self.events
        )
        self.appointment_listener = AppointmentListener(
            self.remote_store, self.identity_provider, self.appointment_cache, self.events
        )

        # Domain managers
        self.appointment_manager = AppointmentManager(
            self.appointment_cache,
            self.appointment_listener,
            self.pusher,
            self.remote_store,
            self.lead_repository,
            self.calendar_service,
            self.notification_service,
            settle_seconds=config.post_bulk_push_settle_seconds,
        )
        self.lead_manager = LeadManager(
            self.lead_repository,
            self.check_in_repository,
            self.notification_service,
            self.pusher,
        )
        self.user_data_sync = UserDataSync(
            self.lead_repository,
            self.check_in_repository,
            self.remote_store,
            self.identity_provider,
            self.pusher,
            self.appointment_manager,
            self.preferences,
            self.events,
            error_handler=self.error_handler,
            retry=dependencies.create_sync_retry(config),
            recent_edit_window_seconds=config.recent_local_edit_window_seconds,
            default_auto_sync=config.auto_sync_enabled,
            default_interval=dependencies.default_sync_interval(config),
        )
        self.account_manager = AccountManager(
            self.identity_provider,
            self.remote_store,
            self.user_data_sync,
            self.appointment_manager,
            self.lead_repository,
            self.check_in_repository,
            self.preferences,
            self.events,
            error_handler=self.error_handler,
            poll_interval_seconds=config.sync_poll_interval_seconds,
            sign_out_sync_timeout_seconds=config.pre_sign_out_sync_timeout_seconds,
            guest_migration_timeout_seconds=config.guest_migration_timeout_seconds,
            min_password_length=config.min_password_length,
            cache_directories=config.cache_directories,
        )

    async def start(self) -> None:
        """Load local state and resume background sync for an existing session."""
        if self.config.local_store == "sql":
            from app.infrastructure.db import configure_database, create_schema

            configure_database(self.config.database_url, echo=self.config.debug_mode)
            create_schema()

        await self.appointment_cache.load()
        await self.lead_manager.backfill_check_in_outcomes()
        if self.user_data_sync.auto_sync_enabled:
            self.user_data_sync.start_auto_sync_timer()
        if self.identity_provider.is_authenticated:
            await self.appointment_listener.start()
        logger.info("Container started")

    async def close(self) -> None:
        """Stop background work and release connections."""
        await self.user_data_sync.close()
        await self.account_manager.close()
        self.appointment_listener.stop()
        await self.remote_store.close()
        logger.info("Container closed")
