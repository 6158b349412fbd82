"""Account lifecycle: sign-in/out, guest mode and local data wipes."""

import asyncio
import logging
import re
import shutil
from enum import Enum
from pathlib import Path
from typing import Awaitable, Callable, Iterable, Optional

from app.application.dtos.appointment_document import APPOINTMENTS_COLLECTION
from app.application.dtos.lead_document import CHECK_INS_COLLECTION, LEADS_COLLECTION
from app.application.error_handler import ErrorHandler
from app.application.errors import AppError, NetworkError, ValidationError
from app.application.events import AUTH_STATE_CHANGED, EventChannel
from app.application.ports.follow_up_check_in_repository import FollowUpCheckInRepository
from app.application.ports.identity_provider import AuthUser, IdentityProvider
from app.application.ports.lead_repository import LeadRepository
from app.application.ports.preferences_store import (
    GUEST_MODE_KEY,
    PreferencesStore,
    is_preserved_on_clear,
)
from app.application.ports.remote_store import RemoteStore, collection_path
from app.application.use_cases.appointment_manager import AppointmentManager
from app.application.use_cases.user_data_sync import SyncStatus, UserDataSync
from app.infrastructure.logging.logger import log_sign_out_phase, log_sync, logger

EMAIL_PATTERN = re.compile(r"[A-Z0-9a-z._%+-]+@[A-Za-z0-9.-]+\.[A-Za-z]{2,64}")

_USER_COLLECTIONS = (APPOINTMENTS_COLLECTION, LEADS_COLLECTION, CHECK_INS_COLLECTION)


class AuthStatus(str, Enum):
    """UI-facing authentication state."""

    IDLE = "idle"
    LOADING = "loading"
    SUCCESS = "success"
    FAILED = "failed"


def is_valid_email(email: str) -> bool:
    return EMAIL_PATTERN.fullmatch(email.strip()) is not None


class AccountManager:
    """Coordinates the identity provider with the sync engine.

    Sign-out and guest conversion wait on the batched sync by polling its
    status at a fixed interval with a hard timeout, aborting early if the
    session disappears.
    """

    def __init__(
        self,
        identity_provider: IdentityProvider,
        remote_store: RemoteStore,
        user_data_sync: UserDataSync,
        appointment_manager: AppointmentManager,
        lead_repository: LeadRepository,
        check_in_repository: FollowUpCheckInRepository,
        preferences: PreferencesStore,
        event_channel: EventChannel,
        error_handler: Optional[ErrorHandler] = None,
        poll_interval_seconds: float = 0.5,
        sign_out_sync_timeout_seconds: float = 10.0,
        guest_migration_timeout_seconds: float = 30.0,
        min_password_length: int = 6,
        cache_directories: Iterable[str] = (),
    ) -> None:
        """
        Initialize account manager.

        Args:
            identity_provider: Authentication service
            remote_store: Remote store (checked before guest migration)
            user_data_sync: Batched sync engine
            appointment_manager: Appointment façade (listener and local clear)
            lead_repository: Local lead store
            check_in_repository: Local check-in store
            preferences: Persisted preference flags
            event_channel: Receives AUTH_STATE_CHANGED events
            error_handler: Records user-visible errors
            poll_interval_seconds: Sync status polling period
            sign_out_sync_timeout_seconds: Bound on each pre-sign-out wait
            guest_migration_timeout_seconds: Bound on the guest data upload wait
            min_password_length: Minimum accepted password length
            cache_directories: Directories emptied during a local wipe
        """
        self._identity_provider = identity_provider
        self._remote_store = remote_store
        self._sync = user_data_sync
        self._appointments = appointment_manager
        self._leads = lead_repository
        self._check_ins = check_in_repository
        self._preferences = preferences
        self._events = event_channel
        self._error_handler = error_handler or ErrorHandler()
        self._poll_interval = poll_interval_seconds
        self._sign_out_timeout = sign_out_sync_timeout_seconds
        self._guest_migration_timeout = guest_migration_timeout_seconds
        self._min_password_length = min_password_length
        self._cache_directories = [Path(directory) for directory in cache_directories]
        self._post_sign_in_task: Optional[asyncio.Task] = None

        self.auth_status = AuthStatus.IDLE
        self.auth_message: Optional[str] = None

        self._identity_provider.add_state_listener(self._on_auth_state_changed)

    @property
    def is_guest_mode(self) -> bool:
        return self._preferences.get_bool(GUEST_MODE_KEY)

    @property
    def current_user(self) -> Optional[AuthUser]:
        return self._identity_provider.current_user

    def _on_auth_state_changed(self, user: Optional[AuthUser]) -> None:
        self._events.publish(AUTH_STATE_CHANGED, {"user_id": user.uid if user else None})

    def _set_status(self, status: AuthStatus, message: Optional[str] = None) -> None:
        self.auth_status = status
        self.auth_message = message

    def _fail(self, error: BaseException, context: str) -> AppError:
        app_error = self._error_handler.handle(error, context=context)
        self._set_status(AuthStatus.FAILED, app_error.user_friendly_message)
        return app_error

    def _validate_credentials(self, email: str, password: str, check_length: bool) -> None:
        if not email or not password:
            raise ValidationError("Email and password are required")
        if not is_valid_email(email):
            raise ValidationError("Please enter a valid email address")
        if check_length and len(password) < self._min_password_length:
            raise ValidationError(
                f"Password must be at least {self._min_password_length} characters"
            )

    async def _authenticate(
        self,
        context: str,
        validate: Callable[[], None],
        call: Callable[[], Awaitable[AuthUser]],
    ) -> AuthUser:
        try:
            validate()
        except ValidationError as e:
            self._fail(e, context)
            raise

        self._set_status(AuthStatus.LOADING)
        try:
            user = await call()
        except Exception as e:
            app_error = self._fail(e, context)
            if app_error is e:
                raise
            raise app_error from e

        self._set_status(AuthStatus.SUCCESS)
        self._start_post_sign_in_sync()
        return user

    async def sign_up(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> AuthUser:
        """
        Create an account, then start the post-sign-in sync.

        Input is validated before any network call.

        Raises:
            ValidationError: Malformed email or short password
            AuthenticationError: Rejected by the identity provider
        """
        return await self._authenticate(
            "Sign Up",
            lambda: self._validate_credentials(email, password, check_length=True),
            lambda: self._identity_provider.sign_up(email, password, display_name),
        )

    async def sign_in(self, email: str, password: str) -> AuthUser:
        """
        Sign in, then start the post-sign-in sync.

        Raises:
            ValidationError: Malformed email or missing password
            AuthenticationError: Rejected credentials
        """
        return await self._authenticate(
            "Sign In",
            lambda: self._validate_credentials(email, password, check_length=False),
            lambda: self._identity_provider.sign_in(email, password),
        )

    def _start_post_sign_in_sync(self) -> None:
        # Sign-in completion never waits on the sync
        self._post_sign_in_task = asyncio.create_task(self._post_sign_in_sync())

    async def _post_sign_in_sync(self) -> None:
        user = self._identity_provider.current_user
        log_sync(user.uid if user else None, "post_sign_in", action="start")
        try:
            await self._sync.sync_with_server()
        except Exception as e:
            self._error_handler.handle(e, context="Post Sign-In Sync")

    async def wait_for_sync(self, timeout: float) -> Optional[SyncStatus]:
        """
        Poll the batched sync until it leaves SYNCING.

        Args:
            timeout: Hard bound in seconds

        Returns:
            The status reached, or None on timeout or session loss
        """
        loop = asyncio.get_running_loop()
        deadline = loop.time() + timeout
        while True:
            if not self._identity_provider.is_authenticated:
                return None
            if self._sync.status is not SyncStatus.SYNCING:
                return self._sync.status
            if loop.time() >= deadline:
                return None
            await asyncio.sleep(self._poll_interval)

    async def _run_phase(
        self,
        user_id: Optional[str],
        phase: str,
        operation: Callable[[], Awaitable[None]],
    ) -> None:
        log_sign_out_phase(user_id, phase)
        try:
            await operation()
        except Exception as e:
            log_sign_out_phase(user_id, phase, level=logging.ERROR, error=str(e))

    async def sign_out(self) -> None:
        """
        Sign out without losing unsynced work or hanging offline.

        Phases: detach the listener, clear appointments locally (remote
        copies stay), wait for an in-flight sync, run the pre-sign-out
        sync, wipe local data, revoke the session, reset auth state.
        Failures before the revocation are logged and skipped.
        """
        user = self._identity_provider.current_user
        user_id = user.uid if user else None

        async def detach_listener() -> None:
            self._appointments.stop_listener()

        async def await_in_flight_sync() -> None:
            if not self._identity_provider.is_authenticated:
                return
            if self._sync.status is SyncStatus.SYNCING:
                await self.wait_for_sync(self._sign_out_timeout)

        async def pre_sign_out_sync() -> None:
            if not self._identity_provider.is_authenticated:
                log_sign_out_phase(user_id, "pre_sign_out_sync", skipped="no_session")
                return
            self._sync.sync_before_sign_out()
            status = await self.wait_for_sync(self._sign_out_timeout)
            if status is None:
                log_sign_out_phase(user_id, "pre_sign_out_sync", timed_out=True)
                self._sync.pause_sync()

        await self._run_phase(user_id, "detach_listener", detach_listener)
        await self._run_phase(user_id, "clear_local_appointments", self._appointments.clear_local_only)
        await self._run_phase(user_id, "await_in_flight_sync", await_in_flight_sync)
        await self._run_phase(user_id, "pre_sign_out_sync", pre_sign_out_sync)
        await self._run_phase(user_id, "clear_local_data", self.clear_all_local_data)

        log_sign_out_phase(user_id, "revoke_session")
        try:
            await self._identity_provider.sign_out()
        except Exception as e:
            self._error_handler.handle(e, context="Sign Out")

        self._set_status(AuthStatus.IDLE)
        log_sign_out_phase(user_id, "completed")

    async def delete_account(self, current_password: str) -> None:
        """
        Delete the account and wipe local data.

        Raises:
            ValidationError: Missing password
            AuthenticationError: Wrong password or no session
        """
        if not current_password:
            error = ValidationError("Password is required to delete account")
            self._fail(error, "Delete Account")
            raise error

        self._set_status(AuthStatus.LOADING)
        self._appointments.stop_listener()
        try:
            await self._identity_provider.delete_account(current_password)
        except Exception as e:
            app_error = self._fail(e, "Delete Account")
            if app_error is e:
                raise
            raise app_error from e

        await self.clear_all_local_data()
        self._set_status(AuthStatus.SUCCESS)

    async def reset_password(self, email: str) -> None:
        """
        Ask the identity provider to send a reset email.

        Raises:
            ValidationError: Missing or malformed email
        """
        if not email or not is_valid_email(email):
            error = ValidationError("Please enter a valid email address")
            self._fail(error, "Password Reset")
            raise error

        self._set_status(AuthStatus.LOADING)
        try:
            await self._identity_provider.reset_password(email)
        except Exception as e:
            app_error = self._fail(e, "Password Reset")
            if app_error is e:
                raise
            raise app_error from e
        self._set_status(AuthStatus.SUCCESS)

    def start_guest_mode(self) -> None:
        self._preferences.set(GUEST_MODE_KEY, True)
        self._set_status(AuthStatus.IDLE)
        logger.info("Guest mode activated")

    def cancel_guest_mode(self) -> None:
        self._preferences.set(GUEST_MODE_KEY, False)
        self._set_status(AuthStatus.IDLE)
        logger.info("Guest mode cancelled")

    async def _remote_subtree_is_empty(self, user_id: str) -> bool:
        for collection in _USER_COLLECTIONS:
            if await self._remote_store.get_documents(collection_path(user_id, collection)):
                return False
        return True

    async def convert_guest_to_account(
        self, email: str, password: str, display_name: Optional[str] = None
    ) -> AuthUser:
        """
        Create an account for a guest and upload the guest's local data.

        Guest mode is left only once the upload completed. On failure the
        caller retries; a retry with the account already signed in skips
        the sign-up.

        Args:
            email: Account email
            password: Account password
            display_name: Optional display name

        Returns:
            The new user

        Raises:
            ValidationError: Not in guest mode, bad input, or the account
                already owns remote data
            NetworkError: The upload did not complete in time
        """
        if not self.is_guest_mode:
            raise ValidationError("Not in guest mode")
        try:
            self._validate_credentials(email, password, check_length=True)
        except ValidationError as e:
            self._fail(e, "Guest Conversion")
            raise

        self._set_status(AuthStatus.LOADING)
        try:
            user = self._identity_provider.current_user
            if user is None or user.email.lower() != email.strip().lower():
                user = await self._identity_provider.sign_up(email, password, display_name)
                if not await self._remote_subtree_is_empty(user.uid):
                    raise ValidationError("This account already has synced data")

            status = await self._migrate_guest_data()
            if status is not SyncStatus.COMPLETED:
                raise NetworkError(
                    f"Guest data migration did not complete (status: {status.value if status else 'timeout'})"
                )
        except Exception as e:
            app_error = self._fail(e, "Guest Conversion")
            if app_error is e:
                raise
            raise app_error from e

        self._preferences.set(GUEST_MODE_KEY, False)
        self._set_status(AuthStatus.SUCCESS)
        logger.info(f"Guest data migrated to account {user.uid}")
        return user

    async def _migrate_guest_data(self) -> Optional[SyncStatus]:
        await self._sync.sync_with_server()
        return await self.wait_for_sync(self._guest_migration_timeout)

    async def clear_all_local_data(self) -> None:
        """
        Wipe local entities, preferences, cache directories and sync state.

        Locale preferences and the rep's saved-password choices survive.
        Remote data is untouched.
        """
        await self._appointments.clear_local_only()
        await self._leads.clear()
        await self._check_ins.clear()

        removed = self._preferences.clear_except(is_preserved_on_clear)
        logger.info(f"Cleared {removed} preferences")

        for directory in self._cache_directories:
            self._clear_directory(directory)

        self._sync.clear_state()

    def _clear_directory(self, directory: Path) -> None:
        if not directory.is_dir():
            return
        for entry in directory.iterdir():
            try:
                if entry.is_dir() and not entry.is_symlink():
                    shutil.rmtree(entry)
                else:
                    entry.unlink()
            except OSError as e:
                logger.error(f"Failed to remove cache entry {entry}: {e}")

    async def close(self) -> None:
        task = self._post_sign_in_task
        if task is not None and not task.done():
            task.cancel()
            try:
                await task
            except asyncio.CancelledError:
                pass
