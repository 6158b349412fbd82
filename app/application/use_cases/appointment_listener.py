"""Live appointment subscription with snapshot merge."""

import logging
from enum import Enum
from typing import Optional

from pydantic import ValidationError as PydanticValidationError

from app.application.dtos.appointment_document import (
    APPOINTMENTS_COLLECTION,
    AppointmentDocument,
)
from app.application.events import MERGE_COMPLETED, EventChannel
from app.application.ports.identity_provider import IdentityProvider
from app.application.ports.remote_store import (
    ListenerRegistration,
    RemoteDocument,
    RemoteStore,
    collection_path,
)
from app.application.use_cases.appointment_cache import AppointmentCache
from app.application.use_cases.merge_remote_snapshot import MergeResult, merge_remote_snapshot
from app.domain.entities.appointment import Appointment
from app.infrastructure.logging.logger import log_listener_transition, log_merge, log_sync


class ListenerState(str, Enum):
    """Lifecycle of the appointment subscription."""

    DETACHED = "detached"
    LISTENING = "listening"
    SUSPENDED = "suspended"


class AppointmentListener:
    """Keeps the local appointment cache merged with the remote collection.

    States:
        DETACHED  -> LISTENING  start() with a session (no-op when listening)
        LISTENING -> SUSPENDED  suspend() before bulk pushes or local clears
        SUSPENDED -> LISTENING  resume()
        any       -> DETACHED   stop()

    Snapshots delivered while not LISTENING, or by a registration that has
    since been replaced, are dropped.
    """

    def __init__(
        self,
        remote_store: RemoteStore,
        identity_provider: IdentityProvider,
        cache: AppointmentCache,
        event_channel: EventChannel,
    ) -> None:
        self._remote_store = remote_store
        self._identity_provider = identity_provider
        self._cache = cache
        self._events = event_channel
        self._state = ListenerState.DETACHED
        self._registration: Optional[ListenerRegistration] = None
        self._generation = 0
        self._user_id: Optional[str] = None

    @property
    def state(self) -> ListenerState:
        return self._state

    @property
    def is_listening(self) -> bool:
        return self._state is ListenerState.LISTENING

    def _transition(self, new_state: ListenerState, **kwargs) -> None:
        if new_state is self._state:
            return
        log_listener_transition(self._user_id, self._state.value, new_state.value, **kwargs)
        self._state = new_state

    def _detach_registration(self) -> None:
        # Invalidate snapshots still in flight for the old registration
        self._generation += 1
        if self._registration is not None:
            self._registration.remove()
            self._registration = None

    async def _attach(self, user_id: str) -> bool:
        self._generation += 1
        generation = self._generation
        self._user_id = user_id
        self._transition(ListenerState.LISTENING)

        async def _on_snapshot(documents: list[RemoteDocument]) -> None:
            if generation != self._generation or not self.is_listening:
                log_sync(user_id, "listener", ignored_snapshot=len(documents))
                return
            await self.apply_snapshot(documents)

        def _on_error(error: Exception) -> None:
            log_sync(user_id, "listener", level=logging.ERROR, listener_error=str(error))
            if generation != self._generation:
                return
            # The remote side ended the subscription; start() must attach again
            self._generation += 1
            self._registration = None
            self._transition(ListenerState.DETACHED, reason="listener_error")

        try:
            registration = await self._remote_store.subscribe(
                collection_path(user_id, APPOINTMENTS_COLLECTION),
                _on_snapshot,
                on_error=_on_error,
            )
        except Exception as e:
            log_sync(user_id, "listener", level=logging.ERROR, subscribe_error=str(e))
            self._generation += 1
            self._transition(ListenerState.DETACHED)
            return False

        if generation != self._generation:
            # stop() or suspend() ran while subscribing
            registration.remove()
            return False
        self._registration = registration
        return True

    async def start(self) -> bool:
        """
        Start listening for the current user.

        Idempotent: calling it while already listening does nothing. Clears a
        pending local-clear flag so the cache can load again.

        Returns:
            True if the listener is active afterwards
        """
        if self.is_listening:
            log_sync(self._user_id, "listener", skipped="already_listening")
            return True

        user = self._identity_provider.current_user
        if user is None:
            log_sync(None, "listener", skipped="no_session")
            return False

        self._cache.reset_cleared_flag()
        self._detach_registration()
        return await self._attach(user.uid)

    async def suspend(self) -> bool:
        """
        Pause the subscription.

        Returns:
            True if the listener was active and is now suspended
        """
        if not self.is_listening:
            return False
        self._detach_registration()
        self._transition(ListenerState.SUSPENDED)
        return True

    async def resume(self) -> bool:
        """
        Re-attach after suspend().

        Only a suspended listener resumes; a listener stopped in the meantime
        stays detached.

        Returns:
            True if the listener is active afterwards
        """
        if self._state is not ListenerState.SUSPENDED:
            return self.is_listening

        user = self._identity_provider.current_user
        if user is None or (self._user_id and user.uid != self._user_id):
            self.stop()
            return False
        return await self._attach(user.uid)

    def stop(self) -> None:
        """Detach the listener."""
        self._detach_registration()
        self._transition(ListenerState.DETACHED)

    async def apply_snapshot(self, documents: list[RemoteDocument]) -> MergeResult:
        """
        Decode a snapshot and merge it into the local cache.

        Undecodable documents are skipped.

        Args:
            documents: Full remote document set

        Returns:
            Merge result
        """
        remote: list[Appointment] = []
        for document in documents:
            try:
                data = dict(document.data)
                data.setdefault("id", document.id)
                remote.append(AppointmentDocument.from_document(data).to_entity())
            except (PydanticValidationError, ValueError) as e:
                log_sync(
                    self._user_id,
                    "listener",
                    level=logging.WARNING,
                    decode_failed=document.id,
                    error=str(e),
                )

        local = self._cache.appointments
        result = merge_remote_snapshot(local, remote)
        if result.changed:
            await self._cache.replace(result.appointments, reason=result.outcome.value)

        log_merge(
            self._user_id,
            result.outcome.value,
            local_count=len(local),
            remote_count=len(remote),
            merged_count=len(result.appointments),
        )
        self._events.publish(
            MERGE_COMPLETED,
            {
                "outcome": result.outcome.value,
                "updated": result.updated_count,
                "added": result.added_count,
                "count": len(result.appointments),
            },
        )
        return result
