"""Push local entities to the remote store."""

from typing import Any, Iterable, Optional

from app.application.dtos.sync import PushReport
from app.application.error_handler import ErrorHandler
from app.application.ports.identity_provider import IdentityProvider
from app.application.ports.remote_store import RemoteStore, document_path
from app.infrastructure.logging.logger import log_push, log_sync

PushItem = tuple[str, dict[str, Any]]


class EntityPusher:
    """Push primitive shared by the domain managers and the batched sync.

    Local state is the source of truth for the active session: a failed push
    is logged and reported, never rolled back.
    """

    def __init__(
        self,
        remote_store: RemoteStore,
        identity_provider: IdentityProvider,
        error_handler: Optional[ErrorHandler] = None,
    ) -> None:
        """
        Initialize pusher.

        Args:
            remote_store: Remote document store
            identity_provider: Source of the current user id
            error_handler: Optional handler recording user-visible errors
        """
        self._remote_store = remote_store
        self._identity_provider = identity_provider
        self._error_handler = error_handler or ErrorHandler()
        self.error_message: Optional[str] = None

    def current_user_id(self) -> Optional[str]:
        """Uid of the signed-in user, None without a session."""
        user = self._identity_provider.current_user
        return user.uid if user else None

    async def push_entity(
        self,
        collection: str,
        document_id: str,
        document: dict[str, Any],
        merge: bool = False,
    ) -> bool:
        """
        Upsert one document under the current user.

        Without a session this is a silent no-op and the entity stays local
        until the next sync window.

        Args:
            collection: Collection name (e.g., 'appointments')
            document_id: Entity id in string form
            document: Serialized entity
            merge: Merge into the existing document instead of replacing it

        Returns:
            True if the remote write succeeded
        """
        user_id = self.current_user_id()
        if user_id is None:
            log_sync(None, "push", collection=collection, skipped="no_session")
            return False

        try:
            await self._remote_store.set_document(
                document_path(user_id, collection, document_id), document, merge=merge
            )
        except Exception as e:
            app_error = self._error_handler.handle(e, context=f"Sync {collection}")
            self.error_message = f"Failed to sync {collection}: {app_error.message}"
            log_push(user_id, collection, document_id, success=False, error=str(app_error))
            return False

        log_push(user_id, collection, document_id, success=True)
        return True

    async def push_all(
        self,
        collection: str,
        items: Iterable[PushItem],
        merge: bool = False,
    ) -> PushReport:
        """
        Push documents one after another, continuing past failures.

        Args:
            collection: Collection name
            items: (document_id, document) pairs
            merge: Merge into existing documents

        Returns:
            Report with attempted/pushed counts and failed ids
        """
        items = list(items)
        if self.current_user_id() is None:
            return PushReport(attempted=len(items), skipped_no_session=True)

        pushed = 0
        failed_ids: list[str] = []
        for document_id, document in items:
            if await self.push_entity(collection, document_id, document, merge=merge):
                pushed += 1
            else:
                failed_ids.append(document_id)

        log_sync(
            self.current_user_id(),
            "push_all",
            collection=collection,
            attempted=len(items),
            pushed=pushed,
            failed=len(failed_ids),
        )
        return PushReport(attempted=len(items), pushed=pushed, failed_ids=failed_ids)

    async def delete_entity(self, collection: str, document_id: str) -> bool:
        """
        Delete the remote mirror of an explicitly deleted entity.

        Args:
            collection: Collection name
            document_id: Entity id in string form

        Returns:
            True if the remote delete succeeded
        """
        user_id = self.current_user_id()
        if user_id is None:
            log_sync(None, "delete", collection=collection, skipped="no_session")
            return False

        try:
            await self._remote_store.delete_document(
                document_path(user_id, collection, document_id)
            )
        except Exception as e:
            app_error = self._error_handler.handle(e, context=f"Delete {collection}")
            self.error_message = f"Failed to delete {collection}: {app_error.message}"
            return False

        log_sync(user_id, "delete", collection=collection, document_id=document_id)
        return True
