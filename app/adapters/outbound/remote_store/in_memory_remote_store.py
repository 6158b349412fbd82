"""In-memory remote document store adapter."""

import copy
from collections import defaultdict
from typing import Any, Callable, Optional

from app.application.errors import NetworkError
from app.application.ports.remote_store import (
    ErrorHandlerCallback,
    ListenerRegistration,
    RemoteDocument,
    RemoteStore,
    SnapshotHandler,
    split_document_path,
)
from app.infrastructure.logging.logger import logger

FaultInjector = Callable[[str, str], None]


class _Subscription(ListenerRegistration):
    def __init__(
        self,
        store: "InMemoryRemoteStore",
        collection: str,
        on_snapshot: SnapshotHandler,
        on_error: Optional[ErrorHandlerCallback],
    ) -> None:
        self._store = store
        self.collection = collection
        self.on_snapshot = on_snapshot
        self.on_error = on_error
        self.active = True

    def remove(self) -> None:
        if self.active:
            self.active = False
            self._store._unsubscribe(self)


class InMemoryRemoteStore(RemoteStore):
    """Remote store kept in process memory.

    Listeners are notified inline: set/delete return only after every
    active subscriber of the collection has processed the new snapshot.
    Tests drive failures through `offline` or a fault injector.
    """

    def __init__(self) -> None:
        """Initialize with no documents."""
        self._collections: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        self._subscriptions: dict[str, list[_Subscription]] = defaultdict(list)
        self.offline = False
        self.fault_injector: Optional[FaultInjector] = None
        self.write_count = 0

    def _check_fault(self, operation: str, path: str) -> None:
        if self.offline:
            raise NetworkError(f"Remote store unreachable ({operation} {path})")
        if self.fault_injector is not None:
            self.fault_injector(operation, path)

    def _snapshot(self, collection: str) -> list[RemoteDocument]:
        return [
            RemoteDocument(id=document_id, data=copy.deepcopy(data))
            for document_id, data in self._collections.get(collection, {}).items()
        ]

    async def _notify(self, collection: str) -> None:
        for subscription in list(self._subscriptions.get(collection, [])):
            if not subscription.active:
                continue
            try:
                await subscription.on_snapshot(self._snapshot(collection))
            except Exception as e:
                logger.error(f"Snapshot handler failed for {collection}: {e}")

    async def set_document(self, path: str, data: dict[str, Any], merge: bool = False) -> None:
        """
        Write a document and notify the collection's listeners.

        Args:
            path: Document path
            data: Document body
            merge: Update fields of an existing document instead of replacing it
        """
        self._check_fault("set", path)
        collection, document_id = split_document_path(path)
        documents = self._collections[collection]
        if merge and document_id in documents:
            documents[document_id].update(copy.deepcopy(data))
        else:
            documents[document_id] = copy.deepcopy(data)
        self.write_count += 1
        await self._notify(collection)

    async def delete_document(self, path: str) -> None:
        self._check_fault("delete", path)
        collection, document_id = split_document_path(path)
        if self._collections[collection].pop(document_id, None) is not None:
            await self._notify(collection)

    async def get_documents(self, collection: str) -> list[RemoteDocument]:
        self._check_fault("get", collection)
        return self._snapshot(collection)

    async def subscribe(
        self,
        collection: str,
        on_snapshot: SnapshotHandler,
        on_error: Optional[ErrorHandlerCallback] = None,
    ) -> ListenerRegistration:
        """
        Subscribe and deliver the current snapshot before returning.

        Returns:
            Registration used to detach the listener
        """
        self._check_fault("subscribe", collection)
        subscription = _Subscription(self, collection, on_snapshot, on_error)
        self._subscriptions[collection].append(subscription)
        await on_snapshot(self._snapshot(collection))
        return subscription

    def drop_subscriptions(self, collection: str, error: Exception) -> int:
        """
        End every subscription on a collection as a lost connection would.

        Each dropped subscriber gets `error` through its on_error callback.

        Returns:
            Number of dropped subscriptions
        """
        dropped = list(self._subscriptions.pop(collection, []))
        for subscription in dropped:
            subscription.active = False
            if subscription.on_error:
                subscription.on_error(error)
        return len(dropped)

    def _unsubscribe(self, subscription: _Subscription) -> None:
        subscriptions = self._subscriptions.get(subscription.collection, [])
        if subscription in subscriptions:
            subscriptions.remove(subscription)

    def subscriber_count(self, collection: str) -> int:
        return len(self._subscriptions.get(collection, []))

    def document(self, path: str) -> Optional[dict[str, Any]]:
        """Stored document body, for inspection."""
        collection, document_id = split_document_path(path)
        data = self._collections.get(collection, {}).get(document_id)
        return copy.deepcopy(data) if data is not None else None
