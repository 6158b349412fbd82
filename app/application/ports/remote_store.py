"""Remote document store port."""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Awaitable, Callable, Optional

USERS_COLLECTION = "users"


def collection_path(user_id: str, collection: str) -> str:
    """
    Build a per-user collection path.

    Args:
        user_id: Authenticated user identifier
        collection: Collection name (e.g., 'appointments')

    Returns:
        Path of the form users/{uid}/{collection}
    """
    return f"{USERS_COLLECTION}/{user_id}/{collection}"


def document_path(user_id: str, collection: str, document_id: str) -> str:
    """Path of the form users/{uid}/{collection}/{document_id}."""
    return f"{collection_path(user_id, collection)}/{document_id}"


def split_document_path(path: str) -> tuple[str, str]:
    """
    Split a document path into its collection path and document id.

    Args:
        path: Full document path

    Returns:
        Tuple of (collection_path, document_id)

    Raises:
        ValueError: If the path has no document segment
    """
    collection, _, document_id = path.rpartition("/")
    if not collection or not document_id:
        raise ValueError(f"Invalid document path: {path!r}")
    return collection, document_id


@dataclass(frozen=True)
class RemoteDocument:
    """A document as delivered by the remote store."""

    id: str
    data: dict[str, Any] = field(default_factory=dict)


SnapshotHandler = Callable[[list[RemoteDocument]], Awaitable[None]]
ErrorHandlerCallback = Callable[[Exception], None]


class ListenerRegistration(ABC):
    """Handle of an active collection subscription."""

    @abstractmethod
    def remove(self) -> None:
        """Stop delivering snapshots to the subscriber."""
        pass


class RemoteStore(ABC):
    """Port interface for the per-user cloud document store."""

    @abstractmethod
    async def set_document(self, path: str, data: dict[str, Any], merge: bool = False) -> None:
        """
        Write a document.

        Args:
            path: Document path (users/{uid}/{collection}/{id})
            data: Flat key-value document
            merge: Merge into the existing document instead of replacing it

        Raises:
            AppError: NetworkError, PermissionDeniedError or AuthenticationError
        """
        pass

    @abstractmethod
    async def delete_document(self, path: str) -> None:
        """
        Delete a document (no error if it does not exist).

        Args:
            path: Document path
        """
        pass

    @abstractmethod
    async def get_documents(self, collection: str) -> list[RemoteDocument]:
        """
        Read every document in a collection.

        Args:
            collection: Collection path (users/{uid}/{collection})

        Returns:
            Documents currently in the collection
        """
        pass

    @abstractmethod
    async def subscribe(
        self,
        collection: str,
        on_snapshot: SnapshotHandler,
        on_error: Optional[ErrorHandlerCallback] = None,
    ) -> ListenerRegistration:
        """
        Subscribe to a collection.

        The handler receives the full current document set once on
        subscription and again after every change.

        Args:
            collection: Collection path
            on_snapshot: Coroutine receiving the full document set
            on_error: Optional callback invoked once if the subscription ends
                on its own (e.g. the connection drops). Handler failures on a
                single snapshot are logged and delivery continues.

        Returns:
            Registration used to detach the listener
        """
        pass

    async def close(self) -> None:
        """Release connections held by the adapter."""
        return None
