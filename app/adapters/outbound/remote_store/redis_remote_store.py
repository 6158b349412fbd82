"""Redis-backed remote document store adapter."""

import asyncio
import json
from typing import Any, Optional

from redis import asyncio as aioredis
from redis import exceptions as redis_exceptions

from app.application.errors import (
    AppError,
    AuthenticationError,
    NetworkError,
    PermissionDeniedError,
    UnknownError,
)
from app.application.ports.remote_store import (
    ErrorHandlerCallback,
    ListenerRegistration,
    RemoteDocument,
    RemoteStore,
    SnapshotHandler,
    split_document_path,
)
from app.infrastructure.logging.logger import logger


def map_redis_error(error: Exception, operation: str) -> AppError:
    """
    Translate a redis exception into the application taxonomy.

    Args:
        error: Exception raised by the redis client
        operation: Short description of the failed call

    Returns:
        Categorized application error
    """
    message = f"Remote store {operation} failed: {error}"
    if isinstance(error, redis_exceptions.AuthenticationError):
        return AuthenticationError(message, cause=error)
    if isinstance(error, redis_exceptions.NoPermissionError):
        return PermissionDeniedError(message, cause=error)
    if isinstance(error, (redis_exceptions.ConnectionError, redis_exceptions.TimeoutError)):
        return NetworkError(message, cause=error)
    return UnknownError(message, cause=error)


class _RedisSubscription(ListenerRegistration):
    def __init__(self, task: asyncio.Task) -> None:
        self._task = task

    def remove(self) -> None:
        if not self._task.done():
            self._task.cancel()


class RedisRemoteStore(RemoteStore):
    """Remote store on Redis.

    Each collection is a hash of document id to JSON body. Writes publish
    the document id on the collection's change channel; subscribers re-read
    the whole hash on every message.
    """

    KEY_PREFIX = "remote:docs:"
    CHANNEL_PREFIX = "remote:changes:"

    def __init__(self, redis_url: str) -> None:
        """
        Initialize Redis remote store.

        Args:
            redis_url: Redis connection URL
        """
        self._redis_url = redis_url
        self._client: Optional[aioredis.Redis] = None
        self._listener_tasks: set[asyncio.Task] = set()

    async def _get_client(self) -> aioredis.Redis:
        """
        Get or create Redis client.

        Returns:
            Redis client instance
        """
        if self._client is None:
            self._client = await aioredis.from_url(
                self._redis_url,
                encoding="utf-8",
                decode_responses=True,
            )
        return self._client

    def _hash_key(self, collection: str) -> str:
        return f"{self.KEY_PREFIX}{collection}"

    def _channel(self, collection: str) -> str:
        return f"{self.CHANNEL_PREFIX}{collection}"

    async def set_document(self, path: str, data: dict[str, Any], merge: bool = False) -> None:
        """
        Write a document and publish a change notification.

        Args:
            path: Document path
            data: Document body
            merge: Update fields of an existing document instead of replacing it

        Raises:
            AppError: Categorized redis failure
        """
        collection, document_id = split_document_path(path)
        try:
            client = await self._get_client()
            body = dict(data)
            if merge:
                existing = await client.hget(self._hash_key(collection), document_id)
                if existing:
                    body = {**json.loads(existing), **data}
            await client.hset(
                self._hash_key(collection), document_id, json.dumps(body, sort_keys=True)
            )
            await client.publish(self._channel(collection), document_id)
        except redis_exceptions.RedisError as e:
            raise map_redis_error(e, f"set {path}") from e

    async def delete_document(self, path: str) -> None:
        collection, document_id = split_document_path(path)
        try:
            client = await self._get_client()
            await client.hdel(self._hash_key(collection), document_id)
            await client.publish(self._channel(collection), document_id)
        except redis_exceptions.RedisError as e:
            raise map_redis_error(e, f"delete {path}") from e

    async def get_documents(self, collection: str) -> list[RemoteDocument]:
        """
        Read every document in a collection.

        Bodies that are not valid JSON objects are skipped.
        """
        try:
            client = await self._get_client()
            raw = await client.hgetall(self._hash_key(collection))
        except redis_exceptions.RedisError as e:
            raise map_redis_error(e, f"read {collection}") from e

        documents = []
        for document_id, body in raw.items():
            try:
                data = json.loads(body)
            except json.JSONDecodeError as e:
                logger.warning(f"Skipping malformed document {collection}/{document_id}: {e}")
                continue
            if isinstance(data, dict):
                documents.append(RemoteDocument(id=document_id, data=data))
        return documents

    async def subscribe(
        self,
        collection: str,
        on_snapshot: SnapshotHandler,
        on_error: Optional[ErrorHandlerCallback] = None,
    ) -> ListenerRegistration:
        """
        Subscribe to the collection's change channel.

        The current snapshot is delivered before this returns; later
        snapshots are delivered from a background task.
        """
        try:
            client = await self._get_client()
            pubsub = client.pubsub()
            await pubsub.subscribe(self._channel(collection))
        except redis_exceptions.RedisError as e:
            raise map_redis_error(e, f"subscribe {collection}") from e

        try:
            await on_snapshot(await self.get_documents(collection))
        except Exception:
            await self._close_pubsub(pubsub, collection)
            raise

        task = asyncio.create_task(self._listen(pubsub, collection, on_snapshot, on_error))
        self._listener_tasks.add(task)
        task.add_done_callback(self._listener_tasks.discard)
        return _RedisSubscription(task)

    async def _listen(
        self,
        pubsub: Any,
        collection: str,
        on_snapshot: SnapshotHandler,
        on_error: Optional[ErrorHandlerCallback],
    ) -> None:
        try:
            async for message in pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    await on_snapshot(await self.get_documents(collection))
                except Exception as e:
                    # One bad snapshot must not end the subscription
                    logger.error(f"Snapshot handler failed for {collection}: {e}")
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Listener for {collection} stopped: {e}")
            if on_error:
                if isinstance(e, redis_exceptions.RedisError):
                    on_error(map_redis_error(e, f"listen {collection}"))
                else:
                    on_error(e)
        finally:
            await self._close_pubsub(pubsub, collection)

    async def _close_pubsub(self, pubsub: Any, collection: str) -> None:
        try:
            await pubsub.unsubscribe()
            await pubsub.aclose()
        except redis_exceptions.RedisError as e:
            logger.warning(f"Error closing listener for {collection}: {e}")

    async def close(self) -> None:
        """Cancel listeners and close the Redis connection."""
        for task in list(self._listener_tasks):
            task.cancel()
        if self._listener_tasks:
            await asyncio.gather(*self._listener_tasks, return_exceptions=True)
        if self._client:
            await self._client.aclose()
            self._client = None
