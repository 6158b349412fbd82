"""Remote store adapters."""

from app.adapters.outbound.remote_store.in_memory_remote_store import InMemoryRemoteStore
from app.adapters.outbound.remote_store.redis_remote_store import RedisRemoteStore

__all__ = [
    "InMemoryRemoteStore",
    "RedisRemoteStore",
]
