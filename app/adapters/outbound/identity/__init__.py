"""Identity provider adapters."""

from app.adapters.outbound.identity.in_memory_identity_provider import InMemoryIdentityProvider

__all__ = ["InMemoryIdentityProvider"]
