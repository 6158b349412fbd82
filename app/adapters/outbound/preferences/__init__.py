"""Preference store adapters."""

from app.adapters.outbound.preferences.preferences_stores import (
    InMemoryPreferencesStore,
    JsonFilePreferencesStore,
)

__all__ = [
    "InMemoryPreferencesStore",
    "JsonFilePreferencesStore",
]
