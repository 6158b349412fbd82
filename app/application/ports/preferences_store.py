"""User preferences port."""

from abc import ABC, abstractmethod
from typing import Any, Callable, Optional

GUEST_MODE_KEY = "isGuestMode"
APPOINTMENTS_CLEARED_KEY = "appointments_cleared"
SYNC_INTERVAL_KEY = "sync_interval"
AUTO_SYNC_ENABLED_KEY = "auto_sync_enabled"
KEYCHAIN_SAVED_PREFIX = "keychain_saved_"
USER_DECLINED_SAVE_PREFIX = "user_declined_save_"
SYSTEM_LOCALE_KEYS = frozenset({"AppleLanguages", "AppleLocale", "AppleKeyboards", "NSLanguages"})


def is_preserved_on_clear(key: str) -> bool:
    """
    Whether a preference survives the local wipe during sign-out.

    System locale keys and the rep's keychain prompt choices are kept.

    Args:
        key: Preference key

    Returns:
        True if the key must be preserved
    """
    return (
        key in SYSTEM_LOCALE_KEYS
        or key.startswith(KEYCHAIN_SAVED_PREFIX)
        or key.startswith(USER_DECLINED_SAVE_PREFIX)
    )


class PreferencesStore(ABC):
    """Port interface for small persisted user preference flags."""

    @abstractmethod
    def get(self, key: str, default: Optional[Any] = None) -> Any:
        """Get a preference value, or default if unset."""
        pass

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Set a preference value."""
        pass

    @abstractmethod
    def remove(self, key: str) -> None:
        """Remove a preference if present."""
        pass

    @abstractmethod
    def keys(self) -> list[str]:
        """List all stored keys."""
        pass

    def get_bool(self, key: str) -> bool:
        return bool(self.get(key, False))

    def clear_except(self, keep: Callable[[str], bool]) -> int:
        """
        Remove every key for which keep returns False.

        Args:
            keep: Predicate selecting keys to preserve

        Returns:
            Number of removed keys
        """
        removed = 0
        for key in self.keys():
            if not keep(key):
                self.remove(key)
                removed += 1
        return removed
