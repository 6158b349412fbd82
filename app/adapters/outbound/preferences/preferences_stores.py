"""Preference store adapters."""

import json
from pathlib import Path
from typing import Any, Optional

from app.application.errors import DataError
from app.application.ports.preferences_store import PreferencesStore
from app.infrastructure.logging.logger import logger


class InMemoryPreferencesStore(PreferencesStore):
    """Preferences kept in a dict."""

    def __init__(self, initial: Optional[dict[str, Any]] = None) -> None:
        self._values: dict[str, Any] = dict(initial or {})

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value

    def remove(self, key: str) -> None:
        self._values.pop(key, None)

    def keys(self) -> list[str]:
        return list(self._values)


class JsonFilePreferencesStore(PreferencesStore):
    """Preferences persisted as one JSON object on disk.

    The file is rewritten on every change.
    """

    def __init__(self, path: str) -> None:
        """
        Initialize store, loading existing values.

        Args:
            path: JSON file location (created on first write)
        """
        self._path = Path(path)
        self._values: dict[str, Any] = self._read()

    def _read(self) -> dict[str, Any]:
        if not self._path.exists():
            return {}
        try:
            data = json.loads(self._path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning(f"Ignoring unreadable preferences file {self._path}: {e}")
            return {}
        return data if isinstance(data, dict) else {}

    def _write(self) -> None:
        try:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(self._values, sort_keys=True), encoding="utf-8")
        except OSError as e:
            raise DataError(f"Failed to write preferences to {self._path}", cause=e) from e

    def get(self, key: str, default: Optional[Any] = None) -> Any:
        return self._values.get(key, default)

    def set(self, key: str, value: Any) -> None:
        self._values[key] = value
        self._write()

    def remove(self, key: str) -> None:
        if self._values.pop(key, None) is not None:
            self._write()

    def keys(self) -> list[str]:
        return list(self._values)
