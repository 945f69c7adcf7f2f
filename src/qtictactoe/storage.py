"""Persistence of value tables through a key-value backend.

The payload is the JSON mapping ``{state_key: [9 numbers]}`` stored under a
single key, the same shape the browser version kept in localStorage.
"""

import json
import logging
import threading
from pathlib import Path
from typing import Dict, Optional, Protocol

from qtictactoe.exceptions import StorageError
from qtictactoe.value_table import ValueTable

logger = logging.getLogger(__name__)

DEFAULT_KEY = "tictactoe_q"


class KeyValueBackend(Protocol):
    """Minimal get/set contract of the storage medium."""

    def get(self, key: str) -> Optional[str]:
        """Return the stored string, or None if the key is absent."""
        ...

    def set(self, key: str, value: str) -> None:
        ...

    def delete(self, key: str) -> None:
        """Remove the key; absent keys are ignored."""
        ...


class MemoryKeyValueBackend:
    """In-process backend, mainly for tests and throwaway sessions."""

    def __init__(self, initial: Optional[Dict[str, str]] = None) -> None:
        self.data: Dict[str, str] = dict(initial or {})

    def get(self, key: str) -> Optional[str]:
        return self.data.get(key)

    def set(self, key: str, value: str) -> None:
        self.data[key] = value

    def delete(self, key: str) -> None:
        self.data.pop(key, None)


class FileKeyValueBackend:
    """
    One file per key inside a directory.

    Writes go to a temporary file first and are renamed into place, so a
    crash mid-write never leaves a truncated payload behind.
    """

    def __init__(self, directory: Path) -> None:
        """
        Initialize the backend.

        Args:
            directory: Directory holding the key files (created on first write)
        """
        self.directory = Path(directory)
        self._lock = threading.Lock()

    def _path_for(self, key: str) -> Path:
        safe_key = key.replace("/", "_").replace("\\", "_")
        return self.directory / f"{safe_key}.json"

    def get(self, key: str) -> Optional[str]:
        path = self._path_for(key)
        with self._lock:
            if not path.exists():
                return None
            try:
                return path.read_text(encoding="utf-8")
            except (OSError, UnicodeDecodeError) as e:
                logger.warning("Could not read %s: %s", path, e)
                return None

    def set(self, key: str, value: str) -> None:
        path = self._path_for(key)
        with self._lock:
            try:
                self.directory.mkdir(parents=True, exist_ok=True)
                temp_file = path.with_suffix(".tmp")
                temp_file.write_text(value, encoding="utf-8")
                temp_file.replace(path)
            except OSError as e:
                raise StorageError(f"Failed to write {path}: {e}") from e

    def delete(self, key: str) -> None:
        path = self._path_for(key)
        with self._lock:
            try:
                path.unlink(missing_ok=True)
            except OSError as e:
                raise StorageError(f"Failed to delete {path}: {e}") from e


class ValueTableStore:
    """Load, save and clear one value table stored under ``key``."""

    def __init__(self, backend: KeyValueBackend, key: str = DEFAULT_KEY) -> None:
        self.backend = backend
        self.key = key

    def load(self) -> ValueTable:
        """
        Load the persisted table.

        Returns:
            The stored table, or an empty one if nothing is stored or the
            payload cannot be parsed
        """
        raw = self.backend.get(self.key)
        if raw is None:
            return ValueTable()

        try:
            payload = json.loads(raw)
            if not isinstance(payload, dict):
                raise ValueError(f"expected a JSON object, got {type(payload).__name__}")
            table = ValueTable.from_dict(payload)
        except (ValueError, RecursionError) as e:
            # json.JSONDecodeError is a ValueError too
            logger.warning("Ignoring malformed value table under %r: %s", self.key, e)
            return ValueTable()

        logger.debug("Loaded %d states from %r", len(table), self.key)
        return table

    def save(self, table: ValueTable) -> None:
        """Persist the table, replacing whatever was stored."""
        self.backend.set(self.key, json.dumps(table.to_dict(), separators=(",", ":")))
        logger.debug("Saved %d states to %r", len(table), self.key)

    def clear(self) -> None:
        """Remove the persisted table."""
        self.backend.delete(self.key)
        logger.debug("Cleared %r", self.key)
