"""Local key-value store standing in for browser local storage."""

import fnmatch
import json
import logging
import threading
import time
from pathlib import Path
from typing import Any


logger = logging.getLogger(__name__)


class LocalKeyValueStore:
    """Thread-safe string key-value store, optionally persisted to one JSON file."""

    def __init__(self, path: Path | None = None) -> None:
        """Initialize the store, loading existing entries from path if given."""
        self._path = Path(path) if path else None
        self._data: dict[str, str] = {}
        self._lock = threading.Lock()

        # Health tracking
        self._last_successful_operation: float | None = None
        self._total_operations = 0

        if self._path and self._path.exists():
            self._load(self._path)

    def _load(self, path: Path) -> None:
        try:
            raw = json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("local_store_load_failed", extra={"path": str(self._path), "error": str(e)})
            return

        if isinstance(raw, dict):
            self._data = {str(key): str(value) for key, value in raw.items()}
            logger.info("Loaded local store", extra={"path": str(self._path), "entries": len(self._data)})

    def _commit(self, data: dict[str, str]) -> None:
        """Persist a full snapshot, then make it the live map. Caller holds the lock."""
        if self._path is not None:
            self._path.parent.mkdir(parents=True, exist_ok=True)
            self._path.write_text(json.dumps(data), encoding="utf-8")
        self._data = data

    def _record_success(self) -> None:
        self._last_successful_operation = time.time()
        self._total_operations += 1

    def get_health_status(self) -> dict[str, Any]:
        """Get store health status."""
        return {
            "persistent": self._path is not None,
            "last_successful_operation": self._last_successful_operation,
            "total_operations": self._total_operations,
            "entries": len(self._data),
        }

    def get_item(self, key: str) -> str | None:
        """Return the stored string, or None if the key is absent."""
        with self._lock:
            value = self._data.get(key)
            self._record_success()
            return value

    def set_item(self, key: str, value: str) -> None:
        """Store a string under key.

        Raises:
            OSError: If the backing file cannot be written
        """
        with self._lock:
            self._commit({**self._data, key: value})
            self._record_success()
            logger.debug("Stored key: %s (%d chars)", key, len(value))

    def remove_item(self, *keys: str) -> None:
        """Remove one or more keys; unknown keys are ignored."""
        if not keys:
            return

        with self._lock:
            self._commit({k: v for k, v in self._data.items() if k not in keys})
            self._record_success()
            logger.debug("Removed %d key(s)", len(keys))

    def keys(self, pattern: str = "*") -> list[str]:
        """Find keys matching a glob pattern (e.g. 'taskflow_data_todos*')."""
        with self._lock:
            return [key for key in self._data if fnmatch.fnmatch(key, pattern)]

    def clear(self) -> None:
        """Remove every key."""
        with self._lock:
            self._commit({})
            self._record_success()
