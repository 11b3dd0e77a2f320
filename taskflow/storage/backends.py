"""Storage backends: the remote storage API and the local key-value store.

Both expose the same async surface so the gateway can treat them as
interchangeable strategies. Backends report failures with
StorageReadFailed / StorageWriteFailed; deciding what to do about them is the
gateway's job.
"""

import json
import logging
from typing import Any, Protocol

import httpx

from taskflow.core.config import Constants, constants
from taskflow.core.errors import NotFoundError, StorageReadFailed, StorageWriteFailed
from taskflow.storage.local_store import LocalKeyValueStore


logger = logging.getLogger(__name__)


class StorageBackend(Protocol):
    """Operations every storage backend provides."""

    name: str

    async def read(self, entity: str, filename: str | None = None) -> Any | None: ...

    async def write(self, entity: str, data: Any, filename: str | None = None) -> None: ...

    async def exists(self, entity: str, filename: str | None = None) -> bool: ...

    async def remove(self, entity: str, filename: str | None = None) -> None: ...

    async def create_backup(self, entity: str, timestamp: str, filename: str | None = None) -> str: ...

    async def restore_from_backup(self, entity: str, backup_id: str) -> None: ...


class RemoteBackend:
    """Talks to the /api/storage/{entity} HTTP surface."""

    name = "server"

    def __init__(
        self,
        base_url: str,
        *,
        client: httpx.AsyncClient | None = None,
        timeout: float = constants.API_TIMEOUT_SECONDS,
    ) -> None:
        """Create a remote backend.

        Args:
            base_url: Storage API root, e.g. http://127.0.0.1:8000/api/storage
            client: Shared client (tests inject one with a mock transport).
                When omitted a short-lived client is opened per request.
            timeout: Request timeout in seconds
        """
        self._base_url = base_url.rstrip("/")
        self._client = client
        self._timeout = timeout

    async def _request(
        self,
        method: str,
        entity: str,
        *,
        operation: str | None = None,
        filename: str | None = None,
        body: Any = None,
    ) -> httpx.Response:
        params: dict[str, str] = {}
        if operation:
            params["operation"] = operation
        if filename:
            params["filename"] = filename

        url = f"{self._base_url}/{entity}"
        kwargs: dict[str, Any] = {"params": params}
        if method == "POST":
            kwargs["json"] = body

        if self._client is not None:
            return await self._client.request(method, url, **kwargs)

        async with httpx.AsyncClient(timeout=self._timeout) as client:
            return await client.request(method, url, **kwargs)

    async def read(self, entity: str, filename: str | None = None) -> Any | None:
        """Fetch a document; None when the server has no data for it."""
        try:
            response = await self._request("GET", entity, operation="read", filename=filename)
        except httpx.HTTPError as e:
            raise StorageReadFailed(entity, str(e)) from e

        if response.status_code == Constants.HTTP_NOT_FOUND:
            return None
        if not response.is_success:
            raise StorageReadFailed(entity, f"server returned status {response.status_code}")

        try:
            return response.json()
        except ValueError as e:
            raise StorageReadFailed(entity, "server returned invalid JSON") from e

    async def write(self, entity: str, data: Any, filename: str | None = None) -> None:
        try:
            response = await self._request("POST", entity, operation="write", filename=filename, body=data)
        except httpx.HTTPError as e:
            raise StorageWriteFailed(entity, str(e)) from e

        if not response.is_success:
            raise StorageWriteFailed(entity, f"server returned status {response.status_code}")

    async def exists(self, entity: str, filename: str | None = None) -> bool:
        try:
            response = await self._request("GET", entity, operation="exists", filename=filename)
        except httpx.HTTPError as e:
            raise StorageReadFailed(entity, str(e)) from e

        if not response.is_success:
            raise StorageReadFailed(entity, f"server returned status {response.status_code}")
        return bool(response.json().get("exists", False))

    async def remove(self, entity: str, filename: str | None = None) -> None:
        try:
            response = await self._request("DELETE", entity, filename=filename)
        except httpx.HTTPError as e:
            raise StorageWriteFailed(entity, str(e)) from e

        if not response.is_success:
            raise StorageWriteFailed(entity, f"server returned status {response.status_code}")

    async def create_backup(self, entity: str, timestamp: str, filename: str | None = None) -> str:
        try:
            response = await self._request(
                "POST", entity, operation="backup", filename=filename, body={"timestamp": timestamp}
            )
        except httpx.HTTPError as e:
            raise StorageWriteFailed(entity, str(e)) from e

        if not response.is_success:
            raise StorageWriteFailed(entity, f"server returned status {response.status_code}")
        return str(response.json()["backupId"])

    async def restore_from_backup(self, entity: str, backup_id: str) -> None:
        try:
            response = await self._request("POST", entity, operation="restore", body={"backupId": backup_id})
        except httpx.HTTPError as e:
            raise StorageWriteFailed(entity, str(e)) from e

        if not response.is_success:
            raise StorageWriteFailed(entity, f"server returned status {response.status_code}")


class LocalBackend:
    """Keeps each entity as a JSON string under ``<prefix>_<entity>[_<filename>]``."""

    name = "local"

    def __init__(self, store: LocalKeyValueStore, *, prefix: str = "taskflow_data") -> None:
        self._store = store
        self._prefix = prefix

    @property
    def store(self) -> LocalKeyValueStore:
        return self._store

    def storage_key(self, entity: str, filename: str | None = None) -> str:
        """Key under which an entity is stored."""
        if entity == Constants.METADATA_ENTITY:
            return f"{self._prefix}_metadata"
        key = f"{self._prefix}_{entity}"
        return f"{key}_{filename}" if filename else key

    async def read(self, entity: str, filename: str | None = None) -> Any | None:
        raw = self._store.get_item(self.storage_key(entity, filename))
        if raw is None:
            return None

        try:
            return json.loads(raw)
        except json.JSONDecodeError as e:
            raise StorageReadFailed(entity, "stored value is not valid JSON") from e

    async def write(self, entity: str, data: Any, filename: str | None = None) -> None:
        """Overwrite an entity, keeping the previous value under ``<key>_backup``."""
        key = self.storage_key(entity, filename)
        try:
            payload = json.dumps(data)
            existing = self._store.get_item(key)
            if existing is not None:
                self._store.set_item(f"{key}_backup", existing)
            self._store.set_item(key, payload)
        except (OSError, TypeError, ValueError) as e:
            raise StorageWriteFailed(entity, str(e)) from e

        stored = self._store.get_item(key)
        if stored is None or len(stored) != len(payload):
            logger.error("local_write_verification_failed", extra={"entity": entity, "key": key})

    async def exists(self, entity: str, filename: str | None = None) -> bool:
        return self._store.get_item(self.storage_key(entity, filename)) is not None

    async def remove(self, entity: str, filename: str | None = None) -> None:
        key = self.storage_key(entity, filename)
        try:
            self._store.remove_item(key, f"{key}_backup")
        except OSError as e:
            raise StorageWriteFailed(entity, str(e)) from e

    async def create_backup(self, entity: str, timestamp: str, filename: str | None = None) -> str:
        """Copy the current value to ``<key>_<timestamp>_backup`` and return that key."""
        key = self.storage_key(entity, filename)
        data = self._store.get_item(key)
        if data is None:
            raise StorageWriteFailed(entity, "no data to back up")

        backup_key = f"{key}_{timestamp}_backup"
        try:
            self._store.set_item(backup_key, data)
        except OSError as e:
            raise StorageWriteFailed(entity, str(e)) from e
        return backup_key

    async def restore_from_backup(self, entity: str, backup_id: str) -> None:
        """Copy a backup of this entity over its current value.

        Raises:
            NotFoundError: If backup_id is not an existing backup key of the entity
        """
        if not (backup_id.startswith(f"{self.storage_key(entity)}_") and backup_id.endswith("_backup")):
            logger.warning("foreign_backup_id_rejected", extra={"entity": entity, "backup_id": backup_id})
            raise NotFoundError("backup", backup_id)

        data = self._store.get_item(backup_id)
        if data is None:
            raise NotFoundError("backup", backup_id)

        try:
            self._store.set_item(self.storage_key(entity), data)
        except OSError as e:
            raise StorageWriteFailed(entity, str(e)) from e
