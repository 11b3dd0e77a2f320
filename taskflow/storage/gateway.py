"""Storage gateway: picks a backend per call and applies the fallback policy."""

import logging
from collections.abc import Callable
from dataclasses import dataclass
from typing import Any

from taskflow.core.config import Constants
from taskflow.core.errors import StorageReadFailed, StorageWriteFailed
from taskflow.core.identifiers import now_iso
from taskflow.core.logging import log_with_entity_context
from taskflow.storage.backends import LocalBackend, StorageBackend
from taskflow.storage.entities import empty_value_for


logger = logging.getLogger(__name__)

# (title, description) pair handed to UI-level listeners, e.g. a toast
WarningListener = Callable[[str, str], None]


@dataclass
class StoragePolicy:
    """Where the gateway reads and writes.

    use_server_storage: try the remote backend first.
    fallback_to_local: when the remote backend fails, repeat the operation once
        against the local backend instead of giving up.
    """

    use_server_storage: bool = True
    fallback_to_local: bool = True


class StorageGateway:
    """Read/write/backup facade over a remote and a local backend.

    Reads never raise: a missing or unreadable entity yields its empty value.
    Writes raise StorageWriteFailed only when no backend accepted the data.
    """

    def __init__(
        self,
        *,
        local: LocalBackend,
        remote: StorageBackend | None = None,
        policy: StoragePolicy | None = None,
    ) -> None:
        self._local = local
        self._remote = remote
        self._policy = policy or StoragePolicy()
        self._warning_listeners: list[WarningListener] = []

    @property
    def policy(self) -> StoragePolicy:
        return self._policy

    @property
    def local(self) -> LocalBackend:
        return self._local

    def _active_remote(self) -> StorageBackend | None:
        return self._remote if self._policy.use_server_storage else None

    def set_use_server_storage(self, use_server: bool) -> None:
        """Toggle between server and local storage."""
        self._policy.use_server_storage = use_server
        logger.info("Storage mode set to: %s storage", "server" if use_server else "local")

    def add_warning_listener(self, listener: WarningListener) -> None:
        """Register a callback for non-fatal storage warnings."""
        self._warning_listeners.append(listener)

    def _emit_warning(self, title: str, description: str) -> None:
        for listener in self._warning_listeners:
            try:
                listener(title, description)
            except Exception as e:
                logger.warning("warning_listener_failed", extra={"error": str(e)})

    async def read(self, entity: str, filename: str | None = None) -> Any:
        """Read an entity, returning its empty value when nothing usable is stored."""
        remote = self._active_remote()
        if remote is not None:
            try:
                data = await remote.read(entity, filename)
            except StorageReadFailed as e:
                log_with_entity_context(logger, "warning", "server_read_failed", entity=entity, error=str(e))
                if not self._policy.fallback_to_local:
                    return empty_value_for(entity)
                logger.info("Falling back to local storage for %s", entity)
            else:
                if data is None:
                    logger.debug("No data found for %s on server, using empty value", entity)
                    return empty_value_for(entity)
                return data

        try:
            data = await self._local.read(entity, filename)
        except StorageReadFailed as e:
            log_with_entity_context(logger, "error", "local_read_failed", entity=entity, error=str(e))
            return empty_value_for(entity)

        if data is None:
            logger.debug("No data found for %s in local storage, using empty value", entity)
            return empty_value_for(entity)
        return data

    async def write(self, entity: str, data: Any, filename: str | None = None) -> None:
        """Replace an entity's stored value.

        Raises:
            StorageWriteFailed: If the server write failed without fallback,
                or the local write failed
        """
        written = False
        remote = self._active_remote()
        if remote is not None:
            try:
                await remote.write(entity, data, filename)
                written = True
            except StorageWriteFailed as e:
                log_with_entity_context(logger, "warning", "server_write_failed", entity=entity, error=str(e))
                if not self._policy.fallback_to_local:
                    self._emit_warning("Storage Error", f"Could not save {entity} to server.")
                    raise
                if entity != Constants.METADATA_ENTITY:
                    self._emit_warning("Storage Warning", "Could not save to server. Data saved locally only.")
                logger.info("Falling back to local storage for %s", entity)

        if not written:
            try:
                await self._local.write(entity, data, filename)
            except StorageWriteFailed as e:
                log_with_entity_context(logger, "error", "local_write_failed", entity=entity, error=str(e))
                raise

        if entity != Constants.METADATA_ENTITY:
            await self._update_metadata()

    async def _update_metadata(self) -> None:
        """Record the last sync time; failures here never fail the caller's write."""
        metadata = await self.read(Constants.METADATA_ENTITY)
        if not isinstance(metadata, dict):
            metadata = {}
        metadata["lastSync"] = now_iso()
        try:
            await self.write(Constants.METADATA_ENTITY, metadata)
        except StorageWriteFailed as e:
            logger.error("metadata_update_failed", extra={"error": str(e)})

    async def exists(self, entity: str, filename: str | None = None) -> bool:
        """Check whether an entity has stored data."""
        remote = self._active_remote()
        if remote is not None:
            try:
                return await remote.exists(entity, filename)
            except StorageReadFailed as e:
                log_with_entity_context(logger, "warning", "server_exists_failed", entity=entity, error=str(e))
                if not self._policy.fallback_to_local:
                    return False

        return await self._local.exists(entity, filename)

    async def remove(self, entity: str, filename: str | None = None) -> None:
        """Delete an entity's stored value entirely."""
        remote = self._active_remote()
        if remote is not None:
            try:
                await remote.remove(entity, filename)
                return
            except StorageWriteFailed as e:
                log_with_entity_context(logger, "warning", "server_remove_failed", entity=entity, error=str(e))
                if not self._policy.fallback_to_local:
                    raise

        await self._local.remove(entity, filename)

    async def create_backup(self, entity: str, filename: str | None = None) -> str:
        """Snapshot an entity and return the backup id.

        Raises:
            StorageWriteFailed: If there is nothing to back up or no backend accepted the backup
        """
        timestamp = now_iso().replace(":", "-")

        remote = self._active_remote()
        if remote is not None:
            try:
                backup_id = await remote.create_backup(entity, timestamp, filename)
                logger.info("Created server backup", extra={"entity": entity, "backup_id": backup_id})
                return backup_id
            except StorageWriteFailed as e:
                log_with_entity_context(logger, "warning", "server_backup_failed", entity=entity, error=str(e))
                if not self._policy.fallback_to_local:
                    raise

        backup_id = await self._local.create_backup(entity, timestamp, filename)
        logger.info("Created local backup", extra={"entity": entity, "backup_id": backup_id})
        return backup_id

    async def restore_from_backup(self, entity: str, backup_id: str) -> None:
        """Replace an entity with a previously created backup.

        Raises:
            NotFoundError: If the local backup does not exist
            StorageWriteFailed: If the server restore failed without fallback
        """
        remote = self._active_remote()
        if remote is not None:
            try:
                await remote.restore_from_backup(entity, backup_id)
                logger.info("Restored %s from server backup", entity)
                return
            except StorageWriteFailed as e:
                log_with_entity_context(logger, "warning", "server_restore_failed", entity=entity, error=str(e))
                if not self._policy.fallback_to_local:
                    raise

        await self._local.restore_from_backup(entity, backup_id)
        logger.info("Restored %s from local backup", entity)
