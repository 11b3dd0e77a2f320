"""Server-side JSON file store: one directory per entity under a data root."""

import json
import logging
import re
import shutil
from pathlib import Path
from typing import Any

from taskflow.core.config import Constants
from taskflow.core.errors import StorageWriteFailed


logger = logging.getLogger(__name__)

_NAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+$")
_FILENAME_PATTERN = re.compile(r"^[a-zA-Z0-9_-]+(\.json)?$")
_TIMESTAMP_PATTERN = re.compile(r"^[a-zA-Z0-9_.-]+$")
_BACKUP_ID_PATTERN = re.compile(r"^backup_[a-zA-Z0-9_.-]+\.json$")


def validate_entity_name(entity: str) -> None:
    """Validate that an entity name only contains [a-zA-Z0-9_-]."""
    if not _NAME_PATTERN.match(entity):
        msg = f"Invalid entity name: {entity}"
        raise ValueError(msg)


def validate_filename(filename: str | None) -> None:
    """Validate an optional per-entity filename."""
    if filename is not None and not _FILENAME_PATTERN.match(filename):
        msg = f"Invalid filename: {filename}"
        raise ValueError(msg)


class JsonFileStore:
    """Reads and writes whole JSON documents under ``data_dir/<entity>/``."""

    def __init__(self, data_dir: Path) -> None:
        self._data_dir = Path(data_dir)
        self._data_dir.mkdir(parents=True, exist_ok=True)

    @property
    def data_dir(self) -> Path:
        return self._data_dir

    def _entity_dir(self, entity: str) -> Path:
        validate_entity_name(entity)
        path = self._data_dir / entity
        path.mkdir(parents=True, exist_ok=True)
        return path

    def file_path(self, entity: str, filename: str | None = None) -> Path:
        """Resolve the document path, defaulting to data.json."""
        validate_filename(filename)
        if not filename:
            name = Constants.DEFAULT_DATA_FILENAME
        elif filename.endswith(".json"):
            name = filename
        else:
            name = f"{filename}.json"
        return self._entity_dir(entity) / name

    def exists(self, entity: str, filename: str | None = None) -> bool:
        return self.file_path(entity, filename).exists()

    def read(self, entity: str, filename: str | None = None) -> Any | None:
        """Return the stored document, or None when missing or unreadable."""
        path = self.file_path(entity, filename)
        if not path.exists():
            return None

        try:
            return json.loads(path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.error("file_read_failed", extra={"entity": entity, "path": str(path), "error": str(e)})
            return None

    def write(self, entity: str, data: Any, filename: str | None = None) -> None:
        """Replace the whole document."""
        path = self.file_path(entity, filename)
        try:
            path.write_text(json.dumps(data, indent=2), encoding="utf-8")
        except (OSError, TypeError, ValueError) as e:
            logger.error("file_write_failed", extra={"entity": entity, "path": str(path), "error": str(e)})
            raise StorageWriteFailed(entity, str(e)) from e

        logger.info("Wrote document", extra={"entity": entity, "path": str(path)})

    def remove(self, entity: str, filename: str | None = None) -> bool:
        """Delete the document. Returns False when there was nothing to delete."""
        path = self.file_path(entity, filename)
        if not path.exists():
            return False

        try:
            path.unlink()
        except OSError as e:
            logger.error("file_remove_failed", extra={"entity": entity, "path": str(path), "error": str(e)})
            raise StorageWriteFailed(entity, str(e)) from e

        logger.info("Removed document", extra={"entity": entity, "path": str(path)})
        return True

    def create_backup(self, entity: str, timestamp: str, filename: str | None = None) -> str:
        """Copy the document to backup_<timestamp>.json and return the backup id."""
        if not _TIMESTAMP_PATTERN.match(timestamp):
            msg = f"Invalid backup timestamp: {timestamp}"
            raise ValueError(msg)

        source = self.file_path(entity, filename)
        if not source.exists():
            raise StorageWriteFailed(entity, "no data to back up")

        backup_id = f"backup_{timestamp}.json"
        try:
            shutil.copyfile(source, self._entity_dir(entity) / backup_id)
        except OSError as e:
            logger.error("backup_failed", extra={"entity": entity, "error": str(e)})
            raise StorageWriteFailed(entity, str(e)) from e

        logger.info("Created backup", extra={"entity": entity, "backup_id": backup_id})
        return backup_id

    def restore_from_backup(self, entity: str, backup_id: str, filename: str | None = None) -> None:
        """Copy a backup over the live document."""
        if not _BACKUP_ID_PATTERN.match(backup_id):
            msg = f"Invalid backup id: {backup_id}"
            raise ValueError(msg)

        backup_path = self._entity_dir(entity) / backup_id
        if not backup_path.exists():
            raise StorageWriteFailed(entity, f"backup {backup_id} does not exist")

        try:
            shutil.copyfile(backup_path, self.file_path(entity, filename))
        except OSError as e:
            logger.error("restore_failed", extra={"entity": entity, "backup_id": backup_id, "error": str(e)})
            raise StorageWriteFailed(entity, str(e)) from e

        logger.info("Restored backup", extra={"entity": entity, "backup_id": backup_id})
