"""Storage API router: whole-document JSON storage per entity."""

import json
import logging
from functools import lru_cache
from typing import Any

from fastapi import APIRouter, Depends, Request
from fastapi.responses import JSONResponse

from taskflow.core.config import Constants, settings
from taskflow.core.errors import StorageWriteFailed, classify_error_with_response
from taskflow.storage.file_store import JsonFileStore, validate_entity_name, validate_filename


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/storage", tags=["storage"])


@lru_cache
def get_file_store() -> JsonFileStore:
    """File store rooted at the configured data directory."""
    return JsonFileStore(settings.data_dir)


def _error(message: str, status_code: int, **extra: Any) -> JSONResponse:
    return JSONResponse(content={"error": message, **extra}, status_code=status_code)


def _storage_error(message: str, exc: StorageWriteFailed) -> JSONResponse:
    classified = classify_error_with_response(exc)
    logger.error("storage_operation_failed", extra={"error": str(exc), "code": classified.code})
    return _error(message, Constants.HTTP_SERVER_ERROR, code=classified.code)


def _validate_location(entity: str, filename: str | None) -> JSONResponse | None:
    """Return a 400 response for names that could escape the data directory."""
    try:
        validate_entity_name(entity)
    except ValueError:
        logger.warning("invalid_entity_name", extra={"entity": entity})
        return _error("Invalid entity name", Constants.HTTP_BAD_REQUEST)
    try:
        validate_filename(filename)
    except ValueError:
        logger.warning("invalid_filename", extra={"entity": entity, "file_name": filename})
        return _error("Invalid filename", Constants.HTTP_BAD_REQUEST)
    return None


async def _json_body(request: Request) -> Any:
    try:
        return await request.json()
    except (json.JSONDecodeError, UnicodeDecodeError) as e:
        raise ValueError("Request body must be valid JSON") from e


@router.get("/{entity}")
async def read_entity(
    entity: str,
    filename: str | None = None,
    operation: str = "read",
    store: JsonFileStore = Depends(get_file_store),
) -> JSONResponse:
    """Read a document, or check whether it exists with operation=exists."""
    invalid = _validate_location(entity, filename)
    if invalid is not None:
        return invalid

    if operation == "exists":
        return JSONResponse(content={"exists": store.exists(entity, filename)})
    if operation != "read":
        return _error(f"Unsupported operation: {operation}", Constants.HTTP_BAD_REQUEST)

    data = store.read(entity, filename)
    if data is None:
        return _error(f"No data found for {entity}", Constants.HTTP_NOT_FOUND)
    return JSONResponse(content=data)


@router.post("/{entity}")
async def write_entity(
    entity: str,
    request: Request,
    filename: str | None = None,
    operation: str = "write",
    store: JsonFileStore = Depends(get_file_store),
) -> JSONResponse:
    """Write a document (default), create a backup, or restore from one."""
    invalid = _validate_location(entity, filename)
    if invalid is not None:
        return invalid

    try:
        body = await _json_body(request)
    except ValueError as e:
        return _error(str(e), Constants.HTTP_BAD_REQUEST)

    if operation == "backup":
        timestamp = body.get("timestamp") if isinstance(body, dict) else None
        if not isinstance(timestamp, str):
            return _error("Backup requires a timestamp", Constants.HTTP_BAD_REQUEST)
        try:
            backup_id = store.create_backup(entity, timestamp, filename)
        except ValueError as e:
            return _error(str(e), Constants.HTTP_BAD_REQUEST)
        except StorageWriteFailed as e:
            return _storage_error(f"Failed to create backup for {entity}", e)
        return JSONResponse(content={"backupId": backup_id})

    if operation == "restore":
        backup_id = body.get("backupId") if isinstance(body, dict) else None
        if not isinstance(backup_id, str):
            return _error("Restore requires a backupId", Constants.HTTP_BAD_REQUEST)
        try:
            store.restore_from_backup(entity, backup_id, filename)
        except ValueError as e:
            return _error(str(e), Constants.HTTP_BAD_REQUEST)
        except StorageWriteFailed as e:
            return _storage_error(f"Failed to restore backup for {entity}", e)
        return JSONResponse(content={"success": True})

    if operation != "write":
        return _error(f"Unsupported operation: {operation}", Constants.HTTP_BAD_REQUEST)

    try:
        store.write(entity, body, filename)
    except StorageWriteFailed as e:
        return _storage_error(f"Failed to write data for {entity}", e)
    return JSONResponse(content={"success": True})


@router.delete("/{entity}")
async def delete_entity(
    entity: str,
    filename: str | None = None,
    store: JsonFileStore = Depends(get_file_store),
) -> JSONResponse:
    """Delete a document. Deleting a missing document succeeds with deleted=false."""
    invalid = _validate_location(entity, filename)
    if invalid is not None:
        return invalid

    try:
        deleted = store.remove(entity, filename)
    except StorageWriteFailed as e:
        return _storage_error(f"Failed to delete data for {entity}", e)
    return JSONResponse(content={"success": True, "deleted": deleted})
