"""Load/save helpers for entities stored as one JSON array of records."""

import logging
from typing import TypeVar

import pydantic

from taskflow.core.errors import NotFoundError
from taskflow.domain.base import DomainModel
from taskflow.storage.gateway import StorageGateway


logger = logging.getLogger(__name__)

RecordT = TypeVar("RecordT", bound=DomainModel)


async def load_collection(gateway: StorageGateway, entity: str, model_cls: type[RecordT]) -> list[RecordT]:
    """Read a collection, skipping records that no longer validate."""
    raw = await gateway.read(entity)
    if not isinstance(raw, list):
        logger.warning("collection_not_a_list", extra={"entity": entity, "type": type(raw).__name__})
        return []

    records: list[RecordT] = []
    for item in raw:
        try:
            records.append(model_cls.model_validate(item))
        except pydantic.ValidationError as e:
            record_id = item.get("id") if isinstance(item, dict) else None
            logger.warning(
                "skipping_invalid_record",
                extra={"entity": entity, "record_id": record_id, "error": str(e)},
            )
    return records


async def save_collection(gateway: StorageGateway, entity: str, records: list[RecordT]) -> None:
    """Rewrite the whole collection."""
    await gateway.write(entity, [record.to_record() for record in records])


def index_of(records: list[RecordT], record_id: str, label: str) -> int:
    """Position of the record with the given id.

    Raises:
        NotFoundError: If no record has that id
    """
    for index, record in enumerate(records):
        if getattr(record, "id", None) == record_id:
            return index
    raise NotFoundError(label, record_id)


def find(records: list[RecordT], record_id: str) -> RecordT | None:
    """Record with the given id, or None."""
    return next((record for record in records if getattr(record, "id", None) == record_id), None)
