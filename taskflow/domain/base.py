"""Shared pydantic base for persisted records.

Records are stored as camelCase JSON so files stay readable by any client;
Python code works with the snake_case attributes.
"""

from enum import StrEnum
from typing import Any, TypeVar

import pydantic
from dateutil import parser as date_parser
from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from taskflow.core.errors import validation_error_from_pydantic


ModelT = TypeVar("ModelT", bound=BaseModel)


class Priority(StrEnum):
    """Priority shared by todos, risks and notifications."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"


class DomainModel(BaseModel):
    """Base model with camelCase aliases on the wire."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)

    def to_record(self) -> dict[str, Any]:
        """Serialize to the persisted JSON shape."""
        return self.model_dump(mode="json", by_alias=True, exclude_none=True)


class ImageAttachment(DomainModel):
    """Image embedded in a todo or note."""

    id: str
    url: str
    thumbnail: str | None = None
    name: str
    type: str
    size: int = 0
    created_at: str


class ImageCreate(DomainModel):
    """Payload for attaching an image."""

    url: str
    thumbnail: str | None = None
    name: str
    type: str
    size: int = 0


def check_date(value: str | None, message: str) -> str | None:
    """Ensure an optional date string parses; return it unchanged."""
    if value is None or value == "":
        return None
    try:
        date_parser.parse(value)
    except (ValueError, OverflowError) as e:
        raise ValueError(message) from e
    return value


def check_list(value: Any, message: str) -> Any:
    """Reject non-list values for array-typed fields."""
    if value is not None and not isinstance(value, list):
        raise ValueError(message)
    return value


def parse_input(model_cls: type[ModelT], data: ModelT | dict[str, Any]) -> ModelT:
    """Accept either a model instance or a raw mapping, raising our ValidationError."""
    if isinstance(data, model_cls):
        return data
    try:
        return model_cls.model_validate(data)
    except pydantic.ValidationError as e:
        raise validation_error_from_pydantic(e) from e


def build_model(model_cls: type[ModelT], record: dict[str, Any]) -> ModelT:
    """Validate a full record, raising our ValidationError."""
    try:
        return model_cls.model_validate(record)
    except pydantic.ValidationError as e:
        raise validation_error_from_pydantic(e) from e


def changes_of(data: BaseModel) -> dict[str, Any]:
    """Fields the caller explicitly set on a partial update."""
    return data.model_dump(exclude_unset=True)
