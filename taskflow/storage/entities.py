"""Names of the stored entities and their empty values."""

from enum import StrEnum
from typing import Any

from taskflow.core.config import Constants
from taskflow.domain.notification import NotificationPreference
from taskflow.domain.settings import AppSettings


class Entity(StrEnum):
    """Well-known storage entities."""

    TODOS = "todos"
    PROJECTS = "projects"
    NOTES = "notes"
    NOTIFICATIONS = "notifications"
    SETTINGS = "settings"
    NOTIFICATION_PREFERENCES = "notification_preferences"
    METADATA = "metadata"


COLLECTION_ENTITIES = frozenset({Entity.TODOS, Entity.PROJECTS, Entity.NOTES, Entity.NOTIFICATIONS})


def note_versions_entity(note_id: str) -> str:
    """Entity holding the version history of one note."""
    return f"{Constants.NOTE_VERSIONS_PREFIX}{note_id}"


def empty_value_for(entity: str) -> Any:
    """Value returned when an entity has never been written (or cannot be read)."""
    if entity in COLLECTION_ENTITIES or entity.startswith(Constants.NOTE_VERSIONS_PREFIX):
        return []
    if entity == Entity.SETTINGS:
        return AppSettings().to_record()
    if entity == Entity.NOTIFICATION_PREFERENCES:
        return NotificationPreference().to_record()
    return {}
