"""Notification domain models and preferences."""

from enum import StrEnum
from typing import Any

from pydantic import Field, field_validator

from taskflow.domain.base import DomainModel, Priority


MINUTES_PER_HOUR = 60
HOURS_PER_DAY = 24


def minute_of_day(value: str) -> int:
    """Parse a 24h HH:MM clock time into minutes since midnight.

    Raises:
        ValueError: If the value is not a valid HH:MM time
    """
    hours, sep, minutes = value.partition(":")
    if not sep or not (hours + minutes).isdecimal():
        raise ValueError(f"Invalid time: {value}")
    if len(hours) not in (1, 2) or len(minutes) != 2:  # noqa: PLR2004
        raise ValueError(f"Invalid time: {value}")
    hour, minute = int(hours), int(minutes)
    if hour >= HOURS_PER_DAY or minute >= MINUTES_PER_HOUR:
        raise ValueError(f"Invalid time: {value}")
    return hour * MINUTES_PER_HOUR + minute


class NotificationType(StrEnum):
    """Visual kind of a notification."""

    INFO = "info"
    WARNING = "warning"
    SUCCESS = "success"
    ERROR = "error"


class NotificationCategory(StrEnum):
    """Area of the app a notification belongs to."""

    TODO = "todo"
    PROJECT = "project"
    NOTE = "note"
    SYSTEM = "system"


class NotificationSource(StrEnum):
    """What produced a notification."""

    DUE_DATE = "dueDate"
    PROGRESS = "progress"
    MENTION = "mention"
    SYSTEM = "system"
    REMINDER = "reminder"


class NotificationChannel(StrEnum):
    """Delivery channel."""

    BROWSER = "browser"
    EMAIL = "email"
    SYSTEM = "system"


class NotificationAction(DomainModel):
    """Button offered alongside a notification."""

    id: str
    label: str
    action: str = Field(..., description="view, complete, dismiss, snooze or custom")
    url: str | None = None
    payload: dict[str, Any] | None = None


class NotificationData(DomainModel):
    """Notification record as persisted in the notifications collection."""

    id: str
    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    priority: Priority = Priority.MEDIUM
    read: bool = False
    timestamp: str
    category: NotificationCategory | None = None
    source: NotificationSource | None = None
    todo_id: str | None = None
    project_id: str | None = None
    note_id: str | None = None
    actions: list[NotificationAction] | None = None
    expires_at: str | None = None


class NotificationCreate(DomainModel):
    """Payload for creating a notification."""

    title: str
    message: str
    type: NotificationType = NotificationType.INFO
    priority: Priority = Priority.MEDIUM
    category: NotificationCategory | None = None
    source: NotificationSource | None = None
    todo_id: str | None = None
    project_id: str | None = None
    note_id: str | None = None
    actions: list[NotificationAction] | None = None
    expires_at: str | None = None


class CategoryToggles(DomainModel):
    """Per-category delivery switches."""

    todo: bool = True
    project: bool = True
    note: bool = True
    system: bool = True


class PriorityToggles(DomainModel):
    """Per-priority delivery switches."""

    low: bool = True
    medium: bool = True
    high: bool = True


class NotificationPreference(DomainModel):
    """Singleton notification preferences."""

    enabled: bool = True
    channels: list[NotificationChannel] = Field(default_factory=lambda: [NotificationChannel.BROWSER])
    quiet_hours_start: str | None = Field(default=None, description="Start of quiet hours (HH:MM, 24h)")
    quiet_hours_end: str | None = Field(default=None, description="End of quiet hours (HH:MM, 24h)")
    categories: CategoryToggles = Field(default_factory=CategoryToggles)
    priorities: PriorityToggles = Field(default_factory=PriorityToggles)


class NotificationPreferenceUpdate(DomainModel):
    """Partial update for notification preferences."""

    enabled: bool | None = None
    channels: list[NotificationChannel] | None = None
    quiet_hours_start: str | None = None
    quiet_hours_end: str | None = None
    categories: CategoryToggles | None = None
    priorities: PriorityToggles | None = None

    @field_validator("quiet_hours_start", "quiet_hours_end")
    @classmethod
    def validate_quiet_hours(cls, v: str | None) -> str | None:
        """Quiet-hours bounds are 24h HH:MM times."""
        if not v:
            return v
        try:
            minute_of_day(v)
        except ValueError as e:
            raise ValueError("Quiet hours must be HH:MM (24h)") from e
        return v
