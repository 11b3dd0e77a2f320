"""Notification service: persisted notifications, preferences and delivery gating."""

import logging
from datetime import UTC, datetime
from typing import Any, Protocol

import pydantic

from taskflow.core.identifiers import generate_id, now_iso, parse_timestamp, utc_now
from taskflow.core.logging import span
from taskflow.domain.base import build_model, changes_of, parse_input
from taskflow.domain.notification import (
    MINUTES_PER_HOUR,
    NotificationCreate,
    NotificationData,
    NotificationPreference,
    NotificationPreferenceUpdate,
    minute_of_day,
)
from taskflow.services.collection import index_of, load_collection, save_collection
from taskflow.storage.entities import Entity
from taskflow.storage.gateway import StorageGateway


logger = logging.getLogger(__name__)


class NotificationDispatcher(Protocol):
    """Delivers a notification to the user (desktop popup, push, e-mail, ...)."""

    def dispatch(self, notification: NotificationData) -> None: ...


class LoggingDispatcher:
    """Default dispatcher: writes the notification to the log."""

    def dispatch(self, notification: NotificationData) -> None:
        logger.info(
            "Notification: %s - %s",
            notification.title,
            notification.message,
            extra={"notification_id": notification.id, "priority": str(notification.priority)},
        )


def _minute_of_day(value: str | None) -> int | None:
    """Parse HH:MM into minutes since midnight, None when missing or malformed."""
    if not value:
        return None
    try:
        return minute_of_day(value)
    except ValueError:
        return None


def is_in_quiet_hours(preferences: NotificationPreference, now: datetime | None = None) -> bool:
    """Check whether the wall-clock time falls inside the quiet-hours window.

    A window whose start is after its end spans midnight (e.g. 22:00-07:00).
    Both bounds are inclusive. Missing or malformed bounds mean no quiet hours.

    Args:
        preferences: Notification preferences holding the window
        now: Local time to check; defaults to the current local time

    Returns:
        True if notifications should be held back
    """
    start = _minute_of_day(preferences.quiet_hours_start)
    end = _minute_of_day(preferences.quiet_hours_end)
    if start is None or end is None:
        return False

    now = now or datetime.now()  # noqa: DTZ005
    current = now.hour * MINUTES_PER_HOUR + now.minute

    if start <= end:
        return start <= current <= end
    return current >= start or current <= end


def should_deliver(
    notification: NotificationData,
    preferences: NotificationPreference,
    now: datetime | None = None,
) -> bool:
    """Apply the enabled, category, priority and quiet-hours gates."""
    if not preferences.enabled:
        return False
    if notification.category and not getattr(preferences.categories, str(notification.category), True):
        return False
    if not getattr(preferences.priorities, str(notification.priority), True):
        return False
    return not is_in_quiet_hours(preferences, now)


def _is_expired(notification: NotificationData, now: datetime) -> bool:
    if not notification.expires_at:
        return False
    try:
        return parse_timestamp(notification.expires_at) <= now
    except ValueError:
        return False


class NotificationService:
    """CRUD over the notifications collection and the preferences singleton."""

    def __init__(self, gateway: StorageGateway, dispatcher: NotificationDispatcher | None = None) -> None:
        self._gateway = gateway
        self._dispatcher = dispatcher if dispatcher is not None else LoggingDispatcher()

    async def _load(self) -> list[NotificationData]:
        return await load_collection(self._gateway, Entity.NOTIFICATIONS, NotificationData)

    async def _save(self, notifications: list[NotificationData]) -> None:
        await save_collection(self._gateway, Entity.NOTIFICATIONS, notifications)

    async def get_all(self) -> list[NotificationData]:
        """Get every notification."""
        with span("notification_service.get_all"):
            return await self._load()

    async def create(self, *, data: NotificationCreate | dict[str, Any]) -> NotificationData:
        """Store a new unread notification and hand it to the dispatcher.

        Delivery is skipped when preferences rule it out. A failing dispatcher
        is logged and never fails the call.

        Raises:
            ValidationError: If the payload is invalid
        """
        with span("notification_service.create"):
            payload = parse_input(NotificationCreate, data)
            record = payload.model_dump()
            record.update(id=generate_id(), timestamp=now_iso(), read=False)
            notification = build_model(NotificationData, record)

            notifications = await self._load()
            notifications.append(notification)
            await self._save(notifications)
            logger.info("Created notification", extra={"notification_id": notification.id})

            await self._deliver(notification)
            return notification

    async def _deliver(self, notification: NotificationData) -> None:
        preferences = await self.get_preferences()
        if not should_deliver(notification, preferences):
            logger.debug("Notification delivery suppressed", extra={"notification_id": notification.id})
            return

        try:
            self._dispatcher.dispatch(notification)
        except Exception as e:
            logger.error("notification_dispatch_failed", extra={"notification_id": notification.id, "error": str(e)})

    async def mark_as_read(self, *, notification_id: str) -> NotificationData:
        """Mark a single notification as read.

        Raises:
            NotFoundError: If the notification does not exist
        """
        with span("notification_service.mark_as_read"):
            notifications = await self._load()
            index = index_of(notifications, notification_id, "Notification")
            notifications[index] = notifications[index].model_copy(update={"read": True})
            await self._save(notifications)
            return notifications[index]

    async def mark_all_as_read(self) -> None:
        with span("notification_service.mark_all_as_read"):
            notifications = [n.model_copy(update={"read": True}) for n in await self._load()]
            await self._save(notifications)

    async def delete(self, *, notification_id: str) -> None:
        """Delete a notification.

        Raises:
            NotFoundError: If the notification does not exist
        """
        with span("notification_service.delete"):
            notifications = await self._load()
            del notifications[index_of(notifications, notification_id, "Notification")]
            await self._save(notifications)

    async def delete_all_read(self) -> int:
        """Delete every read notification and return how many were removed."""
        with span("notification_service.delete_all_read"):
            notifications = await self._load()
            remaining = [n for n in notifications if not n.read]
            removed = len(notifications) - len(remaining)
            if removed:
                await self._save(remaining)
            logger.info("Deleted read notifications", extra={"count": removed})
            return removed

    async def prune_expired(self, *, now: datetime | None = None) -> int:
        """Delete notifications whose expiresAt has passed and return how many were removed."""
        with span("notification_service.prune_expired"):
            now = now or utc_now()
            if now.tzinfo is None:
                now = now.replace(tzinfo=UTC)

            notifications = await self._load()
            remaining = [n for n in notifications if not _is_expired(n, now)]
            removed = len(notifications) - len(remaining)
            if removed:
                await self._save(remaining)
                logger.info("Pruned expired notifications", extra={"count": removed})
            return removed

    async def get_preferences(self) -> NotificationPreference:
        """Stored preferences, or the defaults when missing or invalid."""
        raw = await self._gateway.read(Entity.NOTIFICATION_PREFERENCES)
        try:
            return NotificationPreference.model_validate(raw)
        except pydantic.ValidationError as e:
            logger.warning("invalid_notification_preferences", extra={"error": str(e)})
            return NotificationPreference()

    async def update_preferences(
        self, *, changes: NotificationPreferenceUpdate | dict[str, Any]
    ) -> NotificationPreference:
        """Shallow-merge changes into the stored preferences."""
        with span("notification_service.update_preferences"):
            payload = parse_input(NotificationPreferenceUpdate, changes)
            current = await self.get_preferences()
            updated = build_model(NotificationPreference, {**current.model_dump(), **changes_of(payload)})
            await self._gateway.write(Entity.NOTIFICATION_PREFERENCES, updated.to_record())
            return updated
