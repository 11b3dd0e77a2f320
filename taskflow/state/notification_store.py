"""Notification state: cached notifications, unread counts and preferences."""

import logging
from typing import Any

from taskflow.domain.base import Priority
from taskflow.domain.notification import (
    NotificationCreate,
    NotificationData,
    NotificationPreference,
    NotificationPreferenceUpdate,
)
from taskflow.services.notification_service import NotificationService
from taskflow.state.base import CollectionStore


logger = logging.getLogger(__name__)


class NotificationStore(CollectionStore[NotificationData]):
    """Cached notifications and preferences for a UI."""

    label = "notifications"

    def __init__(self, notification_service: NotificationService) -> None:
        super().__init__()
        self._service = notification_service
        self.preferences = NotificationPreference()

    async def _fetch(self) -> list[NotificationData]:
        notifications = await self._service.get_all()
        self.preferences = await self._service.get_preferences()
        return notifications

    @property
    def notifications(self) -> list[NotificationData]:
        return self.items

    @property
    def unread(self) -> list[NotificationData]:
        return [n for n in self._items if not n.read]

    @property
    def unread_count(self) -> int:
        return len(self.unread)

    @property
    def high_priority_unread(self) -> list[NotificationData]:
        return [n for n in self.unread if n.priority == Priority.HIGH]

    async def create_notification(self, data: NotificationCreate | dict[str, Any]) -> NotificationData:
        return await self._mutate("Failed to create notification", lambda: self._service.create(data=data))

    async def mark_as_read(self, notification_id: str) -> NotificationData:
        return await self._mutate(
            "Failed to mark notification as read",
            lambda: self._service.mark_as_read(notification_id=notification_id),
        )

    async def mark_all_as_read(self) -> None:
        await self._mutate("Failed to mark all notifications as read", self._service.mark_all_as_read)

    async def delete_notification(self, notification_id: str) -> None:
        await self._mutate(
            "Failed to delete notification", lambda: self._service.delete(notification_id=notification_id)
        )

    async def delete_all_read(self) -> int:
        return await self._mutate("Failed to delete read notifications", self._service.delete_all_read)

    async def prune_expired(self) -> int:
        return await self._mutate("Failed to prune notifications", self._service.prune_expired)

    async def update_preferences(
        self, changes: NotificationPreferenceUpdate | dict[str, Any]
    ) -> NotificationPreference:
        return await self._mutate(
            "Failed to update notification preferences",
            lambda: self._service.update_preferences(changes=changes),
        )
