"""Application settings singleton."""

import logging
from typing import Any

import pydantic

from taskflow.core.logging import span
from taskflow.domain.base import build_model, changes_of, parse_input
from taskflow.domain.settings import AppSettings, AppSettingsUpdate
from taskflow.storage.entities import Entity
from taskflow.storage.gateway import StorageGateway


logger = logging.getLogger(__name__)


class SettingsService:
    """Reads and updates the settings singleton and keeps the gateway's storage mode in step."""

    def __init__(self, gateway: StorageGateway) -> None:
        self._gateway = gateway

    async def get(self) -> AppSettings:
        """Stored settings, or the defaults when missing or invalid."""
        raw = await self._gateway.read(Entity.SETTINGS)
        try:
            return AppSettings.model_validate(raw)
        except pydantic.ValidationError as e:
            logger.warning("invalid_settings", extra={"error": str(e)})
            return AppSettings()

    async def update(self, *, changes: AppSettingsUpdate | dict[str, Any]) -> AppSettings:
        """Merge changes into the stored settings.

        Switching useServerStorage takes effect before the settings are saved,
        so the new value is written to the newly selected storage.

        Raises:
            ValidationError: If the merged settings are invalid
            StorageWriteFailed: If the settings could not be saved
        """
        with span("settings_service.update"):
            payload = parse_input(AppSettingsUpdate, changes)
            fields = changes_of(payload)
            current = await self.get()
            updated = build_model(AppSettings, {**current.model_dump(), **fields})

            if "use_server_storage" in fields and updated.use_server_storage != self._gateway.policy.use_server_storage:
                self._gateway.set_use_server_storage(updated.use_server_storage)

            await self._gateway.write(Entity.SETTINGS, updated.to_record())
            logger.info("Updated settings", extra={"fields": sorted(fields)})
            return updated
