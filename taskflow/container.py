"""Wires storage, services and state together from settings."""

import logging
from collections.abc import Callable
from dataclasses import dataclass

import httpx

from taskflow.core.config import Settings, settings as default_settings
from taskflow.services.note_service import NoteService
from taskflow.services.notification_service import NotificationDispatcher, NotificationService
from taskflow.services.project_service import ProjectService
from taskflow.services.settings_service import SettingsService
from taskflow.services.todo_service import TodoService
from taskflow.state.app_state import AppDataState
from taskflow.state.note_store import NoteStore
from taskflow.state.notification_store import NotificationStore
from taskflow.state.project_store import ProjectStore
from taskflow.state.todo_store import TodoStore
from taskflow.storage.backends import LocalBackend, RemoteBackend
from taskflow.storage.gateway import StorageGateway, StoragePolicy
from taskflow.storage.local_store import LocalKeyValueStore


logger = logging.getLogger(__name__)


@dataclass
class Services:
    """Every service, sharing one gateway."""

    gateway: StorageGateway
    todos: TodoService
    projects: ProjectService
    notes: NoteService
    notifications: NotificationService
    settings: SettingsService


def build_gateway(config: Settings, *, client: httpx.AsyncClient | None = None) -> StorageGateway:
    """Create the storage gateway described by config.

    Args:
        config: Application settings
        client: Optional shared HTTP client for the remote backend
    """
    local = LocalBackend(LocalKeyValueStore(config.local_storage_path), prefix=config.storage_key_prefix)
    remote = RemoteBackend(config.api_base_url, client=client)
    policy = StoragePolicy(use_server_storage=config.use_server_storage, fallback_to_local=config.fallback_to_local)
    logger.info(
        "Storage gateway configured",
        extra={"api_base_url": config.api_base_url, "use_server_storage": policy.use_server_storage},
    )
    return StorageGateway(local=local, remote=remote, policy=policy)


def build_services(
    gateway: StorageGateway,
    *,
    config: Settings | None = None,
    dispatcher: NotificationDispatcher | None = None,
) -> Services:
    """Create the services over one gateway."""
    config = config or default_settings
    todos = TodoService(gateway)
    return Services(
        gateway=gateway,
        todos=todos,
        projects=ProjectService(gateway, todos),
        notes=NoteService(gateway, history_cleanup=config.note_history_cleanup, todo_service=todos),
        notifications=NotificationService(gateway, dispatcher),
        settings=SettingsService(gateway),
    )


def build_app_state(services: Services, *, prefers_dark: Callable[[], bool] | None = None) -> AppDataState:
    """Create the stores and the aggregate state for a UI."""
    return AppDataState(
        todos=TodoStore(services.todos),
        projects=ProjectStore(services.projects),
        notes=NoteStore(services.notes),
        notifications=NotificationStore(services.notifications),
        settings_service=services.settings,
        prefers_dark=prefers_dark,
    )
