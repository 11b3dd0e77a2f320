"""Pytest configuration and shared fixtures."""

from collections.abc import Callable, Iterator

import httpx
import pytest
from fastapi import FastAPI

from taskflow.core.config import NoteHistoryCleanup
from taskflow.interface.storage_router import get_file_store
from taskflow.main import app
from taskflow.services.note_service import NoteService
from taskflow.services.notification_service import NotificationService
from taskflow.services.project_service import ProjectService
from taskflow.services.settings_service import SettingsService
from taskflow.services.todo_service import TodoService
from taskflow.storage.backends import LocalBackend, RemoteBackend
from taskflow.storage.file_store import JsonFileStore
from taskflow.storage.gateway import StorageGateway, StoragePolicy
from taskflow.storage.local_store import LocalKeyValueStore


API_BASE_URL = "http://testserver/api/storage"


class WarningRecorder:
    """Collects (title, description) pairs emitted by the gateway."""

    def __init__(self) -> None:
        self.warnings: list[tuple[str, str]] = []

    def __call__(self, title: str, description: str) -> None:
        self.warnings.append((title, description))


@pytest.fixture
def file_store(tmp_path) -> JsonFileStore:
    """Server-side file store in a temporary data directory."""
    return JsonFileStore(tmp_path / "data")


@pytest.fixture
def api_app(file_store: JsonFileStore) -> Iterator[FastAPI]:
    """The FastAPI app serving from the temporary file store."""
    app.dependency_overrides[get_file_store] = lambda: file_store
    yield app
    app.dependency_overrides.clear()


@pytest.fixture
def local_store() -> LocalKeyValueStore:
    """In-memory local key-value store."""
    return LocalKeyValueStore()


@pytest.fixture
def local_backend(local_store: LocalKeyValueStore) -> LocalBackend:
    return LocalBackend(local_store)


@pytest.fixture
def local_gateway(local_backend: LocalBackend) -> StorageGateway:
    """Gateway in local-only mode."""
    return StorageGateway(local=local_backend, policy=StoragePolicy(use_server_storage=False))


@pytest.fixture
def server_gateway(api_app: FastAPI, local_backend: LocalBackend) -> StorageGateway:
    """Gateway talking to the real storage API in-process, without local fallback."""
    client = httpx.AsyncClient(transport=httpx.ASGITransport(app=api_app))
    remote = RemoteBackend(API_BASE_URL, client=client)
    return StorageGateway(
        local=local_backend,
        remote=remote,
        policy=StoragePolicy(use_server_storage=True, fallback_to_local=False),
    )


@pytest.fixture(params=["local", "server"])
def gateway(request: pytest.FixtureRequest) -> StorageGateway:
    """Runs a test once against each storage mode."""
    return request.getfixturevalue(f"{request.param}_gateway")


@pytest.fixture
def failing_remote() -> Callable[..., RemoteBackend]:
    """Factory for a remote backend whose server always answers with an error status.

    The returned backend exposes the list of requests it received as ``requests``.
    """

    def factory(status_code: int = 503) -> RemoteBackend:
        requests: list[httpx.Request] = []

        def handler(request: httpx.Request) -> httpx.Response:
            requests.append(request)
            return httpx.Response(status_code, json={"error": "unavailable"})

        client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
        backend = RemoteBackend(API_BASE_URL, client=client)
        backend.requests = requests  # type: ignore[attr-defined]
        return backend

    return factory


@pytest.fixture
def warnings_recorder() -> WarningRecorder:
    return WarningRecorder()


@pytest.fixture
def todo_service(local_gateway: StorageGateway) -> TodoService:
    return TodoService(local_gateway)


@pytest.fixture
def project_service(local_gateway: StorageGateway, todo_service: TodoService) -> ProjectService:
    return ProjectService(local_gateway, todo_service)


@pytest.fixture
def note_service(local_gateway: StorageGateway, todo_service: TodoService) -> NoteService:
    return NoteService(local_gateway, history_cleanup=NoteHistoryCleanup.CLEAR, todo_service=todo_service)


@pytest.fixture
def notification_service(local_gateway: StorageGateway) -> NotificationService:
    return NotificationService(local_gateway)


@pytest.fixture
def settings_service(local_gateway: StorageGateway) -> SettingsService:
    return SettingsService(local_gateway)
