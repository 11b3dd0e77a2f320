"""Tests for the aggregate application state."""

import pytest

from taskflow.container import build_app_state, build_services
from taskflow.core.errors import NotFoundError, StorageWriteFailed
from taskflow.domain.settings import AppSettings, Theme
from taskflow.domain.todo import TodoStatus


@pytest.fixture
def services(local_gateway):
    return build_services(local_gateway)


@pytest.fixture
def app_state(services):
    return build_app_state(services)


async def project_with_todo(app_state, **todo_fields):
    project = await app_state.projects.create_project({"name": "Launch"})
    todo = await app_state.todos.add_todo({"title": "Task", **todo_fields})
    await app_state.add_todo_to_project(project.id, todo.id)
    return project, todo


@pytest.mark.unit
class TestInitialization:
    """Tests for loading state."""

    async def test_loading_until_initialized(self, app_state):
        assert app_state.loading is True

        await app_state.initialize()

        assert app_state.loading is False
        assert app_state.is_initialized is True
        assert app_state.error is None
        assert app_state.settings == AppSettings()

    async def test_initialize_loads_every_store(self, services, app_state):
        await services.todos.create(data={"title": "Existing"})
        await services.notes.create(data={"title": "Existing note"})

        await app_state.initialize()

        assert [t.title for t in app_state.todos.todos] == ["Existing"]
        assert [n.title for n in app_state.notes.notes] == ["Existing note"]
        assert app_state.projects.projects == []
        assert app_state.notifications.notifications == []

    async def test_settings_failure_falls_back_to_defaults(self, services, app_state, monkeypatch):
        async def broken_get():
            raise RuntimeError("settings unreadable")

        monkeypatch.setattr(services.settings, "get", broken_get)

        await app_state.initialize()

        assert app_state.error == "Failed to load application settings"
        assert app_state.settings == AppSettings()
        assert app_state.loading is False

    async def test_store_error_surfaces(self, app_state):
        await app_state.initialize()

        with pytest.raises(NotFoundError):
            await app_state.todos.delete_todo("ghost")

        assert app_state.error == "Failed to delete todo"


@pytest.mark.unit
class TestSettingsAndTheme:
    """Tests for settings updates and theme resolution."""

    async def test_system_theme_follows_system_preference(self, services):
        state = build_app_state(services, prefers_dark=lambda: True)
        seen: list[Theme] = []
        state.add_theme_listener(seen.append)

        await state.initialize()

        assert state.resolved_theme == Theme.DARK
        assert seen == [Theme.DARK]

    async def test_theme_listener_only_hears_changes(self, app_state):
        await app_state.initialize()
        seen: list[Theme] = []
        app_state.add_theme_listener(seen.append)

        await app_state.update_theme(Theme.DARK)
        await app_state.update_notifications(False)
        await app_state.update_theme(Theme.LIGHT)

        assert seen == [Theme.LIGHT, Theme.DARK, Theme.LIGHT]
        assert app_state.settings.notifications is False

    async def test_settings_persist(self, services, app_state):
        await app_state.initialize()

        await app_state.update_settings({"completionGoal": 10})

        assert (await services.settings.get()).completion_goal == 10

    async def test_update_failure_records_error_and_reraises(self, services, app_state, monkeypatch):
        await app_state.initialize()

        async def broken_update(*, changes):
            raise StorageWriteFailed("settings", "disk full")

        monkeypatch.setattr(services.settings, "update", broken_update)

        with pytest.raises(StorageWriteFailed):
            await app_state.update_theme(Theme.DARK)

        assert app_state.error == "Failed to update settings"


@pytest.mark.unit
class TestCrossStoreCoordination:
    """Tests for todo changes that ripple into projects."""

    async def test_adding_todo_to_project_refreshes_todos(self, app_state):
        await app_state.initialize()

        project, todo = await project_with_todo(app_state)

        assert app_state.todos.get(todo.id).project_id == project.id
        assert app_state.projects.get(project.id).todo_ids == [todo.id]

    async def test_status_change_updates_project_progress(self, app_state):
        await app_state.initialize()
        project, todo = await project_with_todo(app_state)

        await app_state.update_todo_status(todo.id, TodoStatus.COMPLETED)

        assert app_state.projects.get(project.id).progress == 100

    async def test_update_todo_with_status_change_updates_progress(self, app_state):
        await app_state.initialize()
        project, todo = await project_with_todo(app_state, status="completed")
        assert app_state.projects.get(project.id).progress == 100

        await app_state.update_todo(todo.id, {"status": "pending"})

        assert app_state.projects.get(project.id).progress == 0

    async def test_completing_subtasks_updates_progress(self, app_state):
        await app_state.initialize()
        project, todo = await project_with_todo(app_state, subtasks=[{"title": "Only step"}])

        await app_state.toggle_subtask(todo.id, todo.subtasks[0].id, True)

        assert app_state.todos.get(todo.id).status == TodoStatus.COMPLETED
        assert app_state.projects.get(project.id).progress == 100

    async def test_deleting_todo_removes_it_from_project(self, app_state):
        await app_state.initialize()
        project, todo = await project_with_todo(app_state)

        await app_state.delete_todo(todo.id)

        assert app_state.todos.todos == []
        assert app_state.projects.get(project.id).todo_ids == []

    async def test_removing_todo_from_project_refreshes_todos(self, app_state):
        await app_state.initialize()
        project, todo = await project_with_todo(app_state)

        await app_state.remove_todo_from_project(project.id, todo.id)

        assert app_state.todos.get(todo.id).project_id is None

    async def test_update_todo_project_id_joins_the_project(self, app_state):
        await app_state.initialize()
        project = await app_state.projects.create_project({"name": "Launch"})
        todo = await app_state.todos.add_todo({"title": "Task", "status": "completed"})

        await app_state.update_todo(todo.id, {"project_id": project.id})

        assert app_state.todos.get(todo.id).project_id == project.id
        assert app_state.projects.get(project.id).todo_ids == [todo.id]
        assert app_state.projects.get(project.id).progress == 100

    async def test_update_todo_project_id_moves_between_projects(self, app_state):
        await app_state.initialize()
        old, todo = await project_with_todo(app_state, status="completed")
        new = await app_state.projects.create_project({"name": "Next"})

        updated = await app_state.update_todo(todo.id, {"projectId": new.id, "title": "Moved"})

        assert updated.title == "Moved"
        assert updated.project_id == new.id
        assert app_state.projects.get(old.id).todo_ids == []
        assert app_state.projects.get(old.id).progress == 0
        assert app_state.projects.get(new.id).todo_ids == [todo.id]
        assert app_state.projects.get(new.id).progress == 100

    async def test_update_todo_clearing_project_id_leaves_the_project(self, app_state):
        await app_state.initialize()
        project, todo = await project_with_todo(app_state)

        await app_state.update_todo(todo.id, {"project_id": None})

        assert app_state.todos.get(todo.id).project_id is None
        assert app_state.projects.get(project.id).todo_ids == []

    async def test_update_todo_with_unknown_project_changes_nothing(self, app_state):
        await app_state.initialize()
        todo = await app_state.todos.add_todo({"title": "Task"})

        with pytest.raises(NotFoundError):
            await app_state.update_todo(todo.id, {"project_id": "missing"})

        assert app_state.todos.get(todo.id).project_id is None
        assert app_state.error is not None
