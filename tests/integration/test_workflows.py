"""End-to-end workflows: services talking to the storage API over HTTP."""

import json

import pytest

from taskflow.container import build_app_state, build_services
from taskflow.domain.todo import TodoStatus


def stored(file_store, entity: str):
    return json.loads((file_store.data_dir / entity / "data.json").read_text(encoding="utf-8"))


@pytest.fixture
def services(server_gateway):
    return build_services(server_gateway)


@pytest.mark.integration
class TestServerBackedWorkflows:
    """Tests that exercise the whole stack against the file store."""

    async def test_todo_lands_on_disk_in_camel_case(self, services, file_store, local_store):
        todo = await services.todos.create(data={"title": "Ship release", "dueDate": "2030-01-01"})

        records = stored(file_store, "todos")

        assert records[0]["id"] == todo.id
        assert records[0]["dueDate"] == "2030-01-01"
        assert "lastSync" in stored(file_store, "metadata")
        assert local_store.get_item("taskflow_data_todos") is None

    async def test_project_progress_flow(self, services, file_store):
        project = await services.projects.create(data={"name": "Website"})
        todos = [await services.todos.create(data={"title": f"Page {n}"}) for n in range(3)]
        for todo in todos:
            await services.projects.add_todo_to_project(project_id=project.id, todo_id=todo.id)

        await services.todos.update_status(todo_id=todos[0].id, status=TodoStatus.COMPLETED)
        progress = await services.projects.update_project_progress(project_id=project.id)

        assert progress == 33
        on_disk = stored(file_store, "projects")[0]
        assert on_disk["todoIds"] == [todo.id for todo in todos]
        assert on_disk["progress"] == 33
        assert {record["projectId"] for record in stored(file_store, "todos")} == {project.id}

    async def test_note_history_on_disk(self, services, file_store):
        note = await services.notes.create(data={"title": "Retro", "content": "v1"})
        await services.notes.update(note_id=note.id, changes={"content": "v2"})

        versions = stored(file_store, f"note_versions_{note.id}")

        assert [v["content"] for v in versions] == ["v1"]
        assert versions[0]["noteId"] == note.id

        await services.notes.delete(note_id=note.id)

        assert stored(file_store, f"note_versions_{note.id}") == []

    async def test_backup_and_restore_through_gateway(self, services, server_gateway):
        original = await services.todos.create(data={"title": "Keep me"})
        backup_id = await server_gateway.create_backup("todos")

        await services.todos.delete(todo_id=original.id)
        await server_gateway.restore_from_backup("todos", backup_id)

        assert [t.id for t in await services.todos.get_all()] == [original.id]

    async def test_app_state_over_server(self, services):
        state = build_app_state(services)
        await state.initialize()

        project = await state.projects.create_project({"name": "Launch"})
        todo = await state.todos.add_todo({"title": "Announce"})
        await state.add_todo_to_project(project.id, todo.id)
        await state.update_todo_status(todo.id, TodoStatus.COMPLETED)

        assert state.error is None
        assert state.projects.get(project.id).progress == 100
        assert state.todos.completed[0].id == todo.id
