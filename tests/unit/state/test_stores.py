"""Tests for the project, note and notification stores."""

import pytest

from taskflow.core.errors import NotFoundError
from taskflow.domain.project import ProjectStatus
from taskflow.state.note_store import NoteStore
from taskflow.state.notification_store import NotificationStore
from taskflow.state.project_store import ProjectStore


def note_record(note_id: str, updated_at: str, *, favorite: bool | None = None) -> dict:
    record = {
        "id": note_id,
        "title": f"Note {note_id}",
        "content": "",
        "lastEditedAt": updated_at,
        "createdAt": "2024-01-01T00:00:00.000Z",
        "updatedAt": updated_at,
    }
    if favorite is not None:
        record["isFavorite"] = favorite
    return record


@pytest.mark.unit
class TestProjectStore:
    """Tests for ProjectStore."""

    async def test_status_views(self, project_service):
        store = ProjectStore(project_service)
        planning = await store.create_project({"name": "Plan"})
        active = await store.create_project({"name": "Run", "status": "active"})
        held = await store.create_project({"name": "Wait"})
        await store.update_project_status(held.id, ProjectStatus.ON_HOLD)

        assert [p.id for p in store.planning] == [planning.id]
        assert [p.id for p in store.active] == [active.id]
        assert [p.id for p in store.on_hold] == [held.id]
        assert store.completed == []
        assert store.archived == []

    async def test_membership_through_store(self, project_service, todo_service):
        store = ProjectStore(project_service)
        project = await store.create_project({"name": "Plan"})
        todo = await todo_service.create(data={"title": "Task", "status": "completed"})

        await store.add_todo_to_project(project.id, todo.id)

        assert store.get(project.id).todo_ids == [todo.id]
        assert store.get(project.id).progress == 100

    async def test_sub_entities_through_store(self, project_service):
        store = ProjectStore(project_service)
        project = await store.create_project({"name": "Plan"})

        await store.add_milestone(project.id, {"title": "M1"})
        await store.add_resource(project.id, {"name": "Repo", "type": "link", "url": "https://example.com"})
        await store.add_risk(project.id, {"title": "Risk", "impact": "medium", "probability": "medium"})

        cached = store.get(project.id)
        assert [m.title for m in cached.milestones] == ["M1"]
        assert [r.name for r in cached.resources] == ["Repo"]
        assert [r.title for r in cached.risks] == ["Risk"]

    async def test_failed_sub_entity_update_sets_error(self, project_service):
        store = ProjectStore(project_service)
        project = await store.create_project({"name": "Plan"})

        with pytest.raises(NotFoundError):
            await store.update_milestone(project.id, "ghost", {"title": "x"})

        assert store.error == "Failed to update milestone"

    async def test_delete_project(self, project_service):
        store = ProjectStore(project_service)
        project = await store.create_project({"name": "Plan"})

        await store.delete_project(project.id)

        assert store.projects == []


@pytest.mark.unit
class TestNoteStore:
    """Tests for NoteStore."""

    async def test_sorted_notes_put_favorites_first_then_recent(self, note_service, local_gateway):
        await local_gateway.write(
            "notes",
            [
                note_record("old", "2024-01-01T00:00:00.000Z"),
                note_record("new", "2024-03-01T00:00:00.000Z"),
                note_record("fav-old", "2024-01-15T00:00:00.000Z", favorite=True),
                note_record("fav-new", "2024-02-15T00:00:00.000Z", favorite=True),
                note_record("unfav", "2024-04-01T00:00:00.000Z", favorite=False),
            ],
        )
        store = NoteStore(note_service)
        await store.refresh()

        assert [n.id for n in store.sorted_notes] == ["fav-new", "fav-old", "unfav", "new", "old"]
        assert [n.id for n in store.favorites] == ["fav-old", "fav-new"]

    async def test_note_operations_refresh_cache(self, note_service):
        store = NoteStore(note_service)
        note = await store.create_note({"title": "Draft", "projectId": "p1"})

        await store.update_note(note.id, {"content": "Body"})
        await store.add_tag(note.id, "idea")
        await store.toggle_favorite(note.id)

        cached = store.get(note.id)
        assert cached.content == "Body"
        assert cached.tags == ["idea"]
        assert cached.is_favorite is True
        assert [n.id for n in store.by_project("p1")] == [note.id]
        assert len(await store.get_versions(note.id)) == 1
        assert [n.id for n in await store.search("body")] == [note.id]

    async def test_failed_link_sets_error(self, note_service):
        store = NoteStore(note_service)
        note = await store.create_note({"title": "Lonely"})

        with pytest.raises(NotFoundError):
            await store.link_todo(note.id, "ghost")

        assert store.error == "Failed to link todo"

    async def test_delete_note(self, note_service):
        store = NoteStore(note_service)
        note = await store.create_note({"title": "Gone"})

        await store.delete_note(note.id)

        assert store.notes == []


@pytest.mark.unit
class TestNotificationStore:
    """Tests for NotificationStore."""

    async def test_counts(self, notification_service):
        store = NotificationStore(notification_service)
        urgent = await store.create_notification({"title": "A", "message": "a", "priority": "high"})
        await store.create_notification({"title": "B", "message": "b"})
        read = await store.create_notification({"title": "C", "message": "c", "priority": "high"})
        await store.mark_as_read(read.id)

        assert store.unread_count == 2
        assert [n.id for n in store.high_priority_unread] == [urgent.id]
        assert len(store.notifications) == 3

    async def test_mark_all_and_delete_read(self, notification_service):
        store = NotificationStore(notification_service)
        await store.create_notification({"title": "A", "message": "a"})

        await store.mark_all_as_read()
        assert store.unread_count == 0

        assert await store.delete_all_read() == 1
        assert store.notifications == []

    async def test_preferences_are_loaded_and_updated(self, notification_service):
        store = NotificationStore(notification_service)
        await store.refresh()
        assert store.preferences.enabled is True

        await store.update_preferences({"enabled": False})

        assert store.preferences.enabled is False

    async def test_delete_missing_notification_sets_error(self, notification_service):
        store = NotificationStore(notification_service)

        with pytest.raises(NotFoundError):
            await store.delete_notification("ghost")

        assert store.error == "Failed to delete notification"
