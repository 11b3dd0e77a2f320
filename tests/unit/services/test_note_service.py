"""Tests for NoteService."""

import pytest

from taskflow.core.config import NoteHistoryCleanup
from taskflow.core.errors import NotFoundError, ValidationError
from taskflow.services.note_service import NoteService


async def make_note(note_service, **fields):
    return await note_service.create(data={"title": "Meeting notes", "content": "Agenda", **fields})


@pytest.mark.unit
class TestNoteServiceCrud:
    """Tests for note CRUD and versioning."""

    async def test_create_starts_at_version_one(self, note_service):
        note = await make_note(note_service)

        assert note.version == 1
        assert note.last_edited_at == note.created_at == note.updated_at
        assert note.content_type == "markdown"

    @pytest.mark.parametrize(
        ("data", "message"),
        [
            ({"title": ""}, "Note title is required"),
            ({"content": "no title"}, "Note title is required"),
            ({"title": "t" * 201}, "Note title must be 200 characters or less"),
        ],
    )
    async def test_validation_errors(self, note_service, data, message):
        with pytest.raises(ValidationError) as exc_info:
            await note_service.create(data=data)

        assert exc_info.value.message == message

    async def test_update_archives_previous_content(self, note_service):
        note = await make_note(note_service)

        updated = await note_service.update(note_id=note.id, changes={"content": "Agenda v2"})
        versions = await note_service.get_versions(note_id=note.id)

        assert updated.version == 2
        assert updated.content == "Agenda v2"
        assert len(versions) == 1
        assert versions[0].content == "Agenda"
        assert versions[0].note_id == note.id
        assert versions[0].timestamp == note.last_edited_at

    async def test_each_update_adds_a_version(self, note_service):
        note = await make_note(note_service)

        for n in range(3):
            note = await note_service.update(note_id=note.id, changes={"content": f"rev {n}"})

        versions = await note_service.get_versions(note_id=note.id)

        assert note.version == 4
        assert [v.content for v in versions] == ["Agenda", "rev 0", "rev 1"]

    async def test_get_versions_of_unknown_note_is_empty(self, note_service):
        assert await note_service.get_versions(note_id="unknown") == []

    async def test_update_missing_raises(self, note_service):
        with pytest.raises(NotFoundError, match="Note with id nope not found"):
            await note_service.update(note_id="nope", changes={"content": "x"})

    async def test_invalid_update_leaves_history_alone(self, note_service):
        note = await make_note(note_service)

        with pytest.raises(ValidationError):
            await note_service.update(note_id=note.id, changes={"title": ""})

        assert await note_service.get_versions(note_id=note.id) == []


@pytest.mark.unit
class TestNoteHistoryCleanup:
    """Tests for the history policy applied on delete."""

    async def _note_with_history(self, service):
        note = await make_note(service)
        await service.update(note_id=note.id, changes={"content": "edited"})
        return note

    async def test_clear_empties_history(self, local_gateway, local_store):
        service = NoteService(local_gateway, history_cleanup=NoteHistoryCleanup.CLEAR)
        note = await self._note_with_history(service)

        await service.delete(note_id=note.id)

        assert await service.get_by_id(note_id=note.id) is None
        assert local_store.get_item(f"taskflow_data_note_versions_{note.id}") == "[]"

    async def test_remove_drops_history_key(self, local_gateway, local_store):
        service = NoteService(local_gateway, history_cleanup=NoteHistoryCleanup.REMOVE)
        note = await self._note_with_history(service)

        await service.delete(note_id=note.id)

        assert local_store.get_item(f"taskflow_data_note_versions_{note.id}") is None

    async def test_retain_keeps_history(self, local_gateway):
        service = NoteService(local_gateway, history_cleanup="retain")
        note = await self._note_with_history(service)

        await service.delete(note_id=note.id)

        assert len(await service.get_versions(note_id=note.id)) == 1

    async def test_delete_missing_raises(self, note_service):
        with pytest.raises(NotFoundError):
            await note_service.delete(note_id="nope")


@pytest.mark.unit
class TestNoteQueries:
    """Tests for lookups and search."""

    async def test_search_is_case_insensitive_over_title_content_and_tags(self, note_service):
        by_title = await make_note(note_service, title="Quarterly Review", content="")
        by_content = await make_note(note_service, title="Other", content="the REVIEW is due")
        by_tag = await make_note(note_service, title="Tagged", content="", tags=["review-prep"])
        await make_note(note_service, title="Unrelated", content="nothing here")

        results = await note_service.search(query="review")

        assert [n.id for n in results] == [by_title.id, by_content.id, by_tag.id]

    async def test_lookups(self, note_service):
        in_project = await make_note(note_service, projectId="p1", tags=["work"])
        primary = await make_note(note_service, todoId="t1")
        related = await make_note(note_service, relatedTodos=["t1"])

        assert [n.id for n in await note_service.get_by_project(project_id="p1")] == [in_project.id]
        assert [n.id for n in await note_service.get_by_todo(todo_id="t1")] == [primary.id, related.id]
        assert [n.id for n in await note_service.get_by_tag(tag="work")] == [in_project.id]


@pytest.mark.unit
class TestNoteAttachments:
    """Tests for tags, images, relations and favorites."""

    async def test_tags(self, note_service):
        note = await make_note(note_service)

        note = await note_service.add_tag(note_id=note.id, tag="ideas")
        unchanged = await note_service.add_tag(note_id=note.id, tag="ideas")
        removed = await note_service.remove_tag(note_id=note.id, tag="ideas")

        assert note.tags == ["ideas"]
        assert unchanged.tags == ["ideas"]
        assert unchanged.updated_at == note.updated_at
        assert removed.tags == []

    async def test_tag_changes_do_not_create_versions(self, note_service):
        note = await make_note(note_service)

        await note_service.add_tag(note_id=note.id, tag="ideas")

        assert await note_service.get_versions(note_id=note.id) == []

    async def test_images(self, note_service):
        note = await make_note(note_service)

        note = await note_service.add_image(
            note_id=note.id,
            image={"url": "data:image/png;base64,AAA", "name": "shot.png", "type": "image/png", "size": 3},
        )
        image = note.images[0]
        assert image.id
        assert image.created_at

        note = await note_service.remove_image(note_id=note.id, image_id=image.id)
        assert note.images == []

    async def test_link_notes(self, note_service):
        first = await make_note(note_service, title="First")
        second = await make_note(note_service, title="Second")

        linked = await note_service.link_notes(note_id=first.id, related_note_id=second.id)
        again = await note_service.link_notes(note_id=first.id, related_note_id=second.id)

        assert linked.related_notes == [second.id]
        assert again.related_notes == [second.id]
        assert (await note_service.get_by_id(note_id=second.id)).related_notes is None

        unlinked = await note_service.unlink_notes(note_id=first.id, related_note_id=second.id)
        assert unlinked.related_notes == []

    async def test_link_note_to_itself_is_rejected(self, note_service):
        note = await make_note(note_service)

        with pytest.raises(ValidationError, match="A note cannot be linked to itself"):
            await note_service.link_notes(note_id=note.id, related_note_id=note.id)

    async def test_link_to_missing_note_raises(self, note_service):
        note = await make_note(note_service)

        with pytest.raises(NotFoundError, match="Related note"):
            await note_service.link_notes(note_id=note.id, related_note_id="ghost")

    async def test_link_todo_checks_the_todo_exists(self, note_service, todo_service):
        note = await make_note(note_service)
        todo = await todo_service.create(data={"title": "Follow up"})

        linked = await note_service.link_todo(note_id=note.id, todo_id=todo.id)

        assert linked.related_todos == [todo.id]
        with pytest.raises(NotFoundError, match="Todo with id ghost not found"):
            await note_service.link_todo(note_id=note.id, todo_id="ghost")

    async def test_link_todo_without_todo_service_skips_check(self, local_gateway):
        service = NoteService(local_gateway)
        note = await make_note(service)

        linked = await service.link_todo(note_id=note.id, todo_id="anything")

        assert linked.related_todos == ["anything"]

    async def test_unlink_todo_clears_primary(self, note_service):
        note = await make_note(note_service, todoId="t1", relatedTodos=["t1", "t2"])

        unlinked = await note_service.unlink_todo(note_id=note.id, todo_id="t1")

        assert unlinked.todo_id is None
        assert unlinked.related_todos == ["t2"]

    async def test_toggle_favorite(self, note_service):
        note = await make_note(note_service)

        on = await note_service.toggle_favorite(note_id=note.id)
        off = await note_service.toggle_favorite(note_id=note.id)

        assert on.is_favorite is True
        assert off.is_favorite is False
