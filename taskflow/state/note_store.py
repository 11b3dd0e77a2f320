"""Note state: cached notes, favourites-first ordering and note operations."""

from datetime import UTC, datetime
from typing import Any

from taskflow.core.identifiers import parse_timestamp
from taskflow.domain.base import ImageCreate
from taskflow.domain.note import Note, NoteCreate, NoteUpdate, NoteVersion
from taskflow.services.note_service import NoteService
from taskflow.state.base import CollectionStore


def _updated(note: Note) -> datetime:
    try:
        return parse_timestamp(note.updated_at)
    except ValueError:
        return datetime.min.replace(tzinfo=UTC)


class NoteStore(CollectionStore[Note]):
    """Cached notes for a UI."""

    label = "notes"

    def __init__(self, note_service: NoteService) -> None:
        super().__init__()
        self._service = note_service

    async def _fetch(self) -> list[Note]:
        return await self._service.get_all()

    @property
    def notes(self) -> list[Note]:
        return self.items

    @property
    def sorted_notes(self) -> list[Note]:
        """Favourites first, then most recently updated first."""
        by_recency = sorted(self._items, key=_updated, reverse=True)
        return sorted(by_recency, key=lambda note: not note.is_favorite)

    @property
    def favorites(self) -> list[Note]:
        return [note for note in self._items if note.is_favorite]

    def get(self, note_id: str) -> Note | None:
        return next((note for note in self._items if note.id == note_id), None)

    def by_project(self, project_id: str) -> list[Note]:
        return [note for note in self._items if note.project_id == project_id]

    def by_todo(self, todo_id: str) -> list[Note]:
        return [note for note in self._items if note.todo_id == todo_id or todo_id in (note.related_todos or [])]

    async def create_note(self, data: NoteCreate | dict[str, Any]) -> Note:
        return await self._mutate("Failed to create note", lambda: self._service.create(data=data))

    async def update_note(self, note_id: str, changes: NoteUpdate | dict[str, Any]) -> Note:
        return await self._mutate(
            "Failed to update note", lambda: self._service.update(note_id=note_id, changes=changes)
        )

    async def delete_note(self, note_id: str) -> None:
        await self._mutate("Failed to delete note", lambda: self._service.delete(note_id=note_id))

    async def add_image(self, note_id: str, image: ImageCreate | dict[str, Any]) -> Note:
        return await self._mutate("Failed to add image", lambda: self._service.add_image(note_id=note_id, image=image))

    async def remove_image(self, note_id: str, image_id: str) -> Note:
        return await self._mutate(
            "Failed to remove image", lambda: self._service.remove_image(note_id=note_id, image_id=image_id)
        )

    async def add_tag(self, note_id: str, tag: str) -> Note:
        return await self._mutate("Failed to add tag", lambda: self._service.add_tag(note_id=note_id, tag=tag))

    async def remove_tag(self, note_id: str, tag: str) -> Note:
        return await self._mutate("Failed to remove tag", lambda: self._service.remove_tag(note_id=note_id, tag=tag))

    async def link_notes(self, note_id: str, related_note_id: str) -> Note:
        return await self._mutate(
            "Failed to link notes",
            lambda: self._service.link_notes(note_id=note_id, related_note_id=related_note_id),
        )

    async def unlink_notes(self, note_id: str, related_note_id: str) -> Note:
        return await self._mutate(
            "Failed to unlink notes",
            lambda: self._service.unlink_notes(note_id=note_id, related_note_id=related_note_id),
        )

    async def link_todo(self, note_id: str, todo_id: str) -> Note:
        return await self._mutate(
            "Failed to link todo", lambda: self._service.link_todo(note_id=note_id, todo_id=todo_id)
        )

    async def unlink_todo(self, note_id: str, todo_id: str) -> Note:
        return await self._mutate(
            "Failed to unlink todo", lambda: self._service.unlink_todo(note_id=note_id, todo_id=todo_id)
        )

    async def toggle_favorite(self, note_id: str) -> Note:
        return await self._mutate("Failed to toggle favorite", lambda: self._service.toggle_favorite(note_id=note_id))

    async def search(self, query: str) -> list[Note]:
        return await self._service.search(query=query)

    async def get_versions(self, note_id: str) -> list[NoteVersion]:
        return await self._service.get_versions(note_id=note_id)
