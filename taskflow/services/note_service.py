"""Notes service: CRUD, version history, tags, images and note/todo relations."""

import logging
from collections.abc import Callable
from typing import Any

from taskflow.core.config import NoteHistoryCleanup
from taskflow.core.errors import NotFoundError, ValidationError
from taskflow.core.identifiers import generate_id, now_iso
from taskflow.core.logging import span
from taskflow.domain.base import ImageCreate, build_model, changes_of, parse_input
from taskflow.domain.note import Note, NoteCreate, NoteUpdate, NoteVersion
from taskflow.services.collection import find, index_of, load_collection, save_collection
from taskflow.services.todo_service import TodoService
from taskflow.storage.entities import Entity, note_versions_entity
from taskflow.storage.gateway import StorageGateway


logger = logging.getLogger(__name__)

NoteMutation = Callable[[Note], dict[str, Any]]


def _with_item(items: list[str] | None, item: str) -> list[str]:
    items = list(items or [])
    if item not in items:
        items.append(item)
    return items


def _without_item(items: list[str] | None, item: str) -> list[str]:
    return [existing for existing in items or [] if existing != item]


class NoteService:
    """CRUD over the notes collection plus per-note version history.

    Every update archives the previous content under note_versions_<id>.
    """

    def __init__(
        self,
        gateway: StorageGateway,
        *,
        history_cleanup: NoteHistoryCleanup = NoteHistoryCleanup.CLEAR,
        todo_service: TodoService | None = None,
    ) -> None:
        """Create the service.

        Args:
            gateway: Storage gateway
            history_cleanup: What happens to a note's version history when the note is deleted
            todo_service: When given, link_todo checks that the todo exists
        """
        self._gateway = gateway
        self._history_cleanup = NoteHistoryCleanup(history_cleanup)
        self._todos = todo_service

    async def _load(self) -> list[Note]:
        return await load_collection(self._gateway, Entity.NOTES, Note)

    async def _save(self, notes: list[Note]) -> None:
        await save_collection(self._gateway, Entity.NOTES, notes)

    async def _apply(self, note_id: str, mutate: NoteMutation) -> Note:
        """Change one note and rewrite the collection. Does not touch version history."""
        notes = await self._load()
        index = index_of(notes, note_id, "Note")
        current = notes[index]

        changes = mutate(current)
        if not changes:
            return current

        record = {**current.model_dump(), **changes}
        record.update(id=current.id, created_at=current.created_at, updated_at=now_iso())
        updated = build_model(Note, record)

        notes[index] = updated
        await self._save(notes)
        return updated

    async def get_all(self) -> list[Note]:
        """Get every note."""
        with span("note_service.get_all"):
            return await self._load()

    async def get_by_id(self, *, note_id: str) -> Note | None:
        """Get a note by ID, or None if it does not exist."""
        with span("note_service.get_by_id"):
            return find(await self._load(), note_id)

    async def create(self, *, data: NoteCreate | dict[str, Any]) -> Note:
        """Create a new note at version 1.

        Raises:
            ValidationError: If the title is missing or too long
        """
        with span("note_service.create"):
            payload = parse_input(NoteCreate, data)
            now = now_iso()
            record = payload.model_dump()
            record.update(id=generate_id(), version=1, created_at=now, updated_at=now, last_edited_at=now)
            note = build_model(Note, record)

            notes = await self._load()
            notes.append(note)
            await self._save(notes)

            logger.info("Created note: %s", note.title, extra={"note_id": note.id})
            return note

    async def update(self, *, note_id: str, changes: NoteUpdate | dict[str, Any]) -> Note:
        """Edit a note, archiving its previous content and bumping the version.

        Raises:
            NotFoundError: If the note does not exist
            ValidationError: If the merged note fails validation
        """
        with span("note_service.update"):
            payload = parse_input(NoteUpdate, changes)
            notes = await self._load()
            index = index_of(notes, note_id, "Note")
            current = notes[index]

            now = now_iso()
            record = {**current.model_dump(), **changes_of(payload)}
            record.update(
                id=current.id,
                created_at=current.created_at,
                updated_at=now,
                last_edited_at=now,
                version=current.version + 1,
            )
            updated = build_model(Note, record)

            await self._archive_version(current)
            notes[index] = updated
            await self._save(notes)

            logger.info("Updated note", extra={"note_id": note_id, "version": updated.version})
            return updated

    async def _archive_version(self, note: Note) -> NoteVersion:
        versions = await self.get_versions(note_id=note.id)
        version = NoteVersion(
            id=generate_id(),
            note_id=note.id,
            content=note.content,
            timestamp=note.last_edited_at or note.updated_at,
        )
        versions.append(version)
        await save_collection(self._gateway, note_versions_entity(note.id), versions)
        return version

    async def delete(self, *, note_id: str) -> None:
        """Delete a note and apply the history cleanup policy.

        Raises:
            NotFoundError: If the note does not exist
        """
        with span("note_service.delete"):
            notes = await self._load()
            index = index_of(notes, note_id, "Note")
            del notes[index]
            await self._save(notes)

            versions_entity = note_versions_entity(note_id)
            if self._history_cleanup == NoteHistoryCleanup.CLEAR:
                await self._gateway.write(versions_entity, [])
            elif self._history_cleanup == NoteHistoryCleanup.REMOVE:
                await self._gateway.remove(versions_entity)

            logger.info("Deleted note", extra={"note_id": note_id, "history_cleanup": str(self._history_cleanup)})

    async def get_by_project(self, *, project_id: str) -> list[Note]:
        return [note for note in await self._load() if note.project_id == project_id]

    async def get_by_todo(self, *, todo_id: str) -> list[Note]:
        """Notes whose primary todo or related todos include the todo."""
        return [
            note for note in await self._load() if note.todo_id == todo_id or todo_id in (note.related_todos or [])
        ]

    async def get_by_tag(self, *, tag: str) -> list[Note]:
        return [note for note in await self._load() if tag in (note.tags or [])]

    async def search(self, *, query: str) -> list[Note]:
        """Case-insensitive substring search over title, content and tags."""
        needle = query.lower()
        return [
            note
            for note in await self._load()
            if needle in note.title.lower()
            or needle in note.content.lower()
            or any(needle in tag.lower() for tag in note.tags or [])
        ]

    async def get_versions(self, *, note_id: str) -> list[NoteVersion]:
        """Archived versions of a note, oldest first."""
        return await load_collection(self._gateway, note_versions_entity(note_id), NoteVersion)

    async def add_image(self, *, note_id: str, image: ImageCreate | dict[str, Any]) -> Note:
        """Attach an image to a note."""
        with span("note_service.add_image"):
            payload = parse_input(ImageCreate, image)
            attachment = {**payload.model_dump(), "id": generate_id(), "created_at": now_iso()}

            def mutate(note: Note) -> dict[str, Any]:
                return {"images": [*[img.model_dump() for img in note.images or []], attachment]}

            return await self._apply(note_id, mutate)

    async def remove_image(self, *, note_id: str, image_id: str) -> Note:
        with span("note_service.remove_image"):
            return await self._apply(
                note_id,
                lambda note: {"images": [img.model_dump() for img in note.images or [] if img.id != image_id]},
            )

    async def add_tag(self, *, note_id: str, tag: str) -> Note:
        """Add a tag; adding an existing tag changes nothing."""
        with span("note_service.add_tag"):
            return await self._apply(
                note_id, lambda note: {} if tag in (note.tags or []) else {"tags": _with_item(note.tags, tag)}
            )

    async def remove_tag(self, *, note_id: str, tag: str) -> Note:
        with span("note_service.remove_tag"):
            return await self._apply(note_id, lambda note: {"tags": _without_item(note.tags, tag)})

    async def link_notes(self, *, note_id: str, related_note_id: str) -> Note:
        """Record that note_id refers to related_note_id.

        Raises:
            ValidationError: If a note is linked to itself
            NotFoundError: If either note does not exist
        """
        with span("note_service.link_notes"):
            if note_id == related_note_id:
                raise ValidationError("A note cannot be linked to itself")
            if await self.get_by_id(note_id=related_note_id) is None:
                raise NotFoundError("Related note", related_note_id)

            def mutate(note: Note) -> dict[str, Any]:
                if related_note_id in (note.related_notes or []):
                    return {}
                return {"related_notes": _with_item(note.related_notes, related_note_id)}

            return await self._apply(note_id, mutate)

    async def unlink_notes(self, *, note_id: str, related_note_id: str) -> Note:
        with span("note_service.unlink_notes"):
            return await self._apply(
                note_id, lambda note: {"related_notes": _without_item(note.related_notes, related_note_id)}
            )

    async def link_todo(self, *, note_id: str, todo_id: str) -> Note:
        """Relate a todo to the note.

        Raises:
            NotFoundError: If the note (or, when todos are checked, the todo) does not exist
        """
        with span("note_service.link_todo"):
            if self._todos is not None and await self._todos.get_by_id(todo_id=todo_id) is None:
                raise NotFoundError("Todo", todo_id)

            def mutate(note: Note) -> dict[str, Any]:
                if note.todo_id == todo_id or todo_id in (note.related_todos or []):
                    return {}
                return {"related_todos": _with_item(note.related_todos, todo_id)}

            return await self._apply(note_id, mutate)

    async def unlink_todo(self, *, note_id: str, todo_id: str) -> Note:
        """Drop a todo from the note's relations, including the primary todo."""
        with span("note_service.unlink_todo"):

            def mutate(note: Note) -> dict[str, Any]:
                changes: dict[str, Any] = {"related_todos": _without_item(note.related_todos, todo_id)}
                if note.todo_id == todo_id:
                    changes["todo_id"] = None
                return changes

            return await self._apply(note_id, mutate)

    async def toggle_favorite(self, *, note_id: str) -> Note:
        with span("note_service.toggle_favorite"):
            return await self._apply(note_id, lambda note: {"is_favorite": not note.is_favorite})
