"""Todo service for CRUD operations and filtered views."""

import logging
from datetime import UTC, datetime
from typing import Any

from taskflow.core.identifiers import generate_id, now_iso, parse_timestamp, percent, utc_now
from taskflow.core.logging import span
from taskflow.domain.base import build_model, changes_of, parse_input
from taskflow.domain.todo import Todo, TodoCreate, TodoStatus, TodoUpdate
from taskflow.services.collection import find, index_of, load_collection, save_collection
from taskflow.storage.entities import Entity
from taskflow.storage.gateway import StorageGateway


logger = logging.getLogger(__name__)


def _fill_subtasks(subtasks: Any, now: str) -> Any:
    """Give new subtasks an id and creation time; anything else is left to validation."""
    if not isinstance(subtasks, list):
        return subtasks
    filled = []
    for subtask in subtasks:
        if isinstance(subtask, dict):
            subtask = dict(subtask)
            subtask.setdefault("id", generate_id())
            if "createdAt" not in subtask and "created_at" not in subtask:
                subtask["created_at"] = now
        filled.append(subtask)
    return filled


def count_completed(subtasks: list[Any]) -> int:
    """Number of completed entries in a subtask list of dicts or models."""
    done = 0
    for subtask in subtasks:
        if isinstance(subtask, dict):
            done += bool(subtask.get("completed"))
        else:
            done += bool(getattr(subtask, "completed", False))
    return done


def subtask_progress(subtasks: Any) -> int | None:
    """Rounded share of completed subtasks, or None when there are none."""
    if not isinstance(subtasks, list) or not subtasks:
        return None
    return percent(count_completed(subtasks), len(subtasks))


def _is_overdue(todo: Todo, now: datetime) -> bool:
    if not todo.due_date or todo.status == TodoStatus.COMPLETED:
        return False
    try:
        return parse_timestamp(todo.due_date) < now
    except ValueError:
        return False


class TodoService:
    """CRUD over the todos collection."""

    def __init__(self, gateway: StorageGateway) -> None:
        self._gateway = gateway

    async def _load(self) -> list[Todo]:
        return await load_collection(self._gateway, Entity.TODOS, Todo)

    async def _save(self, todos: list[Todo]) -> None:
        await save_collection(self._gateway, Entity.TODOS, todos)

    async def get_all(self) -> list[Todo]:
        """Get every todo."""
        with span("todo_service.get_all"):
            return await self._load()

    async def get_by_id(self, *, todo_id: str) -> Todo | None:
        """Get a todo by ID, or None if it does not exist."""
        with span("todo_service.get_by_id"):
            return find(await self._load(), todo_id)

    async def create(self, *, data: TodoCreate | dict[str, Any]) -> Todo:
        """Create a new todo.

        Args:
            data: Todo fields. Only the title is required.

        Returns:
            Created todo with id and timestamps assigned

        Raises:
            ValidationError: If the todo fails validation
            StorageWriteFailed: If the collection could not be saved
        """
        with span("todo_service.create"):
            payload = parse_input(TodoCreate, data)
            now = now_iso()
            record = payload.model_dump()
            record.update(id=generate_id(), created_at=now, updated_at=now)
            record["subtasks"] = _fill_subtasks(record["subtasks"], now)
            progress = subtask_progress(record["subtasks"])
            if progress is not None:
                record["progress"] = progress
            todo = build_model(Todo, record)

            todos = await self._load()
            todos.append(todo)
            await self._save(todos)

            logger.info("Created todo: %s", todo.title, extra={"todo_id": todo.id})
            return todo

    async def update(self, *, todo_id: str, changes: TodoUpdate | dict[str, Any]) -> Todo:
        """Apply a partial update, validating the merged todo.

        Raises:
            NotFoundError: If the todo does not exist
            ValidationError: If the merged todo fails validation
        """
        with span("todo_service.update"):
            payload = parse_input(TodoUpdate, changes)
            todos = await self._load()
            index = index_of(todos, todo_id, "Todo")
            current = todos[index]

            record = {**current.model_dump(), **changes_of(payload)}
            record.update(id=current.id, created_at=current.created_at, updated_at=now_iso())
            record["subtasks"] = _fill_subtasks(record.get("subtasks"), record["updated_at"])
            progress = subtask_progress(record["subtasks"])
            if progress is not None:
                record["progress"] = progress
            updated = build_model(Todo, record)

            todos[index] = updated
            await self._save(todos)

            logger.info("Updated todo", extra={"todo_id": todo_id, "fields": sorted(changes_of(payload))})
            return updated

    async def delete(self, *, todo_id: str) -> None:
        """Delete a todo.

        Raises:
            NotFoundError: If the todo does not exist
        """
        with span("todo_service.delete"):
            todos = await self._load()
            index = index_of(todos, todo_id, "Todo")
            del todos[index]
            await self._save(todos)
            logger.info("Deleted todo", extra={"todo_id": todo_id})

    async def update_status(self, *, todo_id: str, status: TodoStatus) -> Todo:
        """Change a todo's status, stamping completedAt on completion."""
        status = TodoStatus(status)
        completed_at = now_iso() if status == TodoStatus.COMPLETED else None
        return await self.update(todo_id=todo_id, changes={"status": status, "completed_at": completed_at})

    async def get_by_project(self, *, project_id: str) -> list[Todo]:
        """Todos whose projectId points at the project."""
        return [todo for todo in await self._load() if todo.project_id == project_id]

    async def get_by_status(self, *, status: TodoStatus) -> list[Todo]:
        return [todo for todo in await self._load() if todo.status == status]

    async def get_overdue(self, *, now: datetime | None = None) -> list[Todo]:
        """Uncompleted todos whose due date has passed."""
        now = now or utc_now()
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        return [todo for todo in await self._load() if _is_overdue(todo, now)]
