"""Todo state: cached todos, derived views and the subtask completion state machine."""

import logging
from datetime import UTC, datetime
from typing import Any

from taskflow.core.errors import NotFoundError
from taskflow.core.identifiers import now_iso, parse_timestamp, percent, utc_now
from taskflow.domain.base import changes_of, parse_input
from taskflow.domain.todo import Todo, TodoCreate, TodoStatus, TodoUpdate
from taskflow.services.todo_service import TodoService, count_completed
from taskflow.state.base import CollectionStore


logger = logging.getLogger(__name__)


def subtask_status_changes(
    status: TodoStatus, subtasks: list[Any], completed_at: str | None, now: str
) -> dict[str, Any]:
    """Progress, status and completedAt that follow from a todo's subtask list.

    Progress is the rounded share of completed subtasks. Status follows it:
    all done moves the todo to completed, any progress moves a pending todo to
    in-progress, and no progress moves an in-progress todo back to pending.
    completedAt is only kept while the todo is completed.
    """
    done = count_completed(subtasks)

    if subtasks and done == len(subtasks):
        status = TodoStatus.COMPLETED
    elif done > 0 and status == TodoStatus.PENDING:
        status = TodoStatus.IN_PROGRESS
    elif done == 0 and status == TodoStatus.IN_PROGRESS:
        status = TodoStatus.PENDING

    return {
        "progress": percent(done, len(subtasks)),
        "status": status,
        "completed_at": (completed_at or now) if status == TodoStatus.COMPLETED else None,
    }


def subtask_toggle_changes(todo: Todo, subtask_id: str, completed: bool, now: str) -> dict[str, Any]:
    """Changes produced by checking or unchecking one subtask.

    Raises:
        NotFoundError: If the todo has no such subtask
    """
    subtasks = [subtask.model_dump() for subtask in todo.subtasks or []]
    for subtask in subtasks:
        if subtask["id"] == subtask_id:
            subtask["completed"] = completed
            subtask["completed_at"] = now if completed else None
            break
    else:
        raise NotFoundError("Subtask", subtask_id)

    return {"subtasks": subtasks, **subtask_status_changes(todo.status, subtasks, todo.completed_at, now)}


class TodoStore(CollectionStore[Todo]):
    """Cached todos for a UI."""

    label = "todos"

    def __init__(self, todo_service: TodoService) -> None:
        super().__init__()
        self._service = todo_service

    async def _fetch(self) -> list[Todo]:
        return await self._service.get_all()

    @property
    def todos(self) -> list[Todo]:
        return self.items

    @property
    def pending(self) -> list[Todo]:
        """Todos that are not completed (pending or in progress)."""
        return [todo for todo in self._items if todo.status != TodoStatus.COMPLETED]

    @property
    def completed(self) -> list[Todo]:
        return [todo for todo in self._items if todo.status == TodoStatus.COMPLETED]

    @property
    def overdue(self) -> list[Todo]:
        return self.overdue_at(utc_now())

    def overdue_at(self, now: datetime) -> list[Todo]:
        """Uncompleted todos with a due date before now."""
        if now.tzinfo is None:
            now = now.replace(tzinfo=UTC)
        overdue = []
        for todo in self.pending:
            if not todo.due_date:
                continue
            try:
                if parse_timestamp(todo.due_date) < now:
                    overdue.append(todo)
            except ValueError:
                logger.debug("Skipping todo with unparseable due date", extra={"todo_id": todo.id})
        return overdue

    def get(self, todo_id: str) -> Todo | None:
        """Cached todo by id."""
        return next((todo for todo in self._items if todo.id == todo_id), None)

    def by_project(self, project_id: str) -> list[Todo]:
        return [todo for todo in self._items if todo.project_id == project_id]

    async def add_todo(self, data: TodoCreate | dict[str, Any]) -> Todo:
        return await self._mutate("Failed to add todo", lambda: self._service.create(data=data))

    async def update_todo(self, todo_id: str, changes: TodoUpdate | dict[str, Any]) -> Todo:
        """Update a todo. A new subtask list moves progress, status and completedAt along with it."""
        return await self._mutate("Failed to update todo", lambda: self._update(todo_id, changes))

    async def _update(self, todo_id: str, changes: TodoUpdate | dict[str, Any]) -> Todo:
        fields = changes_of(parse_input(TodoUpdate, changes))
        subtasks = fields.get("subtasks")
        if isinstance(subtasks, list) and subtasks:
            current = self.get(todo_id) or await self._service.get_by_id(todo_id=todo_id)
            if current is not None:
                fields.update(
                    subtask_status_changes(
                        fields.get("status") or current.status,
                        subtasks,
                        fields.get("completed_at", current.completed_at),
                        now_iso(),
                    )
                )
        return await self._service.update(todo_id=todo_id, changes=fields)

    async def delete_todo(self, todo_id: str) -> None:
        await self._mutate("Failed to delete todo", lambda: self._service.delete(todo_id=todo_id))

    async def update_todo_status(self, todo_id: str, status: TodoStatus) -> Todo:
        return await self._mutate(
            "Failed to update todo status", lambda: self._service.update_status(todo_id=todo_id, status=status)
        )

    async def toggle_subtask(self, todo_id: str, subtask_id: str, completed: bool) -> Todo:
        """Check or uncheck a subtask and move the todo's progress and status along.

        Raises:
            NotFoundError: If the todo or subtask is unknown
        """
        todo = self.get(todo_id) or await self._service.get_by_id(todo_id=todo_id)
        if todo is None:
            self.error = "Failed to update todo"
            raise NotFoundError("Todo", todo_id)

        changes = subtask_toggle_changes(todo, subtask_id, completed, now_iso())
        return await self.update_todo(todo_id, changes)
