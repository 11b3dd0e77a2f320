"""Aggregate application state: the four stores, settings and theme."""

import asyncio
import logging
from collections.abc import Callable
from typing import Any

from taskflow.core.errors import NotFoundError, ValidationError
from taskflow.domain.base import changes_of, parse_input
from taskflow.domain.project import Project
from taskflow.domain.settings import AppSettings, AppSettingsUpdate, Theme
from taskflow.domain.todo import Todo, TodoStatus, TodoUpdate
from taskflow.services.settings_service import SettingsService
from taskflow.state.note_store import NoteStore
from taskflow.state.notification_store import NotificationStore
from taskflow.state.project_store import ProjectStore
from taskflow.state.todo_store import TodoStore


logger = logging.getLogger(__name__)

ThemeListener = Callable[[Theme], None]


class AppDataState:
    """Everything a UI needs, in one place.

    ``loading`` is true while settings or any store is loading. ``error`` is
    the first error reported by settings or a store. Todo changes that affect
    a project (status, membership, deletion) recompute that project's progress.
    """

    def __init__(
        self,
        *,
        todos: TodoStore,
        projects: ProjectStore,
        notes: NoteStore,
        notifications: NotificationStore,
        settings_service: SettingsService,
        prefers_dark: Callable[[], bool] | None = None,
    ) -> None:
        """Compose the stores.

        Args:
            todos: Todo store
            projects: Project store
            notes: Note store
            notifications: Notification store
            settings_service: Settings singleton access
            prefers_dark: Callback reporting the system colour preference, used for the "system" theme
        """
        self.todos = todos
        self.projects = projects
        self.notes = notes
        self.notifications = notifications
        self._settings_service = settings_service
        self._prefers_dark = prefers_dark or (lambda: False)

        self.settings: AppSettings | None = None
        self.is_initialized = False
        self._loading = True
        self._error: str | None = None
        self._theme_listeners: list[ThemeListener] = []
        self._applied_theme: Theme | None = None

    @property
    def loading(self) -> bool:
        return self._loading or any(
            store.loading for store in (self.todos, self.projects, self.notes, self.notifications)
        )

    @property
    def error(self) -> str | None:
        for error in (self._error, self.todos.error, self.projects.error, self.notes.error, self.notifications.error):
            if error:
                return error
        return None

    async def initialize(self) -> None:
        """Load settings, then every store."""
        await self.load_settings()
        await asyncio.gather(
            self.todos.refresh(),
            self.projects.refresh(),
            self.notes.refresh(),
            self.notifications.refresh(),
        )
        logger.info(
            "App state initialized",
            extra={"todos": len(self.todos.items), "projects": len(self.projects.items)},
        )

    async def load_settings(self) -> AppSettings:
        """Load settings, falling back to the defaults on failure."""
        self._loading = True
        self._error = None
        try:
            self.settings = await self._settings_service.get()
            self.is_initialized = True
        except Exception as e:
            logger.error("settings_load_failed", extra={"error": str(e)})
            self._error = "Failed to load application settings"
            self.settings = AppSettings()
        finally:
            self._loading = False

        self._apply_theme()
        return self.settings

    async def update_settings(self, changes: AppSettingsUpdate | dict[str, Any]) -> AppSettings:
        """Merge and persist settings.

        Raises:
            Exception: Whatever the settings service raised, after recording the error
        """
        self._error = None
        try:
            self.settings = await self._settings_service.update(changes=changes)
        except Exception as e:
            logger.error("settings_update_failed", extra={"error": str(e)})
            self._error = "Failed to update settings"
            raise

        self._apply_theme()
        return self.settings

    async def update_theme(self, theme: Theme) -> AppSettings:
        return await self.update_settings({"theme": theme})

    async def update_notifications(self, enabled: bool) -> AppSettings:
        return await self.update_settings({"notifications": enabled})

    def add_theme_listener(self, listener: ThemeListener) -> None:
        """Register a callback receiving the resolved theme (light or dark) whenever it changes."""
        self._theme_listeners.append(listener)
        if self._applied_theme is not None:
            listener(self._applied_theme)

    @property
    def resolved_theme(self) -> Theme:
        """The concrete theme to render, with "system" resolved through the system preference callback."""
        theme = self.settings.theme if self.settings else Theme.SYSTEM
        if theme == Theme.SYSTEM:
            return Theme.DARK if self._prefers_dark() else Theme.LIGHT
        return theme

    def _apply_theme(self) -> None:
        theme = self.resolved_theme
        if theme == self._applied_theme:
            return
        self._applied_theme = theme
        for listener in list(self._theme_listeners):
            try:
                listener(theme)
            except Exception as e:
                logger.warning("theme_listener_failed", extra={"error": str(e)})

    async def _recompute_progress(self, project_id: str | None) -> None:
        if project_id and self.projects.get(project_id) is not None:
            await self.projects.update_project_progress(project_id)

    async def update_todo(self, todo_id: str, changes: TodoUpdate | dict[str, Any]) -> Todo:
        """Update a todo; a status change refreshes its project's progress.

        A projectId change goes through project membership so the project's
        todoIds and progress stay in step with the todo.

        Raises:
            Exception: Whatever the stores raised, after recording the error
        """
        try:
            fields = changes_of(parse_input(TodoUpdate, changes))
        except ValidationError:
            self.todos.error = "Failed to update todo"
            raise

        previous = self.todos.get(todo_id)
        if "project_id" in fields:
            project_id = fields.pop("project_id")
            if previous is None:
                await self.todos.refresh()
                previous = self.todos.get(todo_id)
            await self._move_todo(todo_id, previous, project_id)

        if not fields:
            updated = self.todos.get(todo_id)
            if updated is None:
                raise NotFoundError("Todo", todo_id)
            return updated

        updated = await self.todos.update_todo(todo_id, fields)
        if previous is None or previous.status != updated.status:
            await self._recompute_progress(updated.project_id)
        return updated

    async def _move_todo(self, todo_id: str, previous: Todo | None, project_id: str | None) -> None:
        if project_id:
            await self.add_todo_to_project(project_id, todo_id)
        elif previous is not None and previous.project_id and self.projects.get(previous.project_id) is not None:
            await self.remove_todo_from_project(previous.project_id, todo_id)
        else:
            await self.todos.update_todo(todo_id, {"project_id": None})

    async def update_todo_status(self, todo_id: str, status: TodoStatus) -> Todo:
        updated = await self.todos.update_todo_status(todo_id, status)
        await self._recompute_progress(updated.project_id)
        return updated

    async def toggle_subtask(self, todo_id: str, subtask_id: str, completed: bool) -> Todo:
        previous = self.todos.get(todo_id)
        updated = await self.todos.toggle_subtask(todo_id, subtask_id, completed)
        if previous is None or previous.status != updated.status:
            await self._recompute_progress(updated.project_id)
        return updated

    async def delete_todo(self, todo_id: str) -> None:
        """Delete a todo, first removing it from its project."""
        todo = self.todos.get(todo_id)
        if todo is not None and todo.project_id and self.projects.get(todo.project_id) is not None:
            await self.projects.remove_todo_from_project(todo.project_id, todo_id)
        await self.todos.delete_todo(todo_id)

    async def add_todo_to_project(self, project_id: str, todo_id: str) -> Project:
        project = await self.projects.add_todo_to_project(project_id, todo_id)
        await self.todos.refresh()
        return project

    async def remove_todo_from_project(self, project_id: str, todo_id: str) -> Project:
        project = await self.projects.remove_todo_from_project(project_id, todo_id)
        await self.todos.refresh()
        return project
