from taskflow.services.note_service import NoteService
from taskflow.services.notification_service import NotificationService
from taskflow.services.project_service import ProjectService
from taskflow.services.settings_service import SettingsService
from taskflow.services.todo_service import TodoService


__all__ = [
    "NoteService",
    "NotificationService",
    "ProjectService",
    "SettingsService",
    "TodoService",
]
