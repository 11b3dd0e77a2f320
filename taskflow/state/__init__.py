from taskflow.state.app_state import AppDataState
from taskflow.state.note_store import NoteStore
from taskflow.state.notification_store import NotificationStore
from taskflow.state.project_store import ProjectStore
from taskflow.state.todo_store import TodoStore


__all__ = [
    "AppDataState",
    "NoteStore",
    "NotificationStore",
    "ProjectStore",
    "TodoStore",
]
