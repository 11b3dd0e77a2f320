"""Domain models and DTOs."""

from taskflow.domain.base import DomainModel, ImageAttachment, ImageCreate, Priority
from taskflow.domain.note import ContentType, Note, NoteCreate, NoteUpdate, NoteVersion
from taskflow.domain.notification import (
    NotificationCategory,
    NotificationCreate,
    NotificationData,
    NotificationPreference,
    NotificationPreferenceUpdate,
    NotificationType,
)
from taskflow.domain.project import (
    Milestone,
    MilestoneCreate,
    MilestoneUpdate,
    Project,
    ProjectCreate,
    ProjectResource,
    ProjectRisk,
    ProjectStatus,
    ProjectUpdate,
    ResourceCreate,
    ResourceUpdate,
    RiskCreate,
    RiskUpdate,
)
from taskflow.domain.settings import AppSettings, AppSettingsUpdate, Theme, WorkingHours
from taskflow.domain.todo import SubTask, Todo, TodoCreate, TodoStatus, TodoUpdate


__all__ = [
    "AppSettings",
    "AppSettingsUpdate",
    "ContentType",
    "DomainModel",
    "ImageAttachment",
    "ImageCreate",
    "Milestone",
    "MilestoneCreate",
    "MilestoneUpdate",
    "Note",
    "NoteCreate",
    "NoteUpdate",
    "NoteVersion",
    "NotificationCategory",
    "NotificationCreate",
    "NotificationData",
    "NotificationPreference",
    "NotificationPreferenceUpdate",
    "NotificationType",
    "Priority",
    "Project",
    "ProjectCreate",
    "ProjectResource",
    "ProjectRisk",
    "ProjectStatus",
    "ProjectUpdate",
    "ResourceCreate",
    "ResourceUpdate",
    "RiskCreate",
    "RiskUpdate",
    "SubTask",
    "Theme",
    "Todo",
    "TodoCreate",
    "TodoStatus",
    "TodoUpdate",
    "WorkingHours",
]
