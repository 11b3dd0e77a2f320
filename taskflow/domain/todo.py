"""Todo domain models and enums."""

from enum import StrEnum
from typing import Any

from pydantic import Field, field_validator

from taskflow.core.config import Constants
from taskflow.domain.base import DomainModel, ImageAttachment, Priority, check_date, check_list


class TodoStatus(StrEnum):
    """Todo lifecycle status."""

    PENDING = "pending"
    IN_PROGRESS = "in-progress"
    COMPLETED = "completed"


class SubTask(DomainModel):
    """Checklist item embedded in a todo."""

    id: str
    title: str
    completed: bool = False
    created_at: str
    completed_at: str | None = None


class Todo(DomainModel):
    """Todo record as persisted in the todos collection."""

    id: str = Field(..., description="Unique todo ID")
    title: str = Field(..., description="Todo title")
    description: str | None = Field(default=None, description="Free-form description")
    status: TodoStatus = Field(default=TodoStatus.PENDING, description="Lifecycle status")
    priority: Priority = Field(default=Priority.MEDIUM, description="Priority")
    due_date: str | None = Field(default=None, description="Due date (ISO format)")
    start_date: str | None = Field(default=None, description="Start date (ISO format)")
    created_at: str
    updated_at: str
    project_id: str | None = Field(default=None, description="Owning project (non-owning back-reference)")
    tags: list[str] | None = None
    subtasks: list[SubTask] | None = None
    images: list[ImageAttachment] | None = None
    progress: int | None = Field(default=None, description="Percent complete, derived from subtasks")
    completed_at: str | None = None
    category: str | None = None
    depends_on: list[str] | None = Field(default=None, description="IDs of todos this one depends on")

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Title is required and bounded."""
        if not v or not v.strip():
            raise ValueError("Todo title is required")
        if len(v) > Constants.MAX_TITLE_LENGTH:
            raise ValueError(f"Todo title must be {Constants.MAX_TITLE_LENGTH} characters or less")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str | None) -> str | None:
        """Description is bounded."""
        if v and len(v) > Constants.MAX_DESCRIPTION_LENGTH:
            raise ValueError(f"Todo description must be {Constants.MAX_DESCRIPTION_LENGTH} characters or less")
        return v

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v: str | None) -> str | None:
        """Due date must parse."""
        return check_date(v, "Invalid due date")

    @field_validator("start_date")
    @classmethod
    def validate_start_date(cls, v: str | None) -> str | None:
        """Start date must parse."""
        return check_date(v, "Invalid start date")

    @field_validator("subtasks", mode="before")
    @classmethod
    def validate_subtasks_list(cls, v: Any) -> Any:
        return check_list(v, "Subtasks must be an array")

    @field_validator("tags", mode="before")
    @classmethod
    def validate_tags_list(cls, v: Any) -> Any:
        return check_list(v, "Tags must be an array")

    @field_validator("images", mode="before")
    @classmethod
    def validate_images_list(cls, v: Any) -> Any:
        return check_list(v, "Images must be an array")


class TodoCreate(DomainModel):
    """Payload for creating a todo. Everything but the title is optional."""

    title: str = ""
    description: str | None = None
    status: TodoStatus = TodoStatus.PENDING
    priority: Priority = Priority.MEDIUM
    due_date: str | None = None
    start_date: str | None = None
    project_id: str | None = None
    tags: Any = None
    subtasks: Any = None
    images: Any = None
    progress: int | None = None
    completed_at: str | None = None
    category: str | None = None
    depends_on: list[str] | None = None


class TodoUpdate(DomainModel):
    """Partial update for a todo. Only explicitly set fields are applied."""

    title: str | None = None
    description: str | None = None
    status: TodoStatus | None = None
    priority: Priority | None = None
    due_date: str | None = None
    start_date: str | None = None
    project_id: str | None = None
    tags: Any = None
    subtasks: Any = None
    images: Any = None
    progress: int | None = None
    completed_at: str | None = None
    category: str | None = None
    depends_on: list[str] | None = None
