"""Note domain models."""

from enum import StrEnum

from pydantic import Field, field_validator

from taskflow.core.config import Constants
from taskflow.domain.base import DomainModel, ImageAttachment


class ContentType(StrEnum):
    """Note body format."""

    MARKDOWN = "markdown"
    RICHTEXT = "richtext"


class Note(DomainModel):
    """Note record as persisted in the notes collection."""

    id: str
    title: str
    content: str = Field(default="", description="Markdown or rich text body")
    content_type: ContentType = ContentType.MARKDOWN
    tags: list[str] | None = None
    images: list[ImageAttachment] | None = None
    project_id: str | None = None
    todo_id: str | None = Field(default=None, description="Primary related todo")
    folder: str | None = None
    color: str | None = None
    is_favorite: bool | None = None
    related_notes: list[str] | None = None
    related_todos: list[str] | None = Field(default=None, description="Related todos beyond todo_id")
    version: int = 1
    last_edited_at: str
    created_at: str
    updated_at: str

    @field_validator("title")
    @classmethod
    def validate_title(cls, v: str) -> str:
        """Title is required and bounded."""
        if not v or not v.strip():
            raise ValueError("Note title is required")
        if len(v) > Constants.MAX_NOTE_TITLE_LENGTH:
            raise ValueError(f"Note title must be {Constants.MAX_NOTE_TITLE_LENGTH} characters or less")
        return v


class NoteVersion(DomainModel):
    """Archived content of a note before an update."""

    id: str
    note_id: str
    content: str
    timestamp: str
    author: str | None = None


class NoteCreate(DomainModel):
    """Payload for creating a note."""

    title: str = ""
    content: str = ""
    content_type: ContentType = ContentType.MARKDOWN
    tags: list[str] | None = None
    images: list[ImageAttachment] | None = None
    project_id: str | None = None
    todo_id: str | None = None
    folder: str | None = None
    color: str | None = None
    is_favorite: bool | None = None
    related_notes: list[str] | None = None
    related_todos: list[str] | None = None


class NoteUpdate(DomainModel):
    """Partial update for a note."""

    title: str | None = None
    content: str | None = None
    content_type: ContentType | None = None
    tags: list[str] | None = None
    project_id: str | None = None
    todo_id: str | None = None
    folder: str | None = None
    color: str | None = None
    is_favorite: bool | None = None
    related_notes: list[str] | None = None
    related_todos: list[str] | None = None
