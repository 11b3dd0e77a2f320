"""Project domain models and enums."""

from enum import StrEnum

from pydantic import Field, field_validator, model_validator

from taskflow.core.config import Constants
from taskflow.core.identifiers import parse_timestamp
from taskflow.domain.base import DomainModel, Priority, check_date


class ProjectStatus(StrEnum):
    """Project lifecycle status."""

    PLANNING = "planning"
    ACTIVE = "active"
    ON_HOLD = "on-hold"
    COMPLETED = "completed"
    ARCHIVED = "archived"


class ResourceType(StrEnum):
    """Kind of project resource."""

    FILE = "file"
    LINK = "link"
    NOTE = "note"


class RiskStatus(StrEnum):
    """Risk tracking status."""

    IDENTIFIED = "identified"
    MITIGATED = "mitigated"
    OCCURRED = "occurred"
    RESOLVED = "resolved"


class Milestone(DomainModel):
    """Milestone embedded in a project."""

    id: str
    title: str
    description: str | None = None
    due_date: str = ""
    completed: bool = False
    completed_at: str | None = None
    todo_ids: list[str] = Field(default_factory=list)
    created_at: str
    updated_at: str


class ProjectResource(DomainModel):
    """File, link or note attached to a project."""

    id: str
    name: str
    type: ResourceType
    url: str
    created_at: str
    updated_at: str


class ProjectRisk(DomainModel):
    """Risk register entry embedded in a project."""

    id: str
    title: str
    description: str | None = None
    impact: Priority
    probability: Priority
    status: RiskStatus = RiskStatus.IDENTIFIED
    created_at: str
    updated_at: str


class Project(DomainModel):
    """Project record as persisted in the projects collection."""

    id: str = Field(..., description="Unique project ID")
    name: str = Field(..., description="Project name")
    description: str | None = None
    status: ProjectStatus = Field(default=ProjectStatus.PLANNING, description="Lifecycle status")
    color: str | None = None
    owner: str | None = None
    tags: list[str] | None = None
    start_date: str | None = None
    due_date: str | None = None
    completed_at: str | None = None
    todo_ids: list[str] = Field(default_factory=list, description="Member todos (non-owning)")
    progress: int = Field(default=0, description="Percent of member todos completed")
    milestones: list[Milestone] = Field(default_factory=list)
    resources: list[ProjectResource] | None = None
    risks: list[ProjectRisk] | None = None
    velocity: float | None = Field(default=None, description="Average tasks completed per week")
    time_spent: int | None = Field(default=None, description="Time spent in minutes")
    created_at: str
    updated_at: str

    @field_validator("name")
    @classmethod
    def validate_name(cls, v: str) -> str:
        """Name is required and bounded."""
        if not v or not v.strip():
            raise ValueError("Project name is required")
        if len(v) > Constants.MAX_TITLE_LENGTH:
            raise ValueError(f"Project name must be {Constants.MAX_TITLE_LENGTH} characters or less")
        return v

    @field_validator("description")
    @classmethod
    def validate_description(cls, v: str | None) -> str | None:
        """Description is bounded."""
        if v and len(v) > Constants.MAX_DESCRIPTION_LENGTH:
            raise ValueError(f"Project description must be {Constants.MAX_DESCRIPTION_LENGTH} characters or less")
        return v

    @field_validator("due_date")
    @classmethod
    def validate_due_date(cls, v: str | None) -> str | None:
        return check_date(v, "Invalid due date")

    @field_validator("start_date")
    @classmethod
    def validate_start_date(cls, v: str | None) -> str | None:
        return check_date(v, "Invalid start date")

    @model_validator(mode="after")
    def validate_date_order(self) -> "Project":
        """Start date must not be after the due date."""
        if self.start_date and self.due_date:
            if parse_timestamp(self.start_date) > parse_timestamp(self.due_date):
                raise ValueError("Start date must be before due date")
        return self


class MilestoneCreate(DomainModel):
    """Payload for adding a milestone."""

    title: str
    description: str | None = None
    due_date: str = ""
    completed: bool = False
    todo_ids: list[str] = Field(default_factory=list)


class MilestoneUpdate(DomainModel):
    """Partial update for a milestone."""

    title: str | None = None
    description: str | None = None
    due_date: str | None = None
    completed: bool | None = None
    completed_at: str | None = None
    todo_ids: list[str] | None = None


class ResourceCreate(DomainModel):
    """Payload for adding a project resource."""

    name: str
    type: ResourceType
    url: str


class ResourceUpdate(DomainModel):
    """Partial update for a project resource."""

    name: str | None = None
    type: ResourceType | None = None
    url: str | None = None


class RiskCreate(DomainModel):
    """Payload for adding a project risk."""

    title: str
    description: str | None = None
    impact: Priority
    probability: Priority
    status: RiskStatus = RiskStatus.IDENTIFIED


class RiskUpdate(DomainModel):
    """Partial update for a project risk."""

    title: str | None = None
    description: str | None = None
    impact: Priority | None = None
    probability: Priority | None = None
    status: RiskStatus | None = None


class ProjectCreate(DomainModel):
    """Payload for creating a project."""

    name: str = ""
    description: str | None = None
    status: ProjectStatus = ProjectStatus.PLANNING
    color: str | None = None
    owner: str | None = None
    tags: list[str] | None = None
    start_date: str | None = None
    due_date: str | None = None
    initial_milestones: list[MilestoneCreate] | None = None


class ProjectUpdate(DomainModel):
    """Partial update for a project. Membership and progress are owned by the service."""

    name: str | None = None
    description: str | None = None
    status: ProjectStatus | None = None
    color: str | None = None
    owner: str | None = None
    tags: list[str] | None = None
    start_date: str | None = None
    due_date: str | None = None
    completed_at: str | None = None
    velocity: float | None = None
    time_spent: int | None = None
