"""Application settings singleton."""

from enum import StrEnum

from pydantic import Field

from taskflow.core.config import Constants
from taskflow.domain.base import DomainModel


class Theme(StrEnum):
    """Colour theme preference."""

    LIGHT = "light"
    DARK = "dark"
    SYSTEM = "system"


class WorkingHours(DomainModel):
    """Daily working window (HH:MM)."""

    start: str = Constants.DEFAULT_WORKING_HOURS_START
    end: str = Constants.DEFAULT_WORKING_HOURS_END


class AppSettings(DomainModel):
    """User-facing application settings."""

    theme: Theme = Theme.SYSTEM
    notifications: bool = True
    completion_goal: int = Field(default=Constants.DEFAULT_COMPLETION_GOAL, description="Daily completion goal")
    working_hours: WorkingHours = Field(default_factory=WorkingHours)
    use_server_storage: bool = True


class AppSettingsUpdate(DomainModel):
    """Partial update for application settings."""

    theme: Theme | None = None
    notifications: bool | None = None
    completion_goal: int | None = None
    working_hours: WorkingHours | None = None
    use_server_storage: bool | None = None
