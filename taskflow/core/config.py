"""Configuration management for taskflow."""

from enum import StrEnum
from pathlib import Path

from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class NoteHistoryCleanup(StrEnum):
    """What happens to a note's version history when the note is deleted."""

    CLEAR = "clear"  # Overwrite the history collection with an empty list
    REMOVE = "remove"  # Drop the history key entirely
    RETAIN = "retain"  # Leave history in place


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_prefix="TASKFLOW_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Server-side file storage
    data_dir: Path = Field(default=Path("data"), description="Root directory for per-entity JSON files")

    # Client-side storage gateway
    api_base_url: str = Field(
        default="http://127.0.0.1:8000/api/storage", description="Base URL of the storage API"
    )
    use_server_storage: bool = Field(default=True, description="Try the storage API before local storage")
    fallback_to_local: bool = Field(
        default=True, description="Degrade to local storage when the storage API fails"
    )
    local_storage_path: Path | None = Field(
        default=None, description="JSON file backing local storage (in-memory only when unset)"
    )
    storage_key_prefix: str = Field(default="taskflow_data", description="Key prefix for local storage entries")

    # Notes
    note_history_cleanup: NoteHistoryCleanup = Field(
        default=NoteHistoryCleanup.CLEAR, description="Version history policy applied when a note is deleted"
    )

    # Pydantic Logfire Configuration (optional)
    logfire_token: str | None = Field(default=None, description="Pydantic Logfire token for observability")
    environment: str = Field(default="development", description="Deployment environment name")

    @property
    def is_production(self) -> bool:
        """Check whether the app runs in production."""
        return self.environment.lower() == "production"


# Application Constants
class Constants:
    """Application-wide constants."""

    # API Configuration
    API_TIMEOUT_SECONDS: float = 10.0

    # HTTP Status Codes
    HTTP_OK: int = 200
    HTTP_BAD_REQUEST: int = 400
    HTTP_NOT_FOUND: int = 404
    HTTP_SERVER_ERROR: int = 500

    # Validation limits
    MAX_TITLE_LENGTH: int = 100
    MAX_DESCRIPTION_LENGTH: int = 500
    MAX_NOTE_TITLE_LENGTH: int = 200

    # Defaults
    DEFAULT_PROJECT_COLOR: str = "#3b82f6"
    DEFAULT_COMPLETION_GOAL: int = 5
    DEFAULT_WORKING_HOURS_START: str = "09:00"
    DEFAULT_WORKING_HOURS_END: str = "17:00"

    # Storage layout
    DEFAULT_DATA_FILENAME: str = "data.json"
    METADATA_ENTITY: str = "metadata"
    NOTE_VERSIONS_PREFIX: str = "note_versions_"

    # Paths
    PROJECT_ROOT: Path = Path(__file__).parent.parent.parent


def get_settings() -> Settings:
    """Get application settings (singleton pattern)."""
    return Settings()


# Global settings instance
settings = get_settings()
constants = Constants()
