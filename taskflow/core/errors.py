"""Error taxonomy for the data layer and its HTTP classification."""

from enum import Enum

import pydantic
from pydantic import BaseModel


class TaskflowError(Exception):
    """Base class for all taskflow errors."""


class ValidationError(TaskflowError):
    """Input has the wrong shape or an out-of-range value."""

    def __init__(self, message: str) -> None:
        super().__init__(message)
        self.message = message


class NotFoundError(TaskflowError, KeyError):
    """A referenced record does not exist."""

    def __init__(self, entity: str, record_id: str) -> None:
        super().__init__(f"{entity} with id {record_id} not found")
        self.entity = entity
        self.record_id = record_id

    def __str__(self) -> str:
        # KeyError quotes its argument; keep the plain message
        return str(self.args[0])


class StorageWriteFailed(TaskflowError):
    """Persisting data failed and could not be degraded to local storage."""

    def __init__(self, entity: str, reason: str = "") -> None:
        message = f"Failed to save {entity} data"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.entity = entity


class StorageReadFailed(TaskflowError):
    """Reading data failed. Absorbed by the gateway, never reaches services."""

    def __init__(self, entity: str, reason: str = "") -> None:
        message = f"Failed to read {entity} data"
        if reason:
            message = f"{message}: {reason}"
        super().__init__(message)
        self.entity = entity


def validation_error_from_pydantic(exc: pydantic.ValidationError) -> ValidationError:
    """Collapse a pydantic error into a single human message."""
    first = exc.errors()[0]
    message = str(first.get("msg", "Invalid value"))
    # Custom validators raise ValueError, which pydantic prefixes
    message = message.removeprefix("Value error, ")
    location = ".".join(str(part) for part in first.get("loc", ()))
    if first.get("type") != "value_error" and location:
        message = f"Invalid {location}: {message}"
    return ValidationError(message)


class ErrorSeverity(Enum):
    """Severity levels for errors."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"
    CRITICAL = "critical"


class ErrorCode:
    """Error codes for specific error conditions."""

    ERR_VALIDATION = "ERR_VALIDATION"
    ERR_NOT_FOUND = "ERR_NOT_FOUND"
    ERR_STORAGE_WRITE = "ERR_STORAGE_WRITE"
    ERR_STORAGE_READ = "ERR_STORAGE_READ"
    ERR_UNKNOWN = "ERR_UNKNOWN"


class ErrorResponse(BaseModel):
    """Structured error response with user-friendly messaging."""

    code: str
    message: str
    suggestion: str
    severity: ErrorSeverity


def classify_error_with_response(exception: Exception) -> ErrorResponse:
    """Classify an error and return a structured response with recovery suggestions."""
    if isinstance(exception, ValidationError):
        return ErrorResponse(
            code=ErrorCode.ERR_VALIDATION,
            message=exception.message,
            suggestion="Correct the highlighted field and try again.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, NotFoundError):
        return ErrorResponse(
            code=ErrorCode.ERR_NOT_FOUND,
            message=str(exception),
            suggestion="Refresh to load the latest data.",
            severity=ErrorSeverity.LOW,
        )

    if isinstance(exception, StorageWriteFailed):
        return ErrorResponse(
            code=ErrorCode.ERR_STORAGE_WRITE,
            message=str(exception),
            suggestion="Check that the storage server is reachable, or enable local fallback.",
            severity=ErrorSeverity.HIGH,
        )

    if isinstance(exception, StorageReadFailed):
        return ErrorResponse(
            code=ErrorCode.ERR_STORAGE_READ,
            message=str(exception),
            suggestion="The data file may be corrupt. Restore it from a backup.",
            severity=ErrorSeverity.MEDIUM,
        )

    return ErrorResponse(
        code=ErrorCode.ERR_UNKNOWN,
        message="An unexpected error occurred.",
        suggestion="Please try again later.",
        severity=ErrorSeverity.MEDIUM,
    )
