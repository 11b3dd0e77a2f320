"""Logging and observability configuration using Pydantic Logfire.

All modules use Python's standard logging library (logging.getLogger(__name__));
Logfire captures and enriches those records once configured.

Standard usage:
    import logging
    logger = logging.getLogger(__name__)
    logger.info("todo_created", extra={"todo_id": "123"})

Structured logging utilities:
    log_with_context(logger, "info", "Message", entity="todos", backend="local")
"""

import logging

import logfire
from fastapi import FastAPI

from taskflow.core.config import settings


def configure_logfire() -> None:
    """Configure Pydantic Logfire with token from environment."""
    logfire.configure(
        token=settings.logfire_token,
        service_name="taskflow",
        service_version="0.1.0",
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )

    logger = logging.getLogger(__name__)
    logger.info("Logfire configured successfully")


def instrument_fastapi(app: FastAPI) -> None:
    """Add Logfire instrumentation to FastAPI application."""
    logfire.instrument_fastapi(app)
    logger = logging.getLogger(__name__)
    logger.info("FastAPI instrumentation configured")


def span(name: str) -> logfire.LogfireSpan:
    """Create a custom span for service layer functions.

    Usage:
        with span("todo_service.create"):
            ...
    """
    return logfire.span(name)


def log_with_context(
    logger: logging.Logger,
    level: str,
    message: str,
    **context: object,
) -> None:
    """Log a message with structured context fields.

    Args:
        logger: Logger instance to use
        level: Log level ("debug", "info", "warning", "error", "critical")
        message: Log message
        **context: Additional context fields (entity, record_id, backend, etc.)
    """
    log_method = getattr(logger, level.lower())
    log_method(message, extra=context)


def log_with_entity_context(
    logger: logging.Logger,
    level: str,
    message: str,
    entity: str | None = None,
    **extra: object,
) -> None:
    """Log a message tagged with the storage entity it concerns.

    Usage:
        log_with_entity_context(logger, "warning", "server_write_failed", entity="todos", status=502)
    """
    context = {"entity": entity, **extra} if entity else extra
    log_with_context(logger, level, message, **context)
