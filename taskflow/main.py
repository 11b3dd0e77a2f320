"""taskflow - storage API server for todos, projects, notes and notifications."""

import logging
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse

from taskflow.core.config import Constants, settings
from taskflow.core.errors import ErrorCode, TaskflowError, classify_error_with_response
from taskflow.core.logging import configure_logfire, instrument_fastapi
from taskflow.interface.storage_router import get_file_store, router as storage_router


logger = logging.getLogger(__name__)

_STATUS_BY_CODE = {
    ErrorCode.ERR_VALIDATION: Constants.HTTP_BAD_REQUEST,
    ErrorCode.ERR_NOT_FOUND: Constants.HTTP_NOT_FOUND,
}


def validate_startup_configuration() -> None:
    """Make sure the data directory is usable before serving requests.

    Raises:
        OSError: If the data directory cannot be created
    """
    store = get_file_store()
    logger.info("startup_validation", extra={"stage": "data_dir", "path": str(store.data_dir), "status": "ok"})


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Configure logging first so validation logs are captured
    configure_logfire()
    validate_startup_configuration()
    logger.info("startup_complete", extra={"environment": settings.environment})
    yield
    logger.info("shutdown_complete")


app = FastAPI(
    title="taskflow",
    description="JSON document storage for the taskflow data layer",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)

app.include_router(storage_router)


@app.exception_handler(TaskflowError)
async def taskflow_error_handler(_request: Request, exc: TaskflowError) -> JSONResponse:
    """Turn uncaught domain errors into structured JSON."""
    classified = classify_error_with_response(exc)
    status_code = _STATUS_BY_CODE.get(classified.code, Constants.HTTP_SERVER_ERROR)
    logger.error("request_failed", extra={"code": classified.code, "error": str(exc)})
    return JSONResponse(
        content={"error": classified.message, "code": classified.code, "suggestion": classified.suggestion},
        status_code=status_code,
    )


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=Constants.HTTP_OK)
