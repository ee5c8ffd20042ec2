"""task-scheduler - personal task and routine scheduling with time tracking."""

import logging
import sys
from collections.abc import AsyncIterator
from contextlib import asynccontextmanager

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.responses import JSONResponse

from src.core.config import DEV_SECRET_KEY, settings
from src.core.db_client import close_connection, init_db
from src.core.errors import AppError, DomainValidationError, build_error_response
from src.core.logging import configure_logfire, instrument_fastapi
from src.interface.auth import router as auth_router
from src.interface.ci_router import router as ci_router
from src.interface.routine_router import router as routine_router
from src.interface.task_router import router as task_router


logger = logging.getLogger(__name__)


def validate_startup_configuration() -> None:
    """Validate credentials that production deployments must override.

    Raises:
        ValueError: If the session secret is missing or still the development default
    """
    if not settings.is_production:
        return

    secret = settings.require_credential("secret_key", "Session secret")
    if secret == DEV_SECRET_KEY:
        raise ValueError("Session secret is the development default. Set SECRET_KEY environment variable.")
    logger.info("startup_validation", extra={"stage": "credentials", "status": "ok"})


@asynccontextmanager
async def lifespan(_app: FastAPI) -> AsyncIterator[None]:
    """Application lifespan context manager."""
    # Configure logging first so validation logs are captured
    configure_logfire()

    try:
        validate_startup_configuration()
    except ValueError as e:
        logger.error("startup_validation_failed", extra={"error": str(e)})
        print(f"\nStartup validation failed: {e}\n", file=sys.stderr)  # noqa: T201
        sys.exit(1)

    await init_db()
    logger.info("Database initialized")
    yield
    # Shutdown
    await close_connection()


app = FastAPI(
    title="task-scheduler",
    description="Personal task and routine scheduling with time tracking",
    version="0.1.0",
    lifespan=lifespan,
)

# Instrument FastAPI with Logfire
instrument_fastapi(app)


def _error_response(exception: Exception) -> JSONResponse:
    status_code, body = build_error_response(exception, locale=settings.locale)
    return JSONResponse(content=body.model_dump(), status_code=status_code)


@app.exception_handler(AppError)
async def handle_app_error(request: Request, exc: AppError) -> JSONResponse:
    logger.info(
        "request_failed",
        extra={"path": request.url.path, "code": exc.code, "detail": str(exc)},
    )
    return _error_response(exc)


@app.exception_handler(RequestValidationError)
async def handle_request_validation_error(request: Request, exc: RequestValidationError) -> JSONResponse:
    logger.info("request_validation_failed", extra={"path": request.url.path, "errors": str(exc.errors())})
    return _error_response(DomainValidationError(str(exc)))


@app.exception_handler(Exception)
async def handle_unexpected_error(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("request_internal_error", extra={"path": request.url.path})
    return _error_response(exc)


# Register routers
app.include_router(auth_router)
app.include_router(task_router)
app.include_router(routine_router)
app.include_router(ci_router)


@app.get("/health")
async def health_check() -> JSONResponse:
    """Health check endpoint."""
    return JSONResponse(content={"status": "healthy"}, status_code=200)
