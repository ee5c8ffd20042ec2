"""Logging setup for the API server and the CI commands.

Modules log through the standard library (``logging.getLogger(__name__)``)
with structured fields in ``extra``. In the server those records are
forwarded to Pydantic Logfire; the CI commands print bare messages instead.

    logger = logging.getLogger(__name__)
    logger.info("Task started", extra={"task_id": "42"})
    log_with_user_context(logger, "info", "Task started", user_id="7", task_id="42")
"""

import logging

import logfire
from fastapi import FastAPI

from src.core.config import settings


SERVICE_NAME = "task-scheduler"
SERVICE_VERSION = "0.1.0"


def configure_logfire() -> None:
    """Configure Logfire for the API server.

    Spans are only exported when ``LOGFIRE_TOKEN`` is set; standard logging
    records go through Logfire's handler either way.
    """
    logfire.configure(
        token=settings.logfire_token,
        service_name=SERVICE_NAME,
        service_version=SERVICE_VERSION,
        environment=settings.environment,
        send_to_logfire="if-token-present",
    )
    logging.basicConfig(handlers=[logfire.LogfireLoggingHandler()], level=logging.INFO)
    logging.getLogger(__name__).info("Logfire configured", extra={"environment": settings.environment})


def configure_cli_logging(*, quiet: bool = False, verbose: bool = False) -> int:
    """Plain ``%(message)s`` console logging for the CI commands.

    Returns:
        The level that was applied
    """
    level = logging.WARNING if quiet else logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(level=level, format="%(message)s")
    logging.getLogger().setLevel(level)
    return level


def instrument_fastapi(app: FastAPI) -> None:
    """Trace every request handled by the app."""
    logfire.instrument_fastapi(app)
    logging.getLogger(__name__).info("FastAPI instrumentation configured")


def span(name: str, **attributes: object) -> logfire.LogfireSpan:
    """Open a Logfire span around a service operation.

    Usage:
        with span("task_service.start_task", task_id=task_id):
            ...
    """
    return logfire.span(name, **attributes)


def log_with_context(logger: logging.Logger, level: str, message: str, **context: object) -> None:
    """Log ``message`` at ``level`` ("debug" ... "critical") with ``context`` as structured fields."""
    getattr(logger, level.lower())(message, extra=context)


def log_with_user_context(
    logger: logging.Logger,
    level: str,
    message: str,
    user_id: str | None = None,
    **extra: object,
) -> None:
    """Like log_with_context, tagging the record with the acting user when known."""
    if user_id:
        extra = {"user_id": user_id, **extra}
    log_with_context(logger, level, message, **extra)
