"""
FastAPI server: store operations API.

Creates tables on startup and, when SURVEY_AUTOMATION_ENABLED, runs the
survey automation loop in a daemon thread for the life of the app.
Domain errors (LDGrowthError) become {"detail": message} responses with
the error's HTTP status.
"""

from __future__ import annotations

import threading
from contextlib import asynccontextmanager
from typing import Any

from fastapi import FastAPI, HTTPException
from fastapi.responses import JSONResponse

from backend_ldgrowth import __version__
from backend_ldgrowth.api_server import (
    dashboard,
    documentation,
    goals,
    kitchen,
    leadership,
    notifications,
    team_surveys,
    templates,
    training,
    users,
)
from backend_ldgrowth.config import get_settings
from backend_ldgrowth.core.exceptions import LDGrowthError
from backend_ldgrowth.database import init_db
from backend_ldgrowth.ldgrowth_logging import get_logger

logger = get_logger(__name__)


# -----------------------------------------------------------------------------
# Lifespan: create tables, start background survey automation (never blocks API)
# -----------------------------------------------------------------------------


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Create tables, start the automation thread; signal stop and join on shutdown."""
    from backend_ldgrowth.scheduler.engine import (
        SHUTDOWN_JOIN_TIMEOUT_SEC,
        SurveyAutomationConfig,
        run_survey_automation,
    )

    settings = get_settings()
    init_db()

    stop_event = threading.Event()
    thread: threading.Thread | None = None
    if settings.survey_automation_enabled:
        config = SurveyAutomationConfig(interval_sec=settings.survey_automation_interval_sec)
        thread = threading.Thread(
            target=run_survey_automation,
            args=(config, stop_event),
            name="survey-automation",
            daemon=True,
        )
        thread.start()
        logger.info("api_survey_automation_started", interval_sec=config.interval_sec)
    else:
        logger.info("api_survey_automation_disabled")

    yield

    stop_event.set()
    if thread is not None:
        thread.join(timeout=SHUTDOWN_JOIN_TIMEOUT_SEC)
        if thread.is_alive():
            logger.warning("api_survey_automation_shutdown_timeout", timeout_sec=SHUTDOWN_JOIN_TIMEOUT_SEC)
        else:
            logger.info("api_survey_automation_stopped")


# -----------------------------------------------------------------------------
# App and routes
# -----------------------------------------------------------------------------

app = FastAPI(
    title="LDGrowth API",
    description="Restaurant operations: team surveys, training, documentation, leadership growth.",
    version=__version__,
    lifespan=lifespan,
)

for module in (
    users,
    notifications,
    team_surveys,
    training,
    documentation,
    leadership,
    goals,
    kitchen,
    templates,
    dashboard,
):
    app.include_router(module.router)


@app.get("/health")
def health() -> dict[str, str]:
    """Liveness check: API is up."""
    return {"status": "ok"}


@app.exception_handler(LDGrowthError)
def domain_error_handler(request: Any, exc: LDGrowthError) -> JSONResponse:
    """Map domain errors to their HTTP status with a JSON detail message."""
    if exc.status_code >= 500:
        logger.error("api_domain_error", path=str(request.url.path), error=exc.message)
    else:
        logger.info("api_request_rejected", path=str(request.url.path), status=exc.status_code, error=exc.message)
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.message})


@app.exception_handler(HTTPException)
def http_exception_handler(request: Any, exc: HTTPException) -> JSONResponse:
    """Consistent JSON error response for HTTPException."""
    return JSONResponse(
        status_code=exc.status_code,
        content={"detail": exc.detail},
    )


@app.exception_handler(Exception)
def unhandled_exception_handler(request: Any, exc: Exception) -> JSONResponse:
    """Log unexpected failures with traceback; clients only see a generic 500."""
    logger.exception("api_unhandled_error", path=str(request.url.path), error=str(exc))
    return JSONResponse(status_code=500, content={"detail": "Internal server error"})
