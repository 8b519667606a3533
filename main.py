"""
Main entrypoint: FastAPI server in the main thread.

Survey automation runs in a daemon thread started by the app lifespan
(disable with SURVEY_AUTOMATION_ENABLED=0). On SIGINT/SIGTERM uvicorn shuts
down, the lifespan stops the automation thread and the process exits.

Env: DATABASE_URL or LDGROWTH_DB_PATH, API_HOST, API_PORT, LOG_LEVEL, etc.

Equivalent: uvicorn backend_ldgrowth.api_server.app:app --host 0.0.0.0 --port 8000
"""

# Configure structured JSON logging before other imports that may log
from backend_ldgrowth.ldgrowth_logging import get_logger

logger = get_logger("main")


def main() -> None:
    """Run the FastAPI server in the main thread."""
    from backend_ldgrowth.config import get_settings

    settings = get_settings()

    from backend_ldgrowth.api_server.app import app
    import uvicorn

    logger.info(
        "main_server_starting",
        host=settings.api_host,
        port=settings.api_port,
        automation=settings.survey_automation_enabled,
    )
    uvicorn.run(app, host=settings.api_host, port=settings.api_port, log_level=settings.log_level.lower())


if __name__ == "__main__":
    main()
