"""
Application settings.

Everything the API server, scheduler and tools read from the environment
is collected here. get_settings() re-reads the environment on every call
so tests can monkeypatch variables without cache resets.
"""

from __future__ import annotations

from dataclasses import dataclass

from backend_ldgrowth.config.env import env_bool, env_float, env_int, env_str, load_env

DEFAULT_SQLITE_PATH = "ldgrowth.db"


@dataclass(frozen=True)
class Settings:
    """Resolved runtime configuration."""

    database_url: str
    """SQLAlchemy URL: DATABASE_URL when set, else SQLite at LDGROWTH_DB_PATH."""
    api_host: str = "0.0.0.0"
    api_port: int = 8000
    log_level: str = "INFO"
    log_format: str = "json"
    survey_automation_enabled: bool = True
    survey_automation_interval_sec: float = 300.0
    notify_webhook_url: str | None = None
    """Optional endpoint that receives every notification as JSON."""
    notify_webhook_timeout_sec: float = 5.0


def get_database_url() -> str:
    """Return DATABASE_URL if set; otherwise a SQLite URL from LDGROWTH_DB_PATH or the default file."""
    url = env_str("DATABASE_URL")
    if url:
        return url
    path = env_str("LDGROWTH_DB_PATH", DEFAULT_SQLITE_PATH)
    return f"sqlite:///{path}"


def get_settings() -> Settings:
    """Return the current application settings."""
    load_env()
    return Settings(
        database_url=get_database_url(),
        api_host=env_str("API_HOST", "0.0.0.0"),
        api_port=env_int("API_PORT", 8000),
        log_level=env_str("LOG_LEVEL", "INFO").upper(),
        log_format=env_str("LOG_FORMAT", "json").lower(),
        survey_automation_enabled=env_bool("SURVEY_AUTOMATION_ENABLED", True),
        survey_automation_interval_sec=max(1.0, env_float("SURVEY_AUTOMATION_INTERVAL_SEC", 300.0)),
        notify_webhook_url=env_str("NOTIFY_WEBHOOK_URL") or None,
        notify_webhook_timeout_sec=env_float("NOTIFY_WEBHOOK_TIMEOUT_SEC", 5.0),
    )
