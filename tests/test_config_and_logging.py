"""
Settings from the environment, and logging import smoke test.
"""

from __future__ import annotations


def test_logging_import():
    """Import get_logger from ldgrowth_logging and use the logger."""
    from backend_ldgrowth.ldgrowth_logging import bind_store, get_logger

    logger = get_logger("test")
    assert logger is not None
    assert hasattr(logger, "info")
    assert hasattr(logger, "warning")
    # Smoke test: call info (should not raise)
    logger.info("test_message", key="value")
    bind_store(3).info("store_message")


def test_settings_from_env(monkeypatch):
    from backend_ldgrowth.config import get_settings

    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.setenv("LDGROWTH_DB_PATH", "/tmp/x.db")
    monkeypatch.setenv("API_PORT", "9001")
    monkeypatch.setenv("SURVEY_AUTOMATION_ENABLED", "off")
    monkeypatch.setenv("SURVEY_AUTOMATION_INTERVAL_SEC", "0.1")
    monkeypatch.setenv("LOG_LEVEL", "debug")

    settings = get_settings()
    assert settings.database_url == "sqlite:////tmp/x.db"
    assert settings.api_port == 9001
    assert settings.survey_automation_enabled is False
    assert settings.survey_automation_interval_sec == 1.0
    assert settings.log_level == "DEBUG"


def test_database_url_wins(monkeypatch):
    from backend_ldgrowth.config.settings import get_database_url

    monkeypatch.setenv("DATABASE_URL", "postgresql://u:p@db/ldgrowth")
    assert get_database_url() == "postgresql://u:p@db/ldgrowth"


def test_bad_numbers_fall_back(monkeypatch):
    from backend_ldgrowth.config.env import env_float, env_int

    monkeypatch.setenv("API_PORT", "eighty")
    monkeypatch.setenv("NOTIFY_WEBHOOK_TIMEOUT_SEC", "")
    assert env_int("API_PORT", 8000) == 8000
    assert env_float("NOTIFY_WEBHOOK_TIMEOUT_SEC", 5.0) == 5.0
