"""
structlog setup for the API, the automation loop and the CLI tools.

Every line carries timestamp, level, logger and event_type; store and user
ids are bound by callers that have them. LOG_FORMAT=console switches to
the dev renderer.

This module reads the environment directly instead of going through
backend_ldgrowth.config, so config can log without an import cycle.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Any, Optional

import structlog

LEVEL_NAMES = ("DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL")


def _level_from_env() -> int:
    name = os.getenv("LOG_LEVEL", "INFO").strip().upper()
    return getattr(logging, name) if name in LEVEL_NAMES else logging.INFO


def _event_type(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    """'survey_activated' lands in event_type; message is the readable form."""
    event = event_dict.pop("event", None)
    if event is not None:
        event_dict.setdefault("event_type", event)
        event_dict.setdefault("message", str(event).replace("_", " "))
    return event_dict


def _drop_none(logger: Any, method_name: str, event_dict: dict[str, Any]) -> dict[str, Any]:
    return {k: v for k, v in event_dict.items() if v is not None}


def configure_logging(level: Optional[int] = None, fmt: Optional[str] = None) -> None:
    fmt = (fmt or os.getenv("LOG_FORMAT", "json")).strip().lower()
    renderer: Any
    if fmt == "console":
        renderer = structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
    else:
        renderer = structlog.processors.JSONRenderer()
    structlog.configure(
        processors=[
            structlog.contextvars.merge_contextvars,
            structlog.processors.add_log_level,
            structlog.processors.TimeStamper(fmt="iso", utc=True),
            structlog.processors.format_exc_info,
            _drop_none,
            _event_type,
            renderer,
        ],
        wrapper_class=structlog.make_filtering_bound_logger(level if level is not None else _level_from_env()),
        context_class=dict,
        logger_factory=structlog.PrintLoggerFactory(file=sys.stdout),
        cache_logger_on_first_use=True,
    )


if not structlog.is_configured():
    configure_logging()


def get_logger(name: str) -> structlog.BoundLogger:
    """
    Module logger:

        logger = get_logger(__name__)
        logger.info("survey_activated", survey_id=12, tokens=8)
    """
    return structlog.get_logger(name).bind(logger=name)


def bind_store(store_id: int, user_id: Optional[int] = None) -> structlog.BoundLogger:
    """Logger with store_id (and user_id when given) on every line."""
    return get_logger("backend_ldgrowth").bind(store_id=store_id, user_id=user_id)
