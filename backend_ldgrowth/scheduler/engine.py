"""
Periodic survey automation loop.

Runs run_automation_once() every interval_sec until stop_event is set.
Started by the FastAPI lifespan in a daemon thread; never blocks the API.
"""

from __future__ import annotations

import threading
import time
from dataclasses import dataclass

from backend_ldgrowth.ldgrowth_logging import get_logger
from backend_ldgrowth.surveys.automation import run_automation_once

logger = get_logger(__name__)

DEFAULT_INTERVAL_SEC = 300.0
SHUTDOWN_JOIN_TIMEOUT_SEC = 15.0
# Max single sleep so stop_event is noticed promptly
_WAIT_SLICE_SEC = 1.0


@dataclass
class SurveyAutomationConfig:
    """Config for the background survey automation loop."""

    interval_sec: float = DEFAULT_INTERVAL_SEC
    run_immediately: bool = True
    """Run the first tick at startup instead of after one interval."""


def run_survey_automation(config: SurveyAutomationConfig, stop_event: threading.Event) -> None:
    """
    Loop automation ticks until stop_event is set. A failing tick is logged
    and the loop continues.
    """
    interval = max(1.0, config.interval_sec)
    logger.info("survey_automation_started", interval_sec=interval)
    tick_count = 0
    if not config.run_immediately:
        stop_event.wait(interval)
    while not stop_event.is_set():
        tick_start = time.monotonic()
        tick_count += 1
        try:
            summary = run_automation_once()
            logger.debug("survey_automation_tick_done", tick=tick_count, **summary)
        except Exception as e:
            logger.exception("survey_automation_tick_failed", tick=tick_count, error=str(e))
        deadline = tick_start + interval
        while not stop_event.is_set():
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                break
            stop_event.wait(min(_WAIT_SLICE_SEC, remaining))
    logger.info("survey_automation_stopped", ticks=tick_count)
