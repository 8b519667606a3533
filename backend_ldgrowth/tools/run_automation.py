"""
Run survey automation outside the API server.

  --once   run a single pass and print the summary
  default  loop every SURVEY_AUTOMATION_INTERVAL_SEC until Ctrl+C

Usage:
  python -m backend_ldgrowth.tools.run_automation [--once]
"""

from __future__ import annotations

import argparse
import sys
import threading

from backend_ldgrowth.config import get_settings
from backend_ldgrowth.database import init_db
from backend_ldgrowth.ldgrowth_logging import get_logger
from backend_ldgrowth.scheduler.engine import SurveyAutomationConfig, run_survey_automation
from backend_ldgrowth.surveys.automation import run_automation_once

logger = get_logger(__name__)


def main(argv: list[str] | None = None) -> int:
    ap = argparse.ArgumentParser(description="Activate, close and remind team surveys")
    ap.add_argument("--once", action="store_true", help="Run one pass and exit")
    args = ap.parse_args(argv)

    init_db()
    if args.once:
        summary = run_automation_once()
        for key, value in summary.items():
            print(f"{key}: {value}")
        return 0

    settings = get_settings()
    stop_event = threading.Event()
    config = SurveyAutomationConfig(interval_sec=settings.survey_automation_interval_sec)
    try:
        run_survey_automation(config, stop_event)
    except KeyboardInterrupt:
        stop_event.set()
        logger.info("run_automation_interrupted")
    return 0


if __name__ == "__main__":
    sys.exit(main())
