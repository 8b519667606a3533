"""
Best-effort webhook delivery for notifications.

When NOTIFY_WEBHOOK_URL is set every new notification is POSTed there as
JSON (chat bots, push relays). Delivery failures are logged and dropped;
the in-app notification is already stored.
"""

from __future__ import annotations

from typing import Any

import httpx

from backend_ldgrowth.config import get_settings
from backend_ldgrowth.ldgrowth_logging import get_logger

logger = get_logger(__name__)


def send_webhook(payload: dict[str, Any]) -> bool:
    """POST payload to the configured webhook. Returns True on a 2xx response."""
    settings = get_settings()
    if not settings.notify_webhook_url:
        return False
    try:
        with httpx.Client(timeout=settings.notify_webhook_timeout_sec) as client:
            resp = client.post(settings.notify_webhook_url, json=payload)
            resp.raise_for_status()
    except (httpx.HTTPError, httpx.InvalidURL) as e:
        logger.warning(
            "notification_webhook_failed",
            notification_id=payload.get("id"),
            error=str(e),
        )
        return False
    logger.debug("notification_webhook_sent", notification_id=payload.get("id"))
    return True
