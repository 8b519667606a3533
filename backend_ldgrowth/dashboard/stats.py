"""
Store dashboard: one query pass over each domain for the landing page.
"""

from __future__ import annotations

from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import func, select

from backend_ldgrowth.core.timeutil import utcnow
from backend_ldgrowth.database import session_scope
from backend_ldgrowth.database.models import Goal, Survey, User
from backend_ldgrowth.documentation.service import pending_acknowledgment_count
from backend_ldgrowth.kitchen.waste import waste_cost_since
from backend_ldgrowth.notifications.service import unread_count
from backend_ldgrowth.training.service import trainee_summary

WASTE_WINDOW_DAYS = 7


def _count(session, stmt) -> int:
    return session.scalar(stmt) or 0


def store_dashboard(actor: dict[str, Any], now: datetime | None = None) -> dict[str, Any]:
    now = now or utcnow()
    store_id = actor["store_id"]
    with session_scope() as session:
        training = trainee_summary(session, store_id)
        return {
            "store_id": store_id,
            "generated_at": now.isoformat(),
            "active_team_members": _count(
                session,
                select(func.count(User.id)).where(User.store_id == store_id, User.status == "active"),
            ),
            "active_surveys": _count(
                session,
                select(func.count(Survey.id)).where(Survey.store_id == store_id, Survey.status == "active"),
            ),
            "pending_acknowledgments": pending_acknowledgment_count(session, store_id),
            "training_in_progress": training["in_progress"],
            "training_completed": training["completed"],
            "waste_cost_last_7_days": waste_cost_since(session, store_id, now - timedelta(days=WASTE_WINDOW_DAYS)),
            "open_goals": _count(
                session,
                select(func.count(Goal.id)).where(Goal.user_id == actor["id"], Goal.status != "completed"),
            ),
            "unread_notifications": unread_count(session, actor["id"]),
        }
