"""
Survey schedule automation: one tick of activate / close / remind.

Run periodically by scheduler.engine. Each survey is processed in its own
transaction so one bad record does not block the rest.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Callable

from sqlalchemy import select

from backend_ldgrowth.core.exceptions import InvalidStateError
from backend_ldgrowth.core.timeutil import utcnow
from backend_ldgrowth.database import session_scope
from backend_ldgrowth.database.models import Survey, SurveyToken
from backend_ldgrowth.ldgrowth_logging import get_logger
from backend_ldgrowth.notifications.service import notify
from backend_ldgrowth.surveys.service import activate, close, create_next_recurring, get_store_survey
from backend_ldgrowth.users.service import require_manager

logger = get_logger(__name__)


def surveys_due_for_activation(now: datetime) -> list[int]:
    """Draft surveys with auto-activate on whose start date has arrived."""
    with session_scope() as session:
        stmt = select(Survey.id).where(
            Survey.status == "draft",
            Survey.auto_activate.is_(True),
            Survey.start_date <= now,
        )
        return list(session.scalars(stmt.order_by(Survey.start_date)).all())


def surveys_due_for_close(now: datetime) -> list[int]:
    with session_scope() as session:
        stmt = select(Survey.id).where(
            Survey.status == "active",
            Survey.auto_close.is_(True),
            Survey.end_date <= now,
        )
        return list(session.scalars(stmt).all())


def _active_survey_ids() -> list[int]:
    with session_scope() as session:
        return list(session.scalars(select(Survey.id).where(Survey.status == "active")).all())


def _remind_pending(session, survey: Survey, days_left: int) -> int:
    """Notify every holder of an unused token; returns how many were reminded."""
    pending = session.scalars(
        select(SurveyToken).where(SurveyToken.survey_id == survey.id, SurveyToken.used.is_(False))
    ).all()
    for token in pending:
        notify(
            session,
            user_id=token.user_id,
            store_id=survey.store_id,
            type="survey_reminder",
            title=f"Reminder: {survey.title}",
            message=f"{days_left} day(s) left to share your anonymous feedback at /survey/{token.token}",
            priority="high" if days_left <= 1 else "medium",
            related_id=survey.id,
            related_model="Survey",
        )
    return len(pending)


def send_reminders(session, survey: Survey, now: datetime) -> int:
    """
    Remind holders of unused tokens when the days left before the end date
    match one of the survey's reminder days. Each reminder day fires once.
    """
    settings = survey.settings
    if not settings.get("send_reminders", True):
        return 0
    days_left = (survey.end_date.date() - now.date()).days
    sent_days = survey.reminders_sent
    if days_left not in settings.get("reminder_days", []) or days_left in sent_days:
        return 0
    sent = _remind_pending(session, survey, days_left)
    survey.reminders_sent = sent_days + [days_left]
    logger.info("survey_reminders_sent", survey_id=survey.id, days_left=days_left, recipients=sent)
    return sent


# -----------------------------------------------------------------------------
# Manual triggers
# -----------------------------------------------------------------------------


def activate_now(actor: dict[str, Any], survey_id: int, now: datetime | None = None) -> dict[str, Any]:
    """Activate a draft right away; a start date still in the future moves to now."""
    require_manager(actor)
    now = now or utcnow()
    with session_scope() as session:
        survey = get_store_survey(session, actor["store_id"], survey_id)
        if survey.status == "draft" and survey.start_date > now:
            survey.start_date = now
        invited = activate(session, survey, now)
        data = survey.to_dict()
        data["invited"] = invited
        data["message"] = "Survey activated successfully"
        return data


def send_reminders_now(actor: dict[str, Any], survey_id: int, now: datetime | None = None) -> dict[str, Any]:
    """Remind every pending respondent immediately, outside the reminder-day schedule."""
    require_manager(actor)
    now = now or utcnow()
    with session_scope() as session:
        survey = get_store_survey(session, actor["store_id"], survey_id)
        if survey.status != "active":
            raise InvalidStateError("Reminders can only be sent for active surveys")
        days_left = max((survey.end_date.date() - now.date()).days, 0)
        sent = _remind_pending(session, survey, days_left)
        logger.info("survey_reminders_sent_manually", survey_id=survey.id, recipients=sent)
        return {"survey_id": survey.id, "reminders_sent": sent, "message": "Reminders sent successfully"}


def _each(ids: list[int], action: Callable[[Any, Survey], Any], event: str) -> list[Any]:
    results = []
    for survey_id in ids:
        try:
            with session_scope() as session:
                survey = session.get(Survey, survey_id)
                if survey is not None:
                    results.append(action(session, survey))
        except Exception as e:
            logger.warning(event, survey_id=survey_id, error=str(e))
    return results


def run_automation_once(now: datetime | None = None) -> dict[str, int]:
    """
    One automation pass:
      - activate due auto-activate drafts
      - close active surveys past their end date (auto_close), queueing the next recurrence
      - send reminder notifications for the remaining active surveys
    Returns counts per action.
    """
    now = now or utcnow()

    activated = _each(
        surveys_due_for_activation(now),
        lambda session, survey: activate(session, survey, now),
        "survey_auto_activate_failed",
    )

    def _close_and_recur(session, survey: Survey) -> bool:
        close(session, survey, now)
        return create_next_recurring(session, survey, now) is not None

    recurred = _each(surveys_due_for_close(now), _close_and_recur, "survey_auto_close_failed")

    reminded = _each(
        _active_survey_ids(),
        lambda session, survey: send_reminders(session, survey, now),
        "survey_reminders_failed",
    )

    summary = {
        "activated": len(activated),
        "closed": len(recurred),
        "recurring_created": sum(1 for r in recurred if r),
        "reminders_sent": sum(reminded),
    }
    logger.info("survey_automation_tick", **summary)
    return summary
