"""
Team survey lifecycle: create, edit, activate with anonymous tokens, close.

Managers own surveys. Activation invites the eligible active team members
of the store, each receiving a one-time token; answers submitted with a
token are never linked back to the user (see surveys.responses).
"""

from __future__ import annotations

import secrets
from datetime import datetime, timedelta
from typing import Any, Optional

from pydantic import Field
from sqlalchemy import delete, func, select
from sqlalchemy.orm import Session

from backend_ldgrowth.core.exceptions import InvalidRequestError, InvalidStateError, NotFoundError
from backend_ldgrowth.core.timeutil import to_naive_utc, utcnow
from backend_ldgrowth.core.validation import Payload, parse_item
from backend_ldgrowth.database import session_scope
from backend_ldgrowth.database.models import Survey, SurveyResponse, SurveyToken, User
from backend_ldgrowth.ldgrowth_logging import get_logger
from backend_ldgrowth.notifications.service import notify
from backend_ldgrowth.surveys.builder import prepare_questions
from backend_ldgrowth.surveys.schedule import FREQUENCIES, calculate_next_scheduled_date, recurring_window
from backend_ldgrowth.users.service import department_code, require_manager

logger = get_logger(__name__)

STATUSES = ("draft", "active", "closed", "archived")
AUDIENCE_DEPARTMENTS = ("FOH", "BOH", "Management", "Other")

DEFAULT_AUDIENCE: dict[str, Any] = {
    "include_all": True,
    "departments": ["FOH", "BOH", "Management"],
    "positions": [],
}
DEFAULT_SETTINGS: dict[str, Any] = {
    "allow_multiple_responses": False,
    "show_progress_bar": True,
    "require_all_questions": True,
    "send_reminders": True,
    "reminder_days": [7, 3, 1],
}
_SCHEDULE_FIELDS = (
    "start_date",
    "end_date",
    "frequency",
    "auto_activate",
    "is_recurring",
    "day_of_period",
    "duration_days",
    "auto_close",
)


class SurveyAudience(Payload):
    include_all: Optional[bool] = None
    departments: Optional[list[str]] = None
    positions: Optional[list[str]] = None


class SurveySettings(Payload):
    allow_multiple_responses: Optional[bool] = None
    show_progress_bar: Optional[bool] = None
    require_all_questions: Optional[bool] = None
    send_reminders: Optional[bool] = None
    reminder_days: Optional[list[int]] = None


class SurveySchedule(Payload):
    start_date: Optional[datetime] = None
    end_date: Optional[datetime] = None
    frequency: Optional[str] = Field(None, description="one-time, monthly, quarterly, biannual or annual")
    auto_activate: Optional[bool] = None
    is_recurring: Optional[bool] = None
    day_of_period: Optional[int] = Field(None, ge=1, le=31)
    duration_days: Optional[int] = Field(None, ge=1, le=365)
    auto_close: Optional[bool] = None


def _parse_schedule(raw: Any) -> dict[str, Any]:
    """Schedule fields that were given; dates come back naive UTC."""
    schedule = parse_item(SurveySchedule, raw or {}, "schedule").model_dump(exclude_none=True)
    for field in ("start_date", "end_date"):
        if field in schedule:
            schedule[field] = to_naive_utc(schedule[field])
    return schedule


# -----------------------------------------------------------------------------
# Internal helpers (shared with responses, analytics and automation)
# -----------------------------------------------------------------------------


def get_store_survey(session: Session, store_id: int, survey_id: int) -> Survey:
    survey = session.get(Survey, survey_id)
    if survey is None or survey.store_id != store_id:
        raise NotFoundError("Survey not found")
    return survey


def _merge_audience(raw: Any, base: dict[str, Any] | None = None) -> dict[str, Any]:
    given = parse_item(SurveyAudience, raw or {}, "target audience").model_dump(exclude_none=True)
    audience = {**DEFAULT_AUDIENCE, **(base or {}), **given}
    audience["include_all"] = bool(audience.get("include_all"))
    audience["departments"] = list(audience.get("departments") or [])
    audience["positions"] = list(audience.get("positions") or [])
    unknown = [d for d in audience["departments"] if d not in AUDIENCE_DEPARTMENTS]
    if unknown:
        raise InvalidRequestError(f"Invalid departments: {', '.join(unknown)}")
    return audience


def _merge_settings(raw: Any, base: dict[str, Any] | None = None) -> dict[str, Any]:
    given = parse_item(SurveySettings, raw or {}, "settings").model_dump(exclude_none=True)
    settings = {**DEFAULT_SETTINGS, **(base or {}), **given}
    days = sorted({int(d) for d in settings.get("reminder_days") or [] if int(d) > 0}, reverse=True)
    settings["reminder_days"] = days
    return settings


def _apply_schedule(survey: Survey, schedule: dict[str, Any]) -> None:
    for field in _SCHEDULE_FIELDS:
        if field in schedule:
            setattr(survey, field, schedule[field])
    if survey.frequency not in FREQUENCIES:
        raise InvalidRequestError(f"Invalid frequency: {survey.frequency}")
    if survey.end_date <= survey.start_date:
        raise InvalidRequestError("End date must be after start date")
    if survey.frequency == "one-time":
        survey.is_recurring = False
    survey.next_scheduled_date = calculate_next_scheduled_date(
        survey.frequency, survey.is_recurring, survey.day_of_period, survey.start_date
    )


def refresh_analytics(session: Session, survey: Survey, now: datetime | None = None) -> None:
    """Recount completed responses and the response rate (rounded percent of invited)."""
    completed = session.scalar(
        select(func.count())
        .select_from(SurveyResponse)
        .where(SurveyResponse.survey_id == survey.id, SurveyResponse.status == "completed")
    ) or 0
    survey.total_responses = completed
    survey.response_rate = round(completed / survey.total_invited * 100) if survey.total_invited else 0
    survey.last_calculated = now or utcnow()


def _eligible_users(session: Session, survey: Survey) -> list[User]:
    users = session.scalars(
        select(User).where(User.store_id == survey.store_id, User.status == "active").order_by(User.id)
    ).all()
    audience = survey.audience
    if audience.get("include_all", True):
        return list(users)
    departments = set(audience.get("departments") or [])
    positions = set(audience.get("positions") or [])
    eligible = []
    for user in users:
        if departments and department_code(user.department) not in departments:
            continue
        if positions and user.position not in positions:
            continue
        eligible.append(user)
    return eligible


def _issue_tokens(session: Session, survey: Survey, user_ids: list[int]) -> list[dict[str, Any]]:
    """Create one token per user that does not already hold one for this survey."""
    existing = set(
        session.scalars(select(SurveyToken.user_id).where(SurveyToken.survey_id == survey.id)).all()
    )
    issued = []
    for user_id in user_ids:
        if user_id in existing:
            continue
        token = SurveyToken(
            survey_id=survey.id,
            token=secrets.token_hex(32),
            user_id=user_id,
            expires_at=survey.end_date,
        )
        session.add(token)
        existing.add(user_id)
        issued.append({"user_id": user_id, "token": token.token})
    session.flush()
    return issued


def _token_count(session: Session, survey: Survey) -> int:
    return session.scalar(
        select(func.count()).select_from(SurveyToken).where(SurveyToken.survey_id == survey.id)
    ) or 0


def _send_invitations(session: Session, survey: Survey, issued: list[dict[str, Any]]) -> None:
    for entry in issued:
        notify(
            session,
            user_id=entry["user_id"],
            store_id=survey.store_id,
            type="survey_invitation",
            title=f"New team survey: {survey.title}",
            message=(
                "Your feedback is anonymous. Complete the survey before "
                f"{survey.end_date:%B %d, %Y} at /survey/{entry['token']}"
            ),
            priority="medium",
            related_id=survey.id,
            related_model="Survey",
        )


def activate(session: Session, survey: Survey, now: datetime) -> int:
    """Invite eligible users and move the survey to active. Returns invitations sent."""
    if survey.status != "draft":
        raise InvalidStateError("Only draft surveys can be activated")
    if not survey.questions:
        raise InvalidStateError("Survey has no questions")
    if survey.end_date <= now:
        raise InvalidStateError("Survey end date has already passed")
    users = _eligible_users(session, survey)
    if not users:
        raise InvalidStateError("No eligible team members match the target audience")
    _issue_tokens(session, survey, [u.id for u in users])
    survey.status = "active"
    survey.total_invited = _token_count(session, survey)
    survey.reminders_sent = []
    refresh_analytics(session, survey, now)
    tokens = session.scalars(select(SurveyToken).where(SurveyToken.survey_id == survey.id)).all()
    for token in tokens:
        token.expires_at = survey.end_date
    _send_invitations(session, survey, [{"user_id": t.user_id, "token": t.token} for t in tokens])
    logger.info("survey_activated", survey_id=survey.id, store_id=survey.store_id, invited=survey.total_invited)
    return survey.total_invited


def close(session: Session, survey: Survey, now: datetime) -> None:
    if survey.status != "active":
        raise InvalidStateError("Only active surveys can be closed")
    survey.status = "closed"
    refresh_analytics(session, survey, now)
    logger.info(
        "survey_closed",
        survey_id=survey.id,
        responses=survey.total_responses,
        response_rate=survey.response_rate,
    )


def create_next_recurring(session: Session, survey: Survey, now: datetime) -> Survey | None:
    """Copy a recurring survey as a new draft starting on its next scheduled date."""
    if not survey.is_recurring:
        return None
    next_date = survey.next_scheduled_date
    if next_date is None or next_date <= now:
        next_date = calculate_next_scheduled_date(survey.frequency, True, survey.day_of_period, now)
    if next_date is None:
        return None
    start, end = recurring_window(next_date, survey.duration_days)
    child = Survey(
        store_id=survey.store_id,
        created_by=survey.created_by,
        title=survey.title,
        description=survey.description,
        status="draft",
        start_date=start,
        end_date=end,
        frequency=survey.frequency,
        auto_activate=survey.auto_activate,
        is_recurring=True,
        day_of_period=survey.day_of_period,
        duration_days=survey.duration_days,
        auto_close=survey.auto_close,
        parent_survey_id=survey.id,
    )
    child.questions = survey.questions
    child.audience = survey.audience
    child.settings = survey.settings
    child.reminders_sent = []
    child.next_scheduled_date = calculate_next_scheduled_date(
        child.frequency, True, child.day_of_period, start
    )
    session.add(child)
    session.flush()
    logger.info("survey_recurrence_created", survey_id=child.id, parent_id=survey.id, start_date=str(start))
    return child


# -----------------------------------------------------------------------------
# Manager operations
# -----------------------------------------------------------------------------


def create_survey(actor: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    """Create a draft survey. data: title, description, questions, target_audience, schedule, settings."""
    require_manager(actor)
    title = (data.get("title") or "").strip()
    if not title:
        raise InvalidRequestError("Title is required")
    schedule = _parse_schedule(data.get("schedule"))
    if not schedule.get("start_date") or not schedule.get("end_date"):
        raise InvalidRequestError("Start date and end date are required")
    with session_scope() as session:
        survey = Survey(
            store_id=actor["store_id"],
            created_by=actor["id"],
            title=title,
            description=(data.get("description") or "").strip(),
            status="draft",
            frequency="quarterly",
            auto_activate=False,
            is_recurring=False,
            day_of_period=1,
            duration_days=14,
            auto_close=True,
        )
        survey.questions = prepare_questions(data.get("questions") or [])
        survey.audience = _merge_audience(data.get("target_audience"))
        survey.settings = _merge_settings(data.get("settings"))
        survey.reminders_sent = []
        _apply_schedule(survey, schedule)
        session.add(survey)
        session.flush()
        logger.info("survey_created", survey_id=survey.id, store_id=survey.store_id, questions=len(survey.questions))
        return survey.to_dict()


def default_template(actor: dict[str, Any], now: datetime | None = None) -> dict[str, Any]:
    """Create the standard quarterly team experience survey as a draft running two weeks from now."""
    now = now or utcnow()
    rating = [
        "How satisfied are you with your job overall?",
        "How well does your manager support your growth?",
        "How fairly are shifts and responsibilities distributed?",
        "How well does the team work together during busy periods?",
        "How likely are you to recommend working here to a friend?",
        "How well do you understand what is expected of you each shift?",
    ]
    text = [
        "What is one thing we could do to make this a better place to work?",
        "What do you enjoy most about working on this team?",
    ]
    questions: list[dict[str, Any]] = []
    for i, question_text in enumerate(rating, start=1):
        questions.append({
            "id": f"q{i}",
            "text": question_text,
            "type": "rating",
            "required": True,
            "rating_scale": {"min": 1, "max": 10},
        })
    for i, question_text in enumerate(text, start=len(rating) + 1):
        questions.append({"id": f"q{i}", "text": question_text, "type": "text", "required": False})
    return create_survey(actor, {
        "title": "Quarterly Team Experience Survey",
        "description": "Anonymous quarterly check-in on how the team is doing.",
        "questions": questions,
        "schedule": {
            "start_date": now,
            "end_date": now + timedelta(days=14),
            "frequency": "quarterly",
            "is_recurring": True,
            "duration_days": 14,
        },
    })


def list_surveys(actor: dict[str, Any], status: str | None = None) -> list[dict[str, Any]]:
    require_manager(actor)
    with session_scope() as session:
        stmt = select(Survey).where(Survey.store_id == actor["store_id"])
        if status:
            if status not in STATUSES:
                raise InvalidRequestError(f"Invalid status: {status}")
            stmt = stmt.where(Survey.status == status)
        rows = session.scalars(stmt.order_by(Survey.created_at.desc(), Survey.id.desc())).all()
        return [s.to_dict() for s in rows]


def get_survey(actor: dict[str, Any], survey_id: int) -> dict[str, Any]:
    require_manager(actor)
    with session_scope() as session:
        survey = get_store_survey(session, actor["store_id"], survey_id)
        data = survey.to_dict()
        tokens = session.scalars(select(SurveyToken).where(SurveyToken.survey_id == survey.id)).all()
        data["tokens_issued"] = len(tokens)
        data["tokens_used"] = sum(1 for t in tokens if t.used)
        return data


def update_survey(actor: dict[str, Any], survey_id: int, changes: dict[str, Any]) -> dict[str, Any]:
    """
    Drafts accept any change. Active surveys only take description, schedule
    end date and settings (other fields are ignored). Closed and archived
    surveys only accept a move to archived.
    """
    require_manager(actor)
    with session_scope() as session:
        survey = get_store_survey(session, actor["store_id"], survey_id)
        schedule = _parse_schedule(changes.get("schedule"))
        if survey.status == "draft":
            if changes.get("title") is not None:
                title = changes["title"].strip()
                if not title:
                    raise InvalidRequestError("Title is required")
                survey.title = title
            if changes.get("description") is not None:
                survey.description = changes["description"].strip()
            if changes.get("questions") is not None:
                survey.questions = prepare_questions(changes["questions"])
            if changes.get("target_audience") is not None:
                survey.audience = _merge_audience(changes["target_audience"], survey.audience)
            if changes.get("settings") is not None:
                survey.settings = _merge_settings(changes["settings"], survey.settings)
            if schedule:
                _apply_schedule(survey, schedule)
        elif survey.status == "active":
            if changes.get("description") is not None:
                survey.description = changes["description"].strip()
            if changes.get("settings") is not None:
                survey.settings = _merge_settings(changes["settings"], survey.settings)
            if schedule.get("end_date") is not None:
                end_date = schedule["end_date"]
                if end_date <= survey.start_date:
                    raise InvalidRequestError("End date must be after start date")
                survey.end_date = end_date
                for token in session.scalars(select(SurveyToken).where(SurveyToken.survey_id == survey.id)):
                    token.expires_at = end_date
        elif changes.get("status") == "archived":
            survey.status = "archived"
        else:
            raise InvalidStateError(f"Cannot edit a {survey.status} survey")
        session.flush()
        logger.info("survey_updated", survey_id=survey.id, status=survey.status)
        return survey.to_dict()


def delete_survey(actor: dict[str, Any], survey_id: int) -> None:
    require_manager(actor)
    with session_scope() as session:
        survey = get_store_survey(session, actor["store_id"], survey_id)
        if survey.status == "active":
            raise InvalidStateError("Cannot delete active survey. Close it first.")
        session.execute(delete(SurveyResponse).where(SurveyResponse.survey_id == survey.id))
        session.execute(delete(SurveyToken).where(SurveyToken.survey_id == survey.id))
        for child in session.scalars(select(Survey).where(Survey.parent_survey_id == survey.id)):
            child.parent_survey_id = None
        session.delete(survey)
    logger.info("survey_deleted", survey_id=survey_id, store_id=actor["store_id"])


def activate_survey(actor: dict[str, Any], survey_id: int, now: datetime | None = None) -> dict[str, Any]:
    require_manager(actor)
    with session_scope() as session:
        survey = get_store_survey(session, actor["store_id"], survey_id)
        invited = activate(session, survey, now or utcnow())
        data = survey.to_dict()
        data["invited"] = invited
        return data


def close_survey(actor: dict[str, Any], survey_id: int, now: datetime | None = None) -> dict[str, Any]:
    require_manager(actor)
    with session_scope() as session:
        survey = get_store_survey(session, actor["store_id"], survey_id)
        close(session, survey, now or utcnow())
        return survey.to_dict()


def generate_tokens(actor: dict[str, Any], survey_id: int, user_ids: list[int]) -> list[dict[str, Any]]:
    """Issue tokens to additional users (e.g. new hires) of an active or draft survey."""
    require_manager(actor)
    if not user_ids:
        raise InvalidRequestError("User IDs array is required")
    with session_scope() as session:
        survey = get_store_survey(session, actor["store_id"], survey_id)
        if survey.status not in ("draft", "active"):
            raise InvalidStateError("Tokens can only be generated for draft or active surveys")
        users = session.scalars(
            select(User).where(User.id.in_(user_ids), User.store_id == survey.store_id)
        ).all()
        found = {u.id for u in users}
        missing = [uid for uid in user_ids if uid not in found]
        if missing:
            raise NotFoundError(f"Users not found: {', '.join(str(m) for m in missing)}")
        issued = _issue_tokens(session, survey, list(dict.fromkeys(user_ids)))
        if survey.status == "active":
            survey.total_invited = _token_count(session, survey)
            refresh_analytics(session, survey)
            _send_invitations(session, survey, issued)
        logger.info("survey_tokens_generated", survey_id=survey.id, issued=len(issued))
        return issued


def survey_dashboard(actor: dict[str, Any]) -> dict[str, Any]:
    require_manager(actor)
    with session_scope() as session:
        surveys = session.scalars(select(Survey).where(Survey.store_id == actor["store_id"])).all()
        counts = {status: 0 for status in STATUSES}
        for s in surveys:
            counts[s.status] = counts.get(s.status, 0) + 1
        rated = [s.response_rate for s in surveys if s.status in ("active", "closed")]
        return {
            "total_surveys": len(surveys),
            "by_status": counts,
            "total_responses": sum(s.total_responses for s in surveys),
            "average_response_rate": round(sum(rated) / len(rated)) if rated else 0,
            "recent": [s.to_dict() for s in sorted(surveys, key=lambda s: s.created_at, reverse=True)[:5]],
        }
