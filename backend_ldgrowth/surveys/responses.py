"""
Anonymous survey taking by token.

A token identifies an invitation, not an answer: the stored response only
carries the token string and self-reported demographics. Tokens are
single-use once a response is completed and expire at the survey end date.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any

from sqlalchemy import select
from sqlalchemy.orm import Session

from backend_ldgrowth.core.exceptions import InvalidRequestError, InvalidStateError, NotFoundError
from backend_ldgrowth.core.timeutil import utcnow
from backend_ldgrowth.core.validation import Payload, parse_items
from backend_ldgrowth.database import session_scope
from backend_ldgrowth.database.models import Survey, SurveyResponse, SurveyToken, User
from backend_ldgrowth.ldgrowth_logging import get_logger
from backend_ldgrowth.surveys.service import refresh_analytics
from backend_ldgrowth.users.service import EMPLOYMENT_TYPES, department_code, experience_level

logger = get_logger(__name__)

DEMOGRAPHIC_DEPARTMENTS = ("FOH", "BOH", "Management", "Other")
EXPERIENCE_LEVELS = ("0-6 months", "6-12 months", "1-2 years", "2+ years")
DEFAULT_DEMOGRAPHICS = {
    "department": "FOH",
    "position": "Team Member",
    "experience_level": "0-6 months",
    "employment_type": "Part-time",
}


class Answer(Payload):
    question_id: str
    answer: Any = None
    skipped: bool = False


def validate_token(token: SurveyToken, now: datetime) -> tuple[bool, str | None]:
    """(valid, reason) for a token row; reason is None when valid."""
    if token.used:
        return False, "Token already used"
    if token.expires_at is not None and now > token.expires_at:
        return False, "Token expired"
    return True, None


def _load(session: Session, token_value: str, now: datetime) -> tuple[Survey, SurveyToken]:
    token = session.scalars(select(SurveyToken).where(SurveyToken.token == token_value)).first()
    survey = session.get(Survey, token.survey_id) if token is not None else None
    if token is None or survey is None or survey.status != "active":
        raise NotFoundError("Survey not found or no longer active")
    valid, reason = validate_token(token, now)
    if not valid:
        raise InvalidRequestError(reason or "Invalid token")
    return survey, token


def _response_for(session: Session, token_value: str) -> SurveyResponse | None:
    return session.scalars(select(SurveyResponse).where(SurveyResponse.token == token_value)).first()


def suggested_demographics(user: User | None, today=None) -> dict[str, Any]:
    """Pre-fill demographics from the invited user's profile; the respondent may change them."""
    if user is None:
        return dict(DEFAULT_DEMOGRAPHICS)
    return {
        "department": department_code(user.department) or DEFAULT_DEMOGRAPHICS["department"],
        "position": user.position or DEFAULT_DEMOGRAPHICS["position"],
        "experience_level": experience_level(user.hire_date, today),
        "employment_type": user.employment_type or DEFAULT_DEMOGRAPHICS["employment_type"],
    }


def _clean_demographics(raw: dict[str, Any] | None, fallback: dict[str, Any]) -> dict[str, Any]:
    result = dict(fallback)
    for key, value in (raw or {}).items():
        if key in result and value:
            result[key] = value
    if result["department"] not in DEMOGRAPHIC_DEPARTMENTS:
        raise InvalidRequestError(f"Invalid department: {result['department']}")
    if result["experience_level"] not in EXPERIENCE_LEVELS:
        raise InvalidRequestError(f"Invalid experience level: {result['experience_level']}")
    if result["employment_type"] not in EMPLOYMENT_TYPES:
        raise InvalidRequestError(f"Invalid employment type: {result['employment_type']}")
    return result


def _check_answer(question: dict[str, Any], answer: Any) -> Any:
    """Validate one answer against its question; returns the normalized value or None when blank."""
    if answer is None:
        return None
    qtype = question["type"]
    if qtype == "rating":
        if isinstance(answer, bool) or not isinstance(answer, (int, float)) or int(answer) != answer:
            raise InvalidRequestError(f"Answer to {question['id']} must be a whole number")
        scale = question.get("rating_scale") or {"min": 1, "max": 10}
        if not scale["min"] <= answer <= scale["max"]:
            raise InvalidRequestError(
                f"Answer to {question['id']} must be between {scale['min']} and {scale['max']}"
            )
        return int(answer)
    if qtype == "multiple_choice":
        if answer not in (question.get("options") or []):
            raise InvalidRequestError(f"Answer to {question['id']} is not one of the options")
        return answer
    if not isinstance(answer, str):
        raise InvalidRequestError(f"Answer to {question['id']} must be text")
    return answer.strip() or None


def build_entries(questions: list[dict[str, Any]], answers: list[Any]) -> list[dict[str, Any]]:
    """
    Pair answers with their questions in survey order.

    answers: [{"question_id": "q1", "answer": 7, "skipped": False}, ...]
    Unanswered questions are stored as skipped.
    """
    by_id = {q["id"]: q for q in questions}
    given: dict[str, Any] = {}
    for item in parse_items(Answer, answers, "answer"):
        qid = item.question_id
        if qid not in by_id:
            raise InvalidRequestError(f"Unknown question: {qid}")
        given[qid] = None if item.skipped else _check_answer(by_id[qid], item.answer)
    entries = []
    for q in questions:
        value = given.get(q["id"])
        entries.append({
            "question_id": q["id"],
            "question_text": q["text"],
            "question_type": q["type"],
            "answer": value,
            "skipped": value is None,
        })
    return entries


def completion_percentage(entries: list[dict[str, Any]]) -> int:
    if not entries:
        return 0
    answered = sum(1 for e in entries if not e["skipped"])
    return round(answered / len(entries) * 100)


def average_rating(entries: list[dict[str, Any]]) -> float | None:
    ratings = [e["answer"] for e in entries if e["question_type"] == "rating" and not e["skipped"]]
    if not ratings:
        return None
    return round(sum(ratings) / len(ratings), 1)


def _store_response(
    session: Session,
    survey: Survey,
    token: SurveyToken,
    answers: list[dict[str, Any]],
    demographics: dict[str, Any] | None,
    now: datetime,
) -> SurveyResponse:
    response = _response_for(session, token.token)
    if response is not None and response.status == "completed":
        raise InvalidStateError("Survey already completed")
    user = session.get(User, token.user_id)
    entries = build_entries(survey.questions, answers)
    demo = _clean_demographics(demographics, suggested_demographics(user, now.date()))
    if response is None:
        response = SurveyResponse(survey_id=survey.id, token=token.token, started_at=now)
        session.add(response)
    response.answers = entries
    response.department = demo["department"]
    response.position = demo["position"]
    response.experience_level = demo["experience_level"]
    response.employment_type = demo["employment_type"]
    response.completion_percentage = completion_percentage(entries)
    response.average_rating = average_rating(entries)
    response.updated_at = now
    return response


def get_survey_by_token(token_value: str, now: datetime | None = None) -> dict[str, Any]:
    """Everything the survey-taking page needs: questions, saved progress, suggested demographics."""
    now = now or utcnow()
    with session_scope() as session:
        survey, token = _load(session, token_value, now)
        response = _response_for(session, token.token)
        if response is not None and response.status == "completed":
            raise InvalidStateError("Survey already completed")
        user = session.get(User, token.user_id)
        return {
            "survey": {
                "id": survey.id,
                "title": survey.title,
                "description": survey.description or "",
                "questions": survey.questions,
                "settings": survey.settings,
                "end_date": survey.end_date.isoformat(),
            },
            "response": response.to_dict() if response is not None else None,
            "suggested_demographics": suggested_demographics(user, now.date()),
        }


def save_progress(
    token_value: str,
    answers: list[dict[str, Any]],
    demographics: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    now = now or utcnow()
    with session_scope() as session:
        survey, token = _load(session, token_value, now)
        response = _store_response(session, survey, token, answers, demographics, now)
        response.status = "in_progress"
        session.flush()
        logger.debug("survey_progress_saved", survey_id=survey.id, completion=response.completion_percentage)
        return response.to_dict()


def submit_response(
    token_value: str,
    answers: list[dict[str, Any]],
    demographics: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    """Complete the response, burn the token and refresh the survey's response rate."""
    now = now or utcnow()
    with session_scope() as session:
        survey, token = _load(session, token_value, now)
        response = _store_response(session, survey, token, answers, demographics, now)
        if survey.settings.get("require_all_questions", True):
            required = {q["id"] for q in survey.questions if q.get("required", True)}
            missing = [e["question_id"] for e in response.answers if e["question_id"] in required and e["skipped"]]
            if missing:
                raise InvalidRequestError(f"Please answer all required questions: {', '.join(missing)}")
        response.status = "completed"
        response.completed_at = now
        token.used = True
        token.used_at = now
        session.flush()
        refresh_analytics(session, survey, now)
        logger.info(
            "survey_response_submitted",
            survey_id=survey.id,
            response_rate=survey.response_rate,
            completion=response.completion_percentage,
        )
        return response.to_dict()
