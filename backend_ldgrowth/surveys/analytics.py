"""
Survey result aggregation.

Works only on completed responses. Filters narrow the respondent set by
self-reported demographics; the invited/response counters always reflect
the whole survey.
"""

from __future__ import annotations

from collections import Counter
from datetime import datetime, timedelta
from typing import Any

from sqlalchemy import select

from backend_ldgrowth.core.timeutil import utcnow
from backend_ldgrowth.database import session_scope
from backend_ldgrowth.database.models import SurveyResponse
from backend_ldgrowth.ldgrowth_logging import get_logger
from backend_ldgrowth.surveys.service import get_store_survey
from backend_ldgrowth.users.service import require_director, require_manager

logger = get_logger(__name__)

DEMOGRAPHIC_FIELDS = ("department", "position", "experience_level", "employment_type")
TIMELINE_DAYS = 30


def _question_summary(question: dict[str, Any], entries: list[dict[str, Any]]) -> dict[str, Any]:
    answered = [e["answer"] for e in entries if not e["skipped"]]
    summary: dict[str, Any] = {
        "question_id": question["id"],
        "question_text": question["text"],
        "question_type": question["type"],
        "response_count": len(answered),
    }
    if question["type"] == "rating":
        scale = question.get("rating_scale") or {"min": 1, "max": 10}
        distribution = {str(v): 0 for v in range(scale["min"], scale["max"] + 1)}
        for value in answered:
            distribution[str(value)] = distribution.get(str(value), 0) + 1
        summary["average_rating"] = round(sum(answered) / len(answered), 1) if answered else None
        summary["rating_distribution"] = distribution
    elif question["type"] == "multiple_choice":
        counts = Counter(answered)
        summary["option_counts"] = {opt: counts.get(opt, 0) for opt in question.get("options") or []}
    else:
        summary["text_responses"] = [a for a in answered if isinstance(a, str) and a.strip()]
    return summary


def compute_analytics(
    questions: list[dict[str, Any]],
    responses: list[dict[str, Any]],
    now: datetime,
) -> dict[str, Any]:
    """
    Aggregate completed response dicts (SurveyResponse.to_dict() shape).

    overall_score is the mean of every numeric rating answer across all
    rating questions, rounded to one decimal.
    """
    by_question: dict[str, list[dict[str, Any]]] = {q["id"]: [] for q in questions}
    ratings: list[float] = []
    for response in responses:
        for entry in response["responses"]:
            if entry["question_id"] in by_question:
                by_question[entry["question_id"]].append(entry)
            if entry["question_type"] == "rating" and not entry["skipped"]:
                ratings.append(entry["answer"])

    demographics: dict[str, list[dict[str, Any]]] = {}
    for field in DEMOGRAPHIC_FIELDS:
        counts = Counter(r["demographics"].get(field) or "Unknown" for r in responses)
        demographics[field] = [
            {"value": value, "count": count}
            for value, count in sorted(counts.items(), key=lambda kv: (-kv[1], kv[0]))
        ]

    today = now.date()
    window = [today - timedelta(days=offset) for offset in range(TIMELINE_DAYS - 1, -1, -1)]
    per_day = Counter(r["completed_at"][:10] for r in responses if r.get("completed_at"))
    timeline = [{"date": d.isoformat(), "count": per_day.get(d.isoformat(), 0)} for d in window]

    return {
        "response_count": len(responses),
        "overall_score": round(sum(ratings) / len(ratings), 1) if ratings else None,
        "questions": [_question_summary(q, by_question[q["id"]]) for q in questions],
        "demographics": demographics,
        "timeline": timeline,
    }


def _completed_responses(session, survey_id: int, filters: dict[str, Any]) -> list[SurveyResponse]:
    stmt = select(SurveyResponse).where(
        SurveyResponse.survey_id == survey_id,
        SurveyResponse.status == "completed",
    )
    for field in DEMOGRAPHIC_FIELDS:
        value = filters.get(field)
        if value:
            stmt = stmt.where(getattr(SurveyResponse, field) == value)
    return list(session.scalars(stmt.order_by(SurveyResponse.completed_at)).all())


def survey_analytics(
    actor: dict[str, Any],
    survey_id: int,
    filters: dict[str, Any] | None = None,
    now: datetime | None = None,
) -> dict[str, Any]:
    require_manager(actor)
    filters = {k: v for k, v in (filters or {}).items() if k in DEMOGRAPHIC_FIELDS and v}
    with session_scope() as session:
        survey = get_store_survey(session, actor["store_id"], survey_id)
        responses = [r.to_dict() for r in _completed_responses(session, survey.id, filters)]
        result = compute_analytics(survey.questions, responses, now or utcnow())
        result["survey"] = {
            "id": survey.id,
            "title": survey.title,
            "status": survey.status,
            "total_invited": survey.total_invited,
            "total_responses": survey.total_responses,
            "response_rate": survey.response_rate,
        }
        result["filters"] = filters
        return result


def export_results(actor: dict[str, Any], survey_id: int, now: datetime | None = None) -> dict[str, Any]:
    """Full JSON export: survey definition, analytics and every completed response. Directors only."""
    require_director(actor)
    now = now or utcnow()
    with session_scope() as session:
        survey = get_store_survey(session, actor["store_id"], survey_id)
        responses = [r.to_dict() for r in _completed_responses(session, survey.id, {})]
        export = {
            "survey": survey.to_dict(),
            "analytics": compute_analytics(survey.questions, responses, now),
            "responses": responses,
            "exported_at": now.isoformat(),
        }
    logger.info("survey_exported", survey_id=survey_id, responses=len(export["responses"]))
    return export
