"""
Team survey routes: /api/team-surveys.

Manager routes require a bearer token. The /take/{token} routes are the
anonymous survey-taking flow and authenticate by survey token only.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from backend_ldgrowth.api_server.deps import get_current_user
from backend_ldgrowth.surveys import analytics, automation, responses, service
from backend_ldgrowth.surveys.builder import Question, validate_questions
from backend_ldgrowth.surveys.responses import Answer
from backend_ldgrowth.surveys.service import SurveyAudience, SurveySchedule, SurveySettings

router = APIRouter(prefix="/api/team-surveys", tags=["team-surveys"])


class SurveyBody(BaseModel):
    """POST /api/team-surveys body."""

    title: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    questions: list[Question] = Field(default_factory=list)
    target_audience: Optional[SurveyAudience] = None
    schedule: SurveySchedule
    settings: Optional[SurveySettings] = None


class SurveyUpdateBody(BaseModel):
    """PUT /api/team-surveys/{id} body; which fields apply depends on the survey status."""

    title: Optional[str] = None
    description: Optional[str] = None
    questions: Optional[list[Question]] = None
    target_audience: Optional[SurveyAudience] = None
    schedule: Optional[SurveySchedule] = None
    settings: Optional[SurveySettings] = None
    status: Optional[str] = None


class TokensBody(BaseModel):
    user_ids: list[int] = Field(default_factory=list)


class QuestionsBody(BaseModel):
    """Left loose so the preflight can report malformed questions instead of rejecting the request."""

    questions: list[Any]


class AnswersBody(BaseModel):
    """Answers keyed by question id plus self-reported demographics."""

    responses: list[Answer] = Field(default_factory=list)
    demographics: Optional[dict[str, Any]] = None


def _survey_data(body: BaseModel) -> dict[str, Any]:
    data = body.model_dump(exclude_unset=True)
    if data.get("schedule") is not None:
        data["schedule"] = {k: v for k, v in data["schedule"].items() if v is not None}
    return data


# -----------------------------------------------------------------------------
# Anonymous survey taking
# -----------------------------------------------------------------------------


@router.get("/take/{token}")
def get_survey_by_token(token: str) -> dict[str, Any]:
    return responses.get_survey_by_token(token)


@router.put("/take/{token}")
def save_progress(token: str, body: AnswersBody) -> dict[str, Any]:
    return responses.save_progress(token, body.responses, body.demographics)


@router.post("/take/{token}")
def submit_response(token: str, body: AnswersBody) -> dict[str, Any]:
    return responses.submit_response(token, body.responses, body.demographics)


# -----------------------------------------------------------------------------
# Manager routes
# -----------------------------------------------------------------------------


@router.get("/dashboard")
def survey_dashboard(actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.survey_dashboard(actor)


@router.post("/validate-questions")
def check_questions(body: QuestionsBody, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    """Builder preflight: list every problem without saving anything."""
    errors = validate_questions(body.questions)
    return {"valid": not errors, "errors": errors}


@router.post("/default-template", status_code=201)
def create_default(actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.default_template(actor)


@router.get("")
def list_surveys(status: Optional[str] = None, actor: dict[str, Any] = Depends(get_current_user)) -> list[dict[str, Any]]:
    return service.list_surveys(actor, status=status)


@router.post("", status_code=201)
def create_survey(body: SurveyBody, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.create_survey(actor, _survey_data(body))


@router.get("/{survey_id}")
def get_survey(survey_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.get_survey(actor, survey_id)


@router.put("/{survey_id}")
def update_survey(
    survey_id: int,
    body: SurveyUpdateBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.update_survey(actor, survey_id, _survey_data(body))


@router.delete("/{survey_id}", status_code=204)
def delete_survey(survey_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> Response:
    service.delete_survey(actor, survey_id)
    return Response(status_code=204)


@router.post("/{survey_id}/activate")
def activate_survey(survey_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.activate_survey(actor, survey_id)


@router.post("/{survey_id}/close")
def close_survey(survey_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.close_survey(actor, survey_id)


@router.post("/{survey_id}/activate-now")
def activate_now(survey_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    """Activate a draft immediately, pulling a future start date forward to now."""
    return automation.activate_now(actor, survey_id)


@router.post("/{survey_id}/send-reminders")
def send_reminders(survey_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return automation.send_reminders_now(actor, survey_id)


@router.post("/{survey_id}/tokens", status_code=201)
def generate_tokens(
    survey_id: int,
    body: TokensBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    return service.generate_tokens(actor, survey_id, body.user_ids)


@router.get("/{survey_id}/analytics")
def survey_analytics(
    survey_id: int,
    department: Optional[str] = None,
    position: Optional[str] = None,
    experience_level: Optional[str] = None,
    employment_type: Optional[str] = None,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    filters = {
        "department": department,
        "position": position,
        "experience_level": experience_level,
        "employment_type": employment_type,
    }
    return analytics.survey_analytics(actor, survey_id, filters)


@router.get("/{survey_id}/export")
def export_results(survey_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return analytics.export_results(actor, survey_id)
