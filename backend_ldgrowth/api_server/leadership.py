"""
Leadership routes: /api/leadership.

Situational assessment, assessment recommendations, activity forms and
development-plan enrollments for the signed-in leader.
"""

from __future__ import annotations

from typing import Any, Literal, Optional, Union

from fastapi import APIRouter, Depends, Response
from pydantic import BaseModel, Field

from backend_ldgrowth.api_server.deps import get_current_user
from backend_ldgrowth.leadership import forms, plans, situational
from backend_ldgrowth.leadership.recommendations import generate_recommendations

router = APIRouter(prefix="/api/leadership", tags=["leadership"])


class SituationalSubmitBody(BaseModel):
    answers: dict[str, str] = Field(..., description="Scenario id -> chosen style")


class RecommendationsBody(BaseModel):
    assessment_type: Literal["leadership", "customer_service"]
    area_scores: dict[str, float] = Field(..., description="Area name -> score on a 1-5 scale")
    overall_score: float = Field(..., ge=0, le=5)


class FormValueBody(BaseModel):
    value: Union[str, dict[str, Any]]


class TaskUpdateBody(BaseModel):
    completed: bool
    notes: Optional[str] = None
    evidence: Optional[str] = None
    response: Optional[Union[str, dict[str, Any]]] = None


class StatusBody(BaseModel):
    status: str


@router.get("/situational/questions")
def situational_questions(actor: dict[str, Any] = Depends(get_current_user)) -> list[dict[str, Any]]:
    return situational.public_questions()


@router.post("/situational/submit", status_code=201)
def situational_submit(body: SituationalSubmitBody, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return situational.record_assessment(actor, body.answers)


@router.get("/situational/results")
def situational_results(actor: dict[str, Any] = Depends(get_current_user)) -> list[dict[str, Any]]:
    return situational.list_assessment_results(actor)


@router.post("/recommendations")
def recommendations(body: RecommendationsBody, actor: dict[str, Any] = Depends(get_current_user)) -> list[dict[str, Any]]:
    return generate_recommendations(body.assessment_type, body.area_scores, body.overall_score)


@router.post("/forms/{kind}/validate")
def validate_form(kind: str, body: FormValueBody, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    """Normalize a form value to its stored JSON string and report how complete it is."""
    value = forms.validate_form_value(kind, body.value)
    return {"value": forms.dump_form_value(value), "completion": forms.form_completion(value)}


@router.get("/plans")
def list_catalog(actor: dict[str, Any] = Depends(get_current_user)) -> list[dict[str, Any]]:
    return plans.list_catalog(actor)


@router.post("/plans/{plan_id}/enroll", status_code=201)
def enroll(plan_id: str, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return plans.enroll(actor, plan_id)


@router.get("/my-plans")
def my_plans(actor: dict[str, Any] = Depends(get_current_user)) -> list[dict[str, Any]]:
    return plans.list_enrollments(actor)


@router.get("/my-plans/{plan_id}")
def my_plan(plan_id: str, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return plans.get_enrollment(actor, plan_id)


@router.patch("/my-plans/{plan_id}/tasks/{task_id}")
def update_task(
    plan_id: str,
    task_id: str,
    body: TaskUpdateBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return plans.update_task(
        actor,
        plan_id,
        task_id,
        body.completed,
        notes=body.notes,
        evidence=body.evidence,
        response=body.response,
    )


@router.patch("/my-plans/{plan_id}/status")
def update_status(plan_id: str, body: StatusBody, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return plans.update_status(actor, plan_id, body.status)


@router.delete("/my-plans/{plan_id}", status_code=204)
def drop_enrollment(plan_id: str, actor: dict[str, Any] = Depends(get_current_user)) -> Response:
    plans.drop_enrollment(actor, plan_id)
    return Response(status_code=204)
