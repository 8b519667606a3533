"""
Team goal routes: /api/goals.
"""

from __future__ import annotations

from typing import Any, Optional, Union

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from backend_ldgrowth.api_server.deps import get_current_user
from backend_ldgrowth.goals import service
from backend_ldgrowth.goals.service import KPI, GoalStep

router = APIRouter(prefix="/api/goals", tags=["goals"])


class GoalBody(BaseModel):
    name: str = ""
    description: str = ""
    business_area: str = ""
    goal_period: str = ""
    kpis: list[KPI] = Field(default_factory=list)
    steps: list[Union[str, GoalStep]] = Field(default_factory=list)


class GoalUpdateBody(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    business_area: Optional[str] = None
    goal_period: Optional[str] = None
    progress: Optional[int] = None
    status: Optional[str] = None
    kpis: Optional[list[KPI]] = None
    steps: Optional[list[Union[str, GoalStep]]] = None


class MeasurementBody(BaseModel):
    value: float
    date: Optional[str] = Field(None, description="ISO date; defaults to now")
    notes: str = ""


class StepBody(BaseModel):
    completed: bool


@router.get("")
def list_goals(actor: dict[str, Any] = Depends(get_current_user)) -> list[dict[str, Any]]:
    return service.list_goals(actor)


@router.post("", status_code=201)
def create_goal(body: GoalBody, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.create_goal(actor, body.model_dump())


@router.get("/{goal_id}")
def get_goal(goal_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.get_goal(actor, goal_id)


@router.put("/{goal_id}")
def update_goal(goal_id: int, body: GoalUpdateBody, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.update_goal(actor, goal_id, body.model_dump(exclude_unset=True))


@router.delete("/{goal_id}")
def delete_goal(goal_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, str]:
    service.delete_goal(actor, goal_id)
    return {"message": "Goal deleted successfully"}


@router.post("/{goal_id}/kpis/{kpi_index}/measurements", status_code=201)
def record_measurement(
    goal_id: int,
    kpi_index: int,
    body: MeasurementBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.record_measurement(actor, goal_id, kpi_index, body.value, body.date, body.notes)


@router.patch("/{goal_id}/steps/{step_index}")
def set_step(
    goal_id: int,
    step_index: int,
    body: StepBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.set_step_completed(actor, goal_id, step_index, body.completed)
