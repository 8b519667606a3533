"""
Training routes: /api/training (plan library and trainee progress).
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from backend_ldgrowth.api_server.deps import get_current_user
from backend_ldgrowth.training import service
from backend_ldgrowth.training.service import TrainingDay

router = APIRouter(prefix="/api/training", tags=["training"])


class PlanBody(BaseModel):
    name: str = Field(..., min_length=1, max_length=200)
    description: str = ""
    department: str = Field(..., description="FOH or BOH")
    position: str = Field(..., description="Team Member, Team Leader, Shift Leader or Manager")
    type: str = Field("New Hire", description="New Hire or Regular")
    self_paced: bool = False
    is_template: bool = False
    days: list[TrainingDay] = Field(default_factory=list)


class PlanUpdateBody(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    department: Optional[str] = None
    position: Optional[str] = None
    type: Optional[str] = None
    self_paced: Optional[bool] = None
    is_template: Optional[bool] = None
    days: Optional[list[TrainingDay]] = None


class AssignBody(BaseModel):
    employee_id: int
    plan_id: int
    start_date: Optional[date] = None


class ModuleBody(BaseModel):
    completed: bool
    notes: Optional[str] = None


class CompetencyBody(BaseModel):
    completed: bool


@router.get("/plans")
def list_plans(templates_only: bool = False, actor: dict[str, Any] = Depends(get_current_user)) -> list[dict[str, Any]]:
    return service.list_plans(actor, templates_only=templates_only)


@router.post("/plans", status_code=201)
def create_plan(body: PlanBody, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.create_plan(actor, body.model_dump())


@router.get("/plans/{plan_id}")
def get_plan(plan_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.get_plan(actor, plan_id)


@router.patch("/plans/{plan_id}")
def update_plan(plan_id: int, body: PlanUpdateBody, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.update_plan(actor, plan_id, body.model_dump(exclude_unset=True))


@router.post("/plans/{plan_id}/duplicate", status_code=201)
def duplicate_plan(plan_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.duplicate_plan(actor, plan_id)


@router.delete("/plans/{plan_id}")
def delete_plan(plan_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return {"deleted": True, "progress_removed": service.delete_plan(actor, plan_id)}


@router.post("/progress", status_code=201)
def assign_plan(body: AssignBody, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.assign_plan(actor, body.employee_id, body.plan_id, body.start_date)


@router.get("/progress")
def list_progress(
    trainee_id: Optional[int] = None,
    status: Optional[str] = None,
    actor: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    return service.list_progress(actor, trainee_id=trainee_id, status=status)


@router.get("/progress/{progress_id}")
def get_progress(progress_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.get_progress(actor, progress_id)


@router.patch("/progress/{progress_id}/modules/{task_id}")
def update_module(
    progress_id: int,
    task_id: str,
    body: ModuleBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.update_module_progress(actor, progress_id, task_id, body.completed, body.notes)


@router.patch("/progress/{progress_id}/modules/{task_id}/competencies/{item_index}")
def toggle_competency(
    progress_id: int,
    task_id: str,
    item_index: int,
    body: CompetencyBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.toggle_competency(actor, progress_id, task_id, item_index, body.completed)


@router.delete("/progress/{progress_id}")
def delete_progress(progress_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, bool]:
    service.delete_progress(actor, progress_id)
    return {"deleted": True}
