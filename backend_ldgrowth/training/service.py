"""
Training plan library and trainee progress.

A plan is a sequence of days, each with timed tasks and an optional
competency checklist. Assigning a plan snapshots its tasks into the
trainee's module progress, so later plan edits do not rewrite history.
"""

from __future__ import annotations

import copy
from datetime import date
from typing import Any, Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

from backend_ldgrowth.core.exceptions import (
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from backend_ldgrowth.core.timeutil import iso, utcnow
from backend_ldgrowth.core.validation import Payload, parse_items
from backend_ldgrowth.database import session_scope
from backend_ldgrowth.database.models import TrainingPlan, TrainingProgress
from backend_ldgrowth.ldgrowth_logging import get_logger
from backend_ldgrowth.notifications.service import notify
from backend_ldgrowth.users.service import get_store_user, require_director

logger = get_logger(__name__)

PLAN_DEPARTMENTS = ("FOH", "BOH")
PLAN_POSITIONS = ("Team Member", "Team Leader", "Shift Leader", "Manager")
PLAN_TYPES = ("New Hire", "Regular")
MODULE_EDITOR_POSITIONS = ("Director", "Leader", "Trainer")

_PLAN_FIELDS = ("name", "description", "department", "position", "type", "self_paced", "is_template")


def _can_train(actor: dict[str, Any]) -> bool:
    return actor.get("position") in MODULE_EDITOR_POSITIONS


def _require_trainer(actor: dict[str, Any]) -> None:
    if not _can_train(actor):
        raise PermissionDeniedError("Only trainers and above can manage training")


class TrainingTask(Payload):
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    duration: Optional[int] = None
    pathway_url: Optional[str] = None
    competency_checklist: Optional[list[str]] = None


class TrainingDay(Payload):
    day_number: Optional[int] = None
    tasks: Optional[list[TrainingTask]] = None


def normalize_days(days: list[Any]) -> list[dict[str, Any]]:
    """Validate days/tasks, sort by day number and give every task a stable id."""
    result = []
    seen_days: set[int] = set()
    for day in parse_items(TrainingDay, days, "training day"):
        number = day.day_number or 0
        if number < 1:
            raise InvalidRequestError("Day number must be at least 1")
        if number in seen_days:
            raise InvalidRequestError(f"Day {number} appears more than once")
        seen_days.add(number)
        tasks = []
        for i, task in enumerate(day.tasks or [], start=1):
            name = (task.name or "").strip()
            if not name:
                raise InvalidRequestError(f"Day {number} task {i} needs a name")
            duration = task.duration or 0
            if duration < 1:
                raise InvalidRequestError(f"Day {number} task '{name}' duration must be at least 1 minute")
            tasks.append({
                "id": task.id or f"d{number}-t{i}",
                "name": name,
                "description": task.description or "",
                "duration": duration,
                "pathway_url": task.pathway_url or None,
                "competency_checklist": [c for c in task.competency_checklist or [] if c.strip()],
            })
        result.append({"day_number": number, "tasks": tasks})
    result.sort(key=lambda d: d["day_number"])
    task_ids = [t["id"] for d in result for t in d["tasks"]]
    if len(task_ids) != len(set(task_ids)):
        raise InvalidRequestError("Task ids must be unique within a plan")
    return result


def _validate_plan(plan: TrainingPlan) -> None:
    if not (plan.name or "").strip():
        raise InvalidRequestError("Plan name is required")
    if plan.department not in PLAN_DEPARTMENTS:
        raise InvalidRequestError(f"Invalid department: {plan.department}")
    if plan.position not in PLAN_POSITIONS:
        raise InvalidRequestError(f"Invalid position: {plan.position}")
    if plan.type not in PLAN_TYPES:
        raise InvalidRequestError(f"Invalid plan type: {plan.type}")


def _get_plan(session: Session, store_id: int, plan_id: int) -> TrainingPlan:
    plan = session.get(TrainingPlan, plan_id)
    if plan is None or plan.store_id != store_id:
        raise NotFoundError("Training plan not found")
    return plan


def _get_progress(session: Session, store_id: int, progress_id: int) -> TrainingProgress:
    progress = session.get(TrainingProgress, progress_id)
    if progress is None or progress.store_id != store_id:
        raise NotFoundError("Training progress not found")
    return progress


def completion_percentage(modules: list[dict[str, Any]]) -> int:
    if not modules:
        return 0
    done = sum(1 for m in modules if m.get("completed"))
    return round(done / len(modules) * 100)


def _progress_dict(progress: TrainingProgress, plan: TrainingPlan | None = None) -> dict[str, Any]:
    data = progress.to_dict()
    data["completion_percentage"] = completion_percentage(progress.modules)
    if plan is not None:
        data["plan_name"] = plan.name
    return data


# -----------------------------------------------------------------------------
# Plans
# -----------------------------------------------------------------------------


def create_plan(actor: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    _require_trainer(actor)
    with session_scope() as session:
        plan = TrainingPlan(
            store_id=actor["store_id"],
            created_by=actor["id"],
            name=(data.get("name") or "").strip(),
            description=(data.get("description") or "").strip(),
            department=data.get("department"),
            position=data.get("position"),
            type=data.get("type") or "New Hire",
            self_paced=bool(data.get("self_paced", False)),
            is_template=bool(data.get("is_template", False)),
        )
        _validate_plan(plan)
        plan.days = normalize_days(data.get("days") or [])
        session.add(plan)
        session.flush()
        logger.info("training_plan_created", plan_id=plan.id, store_id=plan.store_id, days=len(plan.days))
        return plan.to_dict()


def list_plans(actor: dict[str, Any], templates_only: bool = False) -> list[dict[str, Any]]:
    with session_scope() as session:
        stmt = select(TrainingPlan).where(TrainingPlan.store_id == actor["store_id"])
        if templates_only:
            stmt = stmt.where(TrainingPlan.is_template.is_(True))
        return [p.to_dict() for p in session.scalars(stmt.order_by(TrainingPlan.name)).all()]


def get_plan(actor: dict[str, Any], plan_id: int) -> dict[str, Any]:
    with session_scope() as session:
        return _get_plan(session, actor["store_id"], plan_id).to_dict()


def update_plan(actor: dict[str, Any], plan_id: int, changes: dict[str, Any]) -> dict[str, Any]:
    _require_trainer(actor)
    with session_scope() as session:
        plan = _get_plan(session, actor["store_id"], plan_id)
        for field in _PLAN_FIELDS:
            if changes.get(field) is not None:
                value = changes[field]
                setattr(plan, field, value.strip() if isinstance(value, str) else value)
        _validate_plan(plan)
        if changes.get("days") is not None:
            plan.days = normalize_days(changes["days"])
        session.flush()
        logger.info("training_plan_updated", plan_id=plan.id)
        return plan.to_dict()


def duplicate_plan(actor: dict[str, Any], plan_id: int) -> dict[str, Any]:
    """Copy a plan (usually a template) with " (Copy)" appended and fresh task ids."""
    _require_trainer(actor)
    with session_scope() as session:
        source = _get_plan(session, actor["store_id"], plan_id)
        days = copy.deepcopy(source.days)
        for day in days:
            for i, task in enumerate(day["tasks"], start=1):
                task["id"] = f"d{day['day_number']}-t{i}"
        plan = TrainingPlan(
            store_id=source.store_id,
            created_by=actor["id"],
            name=f"{source.name} (Copy)",
            description=source.description,
            department=source.department,
            position=source.position,
            type=source.type,
            self_paced=source.self_paced,
            is_template=False,
        )
        plan.days = days
        session.add(plan)
        session.flush()
        logger.info("training_plan_duplicated", plan_id=plan.id, source_id=source.id)
        return plan.to_dict()


def delete_plan(actor: dict[str, Any], plan_id: int) -> int:
    """Delete a plan and every progress record assigned from it. Returns progress rows removed."""
    _require_trainer(actor)
    with session_scope() as session:
        plan = _get_plan(session, actor["store_id"], plan_id)
        removed = session.execute(delete(TrainingProgress).where(TrainingProgress.plan_id == plan.id)).rowcount or 0
        session.delete(plan)
    logger.info("training_plan_deleted", plan_id=plan_id, progress_removed=removed)
    return removed


# -----------------------------------------------------------------------------
# Progress
# -----------------------------------------------------------------------------


def assign_plan(
    actor: dict[str, Any],
    employee_id: int,
    plan_id: int,
    start_date: date | None = None,
) -> dict[str, Any]:
    _require_trainer(actor)
    with session_scope() as session:
        employee = get_store_user(session, actor["store_id"], employee_id)
        if employee.status != "active":
            raise InvalidStateError("Cannot assign training to an inactive team member")
        plan = _get_plan(session, actor["store_id"], plan_id)
        open_assignment = session.scalars(
            select(TrainingProgress).where(
                TrainingProgress.trainee_id == employee.id,
                TrainingProgress.plan_id == plan.id,
                TrainingProgress.status == "IN_PROGRESS",
            )
        ).first()
        if open_assignment is not None:
            raise InvalidStateError("This plan is already in progress for the team member")
        modules = []
        for day in plan.days:
            for task in day["tasks"]:
                modules.append({
                    "task_id": task["id"],
                    "day_number": day["day_number"],
                    "name": task["name"],
                    "completed": False,
                    "completed_by": None,
                    "completed_at": None,
                    "notes": "",
                    "competencies": [{"item": c, "completed": False} for c in task["competency_checklist"]],
                })
        progress = TrainingProgress(
            store_id=actor["store_id"],
            trainee_id=employee.id,
            plan_id=plan.id,
            assigned_by=actor["id"],
            start_date=start_date or date.today(),
            status="IN_PROGRESS",
        )
        progress.modules = modules
        session.add(progress)
        session.flush()
        notify(
            session,
            user_id=employee.id,
            store_id=actor["store_id"],
            type="training_assigned",
            title="New Training Plan Assigned",
            message=f"You have been assigned the training plan \"{plan.name}\" starting {progress.start_date:%B %d, %Y}.",
            priority="high",
            related_id=progress.id,
            related_model="TrainingProgress",
        )
        logger.info("training_plan_assigned", progress_id=progress.id, plan_id=plan.id, trainee_id=employee.id)
        return _progress_dict(progress, plan)


def _check_module_access(actor: dict[str, Any], progress: TrainingProgress, plan: TrainingPlan) -> None:
    if _can_train(actor):
        return
    if plan.self_paced and progress.trainee_id == actor["id"]:
        return
    raise PermissionDeniedError("Only trainers and above can mark modules as complete for this plan")


def _module(modules: list[dict[str, Any]], task_id: str) -> dict[str, Any]:
    for module in modules:
        if module["task_id"] == task_id:
            return module
    raise NotFoundError("Training module not found")


def _sync_status(session: Session, progress: TrainingProgress, plan: TrainingPlan, actor: dict[str, Any]) -> None:
    modules = progress.modules
    all_done = bool(modules) and all(m["completed"] for m in modules)
    if all_done and progress.status != "COMPLETED":
        progress.status = "COMPLETED"
        progress.completed_at = utcnow()
        notify(
            session,
            user_id=progress.assigned_by,
            store_id=progress.store_id,
            type="training_completed",
            title="Training Plan Completed",
            message=f"Training plan \"{plan.name}\" has been completed.",
            related_id=progress.id,
            related_model="TrainingProgress",
        )
        logger.info("training_plan_completed", progress_id=progress.id, completed_by=actor["id"])
    elif not all_done and progress.status == "COMPLETED":
        progress.status = "IN_PROGRESS"
        progress.completed_at = None


def update_module_progress(
    actor: dict[str, Any],
    progress_id: int,
    task_id: str,
    completed: bool,
    notes: str | None = None,
) -> dict[str, Any]:
    with session_scope() as session:
        progress = _get_progress(session, actor["store_id"], progress_id)
        plan = session.get(TrainingPlan, progress.plan_id)
        _check_module_access(actor, progress, plan)
        modules = progress.modules
        module = _module(modules, task_id)
        module["completed"] = bool(completed)
        module["completed_by"] = actor["id"] if completed else None
        module["completed_at"] = iso(utcnow()) if completed else None
        if notes is not None:
            module["notes"] = notes
        progress.modules = modules
        _sync_status(session, progress, plan, actor)
        session.flush()
        logger.info("training_module_updated", progress_id=progress.id, task_id=task_id, completed=bool(completed))
        return _progress_dict(progress, plan)


def toggle_competency(
    actor: dict[str, Any],
    progress_id: int,
    task_id: str,
    item_index: int,
    completed: bool,
) -> dict[str, Any]:
    with session_scope() as session:
        progress = _get_progress(session, actor["store_id"], progress_id)
        plan = session.get(TrainingPlan, progress.plan_id)
        _check_module_access(actor, progress, plan)
        modules = progress.modules
        module = _module(modules, task_id)
        if not 0 <= item_index < len(module["competencies"]):
            raise InvalidRequestError(f"competency index {item_index} out of range")
        module["competencies"][item_index]["completed"] = bool(completed)
        progress.modules = modules
        session.flush()
        return _progress_dict(progress, plan)


def list_progress(
    actor: dict[str, Any],
    trainee_id: int | None = None,
    status: str | None = None,
) -> list[dict[str, Any]]:
    """Team Members only ever see their own training."""
    with session_scope() as session:
        stmt = select(TrainingProgress).where(TrainingProgress.store_id == actor["store_id"])
        if actor.get("position") == "Team Member":
            stmt = stmt.where(TrainingProgress.trainee_id == actor["id"])
        elif trainee_id is not None:
            stmt = stmt.where(TrainingProgress.trainee_id == trainee_id)
        if status:
            stmt = stmt.where(TrainingProgress.status == status)
        rows = session.scalars(stmt.order_by(TrainingProgress.created_at.desc())).all()
        plans = {p.id: p for p in session.scalars(
            select(TrainingPlan).where(TrainingPlan.id.in_({r.plan_id for r in rows}))
        )} if rows else {}
        return [_progress_dict(r, plans.get(r.plan_id)) for r in rows]


def get_progress(actor: dict[str, Any], progress_id: int) -> dict[str, Any]:
    with session_scope() as session:
        progress = _get_progress(session, actor["store_id"], progress_id)
        if actor.get("position") == "Team Member" and progress.trainee_id != actor["id"]:
            raise PermissionDeniedError("You can only view your own training")
        return _progress_dict(progress, session.get(TrainingPlan, progress.plan_id))


def delete_progress(actor: dict[str, Any], progress_id: int) -> None:
    require_director(actor)
    with session_scope() as session:
        session.delete(_get_progress(session, actor["store_id"], progress_id))
    logger.info("training_progress_deleted", progress_id=progress_id)


def trainee_summary(session: Session, store_id: int) -> dict[str, int]:
    """Counts used by the store dashboard."""
    rows = session.scalars(select(TrainingProgress.status).where(TrainingProgress.store_id == store_id)).all()
    return {
        "in_progress": sum(1 for s in rows if s == "IN_PROGRESS"),
        "completed": sum(1 for s in rows if s == "COMPLETED"),
    }
