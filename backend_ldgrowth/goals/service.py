"""
Personal team goals: KPIs with dated measurements and checklist steps.
Goals are private to the user who created them.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional, Union

from sqlalchemy import select

from backend_ldgrowth.core.exceptions import InvalidRequestError, NotFoundError
from backend_ldgrowth.core.timeutil import to_naive_utc, utcnow
from backend_ldgrowth.core.validation import Payload, parse_item
from backend_ldgrowth.database import session_scope
from backend_ldgrowth.database.models import Goal
from backend_ldgrowth.ldgrowth_logging import get_logger

logger = get_logger(__name__)

GOAL_STATUSES = ("not-started", "in-progress", "completed")
KPI_FIELDS = ("name", "target_value", "unit", "peak")


class Measurement(Payload):
    value: float
    date: Optional[Union[datetime, str]] = None
    notes: Optional[str] = None


class KPI(Payload):
    name: Optional[str] = None
    target_value: Optional[float] = None
    unit: Optional[str] = None
    peak: Optional[str] = None
    measurements: Optional[list[Measurement]] = None


class GoalStep(Payload):
    description: Optional[str] = None
    completed: Optional[bool] = False


def _clean_kpi(raw: Any) -> dict[str, Any]:
    kpi = parse_item(KPI, raw, "KPI data")
    if any(not getattr(kpi, field) for field in KPI_FIELDS):
        raise InvalidRequestError("Invalid KPI data")
    return {
        "name": kpi.name,
        "target_value": kpi.target_value,
        "unit": kpi.unit,
        "peak": kpi.peak,
        "measurements": [_clean_measurement(m) for m in kpi.measurements or []],
    }


def _measured_at(value: str) -> datetime:
    return to_naive_utc(datetime.fromisoformat(value.replace("Z", "+00:00")))


def _clean_measurement(raw: Any) -> dict[str, Any]:
    measurement = parse_item(Measurement, raw, "measurement")
    measured_on = measurement.date
    if isinstance(measured_on, datetime):
        measured_on = measured_on.isoformat()
    elif measured_on:
        try:
            _measured_at(measured_on)
        except ValueError:
            raise InvalidRequestError(f"Invalid measurement date: {measured_on}") from None
    return {"date": measured_on or utcnow().isoformat(), "value": measurement.value, "notes": measurement.notes or ""}


def _clean_steps(raw: Any) -> list[dict[str, Any]]:
    if not isinstance(raw, (list, tuple)):
        raise InvalidRequestError("Steps must be an array")
    steps = []
    for i, step in enumerate(raw, start=1):
        if isinstance(step, str):
            step = {"description": step}
        parsed = parse_item(GoalStep, step, f"step {i}")
        description = (parsed.description or "").strip()
        if description:
            steps.append({"description": description, "completed": bool(parsed.completed)})
    return steps


def status_for_progress(progress: int) -> str:
    if progress >= 100:
        return "completed"
    return "in-progress" if progress > 0 else "not-started"


def kpi_progress(kpi: dict[str, Any]) -> int | None:
    """Most recent measurement (by date) as a percentage of target, capped at 100; None without measurements."""
    measurements = kpi.get("measurements") or []
    if not measurements or not kpi.get("target_value"):
        return None
    # ties on date go to the later entry
    _, latest = max(enumerate(measurements), key=lambda pair: (_measured_at(pair[1]["date"]), pair[0]))
    return min(round(latest["value"] / kpi["target_value"] * 100), 100)


def _get_goal(session, actor: dict[str, Any], goal_id: int) -> Goal:
    goal = session.get(Goal, goal_id)
    if goal is None or goal.user_id != actor["id"]:
        raise NotFoundError("Goal not found")
    return goal


def _goal_dict(goal: Goal) -> dict[str, Any]:
    data = goal.to_dict()
    for kpi in data["kpis"]:
        kpi["progress"] = kpi_progress(kpi)
    return data


def create_goal(actor: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    kpis = data.get("kpis")
    if not data.get("name") or not data.get("business_area") or not data.get("goal_period") or not kpis:
        raise InvalidRequestError("Missing required fields")
    if not isinstance(kpis, (list, tuple)):
        raise InvalidRequestError("KPIs must be an array")
    with session_scope() as session:
        goal = Goal(
            user_id=actor["id"],
            store_id=actor["store_id"],
            name=data["name"],
            description=data.get("description") or "",
            business_area=data["business_area"],
            goal_period=data["goal_period"],
            progress=0,
            status="not-started",
        )
        goal.kpis = [_clean_kpi(k) for k in kpis]
        goal.steps = _clean_steps(data.get("steps") or [])
        session.add(goal)
        session.flush()
        logger.info("goal_created", goal_id=goal.id, user_id=actor["id"], kpis=len(kpis))
        return _goal_dict(goal)


def list_goals(actor: dict[str, Any]) -> list[dict[str, Any]]:
    with session_scope() as session:
        rows = session.scalars(
            select(Goal).where(Goal.user_id == actor["id"]).order_by(Goal.created_at.desc(), Goal.id.desc())
        ).all()
        return [_goal_dict(g) for g in rows]


def get_goal(actor: dict[str, Any], goal_id: int) -> dict[str, Any]:
    with session_scope() as session:
        return _goal_dict(_get_goal(session, actor, goal_id))


def update_goal(actor: dict[str, Any], goal_id: int, changes: dict[str, Any]) -> dict[str, Any]:
    """Partial update; only keys present with a truthy value (or progress 0) are applied."""
    with session_scope() as session:
        goal = _get_goal(session, actor, goal_id)
        for field in ("name", "description", "business_area", "goal_period"):
            if changes.get(field):
                setattr(goal, field, changes[field])
        if changes.get("progress") is not None:
            progress = int(changes["progress"])
            if not 0 <= progress <= 100:
                raise InvalidRequestError("Progress must be between 0 and 100")
            goal.progress = progress
        if changes.get("status"):
            if changes["status"] not in GOAL_STATUSES:
                raise InvalidRequestError(f"Invalid status: {changes['status']}")
            goal.status = changes["status"]
        if changes.get("kpis") is not None:
            if not changes["kpis"]:
                raise InvalidRequestError("Missing required fields")
            goal.kpis = [_clean_kpi(k) for k in changes["kpis"]]
        if changes.get("steps") is not None:
            goal.steps = _clean_steps(changes["steps"])
        goal.updated_at = utcnow()
        return _goal_dict(goal)


def delete_goal(actor: dict[str, Any], goal_id: int) -> None:
    with session_scope() as session:
        session.delete(_get_goal(session, actor, goal_id))
    logger.info("goal_deleted", goal_id=goal_id, user_id=actor["id"])


def record_measurement(
    actor: dict[str, Any],
    goal_id: int,
    kpi_index: int,
    value: float,
    date: str | None = None,
    notes: str = "",
) -> dict[str, Any]:
    with session_scope() as session:
        goal = _get_goal(session, actor, goal_id)
        kpis = goal.kpis
        if not 0 <= kpi_index < len(kpis):
            raise NotFoundError("KPI not found")
        kpis[kpi_index]["measurements"].append(_clean_measurement({"value": value, "date": date, "notes": notes}))
        goal.kpis = kpis
        if goal.status == "not-started":
            goal.status = "in-progress"
        goal.updated_at = utcnow()
        return _goal_dict(goal)


def set_step_completed(actor: dict[str, Any], goal_id: int, step_index: int, completed: bool) -> dict[str, Any]:
    with session_scope() as session:
        goal = _get_goal(session, actor, goal_id)
        steps = goal.steps
        if not 0 <= step_index < len(steps):
            raise NotFoundError("Step not found")
        steps[step_index]["completed"] = bool(completed)
        goal.steps = steps
        goal.progress = round(sum(1 for s in steps if s["completed"]) / len(steps) * 100)
        goal.status = status_for_progress(goal.progress)
        goal.updated_at = utcnow()
        return _goal_dict(goal)
