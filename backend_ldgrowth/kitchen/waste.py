"""
Kitchen waste log.

Entries are validated with pydantic before they reach the database and are
soft-deleted (is_active=False); inactive entries behave as missing.
"""

from __future__ import annotations

import math
from collections import defaultdict
from datetime import datetime
from typing import Any, Literal, Optional

from pydantic import BaseModel, Field, ValidationError
from sqlalchemy import func, select

from backend_ldgrowth.core.exceptions import InvalidRequestError, NotFoundError
from backend_ldgrowth.core.timeutil import to_naive_utc
from backend_ldgrowth.database import session_scope
from backend_ldgrowth.database.models import WasteEntry
from backend_ldgrowth.ldgrowth_logging import get_logger

logger = get_logger(__name__)

CATEGORIES = ("food", "packaging", "other")
DEFAULT_PAGE_SIZE = 20


class WasteEntryCreate(BaseModel):
    date: datetime
    category: Literal["food", "packaging", "other"]
    item_name: str = Field(..., min_length=1, max_length=100)
    quantity: float = Field(..., gt=0)
    unit: str = Field(..., min_length=1, max_length=20)
    cost: float = Field(..., ge=0)
    reason: str = Field(..., min_length=1, max_length=500)
    action_taken: Optional[str] = Field(None, max_length=500)


class WasteEntryUpdate(BaseModel):
    date: Optional[datetime] = None
    category: Optional[Literal["food", "packaging", "other"]] = None
    item_name: Optional[str] = Field(None, min_length=1, max_length=100)
    quantity: Optional[float] = Field(None, gt=0)
    unit: Optional[str] = Field(None, min_length=1, max_length=20)
    cost: Optional[float] = Field(None, ge=0)
    reason: Optional[str] = Field(None, min_length=1, max_length=500)
    action_taken: Optional[str] = Field(None, max_length=500)


def _validated(model: type[BaseModel], data: dict[str, Any]) -> BaseModel:
    try:
        return model.model_validate(data)
    except ValidationError as e:
        problems = "; ".join(
            f"{'.'.join(str(p) for p in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise InvalidRequestError(f"Validation error: {problems}") from e


def _get_entry(session, store_id: int, entry_id: int) -> WasteEntry:
    entry = session.get(WasteEntry, entry_id)
    if entry is None or entry.store_id != store_id or not entry.is_active:
        raise NotFoundError("Waste entry not found")
    return entry


def _filtered(stmt, store_id: int, start: datetime | None, end: datetime | None, category: str | None):
    stmt = stmt.where(WasteEntry.store_id == store_id, WasteEntry.is_active.is_(True))
    if start is not None and end is not None:
        stmt = stmt.where(WasteEntry.date >= to_naive_utc(start), WasteEntry.date <= to_naive_utc(end))
    if category:
        stmt = stmt.where(WasteEntry.category == category)
    return stmt


def create_entry(actor: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    payload = _validated(WasteEntryCreate, data)
    with session_scope() as session:
        entry = WasteEntry(
            store_id=actor["store_id"],
            created_by=actor["id"],
            **{**payload.model_dump(), "date": to_naive_utc(payload.date)},
        )
        session.add(entry)
        session.flush()
        logger.info("waste_entry_created", entry_id=entry.id, category=entry.category, cost=entry.cost)
        return entry.to_dict()


def get_entry(actor: dict[str, Any], entry_id: int) -> dict[str, Any]:
    with session_scope() as session:
        return _get_entry(session, actor["store_id"], entry_id).to_dict()


def update_entry(actor: dict[str, Any], entry_id: int, changes: dict[str, Any]) -> dict[str, Any]:
    payload = _validated(WasteEntryUpdate, changes)
    with session_scope() as session:
        entry = _get_entry(session, actor["store_id"], entry_id)
        for field, value in payload.model_dump(exclude_unset=True).items():
            if value is None and field != "action_taken":
                continue
            setattr(entry, field, to_naive_utc(value) if field == "date" else value)
        return entry.to_dict()


def delete_entry(actor: dict[str, Any], entry_id: int) -> None:
    with session_scope() as session:
        entry = _get_entry(session, actor["store_id"], entry_id)
        entry.is_active = False
    logger.info("waste_entry_deleted", entry_id=entry_id)


def list_entries(
    actor: dict[str, Any],
    start: datetime | None = None,
    end: datetime | None = None,
    category: str | None = None,
    page: int = 1,
    limit: int = DEFAULT_PAGE_SIZE,
) -> dict[str, Any]:
    """Newest entries first. The date filter applies only when both bounds are given."""
    if page < 1 or limit < 1:
        raise InvalidRequestError("page and limit must be positive")
    if category and category not in CATEGORIES:
        raise InvalidRequestError(f"Invalid category: {category}")
    with session_scope() as session:
        total = session.scalar(_filtered(select(func.count(WasteEntry.id)), actor["store_id"], start, end, category))
        rows = session.scalars(
            _filtered(select(WasteEntry), actor["store_id"], start, end, category)
            .order_by(WasteEntry.date.desc(), WasteEntry.id.desc())
            .offset((page - 1) * limit)
            .limit(limit)
        ).all()
        return {
            "entries": [r.to_dict() for r in rows],
            "pagination": {"total": total or 0, "page": page, "pages": math.ceil((total or 0) / limit)},
        }


def waste_metrics(
    actor: dict[str, Any],
    start: datetime,
    end: datetime,
    category: str | None = None,
) -> dict[str, Any]:
    """Total cost, and per category a total plus a per-day {date, cost, count} breakdown."""
    if category and category not in CATEGORIES:
        raise InvalidRequestError(f"Invalid category: {category}")
    with session_scope() as session:
        rows = session.scalars(
            _filtered(select(WasteEntry), actor["store_id"], start, end, category).order_by(WasteEntry.date)
        ).all()
        daily: dict[str, dict[str, dict[str, Any]]] = defaultdict(dict)
        for row in rows:
            day = row.date.date().isoformat()
            bucket = daily[row.category].setdefault(day, {"date": day, "cost": 0.0, "count": 0})
            bucket["cost"] += row.cost
            bucket["count"] += 1

    breakdown = []
    for cat in sorted(daily):
        days = list(daily[cat].values())
        breakdown.append({
            "category": cat,
            "total_cost": round(sum(d["cost"] for d in days), 2),
            "daily_breakdown": [{**d, "cost": round(d["cost"], 2)} for d in days],
        })
    return {
        "total_cost": round(sum(c["total_cost"] for c in breakdown), 2),
        "category_breakdown": breakdown,
        "date_range": {"start": start.isoformat(), "end": end.isoformat()},
    }


def waste_cost_since(session, store_id: int, since: datetime) -> float:
    total = session.scalar(
        select(func.coalesce(func.sum(WasteEntry.cost), 0.0)).where(
            WasteEntry.store_id == store_id,
            WasteEntry.is_active.is_(True),
            WasteEntry.date >= since,
        )
    )
    return round(float(total or 0.0), 2)
