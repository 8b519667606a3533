"""
Kitchen waste routes: /api/kitchen/waste.

Bodies are passed through as-is; kitchen.waste validates them and reports
problems as 400 "Validation error" responses.
"""

from __future__ import annotations

from datetime import datetime
from typing import Any, Optional

from fastapi import APIRouter, Body, Depends, Query

from backend_ldgrowth.api_server.deps import get_current_user
from backend_ldgrowth.core.exceptions import InvalidRequestError
from backend_ldgrowth.kitchen import waste

router = APIRouter(prefix="/api/kitchen/waste", tags=["kitchen"])


@router.post("", status_code=201)
def create_entry(data: dict[str, Any] = Body(...), actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return waste.create_entry(actor, data)


@router.get("")
def list_entries(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    category: Optional[str] = None,
    page: int = Query(1, ge=1),
    limit: int = Query(waste.DEFAULT_PAGE_SIZE, ge=1, le=100),
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return waste.list_entries(actor, start_date, end_date, category, page=page, limit=limit)


@router.get("/metrics")
def waste_metrics(
    start_date: Optional[datetime] = None,
    end_date: Optional[datetime] = None,
    category: Optional[str] = None,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    if start_date is None or end_date is None:
        raise InvalidRequestError("start_date and end_date are required")
    return waste.waste_metrics(actor, start_date, end_date, category)


@router.get("/{entry_id}")
def get_entry(entry_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return waste.get_entry(actor, entry_id)


@router.patch("/{entry_id}")
def update_entry(
    entry_id: int,
    changes: dict[str, Any] = Body(...),
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return waste.update_entry(actor, entry_id, changes)


@router.delete("/{entry_id}")
def delete_entry(entry_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, str]:
    waste.delete_entry(actor, entry_id)
    return {"message": "Waste entry deleted successfully"}
