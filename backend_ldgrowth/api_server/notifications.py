"""
Notification inbox routes: /api/notifications.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends, Query

from backend_ldgrowth.api_server.deps import get_current_user
from backend_ldgrowth.notifications import service

router = APIRouter(prefix="/api/notifications", tags=["notifications"])


@router.get("")
def list_notifications(
    unread_only: bool = False,
    limit: int = Query(50, ge=1, le=200),
    actor: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    return service.list_notifications(actor, unread_only=unread_only, limit=limit)


@router.post("/read-all")
def mark_all_read(actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, int]:
    return {"updated": service.mark_all_read(actor)}


@router.post("/{notification_id}/read")
def mark_read(notification_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.mark_read(actor, notification_id)
