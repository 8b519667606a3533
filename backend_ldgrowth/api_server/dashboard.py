"""
Dashboard route: /api/dashboard.
"""

from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Depends

from backend_ldgrowth.api_server.deps import get_current_user
from backend_ldgrowth.dashboard.stats import store_dashboard

router = APIRouter(prefix="/api/dashboard", tags=["dashboard"])


@router.get("")
def dashboard(actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return store_dashboard(actor)
