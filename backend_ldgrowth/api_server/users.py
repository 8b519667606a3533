"""
Team member routes: /api/users.
"""

from __future__ import annotations

from datetime import date
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from backend_ldgrowth.api_server.deps import get_current_user
from backend_ldgrowth.users import service

router = APIRouter(prefix="/api/users", tags=["users"])


class CreateUserRequest(BaseModel):
    """POST /api/users body."""

    name: str = Field(..., min_length=1, max_length=200)
    email: str = Field(..., min_length=3, max_length=255)
    position: str = Field("Team Member", description="Team Member, Trainer, Leader or Director")
    department: str = Field("Front of House")
    employment_type: str = Field("Part-time")
    hire_date: Optional[date] = None
    supervisor_id: Optional[int] = None


class UpdateUserRequest(BaseModel):
    """PATCH /api/users/{id} body; omitted fields are left unchanged."""

    name: Optional[str] = Field(None, min_length=1, max_length=200)
    position: Optional[str] = None
    department: Optional[str] = None
    employment_type: Optional[str] = None
    hire_date: Optional[date] = None
    supervisor_id: Optional[int] = None


@router.get("/me")
def me(actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return actor


@router.get("")
def list_users(
    department: Optional[str] = None,
    status: Optional[str] = None,
    actor: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    return service.list_users(actor, department=department, status=status)


@router.post("", status_code=201)
def create_user(body: CreateUserRequest, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    """Add a team member. The response carries the new member's API token once."""
    return service.create_user(actor, **body.model_dump())


@router.get("/{user_id}")
def get_user(user_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.get_user(actor, user_id)


@router.patch("/{user_id}")
def update_user(
    user_id: int,
    body: UpdateUserRequest,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.update_user(actor, user_id, body.model_dump(exclude_unset=True))


@router.post("/{user_id}/deactivate")
def deactivate_user(user_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.deactivate_user(actor, user_id)
