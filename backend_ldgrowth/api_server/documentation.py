"""
Documentation record routes: /api/documentation.
"""

from __future__ import annotations

import datetime as dt
from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from backend_ldgrowth.api_server.deps import get_current_user
from backend_ldgrowth.documentation import service
from backend_ldgrowth.documentation.service import PipDetails

router = APIRouter(prefix="/api/documentation", tags=["documentation"])


class DocumentBody(BaseModel):
    employee_id: int
    date: Optional[dt.date] = None
    type: str = Field(..., description="Call Out, Verbal Warning, Performance Improvement Plan, ...")
    category: str = Field(..., description="Disciplinary, PIP or Administrative")
    severity: Optional[str] = None
    description: str = Field(..., min_length=1)
    witnesses: list[str] = Field(default_factory=list)
    action_taken: Optional[str] = None
    requires_follow_up: bool = False
    follow_up_date: Optional[dt.date] = None
    follow_up_actions: Optional[str] = None
    pip_details: Optional[PipDetails] = None


class DocumentUpdateBody(BaseModel):
    date: Optional[dt.date] = None
    type: Optional[str] = None
    category: Optional[str] = None
    severity: Optional[str] = None
    status: Optional[str] = None
    description: Optional[str] = None
    witnesses: Optional[list[str]] = None
    action_taken: Optional[str] = None
    requires_follow_up: Optional[bool] = None
    follow_up_date: Optional[dt.date] = None
    follow_up_actions: Optional[str] = None
    pip_details: Optional[PipDetails] = None


class AcknowledgeBody(BaseModel):
    comments: Optional[str] = None
    rating: Optional[int] = Field(None, ge=1, le=5)


class FollowUpBody(BaseModel):
    date: dt.date
    note: str = Field(..., min_length=1)
    status: str = "Pending"


class CompleteFollowUpBody(BaseModel):
    note: Optional[str] = None


class AttachmentBody(BaseModel):
    name: str = Field(..., min_length=1)
    type: str = ""
    category: str = "Other"
    url: str = Field(..., min_length=1)


class PipGoalBody(BaseModel):
    evidence: Optional[str] = None


class PipOutcomeBody(BaseModel):
    outcome: str = Field(..., description="pending, successful, unsuccessful or extended")
    notes: Optional[str] = None


@router.get("")
def list_documents(
    employee_id: Optional[int] = None,
    category: Optional[str] = None,
    status: Optional[str] = None,
    actor: dict[str, Any] = Depends(get_current_user),
) -> list[dict[str, Any]]:
    return service.list_documents(actor, employee_id=employee_id, category=category, status=status)


@router.post("", status_code=201)
def create_document(body: DocumentBody, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.create_document(actor, body.model_dump())


@router.get("/employee/{employee_id}")
def employee_documents(employee_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> list[dict[str, Any]]:
    return service.employee_documents(actor, employee_id)


@router.get("/{document_id}")
def get_document(document_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.get_document(actor, document_id)


@router.patch("/{document_id}")
def update_document(
    document_id: int,
    body: DocumentUpdateBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.update_document(actor, document_id, body.model_dump(exclude_unset=True))


@router.delete("/{document_id}")
def delete_document(document_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, bool]:
    service.delete_document(actor, document_id)
    return {"deleted": True}


@router.post("/{document_id}/acknowledge")
def acknowledge(
    document_id: int,
    body: AcknowledgeBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.acknowledge_document(actor, document_id, body.comments, body.rating)


@router.post("/{document_id}/remind")
def remind_acknowledgment(document_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, str]:
    return service.remind_acknowledgment(actor, document_id)


@router.post("/{document_id}/follow-ups", status_code=201)
def add_follow_up(
    document_id: int,
    body: FollowUpBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.add_follow_up(actor, document_id, body.date, body.note, body.status)


@router.post("/{document_id}/follow-ups/{follow_up_id}/complete")
def complete_follow_up(
    document_id: int,
    follow_up_id: str,
    body: CompleteFollowUpBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.complete_follow_up(actor, document_id, follow_up_id, body.note)


@router.post("/{document_id}/attachments", status_code=201)
def add_attachment(
    document_id: int,
    body: AttachmentBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.add_attachment(actor, document_id, body.model_dump())


@router.delete("/{document_id}/attachments/{attachment_id}")
def delete_attachment(
    document_id: int,
    attachment_id: str,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.delete_attachment(actor, document_id, attachment_id)


@router.post("/{document_id}/pip/goals/{goal_index}/complete")
def complete_pip_goal(
    document_id: int,
    goal_index: int,
    body: PipGoalBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.complete_pip_goal(actor, document_id, goal_index, body.evidence)


@router.post("/{document_id}/pip/outcome")
def set_pip_outcome(
    document_id: int,
    body: PipOutcomeBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.set_pip_outcome(actor, document_id, body.outcome, body.notes)
