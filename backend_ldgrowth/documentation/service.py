"""
Employee documentation: disciplinary actions, PIPs and administrative notes.

Status rules:
  - created: Disciplinary -> Pending Acknowledgment, otherwise Documented
  - acknowledged by the employee -> Pending Follow-up (requires_follow_up) or Resolved
  - follow-up added or completed -> back to Pending Acknowledgment (Disciplinary) or Documented

Team Members and Trainers only ever see documents about themselves.
"""

from __future__ import annotations

import secrets
from datetime import date
from typing import Any, Optional, Union

from pydantic import Field
from sqlalchemy import select
from sqlalchemy.orm import Session

from backend_ldgrowth.core.exceptions import (
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from backend_ldgrowth.core.timeutil import iso, utcnow
from backend_ldgrowth.core.validation import Payload, parse_item
from backend_ldgrowth.database import session_scope
from backend_ldgrowth.database.models import DocumentRecord
from backend_ldgrowth.ldgrowth_logging import get_logger
from backend_ldgrowth.notifications.service import notify
from backend_ldgrowth.users.service import get_store_user, is_restricted, require_manager

logger = get_logger(__name__)

DOCUMENT_TYPES = (
    "Call Out",
    "Doctor Note",
    "Verbal Warning",
    "Written Warning",
    "Final Warning",
    "Performance Improvement Plan",
    "Suspension",
    "Termination",
    "Other",
)
CATEGORIES = ("Disciplinary", "PIP", "Administrative")
SEVERITIES = ("Minor", "Moderate", "Major", "Critical")
STATUSES = ("Open", "Pending Acknowledgment", "Pending Follow-up", "Resolved", "Documented")
PIP_OUTCOMES = ("pending", "successful", "unsuccessful", "extended")
DEFAULT_PIP_TIMELINE_DAYS = 90

_EDITABLE_FIELDS = (
    "date",
    "type",
    "category",
    "severity",
    "status",
    "description",
    "witnesses",
    "action_taken",
    "requires_follow_up",
    "follow_up_date",
    "follow_up_actions",
)


def _reset_status(category: str) -> str:
    return "Pending Acknowledgment" if category == "Disciplinary" else "Documented"


def _validate(doc: DocumentRecord) -> None:
    if doc.type not in DOCUMENT_TYPES:
        raise InvalidRequestError(f"Invalid document type: {doc.type}")
    if doc.category not in CATEGORIES:
        raise InvalidRequestError(f"Invalid category: {doc.category}")
    if doc.status not in STATUSES:
        raise InvalidRequestError(f"Invalid status: {doc.status}")
    if not (doc.description or "").strip():
        raise InvalidRequestError("Description is required")
    if doc.category in ("Disciplinary", "PIP"):
        if doc.severity not in SEVERITIES:
            raise InvalidRequestError("Severity is required for disciplinary and PIP documents")
        if not (doc.action_taken or "").strip():
            raise InvalidRequestError("Action taken is required for disciplinary and PIP documents")
    elif doc.severity is not None and doc.severity not in SEVERITIES:
        raise InvalidRequestError(f"Invalid severity: {doc.severity}")
    if doc.requires_follow_up and doc.follow_up_date is None:
        raise InvalidRequestError("Follow-up date is required when follow-up is required")


class PipGoal(Payload):
    description: Optional[str] = None
    target_date: Optional[Union[date, str]] = None
    completed: Optional[bool] = False
    completed_date: Optional[Union[date, str]] = None
    evidence: Optional[str] = None


class PipDetails(Payload):
    """Performance improvement plan attached to a PIP document."""

    goals: Optional[list[PipGoal]] = None
    timeline_days: Optional[int] = Field(None, ge=1)
    check_in_dates: Optional[list[Union[date, str]]] = None
    resources_provided: Optional[list[str]] = None
    final_outcome: Optional[str] = None
    outcome_notes: Optional[str] = None


def _normalize_pip(raw: Any) -> dict[str, Any]:
    pip = parse_item(PipDetails, raw or {}, "PIP details")
    goals = []
    for goal in pip.goals or []:
        description = (goal.description or "").strip()
        if not description:
            raise InvalidRequestError("Every PIP goal needs a description")
        goals.append({
            "description": description,
            "target_date": str(goal.target_date) if goal.target_date else None,
            "completed": bool(goal.completed),
            "completed_date": str(goal.completed_date) if goal.completed_date else None,
            "evidence": goal.evidence or "",
        })
    outcome = pip.final_outcome or "pending"
    if outcome not in PIP_OUTCOMES:
        raise InvalidRequestError(f"Invalid PIP outcome: {outcome}")
    return {
        "goals": goals,
        "timeline_days": pip.timeline_days or DEFAULT_PIP_TIMELINE_DAYS,
        "check_in_dates": [str(d) for d in pip.check_in_dates or []],
        "resources_provided": list(pip.resources_provided or []),
        "final_outcome": outcome,
        "outcome_notes": pip.outcome_notes or "",
    }


def _get_document(session: Session, actor: dict[str, Any], document_id: int) -> DocumentRecord:
    doc = session.get(DocumentRecord, document_id)
    if doc is None or doc.store_id != actor["store_id"]:
        raise NotFoundError("Document not found")
    if is_restricted(actor) and doc.employee_id != actor["id"]:
        raise PermissionDeniedError("You can only view your own documentation")
    return doc


def _notify_employee(session: Session, doc: DocumentRecord, title: str, message: str) -> None:
    notify(
        session,
        user_id=doc.employee_id,
        store_id=doc.store_id,
        type="documentation",
        title=title,
        message=message,
        priority="high" if doc.category == "Disciplinary" else "medium",
        related_id=doc.id,
        related_model="Documentation",
    )


def create_document(actor: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    require_manager(actor)
    if not data.get("employee_id"):
        raise InvalidRequestError("Employee is required")
    with session_scope() as session:
        employee = get_store_user(session, actor["store_id"], data["employee_id"])
        category = data.get("category")
        doc = DocumentRecord(
            store_id=actor["store_id"],
            employee_id=employee.id,
            created_by=actor["id"],
            supervisor_id=employee.supervisor_id or actor["id"],
            date=data.get("date") or date.today(),
            type=data.get("type"),
            category=category,
            severity=data.get("severity"),
            status=_reset_status(category),
            description=(data.get("description") or "").strip(),
            action_taken=(data.get("action_taken") or "").strip() or None,
            requires_follow_up=bool(data.get("requires_follow_up", False)),
            follow_up_date=data.get("follow_up_date"),
            follow_up_actions=data.get("follow_up_actions"),
            acknowledged=False,
        )
        doc.witnesses = [str(w) for w in data.get("witnesses") or []]
        doc.follow_ups = []
        doc.attachments = []
        if category == "PIP" or doc.type == "Performance Improvement Plan":
            doc.pip_details = _normalize_pip(data.get("pip_details"))
        _validate(doc)
        session.add(doc)
        session.flush()
        _notify_employee(
            session,
            doc,
            title=f"New {doc.type} documentation",
            message=(
                f"A {doc.type.lower()} has been documented for {doc.date:%B %d, %Y}."
                + (" Please review and acknowledge it." if doc.status == "Pending Acknowledgment" else "")
            ),
        )
        logger.info(
            "document_created",
            document_id=doc.id,
            store_id=doc.store_id,
            category=doc.category,
            type=doc.type,
        )
        return doc.to_dict()


def list_documents(
    actor: dict[str, Any],
    employee_id: int | None = None,
    category: str | None = None,
    status: str | None = None,
) -> list[dict[str, Any]]:
    with session_scope() as session:
        stmt = select(DocumentRecord).where(DocumentRecord.store_id == actor["store_id"])
        if is_restricted(actor):
            stmt = stmt.where(DocumentRecord.employee_id == actor["id"])
        elif employee_id is not None:
            stmt = stmt.where(DocumentRecord.employee_id == employee_id)
        if category:
            stmt = stmt.where(DocumentRecord.category == category)
        if status:
            stmt = stmt.where(DocumentRecord.status == status)
        rows = session.scalars(stmt.order_by(DocumentRecord.date.desc(), DocumentRecord.id.desc())).all()
        return [d.to_dict() for d in rows]


def employee_documents(actor: dict[str, Any], employee_id: int) -> list[dict[str, Any]]:
    if is_restricted(actor) and employee_id != actor["id"]:
        raise PermissionDeniedError("You can only view your own documentation")
    with session_scope() as session:
        get_store_user(session, actor["store_id"], employee_id)
    return list_documents(actor, employee_id=employee_id)


def get_document(actor: dict[str, Any], document_id: int) -> dict[str, Any]:
    with session_scope() as session:
        return _get_document(session, actor, document_id).to_dict()


def update_document(actor: dict[str, Any], document_id: int, changes: dict[str, Any]) -> dict[str, Any]:
    require_manager(actor)
    with session_scope() as session:
        doc = _get_document(session, actor, document_id)
        for field in _EDITABLE_FIELDS:
            if field in changes and changes[field] is not None:
                if field == "witnesses":
                    doc.witnesses = [str(w) for w in changes[field]]
                else:
                    setattr(doc, field, changes[field])
        if changes.get("pip_details") is not None:
            doc.pip_details = _normalize_pip(changes["pip_details"])
        _validate(doc)
        session.flush()
        logger.info("document_updated", document_id=doc.id, status=doc.status)
        return doc.to_dict()


def delete_document(actor: dict[str, Any], document_id: int) -> None:
    require_manager(actor)
    with session_scope() as session:
        session.delete(_get_document(session, actor, document_id))
    logger.info("document_deleted", document_id=document_id)


def acknowledge_document(
    actor: dict[str, Any],
    document_id: int,
    comments: str | None = None,
    rating: int | None = None,
) -> dict[str, Any]:
    """The employee confirms they have read the document, optionally rating the conversation 1-5."""
    if rating is not None and not 1 <= rating <= 5:
        raise InvalidRequestError("Rating must be between 1 and 5")
    with session_scope() as session:
        doc = session.get(DocumentRecord, document_id)
        if doc is None or doc.employee_id != actor["id"] or doc.acknowledged:
            raise NotFoundError("Document not found or already acknowledged")
        doc.acknowledged = True
        doc.acknowledged_at = utcnow()
        doc.acknowledgment_comments = (comments or "").strip() or None
        doc.acknowledgment_rating = rating
        doc.status = "Pending Follow-up" if doc.requires_follow_up else "Resolved"
        notify(
            session,
            user_id=doc.supervisor_id,
            store_id=doc.store_id,
            type="documentation",
            title="Documentation acknowledged",
            message=f"{actor['name']} acknowledged the {doc.type.lower()} from {doc.date:%B %d, %Y}.",
            related_id=doc.id,
            related_model="Documentation",
        )
        session.flush()
        logger.info("document_acknowledged", document_id=doc.id, status=doc.status)
        return doc.to_dict()


def remind_acknowledgment(actor: dict[str, Any], document_id: int) -> dict[str, Any]:
    """Nudge the employee about a document still waiting for their acknowledgment."""
    require_manager(actor)
    with session_scope() as session:
        doc = session.get(DocumentRecord, document_id)
        if (
            doc is None
            or doc.store_id != actor["store_id"]
            or doc.status != "Pending Acknowledgment"
            or doc.acknowledged
        ):
            raise NotFoundError("Document not found or already acknowledged")
        notify(
            session,
            user_id=doc.employee_id,
            store_id=doc.store_id,
            type="documentation",
            title="Documentation acknowledgment required",
            message=f"Please acknowledge the {doc.type.lower()} document.",
            priority="high",
            related_id=doc.id,
            related_model="Documentation",
        )
        logger.info("document_acknowledgment_reminder_sent", document_id=doc.id, employee_id=doc.employee_id)
    return {"message": "Reminder sent"}


def add_follow_up(
    actor: dict[str, Any],
    document_id: int,
    follow_up_date: date,
    note: str,
    status: str = "Pending",
) -> dict[str, Any]:
    require_manager(actor)
    if not (note or "").strip():
        raise InvalidRequestError("Follow-up note is required")
    with session_scope() as session:
        doc = _get_document(session, actor, document_id)
        follow_ups = doc.follow_ups
        follow_ups.append({
            "id": secrets.token_hex(6),
            "date": iso(follow_up_date),
            "note": note.strip(),
            "status": status,
            "completed": False,
            "completed_at": None,
            "completed_by": None,
            "created_by": actor["id"],
        })
        doc.follow_ups = follow_ups
        doc.status = _reset_status(doc.category)
        _notify_employee(session, doc, "Documentation follow-up", f"A follow-up was scheduled for {follow_up_date:%B %d, %Y}.")
        session.flush()
        logger.info("document_follow_up_added", document_id=doc.id)
        return doc.to_dict()


def complete_follow_up(
    actor: dict[str, Any],
    document_id: int,
    follow_up_id: str,
    note: str | None = None,
) -> dict[str, Any]:
    require_manager(actor)
    with session_scope() as session:
        doc = _get_document(session, actor, document_id)
        follow_ups = doc.follow_ups
        for follow_up in follow_ups:
            if follow_up["id"] == follow_up_id:
                break
        else:
            raise NotFoundError("Follow-up not found")
        if follow_up["completed"]:
            raise InvalidStateError("Follow-up already completed")
        follow_up["completed"] = True
        follow_up["status"] = "Completed"
        follow_up["completed_at"] = iso(utcnow())
        follow_up["completed_by"] = actor["id"]
        if note:
            follow_up["note"] = f"{follow_up['note']}\n{note.strip()}"
        doc.follow_ups = follow_ups
        doc.status = _reset_status(doc.category)
        _notify_employee(session, doc, "Documentation follow-up completed", "A follow-up on your documentation was completed.")
        session.flush()
        logger.info("document_follow_up_completed", document_id=doc.id, follow_up_id=follow_up_id)
        return doc.to_dict()


def add_attachment(actor: dict[str, Any], document_id: int, attachment: dict[str, Any]) -> dict[str, Any]:
    """Attach a file reference (the file itself lives in external storage)."""
    require_manager(actor)
    name = (attachment.get("name") or "").strip()
    url = (attachment.get("url") or "").strip()
    if not name or not url:
        raise InvalidRequestError("Attachment name and url are required")
    with session_scope() as session:
        doc = _get_document(session, actor, document_id)
        attachments = doc.attachments
        attachments.append({
            "id": secrets.token_hex(6),
            "name": name,
            "type": attachment.get("type") or "application/octet-stream",
            "category": attachment.get("category") or "Other",
            "url": url,
            "uploaded_by": actor["id"],
            "uploaded_at": iso(utcnow()),
        })
        doc.attachments = attachments
        session.flush()
        return doc.to_dict()


def delete_attachment(actor: dict[str, Any], document_id: int, attachment_id: str) -> dict[str, Any]:
    require_manager(actor)
    with session_scope() as session:
        doc = _get_document(session, actor, document_id)
        attachments = doc.attachments
        remaining = [a for a in attachments if a["id"] != attachment_id]
        if len(remaining) == len(attachments):
            raise NotFoundError("Attachment not found")
        doc.attachments = remaining
        session.flush()
        return doc.to_dict()


def _pip(doc: DocumentRecord) -> dict[str, Any]:
    pip = doc.pip_details
    if not pip:
        raise InvalidStateError("Document has no performance improvement plan")
    return pip


def complete_pip_goal(
    actor: dict[str, Any],
    document_id: int,
    goal_index: int,
    evidence: str | None = None,
) -> dict[str, Any]:
    require_manager(actor)
    with session_scope() as session:
        doc = _get_document(session, actor, document_id)
        pip = _pip(doc)
        if not 0 <= goal_index < len(pip["goals"]):
            raise NotFoundError("PIP goal not found")
        goal = pip["goals"][goal_index]
        goal["completed"] = True
        goal["completed_date"] = iso(date.today())
        goal["evidence"] = (evidence or "").strip()
        doc.pip_details = pip
        session.flush()
        return doc.to_dict()


def set_pip_outcome(
    actor: dict[str, Any],
    document_id: int,
    outcome: str,
    notes: str | None = None,
) -> dict[str, Any]:
    require_manager(actor)
    if outcome not in PIP_OUTCOMES:
        raise InvalidRequestError(f"Invalid PIP outcome: {outcome}")
    with session_scope() as session:
        doc = _get_document(session, actor, document_id)
        pip = _pip(doc)
        pip["final_outcome"] = outcome
        pip["outcome_notes"] = (notes or "").strip()
        doc.pip_details = pip
        if outcome in ("successful", "unsuccessful"):
            doc.status = "Resolved"
        session.flush()
        logger.info("pip_outcome_set", document_id=doc.id, outcome=outcome)
        return doc.to_dict()


def pending_acknowledgment_count(session: Session, store_id: int) -> int:
    rows = session.scalars(
        select(DocumentRecord.id).where(
            DocumentRecord.store_id == store_id,
            DocumentRecord.status == "Pending Acknowledgment",
        )
    ).all()
    return len(rows)
