"""
Stores, team members, API-token authentication and role checks.

A user's position is their role. Leaders and Directors manage the store;
Team Members and Trainers only see their own records where a domain
restricts access. Every function returns plain dicts (Model.to_dict()).
"""

from __future__ import annotations

import secrets
from datetime import date
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from backend_ldgrowth.core.exceptions import (
    AuthenticationError,
    ConflictError,
    InvalidRequestError,
    NotFoundError,
    PermissionDeniedError,
)
from backend_ldgrowth.database import session_scope
from backend_ldgrowth.database.models import Store, User
from backend_ldgrowth.ldgrowth_logging import get_logger

logger = get_logger(__name__)

POSITIONS = ("Team Member", "Trainer", "Leader", "Director")
MANAGER_POSITIONS = ("Leader", "Director")
RESTRICTED_POSITIONS = ("Team Member", "Trainer")
DEPARTMENTS = ("Front of House", "Back of House", "Management", "Other")
EMPLOYMENT_TYPES = ("Full-time", "Part-time")

# Short codes used by survey audiences and training plans
DEPARTMENT_CODES = {
    "Front of House": "FOH",
    "Back of House": "BOH",
    "Management": "Management",
    "Other": "Other",
}

_EDITABLE_FIELDS = ("name", "position", "department", "employment_type", "hire_date", "supervisor_id")


def is_manager(actor: dict[str, Any]) -> bool:
    return actor.get("position") in MANAGER_POSITIONS


def is_restricted(actor: dict[str, Any]) -> bool:
    return actor.get("position") in RESTRICTED_POSITIONS


def require_manager(actor: dict[str, Any]) -> None:
    if not is_manager(actor):
        raise PermissionDeniedError("Only leaders and directors can perform this action")


def require_director(actor: dict[str, Any]) -> None:
    if actor.get("position") != "Director":
        raise PermissionDeniedError("Only directors can perform this action")


def department_code(department: str | None) -> str:
    return DEPARTMENT_CODES.get(department or "", department or "Other")


def experience_level(hire_date: date | None, today: date | None = None) -> str:
    """Bucket tenure into survey experience levels using 30-day months."""
    if hire_date is None:
        return "0-6 months"
    today = today or date.today()
    months = (today - hire_date).days // 30
    if months >= 24:
        return "2+ years"
    if months >= 12:
        return "1-2 years"
    if months >= 6:
        return "6-12 months"
    return "0-6 months"


def _new_token() -> str:
    return secrets.token_urlsafe(32)


def _validate_profile(position: str, department: str, employment_type: str) -> None:
    if position not in POSITIONS:
        raise InvalidRequestError(f"Invalid position: {position}")
    if department not in DEPARTMENTS:
        raise InvalidRequestError(f"Invalid department: {department}")
    if employment_type not in EMPLOYMENT_TYPES:
        raise InvalidRequestError(f"Invalid employment type: {employment_type}")


def get_store_user(session: Session, store_id: int, user_id: int) -> User:
    """Load a user belonging to store_id or raise NotFoundError."""
    user = session.get(User, user_id)
    if user is None or user.store_id != store_id:
        raise NotFoundError("User not found")
    return user


def create_store(
    name: str,
    store_number: str,
    director_name: str,
    director_email: str,
) -> dict[str, Any]:
    """Create a store and its first Director. Returns {"store", "director"} (director includes api_token)."""
    name = (name or "").strip()
    store_number = (store_number or "").strip()
    if not name or not store_number:
        raise InvalidRequestError("Store name and number are required")
    if not (director_name or "").strip() or not (director_email or "").strip():
        raise InvalidRequestError("Director name and email are required")
    try:
        with session_scope() as session:
            store = Store(name=name, store_number=store_number)
            session.add(store)
            session.flush()
            director = User(
                store_id=store.id,
                name=director_name.strip(),
                email=director_email.strip().lower(),
                position="Director",
                department="Management",
                employment_type="Full-time",
                hire_date=date.today(),
                api_token=_new_token(),
            )
            session.add(director)
            session.flush()
            result = {"store": store.to_dict(), "director": director.to_dict(include_token=True)}
    except IntegrityError as e:
        raise ConflictError("Store number or email already registered") from e
    logger.info("store_created", store_id=result["store"]["id"], store_number=store_number)
    return result


def create_user(
    actor: dict[str, Any],
    name: str,
    email: str,
    position: str = "Team Member",
    department: str = "Front of House",
    employment_type: str = "Part-time",
    hire_date: date | None = None,
    supervisor_id: int | None = None,
) -> dict[str, Any]:
    """Add a team member to the actor's store. Managers only; email must be unique."""
    require_manager(actor)
    name = (name or "").strip()
    email = (email or "").strip().lower()
    if not name or not email:
        raise InvalidRequestError("Name and email are required")
    _validate_profile(position, department, employment_type)
    try:
        with session_scope() as session:
            if supervisor_id is not None:
                get_store_user(session, actor["store_id"], supervisor_id)
            user = User(
                store_id=actor["store_id"],
                name=name,
                email=email,
                position=position,
                department=department,
                employment_type=employment_type,
                hire_date=hire_date,
                supervisor_id=supervisor_id,
                api_token=_new_token(),
            )
            session.add(user)
            session.flush()
            result = user.to_dict(include_token=True)
    except IntegrityError as e:
        raise ConflictError("Email already registered") from e
    logger.info("user_created", store_id=actor["store_id"], user_id=result["id"], position=position)
    return result


def list_users(
    actor: dict[str, Any],
    department: str | None = None,
    status: str | None = None,
) -> list[dict[str, Any]]:
    with session_scope() as session:
        stmt = select(User).where(User.store_id == actor["store_id"])
        if department:
            stmt = stmt.where(User.department == department)
        if status:
            stmt = stmt.where(User.status == status)
        rows = session.scalars(stmt.order_by(User.name)).all()
        return [u.to_dict() for u in rows]


def get_user(actor: dict[str, Any], user_id: int) -> dict[str, Any]:
    with session_scope() as session:
        return get_store_user(session, actor["store_id"], user_id).to_dict()


def update_user(actor: dict[str, Any], user_id: int, changes: dict[str, Any]) -> dict[str, Any]:
    """Partial update of profile fields. Managers only."""
    require_manager(actor)
    with session_scope() as session:
        user = get_store_user(session, actor["store_id"], user_id)
        for field in _EDITABLE_FIELDS:
            if field in changes and changes[field] is not None:
                setattr(user, field, changes[field])
        _validate_profile(user.position, user.department, user.employment_type)
        if user.supervisor_id is not None:
            if user.supervisor_id == user.id:
                raise InvalidRequestError("A user cannot supervise themselves")
            get_store_user(session, actor["store_id"], user.supervisor_id)
        session.flush()
        logger.info("user_updated", user_id=user_id, fields=sorted(k for k in changes if k in _EDITABLE_FIELDS))
        return user.to_dict()


def deactivate_user(actor: dict[str, Any], user_id: int) -> dict[str, Any]:
    require_manager(actor)
    if actor["id"] == user_id:
        raise InvalidRequestError("You cannot deactivate your own account")
    with session_scope() as session:
        user = get_store_user(session, actor["store_id"], user_id)
        user.status = "inactive"
        session.flush()
        logger.info("user_deactivated", user_id=user_id)
        return user.to_dict()


def authenticate(token: str | None) -> dict[str, Any]:
    """Resolve an API token to its active user."""
    token = (token or "").strip()
    if not token:
        raise AuthenticationError("Authentication required")
    with session_scope() as session:
        user = session.scalars(select(User).where(User.api_token == token)).first()
        if user is None:
            raise AuthenticationError("Invalid token")
        if user.status != "active":
            raise AuthenticationError("Account is inactive")
        return user.to_dict()
