"""
Store-scoped evaluation template storage.

Every save goes through prepare_sections, so a stored template always has
a name and at least one titled section with named, known-scale criteria.
"""

from __future__ import annotations

from typing import Any, Callable

from sqlalchemy import select

from backend_ldgrowth.core.exceptions import InvalidRequestError, NotFoundError
from backend_ldgrowth.core.timeutil import utcnow
from backend_ldgrowth.database import session_scope
from backend_ldgrowth.database.models import EvaluationTemplate
from backend_ldgrowth.evaluation_templates import sections as section_ops
from backend_ldgrowth.ldgrowth_logging import get_logger
from backend_ldgrowth.users.service import require_manager

logger = get_logger(__name__)

DEFAULT_TAGS = ["General"]


def _get_template(session, store_id: int, template_id: int) -> EvaluationTemplate:
    template = session.get(EvaluationTemplate, template_id)
    if template is None or template.store_id != store_id:
        raise NotFoundError("Template not found")
    return template


def _clean_tags(tags: Any) -> list[str]:
    if tags is None:
        return list(DEFAULT_TAGS)
    if not isinstance(tags, list):
        raise InvalidRequestError("tags must be a list")
    cleaned = [str(t).strip() for t in tags if str(t).strip()]
    return cleaned or list(DEFAULT_TAGS)


def create_template(actor: dict[str, Any], data: dict[str, Any]) -> dict[str, Any]:
    require_manager(actor)
    name = (data.get("name") or "").strip()
    sections = section_ops.prepare_sections(name, data.get("sections") or [])
    with session_scope() as session:
        template = EvaluationTemplate(
            store_id=actor["store_id"],
            created_by=actor["id"],
            name=name,
            description=data.get("description") or "",
            is_active=bool(data.get("is_active", True)),
        )
        template.tags = _clean_tags(data.get("tags"))
        template.sections = sections
        session.add(template)
        session.flush()
        logger.info("evaluation_template_created", template_id=template.id, sections=len(sections))
        return template.to_dict()


def list_templates(actor: dict[str, Any], include_inactive: bool = False) -> list[dict[str, Any]]:
    with session_scope() as session:
        stmt = select(EvaluationTemplate).where(EvaluationTemplate.store_id == actor["store_id"])
        if not include_inactive:
            stmt = stmt.where(EvaluationTemplate.is_active.is_(True))
        rows = session.scalars(stmt.order_by(EvaluationTemplate.name)).all()
        return [t.to_dict() for t in rows]


def get_template(actor: dict[str, Any], template_id: int) -> dict[str, Any]:
    with session_scope() as session:
        return _get_template(session, actor["store_id"], template_id).to_dict()


def update_template(actor: dict[str, Any], template_id: int, changes: dict[str, Any]) -> dict[str, Any]:
    require_manager(actor)
    with session_scope() as session:
        template = _get_template(session, actor["store_id"], template_id)
        name = (changes.get("name") or template.name).strip()
        sections = changes["sections"] if changes.get("sections") is not None else template.sections
        template.sections = section_ops.prepare_sections(name, sections)
        template.name = name
        if changes.get("description") is not None:
            template.description = changes["description"]
        if "tags" in changes:
            template.tags = _clean_tags(changes["tags"])
        if changes.get("is_active") is not None:
            template.is_active = bool(changes["is_active"])
        template.updated_at = utcnow()
        return template.to_dict()


def delete_template(actor: dict[str, Any], template_id: int) -> None:
    require_manager(actor)
    with session_scope() as session:
        session.delete(_get_template(session, actor["store_id"], template_id))
    logger.info("evaluation_template_deleted", template_id=template_id)


def _edit_sections(
    actor: dict[str, Any],
    template_id: int,
    edit: Callable[[list[dict[str, Any]]], list[dict[str, Any]]],
) -> dict[str, Any]:
    require_manager(actor)
    with session_scope() as session:
        template = _get_template(session, actor["store_id"], template_id)
        template.sections = section_ops.prepare_sections(template.name, edit(template.sections))
        template.updated_at = utcnow()
        return template.to_dict()


def add_section(actor: dict[str, Any], template_id: int, title: str, criterion_name: str) -> dict[str, Any]:
    return _edit_sections(actor, template_id, lambda s: section_ops.add_section(s, title, criterion_name))


def move_section(actor: dict[str, Any], template_id: int, source_index: int, destination_index: int | None) -> dict[str, Any]:
    return _edit_sections(actor, template_id, lambda s: section_ops.move_section(s, source_index, destination_index))


def remove_section(actor: dict[str, Any], template_id: int, section_id: str) -> dict[str, Any]:
    return _edit_sections(actor, template_id, lambda s: section_ops.remove_section(s, section_id))


def add_criterion(
    actor: dict[str, Any],
    template_id: int,
    section_id: str,
    name: str,
    grading_scale: str = section_ops.DEFAULT_SCALE,
) -> dict[str, Any]:
    return _edit_sections(
        actor, template_id, lambda s: section_ops.add_criterion(s, section_id, name, grading_scale)
    )


def remove_criterion(actor: dict[str, Any], template_id: int, section_id: str, criterion_id: str) -> dict[str, Any]:
    return _edit_sections(actor, template_id, lambda s: section_ops.remove_criterion(s, section_id, criterion_id))
