"""
Evaluation template routes: /api/templates.
"""

from __future__ import annotations

from typing import Any, Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel, Field

from backend_ldgrowth.api_server.deps import get_current_user
from backend_ldgrowth.evaluation_templates import service
from backend_ldgrowth.evaluation_templates.sections import DEFAULT_SCALE, Section

router = APIRouter(prefix="/api/templates", tags=["templates"])


class TemplateBody(BaseModel):
    name: str = ""
    description: str = ""
    tags: Optional[list[str]] = None
    sections: list[Section] = Field(default_factory=list)
    is_active: bool = True


class TemplateUpdateBody(BaseModel):
    name: Optional[str] = None
    description: Optional[str] = None
    tags: Optional[list[str]] = None
    sections: Optional[list[Section]] = None
    is_active: Optional[bool] = None


class SectionBody(BaseModel):
    title: str = Field(..., min_length=1)
    criterion_name: str = Field(..., min_length=1, description="Name of the section's first criterion")


class MoveBody(BaseModel):
    source_index: int = Field(..., ge=0)
    destination_index: Optional[int] = Field(None, ge=0, description="null when dropped outside the list")


class CriterionBody(BaseModel):
    name: str = Field(..., min_length=1)
    grading_scale: str = DEFAULT_SCALE


@router.get("")
def list_templates(include_inactive: bool = False, actor: dict[str, Any] = Depends(get_current_user)) -> list[dict[str, Any]]:
    return service.list_templates(actor, include_inactive=include_inactive)


@router.post("", status_code=201)
def create_template(body: TemplateBody, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.create_template(actor, body.model_dump())


@router.get("/{template_id}")
def get_template(template_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.get_template(actor, template_id)


@router.put("/{template_id}")
def update_template(
    template_id: int,
    body: TemplateUpdateBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.update_template(actor, template_id, body.model_dump(exclude_unset=True))


@router.delete("/{template_id}")
def delete_template(template_id: int, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, bool]:
    service.delete_template(actor, template_id)
    return {"deleted": True}


@router.post("/{template_id}/sections", status_code=201)
def add_section(template_id: int, body: SectionBody, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.add_section(actor, template_id, body.title, body.criterion_name)


@router.post("/{template_id}/sections/move")
def move_section(template_id: int, body: MoveBody, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.move_section(actor, template_id, body.source_index, body.destination_index)


@router.delete("/{template_id}/sections/{section_id}")
def remove_section(template_id: int, section_id: str, actor: dict[str, Any] = Depends(get_current_user)) -> dict[str, Any]:
    return service.remove_section(actor, template_id, section_id)


@router.post("/{template_id}/sections/{section_id}/criteria", status_code=201)
def add_criterion(
    template_id: int,
    section_id: str,
    body: CriterionBody,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.add_criterion(actor, template_id, section_id, body.name, body.grading_scale)


@router.delete("/{template_id}/sections/{section_id}/criteria/{criterion_id}")
def remove_criterion(
    template_id: int,
    section_id: str,
    criterion_id: str,
    actor: dict[str, Any] = Depends(get_current_user),
) -> dict[str, Any]:
    return service.remove_criterion(actor, template_id, section_id, criterion_id)
