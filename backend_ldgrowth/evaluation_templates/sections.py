"""
Section and criterion editing for evaluation templates.

Pure list functions, the same shape as the survey question builder. Every
change that reorders or removes sections renumbers ``order`` to match the
list position.
"""

from __future__ import annotations

import copy
from typing import Any, Optional

from backend_ldgrowth.core.exceptions import InvalidRequestError
from backend_ldgrowth.core.lists import index_by_id, move_item, next_id
from backend_ldgrowth.core.validation import Payload, parse_items

GRADING_SCALES = {
    "1-5": "5 Point Scale",
    "1-10": "10 Point Scale",
    "yes-no": "Yes/No",
}
DEFAULT_SCALE = "1-5"


def scale_name(scale: str) -> str:
    return GRADING_SCALES.get(scale, "Unknown Scale")


def _renumber(sections: list[dict[str, Any]]) -> list[dict[str, Any]]:
    for position, section in enumerate(sections):
        section["order"] = position
    return sections


def _all_criterion_ids(sections: list[dict[str, Any]]) -> list[str]:
    return [c.get("id") for s in sections for c in s.get("criteria", [])]


def _new_criterion(criterion_id: str) -> dict[str, Any]:
    return {"id": criterion_id, "name": "", "description": "", "grading_scale": DEFAULT_SCALE, "required": True}


class Criterion(Payload):
    id: Optional[str] = None
    name: Optional[str] = None
    description: Optional[str] = None
    grading_scale: Optional[str] = None
    required: Optional[bool] = True


class Section(Payload):
    id: Optional[str] = None
    title: Optional[str] = None
    description: Optional[str] = None
    order: Optional[int] = None
    criteria: Optional[list[Criterion]] = None


def normalize_sections(sections: list[Any]) -> list[dict[str, Any]]:
    """Sort by stored order, fill missing ids and defaults, renumber."""
    parsed = sorted(parse_items(Section, sections, "section"), key=lambda s: s.order or 0)
    result = [
        {
            "id": s.id,
            "title": s.title or "",
            "description": s.description or "",
            "criteria": [c.model_dump() for c in s.criteria or []],
        }
        for s in parsed
    ]
    for section in result:
        if not section["id"]:
            section["id"] = next_id("s", (s["id"] for s in result))
        criteria = []
        for criterion in section["criteria"]:
            if not criterion["id"]:
                criterion["id"] = next_id("c", _all_criterion_ids(result) + [c["id"] for c in criteria])
            criterion["name"] = criterion["name"] or ""
            criterion["description"] = criterion["description"] or ""
            criterion["grading_scale"] = criterion["grading_scale"] or DEFAULT_SCALE
            criterion["required"] = bool(criterion["required"])
            criteria.append(criterion)
        section["criteria"] = criteria
    return _renumber(result)


def add_section(sections: list[dict[str, Any]], title: str = "", criterion_name: str = "") -> list[dict[str, Any]]:
    """Append a section holding one criterion (blank unless criterion_name is given)."""
    result = copy.deepcopy(list(sections))
    result.append({
        "id": next_id("s", (s.get("id") for s in result)),
        "title": title,
        "description": "",
        "order": len(result),
        "criteria": [{**_new_criterion(next_id("c", _all_criterion_ids(result))), "name": criterion_name}],
    })
    return _renumber(result)


def move_section(sections: list[dict[str, Any]], source_index: int, destination_index: int | None) -> list[dict[str, Any]]:
    return _renumber(copy.deepcopy(move_item(sections, source_index, destination_index)))


def remove_section(sections: list[dict[str, Any]], section_id: str) -> list[dict[str, Any]]:
    result = copy.deepcopy(list(sections))
    del result[index_by_id(result, section_id, "Section")]
    return _renumber(result)


def add_criterion(sections: list[dict[str, Any]], section_id: str, name: str = "", grading_scale: str = DEFAULT_SCALE) -> list[dict[str, Any]]:
    result = copy.deepcopy(list(sections))
    section = result[index_by_id(result, section_id, "Section")]
    criterion = _new_criterion(next_id("c", _all_criterion_ids(result)))
    criterion.update({"name": name, "grading_scale": grading_scale})
    section["criteria"].append(criterion)
    return result


def remove_criterion(sections: list[dict[str, Any]], section_id: str, criterion_id: str) -> list[dict[str, Any]]:
    result = copy.deepcopy(list(sections))
    section = result[index_by_id(result, section_id, "Section")]
    del section["criteria"][index_by_id(section["criteria"], criterion_id, "Criterion")]
    return result


def validate_template(name: str, sections: list[dict[str, Any]]) -> list[str]:
    errors: list[str] = []
    if not (name or "").strip():
        errors.append("Template name is required")
    if not sections:
        errors.append("At least one section is required")
    for position, section in enumerate(sections, start=1):
        if not (section.get("title") or "").strip():
            errors.append(f"Section {position} requires a title")
        criteria = section.get("criteria") or []
        if not criteria:
            errors.append(f"Section {position} must have at least one criterion")
        for criterion in criteria:
            if not (criterion.get("name") or "").strip():
                errors.append(f"Section {position}: question name is required")
            if criterion.get("grading_scale") not in GRADING_SCALES:
                errors.append(f"Section {position}: unknown grading scale {criterion.get('grading_scale')!r}")
    return errors


def prepare_sections(name: str, sections: list[dict[str, Any]]) -> list[dict[str, Any]]:
    normalized = normalize_sections(sections)
    errors = validate_template(name, normalized)
    if errors:
        raise InvalidRequestError("; ".join(errors))
    return normalized
