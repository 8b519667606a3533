"""
pydantic parsing for nested, form-shaped payloads.

Services take plain dicts from the API, the tools and other services. The
nested parts (questions, training days, KPIs, PIP goals, sections) go
through these helpers so a wrongly-typed value becomes a 400 instead of a
TypeError deep inside a service.
"""

from __future__ import annotations

from typing import Any, TypeVar

from pydantic import BaseModel, ConfigDict, ValidationError

from backend_ldgrowth.core.exceptions import InvalidRequestError

M = TypeVar("M", bound=BaseModel)


class Payload(BaseModel):
    """Base for nested payload models: unknown keys dropped, numbers accepted where text is expected."""

    model_config = ConfigDict(extra="ignore", coerce_numbers_to_str=True)


def describe(error: ValidationError) -> str:
    return "; ".join(
        f"{'.'.join(str(p) for p in err['loc']) or 'value'}: {err['msg']}" for err in error.errors()
    )


def parse_item(model: type[M], data: Any, label: str) -> M:
    if isinstance(data, model):
        return data
    try:
        return model.model_validate(data)
    except ValidationError as e:
        raise InvalidRequestError(f"Invalid {label}: {describe(e)}") from e


def parse_items(model: type[M], items: Any, label: str) -> list[M]:
    """Parse a list of payloads; items are labelled "<label> 1", "<label> 2", ... in errors."""
    if not isinstance(items, (list, tuple)):
        raise InvalidRequestError(f"Invalid {label} list: expected an array")
    return [parse_item(model, item, f"{label} {i}") for i, item in enumerate(items, start=1)]
