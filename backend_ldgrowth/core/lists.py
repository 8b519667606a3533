"""
Helpers for editing ordered lists of dicts (questions, sections, goals).

All functions return new lists; inputs are never mutated so callers can
compare before/after and persist only on success.
"""

from __future__ import annotations

from typing import Any, Iterable

from backend_ldgrowth.core.exceptions import InvalidRequestError, NotFoundError


def move_item(items: list[Any], source_index: int, destination_index: int | None) -> list[Any]:
    """
    Move the item at source_index so it ends up at destination_index.

    Mirrors a drag-and-drop end event: a drop outside the list
    (destination_index None) leaves the order unchanged.
    """
    result = list(items)
    if destination_index is None:
        return result
    if not 0 <= source_index < len(result):
        raise InvalidRequestError(f"source index {source_index} out of range")
    if not 0 <= destination_index < len(result):
        raise InvalidRequestError(f"destination index {destination_index} out of range")
    moved = result.pop(source_index)
    result.insert(destination_index, moved)
    return result


def next_id(prefix: str, existing_ids: Iterable[str]) -> str:
    """Return "{prefix}{n}" with the smallest n >= 1 not already used."""
    taken = set(existing_ids)
    n = 1
    while f"{prefix}{n}" in taken:
        n += 1
    return f"{prefix}{n}"


def index_by_id(items: list[dict[str, Any]], item_id: str, label: str = "Item") -> int:
    """Position of the dict whose "id" equals item_id; NotFoundError otherwise."""
    for i, item in enumerate(items):
        if item.get("id") == item_id:
            return i
    raise NotFoundError(f"{label} not found")
