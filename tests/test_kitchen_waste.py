"""
Kitchen waste log: validation, soft delete, paging and cost metrics.
"""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from backend_ldgrowth.core.exceptions import InvalidRequestError, NotFoundError


def _entry(actor, **overrides):
    from backend_ldgrowth.kitchen.waste import create_entry

    data = {
        "date": "2024-06-03T14:00:00",
        "category": "food",
        "item_name": "Fries",
        "quantity": 2,
        "unit": "lb",
        "cost": 3.5,
        "reason": "Held past hold time",
    }
    data.update(overrides)
    return create_entry(actor, data)


def test_create_and_validation(director):
    entry = _entry(director, date=datetime(2024, 6, 3, 16, 0, tzinfo=timezone(timedelta(hours=2))))
    assert entry["date"] == "2024-06-03T14:00:00"
    assert entry["action_taken"] == ""

    with pytest.raises(InvalidRequestError, match="Validation error") as exc:
        _entry(director, quantity=0, category="drinks")
    assert "quantity" in exc.value.message
    assert "category" in exc.value.message


def test_update_and_soft_delete(director, leader):
    from backend_ldgrowth.kitchen.waste import delete_entry, get_entry, list_entries, update_entry

    entry = _entry(director)
    updated = update_entry(leader, entry["id"], {"cost": 4.25, "action_taken": "Cook smaller batches"})
    assert updated["cost"] == 4.25
    assert updated["action_taken"] == "Cook smaller batches"
    assert updated["item_name"] == "Fries"
    with pytest.raises(InvalidRequestError):
        update_entry(leader, entry["id"], {"cost": -1})

    delete_entry(director, entry["id"])
    with pytest.raises(NotFoundError, match="Waste entry not found"):
        get_entry(director, entry["id"])
    with pytest.raises(NotFoundError):
        delete_entry(director, entry["id"])
    assert list_entries(director)["pagination"]["total"] == 0


def test_list_paging_and_filters(director):
    from backend_ldgrowth.kitchen.waste import list_entries

    for day in range(1, 6):
        _entry(director, date=f"2024-06-0{day}T10:00:00", category="food" if day % 2 else "packaging")

    page = list_entries(director, page=1, limit=2)
    assert page["pagination"] == {"total": 5, "page": 1, "pages": 3}
    assert [e["date"][:10] for e in page["entries"]] == ["2024-06-05", "2024-06-04"]

    food = list_entries(director, category="food")
    assert food["pagination"]["total"] == 3

    window = list_entries(director, start=datetime(2024, 6, 2), end=datetime(2024, 6, 3, 23, 59))
    assert window["pagination"]["total"] == 2
    # A single bound is ignored
    assert list_entries(director, start=datetime(2024, 6, 4))["pagination"]["total"] == 5

    with pytest.raises(InvalidRequestError):
        list_entries(director, page=0)
    with pytest.raises(InvalidRequestError):
        list_entries(director, category="drinks")


def test_metrics_breakdown(director):
    from backend_ldgrowth.kitchen.waste import waste_metrics

    _entry(director, date="2024-06-01T09:00:00", cost=1.1)
    _entry(director, date="2024-06-01T18:00:00", cost=2.2)
    _entry(director, date="2024-06-02T12:00:00", cost=5.0, category="packaging", item_name="Cups")
    _entry(director, date="2024-07-01T12:00:00", cost=100)

    metrics = waste_metrics(director, datetime(2024, 6, 1), datetime(2024, 6, 30))
    assert metrics["total_cost"] == 8.3
    food, packaging = metrics["category_breakdown"]
    assert food["category"] == "food"
    assert food["total_cost"] == 3.3
    assert food["daily_breakdown"] == [{"date": "2024-06-01", "cost": 3.3, "count": 2}]
    assert packaging["daily_breakdown"][0]["count"] == 1
    assert metrics["date_range"]["start"] == "2024-06-01T00:00:00"

    only_food = waste_metrics(director, datetime(2024, 6, 1), datetime(2024, 6, 30), category="food")
    assert [c["category"] for c in only_food["category_breakdown"]] == ["food"]
