"""
Personal goals with KPIs, measurements and steps.
"""

from __future__ import annotations

import pytest

from backend_ldgrowth.core.exceptions import InvalidRequestError, NotFoundError

KPI = {"name": "Drive-thru time", "target_value": "90", "unit": "seconds", "peak": "Lunch"}


def _goal(actor, **overrides):
    from backend_ldgrowth.goals.service import create_goal

    data = {
        "name": "Faster lunch",
        "business_area": "Speed of Service",
        "goal_period": "Q3",
        "kpis": [KPI],
        "steps": ["Add a runner", {"description": "Pre-stage bags"}, {"description": "  "}],
    }
    data.update(overrides)
    return create_goal(actor, data)


def test_create_goal(leader):
    goal = _goal(leader)
    assert goal["status"] == "not-started"
    assert goal["kpis"][0]["target_value"] == 90.0
    assert goal["kpis"][0]["progress"] is None
    assert goal["steps"] == [
        {"description": "Add a runner", "completed": False},
        {"description": "Pre-stage bags", "completed": False},
    ]


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"name": ""}, "Missing required fields"),
        ({"kpis": []}, "Missing required fields"),
        ({"kpis": {"name": "x"}}, "KPIs must be an array"),
        ({"kpis": [{"name": "x", "target_value": 5}]}, "Invalid KPI data"),
        ({"kpis": [{**KPI, "target_value": "fast"}]}, "Invalid KPI data"),
    ],
)
def test_create_goal_validation(leader, overrides, message):
    with pytest.raises(InvalidRequestError, match=message):
        _goal(leader, **overrides)


def test_measurements_drive_kpi_progress(leader):
    from backend_ldgrowth.goals.service import record_measurement

    goal = _goal(leader)
    goal = record_measurement(leader, goal["id"], 0, 45, date="2024-06-01", notes="Mon lunch")
    assert goal["status"] == "in-progress"
    assert goal["kpis"][0]["progress"] == 50
    assert goal["kpis"][0]["measurements"][0] == {"date": "2024-06-01", "value": 45.0, "notes": "Mon lunch"}

    goal = record_measurement(leader, goal["id"], 0, 120)
    assert goal["kpis"][0]["progress"] == 100
    with pytest.raises(NotFoundError, match="KPI not found"):
        record_measurement(leader, goal["id"], 3, 1)


def test_steps_drive_goal_progress(leader):
    from backend_ldgrowth.goals.service import set_step_completed

    goal = _goal(leader)
    goal = set_step_completed(leader, goal["id"], 0, True)
    assert goal["progress"] == 50
    assert goal["status"] == "in-progress"
    goal = set_step_completed(leader, goal["id"], 1, True)
    assert goal["progress"] == 100
    assert goal["status"] == "completed"
    goal = set_step_completed(leader, goal["id"], 0, False)
    assert goal["status"] == "in-progress"
    with pytest.raises(NotFoundError, match="Step not found"):
        set_step_completed(leader, goal["id"], 5, True)


def test_update_and_privacy(leader, director):
    from backend_ldgrowth.goals.service import delete_goal, get_goal, list_goals, update_goal

    goal = _goal(leader)
    updated = update_goal(leader, goal["id"], {"name": "Fastest lunch", "progress": 0, "status": "in-progress"})
    assert updated["name"] == "Fastest lunch"
    assert updated["status"] == "in-progress"
    with pytest.raises(InvalidRequestError, match="between 0 and 100"):
        update_goal(leader, goal["id"], {"progress": 140})
    with pytest.raises(InvalidRequestError, match="Invalid status"):
        update_goal(leader, goal["id"], {"status": "paused"})

    # Other users cannot see the goal
    with pytest.raises(NotFoundError, match="Goal not found"):
        get_goal(director, goal["id"])
    assert list_goals(director) == []

    delete_goal(leader, goal["id"])
    assert list_goals(leader) == []


@pytest.mark.parametrize(
    "overrides,message",
    [
        ({"steps": [42]}, "Invalid step 1"),
        ({"steps": ["Fine", {"description": ["nested"]}]}, "Invalid step 2: description"),
        ({"steps": "Add a runner"}, "Steps must be an array"),
        ({"kpis": ["Drive-thru time"]}, "Invalid KPI data"),
        ({"kpis": [{**KPI, "measurements": [{"value": "lots"}]}]}, "Invalid KPI data: measurements"),
    ],
)
def test_create_goal_rejects_malformed_nested_data(leader, overrides, message):
    with pytest.raises(InvalidRequestError, match=message):
        _goal(leader, **overrides)


def test_measurement_date_must_parse(leader):
    from backend_ldgrowth.goals.service import record_measurement

    goal = _goal(leader)
    with pytest.raises(InvalidRequestError, match="Invalid measurement date"):
        record_measurement(leader, goal["id"], 0, 45, date="next tuesday")


def test_kpi_progress_uses_most_recent_date():
    from backend_ldgrowth.goals.service import kpi_progress

    kpi = {
        "target_value": 100,
        "measurements": [
            {"date": "2024-06-10", "value": 80},
            {"date": "2024-06-01T09:00:00Z", "value": 20},
        ],
    }
    assert kpi_progress(kpi) == 80

    same_day = {
        "target_value": 100,
        "measurements": [
            {"date": "2024-06-01", "value": 10},
            {"date": "2024-06-01T00:00:00", "value": 30},
        ],
    }
    assert kpi_progress(same_day) == 30


def test_backfilled_measurement_does_not_change_progress(leader):
    from backend_ldgrowth.goals.service import record_measurement

    goal = _goal(leader)
    goal = record_measurement(leader, goal["id"], 0, 81, date="2024-06-10")
    assert goal["kpis"][0]["progress"] == 90
    goal = record_measurement(leader, goal["id"], 0, 18, date="2024-05-01", notes="Backfilled")
    assert goal["kpis"][0]["progress"] == 90
    assert len(goal["kpis"][0]["measurements"]) == 2
