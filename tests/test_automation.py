"""
Survey automation: scheduled activation, reminders, auto-close and recurrence.
"""

from __future__ import annotations

import threading
from datetime import timedelta
from unittest.mock import patch

import pytest

from backend_ldgrowth.core.exceptions import InvalidStateError, NotFoundError, PermissionDeniedError
from backend_ldgrowth.core.timeutil import utcnow

QUESTIONS = [{"id": "q1", "text": "How is it going?", "type": "rating"}]


def _create(actor, schedule):
    from backend_ldgrowth.surveys.service import create_survey

    return create_survey(actor, {"title": "Auto", "questions": QUESTIONS, "schedule": schedule})


def test_activate_remind_close(director, team_members):
    from backend_ldgrowth.surveys.automation import run_automation_once
    from backend_ldgrowth.surveys.service import get_survey

    base = utcnow().replace(hour=12, minute=0, second=0, microsecond=0)
    survey = _create(director, {
        "start_date": base + timedelta(days=1),
        "end_date": base + timedelta(days=8),
        "auto_activate": True,
    })

    assert run_automation_once(now=base) == {
        "activated": 0,
        "closed": 0,
        "recurring_created": 0,
        "reminders_sent": 0,
    }

    summary = run_automation_once(now=base + timedelta(days=1))
    assert summary["activated"] == 1
    # Seven days left matches the first reminder day
    assert summary["reminders_sent"] == 4
    assert get_survey(director, survey["id"])["status"] == "active"

    assert run_automation_once(now=base + timedelta(days=1, hours=1))["reminders_sent"] == 0

    summary = run_automation_once(now=base + timedelta(days=8))
    assert summary["closed"] == 1
    assert summary["recurring_created"] == 0
    assert get_survey(director, survey["id"])["status"] == "closed"


def test_drafts_without_auto_activate_stay_draft(director, team_members):
    from backend_ldgrowth.surveys.automation import surveys_due_for_activation

    now = utcnow()
    _create(director, {"start_date": now - timedelta(days=1), "end_date": now + timedelta(days=5)})
    assert surveys_due_for_activation(now) == []


def test_close_creates_next_recurrence(director, team_members):
    from backend_ldgrowth.surveys.automation import run_automation_once
    from backend_ldgrowth.surveys.service import activate_survey, list_surveys

    now = utcnow()
    survey = _create(director, {
        "start_date": now - timedelta(days=1),
        "end_date": now + timedelta(days=1),
        "frequency": "monthly",
        "is_recurring": True,
        "duration_days": 10,
    })
    activate_survey(director, survey["id"])

    later = now + timedelta(days=1, minutes=1)
    summary = run_automation_once(now=later)
    assert summary["closed"] == 1
    assert summary["recurring_created"] == 1

    drafts = list_surveys(director, status="draft")
    assert len(drafts) == 1
    child = drafts[0]
    assert child["parent_survey_id"] == survey["id"]
    assert child["title"] == "Auto"
    assert child["schedule"]["is_recurring"] is True
    assert child["schedule"]["start_date"] > later.isoformat()


def test_activate_now_pulls_start_forward(director, team_members):
    from backend_ldgrowth.surveys.automation import activate_now

    base = utcnow().replace(microsecond=0)
    survey = _create(director, {"start_date": base + timedelta(days=3), "end_date": base + timedelta(days=10)})

    result = activate_now(director, survey["id"], now=base)
    assert result["status"] == "active"
    assert result["invited"] == 4
    assert result["message"] == "Survey activated successfully"
    assert result["schedule"]["start_date"] == base.isoformat()

    with pytest.raises(InvalidStateError, match="Only draft surveys can be activated"):
        activate_now(director, survey["id"], now=base)
    with pytest.raises(NotFoundError, match="Survey not found"):
        activate_now(director, 9999)
    with pytest.raises(PermissionDeniedError):
        activate_now(team_members[0], survey["id"])


def test_send_reminders_now_ignores_reminder_days(director, team_members):
    from backend_ldgrowth.database import session_scope
    from backend_ldgrowth.database.models import Survey
    from backend_ldgrowth.notifications.service import list_notifications
    from backend_ldgrowth.surveys.automation import send_reminders_now
    from backend_ldgrowth.surveys.service import activate_survey

    now = utcnow()
    survey = _create(director, {"start_date": now - timedelta(days=1), "end_date": now + timedelta(days=12)})
    with pytest.raises(InvalidStateError, match="only be sent for active surveys"):
        send_reminders_now(director, survey["id"])

    activate_survey(director, survey["id"])
    result = send_reminders_now(director, survey["id"], now=now)
    assert result == {"survey_id": survey["id"], "reminders_sent": 4, "message": "Reminders sent successfully"}

    reminder = [n for n in list_notifications(team_members[0]) if n["type"] == "survey_reminder"]
    assert len(reminder) == 1
    assert reminder[0]["message"].startswith("12 day(s) left")
    # Scheduled reminder days stay available for automation
    with session_scope() as session:
        assert session.get(Survey, survey["id"]).reminders_sent == []


def test_scheduler_loop_stops_on_event():
    from backend_ldgrowth.scheduler.engine import SurveyAutomationConfig, run_survey_automation

    stop = threading.Event()
    calls = []

    def _tick():
        calls.append(1)
        stop.set()
        return {"activated": 0}

    with patch("backend_ldgrowth.scheduler.engine.run_automation_once", side_effect=_tick):
        run_survey_automation(SurveyAutomationConfig(interval_sec=1), stop)
    assert calls == [1]


def test_scheduler_loop_survives_failing_tick():
    from backend_ldgrowth.scheduler.engine import SurveyAutomationConfig, run_survey_automation

    stop = threading.Event()

    def _boom():
        stop.set()
        raise RuntimeError("db down")

    with patch("backend_ldgrowth.scheduler.engine.run_automation_once", side_effect=_boom) as tick:
        run_survey_automation(SurveyAutomationConfig(interval_sec=1), stop)
    assert tick.call_count == 1
