"""
Team survey lifecycle, anonymous responses and analytics against a temp SQLite DB.
"""

from __future__ import annotations

from datetime import timedelta

import pytest

from backend_ldgrowth.core.exceptions import (
    InvalidRequestError,
    InvalidStateError,
    NotFoundError,
    PermissionDeniedError,
)
from backend_ldgrowth.core.timeutil import utcnow

QUESTIONS = [
    {"id": "q1", "text": "How satisfied are you?", "type": "rating", "rating_scale": {"min": 1, "max": 5}},
    {"id": "q2", "text": "Best shift?", "type": "multiple_choice", "options": ["Morning", "Evening"]},
    {"id": "q3", "text": "Anything else?", "type": "text", "required": False},
]


def _create(actor, **overrides):
    from backend_ldgrowth.surveys.service import create_survey

    now = utcnow()
    data = {
        "title": "Pulse check",
        "questions": QUESTIONS,
        "schedule": {"start_date": now - timedelta(days=1), "end_date": now + timedelta(days=14)},
    }
    data.update(overrides)
    return create_survey(actor, data)


def _tokens(survey_id: int) -> dict[int, str]:
    """user_id -> token for a survey."""
    from sqlalchemy import select

    from backend_ldgrowth.database import session_scope
    from backend_ldgrowth.database.models import SurveyToken

    with session_scope() as session:
        rows = session.scalars(select(SurveyToken).where(SurveyToken.survey_id == survey_id)).all()
        return {t.user_id: t.token for t in rows}


def _answers(rating: int, shift: str = "Morning", comment: str | None = None):
    answers = [
        {"question_id": "q1", "answer": rating},
        {"question_id": "q2", "answer": shift},
    ]
    if comment is not None:
        answers.append({"question_id": "q3", "answer": comment})
    return answers


def test_create_survey_defaults(director):
    survey = _create(director)
    assert survey["status"] == "draft"
    assert survey["target_audience"]["include_all"] is True
    assert survey["settings"]["reminder_days"] == [7, 3, 1]
    assert survey["schedule"]["frequency"] == "quarterly"
    assert survey["schedule"]["is_recurring"] is False
    assert survey["schedule"]["next_scheduled_date"] is None
    assert [q["id"] for q in survey["questions"]] == ["q1", "q2", "q3"]


def test_create_survey_requires_title_dates_and_manager(director, team_members):
    from backend_ldgrowth.surveys.service import create_survey

    with pytest.raises(InvalidRequestError, match="Title is required"):
        _create(director, title="  ")
    with pytest.raises(InvalidRequestError, match="Start date and end date are required"):
        create_survey(director, {"title": "x", "questions": QUESTIONS, "schedule": {}})
    now = utcnow()
    with pytest.raises(InvalidRequestError, match="End date must be after start date"):
        _create(director, schedule={"start_date": now, "end_date": now - timedelta(days=1)})
    with pytest.raises(PermissionDeniedError):
        _create(team_members[0])


def test_schedule_values_are_parsed(director):
    survey = _create(
        director,
        schedule={"start_date": "2030-01-01T09:00:00Z", "end_date": "2030-01-15T09:00:00+02:00", "duration_days": "14"},
    )
    assert survey["schedule"]["start_date"].startswith("2030-01-01T09:00:00")
    assert survey["schedule"]["end_date"].startswith("2030-01-15T07:00:00")

    with pytest.raises(InvalidRequestError, match="Invalid schedule: start_date"):
        _create(director, schedule={"start_date": "next week", "end_date": "2030-01-15"})
    with pytest.raises(InvalidRequestError, match="Invalid schedule: day_of_period"):
        _create(director, schedule={"start_date": "2030-01-01", "end_date": "2030-01-15", "day_of_period": 40})
    with pytest.raises(InvalidRequestError, match="Invalid schedule"):
        _create(director, schedule=["2030-01-01", "2030-01-15"])


def test_recurring_survey_gets_next_date(director):
    now = utcnow()
    survey = _create(
        director,
        schedule={
            "start_date": now,
            "end_date": now + timedelta(days=7),
            "frequency": "monthly",
            "is_recurring": True,
        },
    )
    assert survey["schedule"]["next_scheduled_date"] is not None


def test_default_template(director):
    from backend_ldgrowth.surveys.service import default_template

    survey = default_template(director)
    assert survey["title"] == "Quarterly Team Experience Survey"
    assert len(survey["questions"]) == 8
    assert survey["schedule"]["is_recurring"] is True


def test_activate_issues_tokens_and_invitations(director, team_members):
    from backend_ldgrowth.notifications.service import list_notifications
    from backend_ldgrowth.surveys.service import activate_survey

    survey = _create(director)
    active = activate_survey(director, survey["id"])
    assert active["status"] == "active"
    # Director plus three team members
    assert active["invited"] == 4
    assert active["analytics"]["total_invited"] == 4
    assert len(_tokens(survey["id"])) == 4

    inbox = list_notifications(team_members[0])
    assert inbox[0]["type"] == "survey_invitation"
    assert inbox[0]["related_id"] == survey["id"]

    with pytest.raises(InvalidStateError, match="Only draft surveys can be activated"):
        activate_survey(director, survey["id"])


def test_activate_with_audience_filter(director, team_members):
    from backend_ldgrowth.surveys.service import activate_survey

    survey = _create(director, target_audience={"include_all": False, "departments": ["BOH"]})
    assert activate_survey(director, survey["id"])["invited"] == 1
    assert list(_tokens(survey["id"])) == [team_members[2]["id"]]


def test_activate_without_eligible_users(director):
    from backend_ldgrowth.surveys.service import activate_survey

    survey = _create(director, target_audience={"include_all": False, "positions": ["Trainer"]})
    with pytest.raises(InvalidStateError, match="No eligible team members"):
        activate_survey(director, survey["id"])


def test_update_rules_by_status(director, team_members):
    from backend_ldgrowth.surveys.service import activate_survey, close_survey, update_survey

    survey = _create(director)
    updated = update_survey(director, survey["id"], {"title": "Renamed", "settings": {"reminder_days": [2, 5]}})
    assert updated["title"] == "Renamed"
    assert updated["settings"]["reminder_days"] == [5, 2]

    activate_survey(director, survey["id"])
    # Active surveys ignore title and question changes
    active = update_survey(director, survey["id"], {"title": "Nope", "description": "Now live"})
    assert active["title"] == "Renamed"
    assert active["description"] == "Now live"

    close_survey(director, survey["id"])
    with pytest.raises(InvalidStateError, match="Cannot edit a closed survey"):
        update_survey(director, survey["id"], {"description": "late"})
    archived = update_survey(director, survey["id"], {"status": "archived"})
    assert archived["status"] == "archived"


def test_delete_active_survey_rejected(director, team_members):
    from backend_ldgrowth.surveys.service import activate_survey, delete_survey, get_survey

    survey = _create(director)
    activate_survey(director, survey["id"])
    with pytest.raises(InvalidStateError, match="Close it first"):
        delete_survey(director, survey["id"])

    draft = _create(director)
    delete_survey(director, draft["id"])
    with pytest.raises(NotFoundError):
        get_survey(director, draft["id"])


def test_take_survey_flow(director, team_members):
    """Save progress, then submit: token burns and the response rate updates."""
    from backend_ldgrowth.surveys.responses import get_survey_by_token, save_progress, submit_response
    from backend_ldgrowth.surveys.service import activate_survey, get_survey

    survey = _create(director)
    activate_survey(director, survey["id"])
    token = _tokens(survey["id"])[team_members[0]["id"]]

    page = get_survey_by_token(token)
    assert page["survey"]["title"] == "Pulse check"
    assert page["response"] is None
    assert page["suggested_demographics"]["department"] == "FOH"

    draft = save_progress(token, [{"question_id": "q1", "answer": 4}])
    assert draft["status"] == "in_progress"
    assert draft["completion_percentage"] == 33

    done = submit_response(token, _answers(4, comment="Great crew"), {"experience_level": "1-2 years"})
    assert done["status"] == "completed"
    assert done["completion_percentage"] == 100
    assert done["average_rating"] == 4.0
    assert done["demographics"]["experience_level"] == "1-2 years"

    stored = get_survey(director, survey["id"])
    assert stored["tokens_used"] == 1
    assert stored["analytics"]["total_responses"] == 1
    assert stored["analytics"]["response_rate"] == 25

    with pytest.raises(InvalidRequestError, match="Token already used"):
        submit_response(token, _answers(5))


def test_submit_validation(director, team_members):
    from backend_ldgrowth.surveys.responses import submit_response
    from backend_ldgrowth.surveys.service import activate_survey

    survey = _create(director)
    activate_survey(director, survey["id"])
    token = _tokens(survey["id"])[team_members[1]["id"]]

    with pytest.raises(InvalidRequestError, match="between 1 and 5"):
        submit_response(token, _answers(9))
    with pytest.raises(InvalidRequestError, match="not one of the options"):
        submit_response(token, _answers(3, shift="Night"))
    with pytest.raises(InvalidRequestError, match="Please answer all required questions: q2"):
        submit_response(token, [{"question_id": "q1", "answer": 3}])
    with pytest.raises(InvalidRequestError, match="Unknown question"):
        submit_response(token, [{"question_id": "q9", "answer": 3}])
    with pytest.raises(NotFoundError):
        submit_response("not-a-token", _answers(3))


def test_expired_token(director, team_members):
    from backend_ldgrowth.surveys.responses import submit_response
    from backend_ldgrowth.surveys.service import activate_survey

    survey = _create(director)
    activate_survey(director, survey["id"])
    token = _tokens(survey["id"])[team_members[0]["id"]]
    with pytest.raises(InvalidRequestError, match="Token expired"):
        submit_response(token, _answers(3), now=utcnow() + timedelta(days=30))


def test_analytics_and_filters(director, team_members):
    from backend_ldgrowth.surveys.analytics import export_results, survey_analytics
    from backend_ldgrowth.surveys.responses import submit_response
    from backend_ldgrowth.surveys.service import activate_survey

    survey = _create(director)
    activate_survey(director, survey["id"])
    tokens = _tokens(survey["id"])
    submit_response(tokens[team_members[0]["id"]], _answers(5, comment="Love it"))
    submit_response(tokens[team_members[1]["id"]], _answers(3, shift="Evening"))
    submit_response(tokens[team_members[2]["id"]], _answers(1))

    result = survey_analytics(director, survey["id"])
    assert result["response_count"] == 3
    assert result["overall_score"] == 3.0
    q1, q2, q3 = result["questions"]
    assert q1["rating_distribution"] == {"1": 1, "2": 0, "3": 1, "4": 0, "5": 1}
    assert q2["option_counts"] == {"Morning": 2, "Evening": 1}
    assert q3["text_responses"] == ["Love it"]
    assert result["survey"]["response_rate"] == 75
    assert len(result["timeline"]) == 30
    assert result["timeline"][-1]["count"] == 3
    departments = {d["value"]: d["count"] for d in result["demographics"]["department"]}
    assert departments == {"FOH": 2, "BOH": 1}

    boh = survey_analytics(director, survey["id"], {"department": "BOH", "bogus": "x"})
    assert boh["response_count"] == 1
    assert boh["filters"] == {"department": "BOH"}

    export = export_results(director, survey["id"])
    assert len(export["responses"]) == 3
    assert export["survey"]["id"] == survey["id"]


def test_export_is_director_only(director, leader):
    from backend_ldgrowth.surveys.analytics import export_results

    survey = _create(director)
    with pytest.raises(PermissionDeniedError):
        export_results(leader, survey["id"])


def test_generate_tokens_for_new_hire(director, team_members):
    from backend_ldgrowth.surveys.service import activate_survey, generate_tokens
    from backend_ldgrowth.users.service import create_user

    survey = _create(director)
    activate_survey(director, survey["id"])
    hire = create_user(director, "New Hire", "new@example.com")
    issued = generate_tokens(director, survey["id"], [hire["id"], team_members[0]["id"]])
    # Existing holders are skipped
    assert [i["user_id"] for i in issued] == [hire["id"]]
    with pytest.raises(NotFoundError, match="Users not found: 999"):
        generate_tokens(director, survey["id"], [999])


def test_survey_dashboard(director, team_members):
    from backend_ldgrowth.surveys.service import activate_survey, survey_dashboard

    _create(director)
    active = _create(director, title="Second")
    activate_survey(director, active["id"])
    dash = survey_dashboard(director)
    assert dash["total_surveys"] == 2
    assert dash["by_status"]["draft"] == 1
    assert dash["by_status"]["active"] == 1
    assert len(dash["recent"]) == 2
