"""
HTTP surface: auth, error mapping and a walk through the main routes.
"""

from __future__ import annotations

from datetime import timedelta

from backend_ldgrowth.core.timeutil import utcnow

QUESTIONS = [
    {"id": "q1", "text": "How satisfied are you?", "type": "rating", "rating_scale": {"min": 1, "max": 5}},
    {"id": "q2", "text": "Best shift?", "type": "multiple_choice", "options": ["Morning", "Evening"]},
]


def _survey_body(title: str = "Pulse check") -> dict:
    now = utcnow()
    return {
        "title": title,
        "questions": QUESTIONS,
        "schedule": {
            "start_date": (now - timedelta(days=1)).isoformat(),
            "end_date": (now + timedelta(days=14)).isoformat(),
        },
    }


def test_health(client):
    r = client.get("/health")
    assert r.status_code == 200
    assert r.json() == {"status": "ok"}


def test_auth_required(client, director, auth):
    r = client.get("/api/users/me")
    assert r.status_code == 401
    assert r.json()["detail"] == "Authentication required"

    r = client.get("/api/users/me", headers={"Authorization": "Bearer nope"})
    assert r.status_code == 401
    assert r.json()["detail"] == "Invalid token"

    r = client.get("/api/users/me", headers=auth(director))
    assert r.status_code == 200
    assert r.json()["email"] == "dana@example.com"
    assert "api_token" not in r.json()


def test_permission_and_not_found(client, director, team_members, auth):
    r = client.post("/api/team-surveys", json=_survey_body(), headers=auth(team_members[0]))
    assert r.status_code == 403

    r = client.get("/api/team-surveys/9999", headers=auth(director))
    assert r.status_code == 404
    assert r.json() == {"detail": "Survey not found"}


def test_survey_flow_over_http(client, director, team_members, auth):
    """Create, activate, take anonymously by token, then read analytics."""
    from sqlalchemy import select

    from backend_ldgrowth.database import session_scope
    from backend_ldgrowth.database.models import SurveyToken

    headers = auth(director)
    r = client.post("/api/team-surveys/validate-questions", json={"questions": []}, headers=headers)
    assert r.status_code == 200
    assert r.json()["valid"] is False

    r = client.post("/api/team-surveys", json=_survey_body(), headers=headers)
    assert r.status_code == 201
    survey_id = r.json()["id"]
    assert r.json()["status"] == "draft"

    r = client.post(f"/api/team-surveys/{survey_id}/activate", headers=headers)
    assert r.status_code == 200
    assert r.json()["status"] == "active"

    with session_scope() as session:
        token = session.scalars(
            select(SurveyToken.token).where(
                SurveyToken.survey_id == survey_id,
                SurveyToken.user_id == team_members[0]["id"],
            )
        ).one()

    r = client.get(f"/api/team-surveys/take/{token}")
    assert r.status_code == 200
    assert r.json()["survey"]["title"] == "Pulse check"

    answers = [{"question_id": "q1", "answer": 5}, {"question_id": "q2", "answer": "Evening"}]
    r = client.post(f"/api/team-surveys/take/{token}", json={"responses": answers})
    assert r.status_code == 200
    assert r.json()["status"] == "completed"

    r = client.post(f"/api/team-surveys/take/{token}", json={"responses": answers})
    assert r.status_code == 400
    assert r.json()["detail"] == "Token already used"

    r = client.get(f"/api/team-surveys/{survey_id}/analytics", headers=headers)
    assert r.status_code == 200

    r = client.delete(f"/api/team-surveys/{survey_id}", headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Cannot delete active survey. Close it first."

    client.post(f"/api/team-surveys/{survey_id}/close", headers=headers)
    r = client.delete(f"/api/team-surveys/{survey_id}", headers=headers)
    assert r.status_code == 204


def test_leadership_routes(client, leader, auth):
    headers = auth(leader)

    r = client.get("/api/leadership/situational/questions", headers=headers)
    assert r.status_code == 200
    assert len(r.json()) == 5
    assert "correct_style" not in r.json()[0]

    answers = {"q1": "Directing", "q2": "Supporting", "q3": "Coaching", "q4": "Delegating", "q5": "Directing"}
    r = client.post("/api/leadership/situational/submit", json={"answers": answers}, headers=headers)
    assert r.status_code == 201
    assert r.json()["percentage"] == 100
    assert r.json()["level"] == "Expert"

    r = client.post("/api/leadership/situational/submit", json={"answers": {"q9": "Directing"}}, headers=headers)
    assert r.status_code == 400

    r = client.get("/api/leadership/situational/results", headers=headers)
    assert len(r.json()) == 1

    r = client.post(
        "/api/leadership/forms/customer_journey_map/validate",
        json={"value": {"preArrival": "Website and app", "arrival": "Greeting"}},
        headers=headers,
    )
    assert r.status_code == 200
    assert r.json()["completion"] == 40
    assert '"preArrival": "Website and app"' in r.json()["value"]

    r = client.post("/api/leadership/forms/unknown/validate", json={"value": "{}"}, headers=headers)
    assert r.status_code == 400

    r = client.post("/api/leadership/plans/heart-of-leadership/enroll", headers=headers)
    assert r.status_code == 201
    r = client.post("/api/leadership/plans/heart-of-leadership/enroll", headers=headers)
    assert r.status_code == 409
    assert r.json()["detail"] == "Already enrolled in this plan"


def test_recommendations_body_validation(client, leader, auth):
    r = client.post(
        "/api/leadership/recommendations",
        json={"assessment_type": "unknown", "area_scores": {}, "overall_score": 3},
        headers=auth(leader),
    )
    assert r.status_code == 422


def test_kitchen_and_dashboard(client, director, auth):
    headers = auth(director)
    entry = {
        "date": utcnow().isoformat(),
        "category": "food",
        "item_name": "Fries",
        "quantity": 2,
        "unit": "lb",
        "cost": 3.5,
        "reason": "Held past hold time",
    }
    r = client.post("/api/kitchen/waste", json=entry, headers=headers)
    assert r.status_code == 201

    r = client.post("/api/kitchen/waste", json={**entry, "quantity": 0}, headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"].startswith("Validation error")

    r = client.get("/api/kitchen/waste/metrics", headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "start_date and end_date are required"

    r = client.get("/api/dashboard", headers=headers)
    assert r.status_code == 200
    body = r.json()
    assert body["waste_cost_last_7_days"] == 3.5
    assert body["active_team_members"] >= 1
    for key in ("active_surveys", "pending_acknowledgments", "open_goals", "unread_notifications"):
        assert key in body


def test_unexpected_error_is_500(ldgrowth_db, director, auth):
    from unittest.mock import patch

    from fastapi.testclient import TestClient

    from backend_ldgrowth.api_server.server import app

    client = TestClient(app, raise_server_exceptions=False)
    with patch("backend_ldgrowth.api_server.dashboard.store_dashboard", side_effect=RuntimeError("boom")):
        r = client.get("/api/dashboard", headers=auth(director))
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal server error"}


def test_validate_questions_reports_malformed_scale(client, director, auth):
    bad = [{"id": "q1", "text": "Rate us", "type": "rating", "rating_scale": {"min": "a", "max": 5}}]
    r = client.post("/api/team-surveys/validate-questions", json={"questions": bad}, headers=auth(director))
    assert r.status_code == 200
    assert r.json()["valid"] is False
    assert r.json()["errors"][0].startswith("Question 1: Invalid question: rating_scale.min")


def test_malformed_nested_payloads_are_rejected(client, director, team_members, auth):
    headers = auth(director)
    bad_question = {"id": "q1", "text": "Rate us", "type": "rating", "rating_scale": {"min": "a"}}
    requests = [
        ("/api/team-surveys", {**_survey_body(), "questions": [bad_question]}),
        ("/api/team-surveys", {**_survey_body(), "settings": {"reminder_days": ["soon"]}}),
        (
            "/api/training/plans",
            {"name": "Fryer basics", "department": "BOH", "position": "Team Member", "days": [{"day_number": "one"}]},
        ),
        (
            "/api/training/plans",
            {
                "name": "Fryer basics",
                "department": "BOH",
                "position": "Team Member",
                "days": [{"day_number": 1, "tasks": [{"name": "Oil", "duration": "long"}]}],
            },
        ),
        (
            "/api/goals",
            {
                "name": "Faster lunch",
                "business_area": "Speed of Service",
                "goal_period": "Q3",
                "kpis": [{"name": "Time", "target_value": 90, "unit": "s", "peak": "Lunch"}],
                "steps": [["Add a runner"]],
            },
        ),
        (
            "/api/documentation",
            {
                "employee_id": team_members[0]["id"],
                "type": "Performance Improvement Plan",
                "category": "PIP",
                "severity": "Moderate",
                "description": "Speed of service below standard",
                "action_taken": "30 day plan",
                "pip_details": {"goals": "Hit 90s drive-thru times"},
            },
        ),
        ("/api/templates", {"name": "Shift review", "sections": [{"title": "Service", "criteria": "Greets guests"}]}),
    ]
    for path, body in requests:
        r = client.post(path, json=body, headers=headers)
        assert r.status_code == 422, (path, r.json())


def test_survey_manual_actions(client, director, team_members, auth):
    headers = auth(director)
    now = utcnow()
    body = _survey_body()
    body["schedule"] = {
        "start_date": (now + timedelta(days=2)).isoformat(),
        "end_date": (now + timedelta(days=9)).isoformat(),
    }
    survey_id = client.post("/api/team-surveys", json=body, headers=headers).json()["id"]

    r = client.post(f"/api/team-surveys/{survey_id}/send-reminders", headers=headers)
    assert r.status_code == 400
    assert r.json()["detail"] == "Reminders can only be sent for active surveys"

    r = client.post(f"/api/team-surveys/{survey_id}/activate-now", headers=headers)
    assert r.status_code == 200
    assert r.json()["status"] == "active"
    assert r.json()["message"] == "Survey activated successfully"

    r = client.post(f"/api/team-surveys/{survey_id}/send-reminders", headers=headers)
    assert r.status_code == 200
    assert r.json()["reminders_sent"] == 4
    assert r.json()["message"] == "Reminders sent successfully"

    r = client.post("/api/team-surveys/9999/activate-now", headers=headers)
    assert r.status_code == 404
    assert r.json() == {"detail": "Survey not found"}
    r = client.post(f"/api/team-surveys/{survey_id}/send-reminders", headers=auth(team_members[0]))
    assert r.status_code == 403


def test_documentation_reminder_route(client, director, team_members, auth):
    headers = auth(director)
    r = client.post(
        "/api/documentation",
        json={
            "employee_id": team_members[0]["id"],
            "type": "Verbal Warning",
            "category": "Disciplinary",
            "severity": "Minor",
            "description": "Late for shift three times",
            "action_taken": "Reviewed attendance policy",
        },
        headers=headers,
    )
    assert r.status_code == 201
    document_id = r.json()["id"]

    r = client.post(f"/api/documentation/{document_id}/remind", headers=headers)
    assert r.status_code == 200
    assert r.json() == {"message": "Reminder sent"}

    r = client.post(f"/api/documentation/{document_id}/acknowledge", json={}, headers=auth(team_members[0]))
    assert r.status_code == 200
    r = client.post(f"/api/documentation/{document_id}/remind", headers=headers)
    assert r.status_code == 404
    assert r.json() == {"detail": "Document not found or already acknowledged"}
