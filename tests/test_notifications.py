"""
Notification read state and webhook fan-out (httpx mocked).
"""

from __future__ import annotations

from datetime import timedelta
from unittest.mock import MagicMock, patch

import httpx
import pytest

from backend_ldgrowth.core.exceptions import NotFoundError


def test_create_list_and_mark_read(director, team_members):
    from backend_ldgrowth.notifications.service import (
        create_notification,
        list_notifications,
        mark_all_read,
        mark_read,
    )

    ana = team_members[0]
    first = create_notification(ana["id"], ana["store_id"], "general", "Hi", "Welcome aboard", priority="urgent")
    assert first["priority"] == "medium"
    create_notification(ana["id"], ana["store_id"], "general", "Shift", "Swap approved", priority="high")

    inbox = list_notifications(ana)
    assert [n["title"] for n in inbox] == ["Shift", "Hi"]
    assert mark_read(ana, first["id"])["read"] is True
    assert [n["title"] for n in list_notifications(ana, unread_only=True)] == ["Shift"]

    with pytest.raises(NotFoundError):
        mark_read(team_members[1], first["id"])
    assert mark_all_read(ana) == 1
    assert list_notifications(ana, unread_only=True) == []


def test_webhook_disabled_without_url(monkeypatch):
    from backend_ldgrowth.notifications.webhook import send_webhook

    monkeypatch.delenv("NOTIFY_WEBHOOK_URL", raising=False)
    with patch("backend_ldgrowth.notifications.webhook.httpx.Client") as client_cls:
        assert send_webhook({"id": 1}) is False
    client_cls.assert_not_called()


def test_webhook_posts_payload(monkeypatch):
    from backend_ldgrowth.notifications.webhook import send_webhook

    monkeypatch.setenv("NOTIFY_WEBHOOK_URL", "https://hooks.example.com/ldgrowth")
    client = MagicMock()
    with patch("backend_ldgrowth.notifications.webhook.httpx.Client") as client_cls:
        client_cls.return_value.__enter__.return_value = client
        assert send_webhook({"id": 7, "title": "Hello"}) is True
    client.post.assert_called_once_with("https://hooks.example.com/ldgrowth", json={"id": 7, "title": "Hello"})


def test_webhook_failure_is_swallowed(monkeypatch):
    from backend_ldgrowth.notifications.webhook import send_webhook

    monkeypatch.setenv("NOTIFY_WEBHOOK_URL", "https://hooks.example.com/ldgrowth")
    client = MagicMock()
    client.post.side_effect = httpx.ConnectError("refused")
    with patch("backend_ldgrowth.notifications.webhook.httpx.Client") as client_cls:
        client_cls.return_value.__enter__.return_value = client
        assert send_webhook({"id": 7}) is False


def test_notify_fans_out_to_webhook(director, team_members):
    from backend_ldgrowth.notifications.service import create_notification

    with patch("backend_ldgrowth.notifications.service.send_webhook") as hook:
        created = create_notification(team_members[0]["id"], director["store_id"], "general", "T", "M")
    hook.assert_called_once()
    assert hook.call_args.args[0]["id"] == created["id"]


def test_webhook_invalid_url_is_swallowed(monkeypatch):
    from backend_ldgrowth.notifications.webhook import send_webhook

    monkeypatch.setenv("NOTIFY_WEBHOOK_URL", "http://hooks:abc/")
    client = MagicMock()
    client.post.side_effect = httpx.InvalidURL("Invalid port: 'abc'")
    with patch("backend_ldgrowth.notifications.webhook.httpx.Client") as client_cls:
        client_cls.return_value.__enter__.return_value = client
        assert send_webhook({"id": 7}) is False


def test_webhook_waits_for_commit(director, team_members):
    from backend_ldgrowth.database import session_scope
    from backend_ldgrowth.notifications.service import notify

    with patch("backend_ldgrowth.notifications.service.send_webhook") as hook:
        with session_scope() as session:
            notify(session, team_members[0]["id"], director["store_id"], "general", "T", "M")
            hook.assert_not_called()
        hook.assert_called_once()


def test_rolled_back_notification_is_not_sent(director, team_members):
    from backend_ldgrowth.database import session_scope
    from backend_ldgrowth.notifications.service import list_notifications, notify

    ana = team_members[0]
    with patch("backend_ldgrowth.notifications.service.send_webhook") as hook:
        with pytest.raises(RuntimeError):
            with session_scope() as session:
                notify(session, ana["id"], director["store_id"], "general", "T", "M")
                raise RuntimeError("business rule failed")
        with session_scope() as session:
            notify(session, ana["id"], director["store_id"], "general", "Kept", "M")
    assert hook.call_count == 1
    assert hook.call_args.args[0]["title"] == "Kept"
    assert [n["title"] for n in list_notifications(ana)] == ["Kept"]


def test_survey_activation_commits_when_webhook_breaks(monkeypatch, director, team_members):
    from backend_ldgrowth.core.timeutil import utcnow
    from backend_ldgrowth.notifications.service import list_notifications
    from backend_ldgrowth.surveys.service import activate_survey, create_survey, get_survey

    now = utcnow()
    survey = create_survey(director, {
        "title": "Pulse check",
        "questions": [{"id": "q1", "text": "How was your week?", "type": "text"}],
        "schedule": {"start_date": now - timedelta(days=1), "end_date": now + timedelta(days=7)},
    })
    monkeypatch.setenv("NOTIFY_WEBHOOK_URL", "http://hooks:abc/")
    client = MagicMock()
    client.post.side_effect = httpx.InvalidURL("Invalid port: 'abc'")
    with patch("backend_ldgrowth.notifications.webhook.httpx.Client") as client_cls:
        client_cls.return_value.__enter__.return_value = client
        activated = activate_survey(director, survey["id"])

    assert activated["status"] == "active"
    assert get_survey(director, survey["id"])["status"] == "active"
    assert client.post.call_count == activated["invited"]
    assert [n["type"] for n in list_notifications(team_members[0])] == ["survey_invitation"]


def test_unexpected_webhook_error_does_not_undo_commit(director, team_members):
    from backend_ldgrowth.notifications.service import create_notification, list_notifications

    ana = team_members[0]
    with patch("backend_ldgrowth.notifications.service.send_webhook", side_effect=ValueError("bad payload")):
        created = create_notification(ana["id"], director["store_id"], "general", "Still here", "M")
    assert [n["id"] for n in list_notifications(ana)] == [created["id"]]
