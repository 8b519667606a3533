"""
Operator CLI tools.
"""

from __future__ import annotations

from unittest.mock import patch


def test_create_store_prints_token(ldgrowth_db, capsys):
    from backend_ldgrowth.tools.create_store import main

    argv = ["--name", "Main Street", "--number", "01234", "--director-name", "Pat Lee", "--director-email", "pat@example.com"]
    assert main(argv) == 0
    out = capsys.readouterr().out
    assert "Store 01234 created" in out
    assert "API token: " in out

    assert main(argv) == 1
    assert "already registered" in capsys.readouterr().err


def test_run_automation_once(ldgrowth_db, capsys):
    from backend_ldgrowth.tools.run_automation import main

    summary = {"activated": 1, "closed": 0, "recurring_created": 0, "reminders_sent": 3}
    with patch("backend_ldgrowth.tools.run_automation.run_automation_once", return_value=summary) as once:
        assert main(["--once"]) == 0
    once.assert_called_once_with()
    out = capsys.readouterr().out
    assert "activated: 1" in out
    assert "reminders_sent: 3" in out
