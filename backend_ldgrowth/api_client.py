"""
LDGrowth API Python client.

Uses the requests library.

Usage:
    from backend_ldgrowth.api_client import LDGrowthClient
    client = LDGrowthClient("http://localhost:8000", token="...")
    surveys = client.list_surveys()
"""

from __future__ import annotations

from typing import Any

import requests


class LDGrowthClientError(Exception):
    """Raised when the API returns an error response."""

    def __init__(self, message: str, status_code: int | None = None, response: requests.Response | None = None):
        super().__init__(message)
        self.status_code = status_code
        self.response = response


class LDGrowthClient:
    """Client for the LDGrowth store operations API."""

    def __init__(self, base_url: str = "http://localhost:8000", token: str | None = None, timeout: float = 30.0):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self._session = requests.Session()
        if token:
            self._session.headers["Authorization"] = f"Bearer {token}"

    def _request(
        self,
        method: str,
        path: str,
        *,
        params: dict[str, Any] | None = None,
        json: Any = None,
    ) -> requests.Response:
        url = f"{self.base_url}{path}"
        resp = self._session.request(method, url, params=params, json=json, timeout=self.timeout)
        if not resp.ok:
            if resp.headers.get("content-type", "").startswith("application/json"):
                detail = resp.json().get("detail", resp.text)
            else:
                detail = resp.text
            raise LDGrowthClientError(f"API error: {detail}", status_code=resp.status_code, response=resp)
        return resp

    def health(self) -> dict[str, str]:
        """Liveness check."""
        return self._request("GET", "/health").json()

    def me(self) -> dict[str, Any]:
        return self._request("GET", "/api/users/me").json()

    # Team surveys

    def list_surveys(self, status: str | None = None) -> list[dict[str, Any]]:
        params = {"status": status} if status else None
        return self._request("GET", "/api/team-surveys", params=params).json()

    def create_survey(self, survey: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/api/team-surveys", json=survey).json()

    def activate_survey(self, survey_id: int) -> dict[str, Any]:
        return self._request("POST", f"/api/team-surveys/{survey_id}/activate").json()

    def close_survey(self, survey_id: int) -> dict[str, Any]:
        return self._request("POST", f"/api/team-surveys/{survey_id}/close").json()

    def send_survey_reminders(self, survey_id: int) -> dict[str, Any]:
        return self._request("POST", f"/api/team-surveys/{survey_id}/send-reminders").json()

    def survey_analytics(self, survey_id: int, **filters: str) -> dict[str, Any]:
        return self._request("GET", f"/api/team-surveys/{survey_id}/analytics", params=filters or None).json()

    def get_survey_by_token(self, token: str) -> dict[str, Any]:
        """Anonymous: load a survey to take. No bearer token needed."""
        return self._request("GET", f"/api/team-surveys/take/{token}").json()

    def submit_survey(
        self,
        token: str,
        responses: list[dict[str, Any]],
        demographics: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        body: dict[str, Any] = {"responses": responses}
        if demographics is not None:
            body["demographics"] = demographics
        return self._request("POST", f"/api/team-surveys/take/{token}", json=body).json()

    # Leadership

    def situational_questions(self) -> list[dict[str, Any]]:
        return self._request("GET", "/api/leadership/situational/questions").json()

    def submit_situational(self, answers: dict[str, str]) -> dict[str, Any]:
        return self._request("POST", "/api/leadership/situational/submit", json={"answers": answers}).json()

    def enroll(self, plan_id: str) -> dict[str, Any]:
        return self._request("POST", f"/api/leadership/plans/{plan_id}/enroll").json()

    def update_task(self, plan_id: str, task_id: str, **fields: Any) -> dict[str, Any]:
        return self._request("PATCH", f"/api/leadership/my-plans/{plan_id}/tasks/{task_id}", json=fields).json()

    # Other domains

    def dashboard(self) -> dict[str, Any]:
        return self._request("GET", "/api/dashboard").json()

    def list_notifications(self, unread_only: bool = False) -> list[dict[str, Any]]:
        return self._request("GET", "/api/notifications", params={"unread_only": unread_only}).json()

    def create_waste_entry(self, entry: dict[str, Any]) -> dict[str, Any]:
        return self._request("POST", "/api/kitchen/waste", json=entry).json()


# -----------------------------------------------------------------------------
# Example usage
# -----------------------------------------------------------------------------

if __name__ == "__main__":
    import os

    client = LDGrowthClient("http://localhost:8000", token=os.getenv("LDGROWTH_TOKEN"))
    print("Health:", client.health())
    try:
        print("Signed in as:", client.me().get("name"))
        print("Dashboard:", client.dashboard())
    except LDGrowthClientError as e:
        if e.status_code == 401:
            print("Set LDGROWTH_TOKEN to a user's API token")
        else:
            raise
