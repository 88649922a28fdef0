"""
API tests for the weekly scheduler endpoints (shared bearer secret).
"""

import pytest
from fastapi.testclient import TestClient

from leadership_canvas.api.dependencies import get_database
from leadership_canvas.core.canvas.models import AUTOMATED_NUDGE_PREFIX
from leadership_canvas.main import create_app


@pytest.fixture
def scheduler_headers(settings):
    return {"Authorization": f"Bearer {settings.automation_api_secret}"}


class TestAutomationAuth:
    def test_missing_header(self, api):
        response = api.get("/api/weekly-nudges")

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized", "message": "Missing authorization header"}

    def test_wrong_secret_of_same_length(self, api, settings):
        secret = settings.automation_api_secret
        wrong = secret[:-1] + ("x" if secret[-1] != "x" else "y")

        response = api.get("/api/weekly-nudges", headers={"Authorization": f"Bearer {wrong}"})

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid API secret"

    def test_session_token_is_not_the_secret(self, api, auth_headers, coach_user):
        """A coach's session does not open the scheduler endpoints."""
        response = api.get("/api/weekly-nudges", headers=auth_headers(coach_user.id))
        assert response.status_code == 401

    def test_unconfigured_secret(self, settings, database):
        app = create_app(settings.model_copy(update={"automation_api_secret": None}))
        app.dependency_overrides[get_database] = lambda: database

        response = TestClient(app).get(
            "/api/weekly-nudges", headers={"Authorization": "Bearer anything"}
        )

        assert response.status_code == 500
        assert response.json() == {
            "error": "Server Configuration Error",
            "message": "API not configured",
        }


class TestWeeklyNudges:
    def test_lists_opted_in_clients(self, api, scheduler_headers, auth_headers, make_user):
        opted_in = make_user(name="Alex", receive_weekly_nudge=True)
        make_user(name="Blair", receive_weekly_nudge=False)
        api.post(
            "/api/v1/weekly-actions",
            json={"action_text": "Hand off the agenda"},
            headers=auth_headers(opted_in.id),
        )

        response = api.get("/api/weekly-nudges", headers=scheduler_headers)

        assert response.status_code == 200
        body = response.json()
        assert body["total_count"] == 1
        [client] = body["clients"]
        assert client["client_id"] == str(opted_in.id)
        assert client["phone"] == opted_in.phone
        assert client["current_theme"] is None
        assert client["open_actions_count"] == 1
        assert client["open_actions"] == ["Hand off the agenda"]
        assert "generated_at" in body

    def test_log_nudge(self, api, scheduler_headers, auth_headers, coach_user, client_user):
        response = api.post(
            "/api/weekly-nudges/log",
            json={"client_id": str(client_user.id), "message_text": "Weekly check-in"},
            headers=scheduler_headers,
        )

        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["message"] == "Nudge logged successfully"

        history = api.get(
            f"/api/v1/coach/clients/{client_user.id}/nudges",
            headers=auth_headers(coach_user.id),
        ).json()
        assert history["nudges"][0]["id"] == body["data"]["nudge_id"]
        assert history["nudges"][0]["message_text"] == f"{AUTOMATED_NUDGE_PREFIX}Weekly check-in"

    def test_log_requires_fields(self, api, scheduler_headers):
        response = api.post("/api/weekly-nudges/log", json={}, headers=scheduler_headers)

        assert response.status_code == 400
        assert response.json() == {
            "error": "Bad Request",
            "message": "client_id and message_text are required",
        }

    def test_log_without_a_coach(self, api, scheduler_headers, client_user):
        response = api.post(
            "/api/weekly-nudges/log",
            json={"client_id": str(client_user.id), "message_text": "Weekly check-in"},
            headers=scheduler_headers,
        )

        assert response.status_code == 500
        assert response.json() == {
            "error": "Configuration Error",
            "message": "No coach found in system",
        }


class TestMalformedBodies:
    def test_bad_json_without_secret_is_401(self, api):
        response = api.post(
            "/api/weekly-nudges/log",
            content=b"{not json",
            headers={"Content-Type": "application/json"},
        )

        assert response.status_code == 401
        assert response.json() == {"error": "Unauthorized", "message": "Missing authorization header"}

    def test_bad_json_with_wrong_secret_is_401(self, api):
        response = api.post(
            "/api/weekly-nudges/log",
            content=b"[1, 2",
            headers={"Content-Type": "application/json", "Authorization": "Bearer nope"},
        )

        assert response.status_code == 401
        assert response.json()["message"] == "Invalid API secret"

    def test_bad_json_with_secret_is_400(self, api, scheduler_headers):
        response = api.post(
            "/api/weekly-nudges/log",
            content=b"{not json",
            headers={**scheduler_headers, "Content-Type": "application/json"},
        )

        assert response.status_code == 400
        assert response.json() == {
            "error": "Validation Error",
            "message": "Request body must be a JSON object",
        }

    def test_non_object_body_with_secret_is_400(self, api, scheduler_headers):
        response = api.post("/api/weekly-nudges/log", json=["a", "b"], headers=scheduler_headers)

        assert response.status_code == 400
        assert response.json()["error"] == "Validation Error"
