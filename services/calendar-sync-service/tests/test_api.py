"""
API tests for the calendar sync service.

Repositories and the Google API are replaced with in-memory doubles via
FastAPI dependency overrides.
"""

from datetime import datetime, timedelta, timezone
from unittest.mock import MagicMock, patch

import pytest
from app.auth import get_current_user
from app.channels import LogNotificationChannel
from app.config import settings
from app.dependencies import get_event_repository, get_reminder_service, get_sync_service
from app.main import app
from app.models import PendingReminder
from app.services import ReminderService
from fastapi.testclient import TestClient

from fakes import NOW, google_event

SYNC_URL = "/api/v1/calendar-sync"


@pytest.fixture
def client(sync_service, events):
    """Test client with storage and Google replaced by doubles."""
    app.dependency_overrides[get_sync_service] = lambda: sync_service
    app.dependency_overrides[get_event_repository] = lambda: events
    app.dependency_overrides[get_reminder_service] = lambda: ReminderService(
        events=events, channel=LogNotificationChannel()
    )
    yield TestClient(app)
    app.dependency_overrides.clear()


@pytest.fixture
def auth_client(client, user):
    """Test client whose caller is already authenticated."""
    app.dependency_overrides[get_current_user] = lambda: user
    return client


@pytest.fixture
def connected(profiles, user):
    profiles.add(
        user.id,
        google_access_token="stored-access-token",
        google_refresh_token="stored-refresh-token",
        google_token_expires_at=NOW + timedelta(minutes=30),
    )


class TestCalendarSyncAuth:
    """Authentication of the calendar sync endpoint."""

    def test_missing_token(self, client, profiles, google_api):
        response = client.post(SYNC_URL, json={"action": "saveTokens", "accessToken": "a"})

        assert response.status_code == 401
        assert response.json() == {"success": False, "error": "Unauthorized"}
        assert profiles.writes == 0
        assert google_api.requests == []

    def test_rejected_token(self, client, profiles):
        with patch("app.auth.get_supabase_client") as mock_get_client:
            mock_client = MagicMock()
            mock_client.auth.get_user.side_effect = Exception("invalid JWT")
            mock_get_client.return_value = mock_client

            response = client.post(
                SYNC_URL,
                json={"action": "syncEvents"},
                headers={"Authorization": "Bearer expired-jwt"},
            )

        assert response.status_code == 401
        assert profiles.writes == 0

    def test_missing_configuration_is_reported_first(self, client, monkeypatch):
        monkeypatch.setattr(settings, "GOOGLE_CLIENT_SECRET", "")

        response = client.post(SYNC_URL, json={"action": "syncEvents"})

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Server configuration error: Missing Google credentials",
        }

    def test_missing_supabase_configuration(self, auth_client, monkeypatch):
        monkeypatch.setattr(settings, "SUPABASE_URL", "")

        response = auth_client.post(SYNC_URL, json={"action": "syncEvents"})

        assert response.status_code == 500
        assert response.json()["error"] == (
            "Server configuration error: Missing Supabase credentials"
        )


class TestCalendarSyncActions:
    """Action dispatch of the calendar sync endpoint."""

    def test_invalid_action(self, auth_client, profiles):
        response = auth_client.post(SYNC_URL, json={"action": "deleteEverything"})

        assert response.status_code == 400
        assert response.json() == {"success": False, "error": "Invalid action"}
        assert profiles.writes == 0

    def test_missing_action(self, auth_client):
        response = auth_client.post(SYNC_URL, json={})

        assert response.status_code == 400
        assert response.json()["error"] == "Invalid action"

    def test_save_tokens(self, auth_client, profiles, user):
        response = auth_client.post(
            SYNC_URL,
            json={
                "action": "saveTokens",
                "accessToken": "new-access-token",
                "refreshToken": "new-refresh-token",
                "expiresIn": 3599,
            },
        )

        assert response.status_code == 200
        assert response.json() == {"success": True}
        row = profiles.rows[user.id]
        assert row["google_access_token"] == "new-access-token"
        assert row["google_refresh_token"] == "new-refresh-token"
        assert row["google_token_expires_at"] == NOW + timedelta(seconds=3599)

    def test_save_tokens_without_access_token(self, auth_client, profiles):
        response = auth_client.post(SYNC_URL, json={"action": "saveTokens"})

        assert response.status_code == 400
        assert response.json()["error"] == "Access token is required"
        assert profiles.writes == 0

    def test_save_tokens_storage_failure(self, auth_client, profiles):
        profiles.fail_writes = True

        response = auth_client.post(
            SYNC_URL, json={"action": "saveTokens", "accessToken": "new-access-token"}
        )

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Failed to save tokens",
            "details": "permission denied",
        }

    def test_sync_events(self, auth_client, connected, events, google_api):
        google_api.set_events(
            [
                google_event("evt-1", summary="Team standup"),
                google_event("evt-2", start={}),
            ]
        )

        response = auth_client.post(SYNC_URL, json={"action": "syncEvents"})

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "eventsCount": 1,
            "totalEvents": 2,
            "skippedEvents": 1,
            "saveErrors": 0,
            "debug": {
                "timeRange": {
                    "timeMin": "2025-06-02T09:00:00.000Z",
                    "timeMax": "2025-07-02T09:00:00.000Z",
                },
                "calendarSummary": "user@example.com",
                "firstEventSample": {
                    "summary": "Team standup",
                    "start": {"dateTime": "2025-06-03T10:00:00+02:00"},
                },
            },
        }
        assert list(events.rows) == ["evt-1"]

    def test_sync_events_counts_save_errors(self, auth_client, connected, events, google_api):
        events.failing_event_ids = {"evt-1"}
        google_api.set_events([google_event("evt-1"), google_event("evt-2")])

        response = auth_client.post(SYNC_URL, json={"action": "syncEvents"})

        assert response.status_code == 200
        body = response.json()
        assert body["eventsCount"] == 1
        assert body["saveErrors"] == 1

    def test_sync_events_without_connection(self, auth_client, google_api):
        response = auth_client.post(SYNC_URL, json={"action": "syncEvents"})

        assert response.status_code == 400
        assert response.json() == {
            "success": False,
            "error": "No Google access token found. Please connect your Google Calendar first.",
        }
        assert google_api.requests == []

    def test_sync_events_refresh_rejected(self, auth_client, profiles, user, google_api):
        profiles.add(
            user.id,
            google_access_token="stored-access-token",
            google_refresh_token="revoked-refresh-token",
            google_token_expires_at=NOW - timedelta(minutes=1),
        )
        google_api.token_status = 400
        google_api.token_body = {"error": "invalid_grant"}

        response = auth_client.post(SYNC_URL, json={"action": "syncEvents"})

        assert response.status_code == 400
        body = response.json()
        assert body["error"] == (
            "Failed to refresh Google access token. Please reconnect your Google Calendar."
        )
        assert "invalid_grant" in body["details"]

    def test_sync_events_calendar_api_error(self, auth_client, connected, google_api):
        google_api.events_status = 401
        google_api.event_pages = [{"error": {"code": 401, "message": "Invalid Credentials"}}]

        response = auth_client.post(SYNC_URL, json={"action": "syncEvents"})

        assert response.status_code == 401
        body = response.json()
        assert body["error"] == "Failed to fetch calendar events"
        assert body["apiStatus"] == 401
        assert body["details"] == {"error": {"code": 401, "message": "Invalid Credentials"}}


class TestEventsApi:
    """Read endpoints used by the dashboard."""

    def test_list_events(self, auth_client, connected, google_api, monkeypatch):
        monkeypatch.setattr("app.routers.events.utc_now", lambda: NOW)
        google_api.set_events(
            [
                google_event(
                    "evt-late",
                    summary="Retro",
                    start={"dateTime": "2025-06-04T15:00:00+00:00"},
                    end={"dateTime": "2025-06-04T16:00:00+00:00"},
                ),
                google_event(
                    "evt-early",
                    summary="Standup",
                    start={"dateTime": "2025-06-03T08:00:00+00:00"},
                    end={"dateTime": "2025-06-03T08:15:00+00:00"},
                ),
            ]
        )
        auth_client.post(SYNC_URL, json={"action": "syncEvents"})

        response = auth_client.get("/api/v1/events")

        assert response.status_code == 200
        assert [event["title"] for event in response.json()] == ["Standup", "Retro"]

    def test_list_events_requires_auth(self, client):
        response = client.get("/api/v1/events")

        assert response.status_code == 401

    def test_connection_status(self, auth_client, connected):
        response = auth_client.get("/api/v1/connection")

        assert response.status_code == 200
        assert response.json() == {"connected": True}

    def test_connection_status_not_connected(self, auth_client):
        response = auth_client.get("/api/v1/connection")

        assert response.json() == {"connected": False}

    def test_list_calendars(self, auth_client, connected, google_api):
        google_api.calendar_list = {
            "items": [{"id": "user@example.com", "summary": "Personal", "primary": True}]
        }

        response = auth_client.get("/api/v1/calendars")

        assert response.status_code == 200
        assert response.json() == [
            {"id": "user@example.com", "summary": "Personal", "primary": True}
        ]


class TestRemindersApi:
    """Reminder trigger endpoint."""

    def test_run_reminders(self, client, events):
        starts_at = datetime.now(timezone.utc) + timedelta(minutes=5)
        events.pending = [
            PendingReminder(
                id="evt-row-1",
                title="Design review",
                start_time=starts_at,
                reminder_time=15,
                email="user@example.com",
            )
        ]

        response = client.post("/api/v1/reminders/run")

        assert response.status_code == 200
        assert response.json() == {
            "success": True,
            "reminders_sent": 1,
            "reminders_failed": 0,
        }
        assert events.marked == ["evt-row-1"]

    def test_run_reminders_fetch_failure(self, client, events):
        events.fail_pending_query = True

        response = client.post("/api/v1/reminders/run")

        assert response.status_code == 500
        assert response.json() == {"success": False, "error": "Failed to fetch events"}

    def test_trigger_token_required_when_configured(self, client, events, monkeypatch):
        monkeypatch.setattr(settings, "REMINDER_TRIGGER_TOKEN", "trigger-secret")

        missing = client.post("/api/v1/reminders/run")
        wrong = client.post("/api/v1/reminders/run", headers={"X-Trigger-Token": "guess"})
        valid = client.post(
            "/api/v1/reminders/run", headers={"X-Trigger-Token": "trigger-secret"}
        )

        assert missing.status_code == 401
        assert wrong.status_code == 401
        assert valid.status_code == 200


class TestServiceEndpoints:
    """Health, root and metrics endpoints."""

    def test_health(self, client):
        response = client.get("/health")

        assert response.status_code == 200
        body = response.json()
        assert body["status"] == "healthy"
        assert body["service"] == "calendar-sync-service"
        assert body["supabase_configured"] is True
        assert body["google_configured"] is True

    def test_root(self, client):
        response = client.get("/")

        assert response.json()["status"] == "running"

    def test_metrics(self, client):
        client.get("/health")

        response = client.get("/metrics")

        assert response.status_code == 200
        assert "calendar_sync_http_requests_total" in response.text

    def test_unexpected_error(self, auth_client):
        broken = MagicMock()
        broken.list_upcoming.side_effect = RuntimeError("boom")
        app.dependency_overrides[get_event_repository] = lambda: broken

        response = TestClient(app, raise_server_exceptions=False).get("/api/v1/events")

        assert response.status_code == 500
        assert response.json() == {
            "success": False,
            "error": "Internal server error",
            "details": "boom",
        }
