# Test configuration
import os
import sys
from pathlib import Path
from typing import Any

import httpx
import pytest

# Add parent directory (calendar-sync-service) to sys.path so 'app' can be imported
service_dir = Path(__file__).parent.parent
sys.path.insert(0, str(service_dir))
sys.path.insert(0, str(Path(__file__).parent))

# Set test environment variables BEFORE importing app modules
os.environ["SUPABASE_URL"] = "https://test-project.supabase.co"
os.environ["SUPABASE_SERVICE_KEY"] = "test-service-key"
os.environ["GOOGLE_CLIENT_ID"] = "test-client-id.apps.googleusercontent.com"
os.environ["GOOGLE_CLIENT_SECRET"] = "test-client-secret"
os.environ["REMINDER_CHANNEL"] = "log"
os.environ["LOG_LEVEL"] = "WARNING"

from app.google_calendar import GoogleCalendarClient  # noqa: E402
from app.models import AuthenticatedUser  # noqa: E402
from app.services import CalendarSyncService  # noqa: E402

from fakes import (  # noqa: E402
    NOW,
    FakeGoogleApi,
    InMemoryEventRepository,
    InMemoryProfileRepository,
)


@pytest.fixture
def user() -> AuthenticatedUser:
    return AuthenticatedUser(id="3f1c7a52-8a64-4d4e-9a4f-6f0d1d2b9c11", email="user@example.com")


@pytest.fixture
def profiles() -> InMemoryProfileRepository:
    return InMemoryProfileRepository()


@pytest.fixture
def events() -> InMemoryEventRepository:
    return InMemoryEventRepository()


@pytest.fixture
def google_api() -> FakeGoogleApi:
    return FakeGoogleApi()


@pytest.fixture
def google_client(google_api: FakeGoogleApi) -> GoogleCalendarClient:
    return GoogleCalendarClient(
        client_id="test-client-id.apps.googleusercontent.com",
        client_secret="test-client-secret",
        transport=httpx.MockTransport(google_api.handler),
    )


@pytest.fixture
def sync_service(profiles, events, google_client) -> CalendarSyncService:
    return CalendarSyncService(
        profiles=profiles,
        events=events,
        google=google_client,
        clock=lambda: NOW,
    )


def pytest_configure(config: Any) -> None:
    """Register custom markers."""
    config.addinivalue_line("markers", "asyncio: mark test as async")
