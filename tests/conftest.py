"""
AQUAMANAGER Core API - Test Configuration

Shared fixtures for CI-safe testing without MongoDB or a mail provider.
"""

import pytest
from datetime import datetime, timezone, timedelta
from typing import List, Union
from fastapi.testclient import TestClient

from unittest.mock import MagicMock

from aquamanager.main import app
from aquamanager.auth.tokens import TokenService
from aquamanager.database import get_database
from aquamanager.maintenance.repository import InMemoryTaskRepository
from aquamanager.maintenance.router import get_clock, get_task_repository
from aquamanager.notifications.log_repository import InMemoryNotificationLogRepository
from aquamanager.notifications.repository import InMemoryPreferencesRepository
from aquamanager.notifications.router import (
    get_email_adapter,
    get_notification_log_repository,
    get_preferences_repository,
)
from aquamanager.notifications.schemas import EmailSendResult


TEST_USER_ID = "user-1"
SECOND_USER_ID = "user-2"

# Global in-memory repositories for tests
_test_repository = InMemoryTaskRepository()
_test_preferences_repository = InMemoryPreferencesRepository()
_test_log_repository = InMemoryNotificationLogRepository()
token_service = TokenService()


# Time control fixtures for deterministic classification testing
class FrozenClock:
    """A clock that returns a fixed time for deterministic testing."""

    def __init__(self, frozen_time: datetime):
        self._frozen_time = frozen_time

    def __call__(self) -> datetime:
        return self._frozen_time

    def set(self, new_time: datetime) -> None:
        self._frozen_time = new_time

    def advance(self, delta: timedelta) -> None:
        self._frozen_time += delta


class RecordingMailer:
    """Stands in for EmailAdapter; records every send call."""

    def __init__(self, ok: bool = True):
        self.ok = ok
        self.sent: List[dict] = []

    async def send_email(self, to: Union[str, List[str]], subject: str, html: str) -> EmailSendResult:
        self.sent.append({"to": to, "subject": subject, "html": html})
        if not self.ok:
            return EmailSendResult(ok=False, error="provider rejected message")
        return EmailSendResult(ok=True, id=f"msg-{len(self.sent)}")


@pytest.fixture
def frozen_now() -> datetime:
    """A fixed 'now' time for testing."""
    return datetime(2025, 1, 15, 12, 0, 0, tzinfo=timezone.utc)


@pytest.fixture
def frozen_clock(frozen_now) -> FrozenClock:
    """A controllable clock for classification testing."""
    return FrozenClock(frozen_now)


@pytest.fixture
def task_repository():
    """Provide a fresh in-memory task repository for each test."""
    _test_repository.clear()
    return _test_repository


@pytest.fixture
def preferences_repository():
    _test_preferences_repository.clear()
    return _test_preferences_repository


@pytest.fixture
def log_repository():
    _test_log_repository.clear()
    return _test_log_repository


@pytest.fixture
def mailer() -> RecordingMailer:
    return RecordingMailer()


@pytest.fixture
def client(task_repository, preferences_repository, log_repository, mailer, frozen_clock):
    """Create test client with in-memory repositories and a frozen clock."""

    async def override_get_task_repository():
        return task_repository

    async def override_get_preferences_repository():
        return preferences_repository

    async def override_get_notification_log_repository():
        return log_repository

    async def override_get_database():
        """Not used by the in-memory repositories, but required by their dependencies."""
        return MagicMock()

    app.dependency_overrides[get_task_repository] = override_get_task_repository
    app.dependency_overrides[get_preferences_repository] = override_get_preferences_repository
    app.dependency_overrides[get_notification_log_repository] = override_get_notification_log_repository
    app.dependency_overrides[get_email_adapter] = lambda: mailer
    app.dependency_overrides[get_clock] = lambda: frozen_clock
    app.dependency_overrides[get_database] = override_get_database

    yield TestClient(app)
    # Clean up override after test
    app.dependency_overrides.clear()


def _headers_for(user_id: str) -> dict:
    return {"Authorization": f"Bearer {token_service.create_access_token(user_id)}"}


@pytest.fixture
def auth_headers() -> dict:
    """Authorization headers for the primary test user."""
    return _headers_for(TEST_USER_ID)


@pytest.fixture
def second_auth_headers() -> dict:
    """Authorization headers for a second user."""
    return _headers_for(SECOND_USER_ID)
