"""
AQUAMANAGER Core API - Reminder Delivery Tests

Dispatch service, Resend adapter and background scheduler, all without network or MongoDB.
"""

import asyncio
import pytest
import httpx
from datetime import datetime, time, timezone, timedelta
from unittest.mock import AsyncMock, MagicMock, patch

from aquamanager.maintenance.models import MaintenanceTask
from aquamanager.maintenance.repository import InMemoryTaskRepository
from aquamanager.notifications.dispatch import ReminderDispatchService, format_reminder_email
from aquamanager.notifications.enums import NotificationCategory
from aquamanager.notifications.log_repository import InMemoryNotificationLogRepository
from aquamanager.notifications.mailer import EmailAdapter
from aquamanager.notifications.models import NotificationEvent, NotificationPreferences
from aquamanager.notifications.repository import InMemoryPreferencesRepository
from aquamanager.notifications.scheduler import ReminderScheduler

from conftest import RecordingMailer

SEND_TIME = datetime(2025, 1, 15, 18, 30, tzinfo=timezone.utc)


@pytest.fixture
def tasks():
    return InMemoryTaskRepository()


@pytest.fixture
def prefs_repo():
    return InMemoryPreferencesRepository()


@pytest.fixture
def log_repo():
    return InMemoryNotificationLogRepository()


@pytest.fixture
def recording_mailer():
    return RecordingMailer()


@pytest.fixture
def service(tasks, prefs_repo, log_repo, recording_mailer):
    return ReminderDispatchService(tasks, prefs_repo, log_repo, recording_mailer, due_soon_days=3)


async def add_task(repo, owner_id, label, due_date):
    task = MaintenanceTask.create(aquarium_id="tank-1", owner_id=owner_id, task=label, due_date=due_date)
    await repo.create(task)
    return task


async def add_prefs(repo, user_id, **overrides):
    prefs = NotificationPreferences(user_id=user_id, email=f"{user_id}@example.com")
    for key, value in overrides.items():
        setattr(prefs, key, value)
    await repo.upsert(prefs)
    return prefs


class TestDispatchForUser:
    async def test_sends_digest_with_all_categories(self, service, tasks, prefs_repo, recording_mailer):
        await add_prefs(prefs_repo, "alice", escalation_enabled=True, escalation_days=3)
        await add_task(tasks, "alice", "Replace carbon", SEND_TIME - timedelta(days=5))
        await add_task(tasks, "alice", "Trim plants", SEND_TIME + timedelta(hours=2))
        await add_task(tasks, "alice", "Clean filter", SEND_TIME + timedelta(days=7))

        report = await service.dispatch_for_user("alice", SEND_TIME)

        assert report.emails_sent == 1
        # overdue + escalation + due today + advance
        assert report.events_sent == 4
        html = recording_mailer.sent[0]["html"]
        assert html.index("Needs attention now") < html.index("Overdue") < html.index("Due today")
        assert "Clean filter (due in 7 days)" in html

    async def test_morning_task_tomorrow_is_not_due_today(self, service, tasks, prefs_repo, recording_mailer):
        await add_prefs(prefs_repo, "alice")
        await add_task(tasks, "alice", "Dose ferts", datetime(2025, 1, 16, 8, 0, tzinfo=timezone.utc))

        report = await service.dispatch_for_user("alice", SEND_TIME)

        assert report.events_sent == 1
        html = recording_mailer.sent[0]["html"]
        assert "Dose ferts (due in 1 day)" in html
        assert "due today" not in html

    async def test_email_disabled_sends_nothing(self, service, tasks, prefs_repo, log_repo, recording_mailer):
        await add_prefs(prefs_repo, "alice", email_enabled=False)
        task = await add_task(tasks, "alice", "Scrape algae", SEND_TIME - timedelta(days=1))

        report = await service.dispatch_for_user("alice", SEND_TIME)

        assert report.emails_sent == 0
        assert recording_mailer.sent == []
        assert not await log_repo.has_sent(task.id, NotificationCategory.OVERDUE, SEND_TIME.date())

    async def test_missing_address_sends_nothing(self, service, tasks, prefs_repo, recording_mailer):
        await add_prefs(prefs_repo, "alice", email=None)
        await add_task(tasks, "alice", "Scrape algae", SEND_TIME - timedelta(days=1))
        await service.dispatch_for_user("alice", SEND_TIME)
        assert recording_mailer.sent == []

    async def test_failed_send_is_retried_next_run(self, tasks, prefs_repo, log_repo):
        failing = RecordingMailer(ok=False)
        service = ReminderDispatchService(tasks, prefs_repo, log_repo, failing)
        await add_prefs(prefs_repo, "alice")
        await add_task(tasks, "alice", "Scrape algae", SEND_TIME - timedelta(days=1))

        first = await service.dispatch_for_user("alice", SEND_TIME)
        assert first.failures == 1

        failing.ok = True
        second = await service.dispatch_for_user("alice", SEND_TIME)
        assert second.emails_sent == 1
        assert len(failing.sent) == 2

    async def test_new_local_day_sends_again(self, service, tasks, prefs_repo, recording_mailer):
        await add_prefs(prefs_repo, "alice")
        await add_task(tasks, "alice", "Scrape algae", SEND_TIME - timedelta(days=1))

        await service.dispatch_for_user("alice", SEND_TIME)
        await service.dispatch_for_user("alice", SEND_TIME + timedelta(days=1))

        assert len(recording_mailer.sent) == 2

    async def test_respects_user_notification_time(self, service, tasks, prefs_repo, recording_mailer):
        """09:00 in Tokyo is 00:00 UTC, so a 00:30 UTC run delivers."""
        await add_prefs(prefs_repo, "alice", timezone="Asia/Tokyo", notification_time=time(9, 0))
        await add_task(tasks, "alice", "Scrape algae", SEND_TIME - timedelta(days=3))

        report = await service.dispatch_for_user("alice", datetime(2025, 1, 16, 0, 30, tzinfo=timezone.utc))
        assert report.emails_sent == 1


class TestDispatchForAllUsers:
    async def test_bad_preferences_do_not_stop_other_users(self, service, tasks, prefs_repo, recording_mailer):
        await add_prefs(prefs_repo, "alice", timezone="Not/AZone")
        await add_prefs(prefs_repo, "bob")
        await add_task(tasks, "alice", "Scrape algae", SEND_TIME - timedelta(days=1))
        await add_task(tasks, "bob", "Scrape algae", SEND_TIME - timedelta(days=1))

        report = await service.dispatch_for_all_users(SEND_TIME)

        assert report.users_checked == 2
        assert report.failures == 1
        assert report.emails_sent == 1
        assert recording_mailer.sent[0]["to"] == "bob@example.com"

    async def test_users_without_open_tasks_are_skipped(self, service, prefs_repo, recording_mailer):
        await add_prefs(prefs_repo, "carol")
        report = await service.dispatch_for_all_users(SEND_TIME)
        assert report.users_checked == 0
        assert recording_mailer.sent == []


class TestFormatReminderEmail:
    def test_escapes_task_labels(self):
        event = NotificationEvent(
            task_id="t1",
            category=NotificationCategory.DUE_TODAY,
            scheduled_for=SEND_TIME,
            task_label="<b>Dose</b>",
            days_until_due=0,
        )
        html = format_reminder_email([event])
        assert "&lt;b&gt;Dose&lt;/b&gt; (due today)" in html


class TestEmailAdapter:
    """Tests for the Resend API adapter."""

    @pytest.fixture
    def adapter(self):
        return EmailAdapter(api_key="re_test", from_address="Tank <tank@example.com>", api_base_url="https://mail.test/")

    async def test_send_without_key(self):
        adapter = EmailAdapter(api_key=None)
        adapter.api_key = None
        result = await adapter.send_email("a@example.com", "Hi", "<p>Hi</p>")
        assert result.ok is False

    @patch("aquamanager.notifications.mailer.httpx.AsyncClient")
    async def test_send_success(self, mock_client_class, adapter):
        mock_response = MagicMock()
        mock_response.json.return_value = {"id": "email-123"}
        mock_response.raise_for_status = MagicMock()

        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.__aexit__.return_value = None
        mock_client.post = AsyncMock(return_value=mock_response)
        mock_client_class.return_value = mock_client

        result = await adapter.send_email("a@example.com", "Reminder", "<p>Hi</p>")

        assert result.ok is True
        assert result.id == "email-123"
        args, kwargs = mock_client.post.call_args
        assert args[0] == "https://mail.test/emails"
        assert kwargs["headers"]["Authorization"] == "Bearer re_test"
        assert kwargs["json"]["to"] == ["a@example.com"]
        assert kwargs["json"]["from"] == "Tank <tank@example.com>"

    @patch("aquamanager.notifications.mailer.httpx.AsyncClient")
    async def test_send_api_error(self, mock_client_class, adapter):
        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.__aexit__.return_value = None
        mock_client.post = AsyncMock(side_effect=httpx.HTTPError("API error"))
        mock_client_class.return_value = mock_client

        result = await adapter.send_email("a@example.com", "Reminder", "<p>Hi</p>")
        assert result.ok is False
        assert "API error" in result.error

    @patch("aquamanager.notifications.mailer.httpx.AsyncClient")
    async def test_send_unparseable_response(self, mock_client_class, adapter):
        mock_response = MagicMock()
        mock_response.raise_for_status = MagicMock()
        mock_response.json.side_effect = ValueError("Expecting value: line 1 column 1 (char 0)")

        mock_client = AsyncMock()
        mock_client.__aenter__.return_value = mock_client
        mock_client.__aexit__.return_value = None
        mock_client.post = AsyncMock(return_value=mock_response)
        mock_client_class.return_value = mock_client

        result = await adapter.send_email("a@example.com", "Reminder", "<p>Hi</p>")
        assert result.ok is False
        assert "Expecting value" in result.error


class TestReminderScheduler:
    async def test_disabled_by_config(self):
        scheduler = ReminderScheduler(MagicMock())
        with patch("aquamanager.notifications.scheduler.settings") as mock_settings:
            mock_settings.REMINDER_SCHEDULER_ENABLED = False
            await scheduler.start()
        assert scheduler.running is False

    async def test_start_runs_job_and_stop_cancels(self):
        scheduler = ReminderScheduler(MagicMock(), interval_seconds=3600)
        scheduler.run_once = AsyncMock()
        with patch("aquamanager.notifications.scheduler.settings") as mock_settings:
            mock_settings.REMINDER_SCHEDULER_ENABLED = True
            await scheduler.start()
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            await scheduler.stop()

        assert scheduler.run_once.await_count == 1
        assert scheduler.running is False

    async def test_job_errors_do_not_kill_loop(self):
        scheduler = ReminderScheduler(MagicMock(), interval_seconds=3600)
        scheduler.run_once = AsyncMock(side_effect=RuntimeError("boom"))
        with patch("aquamanager.notifications.scheduler.settings") as mock_settings:
            mock_settings.REMINDER_SCHEDULER_ENABLED = True
            await scheduler.start()
            await asyncio.sleep(0)
            await asyncio.sleep(0)
            assert scheduler.running is True
            await scheduler.stop()
