import asyncio
import logging
from datetime import datetime, timezone
from typing import Optional

from motor.motor_asyncio import AsyncIOMotorDatabase

from aquamanager.config import settings
from aquamanager.maintenance.repository import TaskRepository
from aquamanager.notifications.dispatch import ReminderDispatchService
from aquamanager.notifications.log_repository import MongoNotificationLogRepository
from aquamanager.notifications.mailer import EmailAdapter
from aquamanager.notifications.repository import MongoPreferencesRepository

logger = logging.getLogger(__name__)


class ReminderScheduler:
    """Background loop that delivers maintenance reminders."""

    def __init__(self, db: AsyncIOMotorDatabase, interval_seconds: Optional[int] = None):
        self.db = db
        self.interval_seconds = interval_seconds or settings.REMINDER_POLL_INTERVAL_SECONDS
        self._task: Optional[asyncio.Task] = None
        self._running = False

    @property
    def running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Start the scheduler background task."""
        if self._running:
            return

        if not settings.REMINDER_SCHEDULER_ENABLED:
            logger.info("Reminder scheduler is disabled via config")
            return

        self._running = True
        self._task = asyncio.create_task(self._run_loop())
        logger.info(f"Reminder scheduler started (every {self.interval_seconds}s)")

    async def stop(self) -> None:
        """Stop the scheduler background task."""
        self._running = False
        if self._task:
            self._task.cancel()
            try:
                await self._task
            except asyncio.CancelledError:
                pass
            self._task = None
        logger.info("Reminder scheduler stopped")

    async def _run_loop(self) -> None:
        while self._running:
            try:
                await self.run_once()
            except Exception as e:
                logger.error(f"Error in reminder job: {e}", exc_info=True)

            await asyncio.sleep(self.interval_seconds)

    async def run_once(self, now: Optional[datetime] = None):
        """Execute the reminder job once."""
        service = ReminderDispatchService(
            task_repo=TaskRepository(self.db),
            preferences_repo=MongoPreferencesRepository(self.db),
            log_repo=MongoNotificationLogRepository(self.db),
            mailer=EmailAdapter(),
        )
        report = await service.dispatch_for_all_users(now or datetime.now(timezone.utc))
        logger.info(
            f"Reminder job finished: {report.emails_sent} email(s), "
            f"{report.events_sent} reminder(s), {report.failures} failure(s)"
        )
        return report
