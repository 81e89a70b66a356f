"""
AQUAMANAGER Core API - Reminder Dispatch

Turns scheduled notification events into digest emails. Each (task, category)
reminder is delivered at most once per local day; entries are recorded only
after the mailer accepts the message.
"""

import html
import logging
from dataclasses import dataclass
from datetime import datetime
from typing import List, Optional, Set, Tuple

from aquamanager.config import settings
from aquamanager.maintenance.classification import classify_all
from aquamanager.maintenance.exceptions import DataContractError, InvalidTimezone
from aquamanager.maintenance.repository import TaskRepositoryInterface
from aquamanager.notifications.enums import NotificationCategory
from aquamanager.notifications.log_repository import NotificationLogRepositoryInterface
from aquamanager.notifications.mailer import EmailAdapter
from aquamanager.notifications.models import NotificationEvent, NotificationPreferences
from aquamanager.notifications.repository import PreferencesRepositoryInterface
from aquamanager.notifications.scheduling import schedule_notifications
from aquamanager.timeutils import ensure_aware, local_date, resolve_timezone

logger = logging.getLogger(__name__)

REMINDER_SUBJECT = "Your Aquarium Maintenance Reminder"

_SECTIONS = (
    (NotificationCategory.ESCALATION, "Needs attention now"),
    (NotificationCategory.OVERDUE, "Overdue"),
    (NotificationCategory.DUE_TODAY, "Due today"),
    (NotificationCategory.ADVANCE, "Coming up"),
)


@dataclass
class DispatchReport:
    users_checked: int = 0
    emails_sent: int = 0
    events_sent: int = 0
    events_already_sent: int = 0
    failures: int = 0

    def merge(self, other: "DispatchReport") -> None:
        self.users_checked += other.users_checked
        self.emails_sent += other.emails_sent
        self.events_sent += other.events_sent
        self.events_already_sent += other.events_already_sent
        self.failures += other.failures


def _describe(event: NotificationEvent) -> str:
    label = html.escape(event.task_label or event.task_id)
    if event.category == NotificationCategory.ADVANCE:
        days = event.interval_days
        return f"{label} (due in {days} day{'s' if days != 1 else ''})"
    if event.category == NotificationCategory.DUE_TODAY:
        return f"{label} (due today)"
    overdue = -event.days_until_due if event.days_until_due is not None else None
    if overdue is None:
        return label
    return f"{label} ({overdue} day{'s' if overdue != 1 else ''} overdue)"


def format_reminder_email(events: List[NotificationEvent]) -> str:
    """Render a digest of reminder events as HTML, most urgent section first."""
    parts = ["<h2>Aquarium maintenance reminder</h2>"]
    for category, heading in _SECTIONS:
        matching = [e for e in events if e.category == category]
        if not matching:
            continue
        parts.append(f"<h3>{heading}</h3>")
        parts.append("<ul>")
        for event in matching:
            parts.append(f"<li>{_describe(event)}</li>")
        parts.append("</ul>")
    return "\n".join(parts)


class ReminderDispatchService:
    """Delivers today's reminders for users with open maintenance tasks."""

    def __init__(
        self,
        task_repo: TaskRepositoryInterface,
        preferences_repo: PreferencesRepositoryInterface,
        log_repo: NotificationLogRepositoryInterface,
        mailer: EmailAdapter,
        due_soon_days: Optional[int] = None,
    ):
        self.task_repo = task_repo
        self.preferences_repo = preferences_repo
        self.log_repo = log_repo
        self.mailer = mailer
        self.due_soon_days = due_soon_days if due_soon_days is not None else settings.DUE_SOON_DAYS

    async def events_for_user(
        self,
        preferences: NotificationPreferences,
        now: datetime,
    ) -> List[NotificationEvent]:
        """All events scheduled for today, classified in the user's timezone."""
        tasks = await self.task_repo.list_open_by_owner(preferences.user_id)
        classified = classify_all(
            tasks, now, tz=preferences.timezone, due_soon_days=self.due_soon_days
        )
        return schedule_notifications(classified, preferences, now)

    async def dispatch_for_user(self, user_id: str, now: datetime) -> DispatchReport:
        """
        Send one digest email with the user's due, not yet delivered reminders.

        Events whose send time has not arrived yet are left for a later run.
        """
        report = DispatchReport(users_checked=1)
        now = ensure_aware(now)
        preferences = await self.preferences_repo.get(user_id)
        zone = resolve_timezone(preferences.timezone)
        local_day = local_date(now, zone)

        events = [e for e in await self.events_for_user(preferences, now) if e.scheduled_for <= now]

        pending: List[NotificationEvent] = []
        seen: Set[Tuple[str, NotificationCategory]] = set()
        for event in events:
            key = (event.task_id, event.category)
            if key in seen:
                continue
            seen.add(key)
            if await self.log_repo.has_sent(event.task_id, event.category, local_day):
                report.events_already_sent += 1
                continue
            pending.append(event)

        if not pending:
            logger.debug(f"No reminders due for user {user_id} on {local_day}")
            return report

        if not preferences.email_enabled:
            logger.debug(f"Email reminders disabled for user {user_id}, {len(pending)} event(s) not sent")
            return report

        if not preferences.email:
            logger.info(f"No reminder address for user {user_id}, {len(pending)} event(s) not sent")
            return report

        result = await self.mailer.send_email(
            to=preferences.email,
            subject=REMINDER_SUBJECT,
            html=format_reminder_email(pending),
        )

        if not result.ok:
            report.failures += 1
            logger.warning(f"Failed to send reminder email to user {user_id}: {result.error}")
            return report

        # Mark as sent only if send succeeded
        for event in pending:
            await self.log_repo.mark_sent(user_id, event.task_id, event.category, local_day)
        report.emails_sent += 1
        report.events_sent += len(pending)
        logger.info(f"Sent {len(pending)} reminder(s) to user {user_id} (message {result.id})")
        return report

    async def dispatch_for_all_users(self, now: datetime) -> DispatchReport:
        """Run delivery for every owner with open tasks; one user's bad data never stops the run."""
        report = DispatchReport()
        user_ids = await self.task_repo.list_owner_ids_with_open_tasks()
        logger.info(f"Reminder job: found {len(user_ids)} users with open maintenance tasks")

        for user_id in user_ids:
            try:
                report.merge(await self.dispatch_for_user(user_id, now))
            except (DataContractError, InvalidTimezone) as e:
                report.users_checked += 1
                report.failures += 1
                logger.error(f"Skipping reminders for user {user_id}: {e}", exc_info=True)

        return report
