"""
AQUAMANAGER Core API - Notification Scheduler

Derives the reminder events for a user's classified tasks at a given instant.
Pure computation: no I/O, no clock reads, no delivery. Callers deduplicate
across repeated runs.
"""

from datetime import datetime, time
from typing import Iterable, List, Optional

from aquamanager.maintenance.classification import ClassifiedTask
from aquamanager.maintenance.enums import TaskState
from aquamanager.maintenance.exceptions import DataContractError, MaintenanceError
from aquamanager.notifications.enums import NotificationCategory
from aquamanager.notifications.models import NotificationEvent, NotificationPreferences
from aquamanager.timeutils import ensure_aware, local_date, resolve_timezone


def notification_instant(preferences: NotificationPreferences, now: datetime) -> datetime:
    """Today's date in the user's zone at their notification time, as an absolute instant."""
    zone = resolve_timezone(preferences.timezone)
    today = local_date(ensure_aware(now), zone)
    local_time = time(
        preferences.notification_time.hour,
        preferences.notification_time.minute,
        preferences.notification_time.second,
    )
    return datetime.combine(today, local_time, tzinfo=zone)


def _event(
    item: ClassifiedTask,
    category: NotificationCategory,
    scheduled_for: datetime,
    interval_days: Optional[int] = None,
    days_until_due: Optional[int] = None,
) -> NotificationEvent:
    return NotificationEvent(
        task_id=item.task.id,
        category=category,
        scheduled_for=scheduled_for,
        task_label=item.task.task,
        aquarium_id=item.task.aquarium_id,
        days_until_due=item.days_until_due if days_until_due is None else days_until_due,
        interval_days=interval_days,
    )


def _events_for(
    item: ClassifiedTask,
    preferences: NotificationPreferences,
    scheduled_for: datetime,
) -> List[NotificationEvent]:
    events: List[NotificationEvent] = []
    if item.state == TaskState.COMPLETED or item.due_at is None:
        return events

    # Advance and due-today compare calendar days in the user's zone;
    # scheduled_for already carries that zone
    days = (local_date(item.due_at, scheduled_for.tzinfo) - scheduled_for.date()).days

    if preferences.advance_notifications_enabled and item.state in (TaskState.PENDING, TaskState.DUE_SOON):
        for interval in preferences.reminder_intervals:
            if days == interval:
                events.append(_event(item, NotificationCategory.ADVANCE, scheduled_for, interval, days))

    if preferences.due_date_notifications_enabled and days == 0:
        events.append(_event(item, NotificationCategory.DUE_TODAY, scheduled_for, days_until_due=0))

    if item.state == TaskState.OVERDUE:
        if preferences.overdue_notifications_enabled:
            events.append(_event(item, NotificationCategory.OVERDUE, scheduled_for))
        if (
            preferences.escalation_enabled
            and preferences.escalation_days > 0
            and item.days_overdue is not None
            and item.days_overdue >= preferences.escalation_days
        ):
            events.append(_event(item, NotificationCategory.ESCALATION, scheduled_for))

    return events


def schedule_notifications(
    classified: Iterable[ClassifiedTask],
    preferences: NotificationPreferences,
    now: datetime,
) -> List[NotificationEvent]:
    """
    Produce the notification events for today.

    Every event is scheduled for today's ``notification_time`` in the user's
    timezone. A task matching several reminder intervals gets one advance
    event per interval; completed tasks never produce events.

    Raises:
        InvalidTimezone: If the preferences carry an unknown zone
        DataContractError: If a classified task is malformed
    """
    try:
        scheduled_for = notification_instant(preferences, now)
        events: List[NotificationEvent] = []
        for item in classified:
            events.extend(_events_for(item, preferences, scheduled_for))
        return events
    except MaintenanceError:
        raise
    except (AttributeError, TypeError, ValueError, KeyError) as exc:
        raise DataContractError(f"Cannot schedule notifications: {exc}") from exc
