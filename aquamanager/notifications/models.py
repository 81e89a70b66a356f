"""
AQUAMANAGER Core API - Notification Models

Per-user reminder preferences and derived notification events.
"""

from dataclasses import dataclass, field
from datetime import datetime, time, timezone
from typing import Iterable, List, Optional

from aquamanager.maintenance.exceptions import DataContractError
from aquamanager.notifications.enums import NotificationCategory

DEFAULT_NOTIFICATION_TIME = time(18, 0)
DEFAULT_TIMEZONE = "UTC"
DEFAULT_REMINDER_INTERVALS = (7, 3, 1)
DEFAULT_ESCALATION_DAYS = 3


def _utcnow() -> datetime:
    """Get current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


def normalize_intervals(values: Iterable[int]) -> List[int]:
    """Deduplicate reminder intervals and order them longest first. Rejects non-positive values."""
    intervals = set()
    for value in values:
        if isinstance(value, bool) or int(value) != value:
            raise ValueError(f"Reminder interval must be a whole number of days, got {value!r}")
        if value <= 0:
            raise ValueError(f"Reminder interval must be positive, got {value!r}")
        intervals.add(int(value))
    return sorted(intervals, reverse=True)


def parse_notification_time(value: str) -> time:
    """Parse 'HH:MM' or 'HH:MM:SS' local time of day."""
    parts = value.strip().split(":")
    if len(parts) not in (2, 3):
        raise ValueError(f"Notification time must be HH:MM, got {value!r}")
    hour, minute = int(parts[0]), int(parts[1])
    second = int(parts[2]) if len(parts) == 3 else 0
    return time(hour, minute, second)


def format_notification_time(value: time) -> str:
    return value.strftime("%H:%M")


@dataclass
class NotificationPreferences:
    """Reminder settings for one user."""

    user_id: str
    email_enabled: bool = True
    email: Optional[str] = None
    notification_time: time = DEFAULT_NOTIFICATION_TIME
    timezone: str = DEFAULT_TIMEZONE
    reminder_intervals: List[int] = field(default_factory=lambda: list(DEFAULT_REMINDER_INTERVALS))
    advance_notifications_enabled: bool = True
    due_date_notifications_enabled: bool = True
    overdue_notifications_enabled: bool = True
    escalation_enabled: bool = False
    escalation_days: int = DEFAULT_ESCALATION_DAYS
    updated_at: datetime = field(default_factory=_utcnow)

    @classmethod
    def defaults(cls, user_id: str) -> "NotificationPreferences":
        """Preferences used for users who never saved any."""
        return cls(user_id=user_id)

    def to_dict(self) -> dict:
        """Convert preferences to dictionary for MongoDB storage."""
        return {
            "_id": self.user_id,
            "user_id": self.user_id,
            "email_enabled": self.email_enabled,
            "email": self.email,
            "notification_time": format_notification_time(self.notification_time),
            "timezone": self.timezone,
            "reminder_intervals": list(self.reminder_intervals),
            "advance_notifications_enabled": self.advance_notifications_enabled,
            "due_date_notifications_enabled": self.due_date_notifications_enabled,
            "overdue_notifications_enabled": self.overdue_notifications_enabled,
            "escalation_enabled": self.escalation_enabled,
            "escalation_days": self.escalation_days,
            "updated_at": self.updated_at,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "NotificationPreferences":
        """Create preferences from MongoDB document, filling missing fields with defaults."""
        try:
            stored_time = data.get("notification_time")
            intervals = data.get("reminder_intervals")
            escalation_days = data.get("escalation_days") or DEFAULT_ESCALATION_DAYS
            if escalation_days <= 0:
                raise ValueError(f"escalation_days must be positive, got {escalation_days!r}")
            return cls(
                user_id=data["user_id"],
                email_enabled=data.get("email_enabled", True),
                email=data.get("email"),
                notification_time=(
                    parse_notification_time(stored_time) if stored_time else DEFAULT_NOTIFICATION_TIME
                ),
                timezone=data.get("timezone") or DEFAULT_TIMEZONE,
                reminder_intervals=(
                    normalize_intervals(intervals)
                    if intervals is not None
                    else list(DEFAULT_REMINDER_INTERVALS)
                ),
                advance_notifications_enabled=data.get("advance_notifications_enabled", True),
                due_date_notifications_enabled=data.get("due_date_notifications_enabled", True),
                overdue_notifications_enabled=data.get("overdue_notifications_enabled", True),
                escalation_enabled=data.get("escalation_enabled", False),
                escalation_days=escalation_days,
                updated_at=data.get("updated_at") or _utcnow(),
            )
        except (KeyError, TypeError, ValueError) as exc:
            raise DataContractError(
                f"Malformed notification preferences for {data.get('user_id')!r}: {exc}"
            ) from exc


@dataclass(frozen=True)
class NotificationEvent:
    """A reminder that should be delivered at ``scheduled_for``."""

    task_id: str
    category: NotificationCategory
    scheduled_for: datetime
    task_label: str = ""
    aquarium_id: Optional[str] = None
    days_until_due: Optional[int] = None
    interval_days: Optional[int] = None
