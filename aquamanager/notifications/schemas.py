"""
AQUAMANAGER Core API - Notification Schemas

Pydantic models for reminder preferences, previews and delivery results.
"""

from datetime import datetime
from typing import List, Optional

from pydantic import BaseModel, Field, field_validator

from aquamanager.maintenance.exceptions import InvalidTimezone
from aquamanager.notifications.enums import NotificationCategory
from aquamanager.notifications.models import normalize_intervals, parse_notification_time
from aquamanager.timeutils import resolve_timezone


class NotificationPreferencesUpdateRequest(BaseModel):
    """Request body for updating reminder preferences. Omitted fields keep their current value."""

    email_enabled: Optional[bool] = Field(default=None, description="Send reminder emails")
    email: Optional[str] = Field(default=None, max_length=320, description="Address reminders are sent to")
    notification_time: Optional[str] = Field(default=None, description="Local send time, HH:MM")
    timezone: Optional[str] = Field(default=None, description="IANA timezone")
    reminder_intervals: Optional[List[int]] = Field(
        default=None, description="Days before the due date to send advance reminders"
    )
    advance_notifications_enabled: Optional[bool] = Field(default=None, description="Send advance reminders")
    due_date_notifications_enabled: Optional[bool] = Field(default=None, description="Send due-today reminders")
    overdue_notifications_enabled: Optional[bool] = Field(default=None, description="Send overdue reminders")
    escalation_enabled: Optional[bool] = Field(default=None, description="Escalate long-overdue tasks")
    escalation_days: Optional[int] = Field(default=None, gt=0, description="Days overdue before escalating")

    @field_validator("notification_time")
    @classmethod
    def validate_notification_time(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        parsed = parse_notification_time(value)
        return parsed.strftime("%H:%M")

    @field_validator("timezone")
    @classmethod
    def validate_timezone(cls, value: Optional[str]) -> Optional[str]:
        if value is None:
            return value
        try:
            resolve_timezone(value)
        except InvalidTimezone as exc:
            raise ValueError(str(exc))
        return value

    @field_validator("reminder_intervals")
    @classmethod
    def validate_reminder_intervals(cls, value: Optional[List[int]]) -> Optional[List[int]]:
        if value is None:
            return value
        return normalize_intervals(value)


class NotificationPreferencesResponse(BaseModel):
    """Current reminder preferences for the authenticated user."""

    email_enabled: bool
    email: Optional[str] = None
    notification_time: str = Field(description="Local send time, HH:MM")
    timezone: str
    reminder_intervals: List[int]
    advance_notifications_enabled: bool
    due_date_notifications_enabled: bool
    overdue_notifications_enabled: bool
    escalation_enabled: bool
    escalation_days: int


class NotificationEventResponse(BaseModel):
    """A reminder that would fire today."""

    task_id: str = Field(description="Task ID")
    task: str = Field(description="Task label")
    aquarium_id: Optional[str] = Field(default=None, description="Aquarium ID")
    category: NotificationCategory = Field(description="Reminder kind")
    scheduled_for: datetime = Field(description="Absolute send time")
    days_until_due: Optional[int] = Field(default=None, description="Whole days until due")
    interval_days: Optional[int] = Field(default=None, description="Matching advance interval")


class NotificationPreviewResponse(BaseModel):
    """Reminders computed for today without sending anything."""

    generated_at: datetime
    timezone: str
    events: List[NotificationEventResponse]


class DispatchResponse(BaseModel):
    """Outcome of a reminder delivery run."""

    users_checked: int = 0
    emails_sent: int = 0
    events_sent: int = 0
    events_already_sent: int = 0
    failures: int = 0


class EmailSendResult(BaseModel):
    """Result of a Resend API send call."""

    ok: bool = Field(description="Whether the email was accepted")
    id: Optional[str] = Field(default=None, description="Provider message ID")
    error: Optional[str] = Field(default=None, description="Failure description")
