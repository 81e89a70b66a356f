from enum import Enum


class NotificationCategory(str, Enum):
    """Kinds of maintenance reminders."""
    ADVANCE = "advance"
    DUE_TODAY = "due_today"
    OVERDUE = "overdue"
    ESCALATION = "escalation"
