"""
AQUAMANAGER Core API - Maintenance Enums

Enums for maintenance task fields and derived classification values.
"""

from enum import Enum
from typing import Optional


class TaskCategory(str, Enum):
    """Explicit task kind, set when the task is created."""
    WATER_TEST = "water_test"
    WATER_CHANGE = "water_change"
    FILTER_REPLACEMENT = "filter_replacement"
    GENERAL = "general"


class Frequency(str, Enum):
    """Recognized recurrence cadences. Anything else is a custom, non-recurring label."""
    DAILY = "daily"
    WEEKLY = "weekly"
    EVERY_2_WEEKS = "every 2 weeks"
    MONTHLY = "monthly"
    EVERY_2_MONTHS = "every 2 months"
    EVERY_3_MONTHS = "every 3 months"
    EVERY_6_MONTHS = "every 6 months"
    ANNUALLY = "annually"

    @classmethod
    def parse(cls, value: Optional[str]) -> Optional["Frequency"]:
        """Return the matching cadence, or None for absent and custom values."""
        if value is None:
            return None
        token = " ".join(str(value).split()).lower()
        try:
            return cls(token)
        except ValueError:
            return None


class TaskState(str, Enum):
    """
    Derived lifecycle state computed from due date and current time.

    - COMPLETED: completed_date is set
    - OVERDUE: due instant is in the past
    - DUE_SOON: due within the due-soon window (3 days by default)
    - PENDING: everything else, including tasks without a due date
    """
    COMPLETED = "completed"
    OVERDUE = "overdue"
    DUE_SOON = "due_soon"
    PENDING = "pending"


class TaskPriority(str, Enum):
    """Derived priority level."""
    CRITICAL = "critical"
    HIGH = "high"
    MEDIUM = "medium"
    LOW = "low"


class StateFilter(str, Enum):
    """Display filters for task lists."""
    ALL = "all"
    OVERDUE = "overdue"
    DUE_SOON = "due-soon"
    PENDING = "pending"
    COMPLETED = "completed"


# Display order: lower sorts first
STATE_ORDER = {
    TaskState.OVERDUE: 0,
    TaskState.DUE_SOON: 1,
    TaskState.PENDING: 2,
    TaskState.COMPLETED: 3,
}
