"""
AQUAMANAGER Core API - Recurrence Engine

Computes the next due date after a task is completed or skipped.

Completion follows the task's cadence; skip takes the date the user picked.
The two paths are kept separate because they mean different things: skip is
"not done, try later", completion is "done, schedule the next cycle".
"""

from dataclasses import dataclass
from datetime import datetime
from typing import Optional, Union

from dateutil.relativedelta import relativedelta

from aquamanager.maintenance.enums import Frequency
from aquamanager.maintenance.exceptions import (
    DataContractError,
    InvalidReschedule,
    MaintenanceError,
)
from aquamanager.maintenance.models import MaintenanceTask
from aquamanager.timeutils import ensure_aware


# relativedelta clamps month/year arithmetic to the last valid day (Jan 31 + 1 month -> Feb 28/29)
FREQUENCY_OFFSETS = {
    Frequency.DAILY: relativedelta(days=+1),
    Frequency.WEEKLY: relativedelta(days=+7),
    Frequency.EVERY_2_WEEKS: relativedelta(days=+14),
    Frequency.MONTHLY: relativedelta(months=+1),
    Frequency.EVERY_2_MONTHS: relativedelta(months=+2),
    Frequency.EVERY_3_MONTHS: relativedelta(months=+3),
    Frequency.EVERY_6_MONTHS: relativedelta(months=+6),
    Frequency.ANNUALLY: relativedelta(years=+1),
}


@dataclass(frozen=True)
class CompleteEvent:
    """Task was done at ``completed_at``."""

    completed_at: datetime


@dataclass(frozen=True)
class SkipEvent:
    """Task was skipped at ``skipped_at`` and should be due again at ``requested_new_due_date``."""

    skipped_at: datetime
    requested_new_due_date: datetime
    reason: Optional[str] = None


@dataclass(frozen=True)
class NextOccurrence:
    """Due date for the next cycle of a task."""

    due_date: datetime


LifecycleEvent = Union[CompleteEvent, SkipEvent]


def cadence_offset(frequency: Optional[str]) -> Optional[relativedelta]:
    """Offset for a frequency string, or None for one-off and custom cadences."""
    parsed = Frequency.parse(frequency)
    if parsed is None:
        return None
    return FREQUENCY_OFFSETS[parsed]


def advance(start: datetime, frequency: Optional[str]) -> Optional[datetime]:
    """Add one cadence step to ``start``; None when the frequency has no defined step."""
    offset = cadence_offset(frequency)
    if offset is None:
        return None
    return ensure_aware(start) + offset


def validate_reschedule(skipped_at: datetime, requested_new_due_date: datetime) -> datetime:
    """Return the requested date if it is strictly after the skip instant."""
    skipped_at = ensure_aware(skipped_at)
    requested = ensure_aware(requested_new_due_date)
    if requested <= skipped_at:
        raise InvalidReschedule(
            f"New due date {requested.isoformat()} must be after {skipped_at.isoformat()}"
        )
    return requested


def compute_next_occurrence(
    task: MaintenanceTask,
    event: LifecycleEvent,
) -> Optional[NextOccurrence]:
    """
    Compute the next due date for ``task`` after ``event``.

    The task is never mutated; callers persist the returned value.

    Returns:
        NextOccurrence, or None when a completed task has no recognized cadence

    Raises:
        InvalidReschedule: skip date is not after the skip instant
        DataContractError: the task or event does not have the expected shape
    """
    try:
        if isinstance(event, SkipEvent):
            return NextOccurrence(
                due_date=validate_reschedule(event.skipped_at, event.requested_new_due_date)
            )

        if isinstance(event, CompleteEvent):
            next_due = advance(event.completed_at, task.frequency)
            if next_due is None:
                return None
            return NextOccurrence(due_date=next_due)
    except MaintenanceError:
        raise
    except (AttributeError, TypeError, ValueError) as exc:
        raise DataContractError(
            f"Cannot compute next occurrence for task {getattr(task, 'id', None)!r}: {exc}"
        ) from exc

    raise DataContractError(f"Unsupported lifecycle event: {type(event).__name__}")
