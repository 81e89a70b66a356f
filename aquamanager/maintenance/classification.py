"""
AQUAMANAGER Core API - Classification Engine

Derives lifecycle state and priority for a maintenance task at a given instant.
This is a deterministic, side-effect free computation: callers inject ``now``
and re-classify on every read.
"""

import logging
from dataclasses import dataclass
from datetime import datetime, tzinfo
from typing import Iterable, List, Optional, Tuple, Union

from aquamanager.maintenance.enums import (
    Frequency,
    TaskPriority,
    TaskState,
    STATE_ORDER,
)
from aquamanager.maintenance.exceptions import DataContractError, MaintenanceError
from aquamanager.maintenance.models import MaintenanceTask
from aquamanager.timeutils import coerce_instant, ensure_aware, floor_days, resolve_timezone

logger = logging.getLogger(__name__)

DUE_SOON_DAYS = 3


@dataclass(frozen=True)
class ClassifiedTask:
    """A task together with its derived state. Never persisted."""

    task: MaintenanceTask
    state: TaskState
    priority: TaskPriority
    days_until_due: Optional[int] = None
    days_overdue: Optional[int] = None
    due_at: Optional[datetime] = None
    warnings: Tuple[str, ...] = ()

    @property
    def is_completed(self) -> bool:
        return self.state == TaskState.COMPLETED

    @property
    def state_rank(self) -> int:
        return STATE_ORDER[self.state]


def _priority_for(state: TaskState, frequency: Optional[Frequency]) -> TaskPriority:
    if state == TaskState.OVERDUE:
        return TaskPriority.CRITICAL
    if state == TaskState.DUE_SOON or frequency == Frequency.DAILY:
        return TaskPriority.HIGH
    if frequency == Frequency.WEEKLY:
        return TaskPriority.MEDIUM
    return TaskPriority.LOW


def _classify(
    task: MaintenanceTask,
    now: datetime,
    zone: tzinfo,
    due_soon_days: int,
) -> ClassifiedTask:
    if task.is_completed:
        _, warning = coerce_instant(task.completed_date, zone)
        warnings = (warning,) if warning else ()
        if warning:
            logger.warning(f"Task {task.id}: {warning} in completed_date")
        return ClassifiedTask(
            task=task,
            state=TaskState.COMPLETED,
            priority=TaskPriority.LOW,
            warnings=warnings,
        )

    due_at, warning = coerce_instant(task.due_date, zone)
    if due_at is None:
        warnings = (warning,) if warning else ()
        if warning:
            logger.warning(f"Task {task.id}: {warning} in due_date, treating as undated")
        return ClassifiedTask(
            task=task,
            state=TaskState.PENDING,
            priority=TaskPriority.LOW,
            warnings=warnings,
        )

    delta = floor_days(due_at - ensure_aware(now, zone))

    if delta < 0:
        state = TaskState.OVERDUE
    elif delta < due_soon_days:
        state = TaskState.DUE_SOON
    else:
        state = TaskState.PENDING

    return ClassifiedTask(
        task=task,
        state=state,
        priority=_priority_for(state, Frequency.parse(task.frequency)),
        days_until_due=delta,
        days_overdue=-delta if delta < 0 else 0,
        due_at=due_at,
    )


def classify(
    task: MaintenanceTask,
    now: datetime,
    tz: Union[str, tzinfo, None] = None,
    due_soon_days: int = DUE_SOON_DAYS,
) -> ClassifiedTask:
    """
    Classify a single task.

    Args:
        task: Stored maintenance task
        now: Current instant (injected, never read from a global clock)
        tz: Viewer timezone used to anchor date-only due dates.
            Defaults to ``now``'s tzinfo, then UTC.
        due_soon_days: Width of the due-soon window in days

    Returns:
        ClassifiedTask with state, priority and day counts

    Raises:
        DataContractError: the record does not have the expected shape
    """
    zone = resolve_timezone(tz if tz is not None else now.tzinfo)
    try:
        return _classify(task, now, zone, due_soon_days)
    except MaintenanceError:
        raise
    except (AttributeError, TypeError, ValueError, KeyError) as exc:
        raise DataContractError(
            f"Cannot classify task {getattr(task, 'id', None)!r}: {exc}"
        ) from exc


def classify_all(
    tasks: Iterable[MaintenanceTask],
    now: datetime,
    tz: Union[str, tzinfo, None] = None,
    due_soon_days: int = DUE_SOON_DAYS,
) -> List[ClassifiedTask]:
    """Classify every task against the same instant."""
    return [classify(task, now, tz, due_soon_days) for task in tasks]
