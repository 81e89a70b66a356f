"""
AQUAMANAGER Core API - Presentation Aggregator

Ordering, filtering and counting of classified tasks for display.
"""

from dataclasses import dataclass
from typing import Iterable, List, Tuple

from aquamanager.maintenance.classification import ClassifiedTask
from aquamanager.maintenance.enums import StateFilter, TaskState, STATE_ORDER


@dataclass(frozen=True)
class MaintenanceSummary:
    """Task counts per display state."""

    completed: int
    overdue: int
    due_soon: int
    pending: int
    total: int


def _display_key(item: ClassifiedTask) -> Tuple[int, int, float]:
    if item.is_completed:
        # Constant key keeps completed tasks in their original relative order
        return (STATE_ORDER[TaskState.COMPLETED], 0, 0.0)
    if item.due_at is None:
        return (item.state_rank, 1, 0.0)
    return (item.state_rank, 0, item.due_at.timestamp())


def sort_for_display(classified: Iterable[ClassifiedTask]) -> List[ClassifiedTask]:
    """
    Order tasks for display.

    Overdue, then due soon, then pending, each by ascending due date with
    undated tasks last; completed tasks go at the end in their original order.
    """
    return sorted(classified, key=_display_key)


def filter_by_state(
    classified: Iterable[ClassifiedTask],
    state_filter: StateFilter = StateFilter.ALL,
) -> List[ClassifiedTask]:
    """Filter tasks for a display tab. ``pending`` means every task not yet completed."""
    if state_filter == StateFilter.ALL:
        return list(classified)
    if state_filter == StateFilter.COMPLETED:
        return [c for c in classified if c.is_completed]
    if state_filter == StateFilter.PENDING:
        return [c for c in classified if not c.is_completed]
    if state_filter == StateFilter.OVERDUE:
        return [c for c in classified if c.state == TaskState.OVERDUE]
    return [c for c in classified if c.state == TaskState.DUE_SOON]


def summarize(classified: Iterable[ClassifiedTask]) -> MaintenanceSummary:
    """Count tasks per state."""
    counts = {state: 0 for state in TaskState}
    total = 0
    for item in classified:
        counts[item.state] += 1
        total += 1
    return MaintenanceSummary(
        completed=counts[TaskState.COMPLETED],
        overdue=counts[TaskState.OVERDUE],
        due_soon=counts[TaskState.DUE_SOON],
        pending=counts[TaskState.PENDING],
        total=total,
    )
