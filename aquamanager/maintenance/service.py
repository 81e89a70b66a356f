"""
AQUAMANAGER Core API - Maintenance Service

Business logic for maintenance tasks: wires the store to the classification,
recurrence and presentation engines.

Completion policy: the completed record keeps its due date and gains a
completed_date; when the task recurs, the successor is inserted as a new
record so completed history is never overwritten.
"""

import logging
from datetime import datetime, timezone
from typing import Callable, List, Optional, Tuple

from aquamanager.config import settings
from aquamanager.maintenance.classification import ClassifiedTask, classify, classify_all
from aquamanager.maintenance.enums import Frequency, StateFilter, TaskCategory
from aquamanager.maintenance.exceptions import (
    InvalidCompletionDetails,
    TaskAlreadyCompleted,
    TaskNotFound,
)
from aquamanager.maintenance.models import MaintenanceTask
from aquamanager.maintenance.presentation import filter_by_state, sort_for_display, summarize
from aquamanager.maintenance.recurrence import (
    CompleteEvent,
    SkipEvent,
    advance,
    compute_next_occurrence,
)
from aquamanager.maintenance.repository import TaskRepositoryInterface
from aquamanager.maintenance.schemas import (
    CompleteTaskRequest,
    CompleteTaskResponse,
    CompletionDetails,
    MaintenanceStatsResponse,
    MaintenanceTaskCreateRequest,
    MaintenanceTaskResponse,
    MaintenanceTaskUpdateRequest,
    SkipTaskRequest,
)
from aquamanager.timeutils import coerce_instant, ensure_aware, resolve_timezone

logger = logging.getLogger(__name__)


# (label, category, frequency, notes) for the default schedule bootstrap
DEFAULT_SCHEDULE: Tuple[Tuple[str, TaskCategory, Frequency, Optional[str]], ...] = (
    ("Water change (20-25%)", TaskCategory.WATER_CHANGE, Frequency.WEEKLY, None),
    ("Clean glass", TaskCategory.GENERAL, Frequency.WEEKLY, None),
    ("Vacuum substrate", TaskCategory.GENERAL, Frequency.EVERY_2_WEEKS, None),
    ("Inspect filter media", TaskCategory.GENERAL, Frequency.MONTHLY, "Rinse in tank water, do not replace all media at once"),
    ("Test water parameters", TaskCategory.WATER_TEST, Frequency.WEEKLY, None),
    ("Check equipment", TaskCategory.GENERAL, Frequency.MONTHLY, "Heater, lights, pumps and tubing"),
)

# Which completion details each category accepts
_ALLOWED_DETAILS = {
    TaskCategory.WATER_TEST: {"water_parameters"},
    TaskCategory.WATER_CHANGE: {"volume_changed"},
    TaskCategory.FILTER_REPLACEMENT: {"filters_remaining"},
    TaskCategory.GENERAL: set(),
}


class MaintenanceService:
    """Service layer for maintenance task business logic."""

    def __init__(
        self,
        repository: TaskRepositoryInterface,
        clock: Optional[Callable[[], datetime]] = None,
        due_soon_days: Optional[int] = None,
    ):
        """
        Initialize the maintenance service.

        Args:
            repository: Task repository implementation
            clock: Optional clock function for testing (returns current datetime)
            due_soon_days: Due-soon window, defaults to settings.DUE_SOON_DAYS
        """
        self.repository = repository
        self._clock = clock or (lambda: datetime.now(timezone.utc))
        self.due_soon_days = due_soon_days if due_soon_days is not None else settings.DUE_SOON_DAYS

    def _now(self) -> datetime:
        """Get current time using the configured clock."""
        return self._clock()

    def _classify(self, task: MaintenanceTask, tz: Optional[str]) -> ClassifiedTask:
        return classify(task, self._now(), tz or "UTC", self.due_soon_days)

    @staticmethod
    def to_response(classified: ClassifiedTask, tz: Optional[str] = None) -> MaintenanceTaskResponse:
        """Convert a ClassifiedTask to the API response model."""
        task = classified.task
        zone = resolve_timezone(tz)
        completed_date, _ = coerce_instant(task.completed_date, zone)
        due_date = classified.due_at
        if due_date is None:
            due_date, _ = coerce_instant(task.due_date, zone)
        return MaintenanceTaskResponse(
            id=task.id,
            aquarium_id=task.aquarium_id,
            owner_id=task.owner_id,
            equipment_id=task.equipment_id,
            task=task.task,
            category=task.category,
            due_date=due_date,
            completed_date=completed_date,
            frequency=task.frequency,
            notes=task.notes,
            skipped_at=task.skipped_at,
            skip_reason=task.skip_reason,
            completion_details=task.completion_details,
            state=classified.state,
            priority=classified.priority,
            days_until_due=classified.days_until_due,
            days_overdue=classified.days_overdue,
            warnings=list(classified.warnings),
            created_at=task.created_at,
            updated_at=task.updated_at,
        )

    def _task_to_response(self, task: MaintenanceTask, tz: Optional[str] = None) -> MaintenanceTaskResponse:
        return self.to_response(self._classify(task, tz), tz)

    async def _get_or_raise(self, task_id: str, owner_id: str) -> MaintenanceTask:
        task = await self.repository.get_by_id(task_id, owner_id)
        if task is None:
            raise TaskNotFound(f"Task {task_id} not found")
        return task

    async def create_task(
        self,
        aquarium_id: str,
        owner_id: str,
        request: MaintenanceTaskCreateRequest,
    ) -> MaintenanceTaskResponse:
        """Create a new task in the owner's aquarium."""
        task = MaintenanceTask.create(
            aquarium_id=aquarium_id,
            owner_id=owner_id,
            task=request.task,
            category=request.category,
            equipment_id=request.equipment_id,
            due_date=ensure_aware(request.due_date) if request.due_date else None,
            frequency=request.frequency,
            notes=request.notes,
        )
        await self.repository.create(task)
        logger.info(f"Created maintenance task {task.id} in aquarium {aquarium_id}")
        return self._task_to_response(task)

    async def get_task(
        self,
        task_id: str,
        owner_id: str,
        tz: Optional[str] = None,
    ) -> Optional[MaintenanceTaskResponse]:
        """Get a task by ID, scoped to owner."""
        task = await self.repository.get_by_id(task_id, owner_id)
        if task is None:
            return None
        return self._task_to_response(task, tz)

    async def list_tasks(
        self,
        aquarium_id: str,
        owner_id: str,
        tz: Optional[str] = None,
        state_filter: StateFilter = StateFilter.ALL,
    ) -> List[MaintenanceTaskResponse]:
        """List an aquarium's tasks, classified in the viewer's timezone and in display order."""
        tasks = await self.repository.list_by_aquarium(aquarium_id, owner_id)
        classified = classify_all(tasks, self._now(), tz or "UTC", self.due_soon_days)
        visible = sort_for_display(filter_by_state(classified, state_filter))
        return [self.to_response(item, tz) for item in visible]

    async def get_stats(
        self,
        aquarium_id: str,
        owner_id: str,
        tz: Optional[str] = None,
    ) -> MaintenanceStatsResponse:
        """Count an aquarium's tasks per state."""
        tasks = await self.repository.list_by_aquarium(aquarium_id, owner_id)
        summary = summarize(classify_all(tasks, self._now(), tz or "UTC", self.due_soon_days))
        return MaintenanceStatsResponse(
            completed=summary.completed,
            overdue=summary.overdue,
            due_soon=summary.due_soon,
            pending=summary.pending,
            total=summary.total,
        )

    async def update_task(
        self,
        task_id: str,
        owner_id: str,
        request: MaintenanceTaskUpdateRequest,
    ) -> Optional[MaintenanceTaskResponse]:
        """
        Update a task, scoped to owner. Only provided fields change.

        Raises:
            TaskAlreadyCompleted: due_date of a completed task is history
        """
        updates = request.model_dump(exclude_unset=True)
        if "task" in updates and updates["task"] is None:
            del updates["task"]
        if "category" in updates:
            category = updates["category"] or TaskCategory.GENERAL
            updates["category"] = TaskCategory(category)
        if updates.get("due_date") is not None:
            updates["due_date"] = ensure_aware(updates["due_date"])

        existing = await self.repository.get_by_id(task_id, owner_id)
        if existing is None:
            return None
        if existing.is_completed and "due_date" in updates:
            raise TaskAlreadyCompleted(f"Task {task_id} is completed; its due date cannot change")

        if not updates:
            return self._task_to_response(existing)

        task = await self.repository.update(task_id, owner_id, updates)
        if task is None:
            return None
        return self._task_to_response(task)

    async def delete_task(self, task_id: str, owner_id: str) -> bool:
        """Delete a task, scoped to owner. Deleted tasks have no successor."""
        deleted = await self.repository.delete(task_id, owner_id)
        if deleted:
            logger.info(f"Deleted maintenance task {task_id}")
        return deleted

    @staticmethod
    def _validate_details(
        category: TaskCategory,
        details: Optional[CompletionDetails],
    ) -> Optional[dict]:
        if details is None:
            return None
        provided = details.model_dump(exclude_none=True)
        unexpected = set(provided) - _ALLOWED_DETAILS[category]
        if unexpected:
            raise InvalidCompletionDetails(
                f"{', '.join(sorted(unexpected))} not accepted for {category.value} tasks"
            )
        return provided or None

    async def complete_task(
        self,
        task_id: str,
        owner_id: str,
        request: CompleteTaskRequest,
    ) -> CompleteTaskResponse:
        """
        Mark a task completed and schedule its successor when it recurs.

        Raises:
            TaskNotFound: task does not exist for this owner
            TaskAlreadyCompleted: completion is terminal
            InvalidCompletionDetails: details do not fit the task category
        """
        task = await self._get_or_raise(task_id, owner_id)
        if task.is_completed:
            raise TaskAlreadyCompleted(f"Task {task_id} is already completed")

        completed_at = ensure_aware(request.completed_at) if request.completed_at else self._now()
        details = self._validate_details(task.category, request.details)
        if request.notes:
            details = {**(details or {}), "notes": request.notes}

        next_occurrence = compute_next_occurrence(task, CompleteEvent(completed_at=completed_at))

        completed = await self.repository.update(
            task_id,
            owner_id,
            {"completed_date": completed_at, "completion_details": details},
        )
        if completed is None:
            raise TaskNotFound(f"Task {task_id} not found")

        successor = None
        if next_occurrence is not None:
            successor = MaintenanceTask.create(
                aquarium_id=task.aquarium_id,
                owner_id=task.owner_id,
                task=task.task,
                category=task.category,
                equipment_id=task.equipment_id,
                due_date=next_occurrence.due_date,
                frequency=task.frequency,
                notes=task.notes,
            )
            await self.repository.create(successor)
            logger.info(
                f"Completed task {task_id}; next occurrence {successor.id} due {next_occurrence.due_date.isoformat()}"
            )
        elif task.frequency:
            logger.info(f"Completed task {task_id}; frequency {task.frequency!r} has no defined cadence")
        else:
            logger.info(f"Completed one-off task {task_id}")

        return CompleteTaskResponse(
            completed=self._task_to_response(completed),
            next_task=self._task_to_response(successor) if successor else None,
            recurrence="scheduled" if successor else "none",
        )

    async def skip_task(
        self,
        task_id: str,
        owner_id: str,
        request: SkipTaskRequest,
    ) -> MaintenanceTaskResponse:
        """
        Move a task to a user-chosen due date without completing it.

        Raises:
            TaskNotFound: task does not exist for this owner
            TaskAlreadyCompleted: completed tasks cannot be skipped
            InvalidReschedule: new date is not after the skip time
        """
        task = await self._get_or_raise(task_id, owner_id)
        if task.is_completed:
            raise TaskAlreadyCompleted(f"Task {task_id} is already completed")

        skipped_at = ensure_aware(request.skipped_at) if request.skipped_at else self._now()
        occurrence = compute_next_occurrence(
            task,
            SkipEvent(
                skipped_at=skipped_at,
                requested_new_due_date=request.new_due_date,
                reason=request.reason,
            ),
        )

        updated = await self.repository.update(
            task_id,
            owner_id,
            {
                "due_date": occurrence.due_date,
                "skipped_at": skipped_at,
                "skip_reason": request.reason,
            },
        )
        if updated is None:
            raise TaskNotFound(f"Task {task_id} not found")
        logger.info(f"Skipped task {task_id} to {occurrence.due_date.isoformat()}")
        return self._task_to_response(updated)

    async def setup_default_schedule(
        self,
        aquarium_id: str,
        owner_id: str,
    ) -> List[MaintenanceTaskResponse]:
        """Create the default maintenance schedule, each task first due one cadence from now."""
        now = self._now()
        created = []
        for label, category, frequency, notes in DEFAULT_SCHEDULE:
            task = MaintenanceTask.create(
                aquarium_id=aquarium_id,
                owner_id=owner_id,
                task=label,
                category=category,
                due_date=advance(now, frequency.value),
                frequency=frequency.value,
                notes=notes,
            )
            await self.repository.create(task)
            created.append(task)
        logger.info(f"Created default maintenance schedule ({len(created)} tasks) for aquarium {aquarium_id}")
        classified = classify_all(created, now, "UTC", self.due_soon_days)
        return [self.to_response(item) for item in sort_for_display(classified)]
