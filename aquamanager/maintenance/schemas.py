"""
AQUAMANAGER Core API - Maintenance Schemas

Pydantic models for maintenance API requests and responses.
"""

from datetime import datetime
from typing import Any, Dict, List, Literal, Optional

from pydantic import BaseModel, Field

from aquamanager.maintenance.enums import TaskCategory, TaskPriority, TaskState


class MaintenanceTaskCreateRequest(BaseModel):
    """Request model for creating a maintenance task."""

    task: str = Field(min_length=1, max_length=200, description="Task label shown to the user")
    category: TaskCategory = Field(default=TaskCategory.GENERAL, description="Task kind")
    equipment_id: Optional[str] = Field(default=None, description="Related equipment ID")
    due_date: Optional[datetime] = Field(default=None, description="When the task is due")
    frequency: Optional[str] = Field(
        default=None,
        max_length=100,
        description="Cadence such as 'weekly' or 'monthly'; custom text does not recur",
    )
    notes: Optional[str] = Field(default=None, max_length=5000, description="Task notes")


class MaintenanceTaskUpdateRequest(BaseModel):
    """Request model for updating a maintenance task."""

    task: Optional[str] = Field(default=None, min_length=1, max_length=200, description="Task label")
    category: Optional[TaskCategory] = Field(default=None, description="Task kind")
    equipment_id: Optional[str] = Field(default=None, description="Related equipment ID")
    due_date: Optional[datetime] = Field(default=None, description="When the task is due")
    frequency: Optional[str] = Field(default=None, max_length=100, description="Cadence")
    notes: Optional[str] = Field(default=None, max_length=5000, description="Task notes")


class WaterParameters(BaseModel):
    """Water test results recorded when completing a water test."""

    temperature: Optional[float] = Field(default=None, description="Temperature (F)")
    ph: Optional[float] = Field(default=None, ge=0, le=14, description="pH")
    ammonia: Optional[float] = Field(default=None, ge=0, description="Ammonia (ppm)")
    nitrite: Optional[float] = Field(default=None, ge=0, description="Nitrite (ppm)")
    nitrate: Optional[float] = Field(default=None, ge=0, description="Nitrate (ppm)")


class CompletionDetails(BaseModel):
    """Category-specific data recorded on completion."""

    water_parameters: Optional[WaterParameters] = Field(default=None, description="Water test results")
    volume_changed: Optional[float] = Field(default=None, ge=0, description="Volume changed (gallons)")
    filters_remaining: Optional[int] = Field(default=None, ge=0, description="Spare filters left")


class CompleteTaskRequest(BaseModel):
    """Request model for completing a task."""

    completed_at: Optional[datetime] = Field(default=None, description="Completion time, defaults to now")
    notes: Optional[str] = Field(default=None, max_length=5000, description="Completion notes")
    details: Optional[CompletionDetails] = Field(default=None, description="Category-specific details")


class SkipTaskRequest(BaseModel):
    """Request model for skipping a task to a later date."""

    new_due_date: datetime = Field(description="New due date, must be after the skip time")
    reason: Optional[str] = Field(default=None, max_length=500, description="Why the task was skipped")
    skipped_at: Optional[datetime] = Field(default=None, description="Skip time, defaults to now")


class MaintenanceTaskResponse(BaseModel):
    """Response model for a single classified task."""

    id: str = Field(description="Task ID")
    aquarium_id: str = Field(description="Aquarium ID")
    owner_id: str = Field(description="Owner user ID")
    equipment_id: Optional[str] = Field(default=None, description="Related equipment ID")
    task: str = Field(description="Task label")
    category: TaskCategory = Field(description="Task kind")
    due_date: Optional[datetime] = Field(default=None, description="Due date")
    completed_date: Optional[datetime] = Field(default=None, description="Completion date")
    frequency: Optional[str] = Field(default=None, description="Cadence")
    notes: Optional[str] = Field(default=None, description="Task notes")
    skipped_at: Optional[datetime] = Field(default=None, description="Last skip time")
    skip_reason: Optional[str] = Field(default=None, description="Last skip reason")
    completion_details: Optional[Dict[str, Any]] = Field(default=None, description="Completion details")
    state: TaskState = Field(description="Derived lifecycle state")
    priority: TaskPriority = Field(description="Derived priority")
    days_until_due: Optional[int] = Field(default=None, description="Whole days until due, negative when overdue")
    days_overdue: Optional[int] = Field(default=None, description="Whole days overdue")
    warnings: List[str] = Field(default_factory=list, description="Data-quality warnings")
    created_at: datetime = Field(description="Creation timestamp")
    updated_at: datetime = Field(description="Last update timestamp")


class MaintenanceTaskListResponse(BaseModel):
    """Response model for a list of tasks."""

    tasks: List[MaintenanceTaskResponse] = Field(description="Tasks in display order")
    total: int = Field(description="Number of tasks in the list")


class CompleteTaskResponse(BaseModel):
    """Response model for task completion."""

    completed: MaintenanceTaskResponse = Field(description="The completed task")
    next_task: Optional[MaintenanceTaskResponse] = Field(default=None, description="Successor task, if any")
    recurrence: Literal["scheduled", "none"] = Field(description="Whether a successor was scheduled")


class MaintenanceStatsResponse(BaseModel):
    """Task counts per state for an aquarium."""

    completed: int
    overdue: int
    due_soon: int
    pending: int
    total: int


class TaskDeleteResponse(BaseModel):
    """Response model for task deletion."""

    message: str = Field(description="Success message")
    id: str = Field(description="Deleted task ID")
