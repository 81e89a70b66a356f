"""
AQUAMANAGER Core API - Maintenance Router

Endpoints for maintenance task lifecycle management.
All endpoints are JWT-protected and user-scoped.
"""

from datetime import datetime, timezone
from typing import Annotated, Callable, Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from aquamanager.auth.dependencies import CurrentUser
from aquamanager.database import get_database
from aquamanager.maintenance.enums import StateFilter
from aquamanager.maintenance.exceptions import (
    InvalidCompletionDetails,
    InvalidReschedule,
    InvalidTimezone,
    TaskAlreadyCompleted,
    TaskNotFound,
)
from aquamanager.maintenance.repository import TaskRepository, TaskRepositoryInterface
from aquamanager.maintenance.schemas import (
    CompleteTaskRequest,
    CompleteTaskResponse,
    MaintenanceStatsResponse,
    MaintenanceTaskCreateRequest,
    MaintenanceTaskListResponse,
    MaintenanceTaskResponse,
    MaintenanceTaskUpdateRequest,
    SkipTaskRequest,
    TaskDeleteResponse,
)
from aquamanager.maintenance.service import MaintenanceService
from aquamanager.timeutils import resolve_timezone


router = APIRouter(tags=["Maintenance"])


async def get_task_repository(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)]
) -> TaskRepositoryInterface:
    """Dependency to get task repository instance."""
    return TaskRepository(db)


def get_clock() -> Callable[[], datetime]:
    """Dependency providing the current-time function (overridden in tests)."""
    return lambda: datetime.now(timezone.utc)


async def get_maintenance_service(
    repository: Annotated[TaskRepositoryInterface, Depends(get_task_repository)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
) -> MaintenanceService:
    """Dependency to get maintenance service instance."""
    return MaintenanceService(repository, clock=clock)


def viewer_timezone(
    tz: str = Query(default="UTC", description="Viewer IANA timezone used to evaluate 'today'"),
) -> str:
    """Validate the tz query parameter."""
    try:
        resolve_timezone(tz)
    except InvalidTimezone as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail=str(exc),
        )
    return tz


def _not_found() -> HTTPException:
    return HTTPException(
        status_code=status.HTTP_404_NOT_FOUND,
        detail="Task not found",
    )


@router.get(
    "/aquariums/{aquarium_id}/maintenance",
    response_model=MaintenanceTaskListResponse,
    summary="List an aquarium's maintenance tasks",
)
async def list_tasks(
    aquarium_id: str,
    current_user: CurrentUser,
    service: Annotated[MaintenanceService, Depends(get_maintenance_service)],
    tz: Annotated[str, Depends(viewer_timezone)],
    state: StateFilter = Query(default=StateFilter.ALL, description="Display filter"),
) -> MaintenanceTaskListResponse:
    """
    List tasks classified at request time.

    Order: overdue, due soon, pending (each by due date), then completed.
    """
    tasks = await service.list_tasks(aquarium_id, current_user.id, tz=tz, state_filter=state)
    return MaintenanceTaskListResponse(tasks=tasks, total=len(tasks))


@router.post(
    "/aquariums/{aquarium_id}/maintenance",
    response_model=MaintenanceTaskResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create a maintenance task",
)
async def create_task(
    aquarium_id: str,
    request: MaintenanceTaskCreateRequest,
    current_user: CurrentUser,
    service: Annotated[MaintenanceService, Depends(get_maintenance_service)],
) -> MaintenanceTaskResponse:
    return await service.create_task(aquarium_id, current_user.id, request)


@router.post(
    "/aquariums/{aquarium_id}/maintenance/defaults",
    response_model=MaintenanceTaskListResponse,
    status_code=status.HTTP_201_CREATED,
    summary="Create the default maintenance schedule",
)
async def setup_default_schedule(
    aquarium_id: str,
    current_user: CurrentUser,
    service: Annotated[MaintenanceService, Depends(get_maintenance_service)],
) -> MaintenanceTaskListResponse:
    tasks = await service.setup_default_schedule(aquarium_id, current_user.id)
    return MaintenanceTaskListResponse(tasks=tasks, total=len(tasks))


@router.get(
    "/aquariums/{aquarium_id}/maintenance/stats",
    response_model=MaintenanceStatsResponse,
    summary="Task counts per state",
)
async def get_stats(
    aquarium_id: str,
    current_user: CurrentUser,
    service: Annotated[MaintenanceService, Depends(get_maintenance_service)],
    tz: Annotated[str, Depends(viewer_timezone)],
) -> MaintenanceStatsResponse:
    return await service.get_stats(aquarium_id, current_user.id, tz=tz)


@router.get(
    "/maintenance/{task_id}",
    response_model=MaintenanceTaskResponse,
    summary="Get a maintenance task",
)
async def get_task(
    task_id: str,
    current_user: CurrentUser,
    service: Annotated[MaintenanceService, Depends(get_maintenance_service)],
    tz: Annotated[str, Depends(viewer_timezone)],
) -> MaintenanceTaskResponse:
    """
    Get a specific task by ID.

    Returns 404 if the task doesn't exist or belongs to another user.
    """
    task = await service.get_task(task_id, current_user.id, tz=tz)
    if task is None:
        raise _not_found()
    return task


@router.patch(
    "/maintenance/{task_id}",
    response_model=MaintenanceTaskResponse,
    summary="Update a maintenance task",
)
async def update_task(
    task_id: str,
    request: MaintenanceTaskUpdateRequest,
    current_user: CurrentUser,
    service: Annotated[MaintenanceService, Depends(get_maintenance_service)],
) -> MaintenanceTaskResponse:
    try:
        task = await service.update_task(task_id, current_user.id, request)
    except TaskAlreadyCompleted as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    if task is None:
        raise _not_found()
    return task


@router.delete(
    "/maintenance/{task_id}",
    response_model=TaskDeleteResponse,
    summary="Delete a maintenance task",
)
async def delete_task(
    task_id: str,
    current_user: CurrentUser,
    service: Annotated[MaintenanceService, Depends(get_maintenance_service)],
) -> TaskDeleteResponse:
    deleted = await service.delete_task(task_id, current_user.id)
    if not deleted:
        raise _not_found()
    return TaskDeleteResponse(message="Task deleted successfully", id=task_id)


@router.post(
    "/maintenance/{task_id}/complete",
    response_model=CompleteTaskResponse,
    summary="Complete a maintenance task",
)
async def complete_task(
    task_id: str,
    current_user: CurrentUser,
    service: Annotated[MaintenanceService, Depends(get_maintenance_service)],
    request: Optional[CompleteTaskRequest] = None,
) -> CompleteTaskResponse:
    """
    Mark a task done. Recurring tasks get a new successor record;
    one-off and custom-cadence tasks return ``next_task: null``.
    """
    try:
        return await service.complete_task(task_id, current_user.id, request or CompleteTaskRequest())
    except TaskNotFound:
        raise _not_found()
    except TaskAlreadyCompleted as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except InvalidCompletionDetails as exc:
        raise HTTPException(status_code=status.HTTP_422_UNPROCESSABLE_ENTITY, detail=str(exc))


@router.post(
    "/maintenance/{task_id}/skip",
    response_model=MaintenanceTaskResponse,
    summary="Skip a maintenance task to a later date",
)
async def skip_task(
    task_id: str,
    request: SkipTaskRequest,
    current_user: CurrentUser,
    service: Annotated[MaintenanceService, Depends(get_maintenance_service)],
) -> MaintenanceTaskResponse:
    try:
        return await service.skip_task(task_id, current_user.id, request)
    except TaskNotFound:
        raise _not_found()
    except TaskAlreadyCompleted as exc:
        raise HTTPException(status_code=status.HTTP_409_CONFLICT, detail=str(exc))
    except InvalidReschedule as exc:
        raise HTTPException(
            status_code=status.HTTP_422_UNPROCESSABLE_ENTITY,
            detail={"error": "invalid_reschedule", "message": exc.message},
        )
