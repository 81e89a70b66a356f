"""
AQUAMANAGER Core API - Notifications Router

Endpoints for reminder preferences, today's reminder preview and manual delivery.
All endpoints are JWT-protected and user-scoped.
"""

from datetime import datetime, timezone
from typing import Annotated, Callable

from fastapi import APIRouter, Depends, HTTPException, status
from motor.motor_asyncio import AsyncIOMotorDatabase

from aquamanager.auth.dependencies import CurrentUser
from aquamanager.database import get_database
from aquamanager.maintenance.exceptions import DataContractError
from aquamanager.maintenance.repository import TaskRepositoryInterface
from aquamanager.maintenance.router import get_clock, get_task_repository
from aquamanager.notifications.dispatch import ReminderDispatchService
from aquamanager.notifications.log_repository import (
    MongoNotificationLogRepository,
    NotificationLogRepositoryInterface,
)
from aquamanager.notifications.mailer import EmailAdapter
from aquamanager.notifications.models import (
    NotificationPreferences,
    format_notification_time,
    parse_notification_time,
)
from aquamanager.notifications.repository import (
    MongoPreferencesRepository,
    PreferencesRepositoryInterface,
)
from aquamanager.notifications.schemas import (
    DispatchResponse,
    NotificationEventResponse,
    NotificationPreferencesResponse,
    NotificationPreferencesUpdateRequest,
    NotificationPreviewResponse,
)


router = APIRouter(prefix="/notifications", tags=["Notifications"])


async def get_preferences_repository(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)]
) -> PreferencesRepositoryInterface:
    return MongoPreferencesRepository(db)


async def get_notification_log_repository(
    db: Annotated[AsyncIOMotorDatabase, Depends(get_database)]
) -> NotificationLogRepositoryInterface:
    return MongoNotificationLogRepository(db)


def get_email_adapter() -> EmailAdapter:
    """Dependency to get the email adapter (overridden in tests)."""
    return EmailAdapter()


async def get_dispatch_service(
    task_repo: Annotated[TaskRepositoryInterface, Depends(get_task_repository)],
    preferences_repo: Annotated[PreferencesRepositoryInterface, Depends(get_preferences_repository)],
    log_repo: Annotated[NotificationLogRepositoryInterface, Depends(get_notification_log_repository)],
    mailer: Annotated[EmailAdapter, Depends(get_email_adapter)],
) -> ReminderDispatchService:
    return ReminderDispatchService(task_repo, preferences_repo, log_repo, mailer)


def _to_response(prefs: NotificationPreferences) -> NotificationPreferencesResponse:
    return NotificationPreferencesResponse(
        email_enabled=prefs.email_enabled,
        email=prefs.email,
        notification_time=format_notification_time(prefs.notification_time),
        timezone=prefs.timezone,
        reminder_intervals=list(prefs.reminder_intervals),
        advance_notifications_enabled=prefs.advance_notifications_enabled,
        due_date_notifications_enabled=prefs.due_date_notifications_enabled,
        overdue_notifications_enabled=prefs.overdue_notifications_enabled,
        escalation_enabled=prefs.escalation_enabled,
        escalation_days=prefs.escalation_days,
    )


@router.get(
    "/preferences",
    response_model=NotificationPreferencesResponse,
    summary="Get reminder preferences",
)
async def get_preferences(
    current_user: CurrentUser,
    repository: Annotated[PreferencesRepositoryInterface, Depends(get_preferences_repository)],
) -> NotificationPreferencesResponse:
    """Users who never saved preferences get the defaults."""
    prefs = await repository.get(current_user.id)
    return _to_response(prefs)


@router.put(
    "/preferences",
    response_model=NotificationPreferencesResponse,
    summary="Update reminder preferences",
)
async def update_preferences(
    request: NotificationPreferencesUpdateRequest,
    current_user: CurrentUser,
    repository: Annotated[PreferencesRepositoryInterface, Depends(get_preferences_repository)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
) -> NotificationPreferencesResponse:
    prefs = await repository.get(current_user.id)
    updates = request.model_dump(exclude_unset=True)

    if "notification_time" in updates:
        value = updates.pop("notification_time")
        if value is not None:
            prefs.notification_time = parse_notification_time(value)
    for key, value in updates.items():
        # None on a required setting means "leave unchanged"; email may be cleared
        if value is None and key != "email":
            continue
        setattr(prefs, key, value)

    prefs.updated_at = clock()
    saved = await repository.upsert(prefs)
    return _to_response(saved)


@router.get(
    "/preview",
    response_model=NotificationPreviewResponse,
    summary="Preview today's reminders",
)
async def preview_notifications(
    current_user: CurrentUser,
    repository: Annotated[PreferencesRepositoryInterface, Depends(get_preferences_repository)],
    service: Annotated[ReminderDispatchService, Depends(get_dispatch_service)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
) -> NotificationPreviewResponse:
    """
    Compute the reminders scheduled for today without sending anything.

    Returns events for every enabled category, including ones whose
    send time has not arrived yet.
    """
    now = clock()
    prefs = await repository.get(current_user.id)
    try:
        events = await service.events_for_user(prefs, now)
    except DataContractError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))

    return NotificationPreviewResponse(
        generated_at=now,
        timezone=prefs.timezone,
        events=[
            NotificationEventResponse(
                task_id=e.task_id,
                task=e.task_label,
                aquarium_id=e.aquarium_id,
                category=e.category,
                scheduled_for=e.scheduled_for.astimezone(timezone.utc),
                days_until_due=e.days_until_due,
                interval_days=e.interval_days,
            )
            for e in events
        ],
    )


@router.post(
    "/dispatch",
    response_model=DispatchResponse,
    summary="Send due reminders now",
)
async def dispatch_notifications(
    current_user: CurrentUser,
    service: Annotated[ReminderDispatchService, Depends(get_dispatch_service)],
    clock: Annotated[Callable[[], datetime], Depends(get_clock)],
) -> DispatchResponse:
    """
    Deliver the authenticated user's reminders whose send time has passed.

    Reminders already delivered today are not sent again.
    """
    try:
        report = await service.dispatch_for_user(current_user.id, clock())
    except DataContractError as exc:
        raise HTTPException(status_code=status.HTTP_500_INTERNAL_SERVER_ERROR, detail=str(exc))
    return DispatchResponse(
        users_checked=report.users_checked,
        emails_sent=report.emails_sent,
        events_sent=report.events_sent,
        events_already_sent=report.events_already_sent,
        failures=report.failures,
    )
