"""Task and reminder API endpoints."""

import logging
from datetime import UTC, datetime
from typing import Annotated

from fastapi import APIRouter, BackgroundTasks, Depends, HTTPException, status

from tasktracker.api.dependencies import (
    get_current_user,
    get_notification_service,
    get_owned_task,
    get_reminder_service,
    get_task_store,
)
from tasktracker.models.task import Task
from tasktracker.models.task_sub_reminder import TaskSubReminder
from tasktracker.models.user import User
from tasktracker.schemas.reminder import (
    ReminderProgressRequest,
    ReminderProgressResponse,
    ReminderTriggeredRequest,
    ReminderTriggeredResponse,
)
from tasktracker.schemas.task import SubReminderCreate, TaskCreate, TaskResponse, TaskUpdate
from tasktracker.services.notification_service import NotificationService
from tasktracker.services.reminder_state import ReminderService, as_utc, is_valid_snooze
from tasktracker.services.sub_reminders import record_trigger, reset_triggers
from tasktracker.services.task_store import TaskStore

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/v1/tasks", tags=["tasks"])


def _build_sub_reminders(reminders: list[SubReminderCreate]) -> list[TaskSubReminder]:
    return [
        TaskSubReminder(
            position=position,
            days_before=reminder.days_before,
            reminder_time=reminder.reminder_time,
            ringtone=reminder.ringtone,
            triggered_count=0,
        )
        for position, reminder in enumerate(reminders)
    ]


@router.get("", response_model=list[TaskResponse])
def list_tasks(
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[TaskStore, Depends(get_task_store)],
):
    """Get all tasks for the current user, newest first."""
    return store.find_for_user(current_user.id)


@router.post("", response_model=TaskResponse, status_code=status.HTTP_201_CREATED)
def create_task(
    task_data: TaskCreate,
    background_tasks: BackgroundTasks,
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[TaskStore, Depends(get_task_store)],
    notification_service: Annotated[NotificationService, Depends(get_notification_service)],
):
    """Create a new task, optionally with a reminder and dated sub-reminders."""
    task = Task(
        user_id=current_user.id,
        title=task_data.title,
        description=task_data.description,
        priority=task_data.priority,
        due_date=as_utc(task_data.due_date),
        important=task_data.important,
        completed=task_data.completed,
        reminder_at=as_utc(task_data.reminder_at),
        notified=False,
        ui_pending=False,
        reminder_count=0,
        ring_history=[],
        sub_reminders=_build_sub_reminders(task_data.reminders),
    )
    store.add(task)
    logger.info(f"Created task {task.id} for user {current_user.id}")

    # Webhook failures never affect the created task
    background_tasks.add_task(
        notification_service.notify_webhook,
        current_user.email,
        task.title,
        task.priority.value,
    )
    return task


@router.get("/pending-reminders", response_model=list[TaskResponse])
def get_pending_reminders(
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[TaskStore, Depends(get_task_store)],
):
    """Reminders that are due but have not been notified yet."""
    return store.find_due(datetime.now(UTC), user_id=current_user.id)


@router.get("/fired-reminders", response_model=list[TaskResponse])
def get_fired_reminders(
    current_user: Annotated[User, Depends(get_current_user)],
    store: Annotated[TaskStore, Depends(get_task_store)],
):
    """Reminders that fired and are waiting to be shown by the client."""
    return store.find_fired(current_user.id)


@router.get("/{task_id}", response_model=TaskResponse)
def get_task(task: Annotated[Task, Depends(get_owned_task)]):
    """Get a single task."""
    return task


@router.put("/{task_id}", response_model=TaskResponse)
def update_task(
    task_data: TaskUpdate,
    task: Annotated[Task, Depends(get_owned_task)],
    store: Annotated[TaskStore, Depends(get_task_store)],
    reminder_service: Annotated[ReminderService, Depends(get_reminder_service)],
):
    """Update a task.

    Completing a task that has an active reminder moves the reminder forward
    by the priority's completion offset instead of clearing it.
    """
    update_data = task_data.model_dump(exclude_unset=True)
    sub_reminders = update_data.pop("reminders", None)
    completing = update_data.get("completed") is True and not task.completed

    if completing:
        reminder_service.on_completion_toggle(task, new_priority=update_data.get("priority"))
        reset_triggers(task)

    for field in ("due_date", "reminder_at"):
        if field in update_data:
            update_data[field] = as_utc(update_data[field])
    if "reminder_at" in update_data:
        # A new reminder time starts a fresh cycle
        task.notified = False
        task.ui_pending = False
        task.reminder_count = 0

    for field, value in update_data.items():
        setattr(task, field, value)
    if "priority" in update_data:
        reminder_service.clamp_to_priority(task)

    if sub_reminders is not None:
        task.sub_reminders = _build_sub_reminders(task_data.reminders)

    store.db.commit()
    store.db.refresh(task)
    return task


@router.delete("/{task_id}")
def delete_task(
    task: Annotated[Task, Depends(get_owned_task)],
    store: Annotated[TaskStore, Depends(get_task_store)],
) -> dict:
    """Delete a task."""
    store.delete(task.id)
    return {"message": "Task deleted successfully"}


@router.post("/{task_id}/reminder-progress", response_model=ReminderProgressResponse)
def reminder_progress(
    request: ReminderProgressRequest,
    task: Annotated[Task, Depends(get_owned_task)],
    reminder_service: Annotated[ReminderService, Depends(get_reminder_service)],
):
    """Record that a ring ended, was stopped, or was snoozed."""
    if is_valid_snooze(request.snooze_minutes):
        result = reminder_service.snooze(task, request.snooze_minutes)
    else:
        if request.snooze_minutes is not None:
            logger.warning(
                f"Ignoring invalid snooze value {request.snooze_minutes!r} for task {task.id}"
            )
        result = reminder_service.progress(task, stopped=request.stopped)

    return ReminderProgressResponse(
        task=TaskResponse.model_validate(result.task),
        outcome=result.outcome,
        message=result.message,
    )


@router.put("/{task_id}/reminder-triggered", response_model=ReminderTriggeredResponse)
def reminder_triggered(
    request: ReminderTriggeredRequest,
    task: Annotated[Task, Depends(get_owned_task)],
    store: Annotated[TaskStore, Depends(get_task_store)],
):
    """Count one ring of a dated sub-reminder."""
    try:
        triggered_count, max_rings = record_trigger(task, request.reminder_index)
    except (ValueError, IndexError) as e:
        raise HTTPException(status_code=status.HTTP_400_BAD_REQUEST, detail=str(e)) from e

    store.db.commit()
    return ReminderTriggeredResponse(triggered_count=triggered_count, max_rings=max_rings)
