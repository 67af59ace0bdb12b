"""Dated sub-reminders: "N days before the due date at HH:MM".

This is a second reminder mechanism that predates escalation. It keeps its
own per-reminder trigger count and never touches ``Task.reminder_*`` state.
A sub-reminder fires at its fire time and then again every hour, up to the
task priority's cap.
"""

import logging
from datetime import UTC, datetime, time, timedelta, tzinfo

from tasktracker.models.task import Task
from tasktracker.services.reminder_state import as_utc, max_reminders

logger = logging.getLogger(__name__)

RING_SPACING_MINUTES = 60


def parse_reminder_time(value: str) -> time:
    """Parse an "HH:MM" string."""
    try:
        hours, minutes = (int(part) for part in value.split(":"))
        return time(hour=hours, minute=minutes)
    except (AttributeError, TypeError, ValueError) as e:
        raise ValueError(f"Invalid reminder time {value!r}, expected HH:MM") from e


def fire_time(
    due_date: datetime,
    days_before: int,
    reminder_time: str | None,
    tz: tzinfo = UTC,
) -> datetime:
    """When a sub-reminder first fires, as an aware datetime in ``tz``."""
    local_due = as_utc(due_date).astimezone(tz)
    fire_at = local_due - timedelta(days=days_before)
    if reminder_time:
        at = parse_reminder_time(reminder_time)
        fire_at = fire_at.replace(hour=at.hour, minute=at.minute, second=0, microsecond=0)
    return fire_at


def is_sub_reminder_due(
    fire_at: datetime,
    triggered_count: int,
    max_rings: int,
    now: datetime,
) -> bool:
    """Whether occurrence number ``triggered_count`` should ring right now.

    Occurrence n is due during the single minute starting n hours after the
    fire time.
    """
    if triggered_count >= max_rings or now < fire_at:
        return False
    minutes_since = int((now - fire_at).total_seconds() // 60)
    target = triggered_count * RING_SPACING_MINUTES
    return target <= minutes_since < target + 1


def record_trigger(task: Task, index: int, now: datetime | None = None) -> tuple[int, int]:
    """Count one ring of the sub-reminder at ``index``.

    The count stops at the priority cap. Returns ``(triggered_count, max_rings)``.
    Raises ValueError when the task has no sub-reminders and IndexError for
    an index outside the list.
    """
    if not task.sub_reminders:
        raise ValueError("Task has no reminders")
    if index < 0 or index >= len(task.sub_reminders):
        raise IndexError("Invalid reminder index")

    cap = max_reminders(task.priority)
    sub_reminder = task.sub_reminders[index]
    if sub_reminder.triggered_count < cap:
        sub_reminder.triggered_count += 1
        sub_reminder.last_triggered_at = now or datetime.now(UTC)
        logger.info(
            f"Task {task.id} sub-reminder {index} triggered "
            f"{sub_reminder.triggered_count}/{cap}"
        )
    return sub_reminder.triggered_count, cap


def reset_triggers(task: Task) -> None:
    """Make every sub-reminder ring again, used when a task is completed."""
    for sub_reminder in task.sub_reminders:
        sub_reminder.triggered_count = 0
