"""Reminder escalation state machine.

A task's reminder cycle moves through these states:

    Idle (reminder_at is None)
      -> Scheduled (reminder_at set, notified=False)
      -> Fired (notified=True, ui_pending=True)        [reminder scanner]
      -> Scheduled again (escalated or snoozed) or Idle (exhausted)

The scanner owns the Scheduled -> Fired step. Everything else goes through
``ReminderService``.
"""

import logging
import math
from collections import deque
from dataclasses import dataclass
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from sqlalchemy.orm import Session

from tasktracker.config import get_settings
from tasktracker.models.enums import Priority, RingAction
from tasktracker.models.task import Task

logger = logging.getLogger(__name__)

RING_HISTORY_LIMIT = 20

# Longest accepted snooze, one year
MAX_SNOOZE_MINUTES = 365 * 24 * 60


class ReminderOutcome(StrEnum):
    """Result of a reminder transition."""

    RESCHEDULED = "rescheduled"
    EXHAUSTED = "exhausted"
    SNOOZED = "snoozed"
    UNCHANGED = "unchanged"


OUTCOME_MESSAGES = {
    ReminderOutcome.RESCHEDULED: "Next reminder scheduled in {minutes} minutes",
    ReminderOutcome.EXHAUSTED: "Maximum reminders reached; reminder cleared",
    ReminderOutcome.SNOOZED: "Reminder snoozed for {minutes} minutes",
    ReminderOutcome.UNCHANGED: "Task is already completed; reminder unchanged",
}

NOT_FIRED_MESSAGE = "Reminder has not fired; nothing to progress"


@dataclass(frozen=True)
class TransitionResult:
    task: Task
    outcome: ReminderOutcome
    message: str


def as_utc(value: datetime | None) -> datetime | None:
    """Attach UTC to naive datetimes (SQLite drops tzinfo on the way back)."""
    if value is None:
        return None
    if value.tzinfo is None:
        return value.replace(tzinfo=UTC)
    return value.astimezone(UTC)


def max_reminders(priority: Priority | str | None) -> int:
    """Escalation cap for a priority; unknown priorities get a single reminder."""
    try:
        return Priority(priority).max_reminders
    except ValueError:
        return 1


def is_valid_snooze(minutes: float | None) -> bool:
    """Snooze values must be positive, finite and at most a year to count."""
    if minutes is None or isinstance(minutes, bool):
        return False
    try:
        value = float(minutes)
    except (TypeError, ValueError):
        return False
    return math.isfinite(value) and 0 < value <= MAX_SNOOZE_MINUTES


def append_history(task: Task, action: RingAction, note: str, at: datetime) -> None:
    """Push an entry onto the bounded ring history, evicting the oldest."""
    history = deque(task.ring_history or [], maxlen=RING_HISTORY_LIMIT)
    history.append({"at": at.isoformat(), "action": action.value, "note": note})
    # Reassign so SQLAlchemy notices the JSON column changed
    task.ring_history = list(history)


class ReminderService:
    """Applies reminder transitions to tasks and persists them."""

    def __init__(self, db: Session, escalation_interval_minutes: int | None = None):
        self.db = db
        if escalation_interval_minutes is None:
            escalation_interval_minutes = get_settings().escalation_interval_minutes
        self.escalation_interval = timedelta(minutes=escalation_interval_minutes)

    def progress(self, task: Task, stopped: bool, now: datetime | None = None) -> TransitionResult:
        """Advance the cycle after a ring ends, naturally or by an explicit stop.

        Re-schedules one escalation interval from now until the priority cap is
        reached, then clears the reminder without completing the task. Only a
        fired reminder moves; a repeated or late report is answered unchanged.
        """
        if task.completed:
            return self._result(task, ReminderOutcome.UNCHANGED)
        if task.reminder_at is None or not task.ui_pending:
            logger.info(f"Task {task.id} reminder is not fired, ignoring progress report")
            return TransitionResult(
                task=task, outcome=ReminderOutcome.UNCHANGED, message=NOT_FIRED_MESSAGE
            )

        now = now or datetime.now(UTC)
        cap = max_reminders(task.priority)
        new_count = (task.reminder_count or 0) + 1
        action = RingAction.STOPPED if stopped else RingAction.AUTO

        task.ui_pending = False
        task.notified = False
        task.last_ring_at = now

        if new_count < cap:
            task.reminder_at = now + self.escalation_interval
            task.reminder_count = new_count
            note = "Stopped by user" if stopped else "Rang automatically"
            append_history(task, action, f"{note} ({new_count}/{cap})", now)
            outcome = ReminderOutcome.RESCHEDULED
            logger.info(
                f"Task {task.id} reminder {new_count}/{cap} done, next at {task.reminder_at}"
            )
        else:
            task.reminder_at = None
            task.reminder_count = 0
            append_history(task, action, f"Max reminders reached ({cap}/{cap})", now)
            outcome = ReminderOutcome.EXHAUSTED
            logger.info(f"Task {task.id} reminder exhausted after {cap} occurrence(s)")

        self._save(task)
        return self._result(task, outcome)

    def snooze(self, task: Task, minutes: float, now: datetime | None = None) -> TransitionResult:
        """Push the reminder out by ``minutes`` without consuming an escalation."""
        if not is_valid_snooze(minutes):
            raise ValueError(
                f"Snooze minutes must be positive, finite and at most a year, got {minutes!r}"
            )

        now = now or datetime.now(UTC)
        task.reminder_at = now + timedelta(minutes=float(minutes))
        task.ui_pending = False
        task.notified = False
        label = f"{minutes:g}" if isinstance(minutes, float) else str(minutes)
        append_history(task, RingAction.SNOOZED, f"Snoozed {label}m", now)

        self._save(task)
        logger.info(f"Task {task.id} reminder snoozed {label}m until {task.reminder_at}")
        return self._result(task, ReminderOutcome.SNOOZED, minutes=label)

    def on_completion_toggle(self, task: Task, new_priority: Priority | str | None = None) -> bool:
        """Shift an active reminder forward when its task becomes completed.

        Must be called before ``task.completed`` is set. The new time is the
        old ``reminder_at`` plus the priority offset, not now plus the offset.
        ``new_priority`` is used when the same update also changes priority.
        Returns True when the reminder moved.
        """
        if task.completed or task.reminder_at is None:
            return False

        priority = Priority(new_priority or task.priority)
        offset = timedelta(minutes=priority.completion_offset_minutes)
        task.reminder_at = as_utc(task.reminder_at) + offset
        task.notified = False

        logger.info(f"Task {task.id} completed, reminder moved to {task.reminder_at}")
        return True

    def clamp_to_priority(self, task: Task) -> bool:
        """Keep an active cycle below the cap after the priority is lowered.

        Does not commit. Returns True when the count was reduced.
        """
        cap = max_reminders(task.priority)
        if task.reminder_at is None or (task.reminder_count or 0) < cap:
            return False
        task.reminder_count = cap - 1
        logger.info(f"Task {task.id} priority lowered, reminder count clamped to {cap - 1}")
        return True

    def _save(self, task: Task) -> None:
        self.db.commit()
        self.db.refresh(task)

    def _result(self, task: Task, outcome: ReminderOutcome, **fmt) -> TransitionResult:
        fmt.setdefault("minutes", int(self.escalation_interval.total_seconds() // 60))
        return TransitionResult(
            task=task, outcome=outcome, message=OUTCOME_MESSAGES[outcome].format(**fmt)
        )
