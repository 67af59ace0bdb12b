"""Per-session reminder handling on the client.

A ``ReminderSession`` owns everything that used to be ambient UI state: the
fired-reminder queue, the ringtone player, the set of dated sub-reminder
occurrences already handled, and the polling schedule. Nothing here is a
module-level singleton, so several sessions can coexist (each with its own
active reminder).
"""

import logging
import threading
from collections.abc import Callable, Iterable
from datetime import datetime
from typing import Protocol

from tasktracker.client.api import ReminderApiClient, ReminderApiError
from tasktracker.client.reminder_queue import ClientReminderQueue
from tasktracker.client.ringtone import PlayOutcome, RingtonePlayer
from tasktracker.services.reminder_state import max_reminders
from tasktracker.services.scheduler import Scheduler
from tasktracker.services.sub_reminders import fire_time, is_sub_reminder_due

logger = logging.getLogger(__name__)

DEFAULT_POLL_SECONDS = 30.0


class ReminderDisplay(Protocol):
    def show(self, task: dict) -> None: ...

    def hide(self, task: dict) -> None: ...

    def message(self, text: str) -> None: ...

    def notify_sub_reminder(self, task: dict, index: int) -> None: ...


class LoggingDisplay:
    """Display that writes to the log; used by the command-line client."""

    def show(self, task: dict) -> None:
        logger.warning(f"REMINDER [{task.get('priority')}] {task.get('title')}")

    def hide(self, task: dict) -> None:
        logger.info(f"Reminder for '{task.get('title')}' dismissed")

    def message(self, text: str) -> None:
        logger.info(text)

    def notify_sub_reminder(self, task: dict, index: int) -> None:
        logger.warning(f"Reminder {index + 1} for '{task.get('title')}' is due")


def _parse_datetime(value: str | None) -> datetime | None:
    if not value:
        return None
    return datetime.fromisoformat(value.replace("Z", "+00:00"))


class ReminderSession:
    """Shows fired reminders one at a time and reports what the user did."""

    def __init__(
        self,
        api: ReminderApiClient,
        player: RingtonePlayer,
        display: ReminderDisplay | None = None,
        queue: ClientReminderQueue | None = None,
        scheduler: Scheduler | None = None,
        poll_interval: float = DEFAULT_POLL_SECONDS,
        clock: Callable[[], datetime] = lambda: datetime.now().astimezone(),
        sub_reminder_player: RingtonePlayer | None = None,
    ):
        self.api = api
        self.player = player
        self.sub_reminder_player = sub_reminder_player
        self.display = display or LoggingDisplay()
        self.queue = queue or ClientReminderQueue()
        self.scheduler = scheduler or Scheduler()
        self.poll_interval = poll_interval
        self.clock = clock
        self._lock = threading.RLock()
        self._sub_reminder_keys: set[tuple[int, int, int]] = set()

    @property
    def active(self) -> dict | None:
        return self.queue.active

    def start(self) -> None:
        """Begin polling for fired reminders and due sub-reminders."""
        self.scheduler.add_job("poll-fired-reminders", self.poll, self.poll_interval)
        self.scheduler.add_job(
            "check-sub-reminders", self.refresh_sub_reminders, self.poll_interval
        )
        self.scheduler.start()

    def close(self) -> None:
        self.scheduler.stop()
        self.player.stop()
        if self.sub_reminder_player is not None:
            self.sub_reminder_player.stop()

    def poll(self) -> int:
        """Fetch fired reminders, queue new ones and activate the head.

        Returns the number of newly queued reminders.
        """
        try:
            fired = self.api.fired_reminders()
        except ReminderApiError as e:
            logger.error(f"Failed to fetch fired reminders: {e}")
            return 0

        with self._lock:
            added = sum(1 for task in fired if self.queue.ingest(task))
            if added:
                logger.info(f"Queued {added} new reminder(s)")
            self._activate_next()
        return added

    def activate_next(self) -> dict | None:
        with self._lock:
            return self._activate_next()

    def stop(self) -> dict | None:
        """User pressed stop on the active reminder."""
        # Outside the session lock, so a ring still loading is cancelled at once
        self.player.stop()
        with self._lock:
            task = self.queue.active
            if task is None:
                return None
            self._finish(task, stopped=True)
            return task

    def snooze(self, minutes: float) -> dict | None:
        """User snoozed the active reminder."""
        self.player.stop()
        with self._lock:
            task = self.queue.active
            if task is None:
                return None
            self._finish(task, stopped=True, snooze_minutes=minutes)
            return task

    def reorder(self, from_index: int, to_index: int) -> None:
        with self._lock:
            self.queue.reorder(from_index, to_index)

    def remove(self, index: int) -> dict:
        with self._lock:
            return self.queue.remove(index)

    def _activate_next(self) -> dict | None:
        task = self.queue.activate_next()
        if task is None:
            return None

        self.display.show(task)
        outcome = self.player.play(
            task.get("priority") or "medium", on_end=lambda: self._on_ring_end(task)
        )
        if outcome is PlayOutcome.FAILED:
            self.display.message("Could not play the ringtone; stop the reminder manually")
        return task

    def _on_ring_end(self, task: dict) -> None:
        with self._lock:
            self._finish(task, stopped=False)

    def _finish(self, task: dict, stopped: bool, snooze_minutes: float | None = None) -> None:
        # A ring end can race a manual stop; whichever arrives second finds nothing active
        if self.queue.active is not task:
            return
        self.queue.complete_active()
        self.display.hide(task)

        try:
            result = self.api.reminder_progress(
                task["id"], stopped=stopped, snooze_minutes=snooze_minutes
            )
        except ReminderApiError as e:
            # Not retried; the server state is picked up again on the next poll
            logger.error(f"Failed to report reminder progress for task {task['id']}: {e}")
        else:
            self.display.message(result.get("message", ""))

        self._activate_next()

    def refresh_sub_reminders(self) -> int:
        """Fetch tasks and fire any dated sub-reminders that are due."""
        try:
            tasks = self.api.list_tasks()
        except ReminderApiError as e:
            logger.error(f"Failed to fetch tasks for sub-reminders: {e}")
            return 0
        return self.check_sub_reminders(tasks)

    def check_sub_reminders(self, tasks: Iterable[dict], now: datetime | None = None) -> int:
        """Fire due dated sub-reminders.

        These are independent of the escalation queue: they are announced on the
        display, rung on the sub-reminder player with their own ringtone and
        counted on the server, but never queued.
        """
        now = now or self.clock()
        fired = 0
        for task in tasks:
            due_date = _parse_datetime(task.get("due_date"))
            if task.get("completed") or due_date is None:
                continue
            cap = max_reminders(task.get("priority"))
            for index, reminder in enumerate(task.get("reminders") or []):
                count = reminder.get("triggered_count", 0)
                fire_at = fire_time(
                    due_date, reminder["days_before"], reminder.get("reminder_time"), now.tzinfo
                )
                if not is_sub_reminder_due(fire_at, count, cap, now):
                    continue
                key = (task["id"], index, count)
                with self._lock:
                    if key in self._sub_reminder_keys:
                        continue
                    self._sub_reminder_keys.add(key)
                self.display.notify_sub_reminder(task, index)
                if self.sub_reminder_player is not None:
                    self.sub_reminder_player.play(
                        reminder.get("ringtone") or "chime", on_end=lambda: None
                    )
                fired += 1
                try:
                    self.api.reminder_triggered(task["id"], index)
                except ReminderApiError as e:
                    logger.error(
                        f"Failed to record sub-reminder {index} for task {task['id']}: {e}"
                    )
        return fired
