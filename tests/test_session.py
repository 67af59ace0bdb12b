"""Tests for the client reminder session."""

from datetime import UTC, datetime, time, timedelta
from unittest.mock import MagicMock

import pytest

from tasktracker.client.api import ReminderApiError
from tasktracker.client.ringtone import PlayOutcome, QuietHours, RingtonePlayer, ringtone_sources
from tasktracker.client.session import ReminderSession
from tasktracker.services.scheduler import Scheduler


class FakeApi:
    def __init__(self):
        self.fired = []
        self.tasks = []
        self.progress_calls = []
        self.triggered_calls = []
        self.fail = False

    def fired_reminders(self):
        if self.fail:
            raise ReminderApiError("GET /tasks/fired-reminders failed: connection refused")
        return self.fired

    def list_tasks(self):
        if self.fail:
            raise ReminderApiError("GET /tasks failed: connection refused")
        return self.tasks

    def reminder_progress(self, task_id, stopped=False, snooze_minutes=None):
        self.progress_calls.append((task_id, stopped, snooze_minutes))
        if self.fail:
            raise ReminderApiError("POST failed with 500")
        return {"outcome": "rescheduled", "message": "Next reminder scheduled in 60 minutes"}

    def reminder_triggered(self, task_id, reminder_index):
        self.triggered_calls.append((task_id, reminder_index))
        return {"triggered_count": 1, "max_rings": 3}


class FakePlayer:
    def __init__(self, outcome=PlayOutcome.PLAYING):
        self.outcome = outcome
        self.plays = []
        self.stops = 0

    def play(self, priority, on_end):
        self.plays.append((priority, on_end))
        return self.outcome

    def stop(self):
        self.stops += 1

    def end_current(self):
        self.plays[-1][1]()


class FakeDisplay:
    def __init__(self):
        self.shown = []
        self.hidden = []
        self.messages = []
        self.sub_reminders = []

    def show(self, task):
        self.shown.append(task["id"])

    def hide(self, task):
        self.hidden.append(task["id"])

    def message(self, text):
        self.messages.append(text)

    def notify_sub_reminder(self, task, index):
        self.sub_reminders.append((task["id"], index))


def fired(task_id, priority="medium", reminder_at="2026-03-02T09:00:00Z"):
    return {"id": task_id, "title": f"Task {task_id}", "priority": priority,
            "reminder_at": reminder_at}


@pytest.fixture
def api():
    return FakeApi()


@pytest.fixture
def player():
    return FakePlayer()


@pytest.fixture
def display():
    return FakeDisplay()


@pytest.fixture
def session(api, player, display):
    return ReminderSession(api, player, display, scheduler=Scheduler(clock=lambda: 0.0))


class TestPolling:
    def test_poll_queues_and_activates_head(self, session, api, player, display):
        api.fired = [fired(1, "high"), fired(2)]

        assert session.poll() == 2

        assert session.active["id"] == 1
        assert display.shown == [1]
        assert player.plays[0][0] == "high"
        assert [t["id"] for t in session.queue.pending] == [2]

    def test_repeated_poll_does_not_requeue(self, session, api, player):
        api.fired = [fired(1)]
        session.poll()

        assert session.poll() == 0
        assert len(player.plays) == 1

    def test_poll_error_is_logged(self, session, api, caplog):
        api.fail = True

        assert session.poll() == 0
        assert "Failed to fetch fired reminders" in caplog.text

    def test_start_registers_jobs(self, session):
        session.start()
        try:
            names = {job.name for job in session.scheduler.jobs}
        finally:
            session.close()

        assert names == {"poll-fired-reminders", "check-sub-reminders"}


class TestLifecycle:
    def test_ring_end_reports_progress_and_advances(self, session, api, player, display):
        api.fired = [fired(1), fired(2)]
        session.poll()

        player.end_current()

        assert api.progress_calls == [(1, False, None)]
        assert display.hidden == [1]
        assert display.messages == ["Next reminder scheduled in 60 minutes"]
        assert session.active["id"] == 2

    def test_stop(self, session, api, player):
        api.fired = [fired(1)]
        session.poll()

        stopped = session.stop()

        assert stopped["id"] == 1
        assert player.stops == 1
        assert api.progress_calls == [(1, True, None)]
        assert session.active is None

    def test_snooze(self, session, api, player):
        api.fired = [fired(1)]
        session.poll()

        session.snooze(10)

        assert api.progress_calls == [(1, True, 10)]
        assert session.active is None

    def test_stop_without_active(self, session, api):
        assert session.stop() is None
        assert session.snooze(5) is None
        assert api.progress_calls == []

    def test_ring_end_after_stop_is_ignored(self, session, api, player):
        api.fired = [fired(1)]
        session.poll()
        on_end = player.plays[0][1]

        session.stop()
        on_end()

        assert api.progress_calls == [(1, True, None)]

    def test_progress_failure_still_advances(self, session, api, player, caplog):
        api.fired = [fired(1), fired(2)]
        session.poll()
        api.fail = True

        player.end_current()

        assert "Failed to report reminder progress for task 1" in caplog.text
        assert session.active["id"] == 2

    def test_playback_failure_is_shown(self, api, display):
        session = ReminderSession(api, FakePlayer(PlayOutcome.FAILED), display)
        api.fired = [fired(1)]

        session.poll()

        assert session.active["id"] == 1
        assert display.messages == ["Could not play the ringtone; stop the reminder manually"]

    def test_reorder_and_remove(self, session, api):
        api.fired = [fired(1), fired(2), fired(3), fired(4)]
        session.poll()

        session.reorder(2, 0)
        removed = session.remove(1)

        assert removed["id"] == 2
        assert [t["id"] for t in session.queue.pending] == [4, 3]


class TestSubReminders:
    fire_at = datetime(2026, 3, 9, 9, 0, tzinfo=UTC)

    def task(self, triggered_count=0, **overrides):
        task = {
            "id": 5,
            "title": "Essay",
            "priority": "high",
            "completed": False,
            "due_date": "2026-03-10T12:00:00Z",
            "reminders": [
                {"days_before": 1, "reminder_time": "09:00", "triggered_count": triggered_count}
            ],
        }
        task.update(overrides)
        return task

    def test_due_sub_reminder_is_announced_once(self, session, api, display, player):
        now = self.fire_at + timedelta(seconds=20)

        assert session.check_sub_reminders([self.task()], now=now) == 1
        assert session.check_sub_reminders([self.task()], now=now) == 0

        assert display.sub_reminders == [(5, 0)]
        assert api.triggered_calls == [(5, 0)]
        # Never rung through the escalation queue
        assert player.plays == []
        assert session.active is None

    def test_second_ring_an_hour_later(self, session, api):
        now = self.fire_at + timedelta(minutes=60, seconds=5)

        assert session.check_sub_reminders([self.task(triggered_count=1)], now=now) == 1

    def test_not_due(self, session, api):
        now = self.fire_at + timedelta(minutes=10)

        assert session.check_sub_reminders([self.task()], now=now) == 0

    def test_completed_or_undated_tasks_skipped(self, session):
        now = self.fire_at
        tasks = [self.task(completed=True), self.task(due_date=None)]

        assert session.check_sub_reminders(tasks, now=now) == 0

    def test_capped_by_priority(self, session):
        now = self.fire_at + timedelta(minutes=60)

        assert session.check_sub_reminders([self.task(1, priority="low")], now=now) == 0

    def test_refresh_error_is_logged(self, session, api, caplog):
        api.fail = True

        assert session.refresh_sub_reminders() == 0
        assert "Failed to fetch tasks for sub-reminders" in caplog.text

    def test_sub_reminder_rings_its_own_ringtone(self, api, player, display):
        chimes = FakePlayer()
        session = ReminderSession(api, player, display, sub_reminder_player=chimes)
        task = self.task()
        task["reminders"][0]["ringtone"] = "bell"

        assert session.check_sub_reminders([task], now=self.fire_at) == 1

        assert [cue for cue, _ in chimes.plays] == ["bell"]
        assert player.plays == []
        assert session.queue.pending == []

    def test_sub_reminder_muted_in_quiet_hours(self, api, player, display):
        backend = MagicMock()
        chimes = RingtonePlayer(
            backend,
            MagicMock(),
            duration=6,
            quiet_hours=QuietHours(time(0, 0), time(5, 0), UTC),
            sources=ringtone_sources,
            clock=lambda: datetime(2026, 3, 9, 2, 0, tzinfo=UTC),
        )
        session = ReminderSession(api, player, display, sub_reminder_player=chimes)
        task = self.task(due_date="2026-03-10T03:00:00Z")
        task["reminders"][0]["reminder_time"] = "02:00"

        now = datetime(2026, 3, 9, 2, 0, 10, tzinfo=UTC)
        assert session.check_sub_reminders([task], now=now) == 1

        backend.start.assert_not_called()
        assert api.triggered_calls == [(5, 0)]
