"""Tests for the client-side fired reminder queue."""

import pytest

from tasktracker.client.reminder_queue import ClientReminderQueue


def fired(task_id, reminder_at="2026-03-02T09:00:00Z", **extra):
    return {"id": task_id, "reminder_at": reminder_at, "title": f"Task {task_id}", **extra}


@pytest.fixture
def queue():
    return ClientReminderQueue()


def test_ingest_deduplicates_occurrences(queue):
    assert queue.ingest(fired(1)) is True
    assert queue.ingest(fired(1)) is False
    assert len(queue) == 1


def test_new_occurrence_of_same_task_is_accepted(queue):
    queue.ingest(fired(1))

    assert queue.ingest(fired(1, reminder_at="2026-03-02T10:00:00Z")) is True
    assert len(queue) == 2


def test_only_one_active_at_a_time(queue):
    queue.ingest(fired(1))
    queue.ingest(fired(2))

    first = queue.activate_next()
    assert first["id"] == 1
    assert queue.activate_next() is None
    assert [t["id"] for t in queue.pending] == [2]

    assert queue.complete_active()["id"] == 1
    assert queue.active is None
    assert queue.activate_next()["id"] == 2


def test_activate_on_empty_queue(queue):
    assert queue.activate_next() is None
    assert queue.complete_active() is None


def test_ingest_copies_payload(queue):
    task = fired(1)
    queue.ingest(task)
    task["title"] = "changed"

    assert queue.pending[0]["title"] == "Task 1"


def test_reorder(queue):
    for task_id in (1, 2, 3):
        queue.ingest(fired(task_id))

    queue.reorder(2, 0)

    assert [t["id"] for t in queue.pending] == [3, 1, 2]


def test_reorder_out_of_range(queue):
    queue.ingest(fired(1))

    with pytest.raises(IndexError):
        queue.reorder(0, 5)


def test_remove_keeps_occurrence_seen(queue):
    queue.ingest(fired(1))
    queue.ingest(fired(2))

    removed = queue.remove(0)

    assert removed["id"] == 1
    assert queue.has_seen(fired(1))
    assert queue.ingest(fired(1)) is False
    assert [t["id"] for t in queue.pending] == [2]


def test_active_entry_cannot_be_removed(queue):
    queue.ingest(fired(1))
    queue.activate_next()

    with pytest.raises(IndexError):
        queue.remove(0)
