"""Tests for the command-line client's command handling."""

from unittest.mock import MagicMock

import pytest

from tasktracker.client.__main__ import handle_command, main
from tasktracker.client.config import get_client_settings
from tasktracker.client.reminder_queue import ClientReminderQueue


@pytest.fixture
def session():
    session = MagicMock()
    session.queue = ClientReminderQueue()
    session.active = None
    return session


def test_quit(session):
    assert handle_command(session, "quit") is False
    assert handle_command(session, "   ") is True


def test_stop_and_snooze(session, capsys):
    session.stop.return_value = None

    handle_command(session, "stop")
    handle_command(session, "snooze 15")
    handle_command(session, "snooze")

    session.stop.assert_called_once()
    assert [c.args for c in session.snooze.call_args_list] == [(15.0,), (10.0,)]
    assert "No active reminder" in capsys.readouterr().out


def test_queue_listing(session, capsys):
    session.active = {"title": "Pay rent"}
    session.queue.ingest({"id": 2, "reminder_at": "x", "title": "Essay", "priority": "high"})

    handle_command(session, "queue")

    out = capsys.readouterr().out
    assert "Active: Pay rent" in out
    assert "0: [high] Essay" in out


def test_move_and_drop(session):
    handle_command(session, "move 2 0")
    handle_command(session, "drop 1")

    session.reorder.assert_called_once_with(2, 0)
    session.remove.assert_called_once_with(1)


def test_invalid_commands(session, capsys):
    session.remove.side_effect = IndexError("Queue index 9 out of range")

    handle_command(session, "drop 9")
    handle_command(session, "move x")
    handle_command(session, "dance")

    out = capsys.readouterr().out
    assert "Invalid command: Queue index 9 out of range" in out
    assert "Unknown command: dance" in out


def test_main_requires_credentials(monkeypatch):
    monkeypatch.delenv("TASKTRACKER_API_TOKEN", raising=False)
    get_client_settings.cache_clear()

    assert main(["--url", "http://localhost:1"]) == 1
