"""Client-side queue of fired reminders waiting to be shown."""

import logging
from typing import Any

logger = logging.getLogger(__name__)

ReminderKey = tuple[Any, Any]


def reminder_key(task: dict) -> ReminderKey:
    """Identify one fired occurrence of a task's reminder."""
    return (task.get("id"), task.get("reminder_at"))


class ClientReminderQueue:
    """Ordered fired reminders with at most one active at a time.

    Each ``(task id, reminder_at)`` pair is accepted once per queue, so
    ingesting the same poll result repeatedly is harmless. The active entry is
    held apart from the pending list and cannot be reordered or removed.
    """

    def __init__(self) -> None:
        self._pending: list[dict] = []
        self._seen: set[ReminderKey] = set()
        self._active: dict | None = None

    def __len__(self) -> int:
        return len(self._pending)

    @property
    def pending(self) -> list[dict]:
        return list(self._pending)

    @property
    def active(self) -> dict | None:
        return self._active

    def has_seen(self, task: dict) -> bool:
        return reminder_key(task) in self._seen

    def ingest(self, task: dict) -> bool:
        """Append a fired reminder unless this occurrence was already seen."""
        key = reminder_key(task)
        if key in self._seen:
            return False
        self._seen.add(key)
        self._pending.append(dict(task))
        logger.debug(f"Queued reminder for task {key[0]} ({len(self._pending)} pending)")
        return True

    def activate_next(self) -> dict | None:
        """Pop the head and make it active, unless something is already active."""
        if self._active is not None or not self._pending:
            return None
        self._active = self._pending.pop(0)
        return self._active

    def complete_active(self) -> dict | None:
        """Clear the active reminder and return it."""
        finished, self._active = self._active, None
        return finished

    def reorder(self, from_index: int, to_index: int) -> None:
        """Move a pending reminder to another position."""
        self._check_index(from_index)
        self._check_index(to_index)
        entry = self._pending.pop(from_index)
        self._pending.insert(to_index, entry)

    def remove(self, index: int) -> dict:
        """Drop a pending reminder. It stays seen, so the next poll will not re-add it."""
        self._check_index(index)
        return self._pending.pop(index)

    def _check_index(self, index: int) -> None:
        if not 0 <= index < len(self._pending):
            raise IndexError(f"Queue index {index} out of range")
