"""Enums for model fields."""

from enum import Enum


class Priority(str, Enum):
    """Task priority, which drives reminder escalation."""

    LOW = "low"
    MEDIUM = "medium"
    HIGH = "high"

    @property
    def max_reminders(self) -> int:
        """Number of escalation occurrences before a reminder cycle is exhausted."""
        return MAX_REMINDERS[self]

    @property
    def completion_offset_minutes(self) -> int:
        """How far a reminder moves forward when its task is completed."""
        return COMPLETION_OFFSET_MINUTES[self]


MAX_REMINDERS = {Priority.LOW: 1, Priority.MEDIUM: 2, Priority.HIGH: 3}
COMPLETION_OFFSET_MINUTES = {Priority.LOW: 30, Priority.MEDIUM: 1440, Priority.HIGH: 10080}


class RingAction(str, Enum):
    """Actions recorded in a task's ring history."""

    AUTO = "auto"
    STOPPED = "stopped"
    SNOOZED = "snoozed"


class Ringtone(str, Enum):
    """Ringtones available for dated sub-reminders."""

    CHIME = "chime"
    DIGITAL = "digital"
    BELL = "bell"
