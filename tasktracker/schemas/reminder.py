"""Reminder command and result schemas."""

from pydantic import BaseModel, Field

from tasktracker.schemas.task import TaskResponse
from tasktracker.services.reminder_state import ReminderOutcome


class ReminderProgressRequest(BaseModel):
    """Sent by the client when a ring ends, is stopped, or is snoozed.

    A snooze value that is not a positive finite number of at most a year is
    ignored and the request is handled as a plain progress.
    """

    stopped: bool = False
    snooze_minutes: float | None = None


class ReminderProgressResponse(BaseModel):
    task: TaskResponse
    outcome: ReminderOutcome
    message: str


class ReminderTriggeredRequest(BaseModel):
    reminder_index: int


class ReminderTriggeredResponse(BaseModel):
    triggered_count: int
    max_rings: int = Field(..., description="Cap for the task's priority")
