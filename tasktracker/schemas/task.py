"""Task schemas."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from tasktracker.models.enums import Priority, RingAction, Ringtone
from tasktracker.services.reminder_state import as_utc
from tasktracker.services.sub_reminders import parse_reminder_time


class SubReminderCreate(BaseModel):
    """A dated reminder relative to the task's due date."""

    days_before: int = Field(..., ge=0, le=365)
    reminder_time: str = Field(..., description="Local time of day, HH:MM")
    ringtone: Ringtone = Ringtone.CHIME

    @field_validator("reminder_time")
    @classmethod
    def validate_reminder_time(cls, value: str) -> str:
        parsed = parse_reminder_time(value)
        return parsed.strftime("%H:%M")


class SubReminderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    days_before: int
    reminder_time: str
    ringtone: Ringtone
    triggered_count: int
    last_triggered_at: datetime | None

    @field_validator("last_triggered_at")
    @classmethod
    def attach_utc(cls, value: datetime | None) -> datetime | None:
        return as_utc(value)


class TaskCreate(BaseModel):
    """Create a new task."""

    title: str = Field(..., min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    priority: Priority = Priority.MEDIUM
    due_date: datetime | None = None
    important: bool = False
    completed: bool = False
    reminder_at: datetime | None = None
    reminders: list[SubReminderCreate] = Field(default_factory=list)


class TaskUpdate(BaseModel):
    """Update a task. Omitted fields are left unchanged."""

    title: str | None = Field(None, min_length=1, max_length=100)
    description: str | None = Field(None, max_length=500)
    priority: Priority | None = None
    due_date: datetime | None = None
    important: bool | None = None
    completed: bool | None = None
    reminder_at: datetime | None = None
    reminders: list[SubReminderCreate] | None = None


class RingHistoryEntry(BaseModel):
    at: datetime
    action: RingAction
    note: str = ""


class TaskResponse(BaseModel):
    """Task response including its reminder state."""

    model_config = ConfigDict(from_attributes=True)

    id: int
    user_id: int
    title: str
    description: str | None
    priority: Priority
    due_date: datetime | None
    important: bool
    completed: bool
    reminder_at: datetime | None
    notified: bool
    ui_pending: bool
    reminder_count: int
    last_ring_at: datetime | None
    ring_history: list[RingHistoryEntry] = Field(default_factory=list)
    reminders: list[SubReminderResponse] = Field(
        default_factory=list, validation_alias="sub_reminders"
    )
    created_at: datetime
    updated_at: datetime

    @field_validator("due_date", "reminder_at", "last_ring_at", "created_at", "updated_at")
    @classmethod
    def attach_utc(cls, value: datetime | None) -> datetime | None:
        """SQLite hands datetimes back naive; they are stored as UTC."""
        return as_utc(value)
