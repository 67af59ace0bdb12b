"""Task model with embedded reminder escalation state."""

from sqlalchemy import JSON, Boolean, Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from tasktracker.database import Base
from tasktracker.models.enums import Priority
from tasktracker.models.mixins import TimestampMixin


class Task(Base, TimestampMixin):
    """A user's task.

    The reminder_* columns hold the escalation cycle for the task. They are
    only changed through ``ReminderService`` and the reminder scanner.
    """

    __tablename__ = "tasks"

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id"), nullable=False, index=True)
    title = Column(String(100), nullable=False)
    description = Column(String(500), nullable=True)
    priority = Column(
        Enum(
            Priority,
            name="priority",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=Priority.MEDIUM,
        nullable=False,
    )
    due_date = Column(DateTime(timezone=True), nullable=True)
    important = Column(Boolean, default=False, nullable=False)
    completed = Column(Boolean, default=False, nullable=False, index=True)

    # Reminder escalation state
    reminder_at = Column(DateTime(timezone=True), nullable=True, index=True)
    notified = Column(Boolean, default=False, nullable=False, index=True)
    ui_pending = Column(Boolean, default=False, nullable=False, index=True)
    reminder_count = Column(Integer, default=0, nullable=False)
    last_ring_at = Column(DateTime(timezone=True), nullable=True)
    # [{"at": "2026-01-01T10:00:00+00:00", "action": "auto", "note": "..."}, ...]
    ring_history = Column(JSON, default=list, nullable=False)

    # Relationships
    owner = relationship("User", backref="tasks")
    sub_reminders = relationship(
        "TaskSubReminder",
        back_populates="task",
        cascade="all, delete-orphan",
        order_by="TaskSubReminder.position",
    )
