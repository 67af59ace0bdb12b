"""Dated sub-reminder model (days before the due date, at a time of day)."""

from sqlalchemy import Column, DateTime, Enum, ForeignKey, Integer, String
from sqlalchemy.orm import relationship

from tasktracker.database import Base
from tasktracker.models.enums import Ringtone


class TaskSubReminder(Base):
    """A reminder relative to a task's due date, tracked separately from escalation."""

    __tablename__ = "task_sub_reminders"

    id = Column(Integer, primary_key=True, index=True)
    task_id = Column(Integer, ForeignKey("tasks.id"), nullable=False, index=True)
    position = Column(Integer, nullable=False, default=0)
    days_before = Column(Integer, nullable=False)
    reminder_time = Column(String(5), nullable=False)  # "HH:MM"
    ringtone = Column(
        Enum(
            Ringtone,
            name="ringtone",
            values_callable=lambda x: [e.value for e in x],
        ),
        default=Ringtone.CHIME,
        nullable=False,
    )
    triggered_count = Column(Integer, default=0, nullable=False)
    last_triggered_at = Column(DateTime(timezone=True), nullable=True)

    # Relationships
    task = relationship("Task", back_populates="sub_reminders")
