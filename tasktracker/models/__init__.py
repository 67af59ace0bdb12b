"""SQLAlchemy models."""

from tasktracker.models.push_subscription import PushSubscription
from tasktracker.models.task import Task
from tasktracker.models.task_sub_reminder import TaskSubReminder
from tasktracker.models.user import User

__all__ = [
    "User",
    "Task",
    "TaskSubReminder",
    "PushSubscription",
]
