"""Task persistence used by the reminder scanner and the reminder endpoints."""

import logging
from datetime import UTC, datetime
from typing import Any

from sqlalchemy import update
from sqlalchemy.orm import Session

from tasktracker.models.task import Task

logger = logging.getLogger(__name__)


class TaskStore:
    """SQLAlchemy-backed task store."""

    def __init__(self, db: Session):
        self.db = db

    def get(self, task_id: int, user_id: int | None = None) -> Task | None:
        """Get a task, optionally restricted to an owner."""
        query = self.db.query(Task).filter(Task.id == task_id)
        if user_id is not None:
            query = query.filter(Task.user_id == user_id)
        return query.first()

    def find_for_user(self, user_id: int) -> list[Task]:
        return (
            self.db.query(Task)
            .filter(Task.user_id == user_id)
            .order_by(Task.created_at.desc(), Task.id.desc())
            .all()
        )

    def add(self, task: Task) -> Task:
        self.db.add(task)
        self.db.commit()
        self.db.refresh(task)
        return task

    def find_due(self, now: datetime | None = None, user_id: int | None = None) -> list[Task]:
        """Tasks whose reminder is due and has not been notified yet."""
        now = now or datetime.now(UTC)
        query = self.db.query(Task).filter(
            Task.reminder_at.is_not(None),
            Task.reminder_at <= now,
            Task.notified.is_(False),
            Task.completed.is_(False),
        )
        if user_id is not None:
            query = query.filter(Task.user_id == user_id)
        return query.order_by(Task.reminder_at).all()

    def find_fired(self, user_id: int) -> list[Task]:
        """Tasks whose reminder fired and is waiting for the client, newest first."""
        return (
            self.db.query(Task)
            .filter(
                Task.user_id == user_id,
                Task.ui_pending.is_(True),
                Task.completed.is_(False),
            )
            .order_by(Task.reminder_at.desc())
            .all()
        )

    def claim_for_notification(self, task_id: int) -> bool:
        """Atomically mark a due task as notified and pending in the UI.

        The update only matches while ``notified`` is still False, so two
        scanners racing on the same task cannot both claim it.
        """
        result = self.db.execute(
            update(Task)
            .where(Task.id == task_id, Task.notified.is_(False))
            .values(notified=True, ui_pending=True)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount == 1

    def update(self, task_id: int, **values: Any) -> Task | None:
        """Apply a partial update to a task."""
        task = self.get(task_id)
        if not task:
            return None
        for field, value in values.items():
            setattr(task, field, value)
        self.db.commit()
        self.db.refresh(task)
        return task

    def delete(self, task_id: int) -> bool:
        task = self.get(task_id)
        if not task:
            return False
        self.db.delete(task)
        self.db.commit()
        logger.info(f"Deleted task {task_id}")
        return True
