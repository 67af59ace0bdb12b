"""Periodic sweep that fires due reminders."""

import logging
from collections.abc import Callable
from datetime import UTC, datetime

from sqlalchemy.orm import Session

from tasktracker.models.task import Task
from tasktracker.services.notification_service import NotificationService
from tasktracker.services.task_store import TaskStore

logger = logging.getLogger(__name__)


class ReminderScanner:
    """Finds due reminders, notifies the owner and marks them fired.

    Each due task is claimed with a conditional update before any channel is
    called, so an occurrence is emailed at most once even if several scanners
    run. Delivery failures never unclaim the task: a failed email is not
    retried on the next sweep.
    """

    def __init__(
        self,
        db: Session,
        notification_service: NotificationService | None = None,
        store: TaskStore | None = None,
        clock: Callable[[], datetime] | None = None,
    ):
        self.db = db
        self.store = store or TaskStore(db)
        self.notification_service = notification_service or NotificationService()
        self.clock = clock or (lambda: datetime.now(UTC))

    def scan(self, now: datetime | None = None) -> dict:
        """Process every due reminder once, sequentially.

        Returns:
            dict with processing statistics
        """
        now = now or self.clock()
        stats = {"found": 0, "claimed": 0, "emailed": 0, "email_failed": 0, "push_sent": 0}

        due_tasks = self.store.find_due(now)
        stats["found"] = len(due_tasks)
        if due_tasks:
            logger.info(f"Found {len(due_tasks)} task(s) requiring reminders at {now.isoformat()}")

        for task in due_tasks:
            try:
                self._process(task, stats)
            except Exception as e:
                logger.error(f"Error processing reminder for task {task.id}: {e}", exc_info=True)
                self.db.rollback()

        logger.info(f"Reminder scan complete: {stats}")
        return stats

    def _process(self, task: Task, stats: dict) -> None:
        # Capture before claiming; the commit inside the claim expires the instance
        task_id = task.id
        owner = task.owner
        if not owner or not owner.email:
            logger.warning(f"Task {task_id} has no associated user or email, skipping")
            return

        if not self.store.claim_for_notification(task_id):
            logger.info(f"Task {task_id} already claimed by another scan, skipping")
            return
        stats["claimed"] += 1

        result = self.notification_service.send_reminder_email(task, owner.email)
        if result.success:
            stats["emailed"] += 1
            logger.info(f"Reminder processed for task '{task.title}' (user {owner.email})")
        else:
            stats["email_failed"] += 1
            logger.error(
                f"Email failed for task '{task.title}' but marked as notified: {result.error}"
            )

        if self.notification_service.send_push(
            db=self.db,
            user_id=owner.id,
            title=f"Reminder: {task.title}",
            body=_push_body(task),
            task_id=task_id,
        ):
            stats["push_sent"] += 1


def _push_body(task: Task) -> str:
    priority = getattr(task.priority, "value", task.priority)
    return f"{priority.capitalize()} priority task is due"
