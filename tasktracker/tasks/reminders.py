"""Celery tasks for reminder processing."""

import logging

from sqlalchemy.orm import Session

from tasktracker.celery_app import app as celery_app
from tasktracker.database import SessionLocal
from tasktracker.services.notification_service import NotificationService
from tasktracker.services.reminder_scanner import ReminderScanner

logger = logging.getLogger(__name__)


def run_reminder_scan() -> dict:
    """Run one reminder sweep with its own database session.

    Returns:
        dict with processing statistics, or an error entry
    """
    db: Session = SessionLocal()
    try:
        return ReminderScanner(db, NotificationService()).scan()
    except Exception as e:
        logger.error(f"Error scanning reminders: {e}", exc_info=True)
        db.rollback()
        return {"error": str(e)}
    finally:
        db.close()


@celery_app.task
def scan_due_reminders() -> dict:
    """Fire due reminders.

    This task runs every minute via celery-beat.
    """
    return run_reminder_scan()

