"""Notification service for reminder email, web push and the task webhook."""

import json
import logging
import smtplib
from dataclasses import dataclass
from email.message import EmailMessage
from email.utils import make_msgid
from html import escape

import httpx
from pywebpush import WebPushException, webpush
from sqlalchemy.orm import Session

from tasktracker.config import Settings, get_settings
from tasktracker.models import PushSubscription, Task
from tasktracker.services.reminder_state import as_utc, max_reminders

logger = logging.getLogger(__name__)

PRIORITY_COLORS = {"low": "#22c55e", "medium": "#f59e0b", "high": "#ef4444"}


@dataclass(frozen=True)
class NotificationResult:
    """Outcome of a single best-effort delivery attempt."""

    success: bool
    message_id: str | None = None
    error: str | None = None
    data: dict | None = None


class NotificationService:
    """Delivers reminders by email and push, and announces new tasks to a webhook.

    Every public method is best effort: failures are logged and reported in
    the return value, never raised to the caller.
    """

    def __init__(self, settings: Settings | None = None) -> None:
        self.settings = settings or get_settings()
        if not self.push_enabled:
            logger.info("VAPID credentials not configured, reminder pushes disabled")

    @property
    def push_enabled(self) -> bool:
        return bool(
            self.settings.vapid_public_key
            and self.settings.vapid_private_key
            and self.settings.vapid_email
        )

    def send_reminder_email(self, task: Task, email: str) -> NotificationResult:
        """Send a reminder email for the task's current escalation occurrence."""
        if not self.settings.email_enabled:
            logger.info("SMTP not configured, skipping reminder email")
            return NotificationResult(success=False, error="Email not configured")

        message = build_reminder_email(task, email, self.settings.email_from)
        try:
            with smtplib.SMTP(self.settings.smtp_host, self.settings.smtp_port, timeout=30) as smtp:
                if self.settings.smtp_use_tls:
                    smtp.starttls()
                if self.settings.smtp_username and self.settings.smtp_password:
                    smtp.login(self.settings.smtp_username, self.settings.smtp_password)
                smtp.send_message(message)
        except (smtplib.SMTPException, OSError) as e:
            logger.error(f"Failed to send reminder email for task {task.id}: {e}")
            return NotificationResult(success=False, error=str(e))

        logger.info(f"Reminder email sent for task {task.id} to {email}")
        return NotificationResult(success=True, message_id=message["Message-ID"])

    def notify_webhook(self, email: str, task_name: str, priority: str) -> NotificationResult:
        """Post a task notification to the configured webhook."""
        if not self.settings.webhook_url:
            logger.debug("Webhook URL not configured, skipping")
            return NotificationResult(success=False, error="Webhook not configured")

        try:
            response = httpx.post(
                self.settings.webhook_url,
                json={"email": email, "taskName": task_name, "priority": priority},
                timeout=self.settings.webhook_timeout_seconds,
            )
            response.raise_for_status()
        except httpx.HTTPError as e:
            logger.error(f"Webhook notification failed for task '{task_name}': {e}")
            return NotificationResult(success=False, error=str(e))

        try:
            data = response.json()
        except ValueError:
            data = {"body": response.text}
        logger.info(f"Webhook notification sent for task '{task_name}'")
        return NotificationResult(success=True, data=data)

    def send_push(
        self,
        db: Session,
        user_id: int,
        title: str,
        body: str,
        task_id: int | None = None,
    ) -> bool:
        """Push a fired reminder to every device the user registered.

        Endpoints the push service reports as gone (410) are deleted. Returns
        True when at least one device accepted the message.
        """
        if not self.push_enabled:
            return False

        devices = db.query(PushSubscription).filter(PushSubscription.user_id == user_id).all()
        if not devices:
            logger.debug(f"User {user_id} has no push devices")
            return False

        payload = json.dumps(
            {
                "title": title,
                "body": body,
                "tag": f"reminder-{task_id}" if task_id else "reminder",
                "task_id": task_id,
            }
        )
        delivered = sum(1 for device in devices if self._push_to(db, device, payload))
        logger.info(f"Reminder push reached {delivered}/{len(devices)} device(s) of user {user_id}")
        return delivered > 0

    def _push_to(self, db: Session, device: PushSubscription, payload: str) -> bool:
        try:
            webpush(
                subscription_info=_subscription_info(device),
                data=payload,
                vapid_private_key=self.settings.vapid_private_key,
                vapid_claims={"sub": f"mailto:{self.settings.vapid_email}"},
            )
        except WebPushException as e:
            status_code = e.response.status_code if e.response is not None else None
            if status_code == 410:
                logger.info(f"Push endpoint {device.id} expired, removing it")
                db.delete(device)
                db.commit()
            else:
                logger.error(f"Reminder push to device {device.id} failed: {e}")
            return False
        return True


def _subscription_info(device: PushSubscription) -> dict:
    return {
        "endpoint": device.endpoint,
        "keys": {"p256dh": device.p256dh_key, "auth": device.auth_key},
    }


def build_reminder_email(task: Task, to_address: str, from_address: str | None) -> EmailMessage:
    """Build the HTML reminder email, including which occurrence this is."""
    priority = getattr(task.priority, "value", task.priority) or "medium"
    cap = max_reminders(priority)
    occurrence = (task.reminder_count or 0) + 1
    due_date = as_utc(task.due_date)
    due_str = due_date.strftime("%Y-%m-%d %H:%M UTC") if due_date else "Not set"
    color = PRIORITY_COLORS.get(priority, PRIORITY_COLORS["medium"])

    message = EmailMessage()
    message["Subject"] = f"Task Reminder: {task.title}"
    message["From"] = from_address or ""
    message["To"] = to_address
    message["Message-ID"] = make_msgid(domain="tasktracker")
    message.set_content(
        f"Task reminder: {task.title}\n"
        f"Priority: {priority}\n"
        f"Reminder: {occurrence} of {cap}\n"
        f"Due: {due_str}\n"
    )
    message.add_alternative(
        f"""\
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2>Task Reminder</h2>
  <h3>{escape(task.title)}</h3>
  <p>{escape(task.description or "No description provided")}</p>
  <p><strong>Priority:</strong>
    <span style="background-color: {color}; color: white; padding: 2px 8px;">{priority}</span></p>
  <p><strong>Reminder:</strong> {occurrence} of {cap}</p>
  <p><strong>Due Date:</strong> {due_str}</p>
</div>
""",
        subtype="html",
    )
    return message


def get_notification_service() -> NotificationService:
    return NotificationService()
