"""Tests for the notification service."""

import smtplib
from datetime import UTC, datetime
from unittest.mock import MagicMock, patch

import httpx
import pytest
from pywebpush import WebPushException

from tasktracker.config import Settings
from tasktracker.models import PushSubscription, Task
from tasktracker.models.enums import Priority
from tasktracker.services.notification_service import NotificationService, build_reminder_email


@pytest.fixture
def settings():
    return Settings(
        smtp_host="smtp.example.com",
        smtp_port=587,
        smtp_username="mailer",
        smtp_password="secret",
        email_from="reminders@example.com",
        webhook_url="https://hooks.example.com/task",
    )


@pytest.fixture
def task():
    return Task(
        id=42,
        title="Lab report <draft>",
        description="Sections 2 & 3",
        priority=Priority.HIGH,
        due_date=datetime(2026, 3, 4, 17, 0, tzinfo=UTC),
        reminder_count=1,
    )


class TestReminderEmail:
    def test_email_content(self, task):
        message = build_reminder_email(task, "student@example.com", "reminders@example.com")

        assert message["Subject"] == "Task Reminder: Lab report <draft>"
        assert message["To"] == "student@example.com"
        text = message.get_body(preferencelist=("plain",)).get_content()
        html = message.get_body(preferencelist=("html",)).get_content()
        assert "Reminder: 2 of 3" in text
        assert "Due: 2026-03-04 17:00 UTC" in text
        assert "Lab report &lt;draft&gt;" in html
        assert "Sections 2 &amp; 3" in html

    def test_send(self, settings, task):
        service = NotificationService(settings)

        with patch("tasktracker.services.notification_service.smtplib.SMTP") as mock_smtp:
            result = service.send_reminder_email(task, "student@example.com")

        assert result.success is True
        assert result.message_id
        mock_smtp.assert_called_once_with("smtp.example.com", 587, timeout=30)
        smtp = mock_smtp.return_value.__enter__.return_value
        smtp.starttls.assert_called_once()
        smtp.login.assert_called_once_with("mailer", "secret")
        smtp.send_message.assert_called_once()

    def test_send_failure_is_reported(self, settings, task):
        service = NotificationService(settings)

        with patch("tasktracker.services.notification_service.smtplib.SMTP") as mock_smtp:
            smtp = mock_smtp.return_value.__enter__.return_value
            smtp.send_message.side_effect = smtplib.SMTPRecipientsRefused({})
            result = service.send_reminder_email(task, "student@example.com")

        assert result.success is False
        assert result.error

    def test_not_configured(self, task):
        service = NotificationService(Settings(smtp_host=None, email_from=None))

        with patch("tasktracker.services.notification_service.smtplib.SMTP") as mock_smtp:
            result = service.send_reminder_email(task, "student@example.com")

        assert result.success is False
        assert result.error == "Email not configured"
        mock_smtp.assert_not_called()


class TestWebhook:
    def test_posts_task_payload(self, settings):
        service = NotificationService(settings)
        response = MagicMock()
        response.json.return_value = {"ok": True}

        with patch(
            "tasktracker.services.notification_service.httpx.post", return_value=response
        ) as mock_post:
            result = service.notify_webhook("student@example.com", "Lab report", "high")

        assert result.success is True
        assert result.data == {"ok": True}
        mock_post.assert_called_once_with(
            "https://hooks.example.com/task",
            json={"email": "student@example.com", "taskName": "Lab report", "priority": "high"},
            timeout=5.0,
        )

    def test_failure_is_reported(self, settings):
        service = NotificationService(settings)

        with patch(
            "tasktracker.services.notification_service.httpx.post",
            side_effect=httpx.ConnectError("refused"),
        ):
            result = service.notify_webhook("student@example.com", "Lab report", "high")

        assert result.success is False
        assert "refused" in result.error

    def test_not_configured(self):
        service = NotificationService(Settings(webhook_url=None))

        with patch("tasktracker.services.notification_service.httpx.post") as mock_post:
            result = service.notify_webhook("student@example.com", "Lab report", "low")

        assert result.success is False
        mock_post.assert_not_called()


def test_push_disabled_without_vapid(db, settings):
    service = NotificationService(settings)

    assert service.send_push(db, user_id=1, title="Reminder", body="Due") is False


class TestPush:
    @pytest.fixture
    def push_settings(self):
        return Settings(
            vapid_public_key="BPub", vapid_private_key="priv", vapid_email="ops@example.com"
        )

    @pytest.fixture
    def devices(self, db, user):
        subs = [
            PushSubscription(
                user_id=user.id, endpoint=f"https://push.example/{n}", p256dh_key="k", auth_key="a"
            )
            for n in range(2)
        ]
        db.add_all(subs)
        db.commit()
        return subs

    def test_pushes_to_every_device(self, db, push_settings, user, devices):
        service = NotificationService(push_settings)

        with patch("tasktracker.services.notification_service.webpush") as mock_webpush:
            sent = service.send_push(db, user.id, "Reminder: Essay", "High priority task is due", 3)

        assert sent is True
        assert mock_webpush.call_count == 2
        kwargs = mock_webpush.call_args.kwargs
        assert kwargs["vapid_claims"] == {"sub": "mailto:ops@example.com"}
        assert '"tag": "reminder-3"' in kwargs["data"]

    def test_gone_endpoint_is_removed(self, db, push_settings, user, devices):
        service = NotificationService(push_settings)
        gone = WebPushException("Push failed: 410 Gone", response=MagicMock(status_code=410))

        with patch(
            "tasktracker.services.notification_service.webpush", side_effect=[gone, None]
        ):
            sent = service.send_push(db, user.id, "Reminder", "Due")

        assert sent is True
        remaining = db.query(PushSubscription).all()
        assert [sub.endpoint for sub in remaining] == ["https://push.example/1"]

    def test_no_devices(self, db, push_settings, user):
        service = NotificationService(push_settings)

        with patch("tasktracker.services.notification_service.webpush") as mock_webpush:
            assert service.send_push(db, user.id, "Reminder", "Due") is False

        mock_webpush.assert_not_called()
