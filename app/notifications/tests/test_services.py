"""
Unit tests for notification services.

Tests focus on service behavior and ServiceResult patterns.

Test Classes:
    TestNotificationServiceCreate: Tests for create_notification()
    TestSendEscalationEmail: Tests for send_escalation_email()
    TestEscalationEmailTask: Tests for the Celery email task
"""

from smtplib import SMTPException

import pytest
from django.contrib.contenttypes.models import ContentType
from django.core import mail

from notifications.models import Notification
from notifications.services import NotificationService
from notifications.tasks import send_escalation_email


class TestNotificationServiceCreate:
    """
    Tests for NotificationService.create_notification().

    Verifies:
    - Template rendering
    - Type validation (unknown key, inactive type)
    - Actor and source object handling
    - Idempotency
    """

    def test_creates_notification_with_rendered_templates(
        self, db, notification_type_with_placeholders, user
    ):
        """Successfully creates notification with rendered template."""
        result = NotificationService.create_notification(
            recipient=user,
            type_key="template_notification",
            data={"amount": "93.00", "company_name": "Acme Inc."},
        )

        assert result.success
        notification = result.data
        assert notification.title == "Payout of $93.00"
        assert notification.body == "Acme Inc. sent $93.00."
        assert notification.recipient == user
        assert notification.data == {"amount": "93.00", "company_name": "Acme Inc."}

    def test_explicit_title_body_overrides_template(
        self, db, notification_type_with_placeholders, user
    ):
        """Explicit title and body override template rendering."""
        result = NotificationService.create_notification(
            recipient=user,
            type_key="template_notification",
            title="Custom Title",
            body="Custom Body",
        )

        assert result.success
        assert result.data.title == "Custom Title"
        assert result.data.body == "Custom Body"

    def test_fails_for_unknown_type_key(self, db, user):
        """Returns failure for unknown notification type key."""
        result = NotificationService.create_notification(
            recipient=user,
            type_key="nonexistent_type",
            title="Test",
        )

        assert not result.success
        assert result.error_code == "TYPE_NOT_FOUND"
        assert "nonexistent_type" in result.error

    def test_fails_for_inactive_type(self, db, inactive_notification_type, user):
        """Returns failure for inactive notification type."""
        result = NotificationService.create_notification(
            recipient=user,
            type_key="inactive_notification",
            title="Test",
        )

        assert not result.success
        assert result.error_code == "TYPE_INACTIVE"
        assert not Notification.objects.exists()

    def test_fails_on_missing_template_placeholder(
        self, db, notification_type_with_placeholders, user
    ):
        """Raises KeyError when template placeholder is missing."""
        with pytest.raises(KeyError):
            NotificationService.create_notification(
                recipient=user,
                type_key="template_notification",
                data={"amount": "93.00"},  # Missing company_name
            )

    def test_creates_notification_with_actor(
        self, db, notification_type, user, actor_user
    ):
        result = NotificationService.create_notification(
            recipient=user,
            type_key="test_notification",
            actor=actor_user,
        )

        assert result.success
        assert result.data.actor == actor_user

    def test_links_source_object(self, db, notification_type, user, actor_user):
        """Generic FK stores the source object's type and primary key."""
        result = NotificationService.create_notification(
            recipient=user,
            type_key="test_notification",
            source_object=actor_user,
        )

        notification = result.data
        assert notification.content_type == ContentType.objects.get_for_model(actor_user)
        assert notification.object_id == str(actor_user.pk)
        assert notification.source_object == actor_user

    def test_duplicate_idempotency_key(self, db, notification_type, user):
        """Second notification with the same key is refused."""
        first = NotificationService.create_notification(
            recipient=user, type_key="test_notification", idempotency_key="k-1"
        )
        second = NotificationService.create_notification(
            recipient=user, type_key="test_notification", idempotency_key="k-1"
        )

        assert first.success
        assert not second.success
        assert second.error_code == "DUPLICATE"
        assert Notification.objects.filter(recipient=user).count() == 1

    def test_without_idempotency_key_allows_repeats(self, db, notification_type, user):
        for _ in range(2):
            NotificationService.create_notification(
                recipient=user, type_key="test_notification"
            )

        assert Notification.objects.filter(recipient=user).count() == 2


class TestSendEscalationEmail:
    """
    Tests for NotificationService.send_escalation_email().

    The Celery task is queued only after the surrounding transaction
    commits.
    """

    @pytest.fixture
    def email_task(self, mocker):
        return mocker.patch("notifications.tasks.send_escalation_email.delay")

    def test_queues_rendered_email_on_commit(
        self,
        db,
        notification_type_with_placeholders,
        email_task,
        django_capture_on_commit_callbacks,
    ):
        with django_capture_on_commit_callbacks(execute=True) as callbacks:
            result = NotificationService.send_escalation_email(
                "ops@example.com",
                "template_notification",
                {"amount": "5.00", "company_name": "Acme Inc."},
            )

        assert result.success
        assert len(callbacks) == 1
        email_task.assert_called_once_with(
            "ops@example.com", "Payout of $5.00", "Acme Inc. sent $5.00."
        )

    def test_not_queued_before_commit(
        self,
        db,
        notification_type_with_placeholders,
        email_task,
        django_capture_on_commit_callbacks,
    ):
        with django_capture_on_commit_callbacks(execute=False) as callbacks:
            NotificationService.send_escalation_email(
                "ops@example.com",
                "template_notification",
                {"amount": "5.00", "company_name": "Acme Inc."},
            )

        assert len(callbacks) == 1
        email_task.assert_not_called()

    def test_no_recipient(self, db, notification_type_with_placeholders, email_task):
        result = NotificationService.send_escalation_email("", "template_notification")

        assert result.error_code == "NO_RECIPIENT"

    def test_unknown_type(self, db, email_task):
        result = NotificationService.send_escalation_email("ops@example.com", "nope")

        assert result.error_code == "TYPE_NOT_FOUND"

    def test_inactive_type(self, db, inactive_notification_type, email_task):
        result = NotificationService.send_escalation_email(
            "ops@example.com", "inactive_notification"
        )

        assert result.error_code == "TYPE_INACTIVE"

    def test_type_without_email(self, db, notification_type, email_task):
        result = NotificationService.send_escalation_email(
            "ops@example.com", "test_notification"
        )

        assert result.error_code == "EMAIL_DISABLED"
        email_task.assert_not_called()


class TestEscalationEmailTask:
    def test_sends_email(self, settings):
        settings.EMAIL_BACKEND = "django.core.mail.backends.locmem.EmailBackend"

        assert send_escalation_email("ops@example.com", "Subject", "Body") is True

        assert len(mail.outbox) == 1
        message = mail.outbox[0]
        assert message.to == ["ops@example.com"]
        assert message.subject == "Subject"
        assert message.body == "Body"
        assert message.from_email == settings.DEFAULT_FROM_EMAIL

    def test_smtp_error_propagates(self, mocker):
        mocker.patch("notifications.tasks.send_mail", side_effect=SMTPException("down"))

        with pytest.raises(SMTPException):
            send_escalation_email("ops@example.com", "Subject", "Body")
