"""
Notification service layer.

This module provides:
- NotificationService.create_notification: render and store an in-app notification
- NotificationService.send_escalation_email: queue an email to an
  operations contact after the current transaction commits

Expected failures (unknown or inactive type, duplicate idempotency key) are
returned as ServiceResult failures rather than raised, because callers
treat notifications as best-effort.

Usage:
    from notifications.services import NotificationService

    result = NotificationService.create_notification(
        recipient=payment.creator,
        type_key="payment_disputed",
        data={"amount": "93.00", "reason": "Late delivery"},
        source_object=payment,
        idempotency_key=f"payment_disputed:{payment.id}",
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.contrib.contenttypes.models import ContentType
from django.db import transaction

from core.services import BaseService, ServiceResult
from notifications.models import Notification, NotificationType

if TYPE_CHECKING:
    from django.db.models import Model

    from authentication.models import User


class NotificationService(BaseService):
    """
    Service for notification operations.

    Methods:
        create_notification: Create a new notification with template rendering
        send_escalation_email: Queue an escalation email (sent after commit)
    """

    @classmethod
    def create_notification(
        cls,
        recipient: User,
        type_key: str,
        data: dict | None = None,
        title: str | None = None,
        body: str | None = None,
        actor: User | None = None,
        source_object: Model | None = None,
        idempotency_key: str | None = None,
    ) -> ServiceResult[Notification]:
        """
        Create a new notification for a user.

        If title/body are not provided, templates from NotificationType are
        rendered using the data dict. Explicit title/body override templates.

        Error codes:
            TYPE_NOT_FOUND: Notification type key doesn't exist
            TYPE_INACTIVE: Notification type is deactivated
            DUPLICATE: Notification with this idempotency_key already exists

        Raises:
            KeyError: If a template placeholder is missing from data
        """
        data = data or {}

        try:
            notification_type = NotificationType.objects.get(key=type_key)
        except NotificationType.DoesNotExist:
            cls.get_logger().warning(f"Notification type not found: {type_key}")
            return ServiceResult.failure(
                f"Notification type not found: {type_key}",
                error_code="TYPE_NOT_FOUND",
            )

        if not notification_type.is_active:
            cls.get_logger().info(
                f"Notification type inactive: {type_key} - skipping creation"
            )
            return ServiceResult.failure(
                f"Notification type is inactive: {type_key}",
                error_code="TYPE_INACTIVE",
            )

        if (
            idempotency_key
            and Notification.objects.filter(idempotency_key=idempotency_key).exists()
        ):
            cls.get_logger().info(
                f"Duplicate notification prevented: idempotency_key={idempotency_key}"
            )
            return ServiceResult.failure(
                f"Notification with idempotency_key already exists: {idempotency_key}",
                error_code="DUPLICATE",
            )

        rendered_title = title or notification_type.title_template.format(**data)
        rendered_body = body or notification_type.body_template.format(**data)

        content_type = None
        object_id = None
        if source_object is not None:
            content_type = ContentType.objects.get_for_model(source_object)
            object_id = str(source_object.pk)

        notification = Notification.objects.create(
            notification_type=notification_type,
            recipient=recipient,
            actor=actor,
            title=rendered_title,
            body=rendered_body,
            data=data,
            content_type=content_type,
            object_id=object_id,
            idempotency_key=idempotency_key,
        )

        cls.get_logger().info(
            f"Created notification {notification.id} of type {type_key} "
            f"for user {recipient.pk}"
        )
        return ServiceResult.success(notification)

    @classmethod
    def send_escalation_email(
        cls,
        to_address: str,
        type_key: str,
        data: dict | None = None,
    ) -> ServiceResult[str]:
        """
        Queue an escalation email for an operations contact.

        The email is rendered from the NotificationType templates and sent
        by a Celery task once the surrounding transaction commits, so a
        rolled-back settlement never emails anyone.

        Error codes:
            NO_RECIPIENT: No escalation address configured
            TYPE_NOT_FOUND / TYPE_INACTIVE: as for create_notification
            EMAIL_DISABLED: Type does not support email
        """
        from notifications import tasks

        if not to_address:
            return ServiceResult.failure(
                "No escalation address configured", error_code="NO_RECIPIENT"
            )

        notification_type = NotificationType.objects.filter(key=type_key).first()
        if notification_type is None:
            return ServiceResult.failure(
                f"Notification type not found: {type_key}",
                error_code="TYPE_NOT_FOUND",
            )
        if not notification_type.is_active:
            return ServiceResult.failure(
                f"Notification type is inactive: {type_key}",
                error_code="TYPE_INACTIVE",
            )
        if not notification_type.supports_email:
            return ServiceResult.failure(
                f"Notification type does not support email: {type_key}",
                error_code="EMAIL_DISABLED",
            )

        data = data or {}
        subject = notification_type.title_template.format(**data)
        message = notification_type.body_template.format(**data)

        transaction.on_commit(
            lambda: tasks.send_escalation_email.delay(to_address, subject, message)
        )
        cls.get_logger().info(
            f"Queued escalation email of type {type_key} to {to_address}"
        )
        return ServiceResult.success(to_address)

