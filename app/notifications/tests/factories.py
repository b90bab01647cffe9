"""
Factory Boy factories for notification models.

Provides realistic test data generation for:
- NotificationType: Notification type definitions with templates
- Notification: Individual user notifications

Usage:
    from notifications.tests.factories import (
        NotificationTypeFactory,
        NotificationFactory,
    )

    # Create a notification type with a custom template
    notification_type = NotificationTypeFactory(
        key="payout_sent",
        title_template="You received ${amount}",
    )

    # Create a notification for a user
    notification = NotificationFactory(recipient=user)
"""

import factory

from authentication.tests.factories import UserFactory


class NotificationTypeFactory(factory.django.DjangoModelFactory):
    """
    Factory for NotificationType model.

    Creates active in-app payment types without email escalation.

    Examples:
        # Type with template placeholders
        nt = NotificationTypeFactory(
            key="payout_failed",
            title_template="Payout of ${amount} failed",
            body_template="{reason}",
        )

        # Escalation type that also emails the operations contact
        nt = NotificationTypeFactory(category="escalation", supports_email=True)
    """

    class Meta:
        model = "notifications.NotificationType"
        django_get_or_create = ("key",)

    key = factory.Sequence(lambda n: f"notification_type_{n}")
    display_name = factory.LazyAttribute(lambda obj: obj.key.replace("_", " ").title())
    category = "payments"
    title_template = factory.LazyAttribute(lambda obj: f"{obj.display_name} Title")
    body_template = factory.LazyAttribute(
        lambda obj: f"{obj.display_name} body message."
    )
    is_active = True
    supports_email = False


class NotificationFactory(factory.django.DjangoModelFactory):
    """
    Factory for Notification model.

    Creates unread notifications without actor or source object.

    Examples:
        notification = NotificationFactory(recipient=user, is_read=True)
        notification = NotificationFactory(recipient=user, actor=admin)
    """

    class Meta:
        model = "notifications.Notification"

    notification_type = factory.SubFactory(NotificationTypeFactory)
    recipient = factory.SubFactory(UserFactory)
    actor = None
    title = factory.Sequence(lambda n: f"Notification {n}")
    body = "Notification body."
    data = factory.LazyFunction(dict)
    is_read = False
    idempotency_key = None
