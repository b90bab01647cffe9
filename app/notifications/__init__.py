"""
Notifications app for payment notifications.

This app provides:
- NotificationType model for configuring notification templates
- Notification model for storing in-app notifications
- NotificationService for centralized notification creation
- A Celery task for escalation emails to the platform contact

Usage:
    from notifications.services import NotificationService

    result = NotificationService.create_notification(
        recipient=creator,
        type_key="payment_received",
        data={"amount": "93.00"},
    )

    if result.success:
        notification = result.data
"""
