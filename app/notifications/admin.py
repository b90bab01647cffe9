"""
Django admin configuration for notification models.

Registers NotificationType and Notification with the admin site.
"""

from django.contrib import admin

from notifications.models import Notification, NotificationType


@admin.register(NotificationType)
class NotificationTypeAdmin(admin.ModelAdmin):
    """
    Admin configuration for NotificationType.

    Templates are editable so operators can reword payment messages
    without a deploy.
    """

    list_display = [
        "key",
        "display_name",
        "category",
        "is_active",
        "supports_email",
    ]
    list_filter = ["category", "is_active", "supports_email"]
    search_fields = ["key", "display_name"]
    ordering = ["key"]


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    """Read-mostly admin for delivered notifications."""

    list_display = [
        "id",
        "notification_type",
        "recipient",
        "title",
        "is_read",
        "created_at",
    ]
    list_filter = ["notification_type", "is_read", "created_at"]
    search_fields = ["title", "body", "recipient__email"]
    raw_id_fields = ["recipient", "actor"]
    readonly_fields = [
        "notification_type",
        "recipient",
        "actor",
        "title",
        "body",
        "data",
        "content_type",
        "object_id",
        "idempotency_key",
        "created_at",
        "updated_at",
    ]
    date_hierarchy = "created_at"
