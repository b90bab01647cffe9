"""
Settlement notification dispatcher.

Tells creators, companies and platform admins about payment events.
Notification is fire-and-forget: a failure here is logged and dropped and
never changes the outcome of the payment operation that triggered it.

Recipients by role:
    creator: the payment's creator (in-app notification)
    company: the owner of the payment's company (in-app notification)
    admin:   every active staff/admin user (in-app), plus an escalation
             email to the payment_notification_email setting when set

Usage:
    from payments.services.notifier import SettlementNotifier

    SettlementNotifier.notify("admin", "insufficient_funds", payment)
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any

from django.contrib.auth import get_user_model
from django.db import transaction
from django.db.models import Q

from authentication.models import UserRole
from core.services import BaseService

if TYPE_CHECKING:
    from payments.models import Payment


CREATOR = "creator"
COMPANY = "company"
ADMIN = "admin"

# Notification type key per (role, event); role None matches any role.
NOTIFICATION_TYPES: dict[tuple[str | None, str], str] = {
    (None, "disputed"): "payment_disputed",
    (None, "insufficient_funds"): "payment_failed_insufficient_funds",
    (None, "below_minimum"): "payment_below_minimum",
    (None, "settlement_failed"): "payment_settlement_failed",
    (None, "approved"): "payment_approved",
    (CREATOR, "completed"): "payment_received",
    (None, "completed"): "payment_completed",
}


class SettlementNotifier(BaseService):
    """
    Dispatches payment notifications.

    Methods:
        notify: Send one event to every recipient of a role
    """

    @classmethod
    def type_key_for(cls, recipient_role: str, event_type: str) -> str:
        key = NOTIFICATION_TYPES.get((recipient_role, event_type))
        if key is None:
            key = NOTIFICATION_TYPES[(None, event_type)]
        return key

    @classmethod
    def build_context(cls, payment: Payment, details: dict | None = None) -> dict:
        """Template context shared by every payment notification type."""
        details = details or {}
        return {
            "payment_id": str(payment.id),
            "amount": f"{payment.net_amount:.2f}",
            "gross_amount": f"{payment.gross_amount:.2f}",
            "company_name": payment.company.legal_name,
            "creator_email": payment.creator.email,
            "failure_kind": payment.failure_kind,
            "reason": details.get("reason") or payment.failure_reason or "",
            **{k: str(v) for k, v in details.items() if k != "reason"},
        }

    @classmethod
    def recipients_for(cls, recipient_role: str, payment: Payment) -> list:
        if recipient_role == CREATOR:
            return [payment.creator]
        if recipient_role == COMPANY:
            return [payment.company.user]
        if recipient_role == ADMIN:
            User = get_user_model()
            return list(
                User.objects.filter(is_active=True).filter(
                    Q(is_staff=True) | Q(role=UserRole.ADMIN)
                )
            )
        raise ValueError(f"Unknown recipient role: {recipient_role}")

    @classmethod
    def notify(
        cls,
        recipient_role: str,
        event_type: str,
        payment: Payment,
        details: dict[str, Any] | None = None,
    ) -> int:
        """
        Send a payment event to every recipient with the given role.

        Never raises. Each delivery runs in its own savepoint so a failed
        insert cannot poison the caller's transaction.

        Returns:
            Number of in-app notifications created
        """
        try:
            return cls._notify(recipient_role, event_type, payment, details)
        except Exception as e:
            cls.handle_exception(
                e,
                f"Dropped {event_type} notification for {recipient_role} "
                f"(payment {payment.pk})",
                log_level=logging.WARNING,
            )
            return 0

    @classmethod
    def _notify(
        cls,
        recipient_role: str,
        event_type: str,
        payment: Payment,
        details: dict[str, Any] | None,
    ) -> int:
        from notifications.services import NotificationService
        from payments.services.platform_settings_service import (
            PlatformSettingsService,
        )

        type_key = cls.type_key_for(recipient_role, event_type)
        context = cls.build_context(payment, details)
        created = 0

        for recipient in cls.recipients_for(recipient_role, payment):
            with transaction.atomic():
                result = NotificationService.create_notification(
                    recipient=recipient,
                    type_key=type_key,
                    data=context,
                    source_object=payment,
                    idempotency_key=(
                        f"{type_key}:{payment.pk}:{recipient.pk}:"
                        f"{payment.settlement_attempt}"
                    ),
                )
            if result.success:
                created += 1
            else:
                cls.get_logger().info(
                    "Notification not created",
                    extra={
                        "payment_id": str(payment.pk),
                        "type_key": type_key,
                        "error_code": result.error_code,
                    },
                )

        if recipient_role == ADMIN:
            escalation_email = PlatformSettingsService.get("payment_notification_email")
            if escalation_email:
                NotificationService.send_escalation_email(
                    escalation_email, type_key, context
                )

        cls.get_logger().info(
            "Payment notification dispatched",
            extra={
                "payment_id": str(payment.pk),
                "recipient_role": recipient_role,
                "event_type": event_type,
                "notifications_created": created,
            },
        )
        return created
