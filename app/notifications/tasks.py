"""
Celery tasks for notification delivery.

Tasks:
    send_escalation_email: Email an operations contact about a payment event

Usage:
    from notifications.tasks import send_escalation_email

    send_escalation_email.delay("ops@example.com", "Subject", "Body")
"""

from __future__ import annotations

import logging
from smtplib import SMTPException

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail

logger = logging.getLogger(__name__)


@shared_task(
    bind=True,
    autoretry_for=(SMTPException, ConnectionError),
    retry_backoff=True,
    retry_kwargs={"max_retries": 3},
)
def send_escalation_email(self, to_address: str, subject: str, message: str) -> bool:
    """
    Send an escalation email through the configured email backend.

    Transient SMTP/connection failures are retried with backoff.

    Args:
        to_address: Recipient address (platform escalation contact)
        subject: Rendered subject line
        message: Rendered plain-text body

    Returns:
        True if the backend accepted the message
    """
    logger.info(
        "Sending escalation email",
        extra={"to_address": to_address, "subject": subject},
    )
    sent = send_mail(
        subject=subject,
        message=message,
        from_email=settings.DEFAULT_FROM_EMAIL,
        recipient_list=[to_address],
    )
    return sent == 1
