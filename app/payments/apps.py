"""
Payments app configuration.

This app provides the creator payment settlement lifecycle:
- Payments with fees stamped once and an audited status FSM
- Disputes, settlement against a payment rail, retries
- Creator payout methods and platform settlement configuration
"""

from django.apps import AppConfig


class PaymentsConfig(AppConfig):
    """Configuration for the payments application."""

    default_auto_field = "django.db.models.BigAutoField"
    name = "payments"
    verbose_name = "Payments"
