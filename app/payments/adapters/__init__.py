"""
Payment rail adapters.

All outbound money movement goes through a PaymentRail so that settlement
code is independent of the provider.

Usage:
    from payments.adapters import PaymentRailRouter

    rail = PaymentRailRouter()
    result = rail.attempt(payment.id, payment.net_amount, "etransfer", "acct_123", key)
"""

from payments.adapters.base import (
    IdempotencyKeyGenerator,
    PaymentRail,
    PaymentRailRouter,
    RailResult,
    classify_failure_message,
    get_payment_rail,
)
from payments.adapters.sandbox_rail import SandboxRail
from payments.adapters.stripe_rail import StripeConnectRail

__all__ = [
    "IdempotencyKeyGenerator",
    "PaymentRail",
    "PaymentRailRouter",
    "RailResult",
    "SandboxRail",
    "StripeConnectRail",
    "classify_failure_message",
    "get_payment_rail",
]
