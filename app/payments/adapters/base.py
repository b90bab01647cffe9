"""
Payment rail interface and shared helpers.

A payment rail moves money from the platform to a creator. Settlement code
only talks to the PaymentRail protocol. PaymentRailRouter picks the concrete
rail per payout method from the PAYMENT_RAILS setting.

Usage:
    from payments.adapters import IdempotencyKeyGenerator, PaymentRailRouter

    rail = PaymentRailRouter()
    result = rail.attempt(
        payment_id=payment.id,
        amount=payment.net_amount,
        payout_method="paypal",
        destination="creator@example.com",
        idempotency_key=IdempotencyKeyGenerator.generate("settle", payment.id, 1),
    )
"""

from __future__ import annotations

import hashlib
import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import Any, Protocol, runtime_checkable

from django.conf import settings
from django.utils.module_loading import import_string

from payments.state_machines import FailureKind


@dataclass
class RailResult:
    """
    Outcome of a payment rail transfer attempt.

    Attributes:
        success: Whether the rail accepted the transfer
        transaction_id: Rail reference for the transfer
        failure_kind: FailureKind when success is False
        message: Human-readable failure message
        timed_out: The call timed out and the transfer may still land
        raw_response: Full rail response for audit
    """

    success: bool
    transaction_id: str | None = None
    failure_kind: str = ""
    message: str = ""
    timed_out: bool = False
    raw_response: dict[str, Any] = field(default_factory=dict)

    @classmethod
    def ok(cls, transaction_id: str, raw_response: dict | None = None) -> RailResult:
        return cls(
            success=True,
            transaction_id=transaction_id,
            raw_response=raw_response or {},
        )

    @classmethod
    def failed(
        cls,
        failure_kind: str,
        message: str,
        timed_out: bool = False,
        raw_response: dict | None = None,
    ) -> RailResult:
        return cls(
            success=False,
            failure_kind=failure_kind,
            message=message,
            timed_out=timed_out,
            raw_response=raw_response or {},
        )


@runtime_checkable
class PaymentRail(Protocol):
    """
    Protocol implemented by every payment rail.

    attempt() must be safe to repeat with the same idempotency key: a rail
    that has already executed the key returns the original outcome instead
    of sending money twice.
    """

    def attempt(
        self,
        payment_id: uuid.UUID | str,
        amount: Decimal,
        payout_method: str,
        destination: str,
        idempotency_key: str,
    ) -> RailResult: ...


class IdempotencyKeyGenerator:
    """
    Generate idempotency keys for rail calls.

    Format: "{operation}:{entity_id}:{attempt}:{hash}"

    Example:
        key = IdempotencyKeyGenerator.generate(
            operation="settle",
            entity_id=payment.id,
            attempt=payment.settlement_attempt,
        )
        # Result: "settle:550e8400-e29b-41d4-a716-446655440000:1:a1b2c3d4"
    """

    @staticmethod
    def generate(
        operation: str,
        entity_id: uuid.UUID | str,
        attempt: int = 1,
    ) -> str:
        entity_str = str(entity_id)
        hash_input = f"{operation}:{entity_str}:{attempt}:{settings.SECRET_KEY}"
        short_hash = hashlib.sha256(hash_input.encode()).hexdigest()[:8]

        return f"{operation}:{entity_str}:{attempt}:{short_hash}"


RAIL_BACKENDS = {
    "sandbox": "payments.adapters.sandbox_rail.SandboxRail",
    "stripe": "payments.adapters.stripe_rail.StripeConnectRail",
}


def get_payment_rail(backend: str | None = None) -> PaymentRail:
    """
    Build a rail by backend name, defaulting to PAYMENT_RAIL_BACKEND.

    Accepts a short name ("sandbox", "stripe") or a dotted import path.
    """
    backend = backend or getattr(settings, "PAYMENT_RAIL_BACKEND", "sandbox")
    rail_class = import_string(RAIL_BACKENDS.get(backend, backend))
    return rail_class()


def classify_failure_message(message: str) -> str:
    """
    Map a free-text rail error to a FailureKind.

    Used when a rail gives no structured error code.
    """
    lowered = (message or "").lower()
    if "insufficient" in lowered or "balance" in lowered:
        return FailureKind.INSUFFICIENT_FUNDS
    if "minimum" in lowered or "too small" in lowered:
        return FailureKind.BELOW_MINIMUM_AMOUNT
    return FailureKind.OTHER


class PaymentRailRouter:
    """
    Rail that hands each transfer to the rail configured for its payout method.

    PAYMENT_RAILS maps payout method -> backend name. A method with no entry
    fails as `other` without reaching any rail. Rails are built once per
    backend, so methods sharing a backend share its idempotency memory.

    Example:
        router = PaymentRailRouter({"etransfer": "stripe", "paypal": "sandbox"})
        router.attempt(payment.id, amount, "paypal", "me@example.com", key)
    """

    def __init__(self, rails_by_method: dict[str, str] | None = None):
        if rails_by_method is None:
            rails_by_method = getattr(settings, "PAYMENT_RAILS", {})
        self.rails_by_method = dict(rails_by_method)
        self._rails: dict[str, PaymentRail] = {}

    def rail_for(self, payout_method: str) -> PaymentRail | None:
        backend = self.rails_by_method.get(payout_method)
        if not backend:
            return None
        if backend not in self._rails:
            self._rails[backend] = get_payment_rail(backend)
        return self._rails[backend]

    def attempt(
        self,
        payment_id: uuid.UUID | str,
        amount: Decimal,
        payout_method: str,
        destination: str,
        idempotency_key: str,
    ) -> RailResult:
        rail = self.rail_for(payout_method)
        if rail is None:
            return RailResult.failed(
                FailureKind.OTHER,
                f"No payment rail configured for {payout_method}",
            )
        return rail.attempt(
            payment_id=payment_id,
            amount=amount,
            payout_method=payout_method,
            destination=destination,
            idempotency_key=idempotency_key,
        )
