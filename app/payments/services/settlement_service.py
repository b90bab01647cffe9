"""
Settlement processor for paying creators through a payment rail.

The service implements a two-phase pattern around the rail call:
1. Phase 1: Validate and move the payment to PROCESSING (committed)
2. Phase 2: Call the rail OUTSIDE any transaction with an idempotency key
3. Phase 3: Compare-and-swap PROCESSING -> COMPLETED or FAILED

If two settlements race, both may reach the rail (which de-duplicates the
shared idempotency key), but only one phase-3 write succeeds; the other
raises ConcurrencyConflictError.

Failures are classified into insufficient_funds, below_minimum_amount and
other, persisted on the payment, escalated, and then raised as the
matching SettlementError subclass.

Usage:
    from payments.services import SettlementService

    outcome = SettlementService.settle(payment_id, actor=admin)
    if outcome.already_completed:
        ...

    result = SettlementService.settle_all({"company_id": company.id}, actor=admin)
    print(result.succeeded, result.failed)
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING, Any, NoReturn

from django.conf import settings

from core.exceptions import BaseApplicationError
from core.services import BaseService
from payments.adapters import (
    IdempotencyKeyGenerator,
    PaymentRail,
    PaymentRailRouter,
    RailResult,
)
from payments.exceptions import (
    SETTLEMENT_ERRORS_BY_KIND,
    BelowMinimumAmountError,
    InvalidStateTransitionError,
)
from payments.models import Payment
from payments.services.notifier import SettlementNotifier
from payments.services.payment_method_service import PaymentMethodService
from payments.services.payment_service import PaymentService
from payments.services.transition_service import PaymentTransitionService
from payments.state_machines import FailureKind, PaymentEventAction, PaymentStatus

if TYPE_CHECKING:
    from authentication.models import User
    from payments.models import PaymentMethod


# Notification event for each failure kind.
FAILURE_EVENTS = {
    FailureKind.INSUFFICIENT_FUNDS: "insufficient_funds",
    FailureKind.BELOW_MINIMUM_AMOUNT: "below_minimum",
    FailureKind.OTHER: "settlement_failed",
}

RAIL_TIMED_OUT = "rail_timed_out"


# =============================================================================
# Result Types
# =============================================================================


@dataclass
class SettlementOutcome:
    """
    Result of settling one payment.

    Attributes:
        payment_id: Payment that was settled
        status: Payment status after the attempt
        success: True when the payment ended up completed
        already_completed: The payment was completed before this call
        transaction_id: Rail transaction reference
        failure_kind: FailureKind when the attempt failed
        error: Failure message
        error_code: Machine-readable error code
    """

    payment_id: str
    status: str
    success: bool
    already_completed: bool = False
    transaction_id: str | None = None
    failure_kind: str = ""
    error: str = ""
    error_code: str = ""

    @classmethod
    def from_error(cls, payment_id, exc: Exception) -> SettlementOutcome:
        status = (
            Payment.objects.filter(id=payment_id)
            .values_list("status", flat=True)
            .first()
        )
        details = getattr(exc, "details", {}) or {}
        return cls(
            payment_id=str(payment_id),
            status=status or "",
            success=False,
            failure_kind=details.get("failure_kind", ""),
            error=getattr(exc, "message", str(exc)),
            error_code=getattr(exc, "error_code", exc.__class__.__name__.upper()),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "payment_id": self.payment_id,
            "status": self.status,
            "success": self.success,
            "already_completed": self.already_completed,
            "transaction_id": self.transaction_id,
            "failure_kind": self.failure_kind,
            "error": self.error,
            "error_code": self.error_code,
        }


@dataclass
class BulkSettlementResult:
    """Per-item outcomes of a bulk settlement with aggregate counts."""

    outcomes: list[SettlementOutcome] = field(default_factory=list)

    @property
    def succeeded(self) -> int:
        return sum(1 for outcome in self.outcomes if outcome.success)

    @property
    def failed(self) -> int:
        return sum(1 for outcome in self.outcomes if not outcome.success)

    def to_dict(self) -> dict[str, Any]:
        return {
            "succeeded": self.succeeded,
            "failed": self.failed,
            "outcomes": [outcome.to_dict() for outcome in self.outcomes],
        }


# =============================================================================
# Settlement Service
# =============================================================================


class SettlementService(BaseService):
    """
    Service for settling payments against the payment rail.

    Methods:
        settle: Settle one payment
        settle_all: Settle every matching PROCESSING payment independently
        retry: Move a non-disputed FAILED payment back to PROCESSING
        minimum_for: Minimum payout for a payout method
    """

    # Payment rail - can be injected for testing
    _payment_rail: PaymentRail | None = None

    @classmethod
    def get_payment_rail(cls) -> PaymentRail:
        """Get the payment rail, building the per-method router on first use."""
        if cls._payment_rail is None:
            cls._payment_rail = PaymentRailRouter()
        return cls._payment_rail

    @classmethod
    def set_payment_rail(cls, rail: PaymentRail | None) -> None:
        """Set the payment rail (for testing); None restores the configured one."""
        cls._payment_rail = rail

    @classmethod
    def minimum_for(cls, payout_method: str) -> Decimal | None:
        """Minimum payout for a method, or None when not configured."""
        minimums = getattr(settings, "PAYOUT_METHOD_MINIMUMS", {})
        value = minimums.get(payout_method)
        return None if value is None else Decimal(value)

    @classmethod
    def settle(
        cls,
        payment_id: uuid.UUID | str,
        actor: User | None = None,
    ) -> SettlementOutcome:
        """
        Settle a single payment.

        Returns:
            SettlementOutcome; already_completed=True (and no rail call)
            when the payment was already paid

        Raises:
            PaymentNotFoundError: Unknown payment
            InvalidStateTransitionError: Payment is failed or refunded
            PaymentValidationError: Creator has no payout method
            PaymentMethodSetupRequiredError: Payout method needs setup
            BelowMinimumAmountError / InsufficientFundsError /
            GenericSettlementError: Settlement failed (payment now FAILED)
            ConcurrencyConflictError: Another process changed the payment
        """
        payment = PaymentTransitionService.get_payment(payment_id)
        log_context = {"payment_id": str(payment.id), "status": payment.status}

        if payment.status == PaymentStatus.COMPLETED:
            cls.get_logger().info(
                "Payment already completed, skipping settlement", extra=log_context
            )
            return SettlementOutcome(
                payment_id=str(payment.id),
                status=payment.status,
                success=True,
                already_completed=True,
                transaction_id=payment.provider_transaction_id,
            )

        if payment.status not in (PaymentStatus.PENDING, PaymentStatus.PROCESSING):
            raise InvalidStateTransitionError(
                f"Cannot settle a {payment.status} payment"
                + (f" ({payment.failure_kind})" if payment.failure_kind else ""),
                details={
                    "payment_id": str(payment.id),
                    "current_status": payment.status,
                    "failure_kind": payment.failure_kind,
                },
            )

        # Neither check changes status.
        method = PaymentMethodService.get_settlement_method(payment.creator)

        minimum = cls.minimum_for(method.payout_method)
        if minimum is None:
            return cls._fail(
                payment,
                FailureKind.OTHER,
                f"No minimum payout configured for {method.payout_method}",
                actor=actor,
                payout_method=method.payout_method,
            )
        if payment.net_amount < minimum:
            return cls._fail(
                payment,
                FailureKind.BELOW_MINIMUM_AMOUNT,
                f"Net amount ${payment.net_amount:.2f} is below the "
                f"${minimum:.2f} minimum for {method.payout_method}",
                actor=actor,
                payout_method=method.payout_method,
            )

        # Phase 1
        if payment.status == PaymentStatus.PENDING:
            PaymentTransitionService.transition(
                payment, PaymentEventAction.APPROVED, actor=actor
            )

        # Phase 2
        result = cls._call_rail(payment, method)

        # Phase 3
        if not result.success:
            kind = result.failure_kind
            if kind not in FAILURE_EVENTS:
                kind = FailureKind.OTHER
            return cls._fail(
                payment,
                kind,
                result.message or "Payment rail rejected the transfer",
                actor=actor,
                payout_method=method.payout_method,
                rail_result=result,
            )

        payment.delete_meta(RAIL_TIMED_OUT, save=False)
        PaymentTransitionService.transition(
            payment,
            PaymentEventAction.COMPLETED,
            actor=actor,
            provider_transaction_id=result.transaction_id,
            provider_response=result.raw_response,
            payout_method=method.payout_method,
        )

        cls.get_logger().info(
            "Payment settled",
            extra={
                "payment_id": str(payment.id),
                "status": payment.status,
                "transaction_id": result.transaction_id,
                "net_amount": str(payment.net_amount),
            },
        )
        SettlementNotifier.notify("creator", "completed", payment)
        SettlementNotifier.notify("company", "completed", payment)

        return SettlementOutcome(
            payment_id=str(payment.id),
            status=payment.status,
            success=True,
            transaction_id=result.transaction_id,
        )

    @classmethod
    def _call_rail(cls, payment: Payment, method: PaymentMethod) -> RailResult:
        """
        Call the rail outside any transaction.

        A rail exception means the outcome is unknown; it is reported as an
        `other` failure, never as success.
        """
        idempotency_key = IdempotencyKeyGenerator.generate(
            operation="settle",
            entity_id=payment.id,
            attempt=payment.settlement_attempt,
        )
        cls.get_logger().info(
            "Calling payment rail",
            extra={
                "payment_id": str(payment.id),
                "payout_method": method.payout_method,
                "amount": str(payment.net_amount),
                "idempotency_key": idempotency_key,
            },
        )

        try:
            return cls.get_payment_rail().attempt(
                payment_id=payment.id,
                amount=payment.net_amount,
                payout_method=method.payout_method,
                destination=method.destination,
                idempotency_key=idempotency_key,
            )
        except Exception as e:
            cls.get_logger().error(
                f"Payment rail raised {type(e).__name__}",
                extra={
                    "payment_id": str(payment.id),
                    "idempotency_key": idempotency_key,
                },
                exc_info=True,
            )
            return RailResult.failed(
                FailureKind.OTHER,
                f"Payment rail error: {e}",
                timed_out=isinstance(e, (TimeoutError, ConnectionError)),
            )

    @classmethod
    def _fail(
        cls,
        payment: Payment,
        kind: str,
        message: str,
        actor: User | None = None,
        payout_method: str = "",
        rail_result: RailResult | None = None,
    ) -> NoReturn:
        """Persist a settlement failure, escalate it, then raise it."""
        if payout_method:
            payment.payout_method = payout_method
        if rail_result is not None:
            payment.provider_response = rail_result.raw_response
            if rail_result.timed_out:
                payment.set_meta(RAIL_TIMED_OUT, True, save=False)

        PaymentTransitionService.transition(
            payment,
            PaymentEventAction.FAILED,
            actor=actor,
            kind=kind,
            reason=message,
        )

        cls.get_logger().warning(
            "Payment settlement failed",
            extra={
                "payment_id": str(payment.id),
                "failure_kind": kind,
                "error": message,
            },
        )

        event = FAILURE_EVENTS[kind]
        if kind == FailureKind.INSUFFICIENT_FUNDS:
            SettlementNotifier.notify("company", event, payment)
        SettlementNotifier.notify("admin", event, payment)

        raise SETTLEMENT_ERRORS_BY_KIND[kind](message, payment_id=payment.id)

    @classmethod
    def settle_all(
        cls,
        filters: dict[str, Any] | None = None,
        actor: User | None = None,
        limit: int | None = None,
    ) -> BulkSettlementResult:
        """
        Settle every PROCESSING payment matching the filters.

        Each payment is settled independently (no outer transaction); a
        failure is recorded in its outcome and never affects siblings.

        Args:
            filters: See PaymentService.filter_payments
            actor: Admin running the batch
            limit: Max payments per run (default SETTLEMENT_BATCH_SIZE)
        """
        limit = limit or getattr(settings, "SETTLEMENT_BATCH_SIZE", 500)
        queryset = PaymentService.filter_payments(
            Payment.objects.with_status(PaymentStatus.PROCESSING),
            {k: v for k, v in (filters or {}).items() if k != "status"},
        )
        payment_ids = list(
            queryset.order_by("created_at").values_list("id", flat=True)[:limit]
        )

        cls.get_logger().info(
            "Starting bulk settlement",
            extra={"payment_count": len(payment_ids), "filters": str(filters or {})},
        )

        result = BulkSettlementResult()
        for payment_id in payment_ids:
            try:
                outcome = cls.settle(payment_id, actor=actor)
            except BaseApplicationError as e:
                outcome = SettlementOutcome.from_error(payment_id, e)
            except Exception as e:
                cls.get_logger().error(
                    f"Unexpected error settling payment: {type(e).__name__}",
                    extra={"payment_id": str(payment_id)},
                    exc_info=True,
                )
                outcome = SettlementOutcome.from_error(payment_id, e)
            result.outcomes.append(outcome)

        cls.get_logger().info(
            "Bulk settlement finished",
            extra={"succeeded": result.succeeded, "failed": result.failed},
        )
        return result

    @classmethod
    def retry(cls, payment_id: uuid.UUID | str, actor: User | None = None) -> Payment:
        """
        Move a non-disputed FAILED payment back to PROCESSING.

        settlement_attempt is bumped so the next rail call uses a fresh
        idempotency key, unless the last failure was a rail timeout: then
        the old key is reused so the rail can de-duplicate a transfer that
        may already have gone through.

        Raises:
            PaymentNotFoundError: Unknown payment
            InvalidStateTransitionError: Payment is disputed or not failed
        """
        payment = PaymentTransitionService.get_payment(payment_id)
        if payment.is_disputed:
            raise InvalidStateTransitionError(
                "Disputed payments cannot be retried",
                error_code="DISPUTED_PAYMENT",
                details={"payment_id": str(payment.id)},
            )

        new_attempt = not payment.get_meta(RAIL_TIMED_OUT, False)
        payment.delete_meta(RAIL_TIMED_OUT, save=False)
        PaymentTransitionService.transition(
            payment,
            PaymentEventAction.RETRIED,
            actor=actor,
            new_attempt=new_attempt,
        )
        return payment


__all__ = [
    "BelowMinimumAmountError",
    "BulkSettlementResult",
    "SettlementOutcome",
    "SettlementService",
]
