"""
Payment-specific exceptions for settlement operations.

Every payment failure is a domain exception rooted in
core.exceptions.BaseApplicationError, so views can translate it to an API
response with to_dict().

Exception Hierarchy:
    ValidationError
    └── PaymentValidationError - Bad input, missing payout method
        └── PaymentMethodSetupRequiredError - Method exists but is not usable yet
    PermissionDeniedError
    └── UnauthorizedError - Actor may not touch this payment
    NotFoundError
    └── PaymentNotFoundError - Payment id does not exist
    ConflictError
    ├── ConcurrencyConflictError - Status changed since it was read
    └── InvalidStateTransitionError - Transition not legal from current status
    SettlementError (base for rail outcomes, carries payment_id/failure_kind)
    ├── InsufficientFundsError - Funding balance too low
    ├── BelowMinimumAmountError - Net amount under the method minimum
    └── GenericSettlementError - Any other rail failure, including timeouts

Usage:
    from payments.exceptions import InsufficientFundsError

    raise InsufficientFundsError(
        "Funding account balance too low",
        payment_id=payment.id,
    )
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from payments.state_machines import FailureKind

if TYPE_CHECKING:
    from typing import Any


# =============================================================================
# Validation & Lookup
# =============================================================================


class PaymentValidationError(ValidationError):
    """
    Raised when a payment operation receives invalid input.

    Use for:
    - Blank dispute reason
    - Negative gross amount or a fee rate outside [0, 1]
    - Creator has no payout method (error_code NO_PAYOUT_METHOD)
    - Payment method missing fields required by its type
    - Attempt to rewrite a fee field after creation
    """

    default_error_code: str = "PAYMENT_VALIDATION_ERROR"


class PaymentMethodSetupRequiredError(PaymentValidationError):
    """
    Raised when the creator's default payout method is not usable yet.

    An e-transfer method needs a connected payout account before money
    can be sent to it.
    """

    default_error_code: str = "PAYMENT_METHOD_SETUP_REQUIRED"


class UnauthorizedError(PermissionDeniedError):
    """
    Raised when the acting user may not perform a payment operation.

    Example:
        if payment.company_id != actor_company_id:
            raise UnauthorizedError(
                "Payment belongs to another company",
                details={"payment_id": str(payment.id)},
            )
    """

    default_error_code: str = "UNAUTHORIZED"


class PaymentNotFoundError(NotFoundError):
    """Raised when a payment id does not exist."""

    default_error_code: str = "PAYMENT_NOT_FOUND"


# =============================================================================
# State Conflicts
# =============================================================================


class ConcurrencyConflictError(ConflictError):
    """
    Raised when a status write loses a compare-and-swap.

    The payment's status changed between the read and the write, so the
    write was rejected. The caller should re-read and decide again.
    """

    default_error_code: str = "CONCURRENCY_CONFLICT"


class InvalidStateTransitionError(ConflictError):
    """
    Raised when a status transition is not legal from the current status.

    Example:
        raise InvalidStateTransitionError(
            "Cannot dispute a completed payment",
            details={"current_status": "completed", "transition": "dispute"},
        )
    """

    default_error_code: str = "INVALID_STATE_TRANSITION"


# =============================================================================
# Settlement Outcomes
# =============================================================================


class SettlementError(BaseApplicationError):
    """
    Base for settlement failures reported after the payment was marked failed.

    Attributes:
        payment_id: Payment whose settlement failed
        failure_kind: FailureKind persisted on the payment
    """

    default_error_code: str = "SETTLEMENT_ERROR"
    failure_kind: str = FailureKind.OTHER

    def __init__(
        self,
        message: str,
        payment_id: Any = None,
        error_code: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        self.payment_id = payment_id
        merged = {"failure_kind": str(self.failure_kind)}
        if payment_id is not None:
            merged["payment_id"] = str(payment_id)
        merged.update(details or {})
        super().__init__(message, error_code=error_code, details=merged)


class InsufficientFundsError(SettlementError):
    """Raised when the funding source cannot cover the payout."""

    default_error_code: str = "INSUFFICIENT_FUNDS"
    failure_kind: str = FailureKind.INSUFFICIENT_FUNDS


class BelowMinimumAmountError(SettlementError):
    """Raised when the net amount is below the payout method minimum."""

    default_error_code: str = "BELOW_MINIMUM_AMOUNT"
    failure_kind: str = FailureKind.BELOW_MINIMUM_AMOUNT


class GenericSettlementError(SettlementError):
    """Raised for any other rail failure, including timeouts."""

    default_error_code: str = "SETTLEMENT_FAILED"
    failure_kind: str = FailureKind.OTHER


SETTLEMENT_ERRORS_BY_KIND: dict[str, type[SettlementError]] = {
    FailureKind.INSUFFICIENT_FUNDS: InsufficientFundsError,
    FailureKind.BELOW_MINIMUM_AMOUNT: BelowMinimumAmountError,
    FailureKind.OTHER: GenericSettlementError,
}
