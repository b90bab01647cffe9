"""
Status transition engine for payments.

Every payment status change goes through PaymentTransitionService so that:

- Only legal transitions happen (django-fsm raises TransitionNotAllowed,
  translated to InvalidStateTransitionError)
- Every write is a compare-and-swap on the status read just before it
  (ConcurrentTransitionMixin raises ConcurrentTransition, translated to
  ConcurrencyConflictError)
- A PaymentEvent audit row is written in the same transaction

Usage:
    from payments.services.transition_service import PaymentTransitionService
    from payments.state_machines import FailureKind, PaymentEventAction

    payment = PaymentTransitionService.get_payment(payment_id)
    PaymentTransitionService.transition(
        payment,
        PaymentEventAction.FAILED,
        actor=admin,
        kind=FailureKind.INSUFFICIENT_FUNDS,
        reason="Balance too low",
    )
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError
from django.db import transaction

from django_fsm import ConcurrentTransition, TransitionNotAllowed

from core.services import BaseService
from payments.exceptions import (
    ConcurrencyConflictError,
    InvalidStateTransitionError,
    PaymentNotFoundError,
)
from payments.models import Payment, PaymentEvent
from payments.state_machines import PaymentEventAction

if TYPE_CHECKING:
    from authentication.models import User


# Payment FSM method for each audited action.
TRANSITION_METHODS = {
    PaymentEventAction.APPROVED: "start_processing",
    PaymentEventAction.FAILED: "fail",
    PaymentEventAction.DISPUTED: "dispute",
    PaymentEventAction.COMPLETED: "complete",
    PaymentEventAction.RETRIED: "retry",
}


class PaymentTransitionService(BaseService):
    """
    The single writer of payment status.

    Methods:
        get_payment: Load a payment or raise PaymentNotFoundError
        transition: Apply an FSM transition with compare-and-swap and audit
    """

    @classmethod
    def get_payment(cls, payment_id: uuid.UUID | str) -> Payment:
        """
        Load a payment by id.

        Raises:
            PaymentNotFoundError: No payment with that id (or a malformed id)
        """
        try:
            return Payment.objects.select_related("company", "creator").get(
                id=payment_id
            )
        except (Payment.DoesNotExist, DjangoValidationError, ValueError):
            raise PaymentNotFoundError(
                f"Payment {payment_id} not found",
                details={"payment_id": str(payment_id)},
            )

    @classmethod
    def transition(
        cls,
        payment: Payment,
        action: str,
        actor: User | None = None,
        message: str = "",
        **kwargs,
    ) -> Payment:
        """
        Apply a status transition and persist it atomically.

        Args:
            payment: Payment as read by the caller; its status is the
                expected value for the compare-and-swap
            action: PaymentEventAction naming the transition
            actor: User responsible, None for system jobs
            message: Extra text for the audit row
            **kwargs: Arguments for the Payment transition method

        Raises:
            InvalidStateTransitionError: Transition not legal from current status
            ConcurrencyConflictError: Status changed since the payment was read
        """
        method = getattr(payment, TRANSITION_METHODS[action])
        from_status = payment.status

        try:
            with transaction.atomic():
                method(**kwargs)
                payment.save()
                PaymentEvent.objects.create(
                    payment=payment,
                    action=action,
                    from_status=from_status,
                    to_status=payment.status,
                    actor=actor,
                    failure_kind=payment.failure_kind,
                    message=message or payment.failure_reason,
                )
        except TransitionNotAllowed:
            cls.get_logger().warning(
                "Payment transition not allowed",
                extra={
                    "payment_id": str(payment.id),
                    "action": action,
                    "status": from_status,
                    "failure_kind": payment.failure_kind,
                },
            )
            raise InvalidStateTransitionError(
                f"Transition '{action}' is not allowed for a {from_status} payment"
                + (f" ({payment.failure_kind})" if payment.failure_kind else ""),
                details={
                    "payment_id": str(payment.id),
                    "current_status": from_status,
                    "action": action,
                },
            )
        except ConcurrentTransition:
            cls.get_logger().warning(
                "Payment status changed concurrently",
                extra={
                    "payment_id": str(payment.id),
                    "action": action,
                    "expected_status": from_status,
                },
            )
            raise ConcurrencyConflictError(
                f"Payment {payment.id} was modified by another process",
                details={
                    "payment_id": str(payment.id),
                    "expected_status": from_status,
                    "action": action,
                },
            )

        cls.get_logger().info(
            "Payment transitioned",
            extra={
                "payment_id": str(payment.id),
                "action": action,
                "from_status": from_status,
                "status": payment.status,
                "failure_kind": payment.failure_kind,
                "actor_id": getattr(actor, "pk", None),
            },
        )
        return payment
