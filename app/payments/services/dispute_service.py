"""
Dispute manager.

A company disputes a payment it owes before it is paid. The payment becomes
FAILED with failure_kind=disputed, which is terminal: disputed payments are
never retried or settled.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from core.services import BaseService
from payments.exceptions import PaymentValidationError, UnauthorizedError
from payments.models import Payment
from payments.services.notifier import SettlementNotifier
from payments.services.transition_service import PaymentTransitionService
from payments.state_machines import PaymentEventAction

if TYPE_CHECKING:
    from authentication.models import User


class DisputeService(BaseService):
    """Service for company disputes."""

    @classmethod
    def dispute(
        cls,
        payment_id: uuid.UUID | str,
        actor_company_id: uuid.UUID | str,
        reason: str,
        actor: User | None = None,
    ) -> Payment:
        """
        Dispute a pending or processing payment.

        Effects:
            status=failed, failure_kind=disputed, failure_reason=reason,
            description="Disputed: <reason>"; creator and admins notified.

        Raises:
            PaymentValidationError: Blank reason
            PaymentNotFoundError: Unknown payment
            UnauthorizedError: Payment belongs to another company
            InvalidStateTransitionError: Payment is not pending/processing
            ConcurrencyConflictError: Status changed while disputing
        """
        reason = (reason or "").strip()
        if not reason:
            raise PaymentValidationError(
                "A reason is required to dispute a payment",
                error_code="DISPUTE_REASON_REQUIRED",
            )

        payment = PaymentTransitionService.get_payment(payment_id)
        if str(payment.company_id) != str(actor_company_id):
            cls.get_logger().warning(
                "Dispute rejected: company does not own payment",
                extra={
                    "payment_id": str(payment.id),
                    "actor_company_id": str(actor_company_id),
                },
            )
            raise UnauthorizedError(
                "Payment belongs to another company",
                details={"payment_id": str(payment.id)},
            )

        PaymentTransitionService.transition(
            payment,
            PaymentEventAction.DISPUTED,
            actor=actor,
            reason=reason,
        )

        SettlementNotifier.notify("creator", "disputed", payment, {"reason": reason})
        SettlementNotifier.notify("admin", "disputed", payment, {"reason": reason})
        return payment
