"""
Tests for concurrent status changes.

Two settlements racing on the same payment must produce exactly one
completion; the loser gets ConcurrencyConflictError. The race is made
deterministic by having the mocked rail start a second settlement while
the first one is still waiting on the rail.
"""

import pytest

from payments.adapters import RailResult
from payments.exceptions import ConcurrencyConflictError
from payments.models import PaymentEvent
from payments.services import DisputeService, SettlementService
from payments.state_machines import FailureKind, PaymentEventAction, PaymentStatus
from payments.tests.conftest import get_fresh_payment


@pytest.mark.django_db
class TestConcurrentSettlement:
    def test_concurrent_settles_complete_once(self, processing_payment, rail):
        inner_outcomes = []

        def attempt(**kwargs):
            # The first rail call starts a competing settlement
            if not inner_outcomes:
                inner_outcomes.append(None)
                inner_outcomes[0] = SettlementService.settle(kwargs["payment_id"])
            return RailResult.ok("tr_shared", raw_response={"id": "tr_shared"})

        rail.attempt.side_effect = attempt

        with pytest.raises(ConcurrencyConflictError):
            SettlementService.settle(processing_payment.id)

        assert inner_outcomes[0].success is True
        assert rail.attempt.call_count == 2
        keys = {call.kwargs["idempotency_key"] for call in rail.attempt.call_args_list}
        assert len(keys) == 1

        payment = get_fresh_payment(processing_payment.id)
        assert payment.status == PaymentStatus.COMPLETED
        assert payment.provider_transaction_id == "tr_shared"
        assert (
            PaymentEvent.objects.filter(
                payment=processing_payment, action=PaymentEventAction.COMPLETED
            ).count()
            == 1
        )

    def test_dispute_during_settlement_wins(self, processing_payment, rail):
        def attempt(**kwargs):
            DisputeService.dispute(
                kwargs["payment_id"],
                actor_company_id=processing_payment.company_id,
                reason="Cancelled mid-flight",
            )
            return RailResult.ok("tr_late")

        rail.attempt.side_effect = attempt

        with pytest.raises(ConcurrencyConflictError):
            SettlementService.settle(processing_payment.id)

        payment = get_fresh_payment(processing_payment.id)
        assert payment.status == PaymentStatus.FAILED
        assert payment.failure_kind == FailureKind.DISPUTED
        assert payment.provider_transaction_id is None
