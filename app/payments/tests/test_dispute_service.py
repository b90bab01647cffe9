"""
Tests for DisputeService.

A dispute moves a pending or processing payment to FAILED with
failure_kind=disputed. Disputed payments leave every earnings bucket except
"disputed" and can never be retried or settled.
"""

import uuid
from decimal import Decimal

import pytest

from notifications.models import Notification
from payments.exceptions import (
    InvalidStateTransitionError,
    PaymentNotFoundError,
    PaymentValidationError,
    UnauthorizedError,
)
from payments.models import PaymentEvent
from payments.services import DisputeService, EarningsService
from payments.state_machines import FailureKind, PaymentEventAction, PaymentStatus
from payments.tests.conftest import get_fresh_payment
from payments.tests.factories import PaymentFactory


@pytest.mark.django_db
class TestDispute:
    def test_dispute_100_dollar_pending_payment(self, company, creator):
        payment = PaymentFactory(
            company=company, creator=creator, gross_amount=Decimal("107.53")
        )
        assert payment.net_amount == Decimal("100.00")
        before = EarningsService.for_creator(creator)
        assert before.total == Decimal("100.00")
        assert before.pending == Decimal("100.00")

        DisputeService.dispute(
            payment.id, actor_company_id=company.id, reason="Late delivery"
        )

        fresh = get_fresh_payment(payment.id)
        assert fresh.status == PaymentStatus.FAILED
        assert fresh.failure_kind == FailureKind.DISPUTED
        assert fresh.failure_reason == "Late delivery"
        assert fresh.description == "Disputed: Late delivery"

        after = EarningsService.for_creator(creator)
        assert after.total == before.total - Decimal("100.00")
        assert after.pending == Decimal("0.00")
        assert after.disputed == before.disputed + Decimal("100.00")

    def test_dispute_processing_payment(self, processing_payment, company):
        DisputeService.dispute(
            processing_payment.id, actor_company_id=company.id, reason="Wrong creator"
        )

        assert get_fresh_payment(processing_payment.id).is_disputed is True

    def test_dispute_records_actor(self, pending_payment, company):
        DisputeService.dispute(
            pending_payment.id,
            actor_company_id=company.id,
            reason="Late delivery",
            actor=company.user,
        )

        event = PaymentEvent.objects.get(payment=pending_payment)
        assert event.action == PaymentEventAction.DISPUTED
        assert event.actor == company.user
        assert event.message == "Late delivery"

    def test_reason_is_trimmed(self, pending_payment, company):
        payment = DisputeService.dispute(
            pending_payment.id, actor_company_id=company.id, reason="  Late  "
        )

        assert payment.failure_reason == "Late"

    @pytest.mark.parametrize("reason", ["", "   ", None])
    def test_blank_reason_rejected(self, pending_payment, company, reason):
        with pytest.raises(PaymentValidationError) as exc_info:
            DisputeService.dispute(
                pending_payment.id, actor_company_id=company.id, reason=reason
            )

        assert exc_info.value.error_code == "DISPUTE_REASON_REQUIRED"
        assert get_fresh_payment(pending_payment.id).status == PaymentStatus.PENDING

    def test_other_company_cannot_dispute(self, pending_payment, other_company):
        with pytest.raises(UnauthorizedError):
            DisputeService.dispute(
                pending_payment.id, actor_company_id=other_company.id, reason="Mine now"
            )

        assert get_fresh_payment(pending_payment.id).status == PaymentStatus.PENDING

    def test_unknown_payment(self, company):
        with pytest.raises(PaymentNotFoundError):
            DisputeService.dispute(uuid.uuid4(), actor_company_id=company.id, reason="x")

    def test_completed_payment_cannot_be_disputed(self, completed_payment, company):
        with pytest.raises(InvalidStateTransitionError):
            DisputeService.dispute(
                completed_payment.id, actor_company_id=company.id, reason="Too late"
            )

    def test_dispute_is_terminal(self, disputed_payment, company):
        with pytest.raises(InvalidStateTransitionError):
            DisputeService.dispute(
                disputed_payment.id, actor_company_id=company.id, reason="Again"
            )

    def test_dispute_notifies_creator_and_admin(self, pending_payment, company, admin_user):
        DisputeService.dispute(
            pending_payment.id, actor_company_id=company.id, reason="Late delivery"
        )

        creator_note = Notification.objects.get(
            recipient=pending_payment.creator,
            notification_type__key="payment_disputed",
        )
        assert "Late delivery" in creator_note.body
        assert "Acme Inc." in creator_note.body
        assert Notification.objects.filter(
            recipient=admin_user, notification_type__key="payment_disputed"
        ).exists()
