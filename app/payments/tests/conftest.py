"""
Pytest fixtures for payment tests.

This module provides fixtures for the marketplace actors, payments in
various states, and a mock payment rail injected into SettlementService.

Usage:
    def test_settle(processing_payment, rail):
        SettlementService.settle(processing_payment.id)
        rail.attempt.assert_called_once()
"""

import uuid

import pytest
from rest_framework.test import APIClient

from authentication.tests.factories import (
    AdminFactory,
    CompanyProfileFactory,
    CreatorFactory,
)
from payments.adapters import RailResult
from payments.models import Payment
from payments.services import SettlementService
from payments.state_machines import FailureKind, PaymentStatus
from payments.tests.factories import PaymentFactory, PaymentMethodFactory


def get_fresh_payment(payment_id) -> Payment:
    """
    Get a fresh Payment instance from the database.

    The status FSMField is protected, so refresh_from_db() cannot reload
    it; a new instance shows the current database state.
    """
    return Payment.objects.get(id=payment_id)


# =============================================================================
# Actors
# =============================================================================


@pytest.fixture
def creator(db):
    """A creator with a connected e-transfer payout method as default."""
    creator = CreatorFactory()
    PaymentMethodFactory(user=creator, etransfer=True)
    return creator


@pytest.fixture
def creator_without_method(db):
    return CreatorFactory()


@pytest.fixture
def company(db):
    return CompanyProfileFactory(legal_name="Acme Inc.")


@pytest.fixture
def other_company(db):
    return CompanyProfileFactory(legal_name="Globex LLC")


@pytest.fixture
def admin_user(db):
    return AdminFactory()


# =============================================================================
# Payment Rail
# =============================================================================


@pytest.fixture
def rail(mocker):
    """
    Mock payment rail that accepts every transfer.

    Change rail.attempt.return_value or side_effect to simulate failures.
    """
    mock_rail = mocker.Mock()
    mock_rail.attempt.side_effect = lambda **kwargs: RailResult.ok(
        f"tr_mock_{uuid.uuid4().hex[:8]}",
        raw_response={"amount": str(kwargs["amount"])},
    )
    SettlementService.set_payment_rail(mock_rail)
    yield mock_rail
    SettlementService.set_payment_rail(None)


# =============================================================================
# Payments
# =============================================================================


@pytest.fixture
def pending_payment(db, company, creator):
    """A $100 gross ($93 net) pending payment."""
    return PaymentFactory(company=company, creator=creator)


@pytest.fixture
def processing_payment(db, company, creator):
    return PaymentFactory(
        company=company, creator=creator, status=PaymentStatus.PROCESSING
    )


@pytest.fixture
def completed_payment(db, company, creator):
    return PaymentFactory(
        company=company,
        creator=creator,
        status=PaymentStatus.COMPLETED,
        provider_transaction_id="tr_already_paid",
    )


@pytest.fixture
def failed_payment(db, company, creator):
    """A payment that failed for insufficient funds and can be retried."""
    return PaymentFactory(
        company=company,
        creator=creator,
        status=PaymentStatus.FAILED,
        failure_kind=FailureKind.INSUFFICIENT_FUNDS,
        failure_reason="Funding balance too low",
    )


@pytest.fixture
def disputed_payment(db, company, creator):
    return PaymentFactory(
        company=company,
        creator=creator,
        status=PaymentStatus.FAILED,
        failure_kind=FailureKind.DISPUTED,
        failure_reason="Deliverables not received",
        description="Disputed: Deliverables not received",
    )


# =============================================================================
# API Clients
# =============================================================================


@pytest.fixture
def api_client():
    return APIClient()


@pytest.fixture
def creator_client(creator):
    client = APIClient()
    client.force_authenticate(user=creator)
    return client


@pytest.fixture
def company_client(company):
    client = APIClient()
    client.force_authenticate(user=company.user)
    return client


@pytest.fixture
def admin_client(admin_user):
    client = APIClient()
    client.force_authenticate(user=admin_user)
    return client
