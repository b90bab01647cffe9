"""
Tests for role-scoped payment services.

Every capability is bound to a role; using one the user's role lacks
raises UnauthorizedError before anything is read or written.
"""

from decimal import Decimal

import pytest
from django.contrib.auth.models import AnonymousUser

from authentication.tests.factories import CompanyUserFactory, CreatorFactory, UserFactory
from payments.exceptions import PaymentValidationError, UnauthorizedError
from payments.services import (
    AdminPaymentService,
    CompanyPaymentService,
    CreatorPaymentService,
    PlatformSettingsService,
    for_user,
)
from payments.state_machines import PaymentStatus, PayoutMethodType
from payments.tests.conftest import get_fresh_payment
from payments.tests.factories import PaymentFactory


@pytest.mark.django_db
class TestRoleResolution:
    def test_for_user_picks_role_service(self, creator, company, admin_user):
        assert isinstance(for_user(creator), CreatorPaymentService)
        assert isinstance(for_user(company.user), CompanyPaymentService)
        assert isinstance(for_user(admin_user), AdminPaymentService)

    def test_staff_creator_is_admin(self):
        assert isinstance(for_user(UserFactory(is_staff=True)), AdminPaymentService)

    def test_anonymous_rejected(self):
        with pytest.raises(UnauthorizedError):
            for_user(AnonymousUser())

    def test_creator_cannot_use_admin_service(self, creator):
        with pytest.raises(UnauthorizedError):
            AdminPaymentService(creator)

    def test_company_cannot_use_creator_service(self, company):
        with pytest.raises(UnauthorizedError):
            CreatorPaymentService(company.user)

    def test_company_user_without_profile(self):
        with pytest.raises(UnauthorizedError) as exc_info:
            CompanyPaymentService(CompanyUserFactory())

        assert exc_info.value.error_code == "COMPANY_PROFILE_REQUIRED"


@pytest.mark.django_db
class TestCreatorPaymentService:
    def test_lists_only_own_payments(self, creator):
        mine = PaymentFactory(creator=creator)
        other = PaymentFactory(creator=CreatorFactory())

        payments = list(
            CreatorPaymentService(creator).list_payments({"creator_id": other.creator_id})
        )

        assert payments == [mine]

    def test_status_filter(self, creator):
        PaymentFactory(creator=creator)
        processing = PaymentFactory(creator=creator, status=PaymentStatus.PROCESSING)

        payments = list(
            CreatorPaymentService(creator).list_payments(
                {"status": [PaymentStatus.PROCESSING]}
            )
        )

        assert payments == [processing]

    def test_unknown_status_rejected(self, creator):
        with pytest.raises(PaymentValidationError):
            CreatorPaymentService(creator).list_payments({"status": "lost"})

    def test_earnings_summary(self, creator):
        PaymentFactory(creator=creator)

        summary = CreatorPaymentService(creator).get_earnings_summary()

        assert summary.pending == Decimal("93.00")

    def test_manage_payment_methods(self, creator):
        service = CreatorPaymentService(creator)
        added = service.add_payment_method(
            PayoutMethodType.PAYPAL, paypal_email="me@example.com"
        )
        service.set_default_payment_method(added.id)

        assert service.list_payment_methods()[0] == added
        new_default = service.remove_payment_method(added.id)
        assert new_default is not None
        assert new_default.payout_method == PayoutMethodType.ETRANSFER


@pytest.mark.django_db
class TestCompanyPaymentService:
    def test_lists_only_own_payments(self, company, other_company):
        mine = PaymentFactory(company=company)
        PaymentFactory(company=other_company)

        service = CompanyPaymentService(company.user)

        assert list(service.list_payments({"company_id": other_company.id})) == [mine]

    def test_approve_own_payment(self, company, pending_payment):
        CompanyPaymentService(company.user).approve(pending_payment.id)

        fresh = get_fresh_payment(pending_payment.id)
        assert fresh.status == PaymentStatus.PROCESSING
        assert fresh.approved_at is not None

    def test_cannot_approve_other_company_payment(self, other_company, pending_payment):
        with pytest.raises(UnauthorizedError):
            CompanyPaymentService(other_company.user).approve(pending_payment.id)

        assert get_fresh_payment(pending_payment.id).status == PaymentStatus.PENDING

    def test_dispute(self, company, pending_payment):
        CompanyPaymentService(company.user).dispute(pending_payment.id, "Late")

        fresh = get_fresh_payment(pending_payment.id)
        assert fresh.is_disputed is True
        assert fresh.events.get().actor == company.user


@pytest.mark.django_db
class TestAdminPaymentService:
    def test_sees_all_payments(self, admin_user):
        PaymentFactory()
        PaymentFactory()

        assert AdminPaymentService(admin_user).list_payments().count() == 2

    def test_search_filter(self, admin_user):
        match = PaymentFactory(description="Holiday campaign")
        PaymentFactory(description="Spring campaign")

        payments = list(
            AdminPaymentService(admin_user).list_payments({"search": "holiday"})
        )

        assert payments == [match]

    def test_settle_and_retry(self, admin_user, failed_payment, rail):
        service = AdminPaymentService(admin_user)

        service.retry(failed_payment.id)
        outcome = service.settle(failed_payment.id)

        assert outcome.success is True
        events = get_fresh_payment(failed_payment.id).events.all()
        assert all(event.actor == admin_user for event in events)

    def test_configure_updates_all_or_nothing(self, admin_user):
        service = AdminPaymentService(admin_user)

        values = service.configure(
            {"settlement_schedule": "daily", "minimum_payout_threshold": "10"}
        )
        assert values["settlement_schedule"] == "daily"
        assert values["minimum_payout_threshold"] == Decimal("10")

        with pytest.raises(PaymentValidationError):
            service.configure(
                {"settlement_schedule": "monthly", "payout_reserve_percentage": "500"}
            )

        assert PlatformSettingsService.get("settlement_schedule") == "daily"

    def test_funding_accounts(self, admin_user):
        service = AdminPaymentService(admin_user)
        account = service.create_funding_account(
            name="Ops", account_type="bank", status="active"
        )

        service.set_primary_funding_account(account.id)
        updated = service.set_funding_account_status(account.id, "disabled")

        assert updated.is_primary is False
        assert account.created_by == admin_user
