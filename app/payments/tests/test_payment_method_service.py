"""
Tests for PaymentMethodService.

Exactly one payout method per creator is the default; registering,
changing the default and deleting must keep that true.
"""

import pytest
from django.contrib.auth import get_user_model

from core.exceptions import NotFoundError
from payments.exceptions import PaymentMethodSetupRequiredError, PaymentValidationError
from payments.models import PaymentMethod
from payments.services import PaymentMethodService
from payments.state_machines import PayoutMethodType
from payments.tests.factories import PaymentMethodFactory


def default_count(user) -> int:
    return PaymentMethod.objects.filter(user=user, is_default=True).count()


@pytest.mark.django_db
class TestRegister:
    def test_first_method_becomes_default(self, creator_without_method):
        method = PaymentMethodService.register(
            creator_without_method,
            PayoutMethodType.PAYPAL,
            paypal_email="me@example.com",
        )

        assert method.is_default is True

    def test_later_methods_are_not_default(self, creator_without_method):
        first = PaymentMethodService.register(
            creator_without_method, PayoutMethodType.PAYPAL, paypal_email="a@example.com"
        )
        second = PaymentMethodService.register(
            creator_without_method,
            PayoutMethodType.CRYPTO,
            crypto_wallet_address="0xabc",
            crypto_network="ethereum",
        )

        assert second.is_default is False
        assert PaymentMethodService.get_default(creator_without_method) == first

    def test_first_registration_locks_the_user_row(self, creator_without_method, mocker):
        """Two first registrations queue on the user row, not on zero methods."""
        lock = mocker.spy(get_user_model().objects, "select_for_update")

        PaymentMethodService.register(
            creator_without_method, PayoutMethodType.PAYPAL, paypal_email="a@example.com"
        )

        lock.assert_called_once_with()

    def test_missing_required_fields(self, creator_without_method):
        with pytest.raises(PaymentValidationError) as exc_info:
            PaymentMethodService.register(
                creator_without_method,
                PayoutMethodType.WIRE,
                bank_routing_number="021000021",
            )

        assert exc_info.value.error_code == "PAYMENT_METHOD_INCOMPLETE"
        assert exc_info.value.details["missing"] == ["bank_account_number"]
        assert not PaymentMethod.objects.filter(user=creator_without_method).exists()

    def test_unknown_payout_method(self, creator_without_method):
        with pytest.raises(PaymentValidationError) as exc_info:
            PaymentMethodService.register(creator_without_method, "cheque")

        assert exc_info.value.error_code == "UNKNOWN_PAYOUT_METHOD"

    def test_unknown_field(self, creator_without_method):
        with pytest.raises(PaymentValidationError):
            PaymentMethodService.register(
                creator_without_method,
                PayoutMethodType.PAYPAL,
                paypal_email="a@example.com",
                is_default=False,
            )


@pytest.mark.django_db
class TestSetDefault:
    def test_switch_default(self, creator_without_method):
        first = PaymentMethodFactory(user=creator_without_method)
        second = PaymentMethodFactory(user=creator_without_method, is_default=False)

        PaymentMethodService.set_default(creator_without_method, second.id)

        assert default_count(creator_without_method) == 1
        assert PaymentMethodService.get_default(creator_without_method) == second
        first.refresh_from_db()
        assert first.is_default is False

    def test_set_default_is_idempotent(self, creator_without_method):
        method = PaymentMethodFactory(user=creator_without_method)

        PaymentMethodService.set_default(creator_without_method, method.id)

        assert default_count(creator_without_method) == 1

    def test_cannot_set_another_users_method(self, creator_without_method):
        other = PaymentMethodFactory()

        with pytest.raises(NotFoundError):
            PaymentMethodService.set_default(creator_without_method, other.id)

        other.refresh_from_db()
        assert other.is_default is True


@pytest.mark.django_db
class TestDelete:
    def test_deleting_default_promotes_most_recent_complete(
        self, creator_without_method
    ):
        default = PaymentMethodFactory(user=creator_without_method)
        older = PaymentMethodFactory(user=creator_without_method, is_default=False)
        newer = PaymentMethodFactory(user=creator_without_method, is_default=False)

        new_default = PaymentMethodService.delete(creator_without_method, default.id)

        assert new_default == newer
        assert default_count(creator_without_method) == 1
        older.refresh_from_db()
        assert older.is_default is False

    def test_incomplete_method_is_skipped_for_promotion(self, creator_without_method):
        default = PaymentMethodFactory(user=creator_without_method)
        complete = PaymentMethodFactory(user=creator_without_method, is_default=False)
        PaymentMethodFactory(
            user=creator_without_method,
            is_default=False,
            payout_method=PayoutMethodType.WIRE,
            paypal_email="",
        )

        new_default = PaymentMethodService.delete(creator_without_method, default.id)

        assert new_default == complete

    def test_deleting_non_default_keeps_default(self, creator_without_method):
        default = PaymentMethodFactory(user=creator_without_method)
        other = PaymentMethodFactory(user=creator_without_method, is_default=False)

        new_default = PaymentMethodService.delete(creator_without_method, other.id)

        assert new_default == default

    def test_deleting_last_method(self, creator_without_method):
        method = PaymentMethodFactory(user=creator_without_method)

        assert PaymentMethodService.delete(creator_without_method, method.id) is None
        assert PaymentMethodService.get_default(creator_without_method) is None


@pytest.mark.django_db
class TestUpdate:
    def test_update_destination(self, creator_without_method):
        method = PaymentMethodFactory(user=creator_without_method)

        PaymentMethodService.update(
            creator_without_method, method.id, paypal_email="new@example.com"
        )

        method.refresh_from_db()
        assert method.paypal_email == "new@example.com"

    def test_cannot_blank_required_field(self, creator_without_method):
        method = PaymentMethodFactory(user=creator_without_method)

        with pytest.raises(PaymentValidationError) as exc_info:
            PaymentMethodService.update(creator_without_method, method.id, paypal_email="")

        assert exc_info.value.error_code == "PAYMENT_METHOD_INCOMPLETE"
        method.refresh_from_db()
        assert method.paypal_email != ""


@pytest.mark.django_db
class TestSettlementMethod:
    def test_no_method(self, creator_without_method):
        with pytest.raises(PaymentValidationError) as exc_info:
            PaymentMethodService.get_settlement_method(creator_without_method)

        assert exc_info.value.error_code == "NO_PAYOUT_METHOD"

    def test_etransfer_requires_setup_until_attached(self, creator_without_method):
        method = PaymentMethodService.register(
            creator_without_method,
            PayoutMethodType.ETRANSFER,
            payout_email="me@example.com",
        )

        with pytest.raises(PaymentMethodSetupRequiredError):
            PaymentMethodService.get_settlement_method(creator_without_method)

        PaymentMethodService.attach_external_account(
            creator_without_method, method.id, "acct_42"
        )

        assert (
            PaymentMethodService.get_settlement_method(creator_without_method).destination
            == "acct_42"
        )

    def test_list_methods_default_first(self, creator_without_method):
        PaymentMethodFactory(user=creator_without_method, is_default=False)
        default = PaymentMethodFactory(user=creator_without_method)

        methods = list(PaymentMethodService.list_methods(creator_without_method))

        assert methods[0] == default
        assert len(methods) == 2
