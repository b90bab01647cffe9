"""
Tests for payment rail adapters.

Stripe calls are mocked at stripe.Account.retrieve and stripe.Transfer.create;
no network access.
"""

from decimal import Decimal
from unittest.mock import MagicMock

import pytest
import stripe

from payments.adapters import (
    IdempotencyKeyGenerator,
    PaymentRail,
    PaymentRailRouter,
    SandboxRail,
    StripeConnectRail,
    classify_failure_message,
    get_payment_rail,
)
from payments.adapters.stripe_rail import to_cents
from payments.state_machines import FailureKind

PAYMENT_ID = "550e8400-e29b-41d4-a716-446655440000"


def attempt(rail, amount="93.00", key="settle:abc:1:deadbeef"):
    return rail.attempt(
        payment_id=PAYMENT_ID,
        amount=Decimal(amount),
        payout_method="etransfer",
        destination="acct_test_1",
        idempotency_key=key,
    )


# =============================================================================
# Helpers
# =============================================================================


class TestIdempotencyKeyGenerator:
    def test_format(self):
        key = IdempotencyKeyGenerator.generate("settle", PAYMENT_ID, 2)

        operation, entity, attempt_no, short_hash = key.split(":")
        assert operation == "settle"
        assert entity == PAYMENT_ID
        assert attempt_no == "2"
        assert len(short_hash) == 8

    def test_deterministic(self):
        assert IdempotencyKeyGenerator.generate(
            "settle", PAYMENT_ID, 1
        ) == IdempotencyKeyGenerator.generate("settle", PAYMENT_ID, 1)

    def test_attempt_changes_key(self):
        assert IdempotencyKeyGenerator.generate(
            "settle", PAYMENT_ID, 1
        ) != IdempotencyKeyGenerator.generate("settle", PAYMENT_ID, 2)


class TestClassifyFailureMessage:
    @pytest.mark.parametrize(
        "message,expected",
        [
            ("Insufficient funds in account", FailureKind.INSUFFICIENT_FUNDS),
            ("Platform balance too low", FailureKind.INSUFFICIENT_FUNDS),
            ("Amount below minimum", FailureKind.BELOW_MINIMUM_AMOUNT),
            ("Transfer amount too small", FailureKind.BELOW_MINIMUM_AMOUNT),
            ("Account closed", FailureKind.OTHER),
            ("", FailureKind.OTHER),
            (None, FailureKind.OTHER),
        ],
    )
    def test_classify(self, message, expected):
        assert classify_failure_message(message) == expected


class TestToCents:
    @pytest.mark.parametrize(
        "amount,cents",
        [("93.00", 9300), ("0.50", 50), ("10.005", 1001), ("1", 100)],
    )
    def test_to_cents(self, amount, cents):
        assert to_cents(Decimal(amount)) == cents


class TestGetPaymentRail:
    def test_default_is_sandbox(self, settings):
        settings.PAYMENT_RAIL_BACKEND = "sandbox"

        assert isinstance(get_payment_rail(), SandboxRail)

    def test_short_name(self, settings):
        settings.PAYMENT_RAIL_BACKEND = "stripe"

        assert isinstance(get_payment_rail(), StripeConnectRail)

    def test_dotted_path(self, settings):
        settings.PAYMENT_RAIL_BACKEND = "payments.adapters.sandbox_rail.SandboxRail"

        assert isinstance(get_payment_rail(), SandboxRail)

    def test_explicit_backend_wins(self, settings):
        settings.PAYMENT_RAIL_BACKEND = "stripe"

        assert isinstance(get_payment_rail("sandbox"), SandboxRail)

    def test_rails_satisfy_protocol(self):
        assert isinstance(SandboxRail(), PaymentRail)
        assert isinstance(StripeConnectRail(), PaymentRail)
        assert isinstance(PaymentRailRouter({}), PaymentRail)


# =============================================================================
# PaymentRailRouter
# =============================================================================


class TestPaymentRailRouter:
    @pytest.fixture
    def router(self):
        return PaymentRailRouter(
            {"etransfer": "stripe", "paypal": "sandbox", "wire": "sandbox"}
        )

    def test_rail_per_method(self, router):
        assert isinstance(router.rail_for("etransfer"), StripeConnectRail)
        assert isinstance(router.rail_for("paypal"), SandboxRail)

    def test_methods_sharing_a_backend_share_the_rail(self, router):
        assert router.rail_for("paypal") is router.rail_for("wire")

    def test_paypal_never_reaches_stripe(self, router, mocker):
        transfer_create = mocker.patch("stripe.Transfer.create")

        result = router.attempt(
            payment_id=PAYMENT_ID,
            amount=Decimal("93.00"),
            payout_method="paypal",
            destination="c@example.com",
            idempotency_key="settle:abc:1:deadbeef",
        )

        assert result.success is True
        assert result.raw_response["payout_method"] == "paypal"
        transfer_create.assert_not_called()

    def test_method_without_rail_fails(self, router):
        result = router.attempt(
            payment_id=PAYMENT_ID,
            amount=Decimal("93.00"),
            payout_method="crypto",
            destination="0xabc",
            idempotency_key="settle:abc:1:deadbeef",
        )

        assert result.success is False
        assert result.failure_kind == FailureKind.OTHER
        assert "crypto" in result.message

    def test_reads_table_from_settings(self, settings):
        settings.PAYMENT_RAILS = {"etransfer": "sandbox"}

        assert PaymentRailRouter().rails_by_method == {"etransfer": "sandbox"}

    def test_default_table_keeps_non_connected_methods_off_stripe(self, settings):
        for method in ("paypal", "wire", "crypto"):
            assert settings.PAYMENT_RAILS[method] == "sandbox"


# =============================================================================
# SandboxRail
# =============================================================================


class TestSandboxRail:
    def test_always_succeeds(self):
        result = attempt(SandboxRail())

        assert result.success is True
        assert result.transaction_id.startswith("sandbox_tr_")
        assert result.raw_response["amount"] == "93.00"
        assert result.raw_response["sandbox"] is True

    def test_repeated_key_replays_result(self):
        rail = SandboxRail()

        first = attempt(rail, key="settle:abc:1:aaaa")
        second = attempt(rail, key="settle:abc:1:aaaa")
        third = attempt(rail, key="settle:abc:2:bbbb")

        assert first.transaction_id == second.transaction_id
        assert third.transaction_id != first.transaction_id
        assert len(rail.executed) == 2


# =============================================================================
# StripeConnectRail
# =============================================================================


def stripe_error(error_class, message="Stripe error", code=None):
    if error_class is stripe.InvalidRequestError:
        return error_class(message, param="amount", code=code)
    return error_class(message, code=code)


class TestStripeConnectRail:
    @pytest.fixture
    def account_retrieve(self, mocker):
        return mocker.patch(
            "stripe.Account.retrieve", return_value=MagicMock(payouts_enabled=True)
        )

    @pytest.fixture
    def transfer_create(self, mocker, settings, account_retrieve):
        settings.STRIPE_SECRET_KEY = "sk_test_fake"
        return mocker.patch("stripe.Transfer.create")

    def test_checks_connected_account_first(self, transfer_create, account_retrieve):
        transfer_create.return_value = MagicMock(id="tr_1")

        attempt(StripeConnectRail())

        account_retrieve.assert_called_once_with("acct_test_1")

    def test_payouts_not_enabled(self, transfer_create, account_retrieve):
        account_retrieve.return_value = MagicMock(payouts_enabled=False)

        result = attempt(StripeConnectRail())

        assert result.success is False
        assert result.failure_kind == FailureKind.OTHER
        assert result.raw_response["code"] == "payouts_not_enabled"
        transfer_create.assert_not_called()

    def test_account_lookup_error(self, transfer_create, account_retrieve):
        account_retrieve.side_effect = stripe.APIConnectionError("Read timed out")

        result = attempt(StripeConnectRail())

        assert result.timed_out is True
        transfer_create.assert_not_called()

    @pytest.mark.parametrize(
        "payout_method,destination",
        [
            ("paypal", "c@example.com"),
            ("wire", "000123456789"),
            ("crypto", "0xabc"),
            ("etransfer", ""),
        ],
    )
    def test_non_connected_destination_is_refused(
        self, transfer_create, account_retrieve, payout_method, destination
    ):
        result = StripeConnectRail().attempt(
            payment_id=PAYMENT_ID,
            amount=Decimal("93.00"),
            payout_method=payout_method,
            destination=destination,
            idempotency_key="settle:abc:1:deadbeef",
        )

        assert result.success is False
        assert result.failure_kind == FailureKind.OTHER
        assert "connected account" in result.message
        account_retrieve.assert_not_called()
        transfer_create.assert_not_called()

    def test_success(self, transfer_create):
        transfer = MagicMock(id="tr_123")
        transfer.to_dict.return_value = {"id": "tr_123", "amount": 9300}
        transfer_create.return_value = transfer

        result = attempt(StripeConnectRail())

        assert result.success is True
        assert result.transaction_id == "tr_123"
        assert result.raw_response == {"id": "tr_123", "amount": 9300}
        kwargs = transfer_create.call_args.kwargs
        assert kwargs["amount"] == 9300
        assert kwargs["destination"] == "acct_test_1"
        assert kwargs["idempotency_key"] == "settle:abc:1:deadbeef"
        assert kwargs["metadata"] == {
            "payment_id": PAYMENT_ID,
            "payout_method": "etransfer",
        }

    def test_currency_from_settings(self, transfer_create, settings):
        settings.PAYMENT_CURRENCY = "cad"
        transfer_create.return_value = MagicMock(id="tr_1")

        attempt(StripeConnectRail())

        assert transfer_create.call_args.kwargs["currency"] == "cad"

    @pytest.mark.parametrize("code", ["balance_insufficient", "insufficient_funds"])
    def test_insufficient_funds(self, transfer_create, code):
        transfer_create.side_effect = stripe_error(
            stripe.InvalidRequestError, "Not enough", code=code
        )

        result = attempt(StripeConnectRail())

        assert result.success is False
        assert result.failure_kind == FailureKind.INSUFFICIENT_FUNDS
        assert "add funds" in result.message
        assert result.timed_out is False

    def test_amount_too_small(self, transfer_create):
        transfer_create.side_effect = stripe_error(
            stripe.InvalidRequestError,
            "Amount must be at least 50 cents",
            code="amount_too_small",
        )

        result = attempt(StripeConnectRail(), amount="0.10")

        assert result.failure_kind == FailureKind.BELOW_MINIMUM_AMOUNT

    def test_connection_error_is_timeout(self, transfer_create):
        transfer_create.side_effect = stripe.APIConnectionError("Read timed out")

        result = attempt(StripeConnectRail())

        assert result.failure_kind == FailureKind.OTHER
        assert result.timed_out is True
        assert result.raw_response["code"] == "api_connection_error"

    def test_authentication_error(self, transfer_create):
        transfer_create.side_effect = stripe.AuthenticationError("Invalid API key")

        result = attempt(StripeConnectRail())

        assert result.failure_kind == FailureKind.OTHER
        assert result.timed_out is False
        assert result.message == "Stripe authentication failed"

    def test_invalid_account(self, transfer_create):
        transfer_create.side_effect = stripe_error(
            stripe.InvalidRequestError, "No such destination", code="account_invalid"
        )

        result = attempt(StripeConnectRail())

        assert result.failure_kind == FailureKind.OTHER
        assert "not properly configured" in result.message

    def test_uncoded_error_is_classified_by_message(self, transfer_create):
        transfer_create.side_effect = stripe.APIError("Insufficient balance")

        result = attempt(StripeConnectRail())

        assert result.failure_kind == FailureKind.INSUFFICIENT_FUNDS
