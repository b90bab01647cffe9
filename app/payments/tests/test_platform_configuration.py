"""
Tests for platform settings and funding accounts.
"""

from decimal import Decimal

import pytest

from core.exceptions import NotFoundError
from payments.exceptions import InvalidStateTransitionError, PaymentValidationError
from payments.models import FundingAccount, PlatformSetting
from payments.services import FundingAccountService, PlatformSettingsService
from payments.state_machines import FundingAccountStatus, FundingAccountType
from payments.tests.factories import FundingAccountFactory


# =============================================================================
# PlatformSettingsService
# =============================================================================


@pytest.mark.django_db
class TestPlatformSettings:
    def test_seeded_defaults(self):
        values = PlatformSettingsService.get_all()

        assert values["settlement_schedule"] == "weekly"
        assert values["payout_reserve_percentage"] == Decimal("10")
        assert values["minimum_payout_threshold"] == Decimal("50.00")
        assert values["payment_auto_disburse"] is True
        assert values["payment_notification_email"] == ""
        assert values["platform_fee_percentage"] == Decimal("4")

    def test_set_and_get_typed(self, admin_user):
        PlatformSettingsService.set("payment_auto_disburse", "off", actor=admin_user)
        PlatformSettingsService.set("minimum_payout_threshold", "25.5")

        assert PlatformSettingsService.get("payment_auto_disburse") is False
        assert PlatformSettingsService.get("minimum_payout_threshold") == Decimal("25.5")
        row = PlatformSetting.objects.get(key="payment_auto_disburse")
        assert row.value == "false"
        assert row.updated_by == admin_user

    @pytest.mark.parametrize(
        "key,value",
        [
            ("settlement_schedule", "hourly"),
            ("payout_reserve_percentage", "150"),
            ("minimum_operating_balance", "-1"),
            ("payment_auto_disburse", "maybe"),
            ("payment_notification_email", "not-an-email"),
            ("platform_fee_percentage", "abc"),
        ],
    )
    def test_invalid_values_rejected(self, key, value):
        before = PlatformSettingsService.get(key)

        with pytest.raises(PaymentValidationError) as exc_info:
            PlatformSettingsService.set(key, value)

        assert exc_info.value.error_code == "INVALID_SETTING_VALUE"
        assert PlatformSettingsService.get(key) == before

    def test_unknown_key(self):
        with pytest.raises(PaymentValidationError) as exc_info:
            PlatformSettingsService.get("surprise")

        assert exc_info.value.error_code == "UNKNOWN_SETTING"

    def test_corrupt_stored_value_falls_back_to_default(self):
        PlatformSetting.objects.filter(key="settlement_schedule").update(value="never")

        assert PlatformSettingsService.get("settlement_schedule") == "weekly"

    def test_blank_notification_email_allowed(self):
        PlatformSettingsService.set("payment_notification_email", "ops@example.com")
        PlatformSettingsService.set("payment_notification_email", "")

        assert PlatformSettingsService.get("payment_notification_email") == ""


# =============================================================================
# FundingAccountService
# =============================================================================


@pytest.mark.django_db
class TestFundingAccounts:
    def test_create_primary(self, admin_user):
        account = FundingAccountService.create(
            name="Operating",
            account_type=FundingAccountType.BANK,
            last4="1234",
            status=FundingAccountStatus.ACTIVE,
            is_primary=True,
            actor=admin_user,
            bank_name="First Platform Bank",
        )

        assert account.is_primary is True
        assert account.created_by == admin_user
        assert FundingAccountService.get_primary() == account

    def test_new_primary_demotes_old(self):
        old = FundingAccountFactory(is_primary=True)
        new = FundingAccountFactory()

        FundingAccountService.set_primary(new.id)

        old.refresh_from_db()
        assert old.is_primary is False
        assert FundingAccountService.get_primary() == new
        assert FundingAccount.objects.filter(is_primary=True).count() == 1

    def test_inactive_cannot_be_primary(self):
        pending = FundingAccountFactory(status=FundingAccountStatus.PENDING)

        with pytest.raises(InvalidStateTransitionError):
            FundingAccountService.set_primary(pending.id)

    def test_create_primary_requires_active(self):
        with pytest.raises(PaymentValidationError) as exc_info:
            FundingAccountService.create(
                name="Card", account_type=FundingAccountType.CARD, is_primary=True
            )

        assert exc_info.value.error_code == "PRIMARY_MUST_BE_ACTIVE"

    def test_disabling_primary_clears_flag(self):
        account = FundingAccountFactory(is_primary=True)

        FundingAccountService.set_status(account.id, FundingAccountStatus.DISABLED)

        account.refresh_from_db()
        assert account.is_primary is False
        assert FundingAccountService.get_primary() is None

    @pytest.mark.parametrize(
        "fields",
        [
            {"name": "", "account_type": FundingAccountType.BANK},
            {"name": "X", "account_type": "vault"},
            {"name": "X", "account_type": FundingAccountType.BANK, "last4": "12a4"},
            {"name": "X", "account_type": FundingAccountType.BANK, "iban": "DE00"},
        ],
    )
    def test_create_validation(self, fields):
        with pytest.raises(PaymentValidationError):
            FundingAccountService.create(**fields)

    def test_unknown_account(self):
        with pytest.raises(NotFoundError):
            FundingAccountService.set_primary("00000000-0000-0000-0000-000000000000")
