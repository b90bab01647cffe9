"""
DRF serializers for payments app.

This module provides serializers for:
- Payment list and earnings summary responses
- Approve/dispute/settle requests and settlement outcomes
- Creator payout methods
- Platform settings and funding accounts

Related files:
    - models/: Payment, PaymentMethod, FundingAccount, PlatformSetting
    - views.py: Payment API views

Usage:
    serializer = PaymentSerializer(payments, many=True)
    data = serializer.data
"""

from __future__ import annotations

from rest_framework import serializers

from payments.models import FundingAccount, Payment, PaymentMethod
from payments.state_machines import (
    FundingAccountStatus,
    FundingAccountType,
    PaymentStatus,
    PayoutMethodType,
)

# =============================================================================
# Payments
# =============================================================================


class PaymentSerializer(serializers.ModelSerializer):
    """
    Payment serializer for API responses.

    Amounts are rendered as two-decimal strings. All fields are read-only:
    payments change only through the approve/dispute/settle endpoints.
    """

    company_name = serializers.CharField(source="company.legal_name", read_only=True)
    creator_email = serializers.EmailField(source="creator.email", read_only=True)
    is_disputed = serializers.BooleanField(read_only=True)

    class Meta:
        model = Payment
        fields = [
            "id",
            "company",
            "company_name",
            "creator",
            "creator_email",
            "offer_id",
            "gross_amount",
            "platform_fee_amount",
            "processing_fee_amount",
            "net_amount",
            "needs_review",
            "status",
            "failure_kind",
            "failure_reason",
            "is_disputed",
            "description",
            "payout_method",
            "provider_transaction_id",
            "settlement_attempt",
            "approved_at",
            "completed_at",
            "failed_at",
            "created_at",
        ]
        read_only_fields = fields


class PaymentListQuerySerializer(serializers.Serializer):
    """Query parameters accepted by the payment list."""

    status = serializers.ListField(
        child=serializers.ChoiceField(choices=PaymentStatus.choices),
        required=False,
    )
    search = serializers.CharField(required=False, allow_blank=True)
    company_id = serializers.UUIDField(required=False)
    creator_id = serializers.IntegerField(required=False)

    def to_internal_value(self, data):
        # QueryDict: ?status=pending&status=processing
        if hasattr(data, "getlist"):
            data = {
                **{key: data.get(key) for key in data},
                "status": data.getlist("status"),
            }
            if not data["status"]:
                del data["status"]
        return super().to_internal_value(data)


class EarningsSummarySerializer(serializers.Serializer):
    total = serializers.DecimalField(max_digits=12, decimal_places=2)
    pending = serializers.DecimalField(max_digits=12, decimal_places=2)
    processing = serializers.DecimalField(max_digits=12, decimal_places=2)
    completed = serializers.DecimalField(max_digits=12, decimal_places=2)
    disputed = serializers.DecimalField(max_digits=12, decimal_places=2)


class DisputeRequestSerializer(serializers.Serializer):
    reason = serializers.CharField(max_length=2000, trim_whitespace=True)


class SettleAllRequestSerializer(serializers.Serializer):
    """Filters for a bulk settlement; empty settles every processing payment."""

    company_id = serializers.UUIDField(required=False)
    creator_id = serializers.IntegerField(required=False)
    search = serializers.CharField(required=False, allow_blank=False)


class SettlementOutcomeSerializer(serializers.Serializer):
    payment_id = serializers.CharField()
    status = serializers.CharField()
    success = serializers.BooleanField()
    already_completed = serializers.BooleanField()
    transaction_id = serializers.CharField(allow_null=True)
    failure_kind = serializers.CharField(allow_blank=True)
    error = serializers.CharField(allow_blank=True)
    error_code = serializers.CharField(allow_blank=True)


class BulkSettlementResultSerializer(serializers.Serializer):
    succeeded = serializers.IntegerField()
    failed = serializers.IntegerField()
    outcomes = SettlementOutcomeSerializer(many=True)


# =============================================================================
# Payment Methods
# =============================================================================


class PaymentMethodSerializer(serializers.ModelSerializer):
    """
    Payout method serializer.

    Account numbers are masked on output; the full value is write-only.
    """

    bank_account_number = serializers.CharField(
        write_only=True, required=False, allow_blank=True
    )
    bank_account_last4 = serializers.SerializerMethodField()
    requires_setup = serializers.BooleanField(read_only=True)
    payout_method = serializers.ChoiceField(choices=PayoutMethodType.choices)

    class Meta:
        model = PaymentMethod
        fields = [
            "id",
            "payout_method",
            "payout_email",
            "bank_routing_number",
            "bank_account_number",
            "bank_account_last4",
            "paypal_email",
            "crypto_wallet_address",
            "crypto_network",
            "is_default",
            "requires_setup",
            "created_at",
        ]
        read_only_fields = ["id", "is_default", "requires_setup", "created_at"]

    def get_bank_account_last4(self, obj) -> str:
        return obj.bank_account_number[-4:] if obj.bank_account_number else ""


# =============================================================================
# Platform Configuration
# =============================================================================


class PlatformSettingsUpdateSerializer(serializers.Serializer):
    """Map of setting key to new value; values are validated by the service."""

    settings = serializers.DictField(child=serializers.JSONField(), allow_empty=False)


class FundingAccountSerializer(serializers.ModelSerializer):
    account_type = serializers.ChoiceField(choices=FundingAccountType.choices)
    status = serializers.ChoiceField(
        choices=FundingAccountStatus.choices,
        default=FundingAccountStatus.PENDING,
    )

    class Meta:
        model = FundingAccount
        fields = [
            "id",
            "name",
            "account_type",
            "last4",
            "status",
            "is_primary",
            "bank_name",
            "account_holder_name",
            "wallet_network",
            "card_brand",
            "notes",
            "created_at",
        ]
        read_only_fields = ["id", "created_at"]
