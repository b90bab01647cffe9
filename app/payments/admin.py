"""
Payment admin configuration.

Payments are read-only here: status changes and money fields go through
the service layer so every change is a compare-and-swap with an audit row.
"""

from django.contrib import admin

from payments.models import (
    FundingAccount,
    Payment,
    PaymentEvent,
    PaymentMethod,
    PlatformSetting,
)


class PaymentEventInline(admin.TabularInline):
    model = PaymentEvent
    extra = 0
    can_delete = False
    fields = ["created_at", "action", "from_status", "to_status", "failure_kind", "actor", "message"]
    readonly_fields = fields

    def has_add_permission(self, request, obj=None):
        return False


@admin.register(Payment)
class PaymentAdmin(admin.ModelAdmin):
    """
    Admin configuration for Payment.

    Provides visibility into payments and their settlement state.
    """

    list_display = [
        "id",
        "company",
        "creator",
        "net_amount",
        "status",
        "failure_kind",
        "needs_review",
        "created_at",
    ]
    list_filter = ["status", "failure_kind", "payout_method", "needs_review", "created_at"]
    search_fields = [
        "id",
        "provider_transaction_id",
        "creator__email",
        "company__legal_name",
        "description",
    ]
    date_hierarchy = "created_at"
    ordering = ["-created_at"]
    inlines = [PaymentEventInline]

    fieldsets = (
        (
            None,
            {
                "fields": ("id", "company", "creator", "offer_id", "status", "description"),
            },
        ),
        (
            "Amounts",
            {
                "fields": (
                    "gross_amount",
                    "platform_fee_amount",
                    "processing_fee_amount",
                    "net_amount",
                    "platform_fee_rate",
                    "needs_review",
                ),
            },
        ),
        (
            "Settlement",
            {
                "fields": (
                    "payout_method",
                    "settlement_attempt",
                    "provider_transaction_id",
                    "provider_response",
                    "failure_kind",
                    "failure_reason",
                ),
            },
        ),
        (
            "State Timestamps",
            {
                "fields": ("approved_at", "completed_at", "failed_at"),
            },
        ),
        (
            "Metadata",
            {
                "fields": ("metadata", "version", "created_at", "updated_at"),
                "classes": ("collapse",),
            },
        ),
    )

    def get_readonly_fields(self, request, obj=None):
        return [field.name for field in self.model._meta.fields]

    def has_add_permission(self, request):
        return False

    def has_delete_permission(self, request, obj=None):
        return False


@admin.register(PaymentMethod)
class PaymentMethodAdmin(admin.ModelAdmin):
    list_display = ["id", "user", "payout_method", "is_default", "created_at"]
    list_filter = ["payout_method", "is_default"]
    search_fields = ["user__email", "payout_email", "paypal_email", "external_account_id"]
    readonly_fields = ["created_at", "updated_at", "is_default"]
    ordering = ["-created_at"]


@admin.register(FundingAccount)
class FundingAccountAdmin(admin.ModelAdmin):
    list_display = ["name", "account_type", "last4", "status", "is_primary", "created_at"]
    list_filter = ["account_type", "status", "is_primary"]
    search_fields = ["name", "bank_name", "account_holder_name"]
    readonly_fields = ["id", "created_at", "updated_at", "is_primary", "created_by"]


@admin.register(PlatformSetting)
class PlatformSettingAdmin(admin.ModelAdmin):
    """Settings are validated by PlatformSettingsService; edit them through the API."""

    list_display = ["key", "value", "category", "updated_by", "updated_at"]
    list_filter = ["category"]
    search_fields = ["key", "description"]
    readonly_fields = ["key", "value", "updated_by", "created_at", "updated_at"]
