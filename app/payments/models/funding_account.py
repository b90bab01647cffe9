"""
FundingAccount model for platform accounts that fund outbound payouts.

At most one account is primary, and the primary must be active. The
service layer keeps this true; a partial unique constraint backs it up.
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q

from core.model_mixins import UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.state_machines import FundingAccountStatus, FundingAccountType


class FundingAccount(UUIDPrimaryKeyMixin, BaseModel):
    """
    A platform-owned bank account, wallet or card used to fund payouts.

    Fields:
        name: Display name
        account_type: bank, wallet or card
        last4: Last four digits of the account/card number
        status: active, pending or disabled
        is_primary: Account used for payouts
        bank_name / account_holder_name: Bank details
        wallet_network: Network for wallet accounts
        card_brand: Brand for card accounts
        notes: Free-form notes for operators
        created_by: Admin who added the account
    """

    name = models.CharField(max_length=200)

    account_type = models.CharField(
        max_length=20,
        choices=FundingAccountType.choices,
    )

    last4 = models.CharField(max_length=4, blank=True, default="")

    status = models.CharField(
        max_length=20,
        choices=FundingAccountStatus.choices,
        default=FundingAccountStatus.PENDING,
        db_index=True,
    )

    is_primary = models.BooleanField(default=False)

    bank_name = models.CharField(max_length=200, blank=True, default="")
    account_holder_name = models.CharField(max_length=200, blank=True, default="")
    wallet_network = models.CharField(max_length=50, blank=True, default="")
    card_brand = models.CharField(max_length=50, blank=True, default="")
    notes = models.TextField(blank=True, default="")

    created_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="funding_accounts_created",
    )

    class Meta:
        ordering = ["-is_primary", "-created_at"]
        verbose_name = "Funding account"
        verbose_name_plural = "Funding accounts"
        constraints = [
            models.UniqueConstraint(
                fields=["is_primary"],
                condition=Q(is_primary=True),
                name="funding_account_single_primary",
            ),
            models.CheckConstraint(
                condition=Q(is_primary=False) | Q(status=FundingAccountStatus.ACTIVE),
                name="funding_account_primary_is_active",
            ),
        ]

    def __str__(self) -> str:
        return f"{self.name} ({self.account_type} ****{self.last4})"
