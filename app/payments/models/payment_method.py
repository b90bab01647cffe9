"""
PaymentMethod model for creator payout destinations.

Each creator can register several payout methods; exactly one of them is
the default used for settlement. The "one default per user" rule is
enforced both by PaymentMethodService and by a partial unique constraint.

Usage:
    from payments.models import PaymentMethod
    from payments.state_machines import PayoutMethodType

    method = PaymentMethod.objects.create(
        user=creator,
        payout_method=PayoutMethodType.PAYPAL,
        paypal_email="creator@example.com",
    )
"""

from __future__ import annotations

from django.conf import settings
from django.db import models
from django.db.models import Q

from core.models import BaseModel
from payments.state_machines import PayoutMethodType

# Fields that must be filled for each payout method type.
REQUIRED_FIELDS_BY_METHOD: dict[str, tuple[str, ...]] = {
    PayoutMethodType.ETRANSFER: ("payout_email",),
    PayoutMethodType.WIRE: ("bank_routing_number", "bank_account_number"),
    PayoutMethodType.PAYPAL: ("paypal_email",),
    PayoutMethodType.CRYPTO: ("crypto_wallet_address", "crypto_network"),
}


class PaymentMethod(BaseModel):
    """
    A payout destination owned by a user.

    Fields:
        user: Owner of the payout method
        payout_method: Payout rail (etransfer, wire, paypal, crypto)
        payout_email: E-transfer destination email
        bank_routing_number / bank_account_number: Wire details
        paypal_email: PayPal account
        crypto_wallet_address / crypto_network: Crypto destination
        external_account_id: Connected payout account at the rail provider
        is_default: Whether settlement uses this method

    Note:
        An e-transfer method without external_account_id still needs
        setup and cannot be used for settlement.
    """

    user = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="payment_methods",
    )

    payout_method = models.CharField(
        max_length=20,
        choices=PayoutMethodType.choices,
        help_text="Payout rail for this destination",
    )

    payout_email = models.EmailField(blank=True, default="")
    bank_routing_number = models.CharField(max_length=50, blank=True, default="")
    bank_account_number = models.CharField(max_length=50, blank=True, default="")
    paypal_email = models.EmailField(blank=True, default="")
    crypto_wallet_address = models.CharField(max_length=255, blank=True, default="")
    crypto_network = models.CharField(max_length=50, blank=True, default="")

    external_account_id = models.CharField(
        max_length=255,
        blank=True,
        default="",
        help_text="Connected account id at the payment provider (acct_xxx)",
    )

    is_default = models.BooleanField(
        default=False,
        help_text="Used for settlement when true",
    )

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment method"
        verbose_name_plural = "Payment methods"
        constraints = [
            models.UniqueConstraint(
                fields=["user"],
                condition=Q(is_default=True),
                name="payment_method_one_default_per_user",
            ),
        ]

    def __str__(self) -> str:
        marker = " (default)" if self.is_default else ""
        return f"PaymentMethod({self.payout_method}, user={self.user_id}){marker}"

    @property
    def missing_fields(self) -> list[str]:
        """Required fields for this payout method that are blank."""
        required = REQUIRED_FIELDS_BY_METHOD.get(self.payout_method, ())
        return [name for name in required if not getattr(self, name)]

    @property
    def requires_setup(self) -> bool:
        """True when the method cannot be used for settlement yet."""
        return (
            self.payout_method == PayoutMethodType.ETRANSFER
            and not self.external_account_id
        )

    @property
    def destination(self) -> str:
        """Where the rail should send money for this method."""
        if self.external_account_id:
            return self.external_account_id
        if self.payout_method == PayoutMethodType.WIRE:
            return self.bank_account_number
        if self.payout_method == PayoutMethodType.PAYPAL:
            return self.paypal_email
        if self.payout_method == PayoutMethodType.CRYPTO:
            return self.crypto_wallet_address
        return self.payout_email
