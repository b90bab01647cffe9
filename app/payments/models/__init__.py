"""
Payment domain models.

This module contains all settlement-related models:
- Payment: A creator's earning, tracked from pending to completed
- PaymentEvent: Audit row for every payment status change
- PaymentMethod: Creator payout destinations
- FundingAccount: Platform accounts that fund payouts
- PlatformSetting: Admin-editable platform configuration
"""

from payments.models.funding_account import FundingAccount
from payments.models.payment import Payment, PaymentEvent, PaymentQuerySet
from payments.models.payment_method import REQUIRED_FIELDS_BY_METHOD, PaymentMethod
from payments.models.platform_setting import PlatformSetting

__all__ = [
    "REQUIRED_FIELDS_BY_METHOD",
    "FundingAccount",
    "Payment",
    "PaymentEvent",
    "PaymentMethod",
    "PaymentQuerySet",
    "PlatformSetting",
]
