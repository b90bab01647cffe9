"""
State enums for payment models.

This module defines the enums used by payment models with django-fsm.
These are Django TextChoices for database storage and admin integration.

State Machines Overview:

Payment States:
    pending → processing → completed (approval, then settlement)
    pending/processing → failed (settlement failure or dispute)
    failed → processing (retry, never for a dispute)
    refunded is terminal and only reachable through external systems
"""

from django.db import models


class PaymentStatus(models.TextChoices):
    """
    States for the Payment model lifecycle.

    Terminal states: COMPLETED, REFUNDED, FAILED (disputed)
    FAILED without a dispute can move back to PROCESSING.

    State Flow:
        PENDING → PROCESSING → COMPLETED
        PENDING/PROCESSING → FAILED
        FAILED → PROCESSING (retry)
    """

    PENDING = "pending", "Pending"
    PROCESSING = "processing", "Processing"
    COMPLETED = "completed", "Completed"
    FAILED = "failed", "Failed"
    REFUNDED = "refunded", "Refunded"


class FailureKind(models.TextChoices):
    """
    Why a payment is in the FAILED state.

    DISPUTED is the only kind that blocks a retry.
    """

    DISPUTED = "disputed", "Disputed"
    INSUFFICIENT_FUNDS = "insufficient_funds", "Insufficient Funds"
    BELOW_MINIMUM_AMOUNT = "below_minimum_amount", "Below Minimum Amount"
    OTHER = "other", "Other"


class PayoutMethodType(models.TextChoices):
    """Payout rails a creator can receive money through."""

    ETRANSFER = "etransfer", "E-Transfer"
    WIRE = "wire", "Wire Transfer"
    PAYPAL = "paypal", "PayPal"
    CRYPTO = "crypto", "Crypto"


class FundingAccountType(models.TextChoices):
    """Kinds of platform account that fund outbound payouts."""

    BANK = "bank", "Bank Account"
    WALLET = "wallet", "Wallet"
    CARD = "card", "Card"


class FundingAccountStatus(models.TextChoices):
    """
    Lifecycle of a FundingAccount.

    Only ACTIVE accounts may be primary.
    """

    ACTIVE = "active", "Active"
    PENDING = "pending", "Pending"
    DISABLED = "disabled", "Disabled"


class SettlementSchedule(models.TextChoices):
    """How often scheduled settlement runs."""

    DAILY = "daily", "Daily"
    WEEKLY = "weekly", "Weekly"
    MONTHLY = "monthly", "Monthly"


class PaymentEventAction(models.TextChoices):
    """Actions recorded in the PaymentEvent audit trail."""

    APPROVED = "approved", "Approved"
    DISPUTED = "disputed", "Disputed"
    FAILED = "failed", "Failed"
    COMPLETED = "completed", "Completed"
    RETRIED = "retried", "Retried"
