"""
Payment model for creator earnings moving from recorded to paid.

A Payment is created once per conversion (or retainer installment) with its
fees stamped by the fee calculator. After creation only the settlement
fields change; the money fields are frozen.

Usage:
    from payments.models import Payment
    from payments.state_machines import PaymentStatus

    payment = Payment.objects.create(
        company=company,
        creator=creator,
        gross_amount=Decimal("100.00"),
        platform_fee_amount=Decimal("4.00"),
        processing_fee_amount=Decimal("3.00"),
        net_amount=Decimal("93.00"),
    )

    # State transitions using django-fsm
    payment.start_processing()  # pending -> processing
    payment.save()

Concurrency:
    Payment uses ConcurrentTransitionMixin: every UPDATE is filtered on the
    status that was loaded, so a write racing another status change affects
    zero rows and raises django_fsm.ConcurrentTransition.
"""

from __future__ import annotations

from decimal import Decimal

from django.conf import settings
from django.core.validators import MinValueValidator
from django.db import models
from django.db.models import F, Q
from django.utils import timezone

from django_fsm import ConcurrentTransitionMixin, FSMField, transition

from core.model_mixins import MetadataMixin, UUIDPrimaryKeyMixin
from core.models import BaseModel
from payments.exceptions import PaymentValidationError
from payments.state_machines import FailureKind, PaymentEventAction, PaymentStatus

# Money fields stamped at creation and never rewritten.
AMOUNT_FIELDS = (
    "gross_amount",
    "platform_fee_amount",
    "processing_fee_amount",
    "net_amount",
    "platform_fee_rate",
)

# Fields an existing payment may write.
MUTABLE_FIELDS = (
    "status",
    "failure_kind",
    "failure_reason",
    "description",
    "payout_method",
    "provider_transaction_id",
    "provider_response",
    "settlement_attempt",
    "approved_at",
    "completed_at",
    "failed_at",
    "metadata",
    "version",
    "updated_at",
)


def _is_not_disputed(payment: Payment) -> bool:
    return payment.failure_kind != FailureKind.DISPUTED


class PaymentQuerySet(models.QuerySet):
    """Query helpers for scoping payments by role and status."""

    def for_creator(self, creator) -> PaymentQuerySet:
        return self.filter(creator=creator)

    def for_company(self, company) -> PaymentQuerySet:
        return self.filter(company=company)

    def with_status(self, *statuses: str) -> PaymentQuerySet:
        return self.filter(status__in=statuses)

    def disputed(self) -> PaymentQuerySet:
        return self.filter(
            status=PaymentStatus.FAILED, failure_kind=FailureKind.DISPUTED
        )

    def search(self, term: str | None) -> PaymentQuerySet:
        """Match the term against description, creator email and company name."""
        if not term:
            return self
        return self.filter(
            Q(description__icontains=term)
            | Q(creator__email__icontains=term)
            | Q(company__legal_name__icontains=term)
        )


class Payment(ConcurrentTransitionMixin, UUIDPrimaryKeyMixin, MetadataMixin, BaseModel):
    """
    A creator's earning from a company, tracked until it is paid out.

    State Flow:
        PENDING -> PROCESSING -> COMPLETED
        PENDING/PROCESSING -> FAILED (settlement failure or dispute)
        FAILED -> PROCESSING (retry, only if not disputed)

    Fields:
        company: Company that owes the payment
        creator: Creator receiving the payment
        offer_id: Opaque reference to the offer that generated it
        gross_amount: Amount the company pays
        platform_fee_amount: Platform fee withheld
        processing_fee_amount: Processing fee withheld
        net_amount: max(0, gross - fees), what the creator receives
        platform_fee_rate: Platform fee rate applied at creation
        needs_review: Net amount had to be clamped to zero
        status: Current FSM status
        failure_kind: Tagged reason for FAILED (disputed, insufficient_funds, ...)
        failure_reason: Dispute reason or rail message
        description: Display text ("Disputed: <reason>" after a dispute)
        payout_method: Payout method used, copied at settlement
        provider_transaction_id: Rail reference for the transfer
        provider_response: Raw rail response for audit
        settlement_attempt: Generation used in the rail idempotency key
        version: Incremented on every update
        approved_at / completed_at / failed_at: Lifecycle timestamps
        metadata: Flexible JSON storage (e.g. rail_timed_out)
    """

    # ==========================================================================
    # Relationships
    # ==========================================================================

    company = models.ForeignKey(
        "authentication.CompanyProfile",
        on_delete=models.PROTECT,
        related_name="payments",
        help_text="Company that owes this payment",
    )

    creator = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.PROTECT,
        related_name="payments",
        help_text="Creator receiving this payment",
    )

    offer_id = models.UUIDField(
        null=True,
        blank=True,
        db_index=True,
        help_text="Offer that generated this payment (opaque reference)",
    )

    # ==========================================================================
    # Amounts (immutable after creation)
    # ==========================================================================

    gross_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
        help_text="Amount paid by the company",
    )

    platform_fee_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
        help_text="Platform fee withheld",
    )

    processing_fee_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
        help_text="Processing fee withheld",
    )

    net_amount = models.DecimalField(
        max_digits=10,
        decimal_places=2,
        validators=[MinValueValidator(Decimal("0"))],
        help_text="Amount the creator receives",
    )

    platform_fee_rate = models.DecimalField(
        max_digits=5,
        decimal_places=4,
        default=Decimal("0.0400"),
        help_text="Platform fee rate applied when the payment was created",
    )

    needs_review = models.BooleanField(
        default=False,
        help_text="Net amount was clamped to zero when fees were computed",
    )

    # ==========================================================================
    # State
    # ==========================================================================

    status = FSMField(
        default=PaymentStatus.PENDING,
        choices=PaymentStatus.choices,
        db_index=True,
        protected=True,
        help_text="Current status of the payment (managed by FSM)",
    )

    failure_kind = models.CharField(
        max_length=32,
        choices=FailureKind.choices,
        blank=True,
        default="",
        db_index=True,
        help_text="Why the payment failed; empty unless status is failed",
    )

    failure_reason = models.TextField(
        blank=True,
        default="",
        help_text="Dispute reason or rail failure message",
    )

    description = models.TextField(
        blank=True,
        default="",
        help_text="Display text for this payment",
    )

    # ==========================================================================
    # Settlement
    # ==========================================================================

    payout_method = models.CharField(
        max_length=20,
        blank=True,
        default="",
        help_text="Payout method used for settlement",
    )

    provider_transaction_id = models.CharField(
        max_length=255,
        null=True,
        blank=True,
        unique=True,
        help_text="Payment rail transaction reference",
    )

    provider_response = models.JSONField(
        default=dict,
        blank=True,
        help_text="Raw payment rail response",
    )

    settlement_attempt = models.PositiveIntegerField(
        default=1,
        help_text="Settlement generation used in the rail idempotency key",
    )

    # ==========================================================================
    # Concurrency Control
    # ==========================================================================

    version = models.PositiveIntegerField(
        default=1,
        help_text="Incremented on each save",
    )

    # ==========================================================================
    # Timestamps
    # ==========================================================================

    approved_at = models.DateTimeField(null=True, blank=True)
    completed_at = models.DateTimeField(null=True, blank=True)
    failed_at = models.DateTimeField(null=True, blank=True)

    objects = PaymentQuerySet.as_manager()

    # ==========================================================================
    # Meta & Methods
    # ==========================================================================

    class Meta:
        ordering = ["-created_at"]
        verbose_name = "Payment"
        verbose_name_plural = "Payments"
        indexes = [
            models.Index(fields=["creator", "status"], name="payment_creator_status_idx"),
            models.Index(fields=["company", "status"], name="payment_company_status_idx"),
            models.Index(
                fields=["status", "failure_kind"], name="payment_status_failure_idx"
            ),
        ]
        constraints = [
            models.CheckConstraint(
                condition=Q(gross_amount__gte=0)
                & Q(platform_fee_amount__gte=0)
                & Q(processing_fee_amount__gte=0)
                & Q(net_amount__gte=0),
                name="payment_amounts_non_negative",
            ),
        ]

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self._loaded_amounts = self._snapshot_amounts()

    def __str__(self) -> str:
        return f"Payment({self.id}, {self.status}, {self.net_amount})"

    def save(self, *args, **kwargs):
        """
        Save with fee immutability and version auto-increment.

        Updates only write MUTABLE_FIELDS. Changing a money field on an
        existing payment, or naming one in update_fields, raises
        PaymentValidationError.
        """
        is_update = not self._state.adding and not kwargs.get("force_insert", False)
        if is_update:
            update_fields = kwargs.get("update_fields")
            requested = set(update_fields) if update_fields is not None else set()
            changed = self._changed_amounts() | (requested & set(AMOUNT_FIELDS))
            if changed:
                raise PaymentValidationError(
                    "Payment amounts are immutable after creation",
                    error_code="AMOUNTS_IMMUTABLE",
                    details={"payment_id": str(self.id), "fields": sorted(changed)},
                )
            if update_fields is None:
                kwargs["update_fields"] = list(MUTABLE_FIELDS)
            else:
                kwargs["update_fields"] = sorted(requested | {"version", "updated_at"})
            self.version = F("version") + 1
        super().save(*args, **kwargs)
        if is_update:
            self.refresh_from_db(fields=["version"])
        self._loaded_amounts = self._snapshot_amounts()

    def _snapshot_amounts(self) -> dict:
        # Deferred fields are absent from __dict__ and must not be loaded here.
        return {
            name: self.__dict__[name]
            for name in AMOUNT_FIELDS
            if self.__dict__.get(name) is not None
        }

    def _changed_amounts(self) -> set[str]:
        return {
            name
            for name, loaded in self._loaded_amounts.items()
            if self.__dict__.get(name) is not None
            and Decimal(str(self.__dict__[name])) != Decimal(str(loaded))
        }

    # ==========================================================================
    # State Transitions (django-fsm)
    # ==========================================================================

    @transition(
        field=status,
        source=PaymentStatus.PENDING,
        target=PaymentStatus.PROCESSING,
    )
    def start_processing(self):
        """
        Approve the payment for settlement.

        Transition: PENDING -> PROCESSING
        """
        self.approved_at = timezone.now()

    @transition(
        field=status,
        source=[PaymentStatus.PENDING, PaymentStatus.PROCESSING],
        target=PaymentStatus.FAILED,
    )
    def fail(self, kind: str, reason: str = ""):
        """
        Mark settlement as failed.

        Transition: PENDING/PROCESSING -> FAILED

        Args:
            kind: FailureKind other than DISPUTED
            reason: Rail message or validation explanation
        """
        if kind == FailureKind.DISPUTED:
            raise ValueError("Use dispute() to record a dispute")
        self.failure_kind = kind
        self.failure_reason = reason
        self.failed_at = timezone.now()

    @transition(
        field=status,
        source=[PaymentStatus.PENDING, PaymentStatus.PROCESSING],
        target=PaymentStatus.FAILED,
    )
    def dispute(self, reason: str):
        """
        Record a company dispute.

        Transition: PENDING/PROCESSING -> FAILED (failure_kind=disputed)
        """
        self.failure_kind = FailureKind.DISPUTED
        self.failure_reason = reason
        self.description = f"Disputed: {reason}"
        self.failed_at = timezone.now()

    @transition(
        field=status,
        source=PaymentStatus.PROCESSING,
        target=PaymentStatus.COMPLETED,
    )
    def complete(
        self,
        provider_transaction_id: str | None = None,
        provider_response: dict | None = None,
        payout_method: str = "",
    ):
        """
        Mark the payout as sent.

        Transition: PROCESSING -> COMPLETED
        """
        self.provider_transaction_id = provider_transaction_id
        self.provider_response = provider_response or {}
        if payout_method:
            self.payout_method = payout_method
        self.failure_kind = ""
        self.failure_reason = ""
        self.completed_at = timezone.now()

    @transition(
        field=status,
        source=PaymentStatus.FAILED,
        target=PaymentStatus.PROCESSING,
        conditions=[_is_not_disputed],
    )
    def retry(self, new_attempt: bool = True):
        """
        Put a failed payment back in the settlement queue.

        Transition: FAILED -> PROCESSING (never for a dispute)

        Args:
            new_attempt: Bump settlement_attempt so the rail sees a fresh
                idempotency key. False after a timeout, so a transfer that
                may have gone through is de-duplicated by the rail.
        """
        if new_attempt:
            self.settlement_attempt += 1
        self.failure_kind = ""
        self.failure_reason = ""
        self.failed_at = None

    # ==========================================================================
    # Properties
    # ==========================================================================

    @property
    def is_disputed(self) -> bool:
        return (
            self.status == PaymentStatus.FAILED
            and self.failure_kind == FailureKind.DISPUTED
        )

    @property
    def is_completed(self) -> bool:
        return self.status == PaymentStatus.COMPLETED

    @property
    def can_retry(self) -> bool:
        return self.status == PaymentStatus.FAILED and not self.is_disputed


class PaymentEvent(models.Model):
    """
    Append-only audit row for a payment status change.

    Written in the same transaction as the status change it records.
    """

    payment = models.ForeignKey(
        Payment,
        on_delete=models.PROTECT,
        related_name="events",
    )

    action = models.CharField(max_length=20, choices=PaymentEventAction.choices)
    from_status = models.CharField(max_length=20, choices=PaymentStatus.choices)
    to_status = models.CharField(max_length=20, choices=PaymentStatus.choices)

    actor = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="payment_events",
        help_text="User who caused the change; empty for system jobs",
    )

    failure_kind = models.CharField(
        max_length=32, choices=FailureKind.choices, blank=True, default=""
    )
    message = models.TextField(blank=True, default="")
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    class Meta:
        ordering = ["created_at", "id"]
        verbose_name = "Payment event"
        verbose_name_plural = "Payment events"

    def __str__(self) -> str:
        return f"{self.action}: {self.from_status} -> {self.to_status}"
