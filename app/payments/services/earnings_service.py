"""
Earnings aggregator.

Summarizes net amounts by status bucket without mutating anything.

Buckets:
    pending, processing, completed: by status
    disputed: failed with failure_kind=disputed, excluded from every other bucket
    total: pending + processing + completed + refunded

A non-disputed failure counts nowhere. A refunded payment counts toward
total only.
"""

from __future__ import annotations

from collections.abc import Iterable
from dataclasses import asdict, dataclass, field
from decimal import Decimal
from typing import TYPE_CHECKING

from core.services import BaseService
from payments.models import Payment
from payments.state_machines import FailureKind, PaymentStatus

if TYPE_CHECKING:
    from authentication.models import CompanyProfile, User


ZERO = Decimal("0.00")

STATUS_BUCKETS = {
    PaymentStatus.PENDING: "pending",
    PaymentStatus.PROCESSING: "processing",
    PaymentStatus.COMPLETED: "completed",
}


@dataclass
class EarningsSummary:
    """Net amounts per bucket, all Decimal."""

    total: Decimal = field(default=ZERO)
    pending: Decimal = field(default=ZERO)
    processing: Decimal = field(default=ZERO)
    completed: Decimal = field(default=ZERO)
    disputed: Decimal = field(default=ZERO)

    def to_dict(self) -> dict[str, str]:
        return {name: f"{value:.2f}" for name, value in asdict(self).items()}


class EarningsService(BaseService):
    """
    Service for earnings summaries.

    Methods:
        summarize: Bucket an iterable of payments in one pass
        for_creator / for_company / for_platform: Scoped summaries
    """

    @classmethod
    def summarize(cls, payments: Iterable[Payment]) -> EarningsSummary:
        summary = EarningsSummary()
        for payment in payments:
            amount = payment.net_amount
            if payment.status == PaymentStatus.FAILED:
                if payment.failure_kind == FailureKind.DISPUTED:
                    summary.disputed += amount
                continue

            summary.total += amount
            bucket = STATUS_BUCKETS.get(payment.status)
            if bucket is not None:
                setattr(summary, bucket, getattr(summary, bucket) + amount)
        return summary

    @classmethod
    def for_creator(cls, creator: User) -> EarningsSummary:
        return cls.summarize(Payment.objects.for_creator(creator).iterator())

    @classmethod
    def for_company(cls, company: CompanyProfile) -> EarningsSummary:
        return cls.summarize(Payment.objects.for_company(company).iterator())

    @classmethod
    def for_platform(cls) -> EarningsSummary:
        return cls.summarize(Payment.objects.all().iterator())
