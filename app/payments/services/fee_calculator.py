"""
Fee calculation for creator payments.

Fees are computed once, when a payment is recorded, and stamped onto the
Payment. Two fees are withheld from the gross amount:

- Platform fee: 4% by default, overridable per company or via the
  platform_fee_percentage setting
- Processing fee: 3%

Both are rounded half-up to cents. The creator's net amount is never
negative: if the fees exceed the gross amount, net is clamped to zero and
the breakdown is flagged for review.

Usage:
    from payments.services.fee_calculator import FeeService, calculate_fees

    breakdown = calculate_fees(Decimal("100.00"))
    # FeeBreakdown(gross=100.00, platform_fee=4.00, processing_fee=3.00, net=93.00)

    rate = FeeService.platform_fee_rate_for(company)
    breakdown = calculate_fees(gross, platform_fee_rate=rate)
"""

from __future__ import annotations

from dataclasses import dataclass
from decimal import ROUND_HALF_UP, Decimal, InvalidOperation
from typing import TYPE_CHECKING

from django.conf import settings

from core.services import BaseService
from payments.exceptions import PaymentValidationError

if TYPE_CHECKING:
    from authentication.models import CompanyProfile


CENTS = Decimal("0.01")
ZERO = Decimal("0.00")

DEFAULT_PLATFORM_FEE_RATE = Decimal("0.04")
DEFAULT_PROCESSING_FEE_RATE = Decimal("0.03")


@dataclass(frozen=True)
class FeeBreakdown:
    """
    Fees withheld from a gross amount.

    Attributes:
        gross_amount: Amount paid by the company
        platform_fee_amount: Platform fee, rounded to cents
        processing_fee_amount: Processing fee, rounded to cents
        net_amount: What the creator receives, never negative
        platform_fee_rate: Rate used for the platform fee
        processing_fee_rate: Rate used for the processing fee
        needs_review: True when net had to be clamped to zero
    """

    gross_amount: Decimal
    platform_fee_amount: Decimal
    processing_fee_amount: Decimal
    net_amount: Decimal
    platform_fee_rate: Decimal
    processing_fee_rate: Decimal
    needs_review: bool = False

    @property
    def total_fees(self) -> Decimal:
        return self.platform_fee_amount + self.processing_fee_amount


def _to_decimal(value, field_name: str) -> Decimal:
    if isinstance(value, float):
        value = str(value)
    try:
        result = Decimal(value)
    except (InvalidOperation, TypeError, ValueError):
        raise PaymentValidationError(
            f"{field_name} must be a number",
            details={"field": field_name, "value": str(value)},
        )
    if not result.is_finite():
        raise PaymentValidationError(
            f"{field_name} must be a finite number",
            details={"field": field_name, "value": str(value)},
        )
    return result


def _round_cents(amount: Decimal) -> Decimal:
    return amount.quantize(CENTS, rounding=ROUND_HALF_UP)


def calculate_fees(
    gross,
    platform_fee_rate=DEFAULT_PLATFORM_FEE_RATE,
    processing_fee_rate=DEFAULT_PROCESSING_FEE_RATE,
) -> FeeBreakdown:
    """
    Split a gross amount into platform fee, processing fee and net.

    Args:
        gross: Gross amount (Decimal, int or numeric string)
        platform_fee_rate: Fraction in [0, 1]
        processing_fee_rate: Fraction in [0, 1]

    Returns:
        FeeBreakdown with net = max(0, gross - platform_fee - processing_fee)

    Raises:
        PaymentValidationError: Negative gross or a rate outside [0, 1]
    """
    gross = _round_cents(_to_decimal(gross, "gross_amount"))
    platform_fee_rate = _to_decimal(platform_fee_rate, "platform_fee_rate")
    processing_fee_rate = _to_decimal(processing_fee_rate, "processing_fee_rate")

    if gross < 0:
        raise PaymentValidationError(
            "Gross amount cannot be negative",
            details={"gross_amount": str(gross)},
        )
    for name, rate in (
        ("platform_fee_rate", platform_fee_rate),
        ("processing_fee_rate", processing_fee_rate),
    ):
        if rate < 0 or rate > 1:
            raise PaymentValidationError(
                f"{name} must be between 0 and 1",
                details={name: str(rate)},
            )

    platform_fee = _round_cents(gross * platform_fee_rate)
    processing_fee = _round_cents(gross * processing_fee_rate)
    net = gross - platform_fee - processing_fee
    needs_review = net < 0

    return FeeBreakdown(
        gross_amount=gross,
        platform_fee_amount=platform_fee,
        processing_fee_amount=processing_fee,
        net_amount=max(ZERO, net),
        platform_fee_rate=platform_fee_rate,
        processing_fee_rate=processing_fee_rate,
        needs_review=needs_review,
    )


class FeeService(BaseService):
    """
    Resolves the fee rates that apply to a company.

    Platform fee resolution order:
        1. CompanyProfile.custom_platform_fee_percentage (a fraction)
        2. platform_fee_percentage platform setting (a percentage)
        3. PLATFORM_FEE_PERCENT Django setting (4)
    """

    @classmethod
    def default_platform_fee_rate(cls) -> Decimal:
        percent = getattr(settings, "PLATFORM_FEE_PERCENT", 4)
        return _to_decimal(percent, "PLATFORM_FEE_PERCENT") / 100

    @classmethod
    def processing_fee_rate(cls) -> Decimal:
        percent = getattr(settings, "PROCESSING_FEE_PERCENT", 3)
        return _to_decimal(percent, "PROCESSING_FEE_PERCENT") / 100

    @classmethod
    def platform_fee_rate_for(cls, company: CompanyProfile | None) -> Decimal:
        """Return the platform fee rate (a fraction) for the company."""
        from payments.services.platform_settings_service import (
            PlatformSettingsService,
        )

        if company is not None and company.custom_platform_fee_percentage is not None:
            return Decimal(company.custom_platform_fee_percentage)

        percent = PlatformSettingsService.get("platform_fee_percentage")
        if percent is not None:
            return Decimal(percent) / 100

        return cls.default_platform_fee_rate()

    @classmethod
    def fees_for(cls, company: CompanyProfile | None, gross) -> FeeBreakdown:
        """Compute the fee breakdown for a gross amount owed by the company."""
        breakdown = calculate_fees(
            gross,
            platform_fee_rate=cls.platform_fee_rate_for(company),
            processing_fee_rate=cls.processing_fee_rate(),
        )
        if breakdown.needs_review:
            cls.get_logger().warning(
                "Fees exceed gross amount, net clamped to zero",
                extra={
                    "gross_amount": str(breakdown.gross_amount),
                    "total_fees": str(breakdown.total_fees),
                },
            )
        return breakdown
