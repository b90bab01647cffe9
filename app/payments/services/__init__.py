"""
Payment services for the settlement lifecycle.

This module provides:
- PaymentService: Record payments with fees stamped once, approve, filter
- PaymentTransitionService: The single writer of payment status
- DisputeService: Company disputes (terminal failure)
- SettlementService: Settle one or many payments against the payment rail
- EarningsService: Net amounts by status bucket
- PaymentMethodService: Creator payout methods and the default invariant
- PlatformSettingsService / FundingAccountService: Platform configuration
- Creator/Company/AdminPaymentService: Role-scoped entry points

Usage:
    from payments.services import PaymentService, SettlementService

    payment = PaymentService.create_payment(
        company=company,
        creator=creator,
        gross_amount=Decimal("100.00"),
    )
    SettlementService.settle(payment.id, actor=admin)

    from payments.services import for_user

    summary = for_user(request.user).get_earnings_summary()
"""

from payments.services.dispute_service import DisputeService
from payments.services.earnings_service import EarningsService, EarningsSummary
from payments.services.fee_calculator import FeeBreakdown, FeeService, calculate_fees
from payments.services.funding_account_service import FundingAccountService
from payments.services.notifier import SettlementNotifier
from payments.services.payment_method_service import PaymentMethodService
from payments.services.payment_service import PaymentService
from payments.services.platform_settings_service import (
    SETTING_DEFINITIONS,
    PlatformSettingsService,
)
from payments.services.roles import (
    AdminPaymentService,
    CompanyPaymentService,
    CreatorPaymentService,
    for_user,
)
from payments.services.settlement_service import (
    BulkSettlementResult,
    SettlementOutcome,
    SettlementService,
)
from payments.services.transition_service import PaymentTransitionService

__all__ = [
    "SETTING_DEFINITIONS",
    "AdminPaymentService",
    "BulkSettlementResult",
    "CompanyPaymentService",
    "CreatorPaymentService",
    "DisputeService",
    "EarningsService",
    "EarningsSummary",
    "FeeBreakdown",
    "FeeService",
    "FundingAccountService",
    "PaymentMethodService",
    "PaymentService",
    "PaymentTransitionService",
    "PlatformSettingsService",
    "SettlementNotifier",
    "SettlementOutcome",
    "SettlementService",
    "calculate_fees",
    "for_user",
]
