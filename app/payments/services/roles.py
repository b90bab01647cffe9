"""
Role-scoped entry points for payment operations.

Each role gets its own service bound to the acting user. Capabilities are
fixed per role; asking for one the user's role lacks raises
UnauthorizedError before anything is read or written.

Usage:
    from payments.services.roles import for_user

    service = for_user(request.user)
    payments = service.list_payments({"status": "pending"})
    summary = service.get_earnings_summary()
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from authentication.models import CompanyProfile
from core.services import BaseService
from payments.exceptions import UnauthorizedError
from payments.models import Payment
from payments.services.dispute_service import DisputeService
from payments.services.earnings_service import EarningsService, EarningsSummary
from payments.services.funding_account_service import FundingAccountService
from payments.services.payment_method_service import PaymentMethodService
from payments.services.payment_service import PaymentService
from payments.services.platform_settings_service import PlatformSettingsService
from payments.services.settlement_service import (
    BulkSettlementResult,
    SettlementOutcome,
    SettlementService,
)

if TYPE_CHECKING:
    from authentication.models import User
    from payments.models import FundingAccount, PaymentMethod, PaymentQuerySet


class RolePaymentService(BaseService):
    """Base for role services: holds the acting user and checks the role."""

    role_label = ""

    def __init__(self, user: User):
        if not getattr(user, "is_authenticated", False) or not self.allows(user):
            raise UnauthorizedError(
                f"{self.role_label.capitalize()} access required",
                details={"user_id": getattr(user, "pk", None)},
            )
        self.user = user

    @classmethod
    def allows(cls, user: User) -> bool:
        raise NotImplementedError

    def base_queryset(self) -> PaymentQuerySet:
        raise NotImplementedError

    def list_payments(self, filters: dict[str, Any] | None = None) -> PaymentQuerySet:
        queryset = self.base_queryset().select_related("company", "creator")
        return PaymentService.filter_payments(queryset, filters)

    def get_earnings_summary(self) -> EarningsSummary:
        raise NotImplementedError


class CreatorPaymentService(RolePaymentService):
    """Creators see their own payments and manage their payout methods."""

    role_label = "creator"

    @classmethod
    def allows(cls, user: User) -> bool:
        return user.is_creator

    def base_queryset(self) -> PaymentQuerySet:
        return Payment.objects.for_creator(self.user)

    def list_payments(self, filters: dict[str, Any] | None = None) -> PaymentQuerySet:
        # A creator cannot widen the scope to another creator.
        filters = {k: v for k, v in (filters or {}).items() if k != "creator_id"}
        return super().list_payments(filters)

    def get_earnings_summary(self) -> EarningsSummary:
        return EarningsService.for_creator(self.user)

    def list_payment_methods(self):
        return PaymentMethodService.list_methods(self.user)

    def add_payment_method(self, payout_method: str, **fields) -> PaymentMethod:
        return PaymentMethodService.register(self.user, payout_method, **fields)

    def remove_payment_method(self, method_id: int) -> PaymentMethod | None:
        return PaymentMethodService.delete(self.user, method_id)

    def set_default_payment_method(self, method_id: int) -> PaymentMethod:
        return PaymentMethodService.set_default(self.user, method_id)


class CompanyPaymentService(RolePaymentService):
    """Companies see, approve and dispute the payments they owe."""

    role_label = "company"

    def __init__(self, user: User):
        super().__init__(user)
        self.company = self._company_for(user)

    @classmethod
    def allows(cls, user: User) -> bool:
        return user.is_company

    @staticmethod
    def _company_for(user: User) -> CompanyProfile:
        try:
            return user.company_profile
        except CompanyProfile.DoesNotExist:
            raise UnauthorizedError(
                "Company profile required",
                error_code="COMPANY_PROFILE_REQUIRED",
                details={"user_id": user.pk},
            )

    def base_queryset(self) -> PaymentQuerySet:
        return Payment.objects.for_company(self.company)

    def list_payments(self, filters: dict[str, Any] | None = None) -> PaymentQuerySet:
        filters = {k: v for k, v in (filters or {}).items() if k != "company_id"}
        return super().list_payments(filters)

    def get_earnings_summary(self) -> EarningsSummary:
        return EarningsService.for_company(self.company)

    def approve(self, payment_id: uuid.UUID | str) -> Payment:
        return PaymentService.approve(
            payment_id, actor=self.user, actor_company_id=self.company.id
        )

    def dispute(self, payment_id: uuid.UUID | str, reason: str) -> Payment:
        return DisputeService.dispute(
            payment_id,
            actor_company_id=self.company.id,
            reason=reason,
            actor=self.user,
        )


class AdminPaymentService(RolePaymentService):
    """Platform admins run settlement and configure the platform."""

    role_label = "admin"

    @classmethod
    def allows(cls, user: User) -> bool:
        return user.is_platform_admin

    def base_queryset(self) -> PaymentQuerySet:
        return Payment.objects.all()

    def get_earnings_summary(self) -> EarningsSummary:
        return EarningsService.for_platform()

    def approve(self, payment_id: uuid.UUID | str) -> Payment:
        return PaymentService.approve(payment_id, actor=self.user)

    def settle(self, payment_id: uuid.UUID | str) -> SettlementOutcome:
        return SettlementService.settle(payment_id, actor=self.user)

    def settle_all(self, filters: dict[str, Any] | None = None) -> BulkSettlementResult:
        return SettlementService.settle_all(filters, actor=self.user)

    def retry(self, payment_id: uuid.UUID | str) -> Payment:
        return SettlementService.retry(payment_id, actor=self.user)

    def configure(self, values: dict[str, Any]) -> dict[str, Any]:
        """
        Update platform settings and return the full, typed settings map.

        All values are written in one transaction; an invalid value raises
        PaymentValidationError and nothing is saved.
        """
        with self.atomic():
            for key, value in values.items():
                PlatformSettingsService.set(key, value, actor=self.user)
        return PlatformSettingsService.get_all()

    def create_funding_account(self, **fields) -> FundingAccount:
        return FundingAccountService.create(actor=self.user, **fields)

    def set_primary_funding_account(self, account_id: uuid.UUID | str) -> FundingAccount:
        return FundingAccountService.set_primary(account_id)

    def set_funding_account_status(
        self, account_id: uuid.UUID | str, status: str
    ) -> FundingAccount:
        return FundingAccountService.set_status(account_id, status)


ROLE_SERVICES = (AdminPaymentService, CompanyPaymentService, CreatorPaymentService)


def for_user(user: User) -> RolePaymentService:
    """Return the role service for a user, admin checked first."""
    for service_class in ROLE_SERVICES:
        if getattr(user, "is_authenticated", False) and service_class.allows(user):
            return service_class(user)
    raise UnauthorizedError("No payment role for this account")
