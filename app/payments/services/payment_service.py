"""
Payment record store.

Creates payments with their fees stamped once, approves them, and answers
list queries. Status changes go through PaymentTransitionService.

Usage:
    from payments.services import PaymentService

    payment = PaymentService.create_payment(
        company=company,
        creator=creator,
        gross_amount=Decimal("100.00"),
    )
    PaymentService.approve(payment.id, actor=company.user, actor_company_id=company.id)
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING, Any

from django.db.models import Q

from core.services import BaseService
from payments.exceptions import PaymentValidationError, UnauthorizedError
from payments.models import Payment
from payments.services.fee_calculator import FeeService
from payments.services.notifier import SettlementNotifier
from payments.services.transition_service import PaymentTransitionService
from payments.state_machines import PaymentEventAction, PaymentStatus

if TYPE_CHECKING:
    from decimal import Decimal

    from authentication.models import CompanyProfile, User
    from payments.models import PaymentQuerySet


FILTER_KEYS = frozenset({"company_id", "creator_id", "status", "search", "q"})


class PaymentService(BaseService):
    """
    Service for creating, approving and querying payments.

    Methods:
        create_payment: Record a payment with fees computed once
        approve: Move a pending payment to processing
        filter_payments: Apply list filters to a queryset
    """

    @classmethod
    def create_payment(
        cls,
        company: CompanyProfile,
        creator: User,
        gross_amount: Decimal | str | int,
        offer_id: uuid.UUID | None = None,
        description: str = "",
    ) -> Payment:
        """
        Record a new pending payment.

        Fees use the company's platform fee rate and are never recomputed.

        Raises:
            PaymentValidationError: Invalid gross amount
        """
        breakdown = FeeService.fees_for(company, gross_amount)

        payment = Payment.objects.create(
            company=company,
            creator=creator,
            offer_id=offer_id,
            description=description,
            gross_amount=breakdown.gross_amount,
            platform_fee_amount=breakdown.platform_fee_amount,
            processing_fee_amount=breakdown.processing_fee_amount,
            net_amount=breakdown.net_amount,
            platform_fee_rate=breakdown.platform_fee_rate,
            needs_review=breakdown.needs_review,
        )

        cls.get_logger().info(
            "Payment created",
            extra={
                "payment_id": str(payment.id),
                "company_id": str(company.id),
                "creator_id": creator.pk,
                "gross_amount": str(payment.gross_amount),
                "net_amount": str(payment.net_amount),
                "needs_review": payment.needs_review,
            },
        )
        return payment

    @classmethod
    def approve(
        cls,
        payment_id: uuid.UUID | str,
        actor: User | None = None,
        actor_company_id: uuid.UUID | str | None = None,
    ) -> Payment:
        """
        Approve a pending payment for settlement (pending -> processing).

        Args:
            payment_id: Payment to approve
            actor: Approving user
            actor_company_id: When given, the payment must belong to it

        Raises:
            PaymentNotFoundError, UnauthorizedError, InvalidStateTransitionError,
            ConcurrencyConflictError
        """
        payment = PaymentTransitionService.get_payment(payment_id)
        if actor_company_id is not None and str(payment.company_id) != str(
            actor_company_id
        ):
            raise UnauthorizedError(
                "Payment belongs to another company",
                details={"payment_id": str(payment.id)},
            )

        PaymentTransitionService.transition(
            payment, PaymentEventAction.APPROVED, actor=actor
        )
        SettlementNotifier.notify("creator", "approved", payment)
        return payment

    @classmethod
    def filter_payments(
        cls, queryset: PaymentQuerySet, filters: dict[str, Any] | None = None
    ) -> PaymentQuerySet:
        """
        Narrow a payment queryset.

        Supported filters:
            company_id, creator_id: exact match
            status: one status or a list of statuses
            search: text match on description, creator email, company name
            q: a django Q object
        """
        filters = filters or {}
        unknown = set(filters) - FILTER_KEYS
        if unknown:
            raise PaymentValidationError(
                "Unknown payment filters",
                details={"filters": sorted(unknown)},
            )

        if filters.get("company_id"):
            queryset = queryset.filter(company_id=filters["company_id"])
        if filters.get("creator_id"):
            queryset = queryset.filter(creator_id=filters["creator_id"])
        status = filters.get("status")
        if status:
            statuses = [status] if isinstance(status, str) else list(status)
            invalid = set(statuses) - set(PaymentStatus.values)
            if invalid:
                raise PaymentValidationError(
                    "Unknown payment status",
                    details={"status": sorted(invalid)},
                )
            queryset = queryset.with_status(*statuses)
        if filters.get("search"):
            queryset = queryset.search(filters["search"])
        q = filters.get("q")
        if q is not None:
            if not isinstance(q, Q):
                raise PaymentValidationError("q must be a Q object")
            queryset = queryset.filter(q)
        return queryset
