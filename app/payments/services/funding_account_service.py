"""
Funding account management.

The platform keeps one primary funding account for outbound payouts. The
primary must be active; disabling it clears the primary flag.
"""

from __future__ import annotations

import uuid
from typing import TYPE_CHECKING

from django.core.exceptions import ValidationError as DjangoValidationError

from core.exceptions import NotFoundError
from core.services import BaseService
from payments.exceptions import InvalidStateTransitionError, PaymentValidationError
from payments.models import FundingAccount
from payments.state_machines import FundingAccountStatus, FundingAccountType

if TYPE_CHECKING:
    from authentication.models import User


DETAIL_FIELDS = (
    "bank_name",
    "account_holder_name",
    "wallet_network",
    "card_brand",
    "notes",
)


class FundingAccountService(BaseService):
    """
    Service for platform funding accounts.

    Methods:
        create: Add a funding account (optionally making it primary)
        set_primary: Make an active account the primary
        set_status: Change status; leaving ACTIVE drops primary
        get_primary: Current primary account or None
        list_accounts: All funding accounts, primary first
    """

    @classmethod
    def _get_for_update(cls, account_id: uuid.UUID | str) -> FundingAccount:
        try:
            return FundingAccount.objects.select_for_update().get(id=account_id)
        except (FundingAccount.DoesNotExist, DjangoValidationError, ValueError):
            raise NotFoundError(
                f"Funding account {account_id} not found",
                error_code="FUNDING_ACCOUNT_NOT_FOUND",
                details={"funding_account_id": str(account_id)},
            )

    @classmethod
    def create(
        cls,
        name: str,
        account_type: str,
        last4: str = "",
        status: str = FundingAccountStatus.PENDING,
        is_primary: bool = False,
        actor: User | None = None,
        **details,
    ) -> FundingAccount:
        """
        Create a funding account.

        Raises:
            PaymentValidationError: Bad type/status/last4, unknown detail
                field, or a primary request for a non-active account
        """
        if not name or not name.strip():
            raise PaymentValidationError("Funding account name is required")
        if account_type not in FundingAccountType.values:
            raise PaymentValidationError(
                f"Unknown funding account type: {account_type}",
                details={"account_type": account_type},
            )
        if status not in FundingAccountStatus.values:
            raise PaymentValidationError(
                f"Unknown funding account status: {status}",
                details={"status": status},
            )
        if last4 and (len(last4) != 4 or not last4.isdigit()):
            raise PaymentValidationError(
                "last4 must be exactly four digits", details={"last4": last4}
            )
        unknown = set(details) - set(DETAIL_FIELDS)
        if unknown:
            raise PaymentValidationError(
                "Unknown funding account fields",
                details={"fields": sorted(unknown)},
            )
        if is_primary and status != FundingAccountStatus.ACTIVE:
            raise PaymentValidationError(
                "Only an active funding account can be primary",
                error_code="PRIMARY_MUST_BE_ACTIVE",
            )

        with cls.atomic():
            account = FundingAccount.objects.create(
                name=name.strip(),
                account_type=account_type,
                last4=last4,
                status=status,
                created_by=actor,
                **details,
            )
            if is_primary:
                cls._promote(account)

        cls.get_logger().info(
            "Funding account created",
            extra={
                "funding_account_id": str(account.id),
                "account_type": account_type,
                "is_primary": account.is_primary,
            },
        )
        return account

    @classmethod
    def _promote(cls, account: FundingAccount) -> None:
        # Demote first so the single-primary constraint never sees two.
        FundingAccount.objects.select_for_update().filter(is_primary=True).exclude(
            id=account.id
        ).update(is_primary=False)
        account.is_primary = True
        account.save(update_fields=["is_primary", "updated_at"])

    @classmethod
    def set_primary(cls, account_id: uuid.UUID | str) -> FundingAccount:
        """
        Make an account the primary funding account.

        Raises:
            NotFoundError: Unknown account
            InvalidStateTransitionError: Account is not active
        """
        with cls.atomic():
            account = cls._get_for_update(account_id)
            if account.status != FundingAccountStatus.ACTIVE:
                raise InvalidStateTransitionError(
                    "Only an active funding account can be primary",
                    error_code="PRIMARY_MUST_BE_ACTIVE",
                    details={
                        "funding_account_id": str(account.id),
                        "status": account.status,
                    },
                )
            if not account.is_primary:
                cls._promote(account)

        cls.get_logger().info(
            "Primary funding account changed",
            extra={"funding_account_id": str(account.id)},
        )
        return account

    @classmethod
    def set_status(cls, account_id: uuid.UUID | str, status: str) -> FundingAccount:
        """
        Change an account's status.

        Moving the primary account out of ACTIVE also clears is_primary.
        """
        if status not in FundingAccountStatus.values:
            raise PaymentValidationError(
                f"Unknown funding account status: {status}",
                details={"status": status},
            )

        with cls.atomic():
            account = cls._get_for_update(account_id)
            account.status = status
            update_fields = ["status", "updated_at"]
            if account.is_primary and status != FundingAccountStatus.ACTIVE:
                account.is_primary = False
                update_fields.append("is_primary")
                cls.get_logger().warning(
                    "Primary funding account deactivated, no primary remains",
                    extra={"funding_account_id": str(account.id), "status": status},
                )
            account.save(update_fields=update_fields)

        return account

    @classmethod
    def get_primary(cls) -> FundingAccount | None:
        return FundingAccount.objects.filter(
            is_primary=True, status=FundingAccountStatus.ACTIVE
        ).first()

    @classmethod
    def list_accounts(cls):
        return FundingAccount.objects.all()
