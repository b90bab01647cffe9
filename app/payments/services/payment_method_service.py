"""
Payment method registry.

Creators register payout destinations here. Exactly one method per user is
the default used for settlement. Every change locks the user row, then demotes
before promoting, so two defaults never coexist.

Usage:
    from payments.services import PaymentMethodService

    method = PaymentMethodService.register(
        user=creator,
        payout_method="paypal",
        paypal_email="creator@example.com",
    )
    PaymentMethodService.set_default(creator, method.id)
"""

from __future__ import annotations

from typing import TYPE_CHECKING

from django.contrib.auth import get_user_model

from core.exceptions import NotFoundError
from core.services import BaseService
from payments.exceptions import (
    PaymentMethodSetupRequiredError,
    PaymentValidationError,
)
from payments.models import REQUIRED_FIELDS_BY_METHOD, PaymentMethod
from payments.state_machines import PayoutMethodType

if TYPE_CHECKING:
    from authentication.models import User


EDITABLE_FIELDS = (
    "payout_email",
    "bank_routing_number",
    "bank_account_number",
    "paypal_email",
    "crypto_wallet_address",
    "crypto_network",
    "external_account_id",
)


class PaymentMethodService(BaseService):
    """
    Service for creator payout methods.

    Methods:
        register: Add a payout method (first one becomes default)
        update: Change destination fields
        attach_external_account: Link a connected payout account
        set_default: Make a method the default
        delete: Remove a method, promoting another if it was default
        get_default: The user's default method or None
        get_settlement_method: The default method, validated for settlement
        list_methods: All of a user's methods
    """

    @classmethod
    def _validate_required_fields(cls, method: PaymentMethod) -> None:
        missing = method.missing_fields
        if missing:
            raise PaymentValidationError(
                f"Missing required fields for {method.payout_method}: "
                f"{', '.join(missing)}",
                error_code="PAYMENT_METHOD_INCOMPLETE",
                details={"payout_method": method.payout_method, "missing": missing},
            )

    @classmethod
    def _clean_fields(cls, fields: dict) -> dict:
        unknown = set(fields) - set(EDITABLE_FIELDS)
        if unknown:
            raise PaymentValidationError(
                "Unknown payment method fields",
                details={"fields": sorted(unknown)},
            )
        return {name: (value or "").strip() for name, value in fields.items()}

    @classmethod
    def _lock_user_methods(cls, user: User) -> list[PaymentMethod]:
        # The user row is the lock: it exists before the first method does.
        get_user_model().objects.select_for_update().get(pk=user.pk)
        return list(
            PaymentMethod.objects.select_for_update()
            .filter(user=user)
            .order_by("-created_at", "-id")
        )

    @classmethod
    def _get_owned(cls, methods: list[PaymentMethod], method_id) -> PaymentMethod:
        for method in methods:
            if str(method.id) == str(method_id):
                return method
        raise NotFoundError(
            f"Payment method {method_id} not found",
            error_code="PAYMENT_METHOD_NOT_FOUND",
            details={"payment_method_id": str(method_id)},
        )

    @classmethod
    def _promote(cls, methods: list[PaymentMethod], target: PaymentMethod) -> None:
        for method in methods:
            if method.is_default and method.pk != target.pk:
                method.is_default = False
                method.save(update_fields=["is_default", "updated_at"])
        if not target.is_default:
            target.is_default = True
            target.save(update_fields=["is_default", "updated_at"])

    @classmethod
    def register(cls, user: User, payout_method: str, **fields) -> PaymentMethod:
        """
        Register a payout method for a user.

        The user's first method becomes the default.

        Raises:
            PaymentValidationError: Unknown type or missing required fields
        """
        if payout_method not in PayoutMethodType.values:
            raise PaymentValidationError(
                f"Unknown payout method: {payout_method}",
                error_code="UNKNOWN_PAYOUT_METHOD",
                details={"payout_method": payout_method},
            )

        method = PaymentMethod(
            user=user, payout_method=payout_method, **cls._clean_fields(fields)
        )
        cls._validate_required_fields(method)

        with cls.atomic():
            existing = cls._lock_user_methods(user)
            method.is_default = not any(m.is_default for m in existing)
            method.save()

        cls.get_logger().info(
            "Payment method registered",
            extra={
                "user_id": user.pk,
                "payment_method_id": method.pk,
                "payout_method": payout_method,
                "is_default": method.is_default,
            },
        )
        return method

    @classmethod
    def update(cls, user: User, method_id, **fields) -> PaymentMethod:
        """Update destination fields, keeping the method complete."""
        cleaned = cls._clean_fields(fields)
        with cls.atomic():
            method = cls._get_owned(cls._lock_user_methods(user), method_id)
            for name, value in cleaned.items():
                setattr(method, name, value)
            cls._validate_required_fields(method)
            method.save()
        return method

    @classmethod
    def attach_external_account(
        cls, user: User, method_id, external_account_id: str
    ) -> PaymentMethod:
        """Link a connected payout account, completing e-transfer setup."""
        if not external_account_id or not external_account_id.strip():
            raise PaymentValidationError("external_account_id is required")
        return cls.update(user, method_id, external_account_id=external_account_id)

    @classmethod
    def set_default(cls, user: User, method_id) -> PaymentMethod:
        """
        Make a method the user's default.

        Runs in one transaction with the user's methods locked: the old
        default is demoted before the new one is promoted.

        Raises:
            NotFoundError: Method does not belong to the user
            PaymentValidationError: Method is missing required fields
        """
        with cls.atomic():
            methods = cls._lock_user_methods(user)
            target = cls._get_owned(methods, method_id)
            cls._validate_required_fields(target)
            cls._promote(methods, target)

        cls.get_logger().info(
            "Default payment method changed",
            extra={"user_id": user.pk, "payment_method_id": target.pk},
        )
        return target

    @classmethod
    def delete(cls, user: User, method_id) -> PaymentMethod | None:
        """
        Delete a method.

        If it was the default, the most recently created remaining method
        that is complete becomes the default.

        Returns:
            The new default method, or None if the user has none left
        """
        with cls.atomic():
            methods = cls._lock_user_methods(user)
            target = cls._get_owned(methods, method_id)
            was_default = target.is_default
            target.delete()
            remaining = [m for m in methods if m.pk != target.pk]

            new_default = next((m for m in remaining if m.is_default), None)
            if was_default:
                candidate = next((m for m in remaining if not m.missing_fields), None)
                if candidate is not None:
                    cls._promote(remaining, candidate)
                    new_default = candidate

        cls.get_logger().info(
            "Payment method deleted",
            extra={
                "user_id": user.pk,
                "payment_method_id": str(method_id),
                "new_default_id": getattr(new_default, "pk", None),
            },
        )
        return new_default

    @classmethod
    def get_default(cls, user: User) -> PaymentMethod | None:
        return PaymentMethod.objects.filter(user=user, is_default=True).first()

    @classmethod
    def get_settlement_method(cls, user: User) -> PaymentMethod:
        """
        Return the default method, checked for use in settlement.

        Raises:
            PaymentValidationError: No payout method (NO_PAYOUT_METHOD)
            PaymentMethodSetupRequiredError: Default method needs setup
        """
        method = cls.get_default(user)
        if method is None:
            raise PaymentValidationError(
                "Creator has no payout method configured",
                error_code="NO_PAYOUT_METHOD",
                details={"creator_id": user.pk},
            )
        if method.requires_setup:
            raise PaymentMethodSetupRequiredError(
                "Creator's payout method requires setup before it can be paid",
                details={"creator_id": user.pk, "payment_method_id": method.pk},
            )
        cls._validate_required_fields(method)
        return method

    @classmethod
    def list_methods(cls, user: User):
        return PaymentMethod.objects.filter(user=user).order_by("-is_default", "-created_at")
