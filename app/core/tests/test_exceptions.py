"""
Tests for the domain exception hierarchy.

These tests verify that:
- Error codes default per class and can be overridden
- to_dict() produces the API error body
- Payment exceptions keep their place in the hierarchy
"""

from __future__ import annotations

import pytest

from core.exceptions import (
    BaseApplicationError,
    ConflictError,
    NotFoundError,
    PermissionDeniedError,
    ValidationError,
)
from payments.exceptions import (
    SETTLEMENT_ERRORS_BY_KIND,
    BelowMinimumAmountError,
    ConcurrencyConflictError,
    GenericSettlementError,
    InsufficientFundsError,
    InvalidStateTransitionError,
    PaymentMethodSetupRequiredError,
    PaymentNotFoundError,
    PaymentValidationError,
    UnauthorizedError,
)
from payments.state_machines import FailureKind


class TestBaseApplicationError:
    def test_default_error_code(self):
        error = ValidationError("Dispute reason is required")

        assert error.error_code == "VALIDATION_ERROR"
        assert error.details == {}

    def test_override_error_code(self):
        error = NotFoundError("Payment not found", error_code="PAYMENT_NOT_FOUND")

        assert error.error_code == "PAYMENT_NOT_FOUND"

    def test_to_dict_omits_empty_details(self):
        assert ConflictError("Busy").to_dict() == {
            "error": "Busy",
            "error_code": "CONFLICT",
        }

    def test_to_dict_includes_details(self):
        error = PermissionDeniedError("No", details={"payment_id": "p-1"})

        assert error.to_dict()["details"] == {"payment_id": "p-1"}

    def test_str_and_repr(self):
        error = ValidationError("Bad input", details={"field": "reason"})

        assert str(error) == "[VALIDATION_ERROR] Bad input"
        assert repr(error) == (
            "ValidationError(message='Bad input', error_code='VALIDATION_ERROR', "
            "details={'field': 'reason'})"
        )


class TestPaymentExceptions:
    @pytest.mark.parametrize(
        "error_class,parent,code",
        [
            (PaymentValidationError, ValidationError, "PAYMENT_VALIDATION_ERROR"),
            (
                PaymentMethodSetupRequiredError,
                PaymentValidationError,
                "PAYMENT_METHOD_SETUP_REQUIRED",
            ),
            (UnauthorizedError, PermissionDeniedError, "UNAUTHORIZED"),
            (PaymentNotFoundError, NotFoundError, "PAYMENT_NOT_FOUND"),
            (ConcurrencyConflictError, ConflictError, "CONCURRENCY_CONFLICT"),
            (InvalidStateTransitionError, ConflictError, "INVALID_STATE_TRANSITION"),
        ],
    )
    def test_hierarchy(self, error_class, parent, code):
        error = error_class("message")

        assert isinstance(error, parent)
        assert isinstance(error, BaseApplicationError)
        assert error.error_code == code

    def test_settlement_error_details(self):
        error = InsufficientFundsError("Balance too low", payment_id="p-1")

        assert error.payment_id == "p-1"
        assert error.details == {
            "failure_kind": FailureKind.INSUFFICIENT_FUNDS,
            "payment_id": "p-1",
        }

    def test_settlement_error_kinds(self):
        assert SETTLEMENT_ERRORS_BY_KIND == {
            FailureKind.INSUFFICIENT_FUNDS: InsufficientFundsError,
            FailureKind.BELOW_MINIMUM_AMOUNT: BelowMinimumAmountError,
            FailureKind.OTHER: GenericSettlementError,
        }
        assert GenericSettlementError("x").error_code == "SETTLEMENT_FAILED"
