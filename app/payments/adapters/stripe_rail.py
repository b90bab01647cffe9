"""
Stripe Connect payment rail.

Sends payouts as Stripe Transfers to the creator's connected account after
checking that the account can receive payouts.
All Stripe calls go through this rail so that timeouts, idempotency and
error classification are handled in one place.

Configuration (via settings):
- STRIPE_SECRET_KEY: Stripe API secret key
- PAYMENT_RAIL_TIMEOUT_SECONDS: HTTP timeout for Stripe calls (default: 10)
- PAYMENT_CURRENCY: Transfer currency (default: "usd")

Error mapping:
    balance_insufficient / insufficient_funds -> insufficient_funds
    amount_too_small                          -> below_minimum_amount
    connection errors and timeouts            -> other (timed_out=True)
    non-connected destination, payouts off    -> other (no transfer sent)
    everything else                           -> other
"""

from __future__ import annotations

import logging
import time
import uuid
from decimal import ROUND_HALF_UP, Decimal
from typing import Any

import stripe
from django.conf import settings

from payments.adapters.base import RailResult, classify_failure_message
from payments.state_machines import FailureKind

INSUFFICIENT_FUNDS_CODES = frozenset({"balance_insufficient", "insufficient_funds"})
BELOW_MINIMUM_CODES = frozenset({"amount_too_small"})


def to_cents(amount: Decimal) -> int:
    """Convert a Decimal dollar amount to integer cents."""
    return int((Decimal(amount) * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


class StripeConnectRail:
    """
    Rail that pays creators through Stripe Connect transfers.

    The destination must be a connected account id (acct_xxx). Stripe
    de-duplicates requests that reuse an idempotency key, which is what
    makes retrying after a timeout safe.
    """

    def __init__(self, timeout: float | None = None):
        self.timeout = timeout or getattr(settings, "PAYMENT_RAIL_TIMEOUT_SECONDS", 10)
        self.currency = getattr(settings, "PAYMENT_CURRENCY", "usd")

    def _configure_stripe(self) -> None:
        stripe.api_key = settings.STRIPE_SECRET_KEY
        stripe.default_http_client = stripe.RequestsClient(timeout=self.timeout)

    @classmethod
    def get_logger(cls) -> logging.Logger:
        return logging.getLogger(f"{cls.__module__}.{cls.__name__}")

    def attempt(
        self,
        payment_id: uuid.UUID | str,
        amount: Decimal,
        payout_method: str,
        destination: str,
        idempotency_key: str,
    ) -> RailResult:
        """
        Create a Stripe Transfer for the payment.

        Never raises for Stripe errors: every failure is returned as a
        RailResult with a FailureKind.
        """
        self._configure_stripe()
        logger = self.get_logger()

        log_context = {
            "operation": "create_transfer",
            "payment_id": str(payment_id),
            "amount": str(amount),
            "destination_account": destination,
            "idempotency_key": idempotency_key,
        }

        if not destination or not destination.startswith("acct_"):
            logger.error(
                "Destination is not a Stripe connected account", extra=log_context
            )
            return RailResult.failed(
                FailureKind.OTHER,
                f"Stripe Connect cannot pay a {payout_method} destination. "
                "A connected account id is required.",
            )

        start_time = time.time()
        logger.info("Starting Stripe operation", extra=log_context)

        try:
            account = stripe.Account.retrieve(destination)
            if not getattr(account, "payouts_enabled", False):
                requirements = getattr(account, "requirements", None)
                logger.warning(
                    "Connected account cannot receive payouts yet",
                    extra={
                        **log_context,
                        "currently_due": getattr(requirements, "currently_due", None),
                    },
                )
                return RailResult.failed(
                    FailureKind.OTHER,
                    "Creator Stripe account is not yet enabled for payouts.",
                    raw_response={"code": "payouts_not_enabled"},
                )

            transfer = stripe.Transfer.create(
                amount=to_cents(amount),
                currency=self.currency,
                destination=destination,
                metadata={
                    "payment_id": str(payment_id),
                    "payout_method": payout_method,
                },
                idempotency_key=idempotency_key,
            )
        except stripe.StripeError as e:
            duration_ms = (time.time() - start_time) * 1000
            return self._handle_stripe_error(e, log_context, duration_ms)

        duration_ms = (time.time() - start_time) * 1000
        logger.info(
            "Stripe operation completed",
            extra={
                **log_context,
                "transfer_id": transfer.id,
                "duration_ms": duration_ms,
            },
        )
        return RailResult.ok(transfer.id, raw_response=transfer.to_dict())

    def _handle_stripe_error(
        self,
        error: stripe.StripeError,
        log_context: dict[str, Any],
        duration_ms: float,
    ) -> RailResult:
        """Translate a Stripe exception into a failed RailResult."""
        logger = self.get_logger()
        log_context = {**log_context, "duration_ms": duration_ms}
        code = getattr(error, "code", None) or ""
        message = str(getattr(error, "user_message", None) or error)

        if code in INSUFFICIENT_FUNDS_CODES:
            logger.warning(
                "Insufficient platform balance for transfer",
                extra={**log_context, "stripe_code": code},
            )
            return RailResult.failed(
                FailureKind.INSUFFICIENT_FUNDS,
                "Insufficient balance in platform Stripe account. "
                "Please add funds to process payouts.",
                raw_response={"code": code, "message": message},
            )

        if code in BELOW_MINIMUM_CODES:
            logger.warning(
                "Transfer amount below Stripe minimum",
                extra={**log_context, "stripe_code": code},
            )
            return RailResult.failed(
                FailureKind.BELOW_MINIMUM_AMOUNT,
                message,
                raw_response={"code": code, "message": message},
            )

        if isinstance(error, stripe.APIConnectionError):
            logger.error(
                "Connection error to Stripe",
                extra=log_context,
                exc_info=True,
            )
            return RailResult.failed(
                FailureKind.OTHER,
                f"Could not reach Stripe: {message}",
                timed_out=True,
                raw_response={"code": "api_connection_error", "message": message},
            )

        if isinstance(error, stripe.AuthenticationError):
            logger.critical(
                "Stripe authentication failed - check API key",
                extra=log_context,
            )
            return RailResult.failed(
                FailureKind.OTHER,
                "Stripe authentication failed",
                raw_response={"code": "authentication_error"},
            )

        if isinstance(error, stripe.InvalidRequestError) and code == "account_invalid":
            message = "Connected account is invalid or not properly configured."

        kind = classify_failure_message(message) if not code else FailureKind.OTHER
        logger.error(
            f"Stripe transfer failed: {type(error).__name__}",
            extra={**log_context, "stripe_code": code, "failure_kind": kind},
        )
        return RailResult.failed(
            kind,
            message,
            raw_response={"code": code, "message": message},
        )
