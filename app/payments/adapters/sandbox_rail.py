"""
Sandbox payment rail.

Simulates successful transfers without moving money. Used in development
and as the default backend so a fresh deployment can never pay anyone by
accident. Keys are remembered per process, so repeating an idempotency key
returns the original result.
"""

from __future__ import annotations

import logging
import threading
import uuid
from decimal import Decimal

from payments.adapters.base import RailResult

logger = logging.getLogger(__name__)


class SandboxRail:
    """
    In-memory rail that always succeeds.

    Attributes:
        executed: idempotency_key -> RailResult for every attempt seen
    """

    def __init__(self):
        self.executed: dict[str, RailResult] = {}
        self._lock = threading.Lock()

    def attempt(
        self,
        payment_id: uuid.UUID | str,
        amount: Decimal,
        payout_method: str,
        destination: str,
        idempotency_key: str,
    ) -> RailResult:
        with self._lock:
            if idempotency_key in self.executed:
                logger.info(
                    "Sandbox rail replayed idempotent transfer",
                    extra={
                        "payment_id": str(payment_id),
                        "idempotency_key": idempotency_key,
                    },
                )
                return self.executed[idempotency_key]

            transaction_id = f"sandbox_tr_{uuid.uuid4().hex[:16]}"
            result = RailResult.ok(
                transaction_id,
                raw_response={
                    "id": transaction_id,
                    "amount": str(amount),
                    "payout_method": payout_method,
                    "destination": destination,
                    "sandbox": True,
                },
            )
            self.executed[idempotency_key] = result

        logger.info(
            "Sandbox rail simulated transfer",
            extra={
                "payment_id": str(payment_id),
                "amount": str(amount),
                "payout_method": payout_method,
                "transaction_id": transaction_id,
            },
        )
        return result
