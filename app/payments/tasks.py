"""
Celery tasks for payment settlement.

This module provides async tasks for:
- Settling a single payment off the request cycle
- Scheduled bulk settlement driven by platform settings

Usage:
    from payments.tasks import settle_payment

    # Queue one payment for settlement
    settle_payment.delay(str(payment_id))

    # Run the scheduled settlement (typically via celery-beat)
    from payments.tasks import run_scheduled_settlement
    run_scheduled_settlement.delay()
"""

from __future__ import annotations

import logging
from datetime import datetime
from datetime import timezone as dt_timezone
from decimal import Decimal

from celery import shared_task
from django.db.models import Q, Sum
from django.utils import timezone

from core.exceptions import BaseApplicationError
from payments.models import Payment
from payments.services import PlatformSettingsService, SettlementService
from payments.state_machines import PaymentStatus, SettlementSchedule

logger = logging.getLogger(__name__)


# =============================================================================
# Single Settlement
# =============================================================================


@shared_task(acks_late=True)
def settle_payment(payment_id: str) -> dict:
    """
    Settle one payment.

    Settlement failures are persisted on the payment by the service and
    are never retried automatically; an admin retries them explicitly.

    Returns:
        Dict with the settlement outcome or the error code
    """
    logger.info("Settling payment", extra={"payment_id": str(payment_id)})

    try:
        outcome = SettlementService.settle(payment_id)
    except BaseApplicationError as e:
        logger.warning(
            f"Payment settlement did not complete: {e.error_code}",
            extra={"payment_id": str(payment_id), "error_code": e.error_code},
        )
        return {
            "status": "failed",
            "payment_id": str(payment_id),
            "error_code": e.error_code,
            "error": e.message,
        }

    return {
        "status": "already_completed" if outcome.already_completed else "completed",
        "payment_id": outcome.payment_id,
        "transaction_id": outcome.transaction_id,
    }


# =============================================================================
# Scheduled Settlement
# =============================================================================


def is_settlement_day(schedule: str, now: datetime | None = None) -> bool:
    """
    Whether the schedule calls for a run today (UTC).

    daily: every run; weekly: Mondays; monthly: the 1st.
    """
    today = (now or timezone.now()).astimezone(dt_timezone.utc).date()
    if schedule == SettlementSchedule.DAILY:
        return True
    if schedule == SettlementSchedule.WEEKLY:
        return today.weekday() == 0
    if schedule == SettlementSchedule.MONTHLY:
        return today.day == 1
    logger.warning("Unknown settlement schedule", extra={"schedule": schedule})
    return False


def creators_over_threshold(threshold: Decimal) -> list:
    """Creators whose processing balance is at least the payout threshold."""
    return list(
        Payment.objects.with_status(PaymentStatus.PROCESSING)
        .values("creator_id")
        .annotate(balance=Sum("net_amount"))
        .filter(balance__gte=threshold)
        .values_list("creator_id", flat=True)
    )


@shared_task
def run_scheduled_settlement() -> dict:
    """
    Settle processing payments when the platform schedule says so.

    Skips the run when payment_auto_disburse is off or today is not a
    settlement day. Only creators whose processing balance meets
    minimum_payout_threshold are paid.

    Returns:
        Dict with skip reason or succeeded/failed counts
    """
    if not PlatformSettingsService.get("payment_auto_disburse"):
        logger.info("Scheduled settlement skipped: auto disburse disabled")
        return {"status": "skipped", "reason": "auto_disburse_disabled"}

    schedule = PlatformSettingsService.get("settlement_schedule")
    if not is_settlement_day(schedule):
        logger.info(
            "Scheduled settlement skipped: not a settlement day",
            extra={"schedule": schedule},
        )
        return {"status": "skipped", "reason": "not_settlement_day"}

    threshold = PlatformSettingsService.get("minimum_payout_threshold")
    creator_ids = creators_over_threshold(threshold)
    if not creator_ids:
        logger.info(
            "Scheduled settlement found no creator over threshold",
            extra={"threshold": str(threshold)},
        )
        return {"status": "completed", "succeeded": 0, "failed": 0}

    result = SettlementService.settle_all({"q": Q(creator_id__in=creator_ids)})

    logger.info(
        "Scheduled settlement finished",
        extra={
            "schedule": schedule,
            "creator_count": len(creator_ids),
            "succeeded": result.succeeded,
            "failed": result.failed,
        },
    )
    return {
        "status": "completed",
        "succeeded": result.succeeded,
        "failed": result.failed,
    }
