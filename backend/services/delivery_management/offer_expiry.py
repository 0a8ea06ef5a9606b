"""
Expiry sweep for delivery offers.

Run periodically (Celery beat or the ``sweep_expired_offers`` command). Safe
to run concurrently with itself and with driver responses: each offer is
closed with a conditional update, so whoever loses the race skips it.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, List

from django.db import DatabaseError, transaction
from django.utils import timezone

from deliveries.models import Delivery, DeliveryOffer
from services.exceptions import guard_store_errors
from services.matching import offer_ledger, schedule_redispatch

logger = logging.getLogger(__name__)


@dataclass
class SweepResult:
    processed_count: int = 0
    reoffered_count: int = 0
    repaired_count: int = 0
    retried_count: int = 0
    failed_count: int = 0

    @property
    def nothing_to_do(self) -> bool:
        return not (self.processed_count or self.repaired_count or self.retried_count or self.failed_count)

    def as_dict(self) -> Dict[str, Any]:
        return {
            "processed_count": self.processed_count,
            "reoffered_count": self.reoffered_count,
            "repaired_count": self.repaired_count,
            "retried_count": self.retried_count,
            "failed_count": self.failed_count,
        }


@transaction.atomic
def _close_offer(offer: DeliveryOffer, status: str, now) -> bool:
    if not offer_ledger.close_offer(offer.id, status, now):
        return False

    # Only reset a delivery still waiting on this offer
    Delivery.objects.filter(
        id=offer.delivery_id,
        status=Delivery.STATUS_OFFERED,
        offered_driver_id=offer.driver_id,
    ).update(
        status=Delivery.STATUS_PENDING,
        offered_driver=None,
        offer_expires_at=None,
    )
    return True


def _try_close_offer(offer: DeliveryOffer, status: str, now, result: SweepResult) -> bool:
    """Close one offer in its own transaction; a store failure skips only this offer."""
    try:
        return _close_offer(offer, status, now)
    except DatabaseError:
        result.failed_count += 1
        logger.exception("Failed to close offer %s as %s, leaving it for the next sweep", offer.id, status)
        return False


def _unique_in_order(ids: List[int]) -> List[int]:
    seen = set()
    unique = []
    for delivery_id in ids:
        if delivery_id not in seen:
            seen.add(delivery_id)
            unique.append(delivery_id)
    return unique


@guard_store_errors
def sweep_expired_offers() -> SweepResult:
    """
    Expire lapsed offers and queue their deliveries for redispatch.

    Also repairs orphaned pending offers (a pending offer whose delivery is
    not offered to that driver) by withdrawing them, and retries pending
    deliveries left without an offer because an earlier redispatch was
    never queued.

    Returns:
        SweepResult with processed (expired), repaired, retried, failed and
        reoffered counts
    """
    now = timezone.now()
    result = SweepResult()
    affected: List[int] = []

    for offer in offer_ledger.expired_pending_offers(now):
        if _try_close_offer(offer, DeliveryOffer.STATUS_EXPIRED, now, result):
            result.processed_count += 1
            affected.append(offer.delivery_id)

    for offer in offer_ledger.orphaned_pending_offers():
        if _try_close_offer(offer, DeliveryOffer.STATUS_WITHDRAWN, now, result):
            result.repaired_count += 1
            affected.append(offer.delivery_id)
            logger.warning(
                "Repaired orphaned offer %s: delivery %s was not offered to driver %s",
                offer.id, offer.delivery_id, offer.driver_id,
            )

    already_queued = set(affected)
    for delivery_id in offer_ledger.stalled_pending_deliveries():
        if delivery_id not in already_queued:
            result.retried_count += 1
            affected.append(delivery_id)

    # One delivery's failure must not block the rest
    for delivery_id in _unique_in_order(affected):
        if schedule_redispatch(delivery_id):
            result.reoffered_count += 1

    return result
