"""
Offer ledger access.

Every offer ever made for a delivery stays in ``delivery_offers``; this module
holds the queries the dispatcher and handlers run against it, and the single
compare-and-swap used to move an offer out of ``pending``.
"""

from datetime import datetime
from typing import List, Set

from django.db.models import F, Q

from deliveries.models import Delivery, DeliveryOffer


def is_expired(expires_at: datetime, now: datetime) -> bool:
    """An offer is expired once its window has strictly passed."""
    return expires_at < now


def excluded_driver_ids(delivery_id: int) -> Set[int]:
    """Drivers a delivery must never be re-offered to."""
    return set(
        DeliveryOffer.objects.filter(
            delivery_id=delivery_id,
            status__in=[DeliveryOffer.STATUS_DECLINED, DeliveryOffer.STATUS_EXPIRED],
        ).values_list("driver_id", flat=True)
    )


def has_declined(delivery_id: int, driver_id: int) -> bool:
    return DeliveryOffer.objects.filter(
        delivery_id=delivery_id,
        driver_id=driver_id,
        status=DeliveryOffer.STATUS_DECLINED,
    ).exists()


def close_offer(offer_id: int, status: str, now: datetime) -> bool:
    """
    Move a pending offer to a terminal status.

    The status check happens in the UPDATE itself, so of several concurrent
    callers exactly one gets True.
    """
    if status not in DeliveryOffer.TERMINAL_STATUSES:
        raise ValueError(f"{status!r} is not a terminal offer status")

    updated = DeliveryOffer.objects.filter(
        id=offer_id,
        status=DeliveryOffer.STATUS_PENDING,
    ).update(status=status, responded_at=now)
    return updated == 1


def expire_stale_offers_for_delivery(delivery_id: int, now: datetime) -> int:
    return DeliveryOffer.objects.filter(
        delivery_id=delivery_id,
        status=DeliveryOffer.STATUS_PENDING,
        expires_at__lt=now,
    ).update(status=DeliveryOffer.STATUS_EXPIRED, responded_at=now)


def expired_pending_offers(now: datetime) -> List[DeliveryOffer]:
    return list(
        DeliveryOffer.objects
        .filter(status=DeliveryOffer.STATUS_PENDING, expires_at__lt=now)
        .order_by("expires_at", "id")
    )


def orphaned_pending_offers() -> List[DeliveryOffer]:
    """
    Pending offers whose delivery does not point back at them.

    A consistent pending offer always has its delivery ``offered`` to the
    same driver; anything else is left over from a partially applied write.
    """
    return list(
        DeliveryOffer.objects
        .filter(status=DeliveryOffer.STATUS_PENDING)
        .exclude(
            Q(delivery__status=Delivery.STATUS_OFFERED)
            & Q(delivery__offered_driver=F("driver"))
        )
        .order_by("id")
    )


def stalled_pending_deliveries() -> List[int]:
    """
    Pending deliveries that were offered before but hold no pending offer.

    These are deliveries whose redispatch never got queued (or was dropped)
    after a decline or expiry.
    """
    return list(
        Delivery.objects
        .filter(
            status=Delivery.STATUS_PENDING,
            offers__status__in=[
                DeliveryOffer.STATUS_DECLINED,
                DeliveryOffer.STATUS_EXPIRED,
                DeliveryOffer.STATUS_WITHDRAWN,
            ],
        )
        .exclude(offers__status=DeliveryOffer.STATUS_PENDING)
        .order_by("id")
        .values_list("id", flat=True)
        .distinct()
    )


def pending_offers_for_driver(driver_id: int):
    return (
        DeliveryOffer.objects
        .filter(driver_id=driver_id, status=DeliveryOffer.STATUS_PENDING)
        .select_related("delivery")
        .order_by("expires_at")
    )
