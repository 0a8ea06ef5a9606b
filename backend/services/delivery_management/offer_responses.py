"""
Driver responses to delivery offers.

Accepting assigns the delivery; declining hands it back to the dispatcher.
An accept that arrives after the offer window loses to the timeout.
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.db import transaction
from django.utils import timezone

from deliveries.models import Delivery, DeliveryOffer
from drivers import services as driver_directory
from services.exceptions import (
    CallerMismatchError,
    DeliveryNotAvailableError,
    DriverNotAvailableError,
    OfferNotFoundError,
    OfferNotPendingError,
    guard_store_errors,
)
from services.matching import offer_ledger, schedule_redispatch

logger = logging.getLogger(__name__)

ACCEPT = "accept"
DECLINE = "decline"
ACTIONS = (ACCEPT, DECLINE)


@dataclass
class OfferResponseResult:
    """Result object for a driver's response to an offer."""
    ACCEPTED = "accepted"
    DECLINED = "declined"
    EXPIRED = "expired"

    outcome: str
    offer_id: int
    delivery_id: int
    driver_id: int

    def as_dict(self) -> Dict[str, Any]:
        return {
            "action": self.outcome,
            "offer_id": self.offer_id,
            "delivery_id": self.delivery_id,
            "driver_id": self.driver_id,
        }


def _reset_delivery_if_offered_to(offer: DeliveryOffer) -> bool:
    """Return the delivery to pending only if it still waits on this offer's driver."""
    updated = Delivery.objects.filter(
        id=offer.delivery_id,
        status=Delivery.STATUS_OFFERED,
        offered_driver_id=offer.driver_id,
    ).update(
        status=Delivery.STATUS_PENDING,
        offered_driver=None,
        offer_expires_at=None,
    )
    return updated == 1


@guard_store_errors
@transaction.atomic
def respond_to_offer(offer_id: int, action: str, driver_id: Optional[int] = None) -> OfferResponseResult:
    """
    Apply a driver's accept/decline to a pending offer.

    Args:
        offer_id: ID of the offer being answered
        action: ``accept`` or ``decline``
        driver_id: Responding driver; when given it must own the offer

    Returns:
        OfferResponseResult with outcome ``accepted``, ``declined`` or ``expired``

    Raises:
        OfferNotFoundError: If the offer does not exist
        OfferNotPendingError: If the offer was already answered or expired
        CallerMismatchError: If ``driver_id`` is not the offer's driver
    """
    if action not in ACTIONS:
        raise ValueError(f"action must be one of {ACTIONS}, got {action!r}")

    offer = DeliveryOffer.objects.filter(id=offer_id).first()
    if offer is None:
        raise OfferNotFoundError()

    if driver_id is not None and offer.driver_id != driver_id:
        raise CallerMismatchError()

    if offer.status != DeliveryOffer.STATUS_PENDING:
        raise OfferNotPendingError()

    now = timezone.now()

    if action == ACCEPT:
        if offer_ledger.is_expired(offer.expires_at, now):
            return _expire_on_late_accept(offer, now)
        return _accept(offer, now)

    return _decline(offer, now)


def _expire_on_late_accept(offer: DeliveryOffer, now) -> OfferResponseResult:
    if not offer_ledger.close_offer(offer.id, DeliveryOffer.STATUS_EXPIRED, now):
        # The sweep got there first
        raise OfferNotPendingError()

    _reset_delivery_if_offered_to(offer)
    transaction.on_commit(lambda: schedule_redispatch(offer.delivery_id))

    logger.info(
        "Driver %s accepted offer %s after it expired at %s",
        offer.driver_id, offer.id, offer.expires_at.isoformat(),
    )
    return OfferResponseResult(
        outcome=OfferResponseResult.EXPIRED,
        offer_id=offer.id,
        delivery_id=offer.delivery_id,
        driver_id=offer.driver_id,
    )


def _accept(offer: DeliveryOffer, now) -> OfferResponseResult:
    if not offer_ledger.close_offer(offer.id, DeliveryOffer.STATUS_ACCEPTED, now):
        raise OfferNotPendingError()

    assigned = Delivery.objects.filter(
        id=offer.delivery_id,
        status=Delivery.STATUS_OFFERED,
        offered_driver_id=offer.driver_id,
    ).update(
        status=Delivery.STATUS_ASSIGNED,
        driver_id=offer.driver_id,
        offered_driver=None,
        offer_expires_at=None,
        assigned_at=now,
    )
    if not assigned:
        # Raising rolls back the offer transition above
        raise DeliveryNotAvailableError("This delivery was already handled")

    if not driver_directory.mark_driver_on_delivery(offer.driver_id):
        raise DriverNotAvailableError()

    logger.info("Driver %s accepted delivery %s (offer %s)", offer.driver_id, offer.delivery_id, offer.id)
    return OfferResponseResult(
        outcome=OfferResponseResult.ACCEPTED,
        offer_id=offer.id,
        delivery_id=offer.delivery_id,
        driver_id=offer.driver_id,
    )


def _decline(offer: DeliveryOffer, now) -> OfferResponseResult:
    if not offer_ledger.close_offer(offer.id, DeliveryOffer.STATUS_DECLINED, now):
        raise OfferNotPendingError()

    # A delivery that already moved on (re-offered, reclaimed) is left alone;
    # the redispatch then ends as a conflict and is dropped
    _reset_delivery_if_offered_to(offer)
    transaction.on_commit(lambda: schedule_redispatch(offer.delivery_id))

    logger.info("Driver %s declined delivery %s (offer %s)", offer.driver_id, offer.delivery_id, offer.id)
    return OfferResponseResult(
        outcome=OfferResponseResult.DECLINED,
        offer_id=offer.id,
        delivery_id=offer.delivery_id,
        driver_id=offer.driver_id,
    )
