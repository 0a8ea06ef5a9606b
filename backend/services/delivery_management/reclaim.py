"""Reclaim: a driver takes back a delivery they declined while it is still unassigned."""

import logging
from dataclasses import dataclass

from django.db import transaction
from django.utils import timezone

from deliveries.models import Delivery, DeliveryOffer
from drivers import services as driver_directory
from drivers.models import Driver
from services.exceptions import (
    CallerMismatchError,
    DeliveryNotAvailableError,
    DeliveryNotFoundError,
    DriverNotAvailableError,
    DriverNotFoundError,
    NoDeclinedOfferError,
    guard_store_errors,
)
from services.matching import offer_ledger

logger = logging.getLogger(__name__)


@dataclass
class ReclaimResult:
    delivery_id: int
    driver_id: int
    offer_id: int


@guard_store_errors
@transaction.atomic
def reclaim_delivery(delivery_id: int, driver_id: int, caller_user_id: int) -> ReclaimResult:
    """
    Assign a pending delivery straight to a driver who previously declined it.

    Bypasses ranking entirely. First reclaim wins; a delivery already offered
    to or taken by someone else is not overridden.

    Args:
        delivery_id: ID of the delivery to reclaim
        driver_id: Driver reclaiming it
        caller_user_id: Verified identity of the caller, must own ``driver_id``

    Returns:
        ReclaimResult with the synthetic accepted offer

    Raises:
        DriverNotFoundError, CallerMismatchError, DeliveryNotFoundError,
        NoDeclinedOfferError, DeliveryNotAvailableError, DriverNotAvailableError
    """
    driver = Driver.objects.filter(id=driver_id).first()
    if driver is None:
        raise DriverNotFoundError()
    if driver.user_id != caller_user_id:
        raise CallerMismatchError("You can only reclaim deliveries for yourself")

    if not Delivery.objects.filter(id=delivery_id).exists():
        raise DeliveryNotFoundError()

    if not offer_ledger.has_declined(delivery_id, driver_id):
        raise NoDeclinedOfferError()

    now = timezone.now()

    taken = Delivery.objects.filter(id=delivery_id, status=Delivery.STATUS_PENDING).update(
        status=Delivery.STATUS_ASSIGNED,
        driver_id=driver_id,
        offered_driver=None,
        offer_expires_at=None,
        assigned_at=now,
    )
    if not taken:
        raise DeliveryNotAvailableError("This delivery has already been taken")

    if not driver_directory.mark_driver_on_delivery(driver_id):
        raise DriverNotAvailableError()

    # Every assignment traces back to an offer, so record one already accepted
    offer = DeliveryOffer.objects.create(
        delivery_id=delivery_id,
        driver_id=driver_id,
        status=DeliveryOffer.STATUS_ACCEPTED,
        offered_at=now,
        expires_at=now,
        responded_at=now,
    )

    logger.info("Driver %s reclaimed delivery %s (offer %s)", driver_id, delivery_id, offer.id)
    return ReclaimResult(delivery_id=delivery_id, driver_id=driver_id, offer_id=offer.id)
