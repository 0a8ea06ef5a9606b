"""Assignment-side lifecycle hooks the dispatch core exposes."""

import logging
from typing import Optional

from django.db import transaction
from django.utils import timezone

from deliveries.models import Delivery
from drivers import services as driver_directory
from services.exceptions import DeliveryNotAvailableError, DeliveryNotFoundError, guard_store_errors

logger = logging.getLogger(__name__)


@guard_store_errors
@transaction.atomic
def complete_delivery(delivery_id: int, driver_id: int) -> Delivery:
    """
    Mark an assigned delivery completed and free its driver for new offers.

    Raises:
        DeliveryNotFoundError: If the delivery does not exist
        DeliveryNotAvailableError: If it is not assigned to ``driver_id``
    """
    if not Delivery.objects.filter(id=delivery_id).exists():
        raise DeliveryNotFoundError()

    completed = Delivery.objects.filter(
        id=delivery_id,
        status=Delivery.STATUS_ASSIGNED,
        driver_id=driver_id,
    ).update(status=Delivery.STATUS_COMPLETED, completed_at=timezone.now())
    if not completed:
        raise DeliveryNotAvailableError("Delivery not found or not assigned to you")

    if not driver_directory.release_driver(driver_id):
        logger.warning("Driver %s was not marked on delivery when completing %s", driver_id, delivery_id)

    logger.info("Delivery %s completed by driver %s", delivery_id, driver_id)
    return Delivery.objects.get(id=delivery_id)


def get_current_driver_delivery(driver_id: int) -> Optional[Delivery]:
    """Get driver's current assigned delivery."""
    return Delivery.objects.filter(
        driver_id=driver_id,
        status=Delivery.STATUS_ASSIGNED,
    ).first()
