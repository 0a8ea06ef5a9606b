"""
Offer dispatch.

Handles the cascade for delivery offers:
1. Pick the best-ranked driver that has not already failed this delivery
2. Offer the delivery to that driver for a bounded window
3. On decline or expiry the delivery comes back here, minus that driver
4. Park the delivery as pending when nobody is left
"""

import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional

from django.db import transaction
from django.utils import timezone

from deliveries.models import Delivery, DeliveryOffer
from drivers import services as driver_directory
from services.exceptions import (
    ConcurrentUpdateError,
    DeliveryNotAvailableError,
    DeliveryNotFoundError,
    guard_store_errors,
)

from . import offer_ledger
from .config import DispatchConfig

logger = logging.getLogger(__name__)


@dataclass
class DispatchResult:
    """Result object for a dispatch attempt."""
    OFFERED = "offered"
    PARKED = "parked"

    outcome: str
    delivery_id: int
    offer: Optional[DeliveryOffer] = None

    @property
    def parked(self) -> bool:
        return self.outcome == self.PARKED

    @property
    def driver_id(self) -> Optional[int]:
        return self.offer.driver_id if self.offer else None

    def as_dict(self) -> Dict[str, Any]:
        return {
            "outcome": self.outcome,
            "delivery_id": self.delivery_id,
            "offer_id": self.offer.id if self.offer else None,
            "driver_id": self.driver_id,
        }


class Dispatcher:
    """
    Selects a driver for a delivery and records the offer.

    Every write is conditional on the state read at the start of the call, so
    two dispatches racing on the same delivery produce one offer and one
    ConcurrentUpdateError.
    """

    def __init__(self, config: Optional[DispatchConfig] = None):
        self.config = config or DispatchConfig.from_settings()

    @guard_store_errors
    def dispatch(self, delivery_id: int) -> DispatchResult:
        """
        Offer a delivery to the next eligible driver.

        Args:
            delivery_id: ID of the delivery to dispatch

        Returns:
            DispatchResult, outcome ``offered`` or ``parked``

        Raises:
            DeliveryNotFoundError: If the delivery does not exist
            DeliveryNotAvailableError: If it is assigned, finished, or holds a live offer
            ConcurrentUpdateError: If another operation changed it mid-dispatch
        """
        with transaction.atomic():
            delivery = Delivery.objects.filter(id=delivery_id).first()
            if delivery is None:
                raise DeliveryNotFoundError()

            now = timezone.now()
            observed_status = delivery.status
            observed_expiry = delivery.offer_expires_at

            if observed_status == Delivery.STATUS_OFFERED:
                if not offer_ledger.is_expired(observed_expiry, now):
                    raise DeliveryNotAvailableError("Delivery already has an active offer")
                # Lapsed offer nobody swept yet: expire it before re-offering
                expired = offer_ledger.expire_stale_offers_for_delivery(delivery.id, now)
                logger.info(
                    "Delivery %s had a lapsed offer, expired %d before redispatch",
                    delivery.id, expired,
                )
            elif observed_status != Delivery.STATUS_PENDING:
                raise DeliveryNotAvailableError(
                    f"Delivery is {observed_status}, not available for offering"
                )

            excluded = offer_ledger.excluded_driver_ids(delivery.id)
            driver = driver_directory.find_eligible_driver(
                excluded, windows=self.config.candidate_windows
            )

            claim = Delivery.objects.filter(
                id=delivery.id,
                status=observed_status,
                offer_expires_at=observed_expiry,
            )

            if driver is None:
                if not claim.update(
                    status=Delivery.STATUS_PENDING,
                    offered_driver=None,
                    offer_expires_at=None,
                ):
                    raise ConcurrentUpdateError()

                logger.info(
                    "No eligible driver for delivery %s (%d excluded), parked as pending",
                    delivery.id, len(excluded),
                )
                return DispatchResult(outcome=DispatchResult.PARKED, delivery_id=delivery.id)

            expires_at = now + self.config.offer_window
            if not claim.update(
                status=Delivery.STATUS_OFFERED,
                offered_driver=driver,
                offer_expires_at=expires_at,
            ):
                raise ConcurrentUpdateError()

            # Unique pending-offer constraint rejects a second live offer
            offer = DeliveryOffer.objects.create(
                delivery_id=delivery.id,
                driver=driver,
                status=DeliveryOffer.STATUS_PENDING,
                offered_at=now,
                expires_at=expires_at,
            )

        logger.info(
            "Offered delivery %s to driver %s (offer %s, expires %s)",
            delivery.id, driver.id, offer.id, expires_at.isoformat(),
        )
        return DispatchResult(outcome=DispatchResult.OFFERED, delivery_id=delivery.id, offer=offer)


def dispatch_delivery(delivery_id: int, config: Optional[DispatchConfig] = None) -> DispatchResult:
    """Dispatch with a Dispatcher built from settings."""
    return Dispatcher(config).dispatch(delivery_id)
