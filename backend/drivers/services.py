"""
Driver directory.

Read side used by the dispatcher (ranked candidate lists) plus the few
conditional writes the delivery core performs on drivers.
"""

import logging
from typing import Iterable, List, Optional, Sequence

from django.db.models import F
from django.utils import timezone

from drivers.models import Driver

logger = logging.getLogger(__name__)


def rank_available_drivers(limit: Optional[int] = None) -> List[Driver]:
    """
    Drivers that can take an offer, best first.

    Rating descending with nulls last, ties broken by id so the order is
    deterministic. ``limit=None`` returns every dispatchable driver.
    """
    queryset = (
        Driver.objects
        .filter(is_available=True, is_on_delivery=False)
        .order_by(F("rating").desc(nulls_last=True), "id")
    )
    if limit is not None:
        queryset = queryset[:limit]
    return list(queryset)


def find_eligible_driver(
    excluded_ids: Iterable[int],
    windows: Sequence[Optional[int]] = (1, 20),
) -> Optional[Driver]:
    """
    Return the best-ranked driver not in ``excluded_ids``.

    Only the top ``windows[0]`` drivers are fetched first; the query is
    widened to each following window size until a candidate survives the
    exclusion filter. Returns None when every window is exhausted.
    """
    excluded = set(excluded_ids)

    for window in windows:
        ranked = rank_available_drivers(limit=window)
        for driver in ranked:
            if driver.id not in excluded:
                return driver

        # Fewer rows than asked for means a wider window cannot find more
        if window is None or len(ranked) < window:
            break

        logger.debug(
            "No eligible driver in top %s (%d excluded), widening",
            window, len(excluded),
        )

    return None


def mark_driver_on_delivery(driver_id: int) -> bool:
    """Flip a driver to on-delivery. False if they already hold a delivery."""
    updated = Driver.objects.filter(id=driver_id, is_on_delivery=False).update(
        is_on_delivery=True,
        last_status_update=timezone.now(),
    )
    return updated == 1


def release_driver(driver_id: int) -> bool:
    """Completion hook: the driver no longer holds an assigned delivery."""
    updated = Driver.objects.filter(id=driver_id, is_on_delivery=True).update(
        is_on_delivery=False,
        last_status_update=timezone.now(),
    )
    return updated == 1


# DRIVER AVAILABILITY (driver app side)
def update_driver_availability(driver: Driver, is_available: bool) -> Driver:
    driver.is_available = is_available
    driver.last_status_update = timezone.now()
    driver.save(update_fields=["is_available", "last_status_update"])

    logger.info("Driver %s availability set to %s", driver.id, is_available)
    return driver
