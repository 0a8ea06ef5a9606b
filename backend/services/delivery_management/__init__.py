"""
Delivery management service - driver-facing offer operations.

This module handles:
    - Accepting/declining offers
    - Sweeping expired offers
    - Reclaiming declined deliveries
    - Completing deliveries
"""

from .offer_responses import (
    ACCEPT,
    ACTIONS,
    DECLINE,
    OfferResponseResult,
    respond_to_offer,
)
from .offer_expiry import SweepResult, sweep_expired_offers
from .reclaim import ReclaimResult, reclaim_delivery
from .delivery_lifecycle import complete_delivery, get_current_driver_delivery

__all__ = [
    # Offer responses
    "ACCEPT",
    "ACTIONS",
    "DECLINE",
    "OfferResponseResult",
    "respond_to_offer",
    # Sweep
    "SweepResult",
    "sweep_expired_offers",
    # Reclaim
    "ReclaimResult",
    "reclaim_delivery",
    # Lifecycle
    "complete_delivery",
    "get_current_driver_delivery",
]
