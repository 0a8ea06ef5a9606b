"""
Services package - Business logic layer.

This package contains all business logic services that operate on Django models
but are decoupled from the HTTP layer.

Modules:
    - matching: Driver selection and offer dispatch
    - delivery_management: Offer responses, expiry sweep, reclaim, completion
    - exceptions: Error taxonomy shared by both
"""

# Expose commonly used functions at package level
from .matching import (
    DispatchConfig,
    Dispatcher,
    DispatchResult,
    dispatch_delivery,
    schedule_redispatch,
)
from .delivery_management import (
    respond_to_offer,
    sweep_expired_offers,
    reclaim_delivery,
    complete_delivery,
    get_current_driver_delivery,
    OfferResponseResult,
    SweepResult,
    ReclaimResult,
)
from .exceptions import (
    DispatchError,
    NotFoundError,
    ConflictError,
    UnauthorizedError,
    TransientStoreError,
)

__all__ = [
    # Matching
    "DispatchConfig",
    "Dispatcher",
    "DispatchResult",
    "dispatch_delivery",
    "schedule_redispatch",
    # Delivery management
    "respond_to_offer",
    "sweep_expired_offers",
    "reclaim_delivery",
    "complete_delivery",
    "get_current_driver_delivery",
    "OfferResponseResult",
    "SweepResult",
    "ReclaimResult",
    # Exceptions
    "DispatchError",
    "NotFoundError",
    "ConflictError",
    "UnauthorizedError",
    "TransientStoreError",
]
