"""
Driver matching and offer dispatch service.

This module handles:
    - Ranking drivers and offering a delivery to the best eligible one
    - The offer ledger (exclusions, terminal transitions, orphan detection)
    - Handing deliveries back to the dispatcher through the task queue
"""

from .config import DispatchConfig
from .offer_dispatch import Dispatcher, DispatchResult, dispatch_delivery
from .redispatch import schedule_redispatch

__all__ = [
    "DispatchConfig",
    "Dispatcher",
    "DispatchResult",
    "dispatch_delivery",
    "schedule_redispatch",
]
