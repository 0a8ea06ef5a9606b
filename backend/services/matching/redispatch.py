"""Hand deliveries back to the dispatcher through the task queue."""

import logging

from deliveries.tasks import dispatch_delivery_task

logger = logging.getLogger(__name__)


def schedule_redispatch(delivery_id: int) -> bool:
    """
    Queue a dispatch for a delivery that just went back to pending.

    Best effort: a broker failure is logged and swallowed. The delivery is
    already pending, so the next sweep or a manual dispatch picks it up.
    """
    try:
        dispatch_delivery_task.delay(delivery_id)
    except Exception:
        logger.exception("Failed to queue redispatch for delivery %s", delivery_id)
        return False

    logger.debug("Queued redispatch for delivery %s", delivery_id)
    return True
