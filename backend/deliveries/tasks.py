"""Celery tasks for delivery dispatch background processing."""

from celery import shared_task
import logging

logger = logging.getLogger(__name__)


@shared_task(bind=True, max_retries=3, default_retry_delay=15)
def dispatch_delivery_task(self, delivery_id: int):
    """
    Celery task to (re)dispatch a delivery.

    Queued after a decline or an expiry. Store hiccups are retried; a
    delivery that moved on in the meantime (assigned, re-offered) is simply
    left alone.
    """
    from services.exceptions import DispatchError, TransientStoreError
    from services.matching import Dispatcher

    try:
        result = Dispatcher().dispatch(delivery_id)
    except TransientStoreError as exc:
        logger.warning("Transient failure dispatching delivery %s, retrying: %s", delivery_id, exc)
        raise self.retry(exc=exc)
    except DispatchError as exc:
        logger.info("Skipped dispatch of delivery %s: %s", delivery_id, exc)
        return None

    return result.as_dict()


@shared_task
def sweep_expired_offers_task():
    """
    Periodic task (Celery beat) resolving offers whose window has elapsed.
    """
    from services.delivery_management import sweep_expired_offers

    result = sweep_expired_offers()
    if not result.nothing_to_do:
        logger.info(
            "Offer sweep expired %s, repaired %s, retried %s, failed %s, redispatched %s",
            result.processed_count,
            result.repaired_count,
            result.retried_count,
            result.failed_count,
            result.reoffered_count,
        )
    return result.as_dict()
