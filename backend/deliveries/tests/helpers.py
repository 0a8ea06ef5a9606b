from datetime import timedelta

from django.contrib.auth import get_user_model
from django.utils import timezone

from deliveries.models import Delivery, DeliveryOffer
from drivers.models import Driver

User = get_user_model()


def make_driver(username, rating=None, is_available=True, is_on_delivery=False):
    user = User.objects.create_user(username=username, password='driver1234')
    return Driver.objects.create(
        user=user,
        vehicle_number=f'KA-{username}',
        is_available=is_available,
        is_on_delivery=is_on_delivery,
        rating=rating,
    )


def make_delivery(**fields):
    fields.setdefault('pickup_address', 'Warehouse 7')
    fields.setdefault('dropoff_address', 'MG Road 12')
    return Delivery.objects.create(**fields)


def offer_delivery(delivery, driver, expires_in=timedelta(minutes=5)):
    """Put a delivery in the offered state the way the dispatcher leaves it."""
    expires_at = timezone.now() + expires_in
    delivery.status = Delivery.STATUS_OFFERED
    delivery.offered_driver = driver
    delivery.offer_expires_at = expires_at
    delivery.save(update_fields=['status', 'offered_driver', 'offer_expires_at'])
    return DeliveryOffer.objects.create(
        delivery=delivery,
        driver=driver,
        status=DeliveryOffer.STATUS_PENDING,
        offered_at=expires_at - timedelta(minutes=5),
        expires_at=expires_at,
    )


def closed_offer(delivery, driver, status):
    now = timezone.now()
    return DeliveryOffer.objects.create(
        delivery=delivery,
        driver=driver,
        status=status,
        offered_at=now - timedelta(minutes=10),
        expires_at=now - timedelta(minutes=5),
        responded_at=now - timedelta(minutes=6),
    )


def pending_offer_count(delivery):
    return DeliveryOffer.objects.filter(delivery=delivery, status=DeliveryOffer.STATUS_PENDING).count()


def assert_offer_fields_consistent(testcase, delivery):
    delivery.refresh_from_db()
    offered = delivery.status == Delivery.STATUS_OFFERED
    testcase.assertEqual(offered, delivery.offered_driver_id is not None)
    testcase.assertEqual(offered, delivery.offer_expires_at is not None)
    testcase.assertLessEqual(pending_offer_count(delivery), 1)
