from datetime import timedelta
from unittest.mock import patch

from django.test import TestCase

from deliveries.models import Delivery, DeliveryOffer
from services.delivery_management import OfferResponseResult, respond_to_offer
from services.exceptions import (
    CallerMismatchError,
    DeliveryNotAvailableError,
    DriverNotAvailableError,
    OfferNotFoundError,
    OfferNotPendingError,
)

from .helpers import (
    assert_offer_fields_consistent,
    make_delivery,
    make_driver,
    offer_delivery,
    pending_offer_count,
)


class AcceptOfferTests(TestCase):
    def setUp(self):
        self.driver_one = make_driver('driver_one', rating=4.8)
        self.driver_two = make_driver('driver_two', rating=4.5)
        self.delivery = make_delivery()
        self.offer = offer_delivery(self.delivery, self.driver_one)

    def test_accept_assigns_delivery_and_marks_driver_busy(self):
        result = respond_to_offer(self.offer.id, 'accept')

        self.assertEqual(result.outcome, OfferResponseResult.ACCEPTED)
        self.assertEqual(result.delivery_id, self.delivery.id)

        self.offer.refresh_from_db()
        self.delivery.refresh_from_db()
        self.driver_one.refresh_from_db()

        self.assertEqual(self.offer.status, 'accepted')
        self.assertIsNotNone(self.offer.responded_at)
        self.assertEqual(self.delivery.status, 'assigned')
        self.assertEqual(self.delivery.driver_id, self.driver_one.id)
        self.assertIsNone(self.delivery.offered_driver_id)
        self.assertIsNone(self.delivery.offer_expires_at)
        self.assertIsNotNone(self.delivery.assigned_at)
        self.assertTrue(self.driver_one.is_on_delivery)
        assert_offer_fields_consistent(self, self.delivery)

    def test_responding_twice_is_a_conflict(self):
        respond_to_offer(self.offer.id, 'accept')

        with self.assertRaises(OfferNotPendingError):
            respond_to_offer(self.offer.id, 'accept')
        with self.assertRaises(OfferNotPendingError):
            respond_to_offer(self.offer.id, 'decline')

        self.offer.refresh_from_db()
        self.assertEqual(self.offer.status, 'accepted')

    def test_late_accept_loses_to_timeout(self):
        delivery = make_delivery()
        late = offer_delivery(delivery, self.driver_two, expires_in=timedelta(seconds=-5))

        with self.captureOnCommitCallbacks(execute=True) as callbacks:
            result = respond_to_offer(late.id, 'accept')

        self.assertEqual(result.outcome, OfferResponseResult.EXPIRED)
        self.assertEqual(len(callbacks), 1)

        late.refresh_from_db()
        self.driver_two.refresh_from_db()
        self.assertEqual(late.status, 'expired')
        self.assertFalse(self.driver_two.is_on_delivery)

        # Redispatch ran eagerly and skipped the driver who timed out
        delivery.refresh_from_db()
        self.assertEqual(delivery.status, 'offered')
        self.assertEqual(delivery.offered_driver_id, self.driver_one.id)
        assert_offer_fields_consistent(self, delivery)

    def test_accept_rolls_back_when_driver_already_on_delivery(self):
        self.driver_one.is_on_delivery = True
        self.driver_one.save(update_fields=['is_on_delivery'])

        with self.assertRaises(DriverNotAvailableError):
            respond_to_offer(self.offer.id, 'accept')

        self.offer.refresh_from_db()
        self.delivery.refresh_from_db()
        self.assertEqual(self.offer.status, 'pending')
        self.assertEqual(self.delivery.status, 'offered')

    def test_accept_rolls_back_when_delivery_moved_on(self):
        Delivery.objects.filter(id=self.delivery.id).update(
            status=Delivery.STATUS_CANCELLED,
            offered_driver=None,
            offer_expires_at=None,
        )

        with self.assertRaises(DeliveryNotAvailableError):
            respond_to_offer(self.offer.id, 'accept')

        self.offer.refresh_from_db()
        self.assertEqual(self.offer.status, 'pending')

    def test_only_the_offered_driver_may_respond(self):
        with self.assertRaises(CallerMismatchError):
            respond_to_offer(self.offer.id, 'accept', driver_id=self.driver_two.id)

    def test_missing_offer(self):
        with self.assertRaises(OfferNotFoundError):
            respond_to_offer(424242, 'accept')

    def test_unknown_action(self):
        with self.assertRaises(ValueError):
            respond_to_offer(self.offer.id, 'maybe')


class DeclineOfferTests(TestCase):
    def setUp(self):
        self.driver_a = make_driver('driver_a', rating=4.8)
        self.driver_b = make_driver('driver_b', rating=4.5)
        self.delivery = make_delivery()
        self.offer = offer_delivery(self.delivery, self.driver_a)

    def test_decline_resets_delivery_and_offers_to_someone_else(self):
        with self.captureOnCommitCallbacks(execute=True):
            result = respond_to_offer(self.offer.id, 'decline')

        self.assertEqual(result.outcome, OfferResponseResult.DECLINED)

        self.offer.refresh_from_db()
        self.assertEqual(self.offer.status, 'declined')
        self.assertIsNotNone(self.offer.responded_at)

        new_offer = DeliveryOffer.objects.get(delivery=self.delivery, status='pending')
        self.assertEqual(new_offer.driver_id, self.driver_b.id)
        self.assertNotEqual(new_offer.driver_id, self.driver_a.id)
        assert_offer_fields_consistent(self, self.delivery)

    def test_decline_without_redispatch_leaves_delivery_pending(self):
        with self.captureOnCommitCallbacks(execute=False):
            respond_to_offer(self.offer.id, 'decline')

        self.delivery.refresh_from_db()
        self.assertEqual(self.delivery.status, 'pending')
        self.assertIsNone(self.delivery.offered_driver_id)
        self.assertIsNone(self.delivery.offer_expires_at)

    def test_decline_parks_when_nobody_is_left(self):
        self.driver_b.is_available = False
        self.driver_b.save(update_fields=['is_available'])

        with self.captureOnCommitCallbacks(execute=True):
            respond_to_offer(self.offer.id, 'decline')

        self.delivery.refresh_from_db()
        self.assertEqual(self.delivery.status, 'pending')
        self.assertEqual(pending_offer_count(self.delivery), 0)

    @patch('services.matching.redispatch.dispatch_delivery_task')
    def test_queue_failure_does_not_fail_the_decline(self, mock_task):
        mock_task.delay.side_effect = ConnectionError('broker down')

        with self.captureOnCommitCallbacks(execute=True):
            result = respond_to_offer(self.offer.id, 'decline')

        self.assertEqual(result.outcome, OfferResponseResult.DECLINED)
        mock_task.delay.assert_called_once_with(self.delivery.id)

        self.delivery.refresh_from_db()
        self.assertEqual(self.delivery.status, 'pending')

    def test_decline_does_not_clobber_a_delivery_that_moved_on(self):
        # Delivery was taken through another path while this offer was open
        Delivery.objects.filter(id=self.delivery.id).update(
            status=Delivery.STATUS_ASSIGNED,
            driver=self.driver_b,
            offered_driver=None,
            offer_expires_at=None,
        )

        with self.captureOnCommitCallbacks(execute=True):
            respond_to_offer(self.offer.id, 'decline')

        self.delivery.refresh_from_db()
        self.assertEqual(self.delivery.status, 'assigned')
        self.assertEqual(self.delivery.driver_id, self.driver_b.id)
