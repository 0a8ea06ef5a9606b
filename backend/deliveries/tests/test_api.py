from datetime import timedelta

from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from deliveries.models import DeliveryOffer

from .helpers import closed_offer, make_delivery, make_driver, offer_delivery

User = get_user_model()


class DispatcherApiTests(TestCase):
    def setUp(self):
        self.client = APIClient()
        self.staff = User.objects.create_user(username='ops', password='ops12345', is_staff=True)
        self.client.force_authenticate(user=self.staff)
        self.delivery = make_delivery()

    def test_dispatch_parks_without_drivers(self):
        response = self.client.post(f'/api/deliveries/{self.delivery.id}/dispatch/')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['parked'])
        self.assertEqual(response.data['delivery_id'], self.delivery.id)

    def test_dispatch_returns_offer(self):
        driver = make_driver('rider', rating=4.3)

        response = self.client.post(f'/api/deliveries/{self.delivery.id}/dispatch/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['driver_id'], driver.id)
        self.assertEqual(response.data['offer']['status'], 'pending')

    def test_dispatch_conflict_and_not_found(self):
        make_driver('rider', rating=4.3)
        self.client.post(f'/api/deliveries/{self.delivery.id}/dispatch/')

        conflict = self.client.post(f'/api/deliveries/{self.delivery.id}/dispatch/')
        missing = self.client.post('/api/deliveries/999999/dispatch/')

        self.assertEqual(conflict.status_code, 409)
        self.assertEqual(conflict.data['error'], 'delivery_not_available')
        self.assertEqual(missing.status_code, 404)

    def test_dispatch_requires_staff(self):
        driver = make_driver('rider', rating=4.3)
        client = APIClient()
        client.force_authenticate(user=driver.user)

        response = client.post(f'/api/deliveries/{self.delivery.id}/dispatch/')

        self.assertEqual(response.status_code, 403)

    def test_sweep_endpoint(self):
        empty = self.client.post('/api/deliveries/offers/sweep/')
        self.assertEqual(empty.data['message'], 'No expired offers')

        make_driver('next_up', rating=4.0)
        lapsed = make_driver('lapsed', rating=4.9)
        offer_delivery(self.delivery, lapsed, expires_in=timedelta(seconds=-5))

        response = self.client.post('/api/deliveries/offers/sweep/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['processed_count'], 1)
        self.assertEqual(response.data['reoffered_count'], 1)


class DriverApiTests(TestCase):
    def setUp(self):
        self.driver = make_driver('driver_one', rating=4.8)
        self.backup = make_driver('driver_two', rating=4.2)
        self.client = APIClient()
        self.client.force_authenticate(user=self.driver.user)
        self.delivery = make_delivery()

    def test_accept_then_second_response_conflicts(self):
        offer = offer_delivery(self.delivery, self.driver)
        url = f'/api/deliveries/offers/{offer.id}/respond/'

        first = self.client.post(url, {'action': 'accept'}, format='json')
        second = self.client.post(url, {'action': 'decline'}, format='json')

        self.assertEqual(first.status_code, 200)
        self.assertEqual(first.data, {'success': True, 'action': 'accepted', 'delivery_id': self.delivery.id})
        self.assertEqual(second.status_code, 409)
        self.assertEqual(second.data['error'], 'offer_not_pending')

    def test_late_accept_is_gone(self):
        offer = offer_delivery(self.delivery, self.driver, expires_in=timedelta(seconds=-1))

        with self.captureOnCommitCallbacks(execute=True):
            response = self.client.post(
                f'/api/deliveries/offers/{offer.id}/respond/', {'action': 'accept'}, format='json'
            )

        self.assertEqual(response.status_code, 410)
        self.assertEqual(response.data['error'], 'offer_expired')

        self.delivery.refresh_from_db()
        self.assertEqual(self.delivery.offered_driver_id, self.backup.id)

    def test_cannot_answer_someone_elses_offer(self):
        offer = offer_delivery(self.delivery, self.backup)

        response = self.client.post(
            f'/api/deliveries/offers/{offer.id}/respond/', {'action': 'accept'}, format='json'
        )

        self.assertEqual(response.status_code, 403)
        offer.refresh_from_db()
        self.assertEqual(offer.status, 'pending')

    def test_invalid_action(self):
        offer = offer_delivery(self.delivery, self.driver)

        response = self.client.post(
            f'/api/deliveries/offers/{offer.id}/respond/', {'action': 'later'}, format='json'
        )

        self.assertEqual(response.status_code, 400)

    def test_non_driver_is_rejected(self):
        offer = offer_delivery(self.delivery, self.driver)
        client = APIClient()
        client.force_authenticate(user=User.objects.create_user(username='shopper', password='x1234567'))

        response = client.post(
            f'/api/deliveries/offers/{offer.id}/respond/', {'action': 'accept'}, format='json'
        )

        self.assertEqual(response.status_code, 403)

    def test_reclaim_after_decline(self):
        closed_offer(self.delivery, self.driver, DeliveryOffer.STATUS_DECLINED)

        response = self.client.post(f'/api/deliveries/{self.delivery.id}/reclaim/', {}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertTrue(response.data['success'])
        self.delivery.refresh_from_db()
        self.assertEqual(self.delivery.driver_id, self.driver.id)

    def test_reclaim_without_decline_is_forbidden(self):
        response = self.client.post(f'/api/deliveries/{self.delivery.id}/reclaim/', {}, format='json')

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['error'], 'no_declined_offer')

    def test_reclaim_for_another_driver_is_forbidden(self):
        closed_offer(self.delivery, self.backup, DeliveryOffer.STATUS_DECLINED)

        response = self.client.post(
            f'/api/deliveries/{self.delivery.id}/reclaim/', {'driver_id': self.backup.id}, format='json'
        )

        self.assertEqual(response.status_code, 403)
        self.assertEqual(response.data['error'], 'caller_mismatch')

    def test_pending_offers_and_current_delivery(self):
        offer = offer_delivery(self.delivery, self.driver)

        offers = self.client.get('/api/driver/offers/')
        self.assertEqual(offers.status_code, 200)
        self.assertEqual(offers.data['count'], 1)
        self.assertEqual(offers.data['offers'][0]['id'], offer.id)

        self.assertEqual(self.client.get('/api/driver/current-delivery/').status_code, 404)

        self.client.post(f'/api/deliveries/offers/{offer.id}/respond/', {'action': 'accept'}, format='json')

        current = self.client.get('/api/driver/current-delivery/')
        self.assertEqual(current.status_code, 200)
        self.assertEqual(current.data['id'], self.delivery.id)

        done = self.client.post(f'/api/deliveries/{self.delivery.id}/complete/')
        self.assertEqual(done.status_code, 200)
        self.assertEqual(done.data['delivery']['status'], 'completed')
