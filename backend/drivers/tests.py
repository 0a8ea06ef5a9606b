from django.contrib.auth import get_user_model
from django.test import TestCase
from rest_framework.test import APIClient

from drivers import services
from drivers.models import Driver

User = get_user_model()


def create_driver(username, rating=None, **fields):
    fields.setdefault('is_available', True)
    user = User.objects.create_user(username=username, password='driver1234')
    return Driver.objects.create(user=user, vehicle_number=f'KA-{username}', rating=rating, **fields)


class DriverRankingTests(TestCase):
    def setUp(self):
        self.a = create_driver('a', rating=4.1)
        self.b = create_driver('b', rating=4.9)
        self.c = create_driver('c', rating=None)
        self.d = create_driver('d', rating=4.1)
        create_driver('offline', rating=5.0, is_available=False)
        create_driver('busy', rating=5.0, is_on_delivery=True)

    def test_rank_order(self):
        ranked = services.rank_available_drivers()

        self.assertEqual([d.id for d in ranked], [self.b.id, self.a.id, self.d.id, self.c.id])

    def test_rank_limit(self):
        self.assertEqual(services.rank_available_drivers(limit=1), [self.b])

    def test_find_eligible_widens(self):
        driver = services.find_eligible_driver({self.b.id}, windows=(1, 20))

        self.assertEqual(driver, self.a)

    def test_find_eligible_exhausted(self):
        excluded = {self.a.id, self.b.id, self.c.id, self.d.id}

        self.assertIsNone(services.find_eligible_driver(excluded, windows=(1, None)))

    def test_find_eligible_respects_last_window(self):
        # Top two are excluded and the windows stop at two
        self.assertIsNone(services.find_eligible_driver({self.a.id, self.b.id}, windows=(1, 2)))


class DriverStateTests(TestCase):
    def setUp(self):
        self.driver = create_driver('courier', rating=4.5)

    def test_mark_on_delivery_only_once(self):
        self.assertTrue(services.mark_driver_on_delivery(self.driver.id))
        self.assertFalse(services.mark_driver_on_delivery(self.driver.id))

        self.driver.refresh_from_db()
        self.assertTrue(self.driver.is_on_delivery)

    def test_release(self):
        services.mark_driver_on_delivery(self.driver.id)

        self.assertTrue(services.release_driver(self.driver.id))
        self.assertFalse(services.release_driver(self.driver.id))


class DriverStatusApiTests(TestCase):
    def setUp(self):
        self.driver = create_driver('courier', rating=4.5)
        self.client = APIClient()
        self.client.force_authenticate(user=self.driver.user)

    def test_go_offline(self):
        response = self.client.put('/api/driver/status/', {'is_available': False}, format='json')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['message'], 'Offline')
        self.driver.refresh_from_db()
        self.assertFalse(self.driver.is_available)
        self.assertEqual(services.rank_available_drivers(), [])

    def test_status_requires_field(self):
        response = self.client.put('/api/driver/status/', {}, format='json')

        self.assertEqual(response.status_code, 400)

    def test_profile(self):
        response = self.client.get('/api/driver/profile/')

        self.assertEqual(response.status_code, 200)
        self.assertEqual(response.data['vehicle_number'], 'KA-courier')

    def test_non_driver_forbidden(self):
        client = APIClient()
        client.force_authenticate(user=User.objects.create_user(username='plain', password='x1234567'))

        self.assertEqual(client.get('/api/driver/status/').status_code, 403)
