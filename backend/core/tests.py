from django.contrib.auth.models import AnonymousUser
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from core.test_utils import TestDataFactory
from inventory.models import Product


class HealthCheckTests(TestCase):

    def test_health(self):
        response = APIClient().get('/api/health/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'healthy')
        self.assertEqual(response.data['database'], 'ok')


class ClientScopingTests(TestCase):

    def setUp(self):
        self.shop_a = TestDataFactory.create_client()
        self.shop_b = TestDataFactory.create_client()
        TestDataFactory.create_product(self.shop_a)
        TestDataFactory.create_product(self.shop_b)

    def test_vendor_sees_own_rows(self):
        rows = Product.objects.for_user(self.shop_a.user)
        self.assertEqual({p.client_id for p in rows}, {self.shop_a.id})

    def test_admin_sees_everything(self):
        self.assertEqual(Product.objects.for_user(TestDataFactory.create_admin()).count(), 2)

    def test_user_without_profile_sees_nothing(self):
        self.assertEqual(Product.objects.for_user(TestDataFactory.create_user()).count(), 0)
        self.assertEqual(Product.objects.for_user(AnonymousUser()).count(), 0)
