from decimal import Decimal
from io import StringIO

from django.contrib.auth import get_user_model
from django.core.management import call_command
from django.test import TestCase
from rest_framework import status
from rest_framework.test import APIClient

from billing.models import Subscription
from billing.utils import get_plan_code
from clients.models import ClientProfile
from core.test_utils import AuthenticatedAPIClient, TestDataFactory
from sales.services import record_sale

User = get_user_model()

CLIENTS_URL = '/api/clients/'


class ClientAdminTests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.api = AuthenticatedAPIClient().authenticate_user(self.admin)

    def test_create_client_with_user_and_trial(self):
        response = self.api.post(CLIENTS_URL, {
            'email': 'Mama.Foods@Example.com',
            'password': 'secret123',
            'business_name': 'Mama Foods',
            'contact_person': 'Esi',
        }, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['slug'], 'mama-foods')
        self.assertEqual(response.data['subscription_status'], 'TRIAL')
        self.assertEqual(response.data['current_plan'], 'BASIC')

        user = User.objects.get(email='mama.foods@example.com')
        self.assertEqual(user.role, User.ROLE_VENDOR)
        self.assertTrue(Subscription.objects.filter(client__user=user, status='TRIAL').exists())

    def test_duplicate_email_rejected(self):
        TestDataFactory.create_user(email='taken@example.com')
        response = self.api.post(CLIENTS_URL, {
            'email': 'TAKEN@example.com', 'password': 'secret123', 'business_name': 'Dup',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_slugs_are_unique(self):
        first = TestDataFactory.create_client(business_name='Corner Shop')
        second = TestDataFactory.create_client(business_name='Corner Shop')
        self.assertEqual(first.slug, 'corner-shop')
        self.assertEqual(second.slug, 'corner-shop-2')

    def test_toggle_status_and_filter(self):
        client = TestDataFactory.create_client()
        TestDataFactory.create_client()

        response = self.api.post(f'{CLIENTS_URL}{client.id}/toggle_status/', {'status': 'SUSPENDED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        response = self.api.get(CLIENTS_URL, {'status': 'SUSPENDED'})
        self.assertEqual([c['id'] for c in response.data['results']], [client.id])

    def test_bulk_delete_removes_users(self):
        client = TestDataFactory.create_client()
        user_id = client.user_id
        response = self.api.post(f'{CLIENTS_URL}bulk_delete/', {'ids': [client.id]}, format='json')
        self.assertEqual(response.data['deleted'], 1)
        self.assertFalse(User.objects.filter(pk=user_id).exists())
        self.assertFalse(ClientProfile.objects.filter(pk=client.id).exists())

    def test_vendor_cannot_list_clients(self):
        vendor = TestDataFactory.create_client()
        api = AuthenticatedAPIClient().authenticate_user(vendor.user)
        self.assertEqual(api.get(CLIENTS_URL).status_code, status.HTTP_403_FORBIDDEN)


class VendorSelfServiceTests(TestCase):

    def setUp(self):
        self.vendor = TestDataFactory.create_client(business_name='Akosua Provisions')
        self.api = AuthenticatedAPIClient().authenticate_user(self.vendor.user)

    def test_me(self):
        response = self.api.get(f'{CLIENTS_URL}me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['business_name'], 'Akosua Provisions')

    def test_vendor_cannot_change_own_subscription_status(self):
        response = self.api.patch(
            f'{CLIENTS_URL}me/', {'business_address': 'Kumasi', 'subscription_status': 'ACTIVE'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.vendor.refresh_from_db()
        self.assertEqual(self.vendor.business_address, 'Kumasi')
        self.assertEqual(self.vendor.subscription_status, 'TRIAL')

    def test_stats(self):
        product = TestDataFactory.create_product(self.vendor, stock=5)
        record_sale(self.vendor, [{'product': product, 'quantity': 2, 'unit_price': Decimal('10.00')}])

        response = self.api.get(f'{CLIENTS_URL}{self.vendor.id}/stats/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['total_products'], 1)
        self.assertEqual(response.data['recent_sales_count'], 1)
        self.assertEqual(Decimal(response.data['recent_sales_revenue']), Decimal('20.00'))

    def test_stats_for_another_vendor_forbidden(self):
        other = TestDataFactory.create_client()
        response = self.api.get(f'{CLIENTS_URL}{other.id}/stats/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_suspended_vendor_is_blocked(self):
        self.vendor.subscription_status = ClientProfile.STATUS_SUSPENDED
        self.vendor.save()

        response = self.api.get(f'{CLIENTS_URL}me/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['detail'], 'Your subscription is suspended. Please renew to continue.')


class TokenTests(TestCase):

    def test_token_carries_client_details(self):
        user = TestDataFactory.create_user(username='vendor1', password='pass12345')
        client = TestDataFactory.create_client(user=user, business_name='Vendor One')

        response = APIClient().post(
            '/api/auth/token/', {'username': 'vendor1', 'password': 'pass12345'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['role'], 'VENDOR')
        self.assertEqual(response.data['client_id'], client.id)
        self.assertEqual(response.data['subscription_status'], 'TRIAL')
        self.assertIn('access', response.data)


class SeedDemoDataTests(TestCase):

    def test_seed_is_repeatable(self):
        call_command('seed_demo_data', stdout=StringIO())
        call_command('seed_demo_data', stdout=StringIO())

        self.assertEqual(ClientProfile.objects.count(), 2)
        standard = ClientProfile.objects.get(business_name='Mama Foods')
        self.assertEqual(get_plan_code(standard), 'STANDARD')
        self.assertEqual(standard.autoapprovalrules.count(), 2)
        self.assertEqual(standard.products.count(), 5)
        self.assertTrue(User.objects.get(username='admin').is_admin)
