from django.test import TestCase
from rest_framework import status

from core.test_utils import AuthenticatedAPIClient, TestDataFactory
from users.models import User

USERS_URL = '/api/users/'


class UserAPITests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_admin(username='platform_admin')
        self.vendor = TestDataFactory.create_client().user
        self.admin_api = AuthenticatedAPIClient().authenticate_user(self.admin)
        self.vendor_api = AuthenticatedAPIClient().authenticate_user(self.vendor)

    def test_admin_filters_by_role(self):
        response = self.admin_api.get(USERS_URL, {'role': 'VENDOR'})
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([u['id'] for u in response.data['results']], [self.vendor.id])

    def test_admin_creates_user(self):
        response = self.admin_api.post(USERS_URL, {
            'username': 'ops2',
            'email': 'Ops2@Example.com',
            'password': 'Str0ng-Passw0rd!',
            'role': 'ADMIN',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        user = User.objects.get(username='ops2')
        self.assertEqual(user.email, 'ops2@example.com')
        self.assertTrue(user.is_admin)
        self.assertTrue(user.check_password('Str0ng-Passw0rd!'))

    def test_vendor_cannot_manage_users(self):
        self.assertEqual(self.vendor_api.get(USERS_URL).status_code, status.HTTP_403_FORBIDDEN)

    def test_me_reports_client_and_keeps_role(self):
        response = self.vendor_api.get(f'{USERS_URL}me/')
        self.assertEqual(response.data['client_id'], self.vendor.client_profile.id)

        response = self.vendor_api.patch(f'{USERS_URL}me/', {'phone': '0201112222', 'role': 'ADMIN'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.vendor.refresh_from_db()
        self.assertEqual(self.vendor.phone, '0201112222')
        self.assertEqual(self.vendor.role, User.ROLE_VENDOR)

    def test_unauthenticated(self):
        self.vendor_api.logout()
        self.assertEqual(self.vendor_api.get(f'{USERS_URL}me/').status_code, status.HTTP_401_UNAUTHORIZED)
