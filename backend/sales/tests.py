from decimal import Decimal

from django.test import TestCase
from rest_framework import status

from core.test_utils import AuthenticatedAPIClient, TestDataFactory
from inventory.models import InventoryLog
from notifications.models import Notification
from sales.models import Sale
from sales.services import generate_sale_number, record_sale

SALES_URL = '/api/sales/'


class SaleServiceTests(TestCase):

    def setUp(self):
        self.client_profile = TestDataFactory.create_client()
        self.product = TestDataFactory.create_product(self.client_profile, name='Rice', stock=10)

    def test_sale_numbers_are_sequential(self):
        self.assertEqual(generate_sale_number(), 'SALE-000001')
        record_sale(self.client_profile, [{'product': self.product, 'quantity': 1, 'unit_price': Decimal('5')}])
        self.assertEqual(generate_sale_number(), 'SALE-000002')

    def test_record_sale_without_notification(self):
        sale = record_sale(
            self.client_profile,
            [{'product': self.product, 'quantity': 2, 'unit_price': Decimal('5.00')}],
            notify=False,
        )
        self.assertEqual(sale.total_amount, Decimal('10.00'))
        self.assertFalse(Notification.objects.filter(sale=sale).exists())


class SaleAPITests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.vendor = TestDataFactory.create_client()
        self.rice = TestDataFactory.create_product(self.vendor, name='Rice', stock=10, unit_price=Decimal('20.00'))
        self.beans = TestDataFactory.create_product(self.vendor, name='Beans', stock=1, unit_price=Decimal('8.00'))
        self.admin_api = AuthenticatedAPIClient().authenticate_user(self.admin)
        self.vendor_api = AuthenticatedAPIClient().authenticate_user(self.vendor.user)

    def payload(self, *items, **extra):
        data = {
            'client': self.vendor.id,
            'customer_name': 'Kofi',
            'items': [{'product': p.id, 'quantity': q} for p, q in items],
        }
        data.update(extra)
        return data

    def test_admin_records_sale(self):
        response = self.admin_api.post(SALES_URL, self.payload((self.rice, 3)), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['sale_number'], 'SALE-000001')
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('60.00'))
        self.assertEqual(response.data['items'][0]['product_name'], 'Rice')

        self.rice.refresh_from_db()
        self.assertEqual(self.rice.current_stock, 7)
        log = InventoryLog.objects.get(product=self.rice)
        self.assertEqual(log.reference, 'SALE-000001')

        notification = Notification.objects.get(recipient=self.vendor.user, notification_type='SALE_RECORDED')
        self.assertIn('3x Rice', notification.message)
        self.assertIn('Kofi', notification.message)

    def test_explicit_unit_price(self):
        response = self.admin_api.post(
            SALES_URL,
            {'client': self.vendor.id, 'items': [{'product': self.rice.id, 'quantity': 1, 'unit_price': '15.50'}]},
            format='json',
        )
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('15.50'))

    def test_insufficient_stock_rolls_back(self):
        response = self.admin_api.post(SALES_URL, self.payload((self.rice, 2), (self.beans, 3)), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Beans: Available 1, Requested 3', str(response.data))

        self.rice.refresh_from_db()
        self.assertEqual(self.rice.current_stock, 10)
        self.assertEqual(Sale.objects.count(), 0)

    def test_product_from_another_client(self):
        foreign = TestDataFactory.create_product(TestDataFactory.create_client())
        response = self.admin_api.post(SALES_URL, self.payload((foreign, 1)), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_empty_items(self):
        response = self.admin_api.post(SALES_URL, self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_vendor_cannot_record(self):
        response = self.vendor_api.post(SALES_URL, self.payload((self.rice, 1)), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_vendor_sees_only_own_sales(self):
        other = TestDataFactory.create_client()
        other_product = TestDataFactory.create_product(other)
        record_sale(self.vendor, [{'product': self.rice, 'quantity': 1, 'unit_price': Decimal('20')}])
        record_sale(other, [{'product': other_product, 'quantity': 1, 'unit_price': Decimal('20')}])

        response = self.vendor_api.get(SALES_URL)
        self.assertEqual(response.data['pagination']['total'], 1)
        self.assertEqual(response.data['results'][0]['client'], self.vendor.id)

    def test_update_status_delivered_sets_delivery_date(self):
        sale = record_sale(self.vendor, [{'product': self.rice, 'quantity': 1, 'unit_price': Decimal('20')}])
        response = self.admin_api.post(f'{SALES_URL}{sale.id}/update_status/', {'status': 'DELIVERED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['delivery_date'])
