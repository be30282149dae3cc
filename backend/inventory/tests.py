from django.test import TestCase
from rest_framework import status
from rest_framework.exceptions import ValidationError

from billing.constants import UPGRADE_MESSAGES
from core.test_utils import AuthenticatedAPIClient, TestDataFactory
from inventory.models import InventoryLog, Product
from inventory.services import adjust_stock, deduct_stock, find_shortages
from notifications.models import Notification

PRODUCTS_URL = '/api/products/'
LOGS_URL = '/api/inventory-logs/'


class StockServiceTests(TestCase):

    def setUp(self):
        self.client_profile = TestDataFactory.create_client()
        self.rice = TestDataFactory.create_product(self.client_profile, name='Rice', stock=10)
        self.oil = TestDataFactory.create_product(self.client_profile, name='Oil', stock=3)

    def test_adjust_stock_logs_movement(self):
        product, log = adjust_stock(self.rice.pk, 5, InventoryLog.RESTOCK, reason='Supplier drop')
        self.assertEqual(product.current_stock, 15)
        self.assertEqual((log.previous_stock, log.new_stock, log.quantity), (10, 15, 5))

    def test_adjust_stock_never_goes_negative(self):
        with self.assertRaises(ValidationError):
            adjust_stock(self.oil.pk, -4, InventoryLog.DAMAGE)
        self.oil.refresh_from_db()
        self.assertEqual(self.oil.current_stock, 3)
        self.assertFalse(InventoryLog.objects.filter(product=self.oil).exists())

    def test_find_shortages_messages(self):
        shortages = find_shortages([(self.rice, 2), (self.oil, 5)])
        self.assertEqual(shortages, ['Oil: Available 3, Requested 5'])

    def test_deduct_stock_is_all_or_nothing(self):
        with self.assertRaises(ValidationError):
            deduct_stock([(self.rice.pk, 2), (self.oil.pk, 5)])
        self.rice.refresh_from_db()
        self.assertEqual(self.rice.current_stock, 10)

    def test_deduct_stock_merges_repeated_products(self):
        deduct_stock([(self.rice.pk, 2), (self.rice.pk, 3)], reference='SALE-000001')
        self.rice.refresh_from_db()
        self.assertEqual(self.rice.current_stock, 5)
        log = InventoryLog.objects.get(product=self.rice)
        self.assertEqual((log.quantity, log.log_type, log.reference), (-5, InventoryLog.SALE, 'SALE-000001'))

    def test_low_stock_alert_after_deduction(self):
        self.oil.reorder_level = 2
        self.oil.save()
        TestDataFactory.create_admin()

        deduct_stock([(self.oil.pk, 1)])

        alerts = Notification.objects.filter(notification_type='LOW_STOCK')
        self.assertTrue(alerts.filter(recipient=self.client_profile.user).exists())
        self.assertEqual(alerts.count(), 2)


class ProductAPITests(TestCase):

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.vendor = TestDataFactory.create_client()
        self.admin_api = AuthenticatedAPIClient().authenticate_user(self.admin)
        self.vendor_api = AuthenticatedAPIClient().authenticate_user(self.vendor.user)

    def test_admin_creates_product_with_initial_stock(self):
        response = self.admin_api.post(PRODUCTS_URL, {
            'client': self.vendor.id,
            'name': 'Palm Oil',
            'sku': 'PO-1',
            'unit_price': '45.00',
            'initial_stock': 12,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['current_stock'], 12)

        log = InventoryLog.objects.get(product_id=response.data['id'])
        self.assertEqual((log.log_type, log.new_stock), (InventoryLog.RESTOCK, 12))

    def test_duplicate_sku_rejected(self):
        TestDataFactory.create_product(self.vendor, sku='PO-1')
        response = self.admin_api.post(PRODUCTS_URL, {
            'client': self.vendor.id, 'name': 'Other', 'sku': 'PO-1',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_basic_plan_product_limit(self):
        Product.objects.bulk_create([
            Product(client=self.vendor, name=f'Item {i}') for i in range(50)
        ])
        response = self.admin_api.post(PRODUCTS_URL, {'client': self.vendor.id, 'name': 'One more'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn(UPGRADE_MESSAGES['products_basic'], str(response.data))

    def test_vendor_cannot_create(self):
        response = self.vendor_api.post(PRODUCTS_URL, {'client': self.vendor.id, 'name': 'Mine'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_vendor_sees_only_own_products(self):
        TestDataFactory.create_product(self.vendor, name='Mine')
        TestDataFactory.create_product(TestDataFactory.create_client(), name='Theirs')

        response = self.vendor_api.get(PRODUCTS_URL)
        self.assertEqual([p['name'] for p in response.data['results']], ['Mine'])
        self.assertEqual(self.admin_api.get(PRODUCTS_URL).data['pagination']['total'], 2)

    def test_update_stock(self):
        product = TestDataFactory.create_product(self.vendor, stock=4)
        url = f'{PRODUCTS_URL}{product.id}/update_stock/'

        response = self.admin_api.post(url, {'quantity': 6, 'type': 'RESTOCK'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['current_stock'], 10)

        response = self.admin_api.post(url, {'quantity': -20, 'type': 'DAMAGE'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.admin_api.post(url, {'quantity': 1, 'type': 'SALE'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_low_stock_listing(self):
        TestDataFactory.create_product(self.vendor, name='Low', stock=1, reorder_level=5)
        TestDataFactory.create_product(self.vendor, name='Fine', stock=50, reorder_level=5)

        response = self.vendor_api.get(f'{PRODUCTS_URL}low_stock/')
        self.assertEqual([p['name'] for p in response.data], ['Low'])

    def test_delete_deactivates(self):
        product = TestDataFactory.create_product(self.vendor)
        response = self.admin_api.delete(f'{PRODUCTS_URL}{product.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        product.refresh_from_db()
        self.assertFalse(product.is_active)

    def test_inventory_logs_are_scoped(self):
        mine = TestDataFactory.create_product(self.vendor, stock=1)
        theirs = TestDataFactory.create_product(TestDataFactory.create_client(), stock=1)
        adjust_stock(mine.pk, 1, InventoryLog.RESTOCK)
        adjust_stock(theirs.pk, 1, InventoryLog.RESTOCK)

        response = self.vendor_api.get(LOGS_URL)
        self.assertEqual([log['product'] for log in response.data['results']], [mine.id])
