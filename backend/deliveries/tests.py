"""
Delivery request lifecycle: submission, auto-approval, review and fulfilment.
"""
from datetime import timedelta
from decimal import Decimal
from unittest import mock

from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import ValidationError

from auto_approval.models import AutoApprovalRule
from core.test_utils import AuthenticatedAPIClient, TestDataFactory
from deliveries.models import DeliveryRequest
from deliveries.services import generate_request_number, update_delivery_status
from inventory.models import InventoryLog
from notifications.models import Notification
from sales.models import Sale

URL = '/api/delivery-requests/'


class DeliveryRequestTestMixin:

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.vendor = TestDataFactory.create_client(business_name='Kofi Foods')
        self.product = TestDataFactory.create_product(self.vendor, name='Rice 5kg', stock=10,
                                                      unit_price=Decimal('40.00'))
        self.other_product = TestDataFactory.create_product(self.vendor, name='Oil 1L', stock=3,
                                                            unit_price=Decimal('15.50'))
        self.vendor_api = AuthenticatedAPIClient().authenticate_user(self.vendor.user)
        self.admin_api = AuthenticatedAPIClient().authenticate_user(self.admin)

    def payload(self, items=None, **overrides):
        data = {
            'customer_name': 'Ama Mensah',
            'customer_phone': '0241234567',
            'delivery_address': '12 Ring Road, Accra',
            'payment_method': 'PAYMENT_ON_DELIVERY',
            'items': items if items is not None else [
                {'product': self.product.id, 'quantity': 2},
                {'product': self.other_product.id, 'quantity': 1},
            ],
        }
        data.update(overrides)
        return data


class DeliveryRequestCreateTests(DeliveryRequestTestMixin, TestCase):

    def test_request_number_format(self):
        number = generate_request_number()
        prefix, timestamp, suffix = number.split('-')
        self.assertEqual(prefix, 'DR')
        self.assertTrue(timestamp.isdigit())
        self.assertEqual(len(suffix), 6)

    def test_create_request(self):
        response = self.vendor_api.post(URL, self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'PENDING_APPROVAL')
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('95.50'))
        self.assertEqual(response.data['payment_status'], 'PENDING')
        self.assertFalse(response.data['auto_approved'])
        self.assertEqual(len(response.data['items']), 2)

        # stock is only taken when the request is delivered
        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, 10)

    def test_payment_before_delivery_is_completed(self):
        response = self.vendor_api.post(
            URL, self.payload(payment_method='PAYMENT_BEFORE_DELIVERY'), format='json'
        )
        self.assertEqual(response.data['payment_status'], 'COMPLETED')

    def test_admins_and_vendor_are_notified(self):
        self.vendor_api.post(URL, self.payload(), format='json')
        self.assertTrue(Notification.objects.filter(
            recipient=self.admin, notification_type='DELIVERY_REQUEST', title='New Delivery Request'
        ).exists())
        self.assertTrue(Notification.objects.filter(
            recipient=self.vendor.user, title='Delivery Request Created'
        ).exists())

    def test_items_are_required(self):
        response = self.vendor_api.post(URL, self.payload(items=[]), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_quantity_must_be_positive(self):
        response = self.vendor_api.post(
            URL, self.payload(items=[{'product': self.product.id, 'quantity': 0}]), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_customer_details_are_required(self):
        response = self.vendor_api.post(URL, self.payload(customer_name=''), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_insufficient_stock_lists_every_shortfall(self):
        items = [
            {'product': self.product.id, 'quantity': 11},
            {'product': self.other_product.id, 'quantity': 4},
        ]
        response = self.vendor_api.post(URL, self.payload(items=items), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        errors = ' '.join(response.data['items'])
        self.assertIn('Rice 5kg: Available 10, Requested 11', errors)
        self.assertIn('Oil 1L: Available 3, Requested 4', errors)
        self.assertFalse(DeliveryRequest.objects.exists())

    def test_repeated_product_lines_are_checked_together(self):
        items = [
            {'product': self.other_product.id, 'quantity': 2},
            {'product': self.other_product.id, 'quantity': 2},
        ]
        response = self.vendor_api.post(URL, self.payload(items=items), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('Oil 1L: Available 3, Requested 4', ' '.join(response.data['items']))
        self.assertFalse(DeliveryRequest.objects.exists())

    def test_other_vendors_products_are_rejected(self):
        other = TestDataFactory.create_client()
        foreign = TestDataFactory.create_product(other)
        response = self.vendor_api.post(
            URL, self.payload(items=[{'product': foreign.id, 'quantity': 1}]), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_inactive_products_are_rejected(self):
        self.product.is_active = False
        self.product.save()
        response = self.vendor_api.post(
            URL, self.payload(items=[{'product': self.product.id, 'quantity': 1}]), format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_admins_cannot_create(self):
        response = self.admin_api.post(URL, self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class AutoApprovalOnCreateTests(DeliveryRequestTestMixin, TestCase):

    def test_matching_rule_approves_request(self):
        TestDataFactory.set_plan(self.vendor, 'STANDARD')
        rule = TestDataFactory.create_rule(self.vendor, name='Trusted customer',
                                           rule_type=AutoApprovalRule.TYPE_CUSTOMER,
                                           customer_phones=['024 123 4567'])
        response = self.vendor_api.post(URL, self.payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'APPROVED')
        self.assertTrue(response.data['auto_approved'])
        self.assertEqual(response.data['approved_by_rule'], rule.id)
        self.assertIsNotNone(response.data['approved_at'])
        self.assertTrue(Notification.objects.filter(
            recipient=self.admin, title='Delivery Request Auto-Approved'
        ).exists())

    def test_non_matching_rule_leaves_request_pending(self):
        TestDataFactory.set_plan(self.vendor, 'STANDARD')
        TestDataFactory.create_rule(self.vendor, max_amount=Decimal('50.00'))
        response = self.vendor_api.post(URL, self.payload(), format='json')
        self.assertEqual(response.data['status'], 'PENDING_APPROVAL')
        self.assertIsNone(response.data['approved_by_rule'])

    def test_highest_priority_rule_is_recorded(self):
        TestDataFactory.set_plan(self.vendor, 'PREMIUM')
        TestDataFactory.create_rule(self.vendor, name='second', priority=2, max_amount=Decimal('500'))
        first = TestDataFactory.create_rule(
            self.vendor, name='first', priority=1,
            rule_type=AutoApprovalRule.TYPE_PRODUCT, product_ids=[self.product.id],
        )
        response = self.vendor_api.post(URL, self.payload(), format='json')
        self.assertEqual(response.data['approved_by_rule'], first.id)
        self.assertEqual(response.data['approved_by_rule_name'], 'first')

    def test_basic_plan_rules_are_ignored(self):
        TestDataFactory.create_rule(self.vendor, max_amount=Decimal('500'))
        response = self.vendor_api.post(URL, self.payload(), format='json')
        self.assertEqual(response.data['status'], 'PENDING_APPROVAL')


class DeliveryRequestListTests(DeliveryRequestTestMixin, TestCase):

    def test_vendor_sees_only_own_requests(self):
        other = TestDataFactory.create_client()
        TestDataFactory.create_delivery_request(self.vendor, [(self.product, 1)])
        TestDataFactory.create_delivery_request(other, [(TestDataFactory.create_product(other), 1)])

        response = self.vendor_api.get(URL)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pagination']['total'], 1)

        response = self.admin_api.get(URL)
        self.assertEqual(response.data['pagination']['total'], 2)

        response = self.admin_api.get(URL, {'client': other.id})
        self.assertEqual(response.data['pagination']['total'], 1)

    def test_filter_by_status(self):
        TestDataFactory.create_delivery_request(self.vendor, [(self.product, 1)])
        TestDataFactory.create_delivery_request(self.vendor, [(self.product, 1)], status='APPROVED')
        response = self.vendor_api.get(URL, {'status': 'APPROVED'})
        self.assertEqual(response.data['pagination']['total'], 1)

    def test_vendor_cannot_read_other_vendors_request(self):
        other = TestDataFactory.create_client()
        delivery = TestDataFactory.create_delivery_request(other, [(TestDataFactory.create_product(other), 1)])
        response = self.vendor_api.get(f'{URL}{delivery.id}/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class DeliveryRequestReviewTests(DeliveryRequestTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.delivery = TestDataFactory.create_delivery_request(self.vendor, [(self.product, 2)])

    def test_cancel(self):
        response = self.vendor_api.post(f'{URL}{self.delivery.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'CANCELLED')
        self.assertTrue(Notification.objects.filter(
            recipient=self.admin, title='Delivery Request Cancelled'
        ).exists())

    def test_cannot_cancel_once_dispatched(self):
        self.delivery.status = DeliveryRequest.STATUS_OUT_FOR_DELIVERY
        self.delivery.save()
        response = self.vendor_api.post(f'{URL}{self.delivery.id}/cancel/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_approve(self):
        response = self.admin_api.post(f'{URL}{self.delivery.id}/approve/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'APPROVED')
        self.delivery.refresh_from_db()
        self.assertEqual(self.delivery.reviewed_by, self.admin)
        self.assertIsNotNone(self.delivery.approved_at)
        self.assertTrue(Notification.objects.filter(
            recipient=self.vendor.user, notification_type='DELIVERY_APPROVED'
        ).exists())

    def test_approve_with_schedule(self):
        when = timezone.now() + timedelta(days=2)
        response = self.admin_api.post(
            f'{URL}{self.delivery.id}/approve/',
            {'scheduled_date': when.isoformat(), 'assigned_to': self.admin.id},
            format='json',
        )
        self.assertEqual(response.data['status'], 'SCHEDULED')
        self.delivery.refresh_from_db()
        self.assertEqual(self.delivery.assigned_to, self.admin)

    def test_only_pending_requests_can_be_approved(self):
        self.delivery.status = DeliveryRequest.STATUS_REJECTED
        self.delivery.save()
        response = self.admin_api.post(f'{URL}{self.delivery.id}/approve/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_vendor_cannot_approve(self):
        response = self.vendor_api.post(f'{URL}{self.delivery.id}/approve/', {}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_reject_requires_reason(self):
        response = self.admin_api.post(f'{URL}{self.delivery.id}/reject/', {'reason': ''}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        response = self.admin_api.post(
            f'{URL}{self.delivery.id}/reject/', {'reason': 'Address outside zone'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'REJECTED')
        self.assertEqual(response.data['rejection_reason'], 'Address outside zone')


class DeliveryFulfilmentTests(DeliveryRequestTestMixin, TestCase):

    def setUp(self):
        super().setUp()
        self.delivery = TestDataFactory.create_delivery_request(
            self.vendor, [(self.product, 3), (self.other_product, 2)], status='APPROVED'
        )

    def update_status(self, new_status, **extra):
        return self.admin_api.post(
            f'{URL}{self.delivery.id}/update_status/', {'status': new_status, **extra}, format='json'
        )

    def test_out_for_delivery_sets_dispatch_time(self):
        response = self.update_status('OUT_FOR_DELIVERY')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertIsNotNone(response.data['dispatched_at'])

    def test_delivered_deducts_stock_and_records_sale(self):
        response = self.update_status('DELIVERED', delivery_proof='https://example.com/pod.jpg')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'DELIVERED')
        self.assertEqual(response.data['payment_status'], 'COMPLETED')
        self.assertIsNotNone(response.data['delivered_at'])

        self.product.refresh_from_db()
        self.other_product.refresh_from_db()
        self.assertEqual(self.product.current_stock, 7)
        self.assertEqual(self.other_product.current_stock, 1)

        logs = InventoryLog.objects.filter(log_type=InventoryLog.SALE)
        self.assertEqual(logs.count(), 2)
        log = logs.get(product=self.product)
        self.assertEqual((log.quantity, log.previous_stock, log.new_stock), (-3, 10, 7))

        sale = Sale.objects.get(delivery_request=self.delivery)
        self.assertEqual(sale.status, Sale.STATUS_DELIVERED)
        self.assertEqual(sale.total_amount, self.delivery.total_amount)
        self.assertEqual(sale.items.count(), 2)

        self.assertTrue(Notification.objects.filter(
            recipient=self.vendor.user, notification_type='DELIVERY_STATUS', sale=sale
        ).exists())

    def test_delivery_fails_when_stock_ran_out(self):
        self.product.current_stock = 1
        self.product.save()
        response = self.update_status('DELIVERED')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.delivery.refresh_from_db()
        self.assertEqual(self.delivery.status, 'APPROVED')
        self.assertFalse(Sale.objects.exists())

    def test_stale_instance_cannot_deliver_twice(self):
        stale = DeliveryRequest.objects.get(pk=self.delivery.pk)
        update_delivery_status(self.delivery, 'DELIVERED', self.admin)

        with self.assertRaises(ValidationError):
            update_delivery_status(stale, 'DELIVERED', self.admin)

        self.product.refresh_from_db()
        self.assertEqual(self.product.current_stock, 7)
        self.assertEqual(Sale.objects.filter(delivery_request=self.delivery).count(), 1)

    def test_failed_delivery_leaves_instance_untouched(self):
        with mock.patch('deliveries.services.record_sale', side_effect=ValidationError('Insufficient stock')):
            with self.assertRaises(ValidationError):
                update_delivery_status(self.delivery, 'DELIVERED', self.admin)

        self.assertEqual(self.delivery.status, 'APPROVED')
        self.assertIsNone(self.delivery.delivered_at)
        self.delivery.refresh_from_db()
        self.assertEqual(self.delivery.status, 'APPROVED')

    def test_service_returns_updated_request(self):
        updated = update_delivery_status(self.delivery, 'OUT_FOR_DELIVERY', self.admin)
        self.assertEqual(updated.status, 'OUT_FOR_DELIVERY')
        self.assertIsNotNone(updated.dispatched_at)

    def test_delivered_requests_cannot_move_again(self):
        self.update_status('DELIVERED')
        response = self.update_status('FAILED')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_pending_requests_cannot_be_fulfilled(self):
        pending = TestDataFactory.create_delivery_request(self.vendor, [(self.product, 1)])
        response = self.admin_api.post(
            f'{URL}{pending.id}/update_status/', {'status': 'OUT_FOR_DELIVERY'}, format='json'
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_status(self):
        response = self.update_status('CANCELLED')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
