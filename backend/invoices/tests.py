from decimal import Decimal

from django.conf import settings
from django.test import TestCase
from rest_framework import status

from core.test_utils import AuthenticatedAPIClient, TestDataFactory
from invoices.models import Invoice, Receipt
from invoices.services import generate_invoice_number, generate_receipt_number
from notifications.models import Notification

INVOICES_URL = '/api/invoices/'
RECEIPTS_URL = '/api/receipts/'


class InvoiceAPITests(TestCase):

    def setUp(self):
        self.vendor = TestDataFactory.create_client()
        self.product = TestDataFactory.create_product(self.vendor, name='Yam', unit_price=Decimal('30.00'))
        self.delivery = TestDataFactory.create_delivery_request(
            self.vendor, [(self.product, 2)], status='APPROVED', customer_email='ama@example.com'
        )
        self.api = AuthenticatedAPIClient().authenticate_user(self.vendor.user)

    def generate(self, delivery=None):
        return self.api.post(
            f'{INVOICES_URL}generate/', {'delivery_request': (delivery or self.delivery).id}, format='json'
        )

    def test_document_numbers(self):
        self.assertRegex(generate_invoice_number(), r'^INV-\d+-[A-Z0-9]{4}$')
        self.assertRegex(generate_receipt_number(), r'^REC-\d+-[A-Z0-9]{4}$')

    def test_generate_invoice(self):
        response = self.generate()
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], 'DRAFT')
        self.assertEqual(Decimal(response.data['total_amount']), Decimal('60.00'))
        self.assertEqual(response.data['customer_email'], 'ama@example.com')
        self.assertEqual(response.data['items'][0]['product_name'], 'Yam')
        self.assertEqual(response.data['request_number'], self.delivery.request_number)

        invoice = Invoice.objects.get(pk=response.data['id'])
        days = (invoice.due_date - invoice.created_at).total_seconds() / 86400
        self.assertEqual(round(days), settings.INVOICE_DUE_DAYS)
        self.assertTrue(Notification.objects.filter(
            recipient=self.vendor.user, title='Invoice Generated'
        ).exists())

    def test_generate_is_idempotent(self):
        first = self.generate()
        second = self.generate()
        self.assertEqual(second.status_code, status.HTTP_200_OK)
        self.assertEqual(first.data['id'], second.data['id'])
        self.assertEqual(Invoice.objects.count(), 1)

    def test_cannot_invoice_other_vendors_request(self):
        other = TestDataFactory.create_client()
        delivery = TestDataFactory.create_delivery_request(other, [(TestDataFactory.create_product(other), 1)])
        response = self.generate(delivery)
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_cannot_invoice_cancelled_request(self):
        self.delivery.status = 'CANCELLED'
        self.delivery.save()
        response = self.generate()
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_status_to_paid_stamps_paid_at(self):
        invoice_id = self.generate().data['id']
        response = self.api.post(f'{INVOICES_URL}{invoice_id}/update_status/', {'status': 'PAID'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], 'PAID')
        self.assertIsNotNone(response.data['paid_at'])

    def test_full_receipt_marks_invoice_paid(self):
        invoice_id = self.generate().data['id']
        response = self.api.post(
            f'{INVOICES_URL}{invoice_id}/generate_receipt/',
            {'payment_method': 'MOBILE_MONEY', 'amount_paid': '60.00', 'transaction_reference': 'MM-991'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['receipt_number'].startswith('REC-'))
        self.assertEqual(response.data['notes'], 'Transaction Reference: MM-991')

        invoice = Invoice.objects.get(pk=invoice_id)
        self.assertEqual(invoice.status, Invoice.STATUS_PAID)
        self.assertIsNotNone(invoice.paid_at)

    def test_partial_receipt_leaves_invoice_open(self):
        invoice_id = self.generate().data['id']
        self.api.post(
            f'{INVOICES_URL}{invoice_id}/generate_receipt/',
            {'payment_method': 'CASH', 'amount_paid': '20.00'},
            format='json',
        )
        self.assertEqual(Invoice.objects.get(pk=invoice_id).status, Invoice.STATUS_DRAFT)
        self.assertEqual(Receipt.objects.filter(invoice_id=invoice_id).count(), 1)

    def test_receipt_amount_must_be_positive(self):
        invoice_id = self.generate().data['id']
        response = self.api.post(
            f'{INVOICES_URL}{invoice_id}/generate_receipt/',
            {'payment_method': 'CASH', 'amount_paid': '0'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_receipts_are_scoped_to_vendor(self):
        invoice_id = self.generate().data['id']
        self.api.post(
            f'{INVOICES_URL}{invoice_id}/generate_receipt/',
            {'payment_method': 'CASH', 'amount_paid': '60.00'},
            format='json',
        )
        self.assertEqual(len(self.api.get(RECEIPTS_URL).data['results']), 1)

        other = TestDataFactory.create_client()
        other_api = AuthenticatedAPIClient().authenticate_user(other.user)
        self.assertEqual(len(other_api.get(RECEIPTS_URL).data['results']), 0)
        self.assertEqual(other_api.get(f'{INVOICES_URL}{invoice_id}/').status_code, status.HTTP_404_NOT_FOUND)

    def test_admin_lists_all_invoices(self):
        self.generate()
        admin_api = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_admin())
        response = admin_api.get(INVOICES_URL, {'status': 'DRAFT'})
        self.assertEqual(response.data['pagination']['total'], 1)
