import logging
import string
import time
from datetime import timedelta

from django.conf import settings
from django.db import IntegrityError, transaction
from django.utils import timezone
from django.utils.crypto import get_random_string
from rest_framework.exceptions import ValidationError

from notifications.utils import notify_user

from .models import Invoice, Receipt

logger = logging.getLogger(__name__)


def _document_number(prefix):
    suffix = get_random_string(4, allowed_chars=string.ascii_uppercase + string.digits)
    return f"{prefix}-{int(time.time() * 1000)}-{suffix}"


def generate_invoice_number():
    return _document_number("INV")


def generate_receipt_number():
    return _document_number("REC")


def generate_invoice(delivery, user=None):
    """
    Invoice a delivery request. A request is only ever invoiced once;
    asking again returns the existing invoice. Returns (invoice, created).
    """
    existing = Invoice.objects.filter(delivery_request=delivery).first()
    if existing:
        return existing, False

    if delivery.status in ("REJECTED", "CANCELLED"):
        raise ValidationError(f"Cannot invoice a {delivery.status.lower()} delivery request.")

    items = [
        {
            "product_id": item.product_id,
            "product_name": item.product.name,
            "quantity": item.quantity,
            "unit_price": str(item.unit_price),
            "total_price": str(item.total_price),
        }
        for item in delivery.items.select_related("product")
    ]

    try:
        with transaction.atomic():
            invoice = Invoice.objects.create(
                client=delivery.client,
                delivery_request=delivery,
                invoice_number=generate_invoice_number(),
                customer_name=delivery.customer_name,
                customer_email=delivery.customer_email,
                customer_phone=delivery.customer_phone,
                customer_address=delivery.delivery_address,
                items=items,
                subtotal=delivery.total_amount,
                total_amount=delivery.total_amount,
                due_date=timezone.now() + timedelta(days=settings.INVOICE_DUE_DAYS),
            )
    except IntegrityError:
        # generated concurrently for the same request
        return Invoice.objects.get(delivery_request=delivery), False

    logger.info(f"Invoice {invoice.invoice_number} generated for {delivery.request_number}")
    notify_user(
        user or delivery.client.user,
        title="Invoice Generated",
        message=(
            f"Invoice {invoice.invoice_number} has been generated for delivery request "
            f"{delivery.request_number}"
        ),
        notification_type="INVOICE",
        client=delivery.client,
        channels=["EMAIL"],
        metadata={"invoice_id": invoice.id, "invoice_number": invoice.invoice_number},
    )
    return invoice, True


def set_invoice_status(invoice, status):
    invoice.status = status
    update_fields = ["status", "updated_at"]
    if status == Invoice.STATUS_PAID:
        invoice.paid_at = timezone.now()
        update_fields.append("paid_at")
    invoice.save(update_fields=update_fields)
    return invoice


def generate_receipt(invoice, amount_paid, payment_method, transaction_reference=None, user=None):
    """Record a payment against an invoice; a payment covering the total marks it PAID."""
    if invoice.status == Invoice.STATUS_CANCELLED:
        raise ValidationError("Cannot record a payment against a cancelled invoice.")

    with transaction.atomic():
        receipt = Receipt.objects.create(
            invoice=invoice,
            receipt_number=generate_receipt_number(),
            amount_paid=amount_paid,
            payment_method=payment_method,
            payment_date=timezone.now(),
            notes=f"Transaction Reference: {transaction_reference}" if transaction_reference else "",
        )
        if amount_paid >= invoice.total_amount and invoice.status != Invoice.STATUS_PAID:
            set_invoice_status(invoice, Invoice.STATUS_PAID)

    notify_user(
        user or invoice.client.user,
        title="Receipt Generated",
        message=f"Receipt {receipt.receipt_number} has been generated for invoice {invoice.invoice_number}",
        notification_type="INVOICE",
        client=invoice.client,
        channels=["EMAIL"],
        metadata={
            "receipt_id": receipt.id,
            "receipt_number": receipt.receipt_number,
            "invoice_number": invoice.invoice_number,
        },
    )
    return receipt
