"""
Delivery request lifecycle: submission (with auto-approval), review,
cancellation and fulfilment. Views call these and stay thin.
"""
import logging
import string
import time
from decimal import Decimal

from django.db import transaction
from django.utils import timezone
from django.utils.crypto import get_random_string
from rest_framework.exceptions import ValidationError

from auto_approval.engine import RequestFacts
from auto_approval.services import evaluate_for_client
from inventory.models import Product
from inventory.services import find_shortages
from notifications.utils import notify_admins, notify_user
from sales.models import Sale
from sales.services import record_sale

from .models import DeliveryRequest, DeliveryRequestItem

logger = logging.getLogger(__name__)

STATUS_MESSAGES = {
    DeliveryRequest.STATUS_SCHEDULED: "Your delivery has been scheduled",
    DeliveryRequest.STATUS_OUT_FOR_DELIVERY: "Your delivery is now out for delivery",
    DeliveryRequest.STATUS_DELIVERED: "Your delivery has been completed",
    DeliveryRequest.STATUS_FAILED: "Your delivery attempt failed",
}


def generate_request_number():
    # DR-<ms timestamp>-<6 random>
    suffix = get_random_string(6, allowed_chars=string.ascii_uppercase + string.digits)
    return f"DR-{int(time.time() * 1000)}-{suffix}"


def _load_products(client, items):
    product_ids = {item["product"] for item in items}
    products = {
        p.pk: p
        for p in Product.objects.filter(pk__in=product_ids, client=client, is_active=True)
    }
    if len(products) != len(product_ids):
        raise ValidationError({"items": "Some products are invalid or not available"})
    return products


def create_delivery_request(client, user, items, **fields):
    """
    Submit a delivery request for `client` and run it through the
    auto-approval rules. `items` is a list of {"product": id, "quantity": n}.
    """
    products = _load_products(client, items)

    requested = {}
    for item in items:
        requested[item["product"]] = requested.get(item["product"], 0) + item["quantity"]
    shortages = find_shortages((products[pid], qty) for pid, qty in requested.items())
    if shortages:
        raise ValidationError({"items": ["Insufficient stock:"] + shortages})

    lines = []
    total = Decimal("0.00")
    for item in items:
        product = products[item["product"]]
        unit_price = product.unit_price or Decimal("0.00")
        total += unit_price * item["quantity"]
        lines.append((product, item["quantity"], unit_price))

    payment_method = fields.get("payment_method")
    payment_status = (
        DeliveryRequest.PAYMENT_COMPLETED
        if payment_method == DeliveryRequest.PAYMENT_BEFORE_DELIVERY
        else DeliveryRequest.PAYMENT_PENDING
    )

    with transaction.atomic():
        delivery = DeliveryRequest.objects.create(
            client=client,
            request_number=generate_request_number(),
            payment_status=payment_status,
            total_amount=total,
            status=DeliveryRequest.STATUS_PENDING_APPROVAL,
            **fields,
        )
        for product, quantity, unit_price in lines:
            DeliveryRequestItem.objects.create(
                delivery_request=delivery,
                product=product,
                quantity=quantity,
                unit_price=unit_price,
            )

        result = evaluate_for_client(
            client,
            RequestFacts(
                customer_phone=delivery.customer_phone,
                product_ids=tuple(product.pk for product, _, _ in lines),
                total_amount=total,
                requested_at=delivery.created_at,
            ),
        )
        if result.should_auto_approve:
            now = timezone.now()
            delivery.status = DeliveryRequest.STATUS_APPROVED
            delivery.auto_approved = True
            delivery.approved_by_rule = result.matched_rule
            delivery.approved_at = now
            delivery.reviewed_at = now
            delivery.save(update_fields=[
                "status", "auto_approved", "approved_by_rule", "approved_at", "reviewed_at", "updated_at",
            ])

    logger.info(
        f"Delivery request {delivery.request_number} created for client '{client.slug}' "
        f"({total}); {result.reason}"
    )

    metadata = {
        "delivery_request_id": delivery.id,
        "request_number": delivery.request_number,
        "total_amount": str(total),
    }
    if delivery.auto_approved:
        notify_admins(
            title="Delivery Request Auto-Approved",
            message=(
                f"{client.business_name}'s delivery request ({delivery.request_number}) for "
                f"{delivery.customer_name} was auto-approved ({result.reason}). Total: {total:,.2f}"
            ),
            notification_type="DELIVERY_APPROVED",
            client=client,
            metadata=metadata,
        )
        notify_user(
            user,
            title="Delivery Request Approved",
            message=(
                f"Your delivery request ({delivery.request_number}) for {delivery.customer_name} "
                f"was approved automatically by rule \"{result.matched_rule.name}\"."
            ),
            notification_type="DELIVERY_APPROVED",
            client=client,
            metadata=metadata,
        )
    else:
        notify_admins(
            title="New Delivery Request",
            message=(
                f"{client.business_name} has created a new delivery request ({delivery.request_number}) "
                f"for {delivery.customer_name}. Total: {total:,.2f}"
            ),
            notification_type="DELIVERY_REQUEST",
            client=client,
            metadata=metadata,
        )
        notify_user(
            user,
            title="Delivery Request Created",
            message=(
                f"Your delivery request ({delivery.request_number}) for {delivery.customer_name} "
                "has been submitted and is awaiting approval."
            ),
            notification_type="DELIVERY_REQUEST",
            client=client,
            metadata=metadata,
        )
    return delivery


def _metadata(delivery, **extra):
    data = {"delivery_request_id": delivery.id, "request_number": delivery.request_number}
    data.update(extra)
    return data


def cancel_delivery_request(delivery):
    if delivery.status in DeliveryRequest.NOT_CANCELLABLE:
        raise ValidationError("Cannot cancel a request that is already out for delivery or delivered")
    if delivery.status == DeliveryRequest.STATUS_CANCELLED:
        raise ValidationError("This delivery request is already cancelled.")

    delivery.status = DeliveryRequest.STATUS_CANCELLED
    delivery.save(update_fields=["status", "updated_at"])

    notify_admins(
        title="Delivery Request Cancelled",
        message=f"Delivery request {delivery.request_number} has been cancelled by the vendor.",
        notification_type="DELIVERY_STATUS",
        client=delivery.client,
        metadata=_metadata(delivery),
    )
    logger.info(f"Delivery request {delivery.request_number} cancelled by vendor")
    return delivery


def approve_delivery_request(delivery, reviewer, scheduled_date=None, assigned_to=None):
    if delivery.status != DeliveryRequest.STATUS_PENDING_APPROVAL:
        raise ValidationError("Only pending requests can be approved")

    now = timezone.now()
    delivery.status = DeliveryRequest.STATUS_SCHEDULED if scheduled_date else DeliveryRequest.STATUS_APPROVED
    delivery.reviewed_by = reviewer
    delivery.reviewed_at = now
    delivery.approved_at = now
    if scheduled_date:
        delivery.scheduled_date = scheduled_date
    if assigned_to is not None:
        delivery.assigned_to = assigned_to
    delivery.save()

    message = f"Your delivery request ({delivery.request_number}) has been approved"
    if scheduled_date:
        message += f" and scheduled for {timezone.localtime(scheduled_date).date()}"
    notify_user(
        delivery.client.user,
        title="Delivery Request Approved",
        message=message + ".",
        notification_type="DELIVERY_APPROVED",
        client=delivery.client,
        metadata=_metadata(delivery),
    )
    logger.info(f"Delivery request {delivery.request_number} approved by {reviewer}")
    return delivery


def reject_delivery_request(delivery, reviewer, reason):
    if delivery.status != DeliveryRequest.STATUS_PENDING_APPROVAL:
        raise ValidationError("Only pending requests can be rejected")

    delivery.status = DeliveryRequest.STATUS_REJECTED
    delivery.reviewed_by = reviewer
    delivery.reviewed_at = timezone.now()
    delivery.rejection_reason = reason
    delivery.save(update_fields=["status", "reviewed_by", "reviewed_at", "rejection_reason", "updated_at"])

    notify_user(
        delivery.client.user,
        title="Delivery Request Rejected",
        message=f"Your delivery request ({delivery.request_number}) has been rejected. Reason: {reason}",
        notification_type="DELIVERY_REJECTED",
        client=delivery.client,
        metadata=_metadata(delivery, rejection_reason=reason),
    )
    logger.info(f"Delivery request {delivery.request_number} rejected by {reviewer}")
    return delivery


def update_delivery_status(delivery, new_status, user, delivery_proof=None, customer_signature=None):
    """
    Move an approved request through fulfilment. Delivering it takes the
    items out of stock and records a Sale mirroring the request.

    The row is re-read under a lock so concurrent updates cannot both
    deliver it. Returns the updated instance; `delivery` itself is not
    modified.
    """
    if new_status not in DeliveryRequest.FULFILMENT_STATUSES:
        raise ValidationError({"status": f"Invalid status: {new_status}"})

    now = timezone.now()
    sale = None
    with transaction.atomic():
        locked = DeliveryRequest.objects.select_for_update().get(pk=delivery.pk)
        if locked.status not in DeliveryRequest.FULFILMENT_FROM:
            raise ValidationError(
                f"Cannot move a request from {locked.status} to {new_status}."
            )

        if new_status == DeliveryRequest.STATUS_DELIVERED:
            items = [
                {"product": item.product, "quantity": item.quantity, "unit_price": item.unit_price}
                for item in locked.items.select_related("product")
            ]
            sale = record_sale(
                locked.client,
                items,
                user=user,
                notify=False,
                customer_name=locked.customer_name,
                customer_phone=locked.customer_phone,
                delivery_address=locked.delivery_address,
                status=Sale.STATUS_DELIVERED,
                sale_date=now,
                delivery_date=now,
                notes=f"Delivery: {locked.request_number}",
                delivery_request=locked,
            )
            locked.delivered_at = now
            locked.delivery_proof = delivery_proof or locked.delivery_proof
            locked.customer_signature = customer_signature or locked.customer_signature
            if locked.payment_method == DeliveryRequest.PAYMENT_ON_DELIVERY:
                locked.payment_status = DeliveryRequest.PAYMENT_COMPLETED
        elif new_status == DeliveryRequest.STATUS_OUT_FOR_DELIVERY:
            locked.dispatched_at = now

        locked.status = new_status
        locked.save()

    notify_user(
        locked.client.user,
        title="Delivery Status Update",
        message=f"{STATUS_MESSAGES[new_status]} - {locked.request_number}",
        notification_type="DELIVERY_STATUS",
        client=locked.client,
        sale=sale,
        metadata=_metadata(locked, new_status=new_status),
    )
    logger.info(f"Delivery request {locked.request_number} moved to {new_status}")
    return locked
