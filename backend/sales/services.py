import logging
from decimal import Decimal

from django.db import transaction
from django.utils import timezone

from inventory.models import InventoryLog
from inventory.services import deduct_stock
from notifications.utils import notify_user

from .models import Sale, SaleItem

logger = logging.getLogger(__name__)


def generate_sale_number():
    # Format: SALE-000001, sequential over all sales
    n = Sale.objects.count() + 1
    while True:
        number = f"SALE-{n:06d}"
        if not Sale.objects.filter(sale_number=number).exists():
            return number
        n += 1


def record_sale(client, items, user=None, notify=True, **fields):
    """
    Record a sale for `client` and take its items out of stock.

    `items` is a list of dicts with `product`, `quantity` and `unit_price`.
    Extra keyword arguments are stored on the Sale (customer, dates, notes,
    delivery_request, status).
    """
    with transaction.atomic():
        sale_number = generate_sale_number()
        deduct_stock(
            [(item["product"].pk, item["quantity"]) for item in items],
            log_type=InventoryLog.SALE,
            user=user,
            reason=f"Sale: {sale_number}",
            reference=sale_number,
        )

        total = sum(
            (Decimal(item["unit_price"]) * item["quantity"] for item in items), Decimal("0.00")
        )
        fields.setdefault("sale_date", timezone.now())
        sale = Sale.objects.create(
            client=client,
            sale_number=sale_number,
            total_amount=total,
            recorded_by=user,
            **fields,
        )
        for item in items:
            SaleItem.objects.create(
                sale=sale,
                product=item["product"],
                quantity=item["quantity"],
                unit_price=item["unit_price"],
            )

    logger.info(f"Sale {sale.sale_number} recorded for client '{client.slug}' ({total})")

    if notify:
        summary = ", ".join(f"{item['quantity']}x {item['product'].name}" for item in items)
        message = f"Sale {sale.sale_number} has been recorded for {total:,.2f}. Items: {summary}."
        if sale.customer_name:
            message += f" Delivered to {sale.customer_name}."
        notify_user(
            client.user,
            title="New Sale Recorded",
            message=message,
            notification_type="SALE_RECORDED",
            client=client,
            sale=sale,
            metadata={"sale_id": sale.id},
        )
    return sale
