"""
Stock movements. Every change to Product.current_stock goes through
here so it is row-locked, never negative and always logged.
"""
import logging

from django.db import transaction
from rest_framework.exceptions import ValidationError

from .models import InventoryLog, Product

logger = logging.getLogger(__name__)


def _queue_low_stock(product):
    from .tasks import notify_low_stock

    if product.is_low_stock:
        notify_low_stock.delay(product.pk)


def adjust_stock(product_id, quantity, log_type, user=None, reason="", reference=""):
    """Apply a signed stock change to one product. Returns (product, log)."""
    if quantity == 0:
        raise ValidationError({"quantity": "Quantity must not be zero."})

    with transaction.atomic():
        product = Product.objects.select_for_update().get(pk=product_id)
        previous = product.current_stock
        new_stock = previous + quantity
        if new_stock < 0:
            raise ValidationError({
                "quantity": (
                    f"Insufficient stock for {product.name}. "
                    f"Available: {previous}, Required: {-quantity}"
                )
            })

        product.current_stock = new_stock
        product.save(update_fields=["current_stock", "updated_at"])

        log = InventoryLog.objects.create(
            product=product,
            log_type=log_type,
            quantity=quantity,
            previous_stock=previous,
            new_stock=new_stock,
            reason=reason or "",
            reference=str(reference or ""),
            updated_by=user,
        )

    logger.info(f"Stock for product {product.pk} moved {previous} -> {new_stock} ({log_type})")
    if quantity < 0:
        _queue_low_stock(product)
    return product, log


def find_shortages(lines):
    """
    `lines` is an iterable of (product, quantity). Returns one message per
    product whose stock cannot cover the requested quantity.
    """
    shortages = []
    for product, quantity in lines:
        if product.current_stock < quantity:
            shortages.append(
                f"{product.name}: Available {product.current_stock}, Requested {quantity}"
            )
    return shortages


def deduct_stock(lines, log_type=InventoryLog.SALE, user=None, reason="", reference=""):
    """
    Deduct stock for several products at once, all or nothing.
    `lines` is an iterable of (product_id, quantity). Must run inside
    the caller's transaction so the locks cover the caller's writes too.
    """
    totals = {}
    for product_id, quantity in lines:
        totals[product_id] = totals.get(product_id, 0) + quantity

    products = {
        p.pk: p for p in Product.objects.select_for_update().filter(pk__in=list(totals)).order_by("pk")
    }
    missing = [pid for pid in totals if pid not in products]
    if missing:
        raise ValidationError({"items": f"Products not found: {', '.join(str(pid) for pid in missing)}"})

    shortages = find_shortages((products[pid], qty) for pid, qty in totals.items())
    if shortages:
        raise ValidationError({"items": ["Insufficient stock for the following products:"] + shortages})

    logs = []
    for pid, qty in totals.items():
        product = products[pid]
        previous = product.current_stock
        product.current_stock = previous - qty
        product.save(update_fields=["current_stock", "updated_at"])
        logs.append(InventoryLog(
            product=product,
            log_type=log_type,
            quantity=-qty,
            previous_stock=previous,
            new_stock=product.current_stock,
            reason=reason,
            reference=str(reference or ""),
            updated_by=user,
        ))
    InventoryLog.objects.bulk_create(logs)

    for product in products.values():
        _queue_low_stock(product)
    return list(products.values())


def record_initial_stock(product, user=None):
    """Log the opening stock of a newly created product as a RESTOCK."""
    if product.current_stock <= 0:
        return None
    return InventoryLog.objects.create(
        product=product,
        log_type=InventoryLog.RESTOCK,
        quantity=product.current_stock,
        previous_stock=0,
        new_stock=product.current_stock,
        reason="Initial stock",
        updated_by=user,
    )
