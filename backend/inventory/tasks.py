import logging

from celery import shared_task

from notifications.utils import notify_admins, notify_user

from .models import Product

logger = logging.getLogger(__name__)


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=10, retry_kwargs={"max_retries": 3})
def notify_low_stock(self, product_id):
    """
    Low stock notification for the owning vendor, with a copy to
    platform admins who handle restocking.
    """
    try:
        product = Product.objects.select_related("client__user").get(pk=product_id)
    except Product.DoesNotExist:
        return

    if not product.is_low_stock:
        return

    client = product.client
    title = f"Low stock alert: {product.name}"
    message = (
        f"The product '{product.name}' is running low on stock.\n\n"
        f"Current quantity: {product.current_stock}\n"
        f"Reorder level: {product.reorder_level}"
    )
    metadata = {"product_id": product.id, "current_stock": product.current_stock}

    notify_user(
        client.user,
        title=title,
        message=message,
        notification_type="LOW_STOCK",
        client=client,
        metadata=metadata,
    )
    notify_admins(
        title=f"{title} ({client.business_name})",
        message=message,
        notification_type="LOW_STOCK",
        client=client,
        metadata=metadata,
    )
    logger.info(f"Low stock alert queued for product {product.id} ({client.slug})")
