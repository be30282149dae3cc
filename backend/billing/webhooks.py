"""
Handlers for Paystack webhook events.

Each handler receives the event's `data` object. Unknown events are
acknowledged without side effects.
"""
import logging

from billing.models import Payment, Subscription
from billing.utils import cancel_subscription, complete_payment, fail_payment

logger = logging.getLogger("billing.webhook")


def handle_charge_success(data):
    reference = data.get("reference")
    metadata = data.get("metadata") or {}

    payment = Payment.objects.select_related("client__user", "subscription").filter(reference=reference).first()
    if not payment:
        logger.warning(f"Payment record not found for reference {reference}")
        return

    client_id = metadata.get("client_id")
    if client_id is not None and str(client_id) != str(payment.client_id):
        logger.error(f"Client mismatch on {reference}: metadata={client_id}, payment={payment.client_id}")
        return

    complete_payment(payment, paystack_data=data, plan_code=metadata.get("plan"))
    logger.info(f"Charge success processed: {reference}")


def handle_subscription_disable(data):
    code = data.get("subscription_code")
    if not code:
        return

    subscription = Subscription.objects.select_related("client").filter(paystack_subscription_code=code).first()
    if subscription is None:
        logger.warning(f"No subscription with code {code}")
        return

    cancel_subscription(subscription)


def handle_payment_failed(data):
    reference = data.get("reference")
    payment = Payment.objects.select_related("client__user").filter(reference=reference).first()
    if not payment:
        logger.warning(f"Payment record not found for failed reference {reference}")
        return

    fail_payment(payment, paystack_data=data)


EVENT_HANDLERS = {
    "charge.success": handle_charge_success,
    "subscription.disable": handle_subscription_disable,
    "invoice.payment_failed": handle_payment_failed,
}


def dispatch_event(event, data):
    """Run the handler for `event`. Returns False for unhandled events."""
    handler = EVENT_HANDLERS.get(event)
    if handler is None:
        logger.info(f"Unhandled Paystack event: {event}")
        return False
    handler(data or {})
    return True
