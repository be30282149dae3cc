import logging
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.utils import timezone
from rest_framework.exceptions import PermissionDenied, ValidationError

from billing.constants import (
    DEFAULT_PLANS,
    LIMIT_FEATURES,
    PLAN_BASIC,
    PLAN_FEATURES,
    PLAN_HIERARCHY,
    PLAN_LIMITS,
    PLAN_STANDARD,
    PLAN_PREMIUM,
    UPGRADE_MESSAGES,
    UPGRADE_PATH,
)
from billing.models import Payment, Plan, Subscription

logger = logging.getLogger(__name__)


# ============================================
# PLAN LOOKUP
# ============================================
def get_current_subscription(client):
    """Latest ACTIVE or TRIAL subscription that has not run past its end date."""
    if client is None:
        return None
    return (
        Subscription.objects
        .select_related("plan")
        .filter(
            client=client,
            status__in=Subscription.CURRENT_STATUSES,
            end_date__gte=timezone.now(),
        )
        .order_by("-end_date", "-created_at")
        .first()
    )


def get_client_plan(client):
    """Return the Plan of the client's current subscription, or None."""
    sub = get_current_subscription(client)
    return sub.plan if sub else None


def get_plan_code(client):
    """
    Plan code used for gating. Clients without a current subscription
    are held to BASIC.
    """
    plan = get_client_plan(client)
    return plan.code if plan else PLAN_BASIC


def get_plan_limit(plan_code, limit_key):
    return PLAN_LIMITS.get(plan_code, PLAN_LIMITS[PLAN_BASIC]).get(limit_key)


def get_plan_for_code(code):
    """Fetch a plan by code, creating it from the defaults if it is missing."""
    defaults = dict(DEFAULT_PLANS[code])
    defaults.setdefault("currency", settings.DEFAULT_CURRENCY)
    plan, _ = Plan.objects.get_or_create(code=code, defaults=defaults)
    return plan


# ============================================
# FEATURE GATING
# ============================================
def has_feature(client, feature: str) -> bool:
    """Check if the client's plan includes a feature. Platform admins (no client) pass."""
    if client is None:
        return True
    return feature in PLAN_FEATURES.get(get_plan_code(client), [])


def require_feature(client, feature: str):
    """Raise PermissionDenied if the client's plan does not have the feature."""
    if not has_feature(client, feature):
        raise PermissionDenied(get_upgrade_message(feature))


def check_plan_limit(client, limit_key: str, current_count: int):
    """
    Enforce plan limits.
    Example usage: check_plan_limit(client, 'max_products', Product.objects.filter(client=client).count())
    """
    if client is None:
        return
    plan_code = get_plan_code(client)
    limit = get_plan_limit(plan_code, limit_key)
    if limit is not None and current_count >= limit:
        feature = LIMIT_FEATURES.get(limit_key, {}).get(plan_code)
        if feature:
            raise ValidationError(get_upgrade_message(feature))
        raise ValidationError(f"You've reached your plan limit for {limit_key.replace('_', ' ')} ({limit}).")


def get_upgrade_message(feature: str) -> str:
    return UPGRADE_MESSAGES.get(feature, "This feature requires a higher subscription tier.")


def get_recommended_plan(feature: str) -> str:
    """Lowest plan that includes the feature."""
    for code in (PLAN_STANDARD, PLAN_PREMIUM):
        if feature in PLAN_FEATURES[code]:
            return code
    return PLAN_BASIC


def is_plan_higher_than(plan_a: str, plan_b: str) -> bool:
    return PLAN_HIERARCHY.get(plan_a, 0) > PLAN_HIERARCHY.get(plan_b, 0)


def get_next_plan_upgrade(plan_code: str):
    return UPGRADE_PATH.get(plan_code)


# ============================================
# SUBSCRIPTION LIFECYCLE
# ============================================
def start_trial_subscription(client):
    """Put a newly created client on a BASIC trial."""
    plan = get_plan_for_code(PLAN_BASIC)
    start = timezone.now()
    end = start + timedelta(days=settings.TRIAL_PERIOD_DAYS)

    with transaction.atomic():
        sub = Subscription.objects.create(
            client=client,
            plan=plan,
            status=Subscription.STATUS_TRIAL,
            amount=0,
            currency=plan.currency,
            start_date=start,
            end_date=end,
            auto_renew=False,
        )
        type(client).objects.filter(pk=client.pk).update(
            subscription_status=client.STATUS_TRIAL,
            subscription_start=start,
            subscription_end=end,
        )
        client.subscription_status = client.STATUS_TRIAL
        client.subscription_start = start
        client.subscription_end = end

    logger.info(f"Started trial subscription {sub.id} for client '{client.slug}' (ends {end})")
    return sub


def activate_subscription(client, plan, subscription=None, reference=None, amount=None,
                          duration_days=None, auto_renew=True):
    """
    Make `subscription` (or a new one) the client's active subscription.
    Any other ACTIVE/TRIAL subscription is cancelled.
    """
    now = timezone.now()
    days = duration_days or plan.duration_days

    with transaction.atomic():
        others = Subscription.objects.filter(client=client, status__in=Subscription.CURRENT_STATUSES)
        if subscription is not None:
            others = others.exclude(pk=subscription.pk)
        cancelled_count = others.update(status=Subscription.STATUS_CANCELLED, auto_renew=False, updated_at=now)
        if cancelled_count:
            logger.info(f"{cancelled_count} current subscription(s) cancelled for client '{client.slug}'")

        if subscription is None:
            subscription = Subscription(client=client)

        subscription.plan = plan
        subscription.status = Subscription.STATUS_ACTIVE
        subscription.amount = plan.amount if amount is None else amount
        subscription.currency = plan.currency
        subscription.start_date = now
        subscription.end_date = now + timedelta(days=days)
        subscription.last_payment_date = now
        subscription.next_payment_date = subscription.end_date
        subscription.auto_renew = auto_renew
        if reference:
            subscription.paystack_reference = reference
        subscription.save()

        client.subscription_status = client.STATUS_ACTIVE
        client.subscription_start = subscription.start_date
        client.subscription_end = subscription.end_date
        client.save(update_fields=["subscription_status", "subscription_start", "subscription_end", "updated_at"])

    logger.info(f"Activated {plan.code} subscription {subscription.id} for client '{client.slug}'")
    return subscription


def create_paid_subscription(client, plan_code, paystack_reference=None, auto_renew=True, amount=None,
                             duration_days=None):
    """
    Promote or create a paid subscription for a client.
    - Cancels any existing current subscriptions (including the trial).
    - Creates the new subscription as ACTIVE and syncs the client profile.
    """
    plan = Plan.objects.filter(code__iexact=plan_code).first()
    if not plan:
        raise ValueError(f"Plan not found: {plan_code}")

    return activate_subscription(
        client,
        plan,
        reference=paystack_reference,
        amount=amount,
        duration_days=duration_days,
        auto_renew=auto_renew,
    )


def cancel_subscription(subscription):
    with transaction.atomic():
        subscription.status = Subscription.STATUS_CANCELLED
        subscription.auto_renew = False
        subscription.save(update_fields=["status", "auto_renew", "updated_at"])

        client = subscription.client
        client.subscription_status = client.STATUS_CANCELLED
        client.save(update_fields=["subscription_status", "updated_at"])

    logger.info(f"Subscription {subscription.id} cancelled for client '{client.slug}'")
    return subscription


def complete_payment(payment, paystack_data=None, plan_code=None):
    """
    Mark a pending payment COMPLETED and activate the subscription it pays for.
    Payments that are already completed are left alone.
    """
    from notifications.utils import notify_user

    if payment.status == Payment.STATUS_COMPLETED:
        logger.info(f"Payment {payment.reference} already completed; skipping.")
        return payment.subscription

    now = timezone.now()
    metadata = dict(payment.metadata or {})
    metadata["processed_at"] = now.isoformat()

    payment.status = Payment.STATUS_COMPLETED
    payment.payment_date = now
    payment.metadata = metadata
    if paystack_data is not None:
        payment.raw_response = paystack_data
    payment.save(update_fields=["status", "payment_date", "metadata", "raw_response"])

    plan_code = plan_code or metadata.get("plan")
    plan = Plan.objects.filter(code=plan_code).first() if plan_code else None
    if plan is None and payment.subscription is not None:
        plan = payment.subscription.plan
    if plan is None:
        logger.warning(f"Payment {payment.reference} completed without a plan to activate")
        return payment.subscription

    subscription = activate_subscription(
        payment.client,
        plan,
        subscription=payment.subscription,
        reference=payment.reference,
        amount=payment.amount,
    )
    if payment.subscription_id != subscription.id:
        payment.subscription = subscription
        payment.save(update_fields=["subscription"])

    client = payment.client
    notify_user(
        client.user,
        title="Payment Received",
        message=(
            f"Your payment of {payment.currency} {payment.amount} has been confirmed. "
            f"Your {plan.name} is now active until {subscription.end_date.date()}."
        ),
        notification_type="PAYMENT_RECEIVED",
        client=client,
        channels=["EMAIL"],
        metadata={"payment_id": payment.id, "subscription_id": subscription.id},
    )
    return subscription


def fail_payment(payment, paystack_data=None):
    from notifications.utils import notify_user

    payment.status = Payment.STATUS_FAILED
    if paystack_data is not None:
        payment.raw_response = paystack_data
    payment.save(update_fields=["status", "raw_response"])

    client = payment.client
    notify_user(
        client.user,
        title="Payment Failed",
        message=(
            f"Your payment of {payment.currency} {payment.amount} could not be processed. "
            "Please check your payment details and try again."
        ),
        notification_type="PAYMENT_FAILED",
        client=client,
        channels=client.notification_channels,
        metadata={"payment_id": payment.id},
    )
    logger.warning(f"Payment {payment.reference} failed for client '{client.slug}'")


def expire_subscriptions(now=None):
    """
    Mark ACTIVE/TRIAL subscriptions past their end date as EXPIRED, flag
    the owning client and notify it. Returns the expired subscriptions.
    """
    from notifications.utils import notify_user

    now = now or timezone.now()
    expired = list(
        Subscription.objects
        .select_related("client__user", "plan")
        .filter(status__in=Subscription.CURRENT_STATUSES, end_date__lt=now)
    )

    for sub in expired:
        client = sub.client
        with transaction.atomic():
            sub.status = Subscription.STATUS_EXPIRED
            sub.save(update_fields=["status", "updated_at"])

            # a newer current subscription keeps the client in good standing
            still_current = Subscription.objects.filter(
                client=client, status__in=Subscription.CURRENT_STATUSES, end_date__gte=now
            ).exists()
            if not still_current:
                client.subscription_status = client.STATUS_EXPIRED
                client.save(update_fields=["subscription_status", "updated_at"])

        if still_current:
            continue

        notify_user(
            client.user,
            title="Subscription Expired",
            message="Your subscription has expired. Please renew to continue accessing your portal.",
            notification_type="SUBSCRIPTION_EXPIRED",
            client=client,
            channels=client.notification_channels,
            metadata={"subscription_id": sub.id},
        )
        logger.info(f"Subscription {sub.id} ({client.slug}) marked expired (past end date).")

    return expired
