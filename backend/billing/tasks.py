# backend/billing/tasks.py
import logging
from datetime import timedelta

from celery import shared_task
from django.conf import settings
from django.utils import timezone

from billing.models import Subscription
from billing.utils import expire_subscriptions
from notifications.utils import notify_user

logger = logging.getLogger(__name__)


# -------------------------------------------------------------------
# Daily expiry sweep
# -------------------------------------------------------------------
@shared_task
def expire_subscriptions_task():
    expired = expire_subscriptions()
    logger.info(f"Expired {len(expired)} subscription(s)")
    return len(expired)


# -------------------------------------------------------------------
# Notify clients about expiring subscriptions
# -------------------------------------------------------------------
@shared_task
def notify_expiring_subscriptions_task(days_before_expiry=None):
    """
    Notify vendors whose subscription ends in `days_before_expiry` days.
    Runs once daily.
    """
    if days_before_expiry is None:
        days_before_expiry = settings.SUBSCRIPTION_REMINDER_DAYS

    target_date = timezone.localdate() + timedelta(days=days_before_expiry)

    expiring_subs = Subscription.objects.select_related("client__user", "plan").filter(
        status__in=Subscription.CURRENT_STATUSES,
        end_date__date=target_date,
    )

    logger.info(f"Found {expiring_subs.count()} subscriptions expiring on {target_date}")

    notified = 0
    for sub in expiring_subs:
        client = sub.client
        user = client.user
        if not user.is_active:
            continue

        plan_name = sub.plan.name if sub.plan else "current"
        renew_url = f"{settings.FRONTEND_BASE_URL}/dashboard/billing"
        notify_user(
            user,
            title=f"Your subscription expires in {days_before_expiry} day(s)",
            message=(
                f"Dear {user.get_full_name() or user.username}, your {plan_name} subscription "
                f"will expire on {sub.end_date.date()}.\n\nRenew your subscription here: {renew_url}"
            ),
            notification_type="SUBSCRIPTION_EXPIRING",
            client=client,
            channels=client.notification_channels,
            metadata={"subscription_id": sub.id},
        )
        notified += 1
        logger.info(f"Notified client '{client.slug}' for subscription {sub.id}")

    return notified
