# backend/billing/signals.py
import logging

from django.db.models.signals import post_save
from django.dispatch import receiver

from billing.models import Subscription
from billing.utils import start_trial_subscription
from clients.models import ClientProfile

logger = logging.getLogger(__name__)


@receiver(post_save, sender=ClientProfile)
def create_trial_subscription(sender, instance, created, raw=False, **kwargs):
    """
    New clients start on a BASIC trial automatically.
    Skipped for fixture loading and for clients that already have a subscription.
    """
    if not created or raw:
        return

    if Subscription.objects.filter(client=instance).exclude(status=Subscription.STATUS_CANCELLED).exists():
        logger.info("Client %s already has a subscription; skipping trial creation.", instance.slug)
        return

    start_trial_subscription(instance)
