import logging

from celery import shared_task
from django.conf import settings
from django.core.mail import send_mail
from django.utils import timezone

from .models import Notification

logger = logging.getLogger(__name__)


@shared_task(bind=True, autoretry_for=(Exception,), retry_backoff=True, retry_kwargs={"max_retries": 3})
def send_notification_email(self, notification_id):
    """
    Send an email for a stored notification and record the outcome.
    """
    try:
        notification = Notification.objects.select_related("recipient").get(
            id=notification_id
        )
    except Notification.DoesNotExist:
        return  # safe exit

    recipient = notification.recipient

    if not recipient.email:
        return

    try:
        send_mail(
            subject=notification.title,
            message=notification.message,
            from_email=settings.DEFAULT_FROM_EMAIL,
            recipient_list=[recipient.email],
            fail_silently=False,
        )
    except Exception:
        # a later successful retry moves it on to SENT
        Notification.objects.filter(pk=notification.pk).exclude(
            status=Notification.STATUS_READ
        ).update(status=Notification.STATUS_FAILED)
        logger.exception(f"Email for notification {notification.id} to {recipient.email} failed")
        raise

    # a notification read before delivery stays READ
    Notification.objects.filter(pk=notification.pk).exclude(
        status=Notification.STATUS_READ
    ).update(status=Notification.STATUS_SENT, sent_at=timezone.now())
