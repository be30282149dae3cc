# notifications/utils.py
import logging

from django.contrib.auth import get_user_model

from .models import Notification
from .tasks import send_notification_email

logger = logging.getLogger(__name__)


def notify_user(recipient, title, message, notification_type="SYSTEM", client=None,
                channels=None, metadata=None, sale=None):
    """
    Create a notification and queue delivery on its channels.

    Only EMAIL is delivered from here; WHATSAPP and SMS entries are
    recorded for the messaging provider to pick up.
    """
    if channels is None:
        channels = client.notification_channels if client is not None else [Notification.CHANNEL_EMAIL]

    notification = Notification.objects.create(
        recipient=recipient,
        client=client,
        sale=sale,
        title=title,
        message=message,
        notification_type=notification_type,
        channels=list(channels),
        metadata=metadata,
    )

    if Notification.CHANNEL_EMAIL in notification.channels and recipient.email:
        send_notification_email.delay(notification.id)

    return notification


def notify_admins(title, message, notification_type="SYSTEM", client=None, metadata=None):
    """Notify every active platform admin. Returns the created notifications."""
    User = get_user_model()
    admins = User.objects.filter(is_active=True, role__in=User.ADMIN_ROLES)

    notifications = [
        notify_user(
            admin,
            title=title,
            message=message,
            notification_type=notification_type,
            client=client,
            channels=[Notification.CHANNEL_EMAIL],
            metadata=metadata,
        )
        for admin in admins
    ]
    logger.info(f"Notified {len(notifications)} admin(s): {title}")
    return notifications
