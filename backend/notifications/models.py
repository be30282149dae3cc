from django.conf import settings
from django.db import models


class Notification(models.Model):
    NOTIFICATION_TYPES = (
        ("DELIVERY_REQUEST", "Delivery request"),
        ("DELIVERY_APPROVED", "Delivery approved"),
        ("DELIVERY_REJECTED", "Delivery rejected"),
        ("DELIVERY_STATUS", "Delivery status"),
        ("SALE_RECORDED", "Sale recorded"),
        ("LOW_STOCK", "Low stock"),
        ("INVOICE", "Invoice"),
        ("PAYMENT_RECEIVED", "Payment received"),
        ("PAYMENT_FAILED", "Payment failed"),
        ("SUBSCRIPTION_EXPIRING", "Subscription expiring"),
        ("SUBSCRIPTION_EXPIRED", "Subscription expired"),
        ("SUBSCRIPTION_CANCELLED", "Subscription cancelled"),
        ("SYSTEM", "System"),
    )

    CHANNEL_EMAIL = "EMAIL"
    CHANNEL_WHATSAPP = "WHATSAPP"
    CHANNEL_SMS = "SMS"
    CHANNELS = (CHANNEL_EMAIL, CHANNEL_WHATSAPP, CHANNEL_SMS)

    STATUS_PENDING = "PENDING"
    STATUS_SENT = "SENT"
    STATUS_FAILED = "FAILED"
    STATUS_READ = "READ"
    STATUS_CHOICES = (
        (STATUS_PENDING, "Pending"),
        (STATUS_SENT, "Sent"),
        (STATUS_FAILED, "Failed"),
        (STATUS_READ, "Read"),
    )

    recipient = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.CASCADE,
        related_name="notifications",
    )

    client = models.ForeignKey(
        "clients.ClientProfile",
        on_delete=models.CASCADE,
        related_name="notifications",
        null=True,
        blank=True,
    )

    sale = models.ForeignKey(
        "sales.Sale",
        on_delete=models.SET_NULL,
        related_name="notifications",
        null=True,
        blank=True,
    )

    title = models.CharField(max_length=255)
    message = models.TextField()

    notification_type = models.CharField(
        max_length=30,
        choices=NOTIFICATION_TYPES,
        default="SYSTEM",
    )

    channels = models.JSONField(default=list, blank=True)
    status = models.CharField(max_length=10, choices=STATUS_CHOICES, default=STATUS_PENDING)
    metadata = models.JSONField(blank=True, null=True)

    sent_at = models.DateTimeField(null=True, blank=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ("-created_at",)

    @property
    def is_read(self):
        return self.status == self.STATUS_READ

    def __str__(self):
        return f"{self.title} → {self.recipient}"
