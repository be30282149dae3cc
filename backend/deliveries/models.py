from django.conf import settings
from django.db import models

from core.models import ClientOwnedModel, TimeStampedModel


class DeliveryRequest(ClientOwnedModel, TimeStampedModel):
    STATUS_PENDING_APPROVAL = "PENDING_APPROVAL"
    STATUS_APPROVED = "APPROVED"
    STATUS_REJECTED = "REJECTED"
    STATUS_SCHEDULED = "SCHEDULED"
    STATUS_OUT_FOR_DELIVERY = "OUT_FOR_DELIVERY"
    STATUS_DELIVERED = "DELIVERED"
    STATUS_FAILED = "FAILED"
    STATUS_CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (STATUS_PENDING_APPROVAL, "Pending approval"),
        (STATUS_APPROVED, "Approved"),
        (STATUS_REJECTED, "Rejected"),
        (STATUS_SCHEDULED, "Scheduled"),
        (STATUS_OUT_FOR_DELIVERY, "Out for delivery"),
        (STATUS_DELIVERED, "Delivered"),
        (STATUS_FAILED, "Failed"),
        (STATUS_CANCELLED, "Cancelled"),
    ]
    # statuses an admin may move a request into after approval
    FULFILMENT_STATUSES = (STATUS_SCHEDULED, STATUS_OUT_FOR_DELIVERY, STATUS_DELIVERED, STATUS_FAILED)
    FULFILMENT_FROM = (STATUS_APPROVED, STATUS_SCHEDULED, STATUS_OUT_FOR_DELIVERY, STATUS_FAILED)
    NOT_CANCELLABLE = (STATUS_OUT_FOR_DELIVERY, STATUS_DELIVERED)

    PAYMENT_BEFORE_DELIVERY = "PAYMENT_BEFORE_DELIVERY"
    PAYMENT_ON_DELIVERY = "PAYMENT_ON_DELIVERY"
    PAYMENT_METHOD_CHOICES = [
        (PAYMENT_BEFORE_DELIVERY, "Payment before delivery"),
        (PAYMENT_ON_DELIVERY, "Payment on delivery"),
        ("BANK_TRANSFER", "Bank transfer"),
        ("CARD", "Card"),
        ("CASH", "Cash"),
        ("MOBILE_MONEY", "Mobile money"),
    ]

    PAYMENT_PENDING = "PENDING"
    PAYMENT_COMPLETED = "COMPLETED"
    PAYMENT_FAILED = "FAILED"
    PAYMENT_STATUS_CHOICES = [
        (PAYMENT_PENDING, "Pending"),
        (PAYMENT_COMPLETED, "Completed"),
        (PAYMENT_FAILED, "Failed"),
    ]

    PREFERRED_TIME_CHOICES = [
        ("morning", "Morning"),
        ("afternoon", "Afternoon"),
        ("evening", "Evening"),
    ]

    request_number = models.CharField(max_length=40, unique=True, db_index=True)
    customer_name = models.CharField(max_length=255)
    customer_phone = models.CharField(max_length=30)
    customer_email = models.EmailField(blank=True, null=True)
    delivery_address = models.TextField()
    payment_method = models.CharField(max_length=30, choices=PAYMENT_METHOD_CHOICES)
    payment_status = models.CharField(max_length=20, choices=PAYMENT_STATUS_CHOICES, default=PAYMENT_PENDING)
    scheduled_date = models.DateTimeField(blank=True, null=True)
    preferred_time = models.CharField(max_length=20, choices=PREFERRED_TIME_CHOICES, blank=True, null=True)
    special_instructions = models.TextField(blank=True, null=True)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING_APPROVAL)

    reviewed_by = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name="reviewed_delivery_requests",
    )
    reviewed_at = models.DateTimeField(blank=True, null=True)
    approved_at = models.DateTimeField(blank=True, null=True)
    rejection_reason = models.TextField(blank=True, null=True)
    assigned_to = models.ForeignKey(
        settings.AUTH_USER_MODEL, on_delete=models.SET_NULL, null=True, blank=True,
        related_name="assigned_delivery_requests",
    )
    dispatched_at = models.DateTimeField(blank=True, null=True)
    delivered_at = models.DateTimeField(blank=True, null=True)
    delivery_proof = models.TextField(blank=True, null=True)
    customer_signature = models.TextField(blank=True, null=True)

    auto_approved = models.BooleanField(default=False)
    approved_by_rule = models.ForeignKey(
        "auto_approval.AutoApprovalRule", on_delete=models.SET_NULL, null=True, blank=True,
        related_name="approved_requests",
    )

    class Meta:
        ordering = ["-created_at", "-id"]
        indexes = [
            models.Index(fields=["client", "status"], name="delivery_client_status_idx"),
        ]

    def __str__(self):
        return f"{self.request_number} ({self.status})"


class DeliveryRequestItem(models.Model):
    delivery_request = models.ForeignKey(DeliveryRequest, on_delete=models.CASCADE, related_name="items")
    product = models.ForeignKey("inventory.Product", on_delete=models.PROTECT, related_name="delivery_items")
    quantity = models.PositiveIntegerField()
    unit_price = models.DecimalField(max_digits=12, decimal_places=2)
    total_price = models.DecimalField(max_digits=12, decimal_places=2)

    def save(self, *args, **kwargs):
        self.total_price = (self.unit_price or 0) * (self.quantity or 0)
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.product} x {self.quantity}"
