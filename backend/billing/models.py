import math

from django.core.exceptions import ValidationError
from django.db import models
from django.utils import timezone

from clients.models import ClientProfile

from .constants import PLAN_CHOICES


class Plan(models.Model):
    """
    Pricing plans. Amount is stored in the major currency unit (GHS);
    Paystack receives it converted to pesewas.
    """
    code = models.CharField(max_length=20, choices=PLAN_CHOICES, unique=True)
    name = models.CharField(max_length=100)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=10, default="GHS")
    duration_days = models.PositiveIntegerField(default=30, help_text="Subscription duration in days")
    description = models.TextField(blank=True)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["amount"]

    @property
    def amount_minor(self):
        """Return the plan amount in the smallest currency unit for Paystack."""
        return int(self.amount * 100)

    def __str__(self):
        return f"{self.name} ({self.amount} {self.currency}/{self.duration_days})"


class Subscription(models.Model):
    STATUS_TRIAL = "TRIAL"
    STATUS_ACTIVE = "ACTIVE"
    STATUS_PENDING = "PENDING"
    STATUS_EXPIRED = "EXPIRED"
    STATUS_CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (STATUS_TRIAL, "Trial"),
        (STATUS_ACTIVE, "Active"),
        (STATUS_PENDING, "Pending"),
        (STATUS_EXPIRED, "Expired"),
        (STATUS_CANCELLED, "Cancelled"),
    ]
    CURRENT_STATUSES = (STATUS_ACTIVE, STATUS_TRIAL)

    client = models.ForeignKey(ClientProfile, on_delete=models.CASCADE, related_name="subscriptions")
    plan = models.ForeignKey(Plan, on_delete=models.SET_NULL, null=True, blank=True, related_name="subscriptions")
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    amount = models.DecimalField(max_digits=10, decimal_places=2, default=0)
    currency = models.CharField(max_length=10, default="GHS")
    start_date = models.DateTimeField(default=timezone.now)
    end_date = models.DateTimeField()
    last_payment_date = models.DateTimeField(null=True, blank=True)
    next_payment_date = models.DateTimeField(null=True, blank=True)
    auto_renew = models.BooleanField(default=False)
    paystack_reference = models.CharField(max_length=255, blank=True, null=True)
    paystack_subscription_code = models.CharField(max_length=255, blank=True, null=True)
    metadata = models.JSONField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        # history is kept; the current one is the latest ACTIVE/TRIAL row
        ordering = ["-created_at"]

    def clean(self):
        if self.start_date and self.end_date and self.end_date <= self.start_date:
            raise ValidationError({"end_date": "End date must be after the start date."})

    def save(self, *args, **kwargs):
        self.clean()
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.client} -> {self.plan.code if self.plan else 'No Plan'} ({self.status})"

    @property
    def is_expired(self):
        return bool(self.end_date and timezone.now() > self.end_date)

    @property
    def days_remaining(self):
        if not self.end_date:
            return 0
        seconds = (self.end_date - timezone.now()).total_seconds()
        return max(0, math.ceil(seconds / 86400))


class Payment(models.Model):
    STATUS_PENDING = "PENDING"
    STATUS_COMPLETED = "COMPLETED"
    STATUS_FAILED = "FAILED"

    STATUS_CHOICES = [
        (STATUS_PENDING, "Pending"),
        (STATUS_COMPLETED, "Completed"),
        (STATUS_FAILED, "Failed"),
    ]

    METHOD_PAYSTACK = "PAYSTACK"

    client = models.ForeignKey(ClientProfile, on_delete=models.CASCADE, related_name="payments")
    subscription = models.ForeignKey(
        Subscription, on_delete=models.SET_NULL, null=True, blank=True, related_name="payments"
    )
    reference = models.CharField(max_length=255, unique=True)
    amount = models.DecimalField(max_digits=10, decimal_places=2)
    currency = models.CharField(max_length=10, default="GHS")
    payment_method = models.CharField(max_length=30, default=METHOD_PAYSTACK)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING)
    payment_date = models.DateTimeField(null=True, blank=True)
    raw_response = models.JSONField(blank=True, null=True)
    metadata = models.JSONField(blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at"]

    def __str__(self):
        return f"{self.reference} ({self.client}) - {self.status}"
