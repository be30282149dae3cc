from django.core.validators import MinValueValidator
from django.db import models

from core.models import ClientOwnedModel, TimeStampedModel


class AutoApprovalRule(ClientOwnedModel, TimeStampedModel):
    """
    A condition set that approves a vendor's delivery request without
    admin review. Rules are evaluated in ascending priority.
    """
    TYPE_CUSTOMER = "CUSTOMER"
    TYPE_PRODUCT = "PRODUCT"
    TYPE_AMOUNT = "AMOUNT"
    TYPE_TIME = "TIME"
    TYPE_COMBINED = "COMBINED"

    RULE_TYPE_CHOICES = [
        (TYPE_CUSTOMER, "Customer whitelist"),
        (TYPE_PRODUCT, "Product whitelist"),
        (TYPE_AMOUNT, "Amount threshold"),
        (TYPE_TIME, "Time window"),
        (TYPE_COMBINED, "Combined"),
    ]

    DAY_CHOICES = ["SUN", "MON", "TUE", "WED", "THU", "FRI", "SAT"]

    name = models.CharField(max_length=150)
    description = models.TextField(blank=True)
    rule_type = models.CharField(max_length=20, choices=RULE_TYPE_CHOICES)
    priority = models.PositiveIntegerField(default=1, validators=[MinValueValidator(1)])
    is_active = models.BooleanField(default=True)

    customer_phones = models.JSONField(default=list, blank=True)
    product_ids = models.JSONField(default=list, blank=True)
    min_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    max_amount = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    allowed_days = models.JSONField(default=list, blank=True)
    start_time = models.TimeField(null=True, blank=True)
    end_time = models.TimeField(null=True, blank=True)

    class Meta:
        ordering = ["priority", "-created_at"]
        indexes = [
            models.Index(fields=["client", "is_active", "priority"], name="auto_rule_client_active_idx"),
        ]

    def __str__(self):
        return f"{self.name} ({self.rule_type}, priority {self.priority})"
