from django.conf import settings
from django.db import models

from core.models import ClientOwnedModel, TimeStampedModel


class Product(ClientOwnedModel, TimeStampedModel):
    name = models.CharField(max_length=150)
    sku = models.CharField(max_length=100, blank=True, null=True)
    category = models.CharField(max_length=100, blank=True)
    description = models.TextField(blank=True, null=True)
    unit_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    cost_price = models.DecimalField(max_digits=12, decimal_places=2, null=True, blank=True)
    current_stock = models.PositiveIntegerField(default=0)
    reorder_level = models.PositiveIntegerField(null=True, blank=True)
    is_active = models.BooleanField(default=True)

    class Meta:
        ordering = ["name"]
        constraints = [
            models.UniqueConstraint(fields=["client", "sku"], name="unique_product_sku_per_client"),
        ]

    @property
    def is_low_stock(self):
        return self.reorder_level is not None and self.current_stock <= self.reorder_level

    def __str__(self):
        return self.name


class InventoryLog(models.Model):
    RESTOCK = "RESTOCK"
    SALE = "SALE"
    ADJUSTMENT = "ADJUSTMENT"
    DAMAGE = "DAMAGE"
    RETURN = "RETURN"

    LOG_TYPE_CHOICES = [
        (RESTOCK, "Restock"),
        (SALE, "Sale"),
        (ADJUSTMENT, "Adjustment"),
        (DAMAGE, "Damage"),
        (RETURN, "Return"),
    ]
    MANUAL_TYPES = (RESTOCK, ADJUSTMENT, DAMAGE, RETURN)

    product = models.ForeignKey(Product, on_delete=models.CASCADE, related_name="inventory_logs")
    log_type = models.CharField(max_length=20, choices=LOG_TYPE_CHOICES)
    quantity = models.IntegerField(help_text="Signed change applied to the stock")
    previous_stock = models.PositiveIntegerField()
    new_stock = models.PositiveIntegerField()
    reason = models.CharField(max_length=255, blank=True)
    reference = models.CharField(max_length=100, blank=True)
    updated_by = models.ForeignKey(
        settings.AUTH_USER_MODEL,
        on_delete=models.SET_NULL,
        null=True,
        blank=True,
        related_name="inventory_logs",
    )
    created_at = models.DateTimeField(auto_now_add=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.product} {self.quantity:+d} ({self.log_type})"
