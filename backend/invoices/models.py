from django.db import models

from core.models import ClientOwnedModel, TimeStampedModel


class Invoice(ClientOwnedModel, TimeStampedModel):
    """Invoice for a delivery request. Items are a snapshot taken at generation time."""
    STATUS_DRAFT = "DRAFT"
    STATUS_SENT = "SENT"
    STATUS_PAID = "PAID"
    STATUS_OVERDUE = "OVERDUE"
    STATUS_CANCELLED = "CANCELLED"

    STATUS_CHOICES = [
        (STATUS_DRAFT, "Draft"),
        (STATUS_SENT, "Sent"),
        (STATUS_PAID, "Paid"),
        (STATUS_OVERDUE, "Overdue"),
        (STATUS_CANCELLED, "Cancelled"),
    ]

    delivery_request = models.OneToOneField(
        "deliveries.DeliveryRequest", on_delete=models.CASCADE, related_name="invoice"
    )
    invoice_number = models.CharField(max_length=40, unique=True, db_index=True)
    customer_name = models.CharField(max_length=255)
    customer_email = models.EmailField(blank=True, null=True)
    customer_phone = models.CharField(max_length=30, blank=True)
    customer_address = models.TextField(blank=True)
    items = models.JSONField(default=list)
    subtotal = models.DecimalField(max_digits=12, decimal_places=2)
    tax = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    discount = models.DecimalField(max_digits=12, decimal_places=2, default=0)
    total_amount = models.DecimalField(max_digits=12, decimal_places=2)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_DRAFT)
    due_date = models.DateTimeField()
    paid_at = models.DateTimeField(blank=True, null=True)
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-created_at", "-id"]

    def __str__(self):
        return f"{self.invoice_number} ({self.status})"


class Receipt(TimeStampedModel):
    invoice = models.ForeignKey(Invoice, on_delete=models.CASCADE, related_name="receipts")
    receipt_number = models.CharField(max_length=40, unique=True, db_index=True)
    amount_paid = models.DecimalField(max_digits=12, decimal_places=2)
    payment_method = models.CharField(max_length=30)
    payment_date = models.DateTimeField()
    notes = models.TextField(blank=True)

    class Meta:
        ordering = ["-payment_date", "-id"]

    def __str__(self):
        return f"{self.receipt_number} for {self.invoice.invoice_number}"
