import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("clients", "0001_initial"),
        ("inventory", "0001_initial"),
        ("auto_approval", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="DeliveryRequest",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("request_number", models.CharField(db_index=True, max_length=40, unique=True)),
                ("customer_name", models.CharField(max_length=255)),
                ("customer_phone", models.CharField(max_length=30)),
                ("customer_email", models.EmailField(blank=True, max_length=254, null=True)),
                ("delivery_address", models.TextField()),
                ("payment_method", models.CharField(choices=[("PAYMENT_BEFORE_DELIVERY", "Payment before delivery"), ("PAYMENT_ON_DELIVERY", "Payment on delivery"), ("BANK_TRANSFER", "Bank transfer"), ("CARD", "Card"), ("CASH", "Cash"), ("MOBILE_MONEY", "Mobile money")], max_length=30)),
                ("payment_status", models.CharField(choices=[("PENDING", "Pending"), ("COMPLETED", "Completed"), ("FAILED", "Failed")], default="PENDING", max_length=20)),
                ("scheduled_date", models.DateTimeField(blank=True, null=True)),
                ("preferred_time", models.CharField(blank=True, choices=[("morning", "Morning"), ("afternoon", "Afternoon"), ("evening", "Evening")], max_length=20, null=True)),
                ("special_instructions", models.TextField(blank=True, null=True)),
                ("total_amount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("status", models.CharField(choices=[("PENDING_APPROVAL", "Pending approval"), ("APPROVED", "Approved"), ("REJECTED", "Rejected"), ("SCHEDULED", "Scheduled"), ("OUT_FOR_DELIVERY", "Out for delivery"), ("DELIVERED", "Delivered"), ("FAILED", "Failed"), ("CANCELLED", "Cancelled")], default="PENDING_APPROVAL", max_length=20)),
                ("reviewed_at", models.DateTimeField(blank=True, null=True)),
                ("approved_at", models.DateTimeField(blank=True, null=True)),
                ("rejection_reason", models.TextField(blank=True, null=True)),
                ("dispatched_at", models.DateTimeField(blank=True, null=True)),
                ("delivered_at", models.DateTimeField(blank=True, null=True)),
                ("delivery_proof", models.TextField(blank=True, null=True)),
                ("customer_signature", models.TextField(blank=True, null=True)),
                ("auto_approved", models.BooleanField(default=False)),
                ("approved_by_rule", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="approved_requests", to="auto_approval.autoapprovalrule")),
                ("assigned_to", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="assigned_delivery_requests", to=settings.AUTH_USER_MODEL)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="deliveryrequests", to="clients.clientprofile")),
                ("reviewed_by", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="reviewed_delivery_requests", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at", "-id"],
                "indexes": [models.Index(fields=["client", "status"], name="delivery_client_status_idx")],
            },
        ),
        migrations.CreateModel(
            name="DeliveryRequestItem",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("quantity", models.PositiveIntegerField()),
                ("unit_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("total_price", models.DecimalField(decimal_places=2, max_digits=12)),
                ("delivery_request", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="items", to="deliveries.deliveryrequest")),
                ("product", models.ForeignKey(on_delete=django.db.models.deletion.PROTECT, related_name="delivery_items", to="inventory.product")),
            ],
        ),
    ]
