import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("clients", "0001_initial"),
        ("sales", "0001_initial"),
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="Notification",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("title", models.CharField(max_length=255)),
                ("message", models.TextField()),
                ("notification_type", models.CharField(choices=[("DELIVERY_REQUEST", "Delivery request"), ("DELIVERY_APPROVED", "Delivery approved"), ("DELIVERY_REJECTED", "Delivery rejected"), ("DELIVERY_STATUS", "Delivery status"), ("SALE_RECORDED", "Sale recorded"), ("LOW_STOCK", "Low stock"), ("INVOICE", "Invoice"), ("PAYMENT_RECEIVED", "Payment received"), ("PAYMENT_FAILED", "Payment failed"), ("SUBSCRIPTION_EXPIRING", "Subscription expiring"), ("SUBSCRIPTION_EXPIRED", "Subscription expired"), ("SUBSCRIPTION_CANCELLED", "Subscription cancelled"), ("SYSTEM", "System")], default="SYSTEM", max_length=30)),
                ("channels", models.JSONField(blank=True, default=list)),
                ("status", models.CharField(choices=[("PENDING", "Pending"), ("SENT", "Sent"), ("FAILED", "Failed"), ("READ", "Read")], default="PENDING", max_length=10)),
                ("metadata", models.JSONField(blank=True, null=True)),
                ("sent_at", models.DateTimeField(blank=True, null=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("client", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.CASCADE, related_name="notifications", to="clients.clientprofile")),
                ("recipient", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="notifications", to=settings.AUTH_USER_MODEL)),
                ("sale", models.ForeignKey(blank=True, null=True, on_delete=django.db.models.deletion.SET_NULL, related_name="notifications", to="sales.sale")),
            ],
            options={
                "ordering": ("-created_at",),
            },
        ),
    ]
