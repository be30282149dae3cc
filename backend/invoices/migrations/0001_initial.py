import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("clients", "0001_initial"),
        ("deliveries", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="Invoice",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("invoice_number", models.CharField(db_index=True, max_length=40, unique=True)),
                ("customer_name", models.CharField(max_length=255)),
                ("customer_email", models.EmailField(blank=True, max_length=254, null=True)),
                ("customer_phone", models.CharField(blank=True, max_length=30)),
                ("customer_address", models.TextField(blank=True)),
                ("items", models.JSONField(default=list)),
                ("subtotal", models.DecimalField(decimal_places=2, max_digits=12)),
                ("tax", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("discount", models.DecimalField(decimal_places=2, default=0, max_digits=12)),
                ("total_amount", models.DecimalField(decimal_places=2, max_digits=12)),
                ("status", models.CharField(choices=[("DRAFT", "Draft"), ("SENT", "Sent"), ("PAID", "Paid"), ("OVERDUE", "Overdue"), ("CANCELLED", "Cancelled")], default="DRAFT", max_length=20)),
                ("due_date", models.DateTimeField()),
                ("paid_at", models.DateTimeField(blank=True, null=True)),
                ("notes", models.TextField(blank=True)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="invoices", to="clients.clientprofile")),
                ("delivery_request", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="invoice", to="deliveries.deliveryrequest")),
            ],
            options={
                "ordering": ["-created_at", "-id"],
            },
        ),
        migrations.CreateModel(
            name="Receipt",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("receipt_number", models.CharField(db_index=True, max_length=40, unique=True)),
                ("amount_paid", models.DecimalField(decimal_places=2, max_digits=12)),
                ("payment_method", models.CharField(max_length=30)),
                ("payment_date", models.DateTimeField()),
                ("notes", models.TextField(blank=True)),
                ("invoice", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="receipts", to="invoices.invoice")),
            ],
            options={
                "ordering": ["-payment_date", "-id"],
            },
        ),
    ]
