import django.core.validators
import django.db.models.deletion
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        ("clients", "0001_initial"),
    ]

    operations = [
        migrations.CreateModel(
            name="AutoApprovalRule",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("name", models.CharField(max_length=150)),
                ("description", models.TextField(blank=True)),
                ("rule_type", models.CharField(choices=[("CUSTOMER", "Customer whitelist"), ("PRODUCT", "Product whitelist"), ("AMOUNT", "Amount threshold"), ("TIME", "Time window"), ("COMBINED", "Combined")], max_length=20)),
                ("priority", models.PositiveIntegerField(default=1, validators=[django.core.validators.MinValueValidator(1)])),
                ("is_active", models.BooleanField(default=True)),
                ("customer_phones", models.JSONField(blank=True, default=list)),
                ("product_ids", models.JSONField(blank=True, default=list)),
                ("min_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("max_amount", models.DecimalField(blank=True, decimal_places=2, max_digits=12, null=True)),
                ("allowed_days", models.JSONField(blank=True, default=list)),
                ("start_time", models.TimeField(blank=True, null=True)),
                ("end_time", models.TimeField(blank=True, null=True)),
                ("client", models.ForeignKey(on_delete=django.db.models.deletion.CASCADE, related_name="autoapprovalrules", to="clients.clientprofile")),
            ],
            options={
                "ordering": ["priority", "-created_at"],
                "indexes": [models.Index(fields=["client", "is_active", "priority"], name="auto_rule_client_active_idx")],
            },
        ),
    ]
