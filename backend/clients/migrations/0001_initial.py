import django.db.models.deletion
from django.conf import settings
from django.db import migrations, models


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="ClientProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("business_name", models.CharField(max_length=200)),
                ("slug", models.SlugField(max_length=120, unique=True)),
                ("business_type", models.CharField(blank=True, max_length=100)),
                ("business_address", models.TextField(blank=True)),
                ("contact_person", models.CharField(blank=True, max_length=150)),
                ("notify_by_email", models.BooleanField(default=True)),
                ("notify_by_whatsapp", models.BooleanField(default=False)),
                ("subscription_status", models.CharField(choices=[("TRIAL", "Trial"), ("ACTIVE", "Active"), ("PENDING", "Pending"), ("EXPIRED", "Expired"), ("CANCELLED", "Cancelled"), ("SUSPENDED", "Suspended")], default="TRIAL", max_length=20)),
                ("subscription_start", models.DateTimeField(blank=True, null=True)),
                ("subscription_end", models.DateTimeField(blank=True, null=True)),
                ("is_active", models.BooleanField(default=True)),
                ("created_at", models.DateTimeField(auto_now_add=True)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="client_profile", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["-created_at"],
            },
        ),
    ]
