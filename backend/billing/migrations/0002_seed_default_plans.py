from decimal import Decimal

from django.db import migrations

DEFAULT_PLANS = [
    ("BASIC", "Basic Plan", Decimal("50.00"), "Up to 50 products, manual delivery approval."),
    ("STANDARD", "Standard Plan", Decimal("100.00"), "Up to 200 products, 3 auto-approval rules, calendar scheduling."),
    ("PREMIUM", "Premium Plan", Decimal("200.00"), "Unlimited products and auto-approval rules, priority support."),
]


def seed_plans(apps, schema_editor):
    Plan = apps.get_model("billing", "Plan")
    for code, name, amount, description in DEFAULT_PLANS:
        Plan.objects.get_or_create(
            code=code,
            defaults={
                "name": name,
                "amount": amount,
                "currency": "GHS",
                "duration_days": 30,
                "description": description,
                "is_active": True,
            },
        )


def remove_plans(apps, schema_editor):
    Plan = apps.get_model("billing", "Plan")
    Plan.objects.filter(code__in=[code for code, *_ in DEFAULT_PLANS]).delete()


class Migration(migrations.Migration):

    dependencies = [
        ("billing", "0001_initial"),
    ]

    operations = [
        migrations.RunPython(seed_plans, remove_plans),
    ]
