import random
from datetime import time
from decimal import Decimal

from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand
from django.db import transaction

from auto_approval.models import AutoApprovalRule
from billing.utils import activate_subscription, get_plan_code, get_plan_for_code
from clients.models import ClientProfile
from inventory.models import Product
from inventory.services import record_initial_stock

User = get_user_model()

DEMO_PASSWORD = "demo12345"

DEMO_VENDORS = [
    ("Mama Foods", "mamafoods", "STANDARD"),
    ("Kofi Electronics", "kofielectronics", None),
]

DEMO_PRODUCTS = [
    ("Rice 5kg", "Groceries", Decimal("85.00")),
    ("Palm Oil 1L", "Groceries", Decimal("32.50")),
    ("Tomato Paste", "Groceries", Decimal("6.00")),
    ("Phone Charger", "Electronics", Decimal("45.00")),
    ("Power Bank", "Electronics", Decimal("150.00")),
]


class Command(BaseCommand):
    help = "Create a platform admin and demo vendors with stocked products and sample auto-approval rules."

    def add_arguments(self, parser):
        parser.add_argument("--admin-username", default="admin")
        parser.add_argument("--admin-password", default="admin12345")

    @transaction.atomic
    def handle(self, *args, **options):
        self.stdout.write("Seeding demo data...")

        admin, created = User.objects.get_or_create(
            username=options["admin_username"],
            defaults={"email": f"{options['admin_username']}@vendor-crm.local", "role": User.ROLE_SUPER_ADMIN,
                      "is_staff": True, "is_superuser": True},
        )
        if created:
            admin.set_password(options["admin_password"])
            admin.save()
        self.stdout.write(f"✅ Admin: {admin.username}")

        for business_name, username, plan_code in DEMO_VENDORS:
            user, created = User.objects.get_or_create(
                username=username,
                defaults={"email": f"{username}@example.com", "role": User.ROLE_VENDOR},
            )
            if created:
                user.set_password(DEMO_PASSWORD)
                user.save()

            # post_save puts a new profile on a BASIC trial
            client, _ = ClientProfile.objects.get_or_create(
                user=user, defaults={"business_name": business_name, "contact_person": username.title()}
            )
            if plan_code and get_plan_code(client) != plan_code:
                activate_subscription(client, get_plan_for_code(plan_code))

            for name, category, price in DEMO_PRODUCTS:
                product, created = Product.objects.get_or_create(
                    client=client,
                    sku=f"{client.slug[:10].upper()}-{name[:3].upper()}",
                    defaults={
                        "name": name,
                        "category": category,
                        "unit_price": price,
                        "current_stock": random.randint(20, 120),
                        "reorder_level": 10,
                    },
                )
                if created:
                    record_initial_stock(product, user=admin)

            if plan_code and not AutoApprovalRule.objects.filter(client=client).exists():
                AutoApprovalRule.objects.create(
                    client=client,
                    name="Small orders",
                    rule_type=AutoApprovalRule.TYPE_AMOUNT,
                    priority=1,
                    max_amount=Decimal("200.00"),
                )
                AutoApprovalRule.objects.create(
                    client=client,
                    name="Weekday business hours",
                    rule_type=AutoApprovalRule.TYPE_TIME,
                    priority=2,
                    allowed_days=["MON", "TUE", "WED", "THU", "FRI"],
                    start_time=time(8, 0),
                    end_time=time(17, 0),
                )

            self.stdout.write(f"✅ Vendor: {client.business_name} ({plan_code or 'BASIC trial'})")

        self.stdout.write(self.style.SUCCESS(f"Demo data ready. Vendor password: {DEMO_PASSWORD}"))
