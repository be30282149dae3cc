"""
Test utilities and factories for creating test data
"""
import random
import string
from decimal import Decimal

from django.contrib.auth import get_user_model
from rest_framework.test import APIClient
from rest_framework_simplejwt.tokens import RefreshToken

from auto_approval.models import AutoApprovalRule
from billing.utils import activate_subscription, get_plan_for_code
from clients.models import ClientProfile
from deliveries.models import DeliveryRequest, DeliveryRequestItem
from inventory.models import Product

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=8):
        return ''.join(random.choices(string.ascii_lowercase + string.digits, k=length))

    @staticmethod
    def create_user(username=None, email=None, password='testpass123', role=User.ROLE_VENDOR, **extra):
        if not username:
            username = f'user_{TestDataFactory.random_string(6)}'
        if not email:
            email = f'{username}@test.com'
        return User.objects.create_user(
            username=username,
            email=email,
            password=password,
            role=role,
            **extra,
        )

    @staticmethod
    def create_admin(**kwargs):
        kwargs.setdefault('role', User.ROLE_ADMIN)
        return TestDataFactory.create_user(**kwargs)

    @staticmethod
    def create_client(business_name=None, user=None, plan=None, **extra):
        """
        Create a vendor and its client profile. New profiles start on a BASIC
        trial; pass `plan` to move the client onto an active paid plan.
        """
        if user is None:
            user = TestDataFactory.create_user()
        if not business_name:
            business_name = f'Shop {TestDataFactory.random_string(6)}'
        client = ClientProfile.objects.create(user=user, business_name=business_name, **extra)
        if plan:
            TestDataFactory.set_plan(client, plan)
        return client

    @staticmethod
    def set_plan(client, plan_code):
        return activate_subscription(client, get_plan_for_code(plan_code))

    @staticmethod
    def create_product(client, name=None, stock=10, unit_price=Decimal('25.00'), **extra):
        if not name:
            name = f'Product {TestDataFactory.random_string(6)}'
        return Product.objects.create(
            client=client,
            name=name,
            current_stock=stock,
            unit_price=unit_price,
            **extra,
        )

    @staticmethod
    def create_rule(client, rule_type=AutoApprovalRule.TYPE_AMOUNT, name=None, priority=1, **conditions):
        if not name:
            name = f'Rule {TestDataFactory.random_string(4)}'
        return AutoApprovalRule.objects.create(
            client=client,
            name=name,
            rule_type=rule_type,
            priority=priority,
            **conditions,
        )

    @staticmethod
    def create_delivery_request(client, items, status=DeliveryRequest.STATUS_PENDING_APPROVAL, **extra):
        """
        Insert a delivery request directly, bypassing auto-approval.
        `items` is a list of (product, quantity).
        """
        fields = {
            'customer_name': 'Ama Mensah',
            'customer_phone': '0241234567',
            'delivery_address': '12 Ring Road, Accra',
            'payment_method': DeliveryRequest.PAYMENT_ON_DELIVERY,
        }
        fields.update(extra)
        total = sum(((p.unit_price or 0) * qty for p, qty in items), Decimal('0.00'))
        delivery = DeliveryRequest.objects.create(
            client=client,
            request_number=f'DR-TEST-{TestDataFactory.random_string(8).upper()}',
            total_amount=total,
            status=status,
            **fields,
        )
        for product, quantity in items:
            DeliveryRequestItem.objects.create(
                delivery_request=delivery,
                product=product,
                quantity=quantity,
                unit_price=product.unit_price or 0,
            )
        return delivery


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        refresh = RefreshToken.for_user(user)
        self.credentials(HTTP_AUTHORIZATION=f'Bearer {refresh.access_token}')
        return self

    def logout(self):
        self.credentials()
