from rest_framework import serializers

from .constants import PLAN_CHOICES
from .models import Payment, Plan, Subscription


class PlanSerializer(serializers.ModelSerializer):
    class Meta:
        model = Plan
        fields = ['id', 'code', 'name', 'amount', 'currency', 'duration_days', 'description', 'is_active']


class SubscriptionSerializer(serializers.ModelSerializer):
    plan = PlanSerializer(read_only=True)
    client = serializers.PrimaryKeyRelatedField(read_only=True)
    client_name = serializers.CharField(source="client.business_name", read_only=True)
    days_remaining = serializers.IntegerField(read_only=True)

    class Meta:
        model = Subscription
        fields = [
            'id', 'client', 'client_name', 'plan', 'status', 'amount', 'currency',
            'start_date', 'end_date', 'last_payment_date', 'next_payment_date',
            'auto_renew', 'paystack_reference', 'days_remaining', 'created_at',
        ]
        read_only_fields = fields


class SubscribeSerializer(serializers.Serializer):
    """Vendor request to pay for a plan through Paystack."""
    plan = serializers.SlugRelatedField(slug_field="code", queryset=Plan.objects.filter(is_active=True))
    email = serializers.EmailField(required=False)


class AdminSubscriptionSerializer(serializers.Serializer):
    client_id = serializers.IntegerField()
    plan = serializers.ChoiceField(choices=PLAN_CHOICES)
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, required=False)
    duration_days = serializers.IntegerField(min_value=1, default=30)


class PaymentSerializer(serializers.ModelSerializer):
    class Meta:
        model = Payment
        fields = [
            'id', 'client', 'subscription', 'reference', 'amount', 'currency',
            'payment_method', 'status', 'payment_date', 'metadata', 'created_at',
        ]
        read_only_fields = fields


class RecordPaymentSerializer(serializers.Serializer):
    subscription_id = serializers.IntegerField()
    amount = serializers.DecimalField(max_digits=10, decimal_places=2, min_value=0)
    payment_method = serializers.CharField(max_length=30)
    reference = serializers.CharField(max_length=255, required=False, allow_blank=True)

    def validate_reference(self, value):
        if value and Payment.objects.filter(reference=value).exists():
            raise serializers.ValidationError("A payment with this reference already exists.")
        return value
