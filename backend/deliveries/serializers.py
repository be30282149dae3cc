from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import DeliveryRequest, DeliveryRequestItem
from .services import create_delivery_request


class DeliveryItemInputSerializer(serializers.Serializer):
    product = serializers.IntegerField(min_value=1)
    quantity = serializers.IntegerField(min_value=1, error_messages={'min_value': "Quantity must be at least 1"})


class DeliveryRequestItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)
    product_sku = serializers.CharField(source='product.sku', read_only=True)

    class Meta:
        model = DeliveryRequestItem
        fields = ('id', 'product', 'product_name', 'product_sku', 'quantity', 'unit_price', 'total_price')


class DeliveryRequestCreateSerializer(serializers.Serializer):
    customer_name = serializers.CharField(max_length=255)
    customer_phone = serializers.CharField(max_length=30)
    customer_email = serializers.EmailField(required=False, allow_null=True, allow_blank=True)
    delivery_address = serializers.CharField()
    payment_method = serializers.ChoiceField(choices=DeliveryRequest.PAYMENT_METHOD_CHOICES)
    scheduled_date = serializers.DateTimeField(required=False, allow_null=True)
    preferred_time = serializers.ChoiceField(
        choices=DeliveryRequest.PREFERRED_TIME_CHOICES, required=False, allow_null=True
    )
    special_instructions = serializers.CharField(required=False, allow_blank=True, allow_null=True)
    items = DeliveryItemInputSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("At least one item is required")
        return value

    def create(self, validated_data):
        items = validated_data.pop('items')
        fields = {k: (v or None) for k, v in validated_data.items()}
        return create_delivery_request(
            self.context['client'],
            self.context['request'].user,
            items,
            **fields,
        )


class DeliveryRequestSerializer(serializers.ModelSerializer):
    items = DeliveryRequestItemSerializer(many=True, read_only=True)
    client_name = serializers.CharField(source='client.business_name', read_only=True)
    reviewed_by = serializers.StringRelatedField()
    assigned_to_name = serializers.StringRelatedField(source='assigned_to')
    approved_by_rule_name = serializers.CharField(source='approved_by_rule.name', read_only=True, default=None)

    class Meta:
        model = DeliveryRequest
        fields = (
            'id', 'client', 'client_name', 'request_number', 'customer_name', 'customer_phone',
            'customer_email', 'delivery_address', 'payment_method', 'payment_status',
            'scheduled_date', 'preferred_time', 'special_instructions', 'total_amount', 'status',
            'reviewed_by', 'reviewed_at', 'approved_at', 'rejection_reason', 'assigned_to',
            'assigned_to_name', 'dispatched_at', 'delivered_at', 'delivery_proof',
            'customer_signature', 'auto_approved', 'approved_by_rule', 'approved_by_rule_name',
            'created_at', 'updated_at', 'items',
        )
        read_only_fields = fields


class ApproveSerializer(serializers.Serializer):
    scheduled_date = serializers.DateTimeField(required=False, allow_null=True)
    assigned_to = serializers.PrimaryKeyRelatedField(
        queryset=get_user_model().objects.filter(is_active=True), required=False, allow_null=True
    )


class RejectSerializer(serializers.Serializer):
    reason = serializers.CharField(
        allow_blank=False,
        error_messages={'blank': "Rejection reason is required", 'required': "Rejection reason is required"},
    )


class DeliveryStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=DeliveryRequest.FULFILMENT_STATUSES)
    delivery_proof = serializers.CharField(required=False, allow_blank=True)
    customer_signature = serializers.CharField(required=False, allow_blank=True)
