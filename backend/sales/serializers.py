from rest_framework import serializers

from clients.models import ClientProfile
from inventory.models import Product

from .models import Sale, SaleItem
from .services import record_sale


class SaleItemInputSerializer(serializers.Serializer):
    product = serializers.PrimaryKeyRelatedField(queryset=Product.objects.all())
    quantity = serializers.IntegerField(min_value=1)
    unit_price = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0, required=False)


class SaleItemSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source='product.name', read_only=True)

    class Meta:
        model = SaleItem
        fields = ('id', 'product', 'product_name', 'quantity', 'unit_price', 'total_price')


class SaleCreateSerializer(serializers.Serializer):
    client = serializers.PrimaryKeyRelatedField(queryset=ClientProfile.objects.all())
    customer_name = serializers.CharField(required=False, allow_blank=True)
    customer_phone = serializers.CharField(required=False, allow_blank=True)
    delivery_address = serializers.CharField(required=False, allow_blank=True)
    sale_date = serializers.DateTimeField(required=False)
    delivery_date = serializers.DateTimeField(required=False, allow_null=True)
    notes = serializers.CharField(required=False, allow_blank=True)
    items = SaleItemInputSerializer(many=True)

    def validate_items(self, value):
        if not value:
            raise serializers.ValidationError("A sale must include at least one item.")
        return value

    def validate(self, attrs):
        client = attrs['client']
        for item in attrs['items']:
            product = item['product']
            if product.client_id != client.id:
                raise serializers.ValidationError(
                    {'items': f"Product {product.pk} does not belong to this client."}
                )
            if 'unit_price' not in item:
                if product.unit_price is None:
                    raise serializers.ValidationError(
                        {'items': f"Product {product.pk} has no unit price; supply one."}
                    )
                item['unit_price'] = product.unit_price
        return attrs

    def create(self, validated_data):
        request = self.context.get('request')
        client = validated_data.pop('client')
        items = validated_data.pop('items')
        fields = {k: (v or None) for k, v in validated_data.items()}
        return record_sale(client, items, user=request.user if request else None, **fields)


class SaleReadSerializer(serializers.ModelSerializer):
    items = SaleItemSerializer(many=True, read_only=True)
    recorded_by = serializers.StringRelatedField()
    client_name = serializers.CharField(source='client.business_name', read_only=True)

    class Meta:
        model = Sale
        fields = ('id', 'client', 'client_name', 'sale_number', 'customer_name', 'customer_phone',
                  'delivery_address', 'total_amount', 'status', 'sale_date', 'delivery_date',
                  'notes', 'recorded_by', 'delivery_request', 'created_at', 'items')


class SaleStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Sale.STATUS_CHOICES)
