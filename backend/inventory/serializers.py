from rest_framework import serializers

from clients.models import ClientProfile

from .models import InventoryLog, Product


class ProductSerializer(serializers.ModelSerializer):
    client_name = serializers.CharField(source="client.business_name", read_only=True)
    is_low_stock = serializers.BooleanField(read_only=True)

    class Meta:
        model = Product
        fields = [
            'id', 'client', 'client_name', 'name', 'sku', 'category', 'description',
            'unit_price', 'cost_price', 'current_stock', 'reorder_level',
            'is_low_stock', 'is_active', 'created_at', 'updated_at',
        ]
        read_only_fields = ['client', 'current_stock', 'created_at', 'updated_at']

    def validate_sku(self, value):
        if not value:
            return None
        client = self.instance.client if self.instance else self.initial_data.get("client")
        qs = Product.objects.filter(client=client, sku=value)
        if self.instance:
            qs = qs.exclude(pk=self.instance.pk)
        if client is not None and qs.exists():
            raise serializers.ValidationError("A product with this SKU already exists for this client.")
        return value


class ProductCreateSerializer(ProductSerializer):
    client = serializers.PrimaryKeyRelatedField(queryset=ClientProfile.objects.all())
    initial_stock = serializers.IntegerField(min_value=0, default=0, write_only=True)

    class Meta(ProductSerializer.Meta):
        fields = ProductSerializer.Meta.fields + ['initial_stock']
        read_only_fields = ['current_stock', 'created_at', 'updated_at']

    def create(self, validated_data):
        validated_data['current_stock'] = validated_data.pop('initial_stock', 0)
        return super().create(validated_data)


class StockUpdateSerializer(serializers.Serializer):
    quantity = serializers.IntegerField()
    type = serializers.ChoiceField(choices=InventoryLog.MANUAL_TYPES)
    reason = serializers.CharField(required=False, allow_blank=True, max_length=255)

    def validate_quantity(self, value):
        if value == 0:
            raise serializers.ValidationError("Quantity must not be zero.")
        return value


class InventoryLogSerializer(serializers.ModelSerializer):
    product_name = serializers.CharField(source="product.name", read_only=True)
    updated_by = serializers.StringRelatedField()

    class Meta:
        model = InventoryLog
        fields = [
            'id', 'product', 'product_name', 'log_type', 'quantity', 'previous_stock',
            'new_stock', 'reason', 'reference', 'updated_by', 'created_at',
        ]
        read_only_fields = fields
