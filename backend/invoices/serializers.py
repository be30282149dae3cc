from rest_framework import serializers

from deliveries.models import DeliveryRequest

from .models import Invoice, Receipt


class ReceiptSerializer(serializers.ModelSerializer):
    invoice_number = serializers.CharField(source='invoice.invoice_number', read_only=True)

    class Meta:
        model = Receipt
        fields = ('id', 'invoice', 'invoice_number', 'receipt_number', 'amount_paid',
                  'payment_method', 'payment_date', 'notes', 'created_at')
        read_only_fields = fields


class InvoiceSerializer(serializers.ModelSerializer):
    request_number = serializers.CharField(source='delivery_request.request_number', read_only=True)
    client_name = serializers.CharField(source='client.business_name', read_only=True)
    receipts = ReceiptSerializer(many=True, read_only=True)

    class Meta:
        model = Invoice
        fields = ('id', 'client', 'client_name', 'delivery_request', 'request_number', 'invoice_number',
                  'customer_name', 'customer_email', 'customer_phone', 'customer_address', 'items',
                  'subtotal', 'tax', 'discount', 'total_amount', 'status', 'due_date', 'paid_at',
                  'notes', 'created_at', 'updated_at', 'receipts')
        read_only_fields = fields


class GenerateInvoiceSerializer(serializers.Serializer):
    delivery_request = serializers.IntegerField(min_value=1)


class InvoiceStatusSerializer(serializers.Serializer):
    status = serializers.ChoiceField(choices=Invoice.STATUS_CHOICES)


class GenerateReceiptSerializer(serializers.Serializer):
    payment_method = serializers.ChoiceField(choices=DeliveryRequest.PAYMENT_METHOD_CHOICES)
    amount_paid = serializers.DecimalField(max_digits=12, decimal_places=2)
    transaction_reference = serializers.CharField(required=False, allow_blank=True)

    def validate_amount_paid(self, value):
        if value <= 0:
            raise serializers.ValidationError("Amount paid must be greater than zero.")
        return value
