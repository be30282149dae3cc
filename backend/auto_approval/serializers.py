from rest_framework import serializers

from inventory.models import Product

from .models import AutoApprovalRule


class AutoApprovalRuleSerializer(serializers.ModelSerializer):
    customer_phones = serializers.ListField(
        child=serializers.CharField(max_length=30), required=False, default=list
    )
    product_ids = serializers.ListField(
        child=serializers.IntegerField(min_value=1), required=False, default=list
    )
    allowed_days = serializers.ListField(
        child=serializers.ChoiceField(choices=AutoApprovalRule.DAY_CHOICES), required=False, default=list
    )
    priority = serializers.IntegerField(min_value=1, default=1)
    start_time = serializers.TimeField(required=False, allow_null=True, input_formats=["%H:%M", "%H:%M:%S"])
    end_time = serializers.TimeField(required=False, allow_null=True, input_formats=["%H:%M", "%H:%M:%S"])

    class Meta:
        model = AutoApprovalRule
        fields = [
            'id', 'name', 'description', 'rule_type', 'priority', 'is_active',
            'customer_phones', 'product_ids', 'min_amount', 'max_amount',
            'allowed_days', 'start_time', 'end_time', 'created_at', 'updated_at',
        ]
        read_only_fields = ['created_at', 'updated_at']

    def _merged(self, attrs):
        """Field values after this write, so partial updates are checked as a whole."""
        merged = {}
        for name in ('rule_type', 'customer_phones', 'product_ids', 'min_amount', 'max_amount',
                     'allowed_days', 'start_time', 'end_time'):
            if name in attrs:
                merged[name] = attrs[name]
            elif self.instance is not None:
                merged[name] = getattr(self.instance, name)
            else:
                merged[name] = None
        return merged

    def validate_customer_phones(self, value):
        return [phone.strip() for phone in value if phone.strip()]

    def validate_product_ids(self, value):
        client = self.context.get('client')
        unique_ids = list(dict.fromkeys(value))
        if client is not None and unique_ids:
            owned = set(
                Product.objects.filter(client=client, pk__in=unique_ids).values_list('pk', flat=True)
            )
            unknown = [pid for pid in unique_ids if pid not in owned]
            if unknown:
                raise serializers.ValidationError(
                    f"Products not found: {', '.join(str(pid) for pid in unknown)}"
                )
        return unique_ids

    def validate_allowed_days(self, value):
        return list(dict.fromkeys(value))

    def validate(self, attrs):
        data = self._merged(attrs)
        rule_type = data['rule_type']
        phones = data['customer_phones'] or []
        products = data['product_ids'] or []
        days = data['allowed_days'] or []
        min_amount, max_amount = data['min_amount'], data['max_amount']
        has_amount = min_amount is not None or max_amount is not None
        has_time = bool(days) and data['start_time'] is not None and data['end_time'] is not None

        if min_amount is not None and max_amount is not None and min_amount > max_amount:
            raise serializers.ValidationError({'min_amount': "minAmount cannot be greater than maxAmount."})

        if rule_type == AutoApprovalRule.TYPE_CUSTOMER and not phones:
            raise serializers.ValidationError(
                {'customer_phones': "Customer whitelist rules require at least one customer phone number"}
            )
        if rule_type == AutoApprovalRule.TYPE_PRODUCT and not products:
            raise serializers.ValidationError(
                {'product_ids': "Product whitelist rules require at least one product ID"}
            )
        if rule_type == AutoApprovalRule.TYPE_AMOUNT and not has_amount:
            raise serializers.ValidationError(
                {'min_amount': "Amount threshold rules require at least minAmount or maxAmount"}
            )
        if rule_type == AutoApprovalRule.TYPE_TIME and not has_time:
            raise serializers.ValidationError(
                {'allowed_days': "Time window rules require allowedDays, startTime, and endTime"}
            )
        if rule_type == AutoApprovalRule.TYPE_COMBINED and not (phones or products or has_amount or has_time):
            raise serializers.ValidationError(
                "Combined rules require at least one condition (customers, products, amount or time window)"
            )
        return attrs


class RuleEvaluationSerializer(serializers.Serializer):
    customer_phone = serializers.CharField(required=False, allow_blank=True, default="")
    product_ids = serializers.ListField(child=serializers.IntegerField(), required=False, default=list)
    total_amount = serializers.DecimalField(max_digits=12, decimal_places=2, min_value=0)
    request_time = serializers.DateTimeField(required=False, allow_null=True)


class EvaluationResultSerializer(serializers.Serializer):
    should_auto_approve = serializers.BooleanField()
    reason = serializers.CharField()
    matched_rule = AutoApprovalRuleSerializer(allow_null=True)
    rules_considered = serializers.IntegerField()
