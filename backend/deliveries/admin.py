from django.contrib import admin

from core.admin import ClientSafeAdmin

from .models import DeliveryRequest, DeliveryRequestItem


class DeliveryRequestItemInline(admin.TabularInline):
    model = DeliveryRequestItem
    readonly_fields = ('product', 'quantity', 'unit_price', 'total_price')
    can_delete = False
    extra = 0


@admin.register(DeliveryRequest)
class DeliveryRequestAdmin(ClientSafeAdmin):
    list_display = ('request_number', 'client', 'customer_name', 'total_amount', 'status',
                    'auto_approved', 'created_at')
    list_filter = ('status', 'payment_method', 'auto_approved')
    search_fields = ('request_number', 'customer_name', 'customer_phone')
    readonly_fields = ('request_number', 'total_amount', 'auto_approved', 'approved_by_rule',
                       'created_at', 'updated_at')
    inlines = [DeliveryRequestItemInline]
