from django.contrib import admin

from core.admin import ClientSafeAdmin

from .models import Sale, SaleItem

class SaleItemInline(admin.TabularInline):
    model = SaleItem
    readonly_fields = ('product', 'quantity', 'unit_price', 'total_price')
    can_delete = False
    extra = 0

@admin.register(Sale)
class SaleAdmin(ClientSafeAdmin):
    list_display = ('sale_number', 'client', 'total_amount', 'status', 'recorded_by', 'sale_date')
    list_filter = ('status',)
    inlines = [SaleItemInline]
    readonly_fields = ('sale_number', 'total_amount', 'created_at')
    # Sales are immutable in admin once recorded
    def has_change_permission(self, request, obj=None):
        return False
