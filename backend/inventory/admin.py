from django.contrib import admin

from core.admin import ClientSafeAdmin

from .models import InventoryLog, Product


@admin.register(Product)
class ProductAdmin(ClientSafeAdmin):
    list_display = ('name', 'client', 'sku', 'unit_price', 'current_stock', 'reorder_level', 'is_active')
    list_filter = ('is_active', 'client')
    search_fields = ('name', 'sku')


@admin.register(InventoryLog)
class InventoryLogAdmin(admin.ModelAdmin):
    list_display = ('product', 'log_type', 'quantity', 'previous_stock', 'new_stock', 'created_at')
    list_filter = ('log_type',)
    readonly_fields = ('product', 'log_type', 'quantity', 'previous_stock', 'new_stock', 'updated_by')
