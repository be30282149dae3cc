from django.contrib import admin

from core.admin import ClientSafeAdmin

from .models import Invoice, Receipt


class ReceiptInline(admin.TabularInline):
    model = Receipt
    readonly_fields = ('receipt_number', 'amount_paid', 'payment_method', 'payment_date')
    can_delete = False
    extra = 0


@admin.register(Invoice)
class InvoiceAdmin(ClientSafeAdmin):
    list_display = ('invoice_number', 'client', 'customer_name', 'total_amount', 'status', 'due_date')
    list_filter = ('status',)
    search_fields = ('invoice_number', 'customer_name')
    readonly_fields = ('invoice_number', 'items', 'created_at', 'updated_at')
    inlines = [ReceiptInline]


@admin.register(Receipt)
class ReceiptAdmin(admin.ModelAdmin):
    list_display = ('receipt_number', 'invoice', 'amount_paid', 'payment_method', 'payment_date')
    search_fields = ('receipt_number', 'invoice__invoice_number')
