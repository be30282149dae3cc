from django.contrib import admin

from core.admin import ClientSafeAdmin

from .models import AutoApprovalRule


@admin.register(AutoApprovalRule)
class AutoApprovalRuleAdmin(ClientSafeAdmin):
    list_display = ('name', 'client', 'rule_type', 'priority', 'is_active', 'created_at')
    list_filter = ('rule_type', 'is_active')
    search_fields = ('name', 'client__business_name')
    ordering = ('client', 'priority')
