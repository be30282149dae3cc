from django.contrib import admin

from .models import ClientProfile


@admin.register(ClientProfile)
class ClientProfileAdmin(admin.ModelAdmin):
    list_display = ("business_name", "user", "subscription_status", "subscription_end", "is_active")
    list_filter = ("subscription_status", "is_active")
    search_fields = ("business_name", "contact_person", "user__email")
    prepopulated_fields = {"slug": ("business_name",)}
