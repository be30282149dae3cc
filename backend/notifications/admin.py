from django.contrib import admin

from .models import Notification


@admin.register(Notification)
class NotificationAdmin(admin.ModelAdmin):
    list_display = ("title", "recipient", "client", "notification_type", "channel_list", "status", "sent_at", "created_at")
    list_filter = ("notification_type", "status")
    search_fields = ("title", "message", "recipient__email", "client__business_name")
    raw_id_fields = ("recipient", "client", "sale")
    readonly_fields = ("sent_at", "created_at")
    actions = ["mark_as_read"]

    @admin.display(description="Channels")
    def channel_list(self, obj):
        return ", ".join(obj.channels or [])

    @admin.action(description="Mark selected notifications as read")
    def mark_as_read(self, request, queryset):
        updated = queryset.exclude(status=Notification.STATUS_READ).update(status=Notification.STATUS_READ)
        self.message_user(request, f"{updated} notification(s) marked as read.")
