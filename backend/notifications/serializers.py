# notifications/serializers.py

from django.contrib.auth import get_user_model
from rest_framework import serializers

from .models import Notification


class NotificationSerializer(serializers.ModelSerializer):
    recipient_email = serializers.EmailField(
        source="recipient.email",
        read_only=True
    )
    is_read = serializers.BooleanField(read_only=True)

    class Meta:
        model = Notification
        fields = (
            "id",
            "client",
            "recipient",
            "recipient_email",
            "title",
            "message",
            "notification_type",
            "channels",
            "status",
            "is_read",
            "metadata",
            "sale",
            "sent_at",
            "created_at",
        )
        read_only_fields = fields


class SendNotificationSerializer(serializers.Serializer):
    """Admin-composed notification for a client's user."""
    user_id = serializers.IntegerField()
    title = serializers.CharField(max_length=255)
    message = serializers.CharField()
    notification_type = serializers.ChoiceField(choices=Notification.NOTIFICATION_TYPES, default="SYSTEM")
    channels = serializers.ListField(
        child=serializers.ChoiceField(choices=Notification.CHANNELS),
        allow_empty=False,
        default=lambda: [Notification.CHANNEL_EMAIL],
    )

    def validate_user_id(self, value):
        User = get_user_model()
        try:
            return User.objects.get(pk=value, is_active=True)
        except User.DoesNotExist:
            raise serializers.ValidationError("User not found.")
