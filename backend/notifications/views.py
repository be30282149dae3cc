# notifications/views.py

from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.permissions import IsPlatformAdmin

from .models import Notification
from .serializers import NotificationSerializer, SendNotificationSerializer
from .utils import notify_user


class NotificationViewSet(mixins.ListModelMixin,
                          mixins.RetrieveModelMixin,
                          viewsets.GenericViewSet):
    """
    Notifications are system-generated.
    Users can only read them and mark them as read; admins can also send one.
    """

    serializer_class = NotificationSerializer
    permission_classes = [IsAuthenticated]

    def get_queryset(self):
        queryset = Notification.objects.filter(recipient=self.request.user)
        if self.request.query_params.get("unread_only") in ("1", "true", "True"):
            queryset = queryset.exclude(status=Notification.STATUS_READ)
        return queryset

    @action(detail=False, methods=["get"])
    def mine(self, request):
        """
        Newest notifications for the current user, capped by `limit` (default 50).
        """
        try:
            limit = min(max(int(request.query_params.get("limit", 50)), 1), 100)
        except ValueError:
            limit = 50
        queryset = self.get_queryset()[:limit]
        return Response(self.get_serializer(queryset, many=True).data)

    @action(detail=True, methods=["post"])
    def mark_read(self, request, pk=None):
        """
        Mark a single notification as read
        """
        notification = self.get_object()
        notification.status = Notification.STATUS_READ
        notification.save(update_fields=["status"])

        return Response(
            {"detail": "Notification marked as read."},
            status=status.HTTP_200_OK,
        )

    @action(detail=False, methods=["post"])
    def mark_all_read(self, request):
        """
        Mark all unread notifications as read for the current user
        """
        updated = Notification.objects.filter(
            recipient=request.user,
        ).exclude(status=Notification.STATUS_READ).update(status=Notification.STATUS_READ)

        return Response(
            {
                "detail": f"{updated} notifications marked as read."
            },
            status=status.HTTP_200_OK,
        )

    @action(detail=False, methods=["get"])
    def unread_count(self, request):
        count = Notification.objects.filter(recipient=request.user).exclude(
            status=Notification.STATUS_READ
        ).count()
        return Response({"count": count})

    @extend_schema(request=SendNotificationSerializer, responses=NotificationSerializer)
    @action(detail=False, methods=["post"], permission_classes=[IsAuthenticated, IsPlatformAdmin])
    def send(self, request):
        serializer = SendNotificationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        user = data["user_id"]

        notification = notify_user(
            user,
            title=data["title"],
            message=data["message"],
            notification_type=data["notification_type"],
            client=getattr(user, "client_profile", None),
            channels=data["channels"],
            metadata={"sent_by": request.user.id},
        )
        return Response(NotificationSerializer(notification).data, status=status.HTTP_201_CREATED)
