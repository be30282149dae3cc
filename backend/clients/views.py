import logging
from datetime import timedelta

from django.contrib.auth import get_user_model
from django.db.models import Count, Sum
from django.utils import timezone
from drf_spectacular.utils import extend_schema
from rest_framework import filters, status, viewsets
from rest_framework.decorators import action
from rest_framework.exceptions import PermissionDenied
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.permissions import IsAdminOrVendor, IsPlatformAdmin, IsVendor

from .models import ClientProfile
from .serializers import (
    BulkClientDeleteSerializer,
    BulkClientStatusSerializer,
    ClientCreateSerializer,
    ClientProfileSerializer,
    ClientStatusSerializer,
    VendorProfileSerializer,
)

logger = logging.getLogger(__name__)
User = get_user_model()


class ClientViewSet(viewsets.ModelViewSet):
    """
    Admin management of vendor businesses.
    Vendors only reach /me/ and their own /stats/.
    """
    queryset = ClientProfile.objects.select_related("user")
    serializer_class = ClientProfileSerializer
    permission_classes = [IsAuthenticated, IsPlatformAdmin]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["business_name", "contact_person", "user__email", "user__phone", "user__first_name"]
    ordering_fields = ["created_at", "business_name", "subscription_end"]
    ordering = ["-created_at"]

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        if params.get("status"):
            queryset = queryset.filter(subscription_status=params["status"])
        if params.get("business_type"):
            queryset = queryset.filter(business_type__icontains=params["business_type"])
        return queryset

    def get_serializer_class(self):
        if self.action == "create":
            return ClientCreateSerializer
        return ClientProfileSerializer

    def perform_create(self, serializer):
        client = serializer.save()
        logger.info(f"Client '{client.business_name}' created by {self.request.user.username}")

    def perform_destroy(self, instance):
        # Deleting the user cascades to the profile and everything it owns
        logger.info(f"Client '{instance.business_name}' deleted by {self.request.user.username}")
        instance.user.delete()

    # -----------------------------
    # Vendor self-service
    # -----------------------------
    @extend_schema(request=VendorProfileSerializer, responses=VendorProfileSerializer)
    @action(detail=False, methods=["get", "patch"], permission_classes=[IsAuthenticated, IsVendor])
    def me(self, request):
        client = request.user.client_profile
        if request.method == "PATCH":
            serializer = VendorProfileSerializer(client, data=request.data, partial=True)
            serializer.is_valid(raise_exception=True)
            serializer.save()
            return Response(serializer.data)
        return Response(VendorProfileSerializer(client).data)

    @action(detail=True, methods=["get"], permission_classes=[IsAuthenticated, IsAdminOrVendor])
    def stats(self, request, pk=None):
        if request.user.is_admin:
            client = self.get_object()
        else:
            client = request.user.client_profile
            if str(client.pk) != str(pk):
                raise PermissionDenied("You can only view your own statistics.")

        from inventory.models import Product
        from sales.models import Sale

        since = timezone.now() - timedelta(days=30)
        recent = Sale.objects.filter(client=client, sale_date__gte=since).aggregate(
            count=Count("id"), revenue=Sum("total_amount")
        )
        return Response({
            "total_products": Product.objects.filter(client=client).count(),
            "active_products": Product.objects.filter(client=client, is_active=True).count(),
            "total_sales": Sale.objects.filter(client=client).count(),
            "recent_sales_count": recent["count"] or 0,
            "recent_sales_revenue": recent["revenue"] or 0,
        })

    # -----------------------------
    # Admin status management
    # -----------------------------
    @extend_schema(request=ClientStatusSerializer)
    @action(detail=True, methods=["post"])
    def toggle_status(self, request, pk=None):
        client = self.get_object()
        serializer = ClientStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        client.subscription_status = serializer.validated_data["status"]
        client.save(update_fields=["subscription_status", "updated_at"])
        return Response(ClientProfileSerializer(client).data)

    @extend_schema(request=BulkClientStatusSerializer)
    @action(detail=False, methods=["post"])
    def bulk_update_status(self, request):
        serializer = BulkClientStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        updated = ClientProfile.objects.filter(
            id__in=serializer.validated_data["ids"]
        ).update(subscription_status=serializer.validated_data["status"], updated_at=timezone.now())
        return Response({"updated": updated})

    @extend_schema(request=BulkClientDeleteSerializer)
    @action(detail=False, methods=["post"])
    def bulk_delete(self, request):
        serializer = BulkClientDeleteSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        user_ids = list(
            ClientProfile.objects.filter(id__in=serializer.validated_data["ids"]).values_list("user_id", flat=True)
        )
        User.objects.filter(id__in=user_ids).delete()
        deleted = len(user_ids)
        return Response({"deleted": deleted}, status=status.HTTP_200_OK)
