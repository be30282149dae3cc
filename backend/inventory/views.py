# inventory/views.py
from decimal import Decimal

from django.db.models import F
from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import filters, permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from billing.utils import check_plan_limit
from clients.models import ClientProfile
from core.mixins import ClientScopedViewSet
from users.permissions import IsAdminOrVendor, IsPlatformAdmin

from .models import InventoryLog, Product
from .serializers import (
    InventoryLogSerializer,
    ProductCreateSerializer,
    ProductSerializer,
    StockUpdateSerializer,
)
from .services import adjust_stock, record_initial_stock


def _limit_param(request, default):
    try:
        return min(max(int(request.query_params.get("limit", default)), 1), 500)
    except ValueError:
        return default


# ============================================================
# PRODUCT VIEWSET
# ============================================================
class ProductViewSet(ClientScopedViewSet):
    """
    - Platform admins: full CRUD and stock updates for any client
    - Vendors: read-only access to their own catalogue
    - Product creation is capped by the client's plan (max_products)
    """
    queryset = Product.objects.select_related("client")
    serializer_class = ProductSerializer
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["name", "sku", "category"]
    ordering_fields = ["name", "current_stock", "created_at"]

    READ_ACTIONS = ("list", "retrieve", "low_stock", "summary", "logs")

    def get_permissions(self):
        if self.action in self.READ_ACTIONS:
            return [permissions.IsAuthenticated(), IsAdminOrVendor()]
        return [permissions.IsAuthenticated(), IsPlatformAdmin()]

    def get_queryset(self):
        queryset = super().get_queryset()
        params = self.request.query_params
        if params.get("client") and self.request.user.is_admin:
            queryset = queryset.filter(client_id=params["client"])
        if params.get("is_active") in ("true", "false"):
            queryset = queryset.filter(is_active=params["is_active"] == "true")
        return queryset

    def get_serializer_class(self):
        if self.action == "create":
            return ProductCreateSerializer
        return ProductSerializer

    def perform_create(self, serializer):
        client = serializer.validated_data["client"]
        check_plan_limit(client, "max_products", Product.objects.filter(client=client).count())
        product = serializer.save()
        record_initial_stock(product, user=self.request.user)

    def perform_destroy(self, instance):
        # Products referenced by deliveries and sales are deactivated, not removed
        instance.is_active = False
        instance.save(update_fields=["is_active", "updated_at"])

    @extend_schema(request=StockUpdateSerializer, responses=ProductSerializer)
    @action(detail=True, methods=["post"])
    def update_stock(self, request, pk=None):
        product = self.get_object()
        serializer = StockUpdateSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        product, _ = adjust_stock(
            product.pk,
            data["quantity"],
            data["type"],
            user=request.user,
            reason=data.get("reason", ""),
        )
        return Response(ProductSerializer(product).data, status=status.HTTP_200_OK)

    @action(detail=False, methods=["get"])
    def low_stock(self, request):
        queryset = self.get_queryset().filter(
            is_active=True,
            reorder_level__isnull=False,
            current_stock__lte=F("reorder_level"),
        ).order_by("current_stock")
        return Response(ProductSerializer(queryset, many=True).data)

    @action(detail=False, methods=["get"])
    def summary(self, request):
        products = list(self.get_queryset().filter(is_active=True))
        low = [p for p in products if p.is_low_stock]
        out = [p for p in products if p.current_stock == 0]
        total_value = sum(
            (p.current_stock * (p.unit_price or Decimal("0")) for p in products), Decimal("0")
        )
        return Response({
            "total_products": len(products),
            "total_stock": sum(p.current_stock for p in products),
            "total_value": total_value,
            "low_stock_count": len(low),
            "out_of_stock_count": len(out),
            "low_stock_products": ProductSerializer(low, many=True).data,
            "out_of_stock_products": ProductSerializer(out, many=True).data,
        })

    @action(detail=True, methods=["get"])
    def logs(self, request, pk=None):
        product = self.get_object()
        logs = product.inventory_logs.select_related("updated_by")[:_limit_param(request, 50)]
        return Response(InventoryLogSerializer(logs, many=True).data)


# ============================================================
# INVENTORY LOG VIEWSET
# ============================================================
class InventoryLogViewSet(viewsets.ReadOnlyModelViewSet):
    """Stock movements, newest first. Vendors only see their own products' logs."""
    serializer_class = InventoryLogSerializer
    permission_classes = [permissions.IsAuthenticated, IsAdminOrVendor]

    def get_queryset(self):
        user = self.request.user
        queryset = InventoryLog.objects.select_related("product", "updated_by")
        if not user.is_admin:
            queryset = queryset.filter(product__client=user.client_profile)
        elif self.request.query_params.get("client"):
            client = get_object_or_404(ClientProfile, pk=self.request.query_params["client"])
            queryset = queryset.filter(product__client=client)

        product_id = self.request.query_params.get("product")
        if product_id:
            queryset = queryset.filter(product_id=product_id)
        log_type = self.request.query_params.get("type")
        if log_type:
            queryset = queryset.filter(log_type=log_type)
        return queryset
