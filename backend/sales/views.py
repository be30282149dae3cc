from django.utils import timezone
from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.permissions import IsAdminOrVendor, IsPlatformAdmin

from .models import Sale
from .serializers import SaleCreateSerializer, SaleReadSerializer, SaleStatusSerializer


class SaleViewSet(mixins.CreateModelMixin,
                  mixins.ListModelMixin,
                  mixins.RetrieveModelMixin,
                  viewsets.GenericViewSet):
    """
    Handles sales recording (by platform admins) and viewing.
    Vendors only see their own client's sales.
    """

    queryset = (
        Sale.objects.all()
        .select_related("recorded_by", "client")
        .prefetch_related("items__product")
    )

    def get_permissions(self):
        if self.action in ("create", "update_status"):
            permission_classes = [IsAuthenticated, IsPlatformAdmin]
        else:
            permission_classes = [IsAuthenticated, IsAdminOrVendor]
        return [perm() for perm in permission_classes]

    def get_queryset(self):
        queryset = super().get_queryset().for_user(self.request.user)
        params = self.request.query_params
        if params.get("client") and self.request.user.is_admin:
            queryset = queryset.filter(client_id=params["client"])
        if params.get("status"):
            queryset = queryset.filter(status=params["status"])
        return queryset

    def get_serializer_class(self):
        return SaleCreateSerializer if self.action == "create" else SaleReadSerializer

    def create(self, request, *args, **kwargs):
        serializer = SaleCreateSerializer(
            data=request.data,
            context={"request": request},
        )
        serializer.is_valid(raise_exception=True)
        sale = serializer.save()

        read_serializer = SaleReadSerializer(
            sale,
            context={"request": request},
        )
        return Response(
            read_serializer.data,
            status=status.HTTP_201_CREATED,
        )

    @extend_schema(request=SaleStatusSerializer, responses=SaleReadSerializer)
    @action(detail=True, methods=["post"])
    def update_status(self, request, pk=None):
        sale = self.get_object()
        serializer = SaleStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        sale.status = serializer.validated_data["status"]
        update_fields = ["status"]
        if sale.status == Sale.STATUS_DELIVERED and not sale.delivery_date:
            sale.delivery_date = timezone.now()
            update_fields.append("delivery_date")
        sale.save(update_fields=update_fields)
        return Response(SaleReadSerializer(sale).data)
