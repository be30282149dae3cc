from drf_spectacular.utils import extend_schema
from rest_framework import mixins, status, viewsets
from rest_framework.decorators import action
from rest_framework.permissions import IsAuthenticated
from rest_framework.response import Response

from users.permissions import IsAdminOrVendor, IsPlatformAdmin, IsVendor

from .models import DeliveryRequest
from .serializers import (
    ApproveSerializer,
    DeliveryRequestCreateSerializer,
    DeliveryRequestSerializer,
    DeliveryStatusSerializer,
    RejectSerializer,
)
from .services import (
    approve_delivery_request,
    cancel_delivery_request,
    reject_delivery_request,
    update_delivery_status,
)


class DeliveryRequestViewSet(mixins.CreateModelMixin,
                             mixins.ListModelMixin,
                             mixins.RetrieveModelMixin,
                             viewsets.GenericViewSet):
    """
    Vendors submit, list and cancel their own delivery requests.
    Platform admins see every request and review and fulfil them.
    """
    queryset = (
        DeliveryRequest.objects.all()
        .select_related("client", "reviewed_by", "assigned_to", "approved_by_rule")
        .prefetch_related("items__product")
    )
    serializer_class = DeliveryRequestSerializer

    VENDOR_ACTIONS = ("create", "cancel")
    ADMIN_ACTIONS = ("approve", "reject", "update_status")

    def get_permissions(self):
        if self.action in self.VENDOR_ACTIONS:
            permission_classes = [IsAuthenticated, IsVendor]
        elif self.action in self.ADMIN_ACTIONS:
            permission_classes = [IsAuthenticated, IsPlatformAdmin]
        else:
            permission_classes = [IsAuthenticated, IsAdminOrVendor]
        return [perm() for perm in permission_classes]

    def get_queryset(self):
        user = self.request.user
        queryset = super().get_queryset()
        if self.action in self.VENDOR_ACTIONS:
            # vendors act on their own requests only, admins included
            queryset = queryset.filter(client=getattr(user, "client_profile", None))
        else:
            queryset = queryset.for_user(user)

        params = self.request.query_params
        if params.get("status"):
            queryset = queryset.filter(status=params["status"])
        if params.get("client") and user.is_admin:
            queryset = queryset.filter(client_id=params["client"])
        return queryset

    def get_serializer_class(self):
        return DeliveryRequestCreateSerializer if self.action == "create" else DeliveryRequestSerializer

    @extend_schema(request=DeliveryRequestCreateSerializer, responses=DeliveryRequestSerializer)
    def create(self, request, *args, **kwargs):
        serializer = DeliveryRequestCreateSerializer(
            data=request.data,
            context={"request": request, "client": request.user.client_profile},
        )
        serializer.is_valid(raise_exception=True)
        delivery = serializer.save()
        return Response(DeliveryRequestSerializer(delivery).data, status=status.HTTP_201_CREATED)

    @extend_schema(request=None, responses=DeliveryRequestSerializer)
    @action(detail=True, methods=["post"])
    def cancel(self, request, pk=None):
        delivery = cancel_delivery_request(self.get_object())
        return Response(DeliveryRequestSerializer(delivery).data)

    @extend_schema(request=ApproveSerializer, responses=DeliveryRequestSerializer)
    @action(detail=True, methods=["post"])
    def approve(self, request, pk=None):
        delivery = self.get_object()
        serializer = ApproveSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        delivery = approve_delivery_request(
            delivery,
            request.user,
            scheduled_date=serializer.validated_data.get("scheduled_date"),
            assigned_to=serializer.validated_data.get("assigned_to"),
        )
        return Response(DeliveryRequestSerializer(delivery).data)

    @extend_schema(request=RejectSerializer, responses=DeliveryRequestSerializer)
    @action(detail=True, methods=["post"])
    def reject(self, request, pk=None):
        delivery = self.get_object()
        serializer = RejectSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        delivery = reject_delivery_request(delivery, request.user, serializer.validated_data["reason"])
        return Response(DeliveryRequestSerializer(delivery).data)

    @extend_schema(request=DeliveryStatusSerializer, responses=DeliveryRequestSerializer)
    @action(detail=True, methods=["post"])
    def update_status(self, request, pk=None):
        delivery = self.get_object()
        serializer = DeliveryStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        delivery = update_delivery_status(
            delivery,
            data["status"],
            request.user,
            delivery_proof=data.get("delivery_proof"),
            customer_signature=data.get("customer_signature"),
        )
        return Response(DeliveryRequestSerializer(delivery).data)
