from django.shortcuts import get_object_or_404
from drf_spectacular.utils import extend_schema
from rest_framework import permissions, status, viewsets
from rest_framework.decorators import action
from rest_framework.response import Response

from deliveries.models import DeliveryRequest
from users.permissions import IsAdminOrVendor, IsVendor

from .models import Invoice, Receipt
from .serializers import (
    GenerateInvoiceSerializer,
    GenerateReceiptSerializer,
    InvoiceSerializer,
    InvoiceStatusSerializer,
    ReceiptSerializer,
)
from .services import generate_invoice, generate_receipt, set_invoice_status


class InvoiceViewSet(viewsets.ReadOnlyModelViewSet):
    """
    Vendors generate invoices from their delivery requests and record
    receipts against them. Admins can browse every client's invoices.
    """
    queryset = Invoice.objects.select_related("client", "delivery_request").prefetch_related("receipts")
    serializer_class = InvoiceSerializer

    VENDOR_ACTIONS = ("generate", "update_status", "generate_receipt")

    def get_permissions(self):
        if self.action in self.VENDOR_ACTIONS:
            return [permissions.IsAuthenticated(), IsVendor()]
        return [permissions.IsAuthenticated(), IsAdminOrVendor()]

    def get_queryset(self):
        user = self.request.user
        queryset = super().get_queryset()
        if self.action in self.VENDOR_ACTIONS:
            queryset = queryset.filter(client=user.client_profile)
        else:
            queryset = queryset.for_user(user)

        params = self.request.query_params
        if params.get("status"):
            queryset = queryset.filter(status=params["status"])
        if params.get("client") and user.is_admin:
            queryset = queryset.filter(client_id=params["client"])
        return queryset

    @extend_schema(request=GenerateInvoiceSerializer, responses=InvoiceSerializer)
    @action(detail=False, methods=["post"])
    def generate(self, request):
        serializer = GenerateInvoiceSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        delivery = get_object_or_404(
            DeliveryRequest,
            pk=serializer.validated_data["delivery_request"],
            client=request.user.client_profile,
        )
        invoice, created = generate_invoice(delivery, user=request.user)
        return Response(
            InvoiceSerializer(invoice).data,
            status=status.HTTP_201_CREATED if created else status.HTTP_200_OK,
        )

    @extend_schema(request=InvoiceStatusSerializer, responses=InvoiceSerializer)
    @action(detail=True, methods=["post"])
    def update_status(self, request, pk=None):
        invoice = self.get_object()
        serializer = InvoiceStatusSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        invoice = set_invoice_status(invoice, serializer.validated_data["status"])
        return Response(InvoiceSerializer(invoice).data)

    @extend_schema(request=GenerateReceiptSerializer, responses=ReceiptSerializer)
    @action(detail=True, methods=["post"])
    def generate_receipt(self, request, pk=None):
        invoice = self.get_object()
        serializer = GenerateReceiptSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data
        receipt = generate_receipt(
            invoice,
            data["amount_paid"],
            data["payment_method"],
            transaction_reference=data.get("transaction_reference"),
            user=request.user,
        )
        return Response(ReceiptSerializer(receipt).data, status=status.HTTP_201_CREATED)


class ReceiptViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = ReceiptSerializer
    permission_classes = [permissions.IsAuthenticated, IsAdminOrVendor]

    def get_queryset(self):
        user = self.request.user
        queryset = Receipt.objects.select_related("invoice")
        if not user.is_admin:
            queryset = queryset.filter(invoice__client=user.client_profile)
        invoice_id = self.request.query_params.get("invoice")
        if invoice_id:
            queryset = queryset.filter(invoice_id=invoice_id)
        return queryset
