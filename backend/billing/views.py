import json
import logging
import uuid
from datetime import timedelta

from django.conf import settings
from django.db import transaction
from django.shortcuts import get_object_or_404
from django.utils import timezone
from django.views.decorators.csrf import csrf_exempt
from drf_spectacular.utils import extend_schema
from rest_framework import filters, mixins, status, viewsets
from rest_framework.decorators import action, api_view, authentication_classes, permission_classes
from rest_framework.exceptions import ValidationError
from rest_framework.permissions import AllowAny, IsAuthenticated
from rest_framework.response import Response
from rest_framework.views import APIView

from clients.models import ClientProfile
from users.permissions import HasClientProfile, IsPlatformAdmin

from .constants import PLAN_FEATURES, PLAN_LIMITS
from .models import Payment, Plan, Subscription
from .serializers import (
    AdminSubscriptionSerializer,
    PaymentSerializer,
    PlanSerializer,
    RecordPaymentSerializer,
    SubscribeSerializer,
    SubscriptionSerializer,
)
from .services.paystack import PaystackService
from .utils import (
    cancel_subscription,
    complete_payment,
    create_paid_subscription,
    expire_subscriptions,
    fail_payment,
    get_current_subscription,
    get_next_plan_upgrade,
    get_plan_code,
)
from .webhooks import dispatch_event

logger = logging.getLogger("billing.webhook")


# -------------------------------------------------------------------
# Plans ViewSet (Public Read-Only)
# -------------------------------------------------------------------
class PlanViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Plan.objects.filter(is_active=True).order_by('amount')
    serializer_class = PlanSerializer
    permission_classes = [AllowAny]
    pagination_class = None


# -------------------------------------------------------------------
# Subscriptions ViewSet (Client Scoped)
# -------------------------------------------------------------------
class SubscriptionViewSet(mixins.CreateModelMixin,
                          mixins.ListModelMixin,
                          mixins.RetrieveModelMixin,
                          viewsets.GenericViewSet):
    serializer_class = SubscriptionSerializer
    permission_classes = [IsAuthenticated, HasClientProfile]

    def get_queryset(self):
        client = self.request.user.client_profile
        return Subscription.objects.select_related("plan", "client").filter(client=client).order_by('-created_at')

    def get_serializer_class(self):
        if self.action == "create":
            return SubscribeSerializer
        return SubscriptionSerializer

    @extend_schema(request=SubscribeSerializer)
    def create(self, request, *args, **kwargs):
        """Start a paid subscription: PENDING subscription + payment, then a Paystack link."""
        serializer = SubscribeSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)

        user = request.user
        client = user.client_profile
        plan = serializer.validated_data['plan']
        email = serializer.validated_data.get('email') or user.email or f"{client.slug}@no-email.local"
        reference = f"PAYSTACK-{client.id}-{uuid.uuid4().hex[:12].upper()}"
        now = timezone.now()

        with transaction.atomic():
            subscription = Subscription.objects.create(
                client=client,
                plan=plan,
                status=Subscription.STATUS_PENDING,
                amount=plan.amount,
                currency=plan.currency,
                start_date=now,
                end_date=now + timedelta(days=plan.duration_days),
                paystack_reference=reference,
            )
            payment = Payment.objects.create(
                client=client,
                subscription=subscription,
                reference=reference,
                amount=plan.amount,
                currency=plan.currency,
                payment_method=Payment.METHOD_PAYSTACK,
                status=Payment.STATUS_PENDING,
                metadata={"plan": plan.code, "email": email, "client_id": client.id},
            )

        try:
            ps_resp = PaystackService.create_payment_link(
                email=email,
                amount=plan.amount,
                reference=reference,
                currency=plan.currency,
                metadata={
                    "client_id": client.id,
                    "user_id": user.id,
                    "subscription_id": subscription.id,
                    "plan": plan.code,
                },
            )
        except RuntimeError as e:
            payment.status = Payment.STATUS_FAILED
            payment.save(update_fields=["status"])
            return Response({"detail": str(e)}, status=status.HTTP_502_BAD_GATEWAY)

        tx_data = ps_resp.get('data', {}) or {}
        payment.raw_response = ps_resp
        payment.save(update_fields=["raw_response"])

        logger.info(f"Created pending subscription {subscription.id} with reference {reference}")

        return Response({
            "subscription": SubscriptionSerializer(subscription).data,
            "reference": tx_data.get("reference") or reference,
            "authorization_url": tx_data.get("authorization_url"),
            "access_code": tx_data.get("access_code"),
        }, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=['get'])
    def current(self, request):
        client = request.user.client_profile
        subscription = get_current_subscription(client)
        plan_code = get_plan_code(client)
        return Response({
            "subscription_status": client.subscription_status,
            "subscription": SubscriptionSerializer(subscription).data if subscription else None,
            "plan": plan_code,
            "is_expired": subscription is None,
            "days_remaining": subscription.days_remaining if subscription else 0,
            "features": PLAN_FEATURES.get(plan_code, []),
            "limits": PLAN_LIMITS.get(plan_code, {}),
            "next_upgrade": get_next_plan_upgrade(plan_code),
        })

    @action(detail=False, methods=['post'])
    def cancel(self, request):
        from notifications.utils import notify_user

        client = request.user.client_profile
        subscription = get_current_subscription(client)
        if subscription is None:
            raise ValidationError("No active subscription found.")

        cancel_subscription(subscription)
        notify_user(
            request.user,
            title="Subscription Cancelled",
            message="Your subscription has been cancelled. You can reactivate it anytime.",
            notification_type="SUBSCRIPTION_CANCELLED",
            client=client,
            channels=["EMAIL"],
        )
        return Response({"detail": "Subscription cancelled."}, status=status.HTTP_200_OK)


# -------------------------------------------------------------------
# Payments ViewSet (Client Scoped)
# -------------------------------------------------------------------
class PaymentViewSet(viewsets.ReadOnlyModelViewSet):
    serializer_class = PaymentSerializer
    permission_classes = [IsAuthenticated, HasClientProfile]

    def get_queryset(self):
        return Payment.objects.filter(client=self.request.user.client_profile).order_by('-created_at')


# -------------------------------------------------------------------
# Paystack Webhook (Public)
# -------------------------------------------------------------------
@csrf_exempt
@api_view(["POST"])
@authentication_classes([])
@permission_classes([AllowAny])
def paystack_webhook(request):
    signature = request.headers.get("x-paystack-signature")
    if not signature:
        return Response({"error": "No signature provided"}, status=status.HTTP_400_BAD_REQUEST)

    body = request.body
    if not PaystackService.is_valid_signature(body, signature):
        logger.warning("Invalid Paystack signature.")
        return Response({"error": "Invalid signature"}, status=status.HTTP_401_UNAUTHORIZED)

    try:
        payload = json.loads(body)
    except ValueError:
        return Response({"error": "Malformed payload"}, status=status.HTTP_400_BAD_REQUEST)

    event = payload.get("event")
    data = payload.get("data") or {}
    logger.info(f"Paystack webhook received: {event}, ref={data.get('reference')}")

    dispatch_event(event, data)
    return Response({"received": True}, status=status.HTTP_200_OK)


# -------------------------------------------------------------------
# Manual Verification Endpoint
# -------------------------------------------------------------------
class PaystackVerifyView(APIView):
    permission_classes = [IsAuthenticated, HasClientProfile]

    def get(self, request, *args, **kwargs):
        reference = request.query_params.get("reference")
        if not reference:
            return Response({"error": "reference query param required"}, status=status.HTTP_400_BAD_REQUEST)

        payment = get_object_or_404(Payment, reference=reference, client=request.user.client_profile)

        try:
            ps_resp = PaystackService.verify_transaction(reference)
        except RuntimeError as e:
            return Response({"error": str(e)}, status=status.HTTP_502_BAD_GATEWAY)

        data = ps_resp.get("data", {}) or {}
        if data.get("status") != "success":
            fail_payment(payment, paystack_data=data)
            return Response({"detail": "Payment not successful."}, status=status.HTTP_400_BAD_REQUEST)

        metadata = data.get("metadata") or {}
        subscription = complete_payment(payment, paystack_data=data, plan_code=metadata.get("plan"))
        return Response({
            "detail": "Payment verified successfully.",
            "reference": reference,
            "subscription": SubscriptionSerializer(subscription).data if subscription else None,
        }, status=status.HTTP_200_OK)


# -------------------------------------------------------------------
# ADMIN VIEWS
# -------------------------------------------------------------------
class GlobalSubscriptionViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Subscription.objects.select_related("client", "plan").all().order_by("-created_at")
    serializer_class = SubscriptionSerializer
    permission_classes = [IsAuthenticated, IsPlatformAdmin]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["client__business_name", "client__slug", "status", "plan__code"]
    ordering_fields = ["created_at", "end_date"]

    def get_queryset(self):
        queryset = super().get_queryset()
        client_id = self.request.query_params.get("client")
        if client_id:
            queryset = queryset.filter(client_id=client_id)
        return queryset

    @extend_schema(request=AdminSubscriptionSerializer, responses=SubscriptionSerializer)
    @action(detail=False, methods=["post"])
    def assign(self, request):
        """Create or replace a client's subscription without payment."""
        serializer = AdminSubscriptionSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        client = get_object_or_404(ClientProfile, pk=data["client_id"])
        subscription = create_paid_subscription(
            client,
            data["plan"],
            amount=data.get("amount"),
            duration_days=data["duration_days"],
            auto_renew=False,
        )
        return Response(SubscriptionSerializer(subscription).data, status=status.HTTP_201_CREATED)

    @action(detail=False, methods=["post"])
    def check_expired(self, request):
        expired = expire_subscriptions()
        return Response({"expired": len(expired)})


class GlobalPaymentViewSet(viewsets.ReadOnlyModelViewSet):
    queryset = Payment.objects.select_related("client", "subscription").all().order_by("-created_at")
    serializer_class = PaymentSerializer
    permission_classes = [IsAuthenticated, IsPlatformAdmin]
    filter_backends = [filters.SearchFilter, filters.OrderingFilter]
    search_fields = ["client__business_name", "client__slug", "status", "reference"]
    ordering_fields = ["created_at", "amount"]

    @extend_schema(request=RecordPaymentSerializer, responses=PaymentSerializer)
    @action(detail=False, methods=["post"])
    def record(self, request):
        """Record a manual (offline) payment against a subscription."""
        serializer = RecordPaymentSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        subscription = get_object_or_404(Subscription.objects.select_related("client"), pk=data["subscription_id"])
        now = timezone.now()

        with transaction.atomic():
            payment = Payment.objects.create(
                client=subscription.client,
                subscription=subscription,
                reference=data.get("reference") or f"MANUAL-{uuid.uuid4().hex[:12].upper()}",
                amount=data["amount"],
                currency=subscription.currency or settings.DEFAULT_CURRENCY,
                payment_method=data["payment_method"],
                status=Payment.STATUS_COMPLETED,
                payment_date=now,
                metadata={"recorded_by": request.user.id},
            )
            subscription.last_payment_date = now
            subscription.next_payment_date = now + timedelta(days=30)
            subscription.save(update_fields=["last_payment_date", "next_payment_date", "updated_at"])

        logger.info(f"Manual payment {payment.reference} recorded by {request.user.username}")
        return Response(PaymentSerializer(payment).data, status=status.HTTP_201_CREATED)
