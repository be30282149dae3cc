from django.urls import path, include
from rest_framework.routers import DefaultRouter
from .views import (
    PlanViewSet,
    SubscriptionViewSet,
    PaymentViewSet,
    paystack_webhook,
    PaystackVerifyView,
    GlobalSubscriptionViewSet,
    GlobalPaymentViewSet,
)
app_name = "billing"

# -------------------------------------------------------------
# Routers for DRF ViewSets
# -------------------------------------------------------------
router = DefaultRouter()
router.register(r'plans', PlanViewSet, basename='plan')
router.register(r'subscriptions', SubscriptionViewSet, basename='subscription')
router.register(r'payments', PaymentViewSet, basename='payment')
router.register(r"admin/subscriptions", GlobalSubscriptionViewSet, basename="global-subscriptions")
router.register(r"admin/payments", GlobalPaymentViewSet, basename="global-payments")

# -------------------------------------------------------------
# URL Patterns
# -------------------------------------------------------------
urlpatterns = [
    path('', include(router.urls)),

    # Webhook endpoint for Paystack POST callbacks
    path('paystack/webhook/', paystack_webhook, name='paystack-webhook'),

    # Manual verification after the Paystack redirect
    path('paystack/verify/', PaystackVerifyView.as_view(), name='paystack-verify'),
]
