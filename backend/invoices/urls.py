from rest_framework.routers import DefaultRouter

from .views import InvoiceViewSet, ReceiptViewSet

router = DefaultRouter()
router.register(r'invoices', InvoiceViewSet, basename='invoice')
router.register(r'receipts', ReceiptViewSet, basename='receipt')

urlpatterns = router.urls
