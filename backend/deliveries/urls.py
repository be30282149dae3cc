from rest_framework.routers import DefaultRouter

from .views import DeliveryRequestViewSet

router = DefaultRouter()
router.register(r'delivery-requests', DeliveryRequestViewSet, basename='delivery-request')

urlpatterns = router.urls
