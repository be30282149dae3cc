from rest_framework.routers import DefaultRouter
from .views import ProductViewSet, InventoryLogViewSet

router = DefaultRouter()
router.register(r'products', ProductViewSet, basename='product')
router.register(r'inventory-logs', InventoryLogViewSet, basename='inventory-log')

urlpatterns = router.urls
