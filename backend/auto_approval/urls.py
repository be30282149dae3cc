from rest_framework.routers import DefaultRouter

from .views import AutoApprovalRuleViewSet

router = DefaultRouter()
router.register(r'auto-approval-rules', AutoApprovalRuleViewSet, basename='auto-approval-rule')

urlpatterns = router.urls
