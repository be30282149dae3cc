import logging

from drf_spectacular.utils import extend_schema
from rest_framework import permissions, status
from rest_framework.decorators import action
from rest_framework.response import Response

from core.mixins import ClientScopedViewSet
from users.permissions import IsVendor

from .engine import RequestFacts
from .models import AutoApprovalRule
from .serializers import (
    AutoApprovalRuleSerializer,
    EvaluationResultSerializer,
    RuleEvaluationSerializer,
)
from .services import ensure_rule_capacity, evaluate_for_client, get_tier_info

logger = logging.getLogger(__name__)


class AutoApprovalRuleViewSet(ClientScopedViewSet):
    """
    A vendor's own auto-approval rules.
    Creating or re-activating a rule is capped by the vendor's plan.
    """
    queryset = AutoApprovalRule.objects.all()
    serializer_class = AutoApprovalRuleSerializer
    permission_classes = [permissions.IsAuthenticated, IsVendor]
    http_method_names = ["get", "post", "patch", "delete", "head", "options"]

    def get_queryset(self):
        queryset = AutoApprovalRule.objects.filter(client=self.get_client_or_403())
        is_active = self.request.query_params.get("is_active")
        if is_active in ("true", "false"):
            queryset = queryset.filter(is_active=is_active == "true")
        return queryset.order_by("priority", "-created_at")

    def get_serializer_context(self):
        context = super().get_serializer_context()
        client = getattr(self.request.user, "client_profile", None)
        if client is not None:
            context["client"] = client
        return context

    def list(self, request, *args, **kwargs):
        queryset = self.filter_queryset(self.get_queryset())
        tier_info = get_tier_info(self.get_client_or_403())
        page = self.paginate_queryset(queryset)
        if page is not None:
            serializer = self.get_serializer(page, many=True)
            return self.paginator.get_paginated_response(serializer.data, tier_info=tier_info)
        serializer = self.get_serializer(queryset, many=True)
        return Response({"results": serializer.data, "tier_info": tier_info})

    def perform_create(self, serializer):
        client = self.get_client_or_403()
        if serializer.validated_data.get("is_active", True):
            ensure_rule_capacity(client)
        rule = serializer.save(client=client)
        logger.info(f"Auto-approval rule {rule.id} ({rule.rule_type}) created for client '{client.slug}'")

    def perform_update(self, serializer):
        rule = serializer.instance
        if serializer.validated_data.get("is_active") and not rule.is_active:
            ensure_rule_capacity(rule.client, exclude=rule)
        serializer.save()

    @extend_schema(request=None, responses=AutoApprovalRuleSerializer)
    @action(detail=True, methods=["post"])
    def toggle_status(self, request, pk=None):
        rule = self.get_object()
        if not rule.is_active:
            ensure_rule_capacity(rule.client, exclude=rule)
        rule.is_active = not rule.is_active
        rule.save(update_fields=["is_active", "updated_at"])
        return Response(self.get_serializer(rule).data, status=status.HTTP_200_OK)

    @extend_schema(request=RuleEvaluationSerializer, responses=EvaluationResultSerializer)
    @action(detail=False, methods=["post"])
    def evaluate(self, request):
        serializer = RuleEvaluationSerializer(data=request.data)
        serializer.is_valid(raise_exception=True)
        data = serializer.validated_data

        facts = RequestFacts(
            customer_phone=data.get("customer_phone", ""),
            product_ids=tuple(data.get("product_ids", [])),
            total_amount=data["total_amount"],
            requested_at=data.get("request_time"),
        )
        result = evaluate_for_client(self.get_client_or_403(), facts)
        return Response(EvaluationResultSerializer(result).data)
