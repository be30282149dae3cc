import logging

from rest_framework.exceptions import PermissionDenied, ValidationError

from billing.constants import PLAN_BASIC
from billing.utils import get_current_subscription, get_plan_limit, get_upgrade_message

from .engine import EvaluationResult, evaluate_rules
from .models import AutoApprovalRule

logger = logging.getLogger(__name__)

LIMIT_KEY = "max_auto_approval_rules"


def get_tier_info(client):
    """Plan code, active rules in use and the plan's rule limit (None = unlimited)."""
    subscription = get_current_subscription(client)
    plan_code = subscription.plan.code if subscription and subscription.plan else PLAN_BASIC
    return {
        "plan": plan_code,
        "rules_used": AutoApprovalRule.objects.filter(client=client, is_active=True).count(),
        "rules_limit": get_plan_limit(plan_code, LIMIT_KEY),
    }


def ensure_rule_capacity(client, exclude=None):
    """Refuse a new (or re-activated) rule once the plan's active-rule limit is reached."""
    info = get_tier_info(client)
    limit = info["rules_limit"]
    if limit is None:
        return info

    used = AutoApprovalRule.objects.filter(client=client, is_active=True)
    if exclude is not None:
        used = used.exclude(pk=exclude.pk)
    if limit == 0:
        raise PermissionDenied(get_upgrade_message("auto_approval"))
    if used.count() >= limit:
        raise ValidationError(
            f"Your {info['plan']} plan allows up to {limit} auto-approval rules. Upgrade to create more."
        )
    return info


def evaluate_for_client(client, facts):
    """
    Evaluate `facts` against the client's rules, honouring its plan.
    Vendors without a current subscription, or on BASIC, never auto-approve.
    """
    subscription = get_current_subscription(client)
    if subscription is None or subscription.plan is None:
        return EvaluationResult(
            should_auto_approve=False,
            reason="No active subscription; auto-approval is unavailable",
        )

    plan_code = subscription.plan.code
    limit = get_plan_limit(plan_code, LIMIT_KEY)
    if limit == 0:
        return EvaluationResult(
            should_auto_approve=False,
            reason=f"Auto-approval is not included in the {plan_code} plan",
        )

    rules = AutoApprovalRule.objects.filter(client=client, is_active=True)
    result = evaluate_rules(rules, facts, limit=limit)
    logger.info(
        f"Auto-approval for client '{client.slug}': {result.reason} "
        f"({result.rules_considered} rule(s) considered)"
    )
    return result
