"""
Auto-approval rule evaluation.

Everything here is side-effect free: callers load the rules and describe
the delivery request, `evaluate_rules` decides. Rule objects only need the
attributes of `AutoApprovalRule`, so tests can pass plain stand-ins.
"""
import re
from dataclasses import dataclass, field
from datetime import datetime, time
from decimal import Decimal
from typing import Any, Iterable, Optional

from django.utils import timezone

DAY_CODES = ["MON", "TUE", "WED", "THU", "FRI", "SAT", "SUN"]  # datetime.weekday() order

REASON_NO_RULES = "No active auto-approval rules"
REASON_NO_MATCH = "No rules matched"

_PHONE_NOISE = re.compile(r"[\s\-\.\(\)]")


@dataclass(frozen=True)
class RequestFacts:
    """The parts of a delivery request the rules look at."""
    customer_phone: str = ""
    product_ids: tuple = ()
    total_amount: Decimal = Decimal("0")
    requested_at: Optional[datetime] = None


@dataclass
class EvaluationResult:
    should_auto_approve: bool
    reason: str
    matched_rule: Any = None
    rules_considered: int = 0
    details: dict = field(default_factory=dict)

    @property
    def matched_rule_id(self):
        return getattr(self.matched_rule, "id", None)


def normalize_phone(phone) -> str:
    return _PHONE_NOISE.sub("", str(phone or ""))


def _local_moment(requested_at):
    moment = requested_at or timezone.now()
    if timezone.is_aware(moment):
        moment = timezone.localtime(moment)
    return moment


def _customer_matches(rule, facts):
    phones = {normalize_phone(p) for p in (rule.customer_phones or [])}
    phones.discard("")
    return bool(phones) and normalize_phone(facts.customer_phone) in phones


def _product_matches(rule, facts):
    allowed = {str(pid) for pid in (rule.product_ids or [])}
    return any(str(pid) in allowed for pid in facts.product_ids)


def _has_amount_condition(rule):
    return rule.min_amount is not None or rule.max_amount is not None


def _amount_matches(rule, facts):
    if not _has_amount_condition(rule):
        return False
    total = Decimal(str(facts.total_amount))
    if rule.min_amount is not None and total < Decimal(str(rule.min_amount)):
        return False
    if rule.max_amount is not None and total > Decimal(str(rule.max_amount)):
        return False
    return True


def _has_time_condition(rule):
    return bool(rule.allowed_days) and rule.start_time is not None and rule.end_time is not None


def _minute(value: time) -> time:
    return value.replace(second=0, microsecond=0)


def _time_matches(rule, facts):
    if not _has_time_condition(rule):
        return False
    moment = _local_moment(facts.requested_at)
    day = DAY_CODES[moment.weekday()]
    if day not in {d.upper() for d in rule.allowed_days}:
        return False

    now = _minute(moment.time())
    start, end = _minute(rule.start_time), _minute(rule.end_time)
    if start <= end:
        return start <= now <= end
    # window crosses midnight, e.g. 22:00-02:00
    return now >= start or now <= end


def _combined_matches(rule, facts):
    checks = []
    if rule.customer_phones:
        checks.append(_customer_matches)
    if rule.product_ids:
        checks.append(_product_matches)
    if _has_amount_condition(rule):
        checks.append(_amount_matches)
    if _has_time_condition(rule):
        checks.append(_time_matches)
    if not checks:
        return False
    return all(check(rule, facts) for check in checks)


MATCHERS = {
    "CUSTOMER": _customer_matches,
    "PRODUCT": _product_matches,
    "AMOUNT": _amount_matches,
    "TIME": _time_matches,
    "COMBINED": _combined_matches,
}


def rule_matches(rule, facts: RequestFacts) -> bool:
    matcher = MATCHERS.get(rule.rule_type)
    return bool(matcher and matcher(rule, facts))


def _sort_key(rule):
    created = getattr(rule, "created_at", None)
    return (
        rule.priority,
        created.timestamp() if created else 0,
        getattr(rule, "id", None) or 0,
    )


def order_rules(rules: Iterable) -> list:
    """Active rules, lowest priority number first; ties go to the oldest rule."""
    return sorted((r for r in rules if r.is_active), key=_sort_key)


def evaluate_rules(rules: Iterable, facts: RequestFacts, limit: Optional[int] = None) -> EvaluationResult:
    """
    Return the first active rule that matches `facts`.

    `limit` caps how many rules (in priority order) are considered; None
    means every active rule.
    """
    ordered = order_rules(rules)
    if limit is not None:
        ordered = ordered[:limit]

    if not ordered:
        return EvaluationResult(should_auto_approve=False, reason=REASON_NO_RULES)

    for rule in ordered:
        if rule_matches(rule, facts):
            return EvaluationResult(
                should_auto_approve=True,
                reason=f"Matched rule: {rule.name}",
                matched_rule=rule,
                rules_considered=len(ordered),
                details={"rule_type": rule.rule_type, "priority": rule.priority},
            )

    return EvaluationResult(
        should_auto_approve=False,
        reason=REASON_NO_MATCH,
        rules_considered=len(ordered),
    )
