"""
Tests for the auto-approval rule engine and the rules API.
"""
from datetime import datetime, time, timedelta, timezone as dt_timezone
from decimal import Decimal
from types import SimpleNamespace

from django.test import SimpleTestCase, TestCase
from rest_framework import status

from auto_approval.engine import (
    REASON_NO_MATCH,
    REASON_NO_RULES,
    RequestFacts,
    evaluate_rules,
    normalize_phone,
    rule_matches,
)
from auto_approval.models import AutoApprovalRule
from auto_approval.services import evaluate_for_client
from billing.utils import get_upgrade_message
from core.test_utils import AuthenticatedAPIClient, TestDataFactory

# 2026-10-19 is a Monday
MONDAY_10_30 = datetime(2026, 10, 19, 10, 30, tzinfo=dt_timezone.utc)
CREATED = datetime(2026, 1, 1, tzinfo=dt_timezone.utc)

RULES_URL = '/api/auto-approval-rules/'


def make_rule(rule_type='AMOUNT', rule_id=1, priority=1, is_active=True, created_at=CREATED, **conditions):
    values = {
        'customer_phones': [],
        'product_ids': [],
        'min_amount': None,
        'max_amount': None,
        'allowed_days': [],
        'start_time': None,
        'end_time': None,
    }
    values.update(conditions)
    return SimpleNamespace(
        id=rule_id,
        name=f'rule-{rule_id}',
        rule_type=rule_type,
        priority=priority,
        is_active=is_active,
        created_at=created_at,
        **values,
    )


def facts(phone='0241234567', products=(), amount='100.00', at=MONDAY_10_30):
    return RequestFacts(
        customer_phone=phone,
        product_ids=tuple(products),
        total_amount=Decimal(amount),
        requested_at=at,
    )


class RuleOrderingTests(SimpleTestCase):

    def test_lower_priority_number_wins(self):
        late = make_rule(rule_id=1, priority=2, max_amount=Decimal('500'))
        early = make_rule(rule_id=2, priority=1, max_amount=Decimal('500'))
        result = evaluate_rules([late, early], facts())
        self.assertTrue(result.should_auto_approve)
        self.assertIs(result.matched_rule, early)
        self.assertEqual(result.reason, 'Matched rule: rule-2')

    def test_priority_ties_go_to_oldest_rule(self):
        newer = make_rule(rule_id=1, created_at=CREATED + timedelta(days=1), max_amount=Decimal('500'))
        older = make_rule(rule_id=2, created_at=CREATED, max_amount=Decimal('500'))
        result = evaluate_rules([newer, older], facts())
        self.assertIs(result.matched_rule, older)

    def test_falls_through_to_next_rule(self):
        miss = make_rule(rule_id=1, priority=1, max_amount=Decimal('10'))
        hit = make_rule(rule_id=2, priority=2, min_amount=Decimal('50'))
        result = evaluate_rules([miss, hit], facts())
        self.assertIs(result.matched_rule, hit)
        self.assertEqual(result.rules_considered, 2)

    def test_inactive_rules_are_skipped(self):
        inactive = make_rule(rule_id=1, is_active=False, max_amount=Decimal('500'))
        result = evaluate_rules([inactive], facts())
        self.assertFalse(result.should_auto_approve)
        self.assertEqual(result.reason, REASON_NO_RULES)

    def test_no_rules(self):
        result = evaluate_rules([], facts())
        self.assertFalse(result.should_auto_approve)
        self.assertIsNone(result.matched_rule)
        self.assertEqual(result.reason, REASON_NO_RULES)

    def test_no_match(self):
        result = evaluate_rules([make_rule(max_amount=Decimal('10'))], facts())
        self.assertFalse(result.should_auto_approve)
        self.assertEqual(result.reason, REASON_NO_MATCH)

    def test_limit_only_considers_first_rules(self):
        miss = make_rule(rule_id=1, priority=1, max_amount=Decimal('10'))
        hit = make_rule(rule_id=2, priority=2, min_amount=Decimal('50'))
        result = evaluate_rules([miss, hit], facts(), limit=1)
        self.assertFalse(result.should_auto_approve)
        self.assertEqual(result.rules_considered, 1)


class CustomerRuleTests(SimpleTestCase):

    def test_phone_in_whitelist(self):
        rule = make_rule('CUSTOMER', customer_phones=['0241234567'])
        self.assertTrue(rule_matches(rule, facts(phone='0241234567')))

    def test_phone_formatting_is_ignored(self):
        rule = make_rule('CUSTOMER', customer_phones=['(024) 123-4567'])
        self.assertTrue(rule_matches(rule, facts(phone='024 123.4567')))

    def test_phone_not_in_whitelist(self):
        rule = make_rule('CUSTOMER', customer_phones=['0200000000'])
        self.assertFalse(rule_matches(rule, facts(phone='0241234567')))

    def test_empty_whitelist_never_matches(self):
        rule = make_rule('CUSTOMER', customer_phones=[])
        self.assertFalse(rule_matches(rule, facts(phone='')))

    def test_normalize_phone(self):
        self.assertEqual(normalize_phone(' +233 (24) 123-45.67 '), '+233241234567')


class ProductRuleTests(SimpleTestCase):

    def test_any_requested_product_matches(self):
        rule = make_rule('PRODUCT', product_ids=[5, 9])
        self.assertTrue(rule_matches(rule, facts(products=[1, 9])))

    def test_no_requested_product_in_list(self):
        rule = make_rule('PRODUCT', product_ids=[5, 9])
        self.assertFalse(rule_matches(rule, facts(products=[1, 2])))


class AmountRuleTests(SimpleTestCase):

    def test_bounds_are_inclusive(self):
        rule = make_rule(min_amount=Decimal('100.00'), max_amount=Decimal('200.00'))
        self.assertTrue(rule_matches(rule, facts(amount='100.00')))
        self.assertTrue(rule_matches(rule, facts(amount='200.00')))
        self.assertFalse(rule_matches(rule, facts(amount='99.99')))
        self.assertFalse(rule_matches(rule, facts(amount='200.01')))

    def test_min_only(self):
        rule = make_rule(min_amount=Decimal('50'))
        self.assertTrue(rule_matches(rule, facts(amount='100000')))
        self.assertFalse(rule_matches(rule, facts(amount='49')))

    def test_max_only(self):
        rule = make_rule(max_amount=Decimal('50'))
        self.assertTrue(rule_matches(rule, facts(amount='0')))
        self.assertFalse(rule_matches(rule, facts(amount='51')))

    def test_no_bounds_never_matches(self):
        self.assertFalse(rule_matches(make_rule(), facts()))


class TimeRuleTests(SimpleTestCase):

    def time_rule(self, days=('MON',), start=time(9, 0), end=time(17, 0)):
        return make_rule('TIME', allowed_days=list(days), start_time=start, end_time=end)

    def test_inside_window(self):
        self.assertTrue(rule_matches(self.time_rule(), facts()))

    def test_wrong_day(self):
        self.assertFalse(rule_matches(self.time_rule(days=('TUE', 'WED')), facts()))

    def test_window_edges_are_inclusive(self):
        rule = self.time_rule(start=time(10, 30), end=time(10, 30))
        self.assertTrue(rule_matches(rule, facts()))

    def test_seconds_are_ignored(self):
        rule = self.time_rule(start=time(9, 0), end=time(10, 30))
        self.assertTrue(rule_matches(rule, facts(at=MONDAY_10_30.replace(second=45))))

    def test_outside_window(self):
        rule = self.time_rule(start=time(11, 0), end=time(17, 0))
        self.assertFalse(rule_matches(rule, facts()))

    def test_window_crossing_midnight(self):
        rule = self.time_rule(days=('MON',), start=time(22, 0), end=time(2, 0))
        self.assertTrue(rule_matches(rule, facts(at=MONDAY_10_30.replace(hour=23))))
        self.assertTrue(rule_matches(rule, facts(at=MONDAY_10_30.replace(hour=1))))
        self.assertFalse(rule_matches(rule, facts(at=MONDAY_10_30.replace(hour=12))))

    def test_incomplete_window_never_matches(self):
        self.assertFalse(rule_matches(self.time_rule(end=None), facts()))


class CombinedRuleTests(SimpleTestCase):

    def test_all_present_conditions_must_match(self):
        rule = make_rule(
            'COMBINED',
            customer_phones=['0241234567'],
            max_amount=Decimal('500'),
        )
        self.assertTrue(rule_matches(rule, facts(amount='100')))
        self.assertFalse(rule_matches(rule, facts(amount='900')))
        self.assertFalse(rule_matches(rule, facts(phone='0200000000', amount='100')))

    def test_absent_conditions_are_ignored(self):
        rule = make_rule('COMBINED', product_ids=[3])
        self.assertTrue(rule_matches(rule, facts(products=[3], amount='999999')))

    def test_time_condition_is_included(self):
        rule = make_rule(
            'COMBINED',
            product_ids=[3],
            allowed_days=['SAT', 'SUN'],
            start_time=time(0, 0),
            end_time=time(23, 59),
        )
        self.assertFalse(rule_matches(rule, facts(products=[3])))

    def test_no_conditions_never_matches(self):
        self.assertFalse(rule_matches(make_rule('COMBINED'), facts()))


class TierGatingTests(TestCase):
    """Plan limits applied when evaluating a vendor's stored rules."""

    def test_basic_trial_never_auto_approves(self):
        client = TestDataFactory.create_client()
        TestDataFactory.create_rule(client, max_amount=Decimal('1000'))
        result = evaluate_for_client(client, facts())
        self.assertFalse(result.should_auto_approve)
        self.assertIn('BASIC', result.reason)

    def test_standard_plan_uses_rules(self):
        client = TestDataFactory.create_client(plan='STANDARD')
        rule = TestDataFactory.create_rule(client, max_amount=Decimal('1000'))
        result = evaluate_for_client(client, facts())
        self.assertTrue(result.should_auto_approve)
        self.assertEqual(result.matched_rule, rule)

    def test_over_limit_vendor_only_gets_first_rules(self):
        client = TestDataFactory.create_client(plan='STANDARD')
        for priority in (1, 2, 3):
            TestDataFactory.create_rule(client, priority=priority, max_amount=Decimal('1'))
        TestDataFactory.create_rule(client, priority=4, max_amount=Decimal('1000'))
        result = evaluate_for_client(client, facts())
        self.assertFalse(result.should_auto_approve)
        self.assertEqual(result.rules_considered, 3)

    def test_premium_is_unlimited(self):
        client = TestDataFactory.create_client(plan='PREMIUM')
        for priority in (1, 2, 3, 4):
            TestDataFactory.create_rule(client, priority=priority, max_amount=Decimal('1'))
        hit = TestDataFactory.create_rule(client, priority=5, max_amount=Decimal('1000'))
        result = evaluate_for_client(client, facts())
        self.assertEqual(result.matched_rule, hit)

    def test_no_current_subscription(self):
        client = TestDataFactory.create_client()
        client.subscriptions.update(status='EXPIRED')
        TestDataFactory.create_rule(client, max_amount=Decimal('1000'))
        result = evaluate_for_client(client, facts())
        self.assertFalse(result.should_auto_approve)


class AutoApprovalRuleAPITests(TestCase):

    def setUp(self):
        self.client_profile = TestDataFactory.create_client(plan='STANDARD')
        self.api = AuthenticatedAPIClient().authenticate_user(self.client_profile.user)

    def amount_rule_payload(self, **overrides):
        payload = {
            'name': 'Small orders',
            'rule_type': 'AMOUNT',
            'priority': 1,
            'max_amount': '200.00',
        }
        payload.update(overrides)
        return payload

    def test_create_rule(self):
        response = self.api.post(RULES_URL, self.amount_rule_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        rule = AutoApprovalRule.objects.get(pk=response.data['id'])
        self.assertEqual(rule.client, self.client_profile)
        self.assertTrue(rule.is_active)

    def test_standard_plan_limit(self):
        for i in range(3):
            response = self.api.post(RULES_URL, self.amount_rule_payload(name=f'r{i}'), format='json')
            self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        response = self.api.post(RULES_URL, self.amount_rule_payload(name='r4'), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('allows up to 3 auto-approval rules', str(response.data))

    def test_basic_plan_cannot_create_rules(self):
        basic = TestDataFactory.create_client()
        api = AuthenticatedAPIClient().authenticate_user(basic.user)
        response = api.post(RULES_URL, self.amount_rule_payload(), format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(str(response.data['detail']), get_upgrade_message('auto_approval'))
        self.assertFalse(AutoApprovalRule.objects.filter(client=basic).exists())

    def test_customer_rule_requires_phones(self):
        payload = {'name': 'VIPs', 'rule_type': 'CUSTOMER', 'customer_phones': []}
        response = self.api.post(RULES_URL, payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('customer_phones', response.data)

    def test_amount_rule_requires_a_bound(self):
        payload = {'name': 'Any', 'rule_type': 'AMOUNT'}
        response = self.api.post(RULES_URL, payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_min_cannot_exceed_max(self):
        payload = self.amount_rule_payload(min_amount='300.00', max_amount='100.00')
        response = self.api.post(RULES_URL, payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_time_rule_requires_window(self):
        payload = {'name': 'Weekdays', 'rule_type': 'TIME', 'allowed_days': ['MON'], 'start_time': '09:00'}
        response = self.api.post(RULES_URL, payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_time_rule_accepts_hh_mm(self):
        payload = {
            'name': 'Office hours',
            'rule_type': 'TIME',
            'allowed_days': ['MON', 'TUE'],
            'start_time': '09:00',
            'end_time': '17:30',
        }
        response = self.api.post(RULES_URL, payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        rule = AutoApprovalRule.objects.get(pk=response.data['id'])
        self.assertEqual(rule.end_time, time(17, 30))

    def test_product_rule_only_accepts_own_products(self):
        other = TestDataFactory.create_client()
        foreign = TestDataFactory.create_product(other)
        payload = {'name': 'Theirs', 'rule_type': 'PRODUCT', 'product_ids': [foreign.id]}
        response = self.api.post(RULES_URL, payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        own = TestDataFactory.create_product(self.client_profile)
        payload['product_ids'] = [own.id]
        response = self.api.post(RULES_URL, payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)

    def test_combined_rule_requires_a_condition(self):
        response = self.api.post(RULES_URL, {'name': 'Empty', 'rule_type': 'COMBINED'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_priority_must_be_positive(self):
        response = self.api.post(RULES_URL, self.amount_rule_payload(priority=0), format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_includes_tier_info(self):
        TestDataFactory.create_rule(self.client_profile, max_amount=Decimal('10'))
        response = self.api.get(RULES_URL)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['results']), 1)
        self.assertEqual(response.data['tier_info'], {'plan': 'STANDARD', 'rules_used': 1, 'rules_limit': 3})
        self.assertEqual(response.data['pagination']['total'], 1)

    def test_list_is_ordered_by_priority(self):
        TestDataFactory.create_rule(self.client_profile, name='second', priority=2, max_amount=Decimal('10'))
        TestDataFactory.create_rule(self.client_profile, name='first', priority=1, max_amount=Decimal('10'))
        response = self.api.get(RULES_URL)
        self.assertEqual([r['name'] for r in response.data['results']], ['first', 'second'])

    def test_list_filters_by_active(self):
        TestDataFactory.create_rule(self.client_profile, max_amount=Decimal('10'))
        TestDataFactory.create_rule(self.client_profile, max_amount=Decimal('10'), is_active=False)
        response = self.api.get(RULES_URL, {'is_active': 'false'})
        self.assertEqual(len(response.data['results']), 1)
        self.assertFalse(response.data['results'][0]['is_active'])

    def test_other_vendors_rules_are_hidden(self):
        other = TestDataFactory.create_client(plan='STANDARD')
        rule = TestDataFactory.create_rule(other, max_amount=Decimal('10'))
        self.assertEqual(self.api.get(f'{RULES_URL}{rule.id}/').status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(self.api.delete(f'{RULES_URL}{rule.id}/').status_code, status.HTTP_404_NOT_FOUND)

    def test_partial_update_keeps_rule_valid(self):
        rule = TestDataFactory.create_rule(self.client_profile, max_amount=Decimal('10'))
        response = self.api.patch(f'{RULES_URL}{rule.id}/', {'priority': 5}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        rule.refresh_from_db()
        self.assertEqual(rule.priority, 5)

        response = self.api.patch(f'{RULES_URL}{rule.id}/', {'max_amount': None}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_toggle_status_respects_limit(self):
        for priority in (1, 2, 3):
            TestDataFactory.create_rule(self.client_profile, priority=priority, max_amount=Decimal('10'))
        paused = TestDataFactory.create_rule(self.client_profile, max_amount=Decimal('10'), is_active=False)

        response = self.api.post(f'{RULES_URL}{paused.id}/toggle_status/')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

        active = AutoApprovalRule.objects.filter(client=self.client_profile, is_active=True).first()
        response = self.api.post(f'{RULES_URL}{active.id}/toggle_status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(response.data['is_active'])

        response = self.api.post(f'{RULES_URL}{paused.id}/toggle_status/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['is_active'])

    def test_delete_rule(self):
        rule = TestDataFactory.create_rule(self.client_profile, max_amount=Decimal('10'))
        response = self.api.delete(f'{RULES_URL}{rule.id}/')
        self.assertEqual(response.status_code, status.HTTP_204_NO_CONTENT)
        self.assertFalse(AutoApprovalRule.objects.filter(pk=rule.pk).exists())

    def test_evaluate_endpoint(self):
        TestDataFactory.create_rule(self.client_profile, name='Under 200', max_amount=Decimal('200'))
        response = self.api.post(
            f'{RULES_URL}evaluate/',
            {'customer_phone': '0241234567', 'total_amount': '150.00'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['should_auto_approve'])
        self.assertEqual(response.data['reason'], 'Matched rule: Under 200')
        self.assertEqual(response.data['matched_rule']['name'], 'Under 200')

        response = self.api.post(f'{RULES_URL}evaluate/', {'total_amount': '950.00'}, format='json')
        self.assertFalse(response.data['should_auto_approve'])
        self.assertEqual(response.data['reason'], REASON_NO_MATCH)
        self.assertIsNone(response.data['matched_rule'])

    def test_admins_without_profile_are_refused(self):
        admin = TestDataFactory.create_admin()
        api = AuthenticatedAPIClient().authenticate_user(admin)
        self.assertEqual(api.get(RULES_URL).status_code, status.HTTP_403_FORBIDDEN)

    def test_suspended_vendor_is_refused(self):
        self.client_profile.subscription_status = 'SUSPENDED'
        self.client_profile.save()
        response = self.api.get(RULES_URL)
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertIn('suspended', str(response.data))
