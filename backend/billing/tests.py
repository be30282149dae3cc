import json
from datetime import timedelta
from io import StringIO
from unittest import mock

from django.core.management import call_command
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from rest_framework.exceptions import PermissionDenied, ValidationError
from rest_framework.test import APIClient

from billing.constants import UPGRADE_MESSAGES
from billing.models import Payment, Plan, Subscription
from billing.services.paystack import PaystackService
from billing.utils import (
    check_plan_limit,
    expire_subscriptions,
    get_current_subscription,
    get_next_plan_upgrade,
    get_plan_code,
    get_plan_limit,
    get_recommended_plan,
    has_feature,
    is_plan_higher_than,
    require_feature,
)
from core.test_utils import AuthenticatedAPIClient, TestDataFactory
from notifications.models import Notification

WEBHOOK_URL = '/api/billing/paystack/webhook/'
SUBSCRIPTIONS_URL = '/api/billing/subscriptions/'


class TrialSubscriptionTests(TestCase):

    def test_new_client_starts_on_basic_trial(self):
        client = TestDataFactory.create_client()

        sub = get_current_subscription(client)
        self.assertEqual(sub.status, Subscription.STATUS_TRIAL)
        self.assertEqual(sub.plan.code, 'BASIC')
        client.refresh_from_db()
        self.assertEqual(client.subscription_status, 'TRIAL')
        self.assertEqual(sub.days_remaining, 7)

    def test_activation_cancels_trial(self):
        client = TestDataFactory.create_client(plan='STANDARD')

        self.assertEqual(get_plan_code(client), 'STANDARD')
        self.assertEqual(
            Subscription.objects.filter(client=client, status=Subscription.STATUS_CANCELLED).count(), 1
        )
        client.refresh_from_db()
        self.assertEqual(client.subscription_status, 'ACTIVE')


class PlanGatingTests(TestCase):

    def test_plan_limits(self):
        self.assertEqual(get_plan_limit('BASIC', 'max_auto_approval_rules'), 0)
        self.assertEqual(get_plan_limit('STANDARD', 'max_auto_approval_rules'), 3)
        self.assertIsNone(get_plan_limit('PREMIUM', 'max_auto_approval_rules'))
        self.assertEqual(get_plan_limit('UNKNOWN', 'max_products'), 50)

    def test_upgrade_helpers(self):
        self.assertEqual(get_recommended_plan('auto_approval'), 'STANDARD')
        self.assertEqual(get_recommended_plan('api_access'), 'PREMIUM')
        self.assertTrue(is_plan_higher_than('PREMIUM', 'STANDARD'))
        self.assertFalse(is_plan_higher_than('BASIC', 'STANDARD'))
        self.assertIsNone(get_next_plan_upgrade('PREMIUM'))

    def test_features_follow_plan(self):
        client = TestDataFactory.create_client()
        self.assertFalse(has_feature(client, 'auto_approval'))
        with self.assertRaises(PermissionDenied):
            require_feature(client, 'auto_approval')

        TestDataFactory.set_plan(client, 'PREMIUM')
        self.assertTrue(has_feature(client, 'api_access'))

    def test_platform_admin_passes_gates(self):
        self.assertTrue(has_feature(None, 'ai_predictions'))
        check_plan_limit(None, 'max_products', 10_000)

    def test_limit_message_names_the_upgrade(self):
        client = TestDataFactory.create_client(plan='STANDARD')
        with self.assertRaises(ValidationError) as ctx:
            check_plan_limit(client, 'max_products', 200)
        self.assertIn(UPGRADE_MESSAGES['products_standard'], str(ctx.exception.detail))

    def test_client_without_subscription_is_held_to_basic(self):
        client = TestDataFactory.create_client(plan='PREMIUM')
        Subscription.objects.filter(client=client).update(status=Subscription.STATUS_EXPIRED)
        self.assertIsNone(get_current_subscription(client))
        self.assertEqual(get_plan_code(client), 'BASIC')


class ExpiryTests(TestCase):

    def test_expire_past_end_date(self):
        client = TestDataFactory.create_client()
        Subscription.objects.filter(client=client).update(end_date=timezone.now() - timedelta(days=1))

        expired = expire_subscriptions()

        self.assertEqual(len(expired), 1)
        client.refresh_from_db()
        self.assertEqual(client.subscription_status, 'EXPIRED')
        self.assertTrue(Notification.objects.filter(
            recipient=client.user, notification_type='SUBSCRIPTION_EXPIRED'
        ).exists())

    def test_newer_subscription_keeps_client_active(self):
        client = TestDataFactory.create_client(plan='STANDARD')
        plan = Plan.objects.get(code='BASIC')
        Subscription.objects.create(
            client=client, plan=plan, status=Subscription.STATUS_ACTIVE, amount=0,
            start_date=timezone.now() - timedelta(days=40), end_date=timezone.now() - timedelta(days=10),
        )

        expire_subscriptions()

        client.refresh_from_db()
        self.assertEqual(client.subscription_status, 'ACTIVE')

    def test_check_subscriptions_command(self):
        client = TestDataFactory.create_client()
        Subscription.objects.filter(client=client).update(end_date=timezone.now() - timedelta(days=1))

        out = StringIO()
        call_command('check_subscriptions', '--skip-paystack', stdout=out)

        self.assertIn('Expired: 1', out.getvalue())


class PaystackWebhookTests(TestCase):

    def setUp(self):
        self.api = APIClient()
        self.client_profile = TestDataFactory.create_client()
        plan = Plan.objects.get(code='STANDARD')
        now = timezone.now()
        self.subscription = Subscription.objects.create(
            client=self.client_profile, plan=plan, status=Subscription.STATUS_PENDING,
            amount=plan.amount, start_date=now, end_date=now + timedelta(days=30),
            paystack_reference='PAYSTACK-REF-1',
        )
        self.payment = Payment.objects.create(
            client=self.client_profile, subscription=self.subscription, reference='PAYSTACK-REF-1',
            amount=plan.amount, metadata={'plan': 'STANDARD', 'client_id': self.client_profile.id},
        )

    def post_event(self, payload, signature=None):
        body = json.dumps(payload)
        if signature is None:
            signature = PaystackService.compute_signature(body.encode('utf-8'))
        headers = {'HTTP_X_PAYSTACK_SIGNATURE': signature} if signature else {}
        return self.api.post(WEBHOOK_URL, data=body, content_type='application/json', **headers)

    def charge_success(self, **metadata):
        return {
            'event': 'charge.success',
            'data': {'reference': 'PAYSTACK-REF-1', 'status': 'success', 'metadata': metadata},
        }

    def test_missing_signature(self):
        response = self.post_event(self.charge_success(), signature='')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_invalid_signature(self):
        response = self.post_event(self.charge_success(), signature='not-a-signature')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_PENDING)

    def test_charge_success_activates_subscription(self):
        response = self.post_event(self.charge_success(plan='STANDARD', client_id=self.client_profile.id))
        self.assertEqual(response.status_code, status.HTTP_200_OK)

        self.payment.refresh_from_db()
        self.subscription.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_COMPLETED)
        self.assertEqual(self.subscription.status, Subscription.STATUS_ACTIVE)
        self.assertEqual(get_plan_code(self.client_profile), 'STANDARD')
        self.assertTrue(Notification.objects.filter(notification_type='PAYMENT_RECEIVED').exists())

    def test_repeated_charge_success_is_ignored(self):
        self.post_event(self.charge_success(plan='STANDARD'))
        self.post_event(self.charge_success(plan='STANDARD'))
        self.assertEqual(Notification.objects.filter(notification_type='PAYMENT_RECEIVED').count(), 1)

    def test_client_mismatch_is_ignored(self):
        self.post_event(self.charge_success(plan='STANDARD', client_id=self.client_profile.id + 99))
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_PENDING)

    def test_payment_failed(self):
        self.post_event({'event': 'invoice.payment_failed', 'data': {'reference': 'PAYSTACK-REF-1'}})
        self.payment.refresh_from_db()
        self.assertEqual(self.payment.status, Payment.STATUS_FAILED)

    def test_unknown_event_acknowledged(self):
        response = self.post_event({'event': 'transfer.success', 'data': {}})
        self.assertEqual(response.status_code, status.HTTP_200_OK)


class SubscribeAPITests(TestCase):

    def setUp(self):
        self.client_profile = TestDataFactory.create_client()
        self.api = AuthenticatedAPIClient().authenticate_user(self.client_profile.user)

    @mock.patch.object(PaystackService, 'create_payment_link')
    def test_subscribe_returns_payment_link(self, create_link):
        create_link.return_value = {
            'status': True,
            'data': {'authorization_url': 'https://checkout.paystack.com/abc', 'access_code': 'abc'},
        }
        response = self.api.post(SUBSCRIPTIONS_URL, {'plan': 'PREMIUM'}, format='json')

        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['authorization_url'], 'https://checkout.paystack.com/abc')
        self.assertEqual(response.data['subscription']['status'], 'PENDING')
        payment = Payment.objects.get(reference=response.data['reference'])
        self.assertEqual(payment.metadata['plan'], 'PREMIUM')
        self.assertEqual(create_link.call_args.kwargs['reference'], payment.reference)

    @mock.patch.object(PaystackService, 'create_payment_link', side_effect=RuntimeError('Paystack down'))
    def test_subscribe_gateway_failure(self, create_link):
        response = self.api.post(SUBSCRIPTIONS_URL, {'plan': 'PREMIUM'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_502_BAD_GATEWAY)
        self.assertEqual(Payment.objects.get().status, Payment.STATUS_FAILED)

    def test_current_subscription(self):
        response = self.api.get(f'{SUBSCRIPTIONS_URL}current/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['plan'], 'BASIC')
        self.assertEqual(response.data['limits']['max_auto_approval_rules'], 0)
        self.assertEqual(response.data['next_upgrade'], 'STANDARD')

    def test_cancel(self):
        response = self.api.post(f'{SUBSCRIPTIONS_URL}cancel/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.client_profile.refresh_from_db()
        self.assertEqual(self.client_profile.subscription_status, 'CANCELLED')

    def test_admin_assigns_plan(self):
        admin_api = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_admin())
        response = admin_api.post(
            '/api/billing/admin/subscriptions/assign/',
            {'client_id': self.client_profile.id, 'plan': 'STANDARD', 'duration_days': 60},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(get_plan_code(self.client_profile), 'STANDARD')
