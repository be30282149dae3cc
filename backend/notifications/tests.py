from unittest import mock

from django.core import mail
from django.test import TestCase
from rest_framework import status

from core.test_utils import AuthenticatedAPIClient, TestDataFactory
from notifications.models import Notification
from notifications.tasks import send_notification_email
from notifications.utils import notify_admins, notify_user

NOTIFICATIONS_URL = '/api/notifications/'


class NotifyTests(TestCase):

    def test_email_channel_is_delivered(self):
        user = TestDataFactory.create_user()
        notification = notify_user(user, 'Hello', 'Welcome aboard', channels=['EMAIL'])

        notification.refresh_from_db()
        self.assertEqual(notification.status, Notification.STATUS_SENT)
        self.assertIsNotNone(notification.sent_at)
        self.assertEqual(len(mail.outbox), 1)
        self.assertEqual(mail.outbox[0].subject, 'Hello')

    def test_other_channels_are_only_recorded(self):
        user = TestDataFactory.create_user()
        notification = notify_user(user, 'Hi', 'Body', channels=['SMS'])

        notification.refresh_from_db()
        self.assertEqual(notification.status, Notification.STATUS_PENDING)
        self.assertEqual(len(mail.outbox), 0)

    def test_failed_email_marks_notification_failed(self):
        user = TestDataFactory.create_user()
        notification = Notification.objects.create(recipient=user, title='T', message='M', channels=['EMAIL'])

        with mock.patch('notifications.tasks.send_mail', side_effect=OSError('smtp down')):
            send_notification_email.apply(args=(notification.id,))

        notification.refresh_from_db()
        self.assertEqual(notification.status, Notification.STATUS_FAILED)

    def test_read_notification_stays_read(self):
        user = TestDataFactory.create_user()
        notification = Notification.objects.create(
            recipient=user, title='T', message='M', status=Notification.STATUS_READ
        )
        send_notification_email.apply(args=(notification.id,))

        notification.refresh_from_db()
        self.assertEqual(notification.status, Notification.STATUS_READ)

    def test_notify_admins_skips_vendors(self):
        admin = TestDataFactory.create_admin()
        TestDataFactory.create_user()

        notifications = notify_admins('New request', 'Something happened')
        self.assertEqual([n.recipient for n in notifications], [admin])


class NotificationAPITests(TestCase):

    def setUp(self):
        self.user = TestDataFactory.create_user()
        self.other = TestDataFactory.create_user()
        self.first = Notification.objects.create(recipient=self.user, title='One', message='1')
        self.second = Notification.objects.create(recipient=self.user, title='Two', message='2')
        Notification.objects.create(recipient=self.other, title='Elsewhere', message='x')
        self.api = AuthenticatedAPIClient().authenticate_user(self.user)

    def test_list_only_own(self):
        response = self.api.get(NOTIFICATIONS_URL)
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['pagination']['total'], 2)

    def test_mine_respects_limit(self):
        response = self.api.get(f'{NOTIFICATIONS_URL}mine/', {'limit': 1})
        self.assertEqual(len(response.data), 1)

    def test_mark_read_and_unread_count(self):
        response = self.api.post(f'{NOTIFICATIONS_URL}{self.first.id}/mark_read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.first.refresh_from_db()
        self.assertTrue(self.first.is_read)

        response = self.api.get(f'{NOTIFICATIONS_URL}unread_count/')
        self.assertEqual(response.data['count'], 1)

    def test_cannot_mark_someone_elses(self):
        foreign = Notification.objects.filter(recipient=self.other).first()
        response = self.api.post(f'{NOTIFICATIONS_URL}{foreign.id}/mark_read/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_mark_all_read(self):
        self.api.post(f'{NOTIFICATIONS_URL}mark_all_read/')
        response = self.api.get(f'{NOTIFICATIONS_URL}unread_count/')
        self.assertEqual(response.data['count'], 0)

    def test_unread_only_filter(self):
        self.api.post(f'{NOTIFICATIONS_URL}{self.first.id}/mark_read/')
        response = self.api.get(NOTIFICATIONS_URL, {'unread_only': 'true'})
        self.assertEqual([n['title'] for n in response.data['results']], ['Two'])

    def test_admin_can_send(self):
        admin_api = AuthenticatedAPIClient().authenticate_user(TestDataFactory.create_admin())
        response = admin_api.post(
            f'{NOTIFICATIONS_URL}send/',
            {'user_id': self.other.id, 'title': 'Heads up', 'message': 'Maintenance tonight', 'channels': ['SMS']},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Notification.objects.filter(recipient=self.other, title='Heads up').exists())

    def test_vendor_cannot_send(self):
        response = self.api.post(
            f'{NOTIFICATIONS_URL}send/',
            {'user_id': self.other.id, 'title': 'x', 'message': 'y'},
            format='json',
        )
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
