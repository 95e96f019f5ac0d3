"""
Test suite for the notifications module
Tests: Listing, Unread count, Mark read, Mark all read, Service helpers
"""
from django.test import TestCase
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.notifications.models import Notification
from backend.notifications.services import create_notification, notify_reservation_created


class NotificationAPITests(TestCase):
    """Test notification endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_patient()
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_list_with_unread_count(self):
        """Test list with unread count"""
        TestDataFactory.create_notification(self.user)
        TestDataFactory.create_notification(self.user, is_read=True)
        TestDataFactory.create_notification(TestDataFactory.create_patient())

        response = self.client.get('/api/v1/notifications/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(len(response.data['notifications']), 2)
        self.assertEqual(response.data['unread_count'], 1)

    def test_unread_only_and_limit(self):
        """Test unread only and limit"""
        for _ in range(3):
            TestDataFactory.create_notification(self.user)
        TestDataFactory.create_notification(self.user, is_read=True)

        response = self.client.get('/api/v1/notifications/?unread_only=true')
        self.assertEqual(len(response.data['notifications']), 3)
        self.assertTrue(all(not n['is_read'] for n in response.data['notifications']))

        response = self.client.get('/api/v1/notifications/?limit=2')
        self.assertEqual(len(response.data['notifications']), 2)
        self.assertEqual(response.data['unread_count'], 3)

    def test_invalid_limit(self):
        """Test invalid limit"""
        response = self.client.get('/api/v1/notifications/?limit=abc')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_mark_read(self):
        """Test mark read"""
        notification = TestDataFactory.create_notification(self.user)
        response = self.client.put(f'/api/v1/notifications/{notification.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['notification']['is_read'])
        notification.refresh_from_db()
        self.assertTrue(notification.is_read)

    def test_mark_read_other_users_notification(self):
        """Test mark read other users notification"""
        notification = TestDataFactory.create_notification(TestDataFactory.create_patient())
        response = self.client.put(f'/api/v1/notifications/{notification.id}/read/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        notification.refresh_from_db()
        self.assertFalse(notification.is_read)

    def test_mark_read_missing(self):
        """Test mark read missing"""
        response = self.client.put('/api/v1/notifications/99999/read/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)

    def test_mark_all_read(self):
        """Test mark all read"""
        TestDataFactory.create_notification(self.user)
        TestDataFactory.create_notification(self.user)
        other = TestDataFactory.create_notification(TestDataFactory.create_patient())

        response = self.client.put('/api/v1/notifications/mark-all-read/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['updated'], 2)
        self.assertFalse(Notification.objects.filter(user=self.user, is_read=False).exists())
        other.refresh_from_db()
        self.assertFalse(other.is_read)

    def test_requires_authentication(self):
        """Test requires authentication"""
        self.client.logout()
        response = self.client.get('/api/v1/notifications/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)


class NotificationServiceTests(TestCase):
    """Test notification helpers"""

    def test_create_notification(self):
        """Test create notification"""
        user = TestDataFactory.create_patient()
        notification = create_notification(user, Notification.TYPE_PHARMACY_APPROVED, 'Title', 'Body')
        self.assertIsNotNone(notification)
        self.assertFalse(notification.is_read)

    def test_reservation_created_goes_to_pharmacy_owner(self):
        """Test reservation created goes to pharmacy owner"""
        reservation = TestDataFactory.create_reservation(quantity=2)
        notification = notify_reservation_created(reservation)
        self.assertEqual(notification.user, reservation.pharmacy.user)
        self.assertEqual(notification.type, Notification.TYPE_RESERVATION_CREATED)
        self.assertIn('2 unit(s)', notification.message)
