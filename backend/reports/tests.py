"""
Test suite for the reports module
Tests: Admin analytics, Pharmacy analytics, Access control
"""
from datetime import timedelta
from django.test import TestCase
from django.utils import timezone
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.reservations.models import Reservation, DirectCall


class AdminAnalyticsTests(TestCase):
    """Test platform-wide analytics"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.patient = TestDataFactory.create_patient()
        self.pharmacy = TestDataFactory.create_pharmacy(name='Slow Pharmacy')
        TestDataFactory.create_pharmacy(approved=False)
        self.popular = TestDataFactory.create_medicine(name='Popular')
        self.rare = TestDataFactory.create_medicine(name='Rare')
        for _ in range(3):
            TestDataFactory.create_reservation(user=self.patient, pharmacy=self.pharmacy, medicine=self.popular)
        TestDataFactory.create_reservation(
            user=self.patient, pharmacy=self.pharmacy, medicine=self.rare, status=Reservation.STATUS_NO_RESPONSE
        )
        DirectCall.objects.create(user=self.patient, pharmacy=self.pharmacy, medicine=self.rare)
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.admin)

    def test_admin_analytics(self):
        """Test admin analytics"""
        response = self.client.get('/api/v1/analytics/admin/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data
        # admin, patient and two pharmacy owners
        self.assertEqual(data['total_users'], 4)
        self.assertEqual(data['total_patients'], 1)
        self.assertEqual(data['total_pharmacies'], 2)
        self.assertEqual(data['pending_approvals'], 1)
        self.assertEqual(data['total_medicines'], 2)
        self.assertEqual(data['total_reservations'], 4)
        self.assertEqual(data['reservations_by_status']['pending'], 3)
        self.assertEqual(data['reservations_by_status']['no_response'], 1)
        self.assertEqual(data['direct_calls'], 1)

    def test_no_response_by_pharmacy(self):
        """Test no response by pharmacy"""
        response = self.client.get('/api/v1/analytics/admin/')
        rows = response.data['no_response_by_pharmacy']
        self.assertEqual(len(rows), 1)
        self.assertEqual(rows[0]['pharmacy']['name'], 'Slow Pharmacy')
        self.assertEqual(rows[0]['count'], 1)

    def test_top_medicines_ordered_by_count(self):
        """Test top medicines ordered by count"""
        response = self.client.get('/api/v1/analytics/admin/')
        top = response.data['top_medicines']
        self.assertEqual([row['medicine']['name'] for row in top], ['Popular', 'Rare'])
        self.assertEqual(top[0]['count'], 3)

    def test_reservations_over_time_covers_twelve_months(self):
        """Test reservations over time covers twelve months"""
        response = self.client.get('/api/v1/analytics/admin/')
        timeline = response.data['reservations_over_time']
        self.assertEqual(len(timeline), 12)
        self.assertEqual(timeline[-1]['month'], timezone.now().strftime('%Y-%m'))
        self.assertEqual(sum(point['count'] for point in timeline), 4)

    def test_non_admin_forbidden(self):
        """Test non admin forbidden"""
        self.client.authenticate_user(self.patient)
        response = self.client.get('/api/v1/analytics/admin/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class PharmacyAnalyticsTests(TestCase):
    """Test analytics for a single pharmacy"""

    def setUp(self):
        self.pharmacy = TestDataFactory.create_pharmacy()
        self.patient = TestDataFactory.create_patient()
        self.medicine = TestDataFactory.create_medicine(name='Low Stock Med')
        TestDataFactory.create_inventory(self.pharmacy, self.medicine, quantity=2)
        TestDataFactory.create_inventory(self.pharmacy, quantity=0)
        TestDataFactory.create_inventory(self.pharmacy, quantity=80)

        TestDataFactory.create_reservation(user=self.patient, pharmacy=self.pharmacy, medicine=self.medicine)
        TestDataFactory.create_reservation(
            user=self.patient, pharmacy=self.pharmacy, medicine=self.medicine, status=Reservation.STATUS_ACCEPTED
        )
        # Outside the 30 day window
        TestDataFactory.create_reservation(
            user=self.patient, pharmacy=self.pharmacy, medicine=self.medicine,
            request_time=timezone.now() - timedelta(days=45),
        )
        # Another pharmacy
        TestDataFactory.create_reservation(user=self.patient, medicine=self.medicine)

        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.pharmacy.user)

    def test_pharmacy_analytics(self):
        """Test pharmacy analytics"""
        response = self.client.get('/api/v1/analytics/pharmacy/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        data = response.data
        self.assertEqual(data['total_reservations'], 2)
        self.assertEqual(data['pending'], 1)
        self.assertEqual(data['accepted'], 1)
        self.assertEqual(data['inventory_stats'], {'total_items': 3, 'low_stock': 1, 'out_of_stock': 1})
        self.assertEqual(len(data['recent_reservations']), 2)
        self.assertEqual(len(data['low_stock_items']), 2)
        self.assertEqual(data['low_stock_items'][0]['quantity'], 0)

    def test_pending_pharmacy_forbidden(self):
        """Test pending pharmacy forbidden"""
        pending = TestDataFactory.create_pharmacy(approved=False)
        self.client.authenticate_user(pending.user)
        response = self.client.get('/api/v1/analytics/pharmacy/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_patient_forbidden(self):
        """Test patient forbidden"""
        self.client.authenticate_user(self.patient)
        response = self.client.get('/api/v1/analytics/pharmacy/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
