"""
Test suite for the pharmacies module
Tests: Listing, Detail, Owner updates, Admin approval and deletion
"""
from django.test import TestCase
from rest_framework import status
from backend.core.models import User
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.notifications.models import Notification
from backend.pharmacies.models import Pharmacy


class PharmacyListTests(TestCase):
    """Test the public pharmacy list"""

    def setUp(self):
        self.approved = TestDataFactory.create_pharmacy(name='Alpha Pharmacy', address='1 Main St')
        self.pending = TestDataFactory.create_pharmacy(name='Beta Drugs', approved=False, address='2 Oak Ave')
        self.client = AuthenticatedAPIClient()

    def test_list_is_public(self):
        """Test list is public"""
        response = self.client.get('/api/v1/pharmacies/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 2)
        self.assertEqual([p['name'] for p in response.data['results']], ['Alpha Pharmacy', 'Beta Drugs'])

    def test_filter_by_approval(self):
        """Test filter by approval"""
        response = self.client.get('/api/v1/pharmacies/?is_approved=false')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual([p['id'] for p in response.data['results']], [self.pending.id])

    def test_invalid_approval_filter(self):
        """Test invalid approval filter"""
        response = self.client.get('/api/v1/pharmacies/?is_approved=maybe')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_search_by_address(self):
        """Test search by address"""
        response = self.client.get('/api/v1/pharmacies/?search=oak')
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['id'], self.pending.id)

    def test_pagination(self):
        """Test pagination"""
        response = self.client.get('/api/v1/pharmacies/?limit=1&page=2')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['page'], 2)
        self.assertEqual(response.data['total_pages'], 2)
        self.assertEqual(response.data['previous'], 1)
        self.assertIsNone(response.data['next'])
        self.assertEqual(len(response.data['results']), 1)

    def test_limit_out_of_range(self):
        """Test limit out of range"""
        response = self.client.get('/api/v1/pharmacies/?limit=500')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)


class PharmacyDetailTests(TestCase):
    """Test pharmacy detail, update and delete"""

    def setUp(self):
        self.pharmacy = TestDataFactory.create_pharmacy(name='Owner Pharmacy')
        self.owner = self.pharmacy.user
        self.client = AuthenticatedAPIClient()

    def test_get_detail(self):
        """Test get detail"""
        response = self.client.get(f'/api/v1/pharmacies/{self.pharmacy.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['name'], 'Owner Pharmacy')
        self.assertEqual(response.data['user']['id'], self.owner.id)

    def test_get_missing(self):
        """Test get missing"""
        response = self.client.get('/api/v1/pharmacies/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['error'], 'NOT_FOUND')

    def test_owner_updates_profile(self):
        """Test owner updates profile"""
        self.client.authenticate_user(self.owner)
        response = self.client.put(f'/api/v1/pharmacies/{self.pharmacy.id}/', {
            'name': 'Renamed Pharmacy',
            'working_hours': '24/7',
            'is_approved': False,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.pharmacy.refresh_from_db()
        self.assertEqual(self.pharmacy.name, 'Renamed Pharmacy')
        self.assertEqual(self.pharmacy.working_hours, '24/7')
        self.assertTrue(self.pharmacy.is_approved)

    def test_update_rejects_bad_coordinates(self):
        """Test update rejects bad coordinates"""
        self.client.authenticate_user(self.owner)
        response = self.client.patch(f'/api/v1/pharmacies/{self.pharmacy.id}/', {'latitude': 123}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_other_user_cannot_update(self):
        """Test other user cannot update"""
        other = TestDataFactory.create_pharmacy()
        self.client.authenticate_user(other.user)
        response = self.client.put(f'/api/v1/pharmacies/{self.pharmacy.id}/', {'name': 'Hijacked'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'You can only update your own pharmacy profile')

    def test_anonymous_cannot_update(self):
        """Test anonymous cannot update"""
        response = self.client.put(f'/api/v1/pharmacies/{self.pharmacy.id}/', {'name': 'Anon'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_deletes_pharmacy_and_user(self):
        """Test admin deletes pharmacy and user"""
        self.client.authenticate_user(TestDataFactory.create_admin())
        response = self.client.delete(f'/api/v1/pharmacies/{self.pharmacy.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Pharmacy.objects.filter(pk=self.pharmacy.id).exists())
        self.assertFalse(User.objects.filter(pk=self.owner.id).exists())

    def test_owner_cannot_delete(self):
        """Test owner cannot delete"""
        self.client.authenticate_user(self.owner)
        response = self.client.delete(f'/api/v1/pharmacies/{self.pharmacy.id}/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)


class PharmacyApprovalTests(TestCase):
    """Test admin approval"""

    def setUp(self):
        self.pharmacy = TestDataFactory.create_pharmacy(approved=False)
        self.admin = TestDataFactory.create_admin()
        self.client = AuthenticatedAPIClient()

    def test_admin_approves_and_owner_is_notified(self):
        """Test admin approves and owner is notified"""
        self.client.authenticate_user(self.admin)
        response = self.client.post(f'/api/v1/pharmacies/{self.pharmacy.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['pharmacy']['is_approved'])
        self.pharmacy.refresh_from_db()
        self.assertTrue(self.pharmacy.is_approved)
        self.assertTrue(Notification.objects.filter(
            user=self.pharmacy.user, type=Notification.TYPE_PHARMACY_APPROVED
        ).exists())

    def test_approve_twice_conflicts(self):
        """Test approve twice conflicts"""
        self.client.authenticate_user(self.admin)
        self.client.post(f'/api/v1/pharmacies/{self.pharmacy.id}/approve/')
        response = self.client.post(f'/api/v1/pharmacies/{self.pharmacy.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'Pharmacy is already approved')

    def test_non_admin_cannot_approve(self):
        """Test non admin cannot approve"""
        self.client.authenticate_user(self.pharmacy.user)
        response = self.client.post(f'/api/v1/pharmacies/{self.pharmacy.id}/approve/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.pharmacy.refresh_from_db()
        self.assertFalse(self.pharmacy.is_approved)
