"""
Test suite for the inventory module
Tests: Stock status derivation, Listing/filtering, Create/duplicate, Update, Ownership, Approval gate
"""
from django.test import TestCase, override_settings
from rest_framework import status
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.utils import STOCK_IN, STOCK_LOW, STOCK_OUT
from backend.inventory.models import Inventory


class InventoryModelTests(TestCase):
    """Test stock status derivation on save"""

    def test_status_follows_quantity(self):
        """Test status follows quantity"""
        item = TestDataFactory.create_inventory(quantity=0)
        self.assertEqual(item.status, STOCK_OUT)

        item.quantity = 7
        item.save(update_fields=['quantity'])
        item.refresh_from_db()
        self.assertEqual(item.status, STOCK_LOW)

        item.quantity = 11
        item.save()
        item.refresh_from_db()
        self.assertEqual(item.status, STOCK_IN)

    @override_settings(LOW_STOCK_THRESHOLD=3)
    def test_threshold_is_configurable(self):
        """Test threshold is configurable"""
        item = TestDataFactory.create_inventory(quantity=5)
        self.assertEqual(item.status, STOCK_IN)


class InventoryAPITests(TestCase):
    """Test the pharmacy inventory endpoints"""

    def setUp(self):
        self.pharmacy = TestDataFactory.create_pharmacy()
        self.medicine = TestDataFactory.create_medicine(name='Zyrtec')
        self.other_medicine = TestDataFactory.create_medicine(name='Centrum Adults')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.pharmacy.user)

    def test_add_medicine_to_inventory(self):
        """Test add medicine to inventory"""
        response = self.client.post('/api/v1/inventory/', {
            'medicine': self.medicine.id,
            'quantity': 25,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['status'], STOCK_IN)
        self.assertEqual(response.data['medicine']['id'], self.medicine.id)
        self.assertEqual(response.data['pharmacy'], self.pharmacy.id)

    def test_add_duplicate_conflicts(self):
        """Test add duplicate conflicts"""
        TestDataFactory.create_inventory(self.pharmacy, self.medicine, quantity=5)
        response = self.client.post('/api/v1/inventory/', {
            'medicine': self.medicine.id,
            'quantity': 25,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertEqual(response.data['message'], 'Medicine already exists in inventory. Use PUT to update quantity.')
        self.assertEqual(Inventory.objects.filter(pharmacy=self.pharmacy).count(), 1)

    def test_add_unknown_medicine(self):
        """Test add unknown medicine"""
        response = self.client.post('/api/v1/inventory/', {'medicine': 99999, 'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)
        self.assertEqual(response.data['message'], 'Medicine not found')

    def test_add_negative_quantity(self):
        """Test add negative quantity"""
        response = self.client.post('/api/v1/inventory/', {
            'medicine': self.medicine.id,
            'quantity': -1,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_list_only_own_items(self):
        """Test list only own items"""
        TestDataFactory.create_inventory(self.pharmacy, self.medicine, quantity=3)
        TestDataFactory.create_inventory(medicine=self.other_medicine, quantity=30)
        response = self.client.get('/api/v1/inventory/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 1)
        self.assertEqual(response.data['results'][0]['medicine']['name'], 'Zyrtec')

    def test_list_filters(self):
        """Test list filters"""
        TestDataFactory.create_inventory(self.pharmacy, self.medicine, quantity=3)
        TestDataFactory.create_inventory(self.pharmacy, self.other_medicine, quantity=30)

        response = self.client.get(f'/api/v1/inventory/?status={STOCK_LOW}')
        self.assertEqual([i['medicine']['name'] for i in response.data['results']], ['Zyrtec'])

        response = self.client.get('/api/v1/inventory/?search=centrum')
        self.assertEqual([i['medicine']['name'] for i in response.data['results']], ['Centrum Adults'])

        response = self.client.get('/api/v1/inventory/?status=BOGUS')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_quantity_recomputes_status(self):
        """Test update quantity recomputes status"""
        item = TestDataFactory.create_inventory(self.pharmacy, self.medicine, quantity=50)
        response = self.client.put(f'/api/v1/inventory/{item.id}/', {'quantity': 0}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['status'], STOCK_OUT)
        item.refresh_from_db()
        self.assertEqual(item.quantity, 0)

    def test_cannot_touch_other_pharmacy_item(self):
        """Test cannot touch other pharmacy item"""
        foreign = TestDataFactory.create_inventory(medicine=self.medicine, quantity=10)
        response = self.client.put(f'/api/v1/inventory/{foreign.id}/', {'quantity': 1}, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'This inventory item does not belong to your pharmacy')
        foreign.refresh_from_db()
        self.assertEqual(foreign.quantity, 10)

    def test_delete_item(self):
        """Test delete item"""
        item = TestDataFactory.create_inventory(self.pharmacy, self.medicine)
        response = self.client.delete(f'/api/v1/inventory/{item.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Inventory.objects.filter(pk=item.id).exists())


class InventoryAccessTests(TestCase):
    """Test that only approved pharmacies reach inventory"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_pending_pharmacy_blocked(self):
        """Test pending pharmacy blocked"""
        pharmacy = TestDataFactory.create_pharmacy(approved=False)
        self.client.authenticate_user(pharmacy.user)
        response = self.client.get('/api/v1/inventory/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)
        self.assertEqual(response.data['message'], 'Your pharmacy is pending approval')

    def test_patient_blocked(self):
        """Test patient blocked"""
        self.client.authenticate_user(TestDataFactory.create_patient())
        response = self.client.get('/api/v1/inventory/')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_blocked(self):
        """Test anonymous blocked"""
        response = self.client.get('/api/v1/inventory/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
