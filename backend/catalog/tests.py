"""
Test suite for the catalog module
Tests: Medicine search, Detail with availability and distance, Admin CRUD, Categories
"""
from django.core.cache import cache
from django.test import TestCase
from rest_framework import status
from backend.catalog.models import Medicine
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.utils import STOCK_IN, STOCK_LOW


class MedicineSearchTests(TestCase):
    """Test the public medicine search"""

    def setUp(self):
        cache.clear()
        self.panadol = TestDataFactory.create_medicine(name='Panadol Advance', active_ingredient='Paracetamol', category='Painkillers')
        self.amoxil = TestDataFactory.create_medicine(
            name='Amoxil', active_ingredient='Amoxicillin', category='Antibiotics', prescription_required=True
        )
        self.zyrtec = TestDataFactory.create_medicine(name='Zyrtec', active_ingredient='Cetirizine', category='Allergy')
        self.client = AuthenticatedAPIClient()

    def test_list_is_public_and_sorted(self):
        """Test list is public and sorted"""
        response = self.client.get('/api/v1/medicines/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 3)
        self.assertEqual([m['name'] for m in response.data['results']], ['Amoxil', 'Panadol Advance', 'Zyrtec'])

    def test_search_matches_active_ingredient(self):
        """Test search matches active ingredient"""
        response = self.client.get('/api/v1/medicines/?search=paracet')
        self.assertEqual([m['id'] for m in response.data['results']], [self.panadol.id])

    def test_search_is_case_insensitive(self):
        """Test search is case insensitive"""
        response = self.client.get('/api/v1/medicines/?search=ZYR')
        self.assertEqual([m['id'] for m in response.data['results']], [self.zyrtec.id])

    def test_filter_by_category(self):
        """Test filter by category"""
        response = self.client.get('/api/v1/medicines/?category=Antibiotics')
        self.assertEqual([m['id'] for m in response.data['results']], [self.amoxil.id])

    def test_category_filter_is_exact(self):
        """Test category must match exactly, including case"""
        response = self.client.get('/api/v1/medicines/?category=antibiotics')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['count'], 0)

    def test_filter_by_prescription(self):
        """Test filter by prescription"""
        response = self.client.get('/api/v1/medicines/?prescription_required=true')
        self.assertEqual([m['id'] for m in response.data['results']], [self.amoxil.id])

    def test_categories(self):
        """Test categories"""
        response = self.client.get('/api/v1/medicines/categories/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['categories'], ['Allergy', 'Antibiotics', 'Painkillers'])

    def test_categories_refresh_after_new_medicine(self):
        """Test categories refresh after new medicine"""
        self.client.get('/api/v1/medicines/categories/')
        TestDataFactory.create_medicine(category='Vitamins')
        response = self.client.get('/api/v1/medicines/categories/')
        self.assertIn('Vitamins', response.data['categories'])


class MedicineDetailTests(TestCase):
    """Test medicine detail with pharmacy availability"""

    def setUp(self):
        self.medicine = TestDataFactory.create_medicine(name='Lipitor')
        self.near = TestDataFactory.create_pharmacy(name='Zeta Near', latitude=40.7130, longitude=-74.0060)
        self.far = TestDataFactory.create_pharmacy(name='Alpha Far', latitude=40.7614, longitude=-73.9776)
        self.pending = TestDataFactory.create_pharmacy(name='Pending', approved=False)
        self.empty = TestDataFactory.create_pharmacy(name='Empty Shelf')
        TestDataFactory.create_inventory(self.near, self.medicine, quantity=5)
        TestDataFactory.create_inventory(self.far, self.medicine, quantity=40)
        TestDataFactory.create_inventory(self.pending, self.medicine, quantity=40)
        TestDataFactory.create_inventory(self.empty, self.medicine, quantity=0)
        self.client = AuthenticatedAPIClient()

    def test_availability_lists_approved_in_stock_pharmacies(self):
        """Test availability lists approved in stock pharmacies"""
        response = self.client.get(f'/api/v1/medicines/{self.medicine.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['medicine']['name'], 'Lipitor')
        names = [entry['pharmacy_name'] for entry in response.data['availability']]
        self.assertEqual(names, ['Alpha Far', 'Zeta Near'])
        self.assertNotIn('distance', response.data['availability'][0])

    def test_availability_sorted_by_distance(self):
        """Test availability sorted by distance"""
        response = self.client.get(f'/api/v1/medicines/{self.medicine.id}/?lat=40.7128&lon=-74.0060')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        availability = response.data['availability']
        self.assertEqual([entry['pharmacy_id'] for entry in availability], [self.near.id, self.far.id])
        self.assertLess(availability[0]['distance'], availability[1]['distance'])
        self.assertEqual(availability[0]['stock_status'], STOCK_LOW)
        self.assertEqual(availability[1]['stock_status'], STOCK_IN)

    def test_partial_coordinates_rejected(self):
        """Test partial coordinates rejected"""
        response = self.client.get(f'/api/v1/medicines/{self.medicine.id}/?lat=40.7')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_missing_medicine(self):
        """Test missing medicine"""
        response = self.client.get('/api/v1/medicines/99999/')
        self.assertEqual(response.status_code, status.HTTP_404_NOT_FOUND)


class MedicineAdminTests(TestCase):
    """Test catalog writes"""

    def setUp(self):
        self.admin = TestDataFactory.create_admin()
        self.patient = TestDataFactory.create_patient()
        self.client = AuthenticatedAPIClient()
        self.payload = {
            'name': 'Augmentin',
            'active_ingredient': 'Amoxicillin/Clavulanate',
            'dosage': '625mg',
            'prescription_required': True,
            'category': 'Antibiotics',
            'price_range': '$15 - $25',
        }

    def test_admin_creates_medicine(self):
        """Test admin creates medicine"""
        self.client.authenticate_user(self.admin)
        response = self.client.post('/api/v1/medicines/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(Medicine.objects.filter(name='Augmentin').exists())

    def test_create_requires_all_fields(self):
        """Test create requires all fields"""
        self.client.authenticate_user(self.admin)
        payload = dict(self.payload)
        del payload['category']
        response = self.client.post('/api/v1/medicines/', payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('category', response.data['details'])

    def test_patient_cannot_create(self):
        """Test patient cannot create"""
        self.client.authenticate_user(self.patient)
        response = self.client.post('/api/v1/medicines/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_403_FORBIDDEN)

    def test_anonymous_cannot_create(self):
        """Test anonymous cannot create"""
        response = self.client.post('/api/v1/medicines/', self.payload, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_admin_updates_medicine(self):
        """Test admin updates medicine"""
        medicine = TestDataFactory.create_medicine()
        self.client.authenticate_user(self.admin)
        response = self.client.patch(f'/api/v1/medicines/{medicine.id}/', {'price_range': '$3 - $6'}, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        medicine.refresh_from_db()
        self.assertEqual(medicine.price_range, '$3 - $6')

    def test_admin_deletes_unreferenced_medicine(self):
        """Test admin deletes unreferenced medicine"""
        medicine = TestDataFactory.create_medicine()
        TestDataFactory.create_inventory(medicine=medicine)
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/medicines/{medicine.id}/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertFalse(Medicine.objects.filter(pk=medicine.id).exists())

    def test_delete_referenced_medicine_conflicts(self):
        """Test delete referenced medicine conflicts"""
        reservation = TestDataFactory.create_reservation()
        self.client.authenticate_user(self.admin)
        response = self.client.delete(f'/api/v1/medicines/{reservation.medicine_id}/')
        self.assertEqual(response.status_code, status.HTTP_409_CONFLICT)
        self.assertTrue(Medicine.objects.filter(pk=reservation.medicine_id).exists())
