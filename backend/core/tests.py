"""
Test suite for the core module
Tests: Registration, Login/Logout, Cookie authentication, Profile, Error envelope, Helpers, Commands
"""
from io import StringIO
from django.conf import settings
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import TestCase, override_settings
from rest_framework import status
from backend.catalog.models import Medicine
from backend.core.authentication import issue_auth_token
from backend.core.models import User
from backend.core.test_utils import TestDataFactory, AuthenticatedAPIClient
from backend.core.utils import (
    haversine_distance, calculate_stock_status, sanitize_search_query, clean_text,
    STOCK_IN, STOCK_LOW, STOCK_OUT,
)
from backend.inventory.models import Inventory
from backend.pharmacies.models import Pharmacy
from backend.reservations.models import Reservation


class RegistrationTests(TestCase):
    """Test account registration"""

    def setUp(self):
        self.client = AuthenticatedAPIClient()

    def test_register_patient(self):
        """Patients register with the PATIENT role by default"""
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'New.Patient@Example.com',
            'password': 'strongpass99',
            'name': 'New Patient',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['user']['email'], 'new.patient@example.com')
        self.assertEqual(response.data['user']['role'], User.ROLE_PATIENT)
        self.assertNotIn('password', response.data['user'])

    def test_register_pharmacy_creates_unapproved_pharmacy(self):
        """Pharmacy registration creates the user and a pending pharmacy together"""
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'owner@example.com',
            'password': 'strongpass99',
            'name': 'Owner',
            'role': User.ROLE_PHARMACY,
            'pharmacy_data': {
                'name': 'Corner Pharmacy',
                'address': '1 Corner St',
                'phone': '+1 555 9999',
                'latitude': 40.7,
                'longitude': -74.0,
                'working_hours': '09:00 - 18:00',
            },
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['message'], 'Pharmacy registration successful. Awaiting admin approval.')
        pharmacy = Pharmacy.objects.get(user__email='owner@example.com')
        self.assertFalse(pharmacy.is_approved)
        self.assertEqual(response.data['user']['pharmacy']['id'], pharmacy.id)

    def test_register_pharmacy_without_pharmacy_data(self):
        """Pharmacy registration without pharmacy details is rejected"""
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'owner@example.com',
            'password': 'strongpass99',
            'name': 'Owner',
            'role': User.ROLE_PHARMACY,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'VALIDATION_ERROR')
        self.assertIn('pharmacy_data', response.data['details'])
        self.assertFalse(User.objects.filter(email='owner@example.com').exists())

    def test_register_duplicate_email(self):
        """A second account with the same email (any case) is rejected"""
        TestDataFactory.create_patient(email='taken@example.com')
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'TAKEN@example.com',
            'password': 'strongpass99',
            'name': 'Someone',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['error'], 'EMAIL_EXISTS')

    def test_register_cannot_self_assign_admin(self):
        """The ADMIN role is not available through registration"""
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'sneaky@example.com',
            'password': 'strongpass99',
            'name': 'Sneaky',
            'role': User.ROLE_ADMIN,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_register_short_password(self):
        """Passwords shorter than 8 characters are rejected"""
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'short@example.com',
            'password': 'abc',
            'name': 'Short',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertIn('password', response.data['details'])

    def test_register_strips_html_from_name(self):
        """Markup in text fields is stripped before saving"""
        response = self.client.post('/api/v1/auth/register/', {
            'email': 'html@example.com',
            'password': 'strongpass99',
            'name': '<b>Bold</b> Name',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_201_CREATED)
        self.assertEqual(response.data['user']['name'], 'Bold Name')


class AuthenticationTests(TestCase):
    """Test login, logout and cookie/header authentication"""

    def setUp(self):
        self.user = TestDataFactory.create_patient(email='patient@test.com', password='strongpass99')
        self.client = AuthenticatedAPIClient()

    def test_login_sets_auth_cookie(self):
        """Successful login returns the user and sets the httpOnly auth cookie"""
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'patient@test.com',
            'password': 'strongpass99',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertTrue(response.data['success'])
        self.assertEqual(response.data['user']['id'], self.user.id)
        cookie = response.cookies[settings.AUTH_COOKIE_NAME]
        self.assertTrue(cookie['httponly'])
        self.assertEqual(cookie.value, response.data['token'])

        # The cookie alone authenticates later requests
        me = self.client.get('/api/v1/auth/me/')
        self.assertEqual(me.status_code, status.HTTP_200_OK)
        self.assertEqual(me.data['user']['email'], 'patient@test.com')

    def test_login_wrong_password(self):
        """Wrong credentials give a generic 401"""
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'patient@test.com',
            'password': 'wrongpass99',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Invalid email or password')

    def test_login_unknown_email(self):
        """Test login unknown email"""
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'nobody@test.com',
            'password': 'strongpass99',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['message'], 'Invalid email or password')

    def test_login_inactive_user(self):
        """Deactivated accounts cannot log in"""
        self.user.is_active = False
        self.user.save()
        response = self.client.post('/api/v1/auth/login/', {
            'email': 'patient@test.com',
            'password': 'strongpass99',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_logout_clears_cookie(self):
        """Logout expires the auth cookie"""
        self.client.authenticate_user(self.user)
        response = self.client.post('/api/v1/auth/logout/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.cookies[settings.AUTH_COOKIE_NAME].value, '')

        me = self.client.get('/api/v1/auth/me/')
        self.assertEqual(me.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_me_requires_authentication(self):
        """Test me requires authentication"""
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)
        self.assertEqual(response.data['error'], 'UNAUTHORIZED')
        self.assertEqual(response.data['status_code'], 401)

    def test_bearer_header_authentication(self):
        """The Authorization header works when no cookie is present"""
        login = self.client.post('/api/v1/auth/login/', {
            'email': 'patient@test.com',
            'password': 'strongpass99',
        }, format='json')
        client = AuthenticatedAPIClient()
        client.credentials(HTTP_AUTHORIZATION=f"Bearer {login.data['token']}")
        response = client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)

    def test_invalid_cookie_is_anonymous(self):
        """A garbage cookie does not break public endpoints"""
        self.client.cookies[settings.AUTH_COOKIE_NAME] = 'not-a-token'
        response = self.client.get('/api/v1/medicines/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_401_UNAUTHORIZED)

    def test_invalid_cookie_falls_back_to_bearer_header(self):
        """A stale cookie does not hide a valid Authorization header"""
        self.client.cookies[settings.AUTH_COOKIE_NAME] = 'not-a-token'
        self.client.credentials(HTTP_AUTHORIZATION=f'Bearer {issue_auth_token(self.user)}')
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['id'], self.user.id)

    def test_me_includes_pharmacy(self):
        """Pharmacy users see their pharmacy summary"""
        pharmacy = TestDataFactory.create_pharmacy(approved=False)
        self.client.authenticate_user(pharmacy.user)
        response = self.client.get('/api/v1/auth/me/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['pharmacy']['id'], pharmacy.id)
        self.assertFalse(response.data['user']['pharmacy']['is_approved'])


class ProfileTests(TestCase):
    """Test profile endpoints"""

    def setUp(self):
        self.user = TestDataFactory.create_patient(password='strongpass99')
        self.client = AuthenticatedAPIClient()
        self.client.authenticate_user(self.user)

    def test_get_profile(self):
        """Test get profile"""
        response = self.client.get('/api/v1/profile/')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.assertEqual(response.data['user']['id'], self.user.id)

    def test_update_profile(self):
        """Name and phone are updated, the role cannot be changed"""
        response = self.client.put('/api/v1/profile/', {
            'name': 'Renamed',
            'phone': '+1 (555) 777-1234',
            'role': User.ROLE_ADMIN,
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.name, 'Renamed')
        self.assertEqual(self.user.phone, '+1 (555) 777-1234')
        self.assertEqual(self.user.role, User.ROLE_PATIENT)

    def test_update_profile_blank_name(self):
        """Test update profile blank name"""
        response = self.client.patch('/api/v1/profile/', {'name': '   '}, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_update_avatar(self):
        """Test update avatar"""
        response = self.client.post('/api/v1/profile/avatar/', {
            'avatar_url': 'https://cdn.example.com/me.png',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertEqual(self.user.avatar, 'https://cdn.example.com/me.png')

    def test_update_avatar_rejects_non_image(self):
        """Test update avatar rejects non image"""
        response = self.client.post('/api/v1/profile/avatar/', {
            'avatar_url': 'https://cdn.example.com/me.exe',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)

    def test_change_password(self):
        """Test change password"""
        response = self.client.put('/api/v1/profile/password/', {
            'current_password': 'strongpass99',
            'new_password': 'evenstronger77',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_200_OK)
        self.user.refresh_from_db()
        self.assertTrue(self.user.check_password('evenstronger77'))

    def test_change_password_wrong_current(self):
        """Test change password wrong current"""
        response = self.client.put('/api/v1/profile/password/', {
            'current_password': 'notmypass99',
            'new_password': 'evenstronger77',
        }, format='json')
        self.assertEqual(response.status_code, status.HTTP_400_BAD_REQUEST)
        self.assertEqual(response.data['message'], 'Current password is incorrect')


class UtilsTests(TestCase):
    """Test shared helpers"""

    def test_haversine_zero_distance(self):
        """Test haversine zero distance"""
        self.assertAlmostEqual(haversine_distance(40.7128, -74.0060, 40.7128, -74.0060), 0.0)

    def test_haversine_known_distance(self):
        """One degree of latitude is roughly 111 km"""
        distance = haversine_distance(0, 0, 1, 0)
        self.assertAlmostEqual(distance, 111.19, places=1)

    def test_stock_status_thresholds(self):
        """Test stock status thresholds"""
        self.assertEqual(calculate_stock_status(0), STOCK_OUT)
        self.assertEqual(calculate_stock_status(1), STOCK_LOW)
        self.assertEqual(calculate_stock_status(10), STOCK_LOW)
        self.assertEqual(calculate_stock_status(11), STOCK_IN)

    def test_sanitize_search_query(self):
        """Test sanitize search query"""
        self.assertEqual(sanitize_search_query("  pan'adol; <script> "), 'panadol script')
        self.assertEqual(sanitize_search_query(None), '')
        self.assertEqual(len(sanitize_search_query('a' * 500)), 200)

    def test_clean_text_strips_tags(self):
        """Test clean text strips tags"""
        self.assertEqual(clean_text(' <i>hello</i> '), 'hello')


class ManagementCommandTests(TestCase):
    """Test create_admin and seed_data commands"""

    def test_create_admin(self):
        """Test create admin"""
        out = StringIO()
        call_command('create_admin', email='root@medifind.com', password='rootpass123', stdout=out)
        admin = User.objects.get(email='root@medifind.com')
        self.assertEqual(admin.role, User.ROLE_ADMIN)
        self.assertTrue(admin.is_superuser)
        self.assertIn('created', out.getvalue())

    def test_create_admin_is_noop_when_admin_exists(self):
        """Test create admin is noop when admin exists"""
        TestDataFactory.create_admin(email='existing@medifind.com')
        out = StringIO()
        call_command('create_admin', email='other@medifind.com', stdout=out)
        self.assertFalse(User.objects.filter(email='other@medifind.com').exists())
        self.assertIn('existing@medifind.com', out.getvalue())

    @override_settings(DEBUG=False)
    def test_seed_refuses_without_debug(self):
        """Test seed refuses without debug"""
        with self.assertRaises(CommandError):
            call_command('seed_data', stdout=StringIO())

    @override_settings(DEBUG=True)
    def test_seed_data(self):
        """Test seed data"""
        call_command('seed_data', seed=7, stdout=StringIO())
        self.assertEqual(Medicine.objects.count(), 6)
        self.assertEqual(Pharmacy.objects.filter(is_approved=True).count(), 4)
        self.assertTrue(User.objects.filter(email='patient@example.com', role=User.ROLE_PATIENT).exists())
        per_pharmacy = Inventory.objects.filter(pharmacy__name='HealthFirst Pharmacy').count()
        self.assertTrue(3 <= per_pharmacy <= 5)

    @override_settings(DEBUG=True)
    def test_seed_data_is_rerunnable(self):
        """Test seed data is rerunnable"""
        call_command('seed_data', seed=1, stdout=StringIO())
        call_command('seed_data', seed=1, stdout=StringIO())
        self.assertEqual(Medicine.objects.count(), 6)
        self.assertEqual(Pharmacy.objects.count(), 4)

    @override_settings(DEBUG=True)
    def test_seed_reservations_match_stocked_inventory(self):
        """Test seeded reservations only reference stocked medicines within quantity"""
        call_command('seed_data', seed=3, stdout=StringIO())
        reservations = Reservation.objects.all()
        self.assertEqual(reservations.count(), 5)
        for reservation in reservations:
            item = Inventory.objects.get(pharmacy=reservation.pharmacy, medicine=reservation.medicine)
            self.assertLessEqual(reservation.quantity, item.quantity)
