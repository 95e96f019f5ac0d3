"""
Test utilities and factories for creating test data
"""
from django.conf import settings
from django.contrib.auth import get_user_model
from django.utils import timezone
from rest_framework.test import APIClient
from backend.catalog.models import Medicine
from backend.core.authentication import issue_auth_token
from backend.inventory.models import Inventory
from backend.notifications.models import Notification
from backend.pharmacies.models import Pharmacy
from backend.reservations.models import Reservation
import random
import string

User = get_user_model()


class TestDataFactory:
    """Factory class for creating test data"""

    @staticmethod
    def random_string(length=10):
        """Generate a random string"""
        return ''.join(random.choices(string.ascii_letters + string.digits, k=length))

    @staticmethod
    def create_user(email=None, role=User.ROLE_PATIENT, password='testpass123', name=None, **extra):
        """Create a test user"""
        if not email:
            email = f'user_{TestDataFactory.random_string(6).lower()}@test.com'
        if not name:
            name = f'User {TestDataFactory.random_string(4)}'
        return User.objects.create_user(
            email=email,
            password=password,
            name=name,
            role=role,
            **extra
        )

    @staticmethod
    def create_patient(**kwargs):
        return TestDataFactory.create_user(role=User.ROLE_PATIENT, **kwargs)

    @staticmethod
    def create_admin(**kwargs):
        kwargs.setdefault('is_staff', True)
        return TestDataFactory.create_user(role=User.ROLE_ADMIN, **kwargs)

    @staticmethod
    def create_pharmacy(user=None, approved=True, name=None, latitude=40.7128, longitude=-74.0060, **extra):
        """Create a test pharmacy, with its own PHARMACY user unless one is given"""
        if user is None:
            user = TestDataFactory.create_user(role=User.ROLE_PHARMACY)
        if not name:
            name = f'Pharmacy {TestDataFactory.random_string(6)}'
        defaults = {
            'address': f'Test Address {name}',
            'phone': '+1 555 1234',
            'rating': 4.5,
            'working_hours': '09:00 - 21:00',
        }
        defaults.update(extra)
        return Pharmacy.objects.create(
            user=user,
            name=name,
            latitude=latitude,
            longitude=longitude,
            is_approved=approved,
            **defaults
        )

    @staticmethod
    def create_medicine(name=None, category='Painkillers', prescription_required=False, **extra):
        """Create a test medicine"""
        if not name:
            name = f'Medicine {TestDataFactory.random_string(6)}'
        defaults = {
            'active_ingredient': 'Paracetamol',
            'dosage': '500mg',
            'price_range': '$2 - $5',
        }
        defaults.update(extra)
        return Medicine.objects.create(
            name=name,
            category=category,
            prescription_required=prescription_required,
            **defaults
        )

    @staticmethod
    def create_inventory(pharmacy=None, medicine=None, quantity=50):
        """Create a test inventory row"""
        if pharmacy is None:
            pharmacy = TestDataFactory.create_pharmacy()
        if medicine is None:
            medicine = TestDataFactory.create_medicine()
        return Inventory.objects.create(pharmacy=pharmacy, medicine=medicine, quantity=quantity)

    @staticmethod
    def create_reservation(user=None, pharmacy=None, medicine=None, quantity=1,
                           status=Reservation.STATUS_PENDING, request_time=None):
        """Create a test reservation directly, bypassing stock checks"""
        if user is None:
            user = TestDataFactory.create_patient()
        if pharmacy is None:
            pharmacy = TestDataFactory.create_pharmacy()
        if medicine is None:
            medicine = TestDataFactory.create_medicine()
        return Reservation.objects.create(
            user=user,
            pharmacy=pharmacy,
            medicine=medicine,
            quantity=quantity,
            status=status,
            request_time=request_time or timezone.now()
        )

    @staticmethod
    def create_notification(user, type=Notification.TYPE_RESERVATION_CREATED, is_read=False, title=None):
        """Create a test notification"""
        return Notification.objects.create(
            user=user,
            type=type,
            title=title or f'Notification {TestDataFactory.random_string(4)}',
            message='Test notification message',
            is_read=is_read
        )


class AuthenticatedAPIClient(APIClient):
    """APIClient with authentication helper"""

    def authenticate_user(self, user):
        """Authenticate the client with a user through the auth cookie"""
        self.cookies[settings.AUTH_COOKIE_NAME] = issue_auth_token(user)
        return self

    def logout(self):
        """Remove authentication"""
        self.cookies.pop(settings.AUTH_COOKIE_NAME, None)
        self.credentials()
