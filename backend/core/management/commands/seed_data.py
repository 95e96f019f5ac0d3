"""
Management command to load MediFind development data
Usage: python manage.py seed_data [--clear] [--force] [--seed N]
"""
import random
from datetime import timedelta
from django.conf import settings
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand, CommandError
from django.db import transaction
from django.utils import timezone
from backend.catalog.models import Medicine
from backend.inventory.models import Inventory
from backend.notifications.models import Notification
from backend.pharmacies.models import Pharmacy
from backend.reservations.models import Reservation, DirectCall

User = get_user_model()

SEED_PASSWORD = 'password123'
SAMPLE_RESERVATIONS = 5

MEDICINES = [
    {'name': 'Panadol Advance', 'active_ingredient': 'Paracetamol', 'dosage': '500mg', 'prescription_required': False, 'category': 'Painkillers', 'price_range': '$2 - $5'},
    {'name': 'Amoxicillin', 'active_ingredient': 'Amoxicillin', 'dosage': '250mg', 'prescription_required': True, 'category': 'Antibiotics', 'price_range': '$10 - $15'},
    {'name': 'Augmentin', 'active_ingredient': 'Amoxicillin/Clavulanate', 'dosage': '625mg', 'prescription_required': True, 'category': 'Antibiotics', 'price_range': '$15 - $25'},
    {'name': 'Centrum Adults', 'active_ingredient': 'Multivitamins', 'dosage': '1 Tablet', 'prescription_required': False, 'category': 'Vitamins', 'price_range': '$20 - $30'},
    {'name': 'Lipitor', 'active_ingredient': 'Atorvastatin', 'dosage': '20mg', 'prescription_required': True, 'category': 'Chronic', 'price_range': '$40 - $60'},
    {'name': 'Zyrtec', 'active_ingredient': 'Cetirizine', 'dosage': '10mg', 'prescription_required': False, 'category': 'Allergy', 'price_range': '$8 - $12'},
]

PHARMACIES = [
    {'name': 'HealthFirst Pharmacy', 'address': '123 Main St, Downtown', 'phone': '+1 555 1010', 'latitude': 40.7128, 'longitude': -74.0060, 'rating': 4.8, 'working_hours': '24/7'},
    {'name': 'CureAll Drugs', 'address': '456 West Side Ave', 'phone': '+1 555 2020', 'latitude': 40.7580, 'longitude': -73.9855, 'rating': 4.5, 'working_hours': '08:00 - 22:00'},
    {'name': 'Wellness Point', 'address': '789 Oak Lane', 'phone': '+1 555 3030', 'latitude': 40.7489, 'longitude': -73.9680, 'rating': 4.2, 'working_hours': '09:00 - 21:00'},
    {'name': 'QuickMeds Express', 'address': '101 Pine Plaza', 'phone': '+1 555 4040', 'latitude': 40.7614, 'longitude': -73.9776, 'rating': 4.9, 'working_hours': '24/7'},
]


class Command(BaseCommand):
    help = 'Seed medicines, pharmacies, inventory, users and sample reservations for development'

    def add_arguments(self, parser):
        parser.add_argument(
            '--clear',
            action='store_true',
            help='Delete existing MediFind data before seeding',
        )
        parser.add_argument(
            '--force',
            action='store_true',
            help='Allow seeding when DEBUG is off',
        )
        parser.add_argument(
            '--seed',
            type=int,
            default=None,
            help='Random seed for reproducible inventory and reservations',
        )

    def handle(self, *args, **options):
        if not settings.DEBUG and not options['force']:
            raise CommandError('Refusing to seed a non-DEBUG environment. Pass --force to override.')

        rng = random.Random(options.get('seed'))

        with transaction.atomic():
            if options['clear']:
                self._clear()
            medicines = self._seed_medicines()
            admin, patient = self._seed_users()
            pharmacies = self._seed_pharmacies()
            inventory_count = self._seed_inventory(rng, pharmacies, medicines)
            reservation_count = self._seed_reservations(rng, patient, pharmacies)

        self.stdout.write(self.style.SUCCESS('Seeding completed'))
        self.stdout.write(f"  Medicines: {len(medicines)}")
        self.stdout.write(f"  Pharmacies: {len(pharmacies)}")
        self.stdout.write(f"  Inventory items: {inventory_count}")
        self.stdout.write(f"  Reservations: {reservation_count}")
        self.stdout.write('')
        self.stdout.write('Sample credentials:')
        self.stdout.write(f"  Admin:    {admin.email} / {SEED_PASSWORD}")
        self.stdout.write(f"  Patient:  {patient.email} / {SEED_PASSWORD}")
        self.stdout.write(f"  Pharmacy: pharmacy1@example.com / {SEED_PASSWORD}")

    def _clear(self):
        self.stdout.write('Clearing existing data...')
        Notification.objects.all().delete()
        DirectCall.objects.all().delete()
        Reservation.objects.all().delete()
        Inventory.objects.all().delete()
        Pharmacy.objects.all().delete()
        Medicine.objects.all().delete()
        User.objects.filter(is_superuser=False).delete()
        User.objects.filter(email='admin@medifind.com').delete()

    def _seed_medicines(self):
        medicines = []
        for data in MEDICINES:
            medicine, created = Medicine.objects.get_or_create(
                name=data['name'], dosage=data['dosage'], defaults=data,
            )
            medicines.append(medicine)
            if created:
                self.stdout.write(f"  Created medicine: {medicine.name}")
        return medicines

    def _get_or_create_user(self, email, name, phone, role, **extra):
        user = User.objects.filter(email=email).first()
        if user:
            return user
        return User.objects.create_user(
            email=email, password=SEED_PASSWORD, name=name, phone=phone, role=role, **extra
        )

    def _seed_users(self):
        admin = self._get_or_create_user(
            'admin@medifind.com', 'Admin User', '+1 555 0000', User.ROLE_ADMIN,
            is_staff=True, is_superuser=True,
        )
        patient = self._get_or_create_user(
            'patient@example.com', 'John Patient', '+1 555 1111', User.ROLE_PATIENT,
        )
        return admin, patient

    def _seed_pharmacies(self):
        pharmacies = []
        for index, data in enumerate(PHARMACIES, start=1):
            user = self._get_or_create_user(
                f'pharmacy{index}@example.com', f"{data['name']} Manager", data['phone'], User.ROLE_PHARMACY,
            )
            pharmacy, created = Pharmacy.objects.get_or_create(
                user=user, defaults={**data, 'is_approved': True},
            )
            pharmacies.append(pharmacy)
            if created:
                self.stdout.write(f"  Created pharmacy: {pharmacy.name} (approved)")
        return pharmacies

    def _seed_inventory(self, rng, pharmacies, medicines):
        count = 0
        for pharmacy in pharmacies:
            for medicine in rng.sample(medicines, rng.randint(3, 5)):
                _, created = Inventory.objects.get_or_create(
                    pharmacy=pharmacy, medicine=medicine,
                    defaults={'quantity': rng.randint(5, 54)},
                )
                count += int(created)
        return count

    def _seed_reservations(self, rng, patient, pharmacies):
        """Sample reservations, each for a medicine the pharmacy stocks and within its quantity"""
        stocked = list(
            Inventory.objects.filter(pharmacy__in=pharmacies, quantity__gt=0).select_related('pharmacy', 'medicine').order_by('id')
        )
        if not stocked:
            self.stdout.write(self.style.WARNING('  No stocked inventory, skipping reservations'))
            return 0

        statuses = [
            Reservation.STATUS_PENDING,
            Reservation.STATUS_ACCEPTED,
            Reservation.STATUS_REJECTED,
            Reservation.STATUS_CANCELLED,
        ]
        now = timezone.now()
        for _ in range(SAMPLE_RESERVATIONS):
            item = rng.choice(stocked)
            status = rng.choice(statuses)
            request_time = now - timedelta(seconds=rng.randint(0, 7 * 24 * 3600))
            reservation = Reservation(
                user=patient,
                pharmacy=item.pharmacy,
                medicine=item.medicine,
                quantity=rng.randint(1, min(3, item.quantity)),
                status=status,
                request_time=request_time,
            )
            if status == Reservation.STATUS_ACCEPTED:
                reservation.accepted_time = request_time + timedelta(minutes=3)
                reservation.note = 'Your medicine is ready for pickup within 30 minutes.'
            elif status == Reservation.STATUS_REJECTED:
                reservation.rejected_time = request_time + timedelta(minutes=2)
                reservation.note = 'Sorry, this medicine is currently out of stock.'
            reservation.save()
        return SAMPLE_RESERVATIONS
