"""
Management command to make sure a default administrator exists
Usage: python manage.py create_admin [--email ... --password ... --name ...]
"""
import os
from django.contrib.auth import get_user_model
from django.core.management.base import BaseCommand

User = get_user_model()

DEFAULT_ADMIN_EMAIL = 'admin@medifind.com'
DEFAULT_ADMIN_PASSWORD = 'admin123456'
DEFAULT_ADMIN_NAME = 'System Administrator'


class Command(BaseCommand):
    help = 'Create the default admin account when no ADMIN user exists'

    def add_arguments(self, parser):
        parser.add_argument('--email', help='Admin email (default: ADMIN_EMAIL env or admin@medifind.com)')
        parser.add_argument('--password', help='Admin password (default: ADMIN_PASSWORD env)')
        parser.add_argument('--name', help='Admin display name (default: ADMIN_NAME env)')

    def handle(self, *args, **options):
        existing = User.objects.filter(role=User.ROLE_ADMIN).order_by('id').first()
        if existing:
            self.stdout.write(self.style.SUCCESS(f"Admin account exists: {existing.email}"))
            return

        email = options.get('email') or os.environ.get('ADMIN_EMAIL', DEFAULT_ADMIN_EMAIL)
        password = options.get('password') or os.environ.get('ADMIN_PASSWORD', DEFAULT_ADMIN_PASSWORD)
        name = options.get('name') or os.environ.get('ADMIN_NAME', DEFAULT_ADMIN_NAME)

        admin = User.objects.create_superuser(email=email, password=password, name=name)

        self.stdout.write(self.style.SUCCESS('Default admin account created'))
        self.stdout.write(f"  Email: {admin.email}")
        if password == DEFAULT_ADMIN_PASSWORD:
            self.stdout.write(self.style.WARNING('  Using the default password, change it after first login'))
