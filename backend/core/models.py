from django.contrib.auth.models import AbstractUser, BaseUserManager
from django.core.exceptions import ObjectDoesNotExist
from django.db import models


class UserManager(BaseUserManager):
    """Manager for email-based users"""

    def create_user(self, email, password=None, **extra_fields):
        if not email:
            raise ValueError('Email is required')
        email = self.normalize_email(email).strip().lower()
        extra_fields.setdefault('role', User.ROLE_PATIENT)
        user = self.model(email=email, **extra_fields)
        user.set_password(password)
        user.save(using=self._db)
        return user

    def create_superuser(self, email, password=None, **extra_fields):
        extra_fields.setdefault('role', User.ROLE_ADMIN)
        extra_fields.setdefault('is_staff', True)
        extra_fields.setdefault('is_superuser', True)
        return self.create_user(email, password, **extra_fields)


class User(AbstractUser):
    """Application user, identified by email and carrying one role"""
    ROLE_PATIENT = 'PATIENT'
    ROLE_PHARMACY = 'PHARMACY'
    ROLE_ADMIN = 'ADMIN'
    ROLE_CHOICES = [
        (ROLE_PATIENT, 'Patient'),
        (ROLE_PHARMACY, 'Pharmacy'),
        (ROLE_ADMIN, 'Admin'),
    ]

    username = None
    first_name = None
    last_name = None
    email = models.EmailField(unique=True)
    name = models.CharField(max_length=200)
    phone = models.CharField(max_length=20, blank=True, null=True)
    avatar = models.URLField(max_length=500, blank=True, null=True)
    role = models.CharField(max_length=20, choices=ROLE_CHOICES, default=ROLE_PATIENT)
    is_active = models.BooleanField(default=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    USERNAME_FIELD = 'email'
    REQUIRED_FIELDS = ['name']

    objects = UserManager()

    def __str__(self):
        return f"{self.name} <{self.email}>"

    @property
    def is_patient(self):
        return self.role == self.ROLE_PATIENT

    @property
    def is_pharmacy(self):
        return self.role == self.ROLE_PHARMACY

    @property
    def is_admin(self):
        return self.role == self.ROLE_ADMIN

    def get_pharmacy(self):
        """Return the pharmacy owned by this user, or None"""
        if not self.is_pharmacy:
            return None
        try:
            return self.pharmacy
        except ObjectDoesNotExist:
            return None

    class Meta:
        db_table = 'users'
