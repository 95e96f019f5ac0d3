from django.conf import settings
from django.db import models
from django.utils import timezone
from backend.catalog.models import Medicine
from backend.pharmacies.models import Pharmacy


class Reservation(models.Model):
    """A patient's request to hold a quantity of a medicine at a pharmacy"""
    STATUS_PENDING = 'PENDING'
    STATUS_ACCEPTED = 'ACCEPTED'
    STATUS_REJECTED = 'REJECTED'
    STATUS_CANCELLED = 'CANCELLED'
    STATUS_NO_RESPONSE = 'NO_RESPONSE'
    STATUS_CHOICES = [
        (STATUS_PENDING, 'Pending'),
        (STATUS_ACCEPTED, 'Accepted'),
        (STATUS_REJECTED, 'Rejected'),
        (STATUS_CANCELLED, 'Cancelled'),
        (STATUS_NO_RESPONSE, 'No Response'),
    ]

    # Statuses each transition may start from
    RESPONDABLE_STATUSES = (STATUS_PENDING, STATUS_NO_RESPONSE)
    CANCELLABLE_STATUSES = (STATUS_PENDING, STATUS_ACCEPTED, STATUS_NO_RESPONSE)

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='reservations')
    pharmacy = models.ForeignKey(Pharmacy, on_delete=models.CASCADE, related_name='reservations')
    medicine = models.ForeignKey(Medicine, on_delete=models.PROTECT, related_name='reservations')
    quantity = models.PositiveIntegerField()
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STATUS_PENDING, db_index=True)
    request_time = models.DateTimeField(default=timezone.now, db_index=True)
    accepted_time = models.DateTimeField(null=True, blank=True)
    rejected_time = models.DateTimeField(null=True, blank=True)
    no_response_time = models.DateTimeField(null=True, blank=True)
    note = models.TextField(blank=True, null=True)
    patient_phone = models.CharField(max_length=30, blank=True, null=True)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"Reservation #{self.id} {self.medicine.name} x{self.quantity} ({self.status})"

    class Meta:
        db_table = 'reservations'
        ordering = ['-request_time']
        indexes = [
            models.Index(fields=['status', 'request_time'], name='idx_reservation_status_time'),
            models.Index(fields=['pharmacy', 'status'], name='idx_reservation_pharmacy'),
        ]


class DirectCall(models.Model):
    """Log of a patient calling a pharmacy about a medicine"""
    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='direct_calls')
    pharmacy = models.ForeignKey(Pharmacy, on_delete=models.CASCADE, related_name='direct_calls')
    medicine = models.ForeignKey(Medicine, on_delete=models.PROTECT, related_name='direct_calls')
    created_at = models.DateTimeField(auto_now_add=True, db_index=True)

    def __str__(self):
        return f"Call {self.user.email} -> {self.pharmacy.name}"

    class Meta:
        db_table = 'direct_calls'
        ordering = ['-created_at']
