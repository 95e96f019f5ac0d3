from django.conf import settings
from django.db import models


class Notification(models.Model):
    """In-app message delivered to one user"""
    TYPE_RESERVATION_CREATED = 'reservation_created'
    TYPE_RESERVATION_ACCEPTED = 'reservation_accepted'
    TYPE_RESERVATION_REJECTED = 'reservation_rejected'
    TYPE_RESERVATION_NO_RESPONSE = 'reservation_no_response'
    TYPE_PHARMACY_APPROVED = 'pharmacy_approved'
    TYPE_CHOICES = [
        (TYPE_RESERVATION_CREATED, 'Reservation Created'),
        (TYPE_RESERVATION_ACCEPTED, 'Reservation Accepted'),
        (TYPE_RESERVATION_REJECTED, 'Reservation Rejected'),
        (TYPE_RESERVATION_NO_RESPONSE, 'Reservation No Response'),
        (TYPE_PHARMACY_APPROVED, 'Pharmacy Approved'),
    ]

    user = models.ForeignKey(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='notifications')
    type = models.CharField(max_length=40, choices=TYPE_CHOICES)
    title = models.CharField(max_length=200)
    message = models.TextField()
    is_read = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)

    def __str__(self):
        return f"{self.title} -> {self.user.email}"

    class Meta:
        db_table = 'notifications'
        ordering = ['-created_at']
        indexes = [
            models.Index(fields=['user', 'is_read'], name='idx_notification_user_read'),
        ]
