from django.conf import settings
from django.db import models


class Pharmacy(models.Model):
    """Pharmacy profile owned by a PHARMACY user"""
    user = models.OneToOneField(settings.AUTH_USER_MODEL, on_delete=models.CASCADE, related_name='pharmacy')
    name = models.CharField(max_length=200)
    address = models.TextField()
    phone = models.CharField(max_length=30)
    latitude = models.FloatField()
    longitude = models.FloatField()
    rating = models.FloatField(default=0)
    working_hours = models.CharField(max_length=200)
    is_approved = models.BooleanField(default=False)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return self.name

    class Meta:
        db_table = 'pharmacies'
        ordering = ['name']
        verbose_name_plural = 'pharmacies'
