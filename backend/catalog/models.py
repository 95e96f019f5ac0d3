from django.db import models


class Medicine(models.Model):
    """Medicine catalog entry curated by administrators"""
    name = models.CharField(max_length=200, db_index=True)
    active_ingredient = models.CharField(max_length=200, db_index=True)
    dosage = models.CharField(max_length=100)
    prescription_required = models.BooleanField(default=False)
    category = models.CharField(max_length=100, db_index=True)
    price_range = models.CharField(max_length=100)
    created_at = models.DateTimeField(auto_now_add=True)
    updated_at = models.DateTimeField(auto_now=True)

    def __str__(self):
        return f"{self.name} ({self.dosage})"

    class Meta:
        db_table = 'medicines'
        ordering = ['name']
