from django.db import models
from backend.catalog.models import Medicine
from backend.core.utils import calculate_stock_status, STOCK_IN, STOCK_LOW, STOCK_OUT
from backend.pharmacies.models import Pharmacy


class Inventory(models.Model):
    """Stock of one medicine at one pharmacy"""
    STATUS_CHOICES = [
        (STOCK_IN, 'In Stock'),
        (STOCK_LOW, 'Low Stock'),
        (STOCK_OUT, 'Out of Stock'),
    ]

    pharmacy = models.ForeignKey(Pharmacy, on_delete=models.CASCADE, related_name='inventory_items')
    medicine = models.ForeignKey(Medicine, on_delete=models.CASCADE, related_name='inventory_items')
    quantity = models.PositiveIntegerField(default=0)
    status = models.CharField(max_length=20, choices=STATUS_CHOICES, default=STOCK_OUT)
    last_updated = models.DateTimeField(auto_now=True)

    def save(self, *args, **kwargs):
        # Status always follows quantity
        self.status = calculate_stock_status(self.quantity)
        update_fields = kwargs.get('update_fields')
        if update_fields is not None and 'quantity' in update_fields:
            kwargs['update_fields'] = set(update_fields) | {'status', 'last_updated'}
        super().save(*args, **kwargs)

    def __str__(self):
        return f"{self.medicine.name} @ {self.pharmacy.name}: {self.quantity}"

    class Meta:
        db_table = 'inventory'
        verbose_name_plural = 'inventory'
        constraints = [
            models.UniqueConstraint(fields=['pharmacy', 'medicine'], name='uniq_inventory_pharmacy_medicine'),
        ]
        indexes = [
            models.Index(fields=['pharmacy', 'status'], name='idx_inventory_pharmacy_status'),
        ]
