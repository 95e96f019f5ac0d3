from django.contrib import admin
from .models import Medicine


@admin.register(Medicine)
class MedicineAdmin(admin.ModelAdmin):
    list_display = ['name', 'active_ingredient', 'dosage', 'category', 'prescription_required', 'price_range', 'updated_at']
    list_filter = ['category', 'prescription_required']
    search_fields = ['name', 'active_ingredient']
    ordering = ['name']
