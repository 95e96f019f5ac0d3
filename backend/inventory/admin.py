from django.contrib import admin
from .models import Inventory


@admin.register(Inventory)
class InventoryAdmin(admin.ModelAdmin):
    list_display = ['medicine', 'pharmacy', 'quantity', 'status', 'last_updated']
    list_filter = ['status', 'pharmacy']
    search_fields = ['medicine__name', 'pharmacy__name']
    ordering = ['-last_updated']
    readonly_fields = ['status', 'last_updated']
