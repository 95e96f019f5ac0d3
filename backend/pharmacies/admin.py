from django.contrib import admin
from .models import Pharmacy


@admin.register(Pharmacy)
class PharmacyAdmin(admin.ModelAdmin):
    list_display = ['name', 'user', 'phone', 'rating', 'is_approved', 'created_at']
    list_filter = ['is_approved', 'created_at']
    search_fields = ['name', 'address', 'user__email']
    ordering = ['name']
    actions = ['approve_selected']

    @admin.action(description='Approve selected pharmacies')
    def approve_selected(self, request, queryset):
        from backend.notifications.services import notify_pharmacy_approved
        approved = 0
        for pharmacy in queryset.filter(is_approved=False).select_related('user'):
            pharmacy.is_approved = True
            pharmacy.save(update_fields=['is_approved', 'updated_at'])
            notify_pharmacy_approved(pharmacy)
            approved += 1
        self.message_user(request, f"Approved {approved} pharmacies")
